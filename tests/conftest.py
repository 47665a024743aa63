"""Shared fixtures: synthetic audio files and deterministic fake models."""

from pathlib import Path

import numpy as np
import pytest
import soundfile as sf
import torch

from zeroshot.config import SeparationConfig
from zeroshot.core.constants import LATENT_DIM
from zeroshot.models import FeatureExtractor, Separator

# Small chunks keep the pipeline tests fast
TEST_CLIP = 1600
TEST_SR = 32000


class FakeEmbeddingModel(torch.nn.Module):
    """Returns a ``latent_output`` that depends on the input level."""

    def __init__(self, latent_dim: int = LATENT_DIM):
        super().__init__()
        self.latent_dim = latent_dim
        self.calls = 0

    def forward(self, waveform):
        self.calls += 1
        base = torch.linspace(0.0, 1.0, self.latent_dim).unsqueeze(0)
        return {"latent_output": base + waveform.abs().mean()}


class FakeSeparatorModel(torch.nn.Module):
    """Halves the mixture; ignores the condition."""

    def __init__(self, gain: float = 0.5):
        super().__init__()
        self.gain = gain
        self.calls = 0

    def forward(self, waveform, condition):
        self.calls += 1
        return waveform * self.gain


def sine(seconds: float, sr: int = TEST_SR, freq: float = 440.0, amplitude: float = 0.5) -> np.ndarray:
    t = np.arange(int(seconds * sr), dtype=np.float32) / sr
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def write_audio(path: Path, audio: np.ndarray, sr: int = TEST_SR, subtype: str = "FLOAT") -> Path:
    sf.write(str(path), audio, sr, subtype=subtype)
    return path


@pytest.fixture
def config(tmp_path):
    return SeparationConfig(clip_samples=TEST_CLIP, output_root=tmp_path)


@pytest.fixture
def fake_extractor():
    return FeatureExtractor(module=FakeEmbeddingModel(), clip_samples=TEST_CLIP)


@pytest.fixture
def fake_separator():
    return Separator(module=FakeSeparatorModel(), clip_samples=TEST_CLIP)


@pytest.fixture
def mono_wav(tmp_path):
    """0.25s mono sine at 32 kHz."""
    return write_audio(tmp_path / "mono.wav", sine(0.25))


@pytest.fixture
def stereo_wav(tmp_path):
    """0.2s stereo file with different content per channel."""
    left = sine(0.2, freq=440.0)
    right = sine(0.2, freq=660.0, amplitude=0.3)
    return write_audio(tmp_path / "stereo.wav", np.stack([left, right], axis=1))


@pytest.fixture
def garbage_file(tmp_path):
    path = tmp_path / "garbage.wav"
    path.write_bytes(b"this is not audio at all" * 16)
    return path
