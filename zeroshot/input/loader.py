"""Audio loading and preprocessing utilities."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import librosa
import numpy as np
import soundfile as sf

from ..core.constants import SAMPLE_RATE
from ..core.errors import DecodeError, InvalidTensor, ResampleError, UnsupportedFormat

logger = logging.getLogger(__name__)

# libsndfile messages that mean "this is not a container I can read"
_UNSUPPORTED_MARKERS = ("format not recognised", "unknown format", "not supported")


@dataclass
class AudioInfo:
    """Header information for an audio file."""

    sample_rate: int
    channels: int
    frames: int
    format: str = ""
    subtype: str = ""

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.frames / self.sample_rate if self.sample_rate else 0.0


class AudioLoader:
    """Handles audio file loading and preprocessing.

    Audio comes back as float32 numpy arrays at ``target_sr``: ``[T]`` for
    mono and ``[T, C]`` for multi-channel.
    """

    def __init__(self, target_sr: int = SAMPLE_RATE, res_type: str = "soxr_hq"):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Target sample rate for resampling
            res_type: librosa resampling kernel (band-limited sinc by default)
        """
        self.target_sr = target_sr
        self.res_type = res_type

    def get_info(self, path: Union[str, Path]) -> AudioInfo:
        """
        Read header information without decoding samples.

        Raises:
            DecodeError: If the file doesn't exist or can't be opened
            UnsupportedFormat: If the container isn't recognised
        """
        path = Path(path)
        if not path.is_file():
            raise DecodeError("Audio file not found", path)

        try:
            info = sf.info(str(path))
        except (sf.LibsndfileError, RuntimeError) as e:
            raise _decoder_error(e, path) from e

        if info.samplerate <= 0 or info.channels <= 0:
            raise DecodeError(
                f"Invalid audio properties: {info.samplerate} Hz, {info.channels} channel(s)", path
            )

        return AudioInfo(
            sample_rate=info.samplerate,
            channels=info.channels,
            frames=info.frames,
            format=info.format,
            subtype=info.subtype,
        )

    def load_audio(self, path: Union[str, Path], force_mono: bool = False) -> np.ndarray:
        """
        Load an audio file and bring it to the canonical format.

        Args:
            path: Path to audio file
            force_mono: Average all channels down to one if True

        Returns:
            float32 array, ``[T]`` for mono and ``[T, C]`` otherwise

        Raises:
            DecodeError: If the file is missing, unreadable or empty
            UnsupportedFormat: If the decoder doesn't recognise the format
            ResampleError: If resampling to ``target_sr`` fails
        """
        path = Path(path)
        if not path.is_file():
            raise DecodeError("Audio file not found", path)

        try:
            audio, sr = sf.read(str(path), dtype="float32", always_2d=True)
        except (sf.LibsndfileError, RuntimeError) as e:
            raise _decoder_error(e, path) from e

        if audio.shape[0] == 0:
            raise DecodeError("Audio file contains no samples", path)

        logger.debug(
            "Loaded %s: %d frames, %d channel(s) @ %d Hz", path.name, audio.shape[0], audio.shape[1], sr
        )

        if force_mono and audio.shape[1] > 1:
            audio = self.to_mono(audio)
        elif audio.shape[1] == 1:
            audio = audio[:, 0]

        if sr != self.target_sr:
            try:
                audio = self.resample(audio, sr, self.target_sr)
            except ResampleError as e:
                e.path = str(path)
                raise

        return np.ascontiguousarray(audio, dtype=np.float32)

    def resample(self, audio: np.ndarray, orig_sr: int, target_sr: int) -> np.ndarray:
        """
        Resample ``[T]`` or ``[T, C]`` audio, one channel at a time.

        Raises:
            ResampleError: If the resampler rejects the input
        """
        if orig_sr == target_sr or audio.size == 0:
            return audio
        if orig_sr <= 0 or target_sr <= 0:
            raise ResampleError(f"Invalid sample rates: {orig_sr} -> {target_sr}")

        try:
            if audio.ndim == 1:
                return librosa.resample(
                    audio, orig_sr=orig_sr, target_sr=target_sr, res_type=self.res_type
                ).astype(np.float32)

            channels = [
                librosa.resample(
                    np.ascontiguousarray(audio[:, ch]),
                    orig_sr=orig_sr,
                    target_sr=target_sr,
                    res_type=self.res_type,
                )
                for ch in range(audio.shape[1])
            ]
        except Exception as e:
            raise ResampleError(f"Resampling {orig_sr} -> {target_sr} Hz failed: {e}") from e

        return np.stack(channels, axis=1).astype(np.float32)

    @staticmethod
    def to_mono(audio: np.ndarray) -> np.ndarray:
        """Average channels of ``[T, C]`` audio; ``[T]`` passes through."""
        if audio.ndim == 1:
            return audio
        if audio.ndim != 2:
            raise InvalidTensor(f"Expected [T] or [T, C] audio, got shape {audio.shape}")
        return audio.mean(axis=1, dtype=np.float32)

    @staticmethod
    def extract_channel(audio: np.ndarray, index: int) -> np.ndarray:
        """Return channel ``index`` of ``[T, C]`` audio as ``[T]``."""
        if audio.ndim != 2:
            raise InvalidTensor(f"Expected [T, C] audio, got shape {audio.shape}")
        if not 0 <= index < audio.shape[1]:
            raise InvalidTensor(f"Channel {index} out of range for {audio.shape[1]} channel(s)")
        return np.ascontiguousarray(audio[:, index])


def _decoder_error(error: Exception, path: Path) -> Exception:
    message = str(error)
    if any(marker in message.lower() for marker in _UNSUPPORTED_MARKERS):
        return UnsupportedFormat(f"Unsupported audio format: {message}", path)
    return DecodeError(f"Failed to decode audio: {message}", path)
