"""32-bit float WAV writer for separation results."""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import soundfile as sf

from ..core.constants import COMMON_SAMPLE_RATES, MAX_CHANNELS, MAX_SAMPLE_RATE, SAMPLE_RATE
from ..core.errors import InvalidTensor, WriteError

logger = logging.getLogger(__name__)


def as_frames(audio: np.ndarray) -> np.ndarray:
    """
    Bring audio to ``[T, C]`` layout.

    Accepts ``[T]``, ``[T, C]`` and the model layout ``[1, T, 1]``.

    Raises:
        InvalidTensor: For any other shape
    """
    audio = np.asarray(audio)
    if audio.ndim == 1:
        return audio[:, np.newaxis]
    if audio.ndim == 2:
        return audio
    if audio.ndim == 3 and audio.shape[0] == 1 and audio.shape[2] == 1:
        return audio[0]
    raise InvalidTensor(f"Unsupported audio shape for WAV output: {audio.shape}")


def write_wav(
    audio: np.ndarray,
    path: Union[str, Path],
    sample_rate: int = SAMPLE_RATE,
) -> Path:
    """
    Write audio as 32-bit IEEE float PCM WAV.

    The file has a RIFF/WAVE header with a ``fmt `` chunk of format code 3
    and 32 bits per sample; the ``data`` chunk holds ``T * C * 4`` bytes of
    little-endian interleaved float32.

    Args:
        audio: ``[T]``, ``[T, C]`` or ``[1, T, 1]`` samples
        path: Destination file; missing parent directories are created
        sample_rate: Sample rate in Hz

    Returns:
        The written path

    Raises:
        InvalidTensor: Empty audio, NaN/inf values, or channels outside [1, 64]
        WriteError: Invalid sample rate or any filesystem/encoder failure
    """
    path = Path(path)
    frames = as_frames(audio)

    if frames.size == 0:
        raise InvalidTensor("Refusing to write empty audio", path)
    if not np.isfinite(frames).all():
        raise InvalidTensor("Audio contains NaN or infinite values", path)

    channels = frames.shape[1]
    if not 1 <= channels <= MAX_CHANNELS:
        raise InvalidTensor(f"Channel count {channels} outside [1, {MAX_CHANNELS}]", path)

    if sample_rate <= 0 or sample_rate > MAX_SAMPLE_RATE:
        raise WriteError(f"Invalid sample rate: {sample_rate}", path)
    if sample_rate not in COMMON_SAMPLE_RATES:
        logger.warning("Writing %s with unusual sample rate %d Hz", path.name, sample_rate)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        sf.write(
            str(path),
            np.ascontiguousarray(frames, dtype=np.float32),
            sample_rate,
            format="WAV",
            subtype="FLOAT",
        )
    except (OSError, sf.LibsndfileError, RuntimeError) as e:
        raise WriteError(f"Failed to write WAV: {e}", path) from e

    logger.info("Saved %s (%d frames, %d channel(s) @ %d Hz)", path, frames.shape[0], channels, sample_rate)
    return path
