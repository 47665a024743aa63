"""Input layer - audio decoding, resampling and channel handling."""

from .loader import AudioLoader, AudioInfo

__all__ = [
    "AudioLoader",
    "AudioInfo",
]
