"""Output layer - result WAV files and embedding files.

This layer handles persisting:
- Separated audio as 32-bit float WAV
- Sound feature embeddings as whitespace-delimited text
"""

from .wav import write_wav
from .embedding import write_embedding, read_embedding

__all__ = [
    "write_wav",
    "write_embedding",
    "read_embedding",
]
