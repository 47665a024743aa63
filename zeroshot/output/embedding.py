"""Text codec for sound feature embeddings.

A feature file is one line of space-separated decimal floats terminated by
a newline. Readers accept any whitespace between tokens.
"""

import logging
from pathlib import Path
from typing import Sequence, Union

import numpy as np

from ..core.constants import LATENT_DIM
from ..core.errors import BadEmbedding, StorageError

logger = logging.getLogger(__name__)


def write_embedding(
    embedding: Union[np.ndarray, Sequence[float]],
    path: Union[str, Path],
    dim: int = LATENT_DIM,
) -> Path:
    """
    Write an embedding as a single line of space-separated floats.

    Existing files are overwritten and missing parent directories created.

    Raises:
        BadEmbedding: If the vector isn't ``dim`` finite values
        StorageError: If the file can't be written
    """
    path = Path(path)
    values = np.asarray(embedding, dtype=np.float32).reshape(-1)

    if values.size != dim:
        raise BadEmbedding(f"Embedding has {values.size} values, expected {dim}", path)
    if not np.isfinite(values).all():
        raise BadEmbedding("Embedding contains NaN or infinite values", path)

    # repr() of the float32 value as a Python float round-trips exactly
    line = " ".join(repr(float(v)) for v in values)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(line + "\n", encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Failed to write embedding: {e}", path) from e

    logger.info("Saved embedding (%d values) to %s", values.size, path)
    return path


def read_embedding(path: Union[str, Path], dim: int = LATENT_DIM) -> np.ndarray:
    """
    Parse an embedding file.

    Returns:
        float32 array of shape ``(dim,)``

    Raises:
        BadEmbedding: On undecodable text, unparseable or non-finite tokens,
            or a value count other than ``dim``
        StorageError: If the file can't be read
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise BadEmbedding(f"Feature file is not valid UTF-8: {e}", path) from e
    except OSError as e:
        raise StorageError(f"Failed to read embedding: {e}", path) from e

    tokens = text.split()
    try:
        values = np.array([float(token) for token in tokens], dtype=np.float32)
    except ValueError as e:
        raise BadEmbedding(f"Invalid value in embedding file: {e}", path) from e

    if values.size != dim:
        raise BadEmbedding(f"Embedding has {values.size} values, expected {dim}", path)
    if not np.isfinite(values).all():
        raise BadEmbedding("Embedding contains NaN or infinite values", path)

    logger.debug("Loaded embedding with %d values from %s", values.size, path)
    return values
