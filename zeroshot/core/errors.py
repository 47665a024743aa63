"""Error taxonomy for the separation tool.

Every failure the core can report is a subclass of SeparationToolError.
Each class carries a ``kind`` string; the job orchestrator puts it in
front of the message it reports, together with the offending path.
"""

from pathlib import Path
from typing import Optional, Union


class SeparationToolError(Exception):
    """Base class for all domain errors."""

    kind = "Error"

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else None

    def __str__(self) -> str:
        text = f"{self.kind}: {self.message}"
        if self.path:
            text += f" [{self.path}]"
        return text


# Audio I/O
class DecodeError(SeparationToolError):
    kind = "DecodeError"


class UnsupportedFormat(SeparationToolError):
    kind = "UnsupportedFormat"


class ResampleError(SeparationToolError):
    kind = "ResampleError"


class WriteError(SeparationToolError):
    kind = "WriteError"


class InvalidTensor(SeparationToolError):
    kind = "InvalidTensor"


# Embeddings
class BadEmbedding(SeparationToolError):
    kind = "BadEmbedding"


# Models
class ModelNotLoaded(SeparationToolError):
    kind = "ModelNotLoaded"


class BadInput(SeparationToolError):
    kind = "BadInput"


class ShapeMismatch(SeparationToolError):
    kind = "ShapeMismatch"


class InferenceError(SeparationToolError):
    kind = "InferenceError"


class BadOutput(SeparationToolError):
    kind = "BadOutput"


# Jobs
class NoValidInputs(SeparationToolError):
    kind = "NoValidInputs"


class Busy(SeparationToolError):
    kind = "Busy"


class StorageError(SeparationToolError):
    """Filesystem failure outside of WAV writing (kind ``IOError``)."""

    kind = "IOError"
