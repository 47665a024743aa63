"""Core types, constants and errors for the separation tool."""

from .constants import (
    SAMPLE_RATE,
    CLIP_SAMPLES,
    OVERLAP_RATE,
    STEP_SAMPLES,
    LATENT_DIM,
)
from .errors import (
    SeparationToolError,
    DecodeError,
    UnsupportedFormat,
    ResampleError,
    WriteError,
    InvalidTensor,
    BadEmbedding,
    ModelNotLoaded,
    BadInput,
    ShapeMismatch,
    InferenceError,
    BadOutput,
    NoValidInputs,
    Busy,
    StorageError,
)
from .paths import OutputPaths, FeatureEntry, logical_feature_name

__all__ = [
    # Constants
    "SAMPLE_RATE",
    "CLIP_SAMPLES",
    "OVERLAP_RATE",
    "STEP_SAMPLES",
    "LATENT_DIM",
    # Errors
    "SeparationToolError",
    "DecodeError",
    "UnsupportedFormat",
    "ResampleError",
    "WriteError",
    "InvalidTensor",
    "BadEmbedding",
    "ModelNotLoaded",
    "BadInput",
    "ShapeMismatch",
    "InferenceError",
    "BadOutput",
    "NoValidInputs",
    "Busy",
    "StorageError",
    # Paths
    "OutputPaths",
    "FeatureEntry",
    "logical_feature_name",
]
