"""Pipeline layer - feature creation and separation.

- FeaturePipeline: query files -> averaged sound feature
- SeparationPipeline: mixture + sound feature -> separated WAV
- chunking: chunk plans, overlap-add window and reconstruction
"""

from .chunking import (
    ChunkPlan,
    ChunkStore,
    OverlapAdder,
    make_window,
    overlap_add,
    trim_to_length,
)
from .feature import FeaturePipeline
from .separation import SeparationPipeline

__all__ = [
    "ChunkPlan",
    "ChunkStore",
    "OverlapAdder",
    "make_window",
    "overlap_add",
    "trim_to_length",
    "FeaturePipeline",
    "SeparationPipeline",
]
