"""Model layer - wrappers around the two pretrained TorchScript modules.

- FeatureExtractor: query waveform -> 2048-dim sound feature
- Separator: (mixture chunk, sound feature) -> separated chunk
"""

from .loading import load_torchscript, configure_threads
from .base import ModelWrapper
from .extractor import FeatureExtractor
from .separator import Separator

__all__ = [
    "load_torchscript",
    "configure_threads",
    "ModelWrapper",
    "FeatureExtractor",
    "Separator",
]
