"""Zero-shot audio source separation.

Separates one sound class out of a mixture, where the class is described by
a few example recordings instead of a fixed label set.

Architecture Layers:
    1. core/     - Constants, error taxonomy, output layout and feature catalog
    2. input/    - Audio loading and resampling to 32 kHz
    3. models/   - Embedding model and separator model wrappers (TorchScript)
    4. pipeline/ - Feature creation, chunking, overlap-add and separation
    5. output/   - Result WAV writer and feature file codec
    6. jobs/     - Single-slot background job orchestration
"""

__version__ = "0.1.0"

# Configuration
from .config import SeparationConfig

# Core types
from .core import OutputPaths, SeparationToolError

# Input layer
from .input import AudioLoader

# Model layer
from .models import FeatureExtractor, Separator

# Pipeline layer
from .pipeline import FeaturePipeline, SeparationPipeline

# Output layer
from .output import write_wav, write_embedding, read_embedding

# Job layer
from .jobs import JobEvents, JobKind, JobOrchestrator

__all__ = [
    # Config
    "SeparationConfig",
    # Core
    "OutputPaths",
    "SeparationToolError",
    # Input
    "AudioLoader",
    # Models
    "FeatureExtractor",
    "Separator",
    # Pipeline
    "FeaturePipeline",
    "SeparationPipeline",
    # Output
    "write_wav",
    "write_embedding",
    "read_embedding",
    # Jobs
    "JobEvents",
    "JobKind",
    "JobOrchestrator",
]
