"""Configuration for the feature and separation pipelines."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .core.constants import (
    CLIP_SAMPLES,
    LATENT_DIM,
    OUTPUT_FEATURES_DIR,
    OVERLAP_RATE,
    SAMPLE_RATE,
    SEPARATED_RESULT_DIR,
)
from .core.paths import OutputPaths


@dataclass
class SeparationConfig:
    """Configuration for feature creation and separation jobs.

    Attributes:
        sample_rate: Canonical processing rate in Hz (default: 32000)
        clip_samples: Samples per model chunk (default: 320000, 10s @ 32kHz)
        overlap: Overlap between consecutive chunks, in [0, 1) (default: 0.5)
        latent_dim: Sound feature dimension (default: 2048)
        extractor_model_path: TorchScript file of the embedding model
        separator_model_path: TorchScript file of the separator model
        output_root: Directory holding the feature and result folders (default: cwd)
        features_dir: Feature folder name under output_root (default: output_features)
        results_dir: Result folder name under output_root (default: separated_results)
        chunk_memory_budget_mb: Separated chunks kept in RAM per file before
            spilling to disk; 0 disables spilling (default: 1024)
        spill_dir: Parent directory for spilled chunks (default: system temp)
        num_threads: PyTorch CPU threads, None for half the cores (default: None)
    """

    sample_rate: int = SAMPLE_RATE
    clip_samples: int = CLIP_SAMPLES
    overlap: float = OVERLAP_RATE
    latent_dim: int = LATENT_DIM
    extractor_model_path: Optional[Path] = None
    separator_model_path: Optional[Path] = None
    output_root: Optional[Path] = None
    features_dir: str = OUTPUT_FEATURES_DIR
    results_dir: str = SEPARATED_RESULT_DIR
    chunk_memory_budget_mb: float = 1024.0
    spill_dir: Optional[Path] = None
    num_threads: Optional[int] = None

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.clip_samples <= 0:
            raise ValueError(f"clip_samples must be positive, got {self.clip_samples}")
        if not 0.0 <= self.overlap < 1.0:
            raise ValueError(f"overlap must be in [0, 1), got {self.overlap}")
        if self.latent_dim <= 0:
            raise ValueError(f"latent_dim must be positive, got {self.latent_dim}")
        if self.chunk_memory_budget_mb < 0:
            raise ValueError("chunk_memory_budget_mb must not be negative")

        for name in ("extractor_model_path", "separator_model_path", "output_root", "spill_dir"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                setattr(self, name, Path(value))

    @property
    def step(self) -> int:
        """Hop between chunk starts, ``clip_samples * (1 - overlap)``."""
        return max(1, int(self.clip_samples * (1.0 - self.overlap)))

    @property
    def chunk_memory_budget_bytes(self) -> int:
        return int(self.chunk_memory_budget_mb * 1024 * 1024)

    def output_paths(self) -> OutputPaths:
        return OutputPaths(self.output_root, self.features_dir, self.results_dir)
