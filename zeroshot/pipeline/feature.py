"""Feature pipeline: query files -> averaged sound feature file."""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import numpy as np

from ..config import SeparationConfig
from ..core.errors import (
    BadInput,
    BadOutput,
    DecodeError,
    InferenceError,
    NoValidInputs,
    ResampleError,
    UnsupportedFormat,
)
from ..core.paths import OutputPaths
from ..input.loader import AudioLoader
from ..models.extractor import FeatureExtractor
from ..output.embedding import write_embedding

logger = logging.getLogger(__name__)

# Per-file failures that skip the file instead of failing the job
SOFT_LOAD_ERRORS = (DecodeError, UnsupportedFormat, ResampleError)
SOFT_EXTRACT_ERRORS = (BadInput, InferenceError, BadOutput)


class FeaturePipeline:
    """
    Builds a sound feature from example recordings of one class.

    Every query is loaded as 32 kHz mono, embedded, and the embeddings are
    averaged. Files that fail to load or embed are logged and skipped.
    """

    def __init__(
        self,
        extractor: FeatureExtractor,
        loader: Optional[AudioLoader] = None,
        paths: Optional[OutputPaths] = None,
        config: Optional[SeparationConfig] = None,
        progress: Optional[Callable[[int], None]] = None,
    ):
        self.config = config or SeparationConfig()
        self.extractor = extractor
        self.loader = loader or AudioLoader(target_sr=self.config.sample_rate)
        self.paths = paths or self.config.output_paths()
        self.progress = progress

    def embed_file(self, path: Union[str, Path]) -> Optional[np.ndarray]:
        """Embedding of one query file, or None if the file is skipped."""
        try:
            audio = self.loader.load_audio(path, force_mono=True)
        except SOFT_LOAD_ERRORS as e:
            logger.warning("Skipping query file: %s", e)
            return None

        try:
            return self.extractor.extract(audio)
        except SOFT_EXTRACT_ERRORS as e:
            e.path = e.path or str(path)
            logger.warning("Skipping query file: %s", e)
            return None

    def average_embedding(self, query_paths: Sequence[Union[str, Path]]) -> np.ndarray:
        """
        Mean embedding over all query files that succeed.

        Raises:
            NoValidInputs: If no file produced an embedding
        """
        accumulator = np.zeros(self.config.latent_dim, dtype=np.float32)
        count = 0
        total = len(query_paths)

        for i, path in enumerate(query_paths):
            embedding = self.embed_file(path)
            if embedding is not None:
                accumulator += embedding
                count += 1
            if self.progress is not None:
                self.progress(100 * (i + 1) // total)

        logger.info("Successfully processed %d out of %d files", count, total)
        if count == 0:
            raise NoValidInputs(f"None of the {total} query file(s) produced an embedding")

        return accumulator / np.float32(count)

    def create_feature(self, query_paths: Sequence[Union[str, Path]], out_name: str) -> Path:
        """
        Create a sound feature file from query recordings.

        Args:
            query_paths: Example recordings of the target class
            out_name: Base name of the feature; a timestamp is appended

        Returns:
            Path of the written ``<features-dir>/<name>_<timestamp>.txt``
        """
        query_paths: List[Union[str, Path]] = list(query_paths)
        if not query_paths:
            raise BadInput("No audio files provided")
        if not out_name or not out_name.strip():
            raise BadInput("Output file name is empty")

        mean = self.average_embedding(query_paths)
        destination = self.paths.unique_feature_path(out_name)
        return write_embedding(mean, destination, dim=self.config.latent_dim)
