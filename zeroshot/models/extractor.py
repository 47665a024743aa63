"""Sound feature extraction with the pretrained embedding model.

The embedding model takes a ``[1, CLIP]`` waveform at 32 kHz and returns a
dictionary whose ``latent_output`` entry is the ``[1, 2048]`` class
embedding. Shorter clips are zero-padded on the right, longer ones keep
their leading CLIP samples.
"""

import logging
from collections.abc import Mapping
from typing import Callable, Optional

import numpy as np
import torch

from ..core.constants import CLIP_SAMPLES, LATENT_DIM, LATENT_OUTPUT_KEY
from ..core.errors import BadInput, BadOutput, InferenceError, ModelNotLoaded
from .base import ModelWrapper, ModuleLoader
from .loading import load_torchscript

logger = logging.getLogger(__name__)


class FeatureExtractor(ModelWrapper):
    """
    Wraps the embedding model.

    Usage:
        extractor = FeatureExtractor()
        extractor.load("models/htsat_embedding_model.pt")
        embedding = extractor.extract(audio)  # float32, shape (2048,)
    """

    name = "FeatureExtractor"

    def __init__(
        self,
        module: Optional[Callable] = None,
        clip_samples: int = CLIP_SAMPLES,
        latent_dim: int = LATENT_DIM,
        loader: ModuleLoader = load_torchscript,
    ):
        super().__init__(module, loader)
        self.clip_samples = clip_samples
        self.latent_dim = latent_dim

    def prepare_input(self, audio: np.ndarray) -> torch.Tensor:
        """Pad or truncate mono audio to ``[1, clip_samples]``."""
        length = audio.shape[0]
        if length == self.clip_samples:
            clip = audio
        elif length < self.clip_samples:
            clip = np.pad(audio, (0, self.clip_samples - length))
            logger.debug("Padded input with %d zeros", self.clip_samples - length)
        else:
            clip = audio[: self.clip_samples]
            logger.debug("Truncated input to %d samples", self.clip_samples)
        return torch.from_numpy(np.ascontiguousarray(clip, dtype=np.float32)).unsqueeze(0)

    def extract(self, audio: np.ndarray) -> np.ndarray:
        """
        Compute the class embedding of one mono waveform.

        Args:
            audio: Mono float audio, ``[T]`` (``[T, 1]`` is accepted)

        Returns:
            float32 embedding of shape ``(latent_dim,)``

        Raises:
            ModelNotLoaded: No module, or the module has no ``latent_output``
            BadInput: Empty, non-finite or multi-channel audio
            InferenceError: The module raised during the forward pass
            BadOutput: The embedding isn't ``latent_dim`` finite values
        """
        module = self._require_module()

        audio = np.asarray(audio, dtype=np.float32)
        if audio.ndim == 2 and audio.shape[1] == 1:
            audio = audio[:, 0]
        if audio.ndim != 1:
            raise BadInput(f"Expected mono audio, got shape {audio.shape}")
        if audio.size == 0:
            raise BadInput("Input audio is empty")
        if not np.isfinite(audio).all():
            raise BadInput("Input audio contains NaN or infinite values")

        tensor = self.prepare_input(audio)

        try:
            with torch.no_grad():
                output = module(tensor.to(self.device))
        except Exception as e:
            raise InferenceError(f"Embedding model inference error: {e}") from e

        if not isinstance(output, Mapping) or LATENT_OUTPUT_KEY not in output:
            raise ModelNotLoaded(f"Embedding model does not provide '{LATENT_OUTPUT_KEY}'")

        latent = output[LATENT_OUTPUT_KEY]
        if not isinstance(latent, torch.Tensor):
            raise BadOutput(f"'{LATENT_OUTPUT_KEY}' is not a tensor")

        embedding = latent.detach().cpu().to(torch.float32).reshape(-1).numpy()
        if embedding.size != self.latent_dim:
            raise BadOutput(f"Embedding has {embedding.size} values, expected {self.latent_dim}")
        if not np.isfinite(embedding).all():
            raise BadOutput("Embedding contains NaN or infinite values")

        return embedding.copy()
