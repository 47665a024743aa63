"""Query-conditioned separation with the pretrained separator model."""

import logging
from typing import Callable, Optional

import numpy as np
import torch

from ..core.constants import CLIP_SAMPLES, LATENT_DIM
from ..core.errors import BadInput, BadOutput, InferenceError, ShapeMismatch
from .base import ModelWrapper, ModuleLoader
from .loading import load_torchscript

logger = logging.getLogger(__name__)

WAVEFORM_CHANNELS = 1


class Separator(ModelWrapper):
    """
    Wraps the separator model.

    The model maps a waveform ``[B, CLIP, 1]`` and a condition ``[B, 2048]``
    to the separated waveform ``[B, CLIP, 1]``.
    """

    name = "Separator"

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

    def validate_input(self, chunk: np.ndarray, condition: np.ndarray) -> None:
        """
        Check ranks, lengths and batch sizes of a (waveform, condition) pair.

        Raises:
            ShapeMismatch: On any shape violation
            BadInput: If either input has NaN or infinite values
        """
        if chunk.ndim != 3:
            raise ShapeMismatch(f"Waveform must be 3-dimensional (B, T, C), got shape {chunk.shape}")
        if chunk.shape[1] != self.clip_samples:
            raise ShapeMismatch(f"Waveform must have {self.clip_samples} samples, got {chunk.shape[1]}")
        if chunk.shape[2] != WAVEFORM_CHANNELS:
            raise ShapeMismatch(
                f"Waveform must have {WAVEFORM_CHANNELS} channel(s), got {chunk.shape[2]}"
            )
        if condition.ndim != 2:
            raise ShapeMismatch(f"Condition must be 2-dimensional (B, D), got shape {condition.shape}")
        if condition.shape[1] != self.latent_dim:
            raise ShapeMismatch(
                f"Condition must have {self.latent_dim} dimensions, got {condition.shape[1]}"
            )
        if chunk.shape[0] != condition.shape[0]:
            raise ShapeMismatch(
                f"Batch size mismatch: waveform {chunk.shape[0]}, condition {condition.shape[0]}"
            )
        if not np.isfinite(chunk).all():
            raise BadInput("Waveform contains NaN or infinite values")
        if not np.isfinite(condition).all():
            raise BadInput("Condition contains NaN or infinite values")

    def separate(self, chunk: np.ndarray, condition: np.ndarray) -> np.ndarray:
        """
        Separate one chunk.

        Args:
            chunk: ``[1, CLIP, 1]`` mixture waveform
            condition: ``[1, 2048]`` sound feature embedding

        Returns:
            float32 ``[1, CLIP, 1]`` separated waveform

        Raises:
            ModelNotLoaded, ShapeMismatch, BadInput, InferenceError, BadOutput
        """
        module = self._require_module()

        chunk = np.asarray(chunk, dtype=np.float32)
        condition = np.asarray(condition, dtype=np.float32)
        self.validate_input(chunk, condition)

        waveform = torch.from_numpy(np.ascontiguousarray(chunk)).to(self.device)
        cond = torch.from_numpy(np.ascontiguousarray(condition)).to(self.device)

        try:
            with torch.no_grad():
                output = module(waveform, cond)
        except Exception as e:
            raise InferenceError(f"Separator inference error: {e}") from e

        if not isinstance(output, torch.Tensor):
            raise BadOutput(f"Separator returned {type(output).__name__}, expected a tensor")
        if output.dim() != 3:
            raise BadOutput(f"Separator output must be 3-dimensional, got shape {tuple(output.shape)}")
        if output.shape[1] != chunk.shape[1]:
            raise BadOutput(
                f"Separator output has {output.shape[1]} samples, expected {chunk.shape[1]}"
            )

        separated = output.detach().cpu().to(torch.float32).numpy()
        if not np.isfinite(separated).all():
            raise BadOutput("Separator output contains NaN or infinite values")

        return separated.copy()
