"""Base class for the two pretrained model wrappers."""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

import torch

from ..core.errors import ModelNotLoaded
from .loading import load_torchscript

logger = logging.getLogger(__name__)

ModuleLoader = Callable[[Path], Callable]


class ModelWrapper:
    """Owns one inference module and its load/unload lifecycle.

    The module is any callable taking tensors, normally a TorchScript
    ``ScriptModule``. Inference always runs on the CPU with gradients off.
    """

    name = "model"

    def __init__(self, module: Optional[Callable] = None, loader: ModuleLoader = load_torchscript):
        self._module = module
        self._loader = loader
        self.device = torch.device("cpu")

    @property
    def is_loaded(self) -> bool:
        return self._module is not None

    def load(self, path: Union[str, Path]) -> None:
        """Load the module from ``path``, replacing any loaded one."""
        self._module = self._loader(Path(path))
        logger.debug("[%s] ready on %s", self.name, self.device)

    def unload(self) -> None:
        """Drop the module to free memory."""
        if self._module is not None:
            logger.debug("[%s] unloaded", self.name)
        self._module = None

    def _require_module(self) -> Callable:
        if self._module is None:
            raise ModelNotLoaded(f"{self.name} model not loaded")
        return self._module
