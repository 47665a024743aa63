"""TorchScript model loading."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import torch

from ..core.errors import ModelNotLoaded

logger = logging.getLogger(__name__)


def configure_threads(num_threads: Optional[int] = None) -> int:
    """
    Limit PyTorch CPU threads so interactive processes stay responsive.

    Defaults to half the available cores. Inter-op threads can only be set
    before the first parallel region, so after that only intra-op threads
    change.

    Returns:
        The thread count in effect
    """
    cpu_count = os.cpu_count() or 4
    thread_count = num_threads or max(1, cpu_count // 2)
    torch.set_num_threads(thread_count)
    try:
        torch.set_num_interop_threads(thread_count)
    except RuntimeError as e:
        logger.debug("Inter-op threads already fixed at %d: %s", torch.get_num_interop_threads(), e)
    logger.debug("Limited PyTorch to %d threads (of %d available)", thread_count, cpu_count)
    return thread_count


def load_torchscript(path: Union[str, Path]) -> torch.nn.Module:
    """
    Load a TorchScript module onto the CPU in eval mode.

    Raises:
        ModelNotLoaded: If the file is missing, unreadable or not TorchScript
    """
    path = Path(path)
    if not path.is_file():
        raise ModelNotLoaded("Model file does not exist", path)
    if not os.access(path, os.R_OK):
        raise ModelNotLoaded("Model file is not readable", path)

    try:
        module = torch.jit.load(str(path), map_location="cpu")
    except (RuntimeError, ValueError, OSError) as e:
        raise ModelNotLoaded(f"Failed to load model: {e}", path) from e

    module.eval()
    logger.info("Model loaded from %s", path)
    return module
