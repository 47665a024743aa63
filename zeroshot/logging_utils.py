"""Logging configuration utilities."""

import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    rich_output: bool = True,
    console: Optional[Console] = None,
) -> None:
    """
    Configure logging for the application.

    Library modules only create loggers; this is called once by the CLI.

    Args:
        level: Logging level (default: INFO)
        format_string: Custom format string for plain output
        rich_output: Route records through rich's handler (default: True)
        console: Console for rich output (default: stderr)
    """
    if rich_output:
        handler: logging.Handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        formatter = logging.Formatter("%(name)s: %(message)s", datefmt="[%X]")
    else:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=[handler], force=True)

    # Numba's JIT (pulled in by librosa) is noisy at DEBUG
    logging.getLogger("numba").setLevel(max(level, logging.WARNING))
