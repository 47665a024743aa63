"""Output directory layout and the sound feature catalog.

The features directory is the catalog: every ``*.txt`` file in it is a
sound feature. Feature files are written as ``<base>_<YYYYMMDD_HHMMSS>.txt``
(``_<k>`` is appended on collision), and the logical feature name is the
basename with that suffix removed.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .constants import (
    FEATURE_EXTENSION,
    OUTPUT_FEATURES_DIR,
    SEPARATED_RESULT_DIR,
    TIMESTAMP_FORMAT,
    WAV_EXTENSION,
)
from .errors import BadEmbedding, StorageError

logger = logging.getLogger(__name__)

_TIMESTAMP_SUFFIX = re.compile(r"_\d{8}_\d{6}(?:_\d+)?$")
_TIMESTAMP_PARTS = re.compile(r"_(\d{8}_\d{6})(?:_(\d+))?$")


def check_feature_name(name: str) -> str:
    """Reject feature names that would resolve outside their directory.

    Raises:
        BadEmbedding: If the name is blank, ``.``/``..`` or contains a path separator
    """
    if not name or not name.strip() or name in (".", "..") or "/" in name or "\\" in name:
        raise BadEmbedding(f"Invalid feature name: {name!r}")
    return name


def logical_feature_name(filename: Union[str, Path]) -> str:
    """Strip the extension and the timestamp/collision suffix from a feature filename."""
    stem = Path(filename).name
    if stem.endswith(FEATURE_EXTENSION):
        stem = stem[: -len(FEATURE_EXTENSION)]
    return _TIMESTAMP_SUFFIX.sub("", stem)


@dataclass(frozen=True)
class FeatureEntry:
    """A sound feature file found in the catalog."""

    name: str  # Logical name
    path: Path

    @property
    def file_name(self) -> str:
        return self.path.stem

    @property
    def modified(self) -> datetime:
        return datetime.fromtimestamp(self.path.stat().st_mtime)


class OutputPaths:
    """Resolves where features and separation results live.

    Directories are relative to ``root`` (the process working directory by
    default) and are created lazily, the first time something is written.
    """

    def __init__(
        self,
        root: Optional[Union[str, Path]] = None,
        features_dir: str = OUTPUT_FEATURES_DIR,
        results_dir: str = SEPARATED_RESULT_DIR,
    ):
        self.root = Path(root) if root is not None else Path.cwd()
        self.features_dir = self.root / features_dir
        self.results_dir = self.root / results_dir

    def ensure_dir(self, directory: Path) -> Path:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create directory: {e}", directory) from e
        return directory

    def unique_feature_path(self, name: str, now: Optional[datetime] = None) -> Path:
        """Pick a fresh ``<base>_<timestamp>[_<k>].txt`` path in the features directory."""
        base = Path(name.strip()).stem if name and name.strip() else ""
        if not base:
            base = "output"

        timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
        directory = self.ensure_dir(self.features_dir)

        candidate = directory / f"{base}_{timestamp}{FEATURE_EXTENSION}"
        counter = 1
        while candidate.exists():
            candidate = directory / f"{base}_{timestamp}_{counter}{FEATURE_EXTENSION}"
            counter += 1
        return candidate

    def result_path(self, mixture_path: Union[str, Path], feature_name: str) -> Path:
        """``<results-dir>/<mixture-stem>_<feature-name>.wav``"""
        check_feature_name(feature_name)
        stem = Path(mixture_path).stem
        return self.results_dir / f"{stem}_{feature_name}{WAV_EXTENSION}"

    def list_features(self) -> List[FeatureEntry]:
        """Enumerate the catalog, sorted by file name."""
        if not self.features_dir.is_dir():
            return []
        return [
            FeatureEntry(name=logical_feature_name(p), path=p)
            for p in sorted(self.features_dir.glob(f"*{FEATURE_EXTENSION}"))
            if p.is_file()
        ]

    def resolve_feature(self, name: str) -> Path:
        """Find the file backing a feature name.

        An exact ``<name>.txt`` wins. Otherwise the newest file whose logical
        name matches is used, so ``guitar`` resolves to the most recent
        ``guitar_<timestamp>.txt``.

        Raises:
            BadEmbedding: If the name is invalid or no feature file matches
        """
        check_feature_name(name)
        exact = self.features_dir / f"{name}{FEATURE_EXTENSION}"
        if exact.is_file():
            return exact

        matches = [entry.path for entry in self.list_features() if entry.name == name]
        if not matches:
            raise BadEmbedding(f"Feature not found: {name}", self.features_dir)

        return max(matches, key=_feature_sort_key)

    def delete_feature(self, name: str) -> Path:
        """Remove the file backing a feature name and return its path."""
        path = self.resolve_feature(name)
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete feature: {e}", path) from e
        logger.info("Deleted feature %s (%s)", name, path)
        return path


def _feature_sort_key(path: Path) -> Tuple[str, int]:
    """Order feature files by timestamp, then by collision index."""
    match = _TIMESTAMP_PARTS.search(path.stem)
    if not match:
        return ("", 0)
    return (match.group(1), int(match.group(2) or 0))
