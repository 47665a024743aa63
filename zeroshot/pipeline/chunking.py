"""Fixed-window chunking and overlap-add reconstruction.

A mono waveform of length L is cut into CLIP-sample chunks starting every
STEP samples (``s_i = i * STEP`` while ``s_i < L``), the last one
zero-padded on the right. Separated chunks are recombined by weighting each
one with a window, summing into a buffer of ``STEP * (N - 1) + CLIP``
samples, dividing by the summed window weights and trimming back to L.
"""

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Union

import numpy as np

from ..core.errors import ShapeMismatch

logger = logging.getLogger(__name__)

WEIGHT_EPSILON = 1e-8


@dataclass(frozen=True)
class ChunkPlan:
    """Chunk layout for one mono waveform."""

    length: int
    clip_samples: int
    step: int

    @property
    def starts(self) -> List[int]:
        return list(range(0, self.length, self.step))

    @property
    def num_chunks(self) -> int:
        return len(self.starts)

    @property
    def output_length(self) -> int:
        """Length of the overlap-add buffer before trimming."""
        if self.num_chunks == 0:
            return 0
        return self.step * (self.num_chunks - 1) + self.clip_samples

    def chunk(self, audio: np.ndarray, index: int) -> np.ndarray:
        """Slice chunk ``index`` out of ``audio``, zero-padded to ``clip_samples``."""
        start = index * self.step
        piece = audio[start : start + self.clip_samples]
        if piece.shape[0] < self.clip_samples:
            piece = np.pad(piece, (0, self.clip_samples - piece.shape[0]))
        return np.ascontiguousarray(piece, dtype=np.float32)

    def chunks(self, audio: np.ndarray) -> Iterator[np.ndarray]:
        for index in range(self.num_chunks):
            yield self.chunk(audio, index)


def make_window(clip_samples: int, step: int) -> np.ndarray:
    """
    Build the overlap-add window.

    Linear fade-in over the first ``clip_samples - step`` samples (0 -> 1),
    ones in the middle, and the mirrored fade-out at the end. Fades of
    adjacent chunks sum to one across each overlap region. Without overlap
    the window is all ones.
    """
    window = np.ones(clip_samples, dtype=np.float32)
    fade = clip_samples - step
    if fade <= 0:
        return window

    ramp = np.linspace(0.0, 1.0, fade, dtype=np.float32)
    fade_in = window.copy()
    fade_in[:fade] = ramp
    fade_out = window.copy()
    fade_out[-fade:] = ramp[::-1]
    return np.minimum(fade_in, fade_out)


def trim_to_length(audio: np.ndarray, length: int) -> np.ndarray:
    """Cut to ``length`` samples, or right-pad with zeros if shorter."""
    if audio.shape[0] >= length:
        return audio[:length]
    return np.pad(audio, (0, length - audio.shape[0]))


class OverlapAdder:
    """
    Accumulates separated chunks into the reconstruction buffer.

    Chunks must arrive in increasing index order. The first chunk keeps full
    weight over its leading fade and the last over its trailing fade, so
    every sample of the file gets a total weight of one and a single chunk
    comes back exactly as the separator produced it.
    """

    def __init__(self, plan: ChunkPlan, window: Optional[np.ndarray] = None):
        self.plan = plan
        self.window = window if window is not None else make_window(plan.clip_samples, plan.step)
        if self.window.shape != (plan.clip_samples,):
            raise ShapeMismatch(
                f"Window has shape {self.window.shape}, expected ({plan.clip_samples},)"
            )

        self.output = np.zeros(plan.output_length, dtype=np.float32)
        self.weights = np.zeros(plan.output_length, dtype=np.float32)
        self._next_index = 0

    def _window_for(self, index: int) -> np.ndarray:
        window = self.window
        if index == 0 or index == self.plan.num_chunks - 1:
            window = window.copy()
            peak = int(np.argmax(window))
            if index == 0:
                window[:peak] = 1.0
            if index == self.plan.num_chunks - 1:
                # Last index of the plateau, in case the window has one
                last_peak = self.plan.clip_samples - 1 - int(np.argmax(window[::-1]))
                window[last_peak + 1 :] = 1.0
        return window

    def add(self, index: int, chunk: np.ndarray) -> None:
        """Add separated chunk ``index`` (``[CLIP]`` or ``[1, CLIP, 1]``)."""
        if index != self._next_index:
            raise ValueError(
                f"Chunks must be added in order: expected {self._next_index}, got {index}"
            )
        samples = np.asarray(chunk, dtype=np.float32).reshape(-1)
        if samples.shape[0] != self.plan.clip_samples:
            raise ShapeMismatch(
                f"Chunk {index} has {samples.shape[0]} samples, expected {self.plan.clip_samples}"
            )

        window = self._window_for(index)
        start = index * self.plan.step
        end = start + self.plan.clip_samples
        self.output[start:end] += samples * window
        self.weights[start:end] += window
        self._next_index += 1

    def finish(self) -> np.ndarray:
        """Normalize by the window weights and trim to the original length."""
        if self._next_index != self.plan.num_chunks:
            raise ValueError(
                f"Only {self._next_index} of {self.plan.num_chunks} chunks were added"
            )
        weights = np.where(self.weights == 0, np.float32(1.0), self.weights)
        audio = self.output / np.maximum(weights, np.float32(WEIGHT_EPSILON))
        return trim_to_length(audio.astype(np.float32, copy=False), self.plan.length)


def overlap_add(chunks, plan: ChunkPlan, window: Optional[np.ndarray] = None) -> np.ndarray:
    """Reconstruct a waveform from separated chunks given in index order."""
    adder = OverlapAdder(plan, window)
    for index, chunk in enumerate(chunks):
        adder.add(index, chunk)
    return adder.finish()


class ChunkStore:
    """
    Ordered storage for the separated chunks of one file.

    Chunks stay in memory until ``budget_bytes`` would be exceeded; after
    that each chunk is written to a temporary directory with ``numpy.save``
    and read back lazily during iteration. The directory is removed by
    ``close()`` (or on leaving a ``with`` block).

    Usage:
        with ChunkStore(budget_bytes=512 * 1024 * 1024) as store:
            for chunk in separated_chunks:
                store.append(chunk)
            audio = overlap_add(store, plan)
    """

    def __init__(
        self,
        budget_bytes: Optional[int] = None,
        spill_dir: Optional[Union[str, Path]] = None,
    ):
        self.budget_bytes = budget_bytes
        self.spill_dir = Path(spill_dir) if spill_dir is not None else None
        self._items: List[Union[np.ndarray, Path]] = []
        self._memory_bytes = 0
        self._tempdir: Optional[tempfile.TemporaryDirectory] = None

    def __enter__(self) -> "ChunkStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._items)

    @property
    def memory_bytes(self) -> int:
        return self._memory_bytes

    @property
    def spilled_count(self) -> int:
        return sum(1 for item in self._items if isinstance(item, Path))

    def _should_spill(self, nbytes: int) -> bool:
        return self.budget_bytes is not None and self._memory_bytes + nbytes > self.budget_bytes

    def _spill_path(self, index: int) -> Path:
        if self._tempdir is None:
            if self.spill_dir is not None:
                self.spill_dir.mkdir(parents=True, exist_ok=True)
            self._tempdir = tempfile.TemporaryDirectory(
                prefix="zeroshot_chunks_",
                dir=str(self.spill_dir) if self.spill_dir is not None else None,
            )
            logger.debug("Spilling separated chunks to %s", self._tempdir.name)
        return Path(self._tempdir.name) / f"chunk_{index:06d}.npy"

    def append(self, chunk: np.ndarray) -> None:
        chunk = np.ascontiguousarray(chunk, dtype=np.float32)
        if self._should_spill(chunk.nbytes):
            path = self._spill_path(len(self._items))
            np.save(path, chunk, allow_pickle=False)
            self._items.append(path)
        else:
            self._items.append(chunk)
            self._memory_bytes += chunk.nbytes

    def __iter__(self) -> Iterator[np.ndarray]:
        for item in self._items:
            if isinstance(item, Path):
                yield np.load(item, allow_pickle=False)
            else:
                yield item

    def close(self) -> None:
        self._items = []
        self._memory_bytes = 0
        if self._tempdir is not None:
            self._tempdir.cleanup()
            self._tempdir = None
