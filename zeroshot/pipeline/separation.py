"""Separation pipeline: mixture file + sound feature -> separated WAV.

Per mixture:
1. Read the sound feature embedding
2. Load the mixture at 32 kHz, keeping its channels
3. For each channel: chunk, separate every chunk, overlap-add, trim
4. Stack the channels and write ``<mixture>_<feature>.wav``
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np

from ..config import SeparationConfig
from ..core.errors import InvalidTensor
from ..core.paths import OutputPaths
from ..input.loader import AudioLoader
from ..models.separator import Separator
from ..output.embedding import read_embedding
from ..output.wav import write_wav
from .chunking import ChunkPlan, ChunkStore, OverlapAdder, make_window

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class SeparationPipeline:
    """
    Separates the target sound class out of mixture files.

    Usage:
        pipeline = SeparationPipeline(separator, config=SeparationConfig())
        result = pipeline.separate("mix.wav", "guitar")
        # -> separated_results/mix_guitar.wav
    """

    def __init__(
        self,
        separator: Separator,
        loader: Optional[AudioLoader] = None,
        paths: Optional[OutputPaths] = None,
        config: Optional[SeparationConfig] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        self.config = config or SeparationConfig()
        self.separator = separator
        self.loader = loader or AudioLoader(target_sr=self.config.sample_rate)
        self.paths = paths or self.config.output_paths()
        self.progress = progress
        self.window = make_window(self.config.clip_samples, self.config.step)

    def _report(self, percent: int) -> None:
        if self.progress is not None:
            self.progress(percent)

    def load_condition(self, feature_name: str) -> np.ndarray:
        """Read a sound feature as the ``[1, latent_dim]`` separator condition."""
        feature_path = self.paths.resolve_feature(feature_name)
        embedding = read_embedding(feature_path, dim=self.config.latent_dim)
        logger.debug("Using feature %s from %s", feature_name, feature_path)
        return embedding.reshape(1, -1)

    def plan_for(self, length: int) -> ChunkPlan:
        return ChunkPlan(length=length, clip_samples=self.config.clip_samples, step=self.config.step)

    def separate_mono(
        self,
        audio: np.ndarray,
        condition: np.ndarray,
        progress_offset: float = 0.0,
        progress_scale: float = 1.0,
    ) -> np.ndarray:
        """
        Separate one mono channel.

        Args:
            audio: ``[L]`` float32 samples
            condition: ``[1, latent_dim]`` embedding
            progress_offset: Percent already reported by earlier channels
            progress_scale: Share of the total progress this channel covers

        Returns:
            ``[L]`` float32 separated samples
        """
        if audio.ndim != 1:
            raise InvalidTensor(f"Expected mono audio, got shape {audio.shape}")
        if audio.size == 0:
            raise InvalidTensor("Cannot separate empty audio")

        plan = self.plan_for(audio.shape[0])
        clip = self.config.clip_samples
        logger.debug("Separating %d samples in %d chunk(s)", plan.length, plan.num_chunks)

        with ChunkStore(
            budget_bytes=self.config.chunk_memory_budget_bytes or None,
            spill_dir=self.config.spill_dir,
        ) as store:
            for index, chunk in enumerate(plan.chunks(audio)):
                separated = self.separator.separate(chunk.reshape(1, clip, 1), condition)
                store.append(separated[0, :, 0])

                percent = 100 * (index + 1) // plan.num_chunks
                self._report(int(progress_offset + percent * progress_scale))

            if store.spilled_count:
                logger.info("Spilled %d of %d chunks to disk", store.spilled_count, len(store))

            adder = OverlapAdder(plan, self.window)
            for index, chunk in enumerate(store):
                adder.add(index, chunk)
            return adder.finish()

    def separate_audio(self, audio: np.ndarray, condition: np.ndarray) -> np.ndarray:
        """
        Separate ``[L]`` or ``[L, C]`` audio; channels are processed one after another.

        Returns:
            Separated audio with the same shape as the input
        """
        if audio.ndim == 1:
            return self.separate_mono(audio, condition)
        if audio.ndim != 2:
            raise InvalidTensor(f"Expected [T] or [T, C] audio, got shape {audio.shape}")

        num_channels = audio.shape[1]
        share = 1.0 / num_channels
        channels = []
        for ch in range(num_channels):
            logger.debug("Separating channel %d of %d", ch + 1, num_channels)
            channels.append(
                self.separate_mono(
                    AudioLoader.extract_channel(audio, ch),
                    condition,
                    progress_offset=100.0 * ch * share,
                    progress_scale=share,
                )
            )
        return np.stack(channels, axis=1)

    def separate(self, mixture_path: Union[str, Path], feature_name: str) -> Path:
        """
        Separate one mixture file and write the result.

        Returns:
            Path of ``<results-dir>/<mixture-stem>_<feature>.wav``

        Raises:
            SeparationToolError: Any failure of this file (bad feature,
                undecodable mixture, model error, write error)
        """
        mixture_path = Path(mixture_path)
        start_time = time.time()

        condition = self.load_condition(feature_name)
        audio = self.loader.load_audio(mixture_path, force_mono=False)
        logger.info(
            "Separating %s with feature %s (%d frames, %s)",
            mixture_path.name,
            feature_name,
            audio.shape[0],
            "mono" if audio.ndim == 1 else f"{audio.shape[1]} channels",
        )

        separated = self.separate_audio(audio, condition)
        del audio

        output_path = self.paths.result_path(mixture_path, feature_name)
        write_wav(separated, output_path, self.config.sample_rate)
        logger.info("Separation of %s took %.1fs", mixture_path.name, time.time() - start_time)
        return output_path
