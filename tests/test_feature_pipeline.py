"""Tests for sound feature creation."""

import re

import numpy as np
import pytest

from zeroshot.config import SeparationConfig
from zeroshot.core.constants import CLIP_SAMPLES
from zeroshot.core.errors import BadInput, ModelNotLoaded, NoValidInputs
from zeroshot.models import FeatureExtractor
from zeroshot.output import read_embedding
from zeroshot.pipeline import FeaturePipeline

from conftest import FakeEmbeddingModel, sine, write_audio

FEATURE_FILE = re.compile(r"^(?P<name>.+)_\d{8}_\d{6}(_\d+)?\.txt$")


@pytest.fixture
def extractor():
    """Extractor with the full 10s clip length."""
    return FeatureExtractor(module=FakeEmbeddingModel())


@pytest.fixture
def pipeline(extractor, tmp_path):
    return FeaturePipeline(extractor, config=SeparationConfig(output_root=tmp_path))


class TestCreateFeature:
    def test_single_silent_query(self, pipeline, extractor, tmp_path):
        query = write_audio(tmp_path / "query.wav", np.zeros(CLIP_SAMPLES, dtype=np.float32))

        path = pipeline.create_feature([query], "silence")

        assert path.parent == tmp_path / "output_features"
        match = FEATURE_FILE.match(path.name)
        assert match and match.group("name") == "silence"
        expected = extractor.extract(np.zeros(CLIP_SAMPLES, dtype=np.float32))
        np.testing.assert_allclose(read_embedding(path), expected, rtol=1e-6)

    def test_average_of_different_lengths(self, pipeline, extractor, tmp_path):
        q1 = sine(10.0, amplitude=0.8)
        q2 = sine(5.0, freq=220.0, amplitude=0.2)
        paths = [write_audio(tmp_path / "q1.wav", q1), write_audio(tmp_path / "q2.wav", q2)]

        path = pipeline.create_feature(paths, "avg")

        padded = np.pad(q2, (0, CLIP_SAMPLES - q2.shape[0]))
        expected = (extractor.extract(q1) + extractor.extract(padded)) / 2
        np.testing.assert_allclose(read_embedding(path), expected, rtol=1e-5)

    def test_resamples_and_downmixes_stereo_query(self, pipeline, tmp_path):
        left = sine(10.0, sr=48000)
        right = sine(10.0, sr=48000, freq=330.0)
        query = write_audio(tmp_path / "q48k.wav", np.stack([left, right], axis=1), sr=48000)

        embedding = read_embedding(pipeline.create_feature([query], "resampled"))

        assert embedding.shape == (2048,)
        assert np.isfinite(embedding).all()

    def test_undecodable_file_is_skipped(self, pipeline, extractor, tmp_path, garbage_file):
        good = write_audio(tmp_path / "good.wav", sine(1.0))

        path = pipeline.create_feature([garbage_file, tmp_path / "missing.wav", good], "mixed")

        expected = extractor.extract(sine(1.0))
        np.testing.assert_allclose(read_embedding(path), expected, rtol=1e-6)

    def test_no_valid_inputs(self, pipeline, tmp_path, garbage_file):
        with pytest.raises(NoValidInputs):
            pipeline.create_feature([garbage_file, tmp_path / "missing.wav"], "nothing")

        assert not (tmp_path / "output_features").exists()

    def test_empty_query_list(self, pipeline):
        with pytest.raises(BadInput):
            pipeline.create_feature([], "empty")

    def test_blank_name(self, pipeline, mono_wav):
        with pytest.raises(BadInput):
            pipeline.create_feature([mono_wav], "   ")

    def test_unloaded_model_aborts(self, tmp_path, mono_wav):
        pipeline = FeaturePipeline(FeatureExtractor(), config=SeparationConfig(output_root=tmp_path))
        with pytest.raises(ModelNotLoaded):
            pipeline.create_feature([mono_wav], "unloaded")

    def test_repeated_names_do_not_collide(self, pipeline, mono_wav):
        first = pipeline.create_feature([mono_wav], "dup")
        second = pipeline.create_feature([mono_wav], "dup")

        assert first != second
        assert first.exists() and second.exists()

    def test_progress_per_file(self, extractor, tmp_path, mono_wav, garbage_file):
        reported = []
        pipeline = FeaturePipeline(
            extractor,
            config=SeparationConfig(output_root=tmp_path),
            progress=reported.append,
        )

        pipeline.create_feature([mono_wav, garbage_file, mono_wav, mono_wav], "progress")

        assert reported == [25, 50, 75, 100]
