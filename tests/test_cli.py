"""Tests for the command-line interface."""

import numpy as np
import pytest
from typer.testing import CliRunner

from zeroshot.cli import app
from zeroshot.jobs import JobKind
from zeroshot.models import FeatureExtractor, Separator
from zeroshot.output import write_embedding

from conftest import FakeEmbeddingModel, FakeSeparatorModel

runner = CliRunner()


def fake_model_factory(kind, config):
    if kind is JobKind.FEATURE:
        return FeatureExtractor(module=FakeEmbeddingModel(), clip_samples=config.clip_samples)
    return Separator(module=FakeSeparatorModel(), clip_samples=config.clip_samples)


@pytest.fixture
def fake_models(monkeypatch):
    monkeypatch.setattr("zeroshot.jobs.orchestrator.default_model_factory", fake_model_factory)


class TestInfo:
    def test_shows_header(self, stereo_wav):
        result = runner.invoke(app, ["info", str(stereo_wav)])

        assert result.exit_code == 0
        assert "Sample rate: 32000 Hz" in result.output
        assert "Channels: 2" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["info", str(tmp_path / "missing.wav")])
        assert result.exit_code == 1


class TestFeatureCommands:
    def test_empty_catalog(self, tmp_path):
        result = runner.invoke(app, ["features", "--root", str(tmp_path)])

        assert result.exit_code == 0
        assert "No features" in result.output

    def test_create_list_delete(self, tmp_path, mono_wav, fake_models):
        result = runner.invoke(
            app, ["create-feature", str(mono_wav), "--name", "tone", "--root", str(tmp_path)]
        )
        assert result.exit_code == 0, result.output
        assert "Feature saved" in result.output
        assert len(list((tmp_path / "output_features").glob("tone_*.txt"))) == 1

        result = runner.invoke(app, ["features", "--root", str(tmp_path)])
        assert result.exit_code == 0
        assert "tone" in result.output

        result = runner.invoke(app, ["delete-feature", "tone", "--root", str(tmp_path)])
        assert result.exit_code == 0
        assert not list((tmp_path / "output_features").glob("tone_*.txt"))

    def test_delete_unknown(self, tmp_path):
        result = runner.invoke(app, ["delete-feature", "nope", "--root", str(tmp_path)])

        assert result.exit_code == 1
        assert "BadEmbedding" in result.output

    def test_create_with_missing_model(self, tmp_path, mono_wav):
        result = runner.invoke(
            app,
            [
                "create-feature",
                str(mono_wav),
                "--name",
                "tone",
                "--model",
                str(tmp_path / "missing.pt"),
                "--root",
                str(tmp_path),
            ],
        )

        assert result.exit_code == 1
        assert "ModelNotLoaded" in result.output

    def test_create_with_no_existing_files(self, tmp_path):
        result = runner.invoke(
            app, ["create-feature", str(tmp_path / "a.wav"), "--name", "x", "--root", str(tmp_path)]
        )
        assert result.exit_code == 1


class TestSeparateCommand:
    @pytest.fixture
    def feature(self, tmp_path):
        write_embedding(np.ones(2048, dtype=np.float32), tmp_path / "output_features" / "F.txt")

    def test_separates(self, tmp_path, mono_wav, feature, fake_models):
        result = runner.invoke(
            app, ["separate", str(mono_wav), "--feature", "F", "--root", str(tmp_path)]
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "separated_results" / "mono_F.wav").exists()

    def test_partial_failure_exit_code(self, tmp_path, mono_wav, garbage_file, feature, fake_models):
        result = runner.invoke(
            app,
            ["separate", str(mono_wav), str(garbage_file), "--feature", "F", "--root", str(tmp_path)],
        )

        assert result.exit_code == 1
        assert (tmp_path / "separated_results" / "mono_F.wav").exists()
        assert "1 of 2" in result.output
