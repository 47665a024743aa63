"""Tests for chunk planning, the overlap-add window and reconstruction."""

import numpy as np
import pytest

from zeroshot.core.constants import CLIP_SAMPLES, STEP_SAMPLES
from zeroshot.core.errors import ShapeMismatch
from zeroshot.pipeline.chunking import (
    ChunkPlan,
    ChunkStore,
    OverlapAdder,
    make_window,
    overlap_add,
    trim_to_length,
)

CLIP = 16
STEP = 8


def random_audio(length, seed=0):
    return np.random.default_rng(seed).uniform(-1, 1, length).astype(np.float32)


class TestChunkPlan:
    @pytest.mark.parametrize(
        "length, expected",
        [
            (1, 1),
            (CLIP_SAMPLES - 1, 2),
            (CLIP_SAMPLES, 2),
            (CLIP_SAMPLES + 1, 3),
            (3 * STEP_SAMPLES, 3),
            (10 * CLIP_SAMPLES, 20),
        ],
    )
    def test_chunk_count(self, length, expected):
        plan = ChunkPlan(length, CLIP_SAMPLES, STEP_SAMPLES)
        assert plan.num_chunks == expected

    def test_short_input_single_chunk(self):
        plan = ChunkPlan(5, CLIP, STEP)
        assert plan.num_chunks == 1
        assert plan.output_length == CLIP

    def test_output_length(self):
        plan = ChunkPlan(40, CLIP, STEP)
        assert plan.starts == [0, 8, 16, 24, 32]
        assert plan.output_length == STEP * 4 + CLIP

    def test_chunks_are_zero_padded(self):
        audio = np.arange(1, 21, dtype=np.float32)
        chunks = list(ChunkPlan(20, CLIP, STEP).chunks(audio))

        assert len(chunks) == 3
        assert all(c.shape == (CLIP,) for c in chunks)
        np.testing.assert_array_equal(chunks[1][:12], audio[8:20])
        assert not chunks[1][12:].any()
        np.testing.assert_array_equal(chunks[2][:4], audio[16:20])
        assert not chunks[2][4:].any()


class TestWindow:
    def test_full_size_window(self):
        window = make_window(CLIP_SAMPLES, STEP_SAMPLES)

        assert window.shape == (CLIP_SAMPLES,)
        assert window.dtype == np.float32
        assert window[0] == 0.0
        assert window[-1] == 0.0
        assert window.max() == 1.0

    def test_adjacent_fades_sum_to_one(self):
        window = make_window(CLIP_SAMPLES, STEP_SAMPLES)
        overlap = window[STEP_SAMPLES:] + window[: CLIP_SAMPLES - STEP_SAMPLES]
        np.testing.assert_allclose(overlap, 1.0, atol=1e-6)

    def test_partial_overlap_has_flat_middle(self):
        window = make_window(10, 7)
        np.testing.assert_array_equal(window[3:7], 1.0)
        assert window[0] == 0.0

    def test_no_overlap_is_all_ones(self):
        np.testing.assert_array_equal(make_window(CLIP, CLIP), 1.0)


class TestOverlapAdd:
    @pytest.mark.parametrize("length", [1, 5, 8, 15, 16, 17, 40, 41, 100])
    def test_weights_cover_every_sample(self, length):
        plan = ChunkPlan(length, CLIP, STEP)
        adder = OverlapAdder(plan)
        for index in range(plan.num_chunks):
            adder.add(index, np.zeros(CLIP, dtype=np.float32))

        assert (adder.weights[:length] >= 1.0 - 1e-6).all()

    @pytest.mark.parametrize("length", [5, 16, 41, 100])
    def test_identity_separator_reconstructs_input(self, length):
        audio = random_audio(length)
        plan = ChunkPlan(length, CLIP, STEP)

        result = overlap_add(plan.chunks(audio), plan)

        assert result.shape == (length,)
        np.testing.assert_allclose(result, audio, atol=1e-5)

    def test_single_chunk_is_raw_output(self):
        plan = ChunkPlan(5, CLIP, STEP)
        separated = random_audio(CLIP, seed=3)

        result = overlap_add([separated], plan)

        np.testing.assert_array_equal(result, separated[:5])

    def test_accepts_model_layout(self):
        plan = ChunkPlan(5, CLIP, STEP)
        separated = random_audio(CLIP).reshape(1, CLIP, 1)
        assert overlap_add([separated], plan).shape == (5,)

    def test_out_of_order(self):
        adder = OverlapAdder(ChunkPlan(40, CLIP, STEP))
        with pytest.raises(ValueError):
            adder.add(1, np.zeros(CLIP, dtype=np.float32))

    def test_wrong_chunk_size(self):
        adder = OverlapAdder(ChunkPlan(40, CLIP, STEP))
        with pytest.raises(ShapeMismatch):
            adder.add(0, np.zeros(CLIP - 1, dtype=np.float32))

    def test_finish_requires_all_chunks(self):
        adder = OverlapAdder(ChunkPlan(40, CLIP, STEP))
        adder.add(0, np.zeros(CLIP, dtype=np.float32))
        with pytest.raises(ValueError):
            adder.finish()


class TestTrim:
    def test_cuts(self):
        assert trim_to_length(np.ones(10), 4).shape == (4,)

    def test_pads(self):
        result = trim_to_length(np.ones(3, dtype=np.float32), 5)
        np.testing.assert_array_equal(result, [1, 1, 1, 0, 0])


class TestChunkStore:
    def test_keeps_chunks_in_memory_without_budget(self):
        with ChunkStore() as store:
            for i in range(4):
                store.append(random_audio(CLIP, seed=i))
            assert len(store) == 4
            assert store.spilled_count == 0
            assert store.memory_bytes == 4 * CLIP * 4

    def test_spills_past_budget(self, tmp_path):
        chunks = [random_audio(CLIP, seed=i) for i in range(5)]
        store = ChunkStore(budget_bytes=2 * CLIP * 4, spill_dir=tmp_path)
        for chunk in chunks:
            store.append(chunk)

        assert store.spilled_count == 3
        assert len(list(tmp_path.rglob("*.npy"))) == 3
        for stored, original in zip(store, chunks):
            np.testing.assert_array_equal(stored, original)

        store.close()
        assert not list(tmp_path.rglob("*.npy"))

    def test_spilled_reconstruction_is_bit_identical(self, tmp_path):
        audio = random_audio(100, seed=7)
        plan = ChunkPlan(100, CLIP, STEP)
        in_memory = overlap_add(plan.chunks(audio), plan)

        with ChunkStore(budget_bytes=CLIP * 4, spill_dir=tmp_path) as store:
            for chunk in plan.chunks(audio):
                store.append(chunk)
            spilled = overlap_add(store, plan)

        np.testing.assert_array_equal(spilled, in_memory)

    def test_temp_directory_removed_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with ChunkStore(budget_bytes=0, spill_dir=tmp_path) as store:
                store.append(random_audio(CLIP))
                raise RuntimeError("interrupted")

        assert not list(tmp_path.iterdir())
