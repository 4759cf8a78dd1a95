"""
Tests for replaying operation histories over a source image.
"""
from __future__ import annotations

import numpy as np
import pytest

from retouchkit.domain.entities.source_state import SourceState
from retouchkit.domain.errors import InvalidDimensionsError, ReplayError
from retouchkit.domain.operations.operation import Operation
from retouchkit.domain.services.history import OperationHistory
from retouchkit.domain.services.replay_engine import ReplayEngine
from retouchkit.infrastructure.workers.worker_pool import WorkerPool


@pytest.fixture()
def source(gradient_pixels) -> SourceState:
    return SourceState.from_array(gradient_pixels)


class TestSourceState:
    def test_snapshot_is_read_only(self, source, gradient_pixels):
        assert source.width == 12 and source.height == 8
        assert np.array_equal(source.pixels, gradient_pixels)
        assert not source.pixels.flags.writeable
        assert source.metadata.format == "RAW"

    def test_clone_shares_buffers(self, source):
        twin = source.clone()
        assert twin is not source
        assert twin.pixels is source.pixels
        assert twin.image is source.image

    def test_rgb_and_gray_arrays_gain_opaque_alpha(self):
        rgb = SourceState.from_array(np.zeros((3, 5, 3), dtype=np.uint8))
        gray = SourceState.from_array(np.ones((3, 5), dtype=np.float32))
        assert rgb.pixels.shape == (3, 5, 4)
        assert np.all(rgb.pixels[..., 3] == 255)
        assert np.all(gray.pixels[..., :3] == 255)

    def test_mismatched_dimensions_rejected(self, source):
        with pytest.raises(InvalidDimensionsError):
            SourceState(
                image=source.image,
                pixels=source.pixels,
                width=source.width + 1,
                height=source.height,
                metadata=source.metadata,
            )


class TestReplayEngine:
    def test_empty_history_renders_a_copy(self, source):
        surface = ReplayEngine().render(source, ())
        assert np.array_equal(surface.pixels, source.pixels)
        surface.pixels[0, 0] = 0
        assert source.pixels[0, 0, 3] != 0

    def test_crop_then_filter_sees_cropped_surface(self, source, gradient_pixels):
        ops = [Operation.crop(2, 1, 6, 4), Operation.filter("invert")]
        surface = ReplayEngine().render(source, ops)
        expected = gradient_pixels[1:5, 2:8].copy()
        expected[..., :3] = 255 - expected[..., :3]
        assert np.array_equal(surface.pixels, expected)

    def test_render_is_idempotent(self, source):
        ops = [
            Operation.adjustment("contrast", 35),
            Operation.filter("blur", 0.7, radius=2),
            Operation.shape("ellipse", 1, 1, 6, 4, fill="rgba(255, 0, 0, 0.5)"),
            Operation.resize(7, 5, "medium"),
        ]
        engine = ReplayEngine()
        first = engine.render(source, ops)
        second = engine.render(source, ops)
        assert np.array_equal(first.pixels, second.pixels)

    def test_undo_redo_round_trip_matches(self, source):
        history = OperationHistory()
        for op in (Operation.adjustment("brightness", 10), Operation.filter("sepia", 0.5), Operation.crop(0, 0, 5, 5)):
            history.append(op)
        engine = ReplayEngine()
        before = engine.render(source, history.active_operations()).pixels
        history.undo()
        history.undo()
        partial = engine.render(source, history.active_operations()).pixels
        expected = engine.render(source, [Operation.adjustment("brightness", 10)]).pixels
        assert np.array_equal(partial, expected)
        history.redo()
        history.redo()
        after = engine.render(source, history.active_operations()).pixels
        assert np.array_equal(before, after)

    def test_out_of_bounds_crop_fails_replay(self, source):
        with pytest.raises(ReplayError):
            ReplayEngine().render(source, [Operation.resize(4, 4), Operation.crop(0, 0, 5, 5)])

    def test_multiline_text_fails_replay_cleanly(self, source):
        with pytest.raises(ReplayError):
            ReplayEngine().render(source, [Operation.text("a\nb", 1, 1, baseline="top")])

    def test_project_size_folds_geometry(self, source):
        ops = [Operation.crop(0, 0, 10, 8), Operation.resize(5, 5, maintain_aspect_ratio=True)]
        assert ReplayEngine.project_size(source, ops) == (5, 4)
        assert ReplayEngine().render(source, ops).size == (5, 4)

    def test_worker_pool_output_matches_inline(self, source):
        ops = [Operation.filter(kind, 0.8) for kind in ("blur", "sharpen", "edgeDetection", "pixelate")]
        inline = ReplayEngine().render(source, ops)
        with WorkerPool(max_workers=2, timeout=10) as pool:
            offloaded = ReplayEngine(executor=pool).render(source, ops)
        assert np.array_equal(inline.pixels, offloaded.pixels)
