"""
Tests for the PhotoEditor facade: validation before enqueue, history, export.
"""
from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

from retouchkit.application.editor import PhotoEditor
from retouchkit.domain.errors import (
    ImageLoadError,
    InvalidColorError,
    InvalidCropError,
    InvalidDimensionsError,
    InvalidOperationError,
)
from retouchkit.infrastructure.licensing.license_manager import StaticEntitlement

LICENSED = StaticEntitlement(True)


def _decode(data: bytes) -> np.ndarray:
    return np.array(Image.open(io.BytesIO(data)).convert("RGBA"))


@pytest.fixture()
def photo() -> PhotoEditor:
    pixels = np.full((100, 200, 4), 128, dtype=np.uint8)
    pixels[..., 3] = 255
    return PhotoEditor.from_array(pixels)


class TestEditing:
    def test_brightness_on_red(self, red_pixels):
        surface = PhotoEditor.from_array(red_pixels).brightness(-100).render()
        assert np.all(surface.pixels == np.array([0, 0, 0, 255], dtype=np.uint8))

    def test_grayscale_on_red(self, red_pixels):
        surface = PhotoEditor.from_array(red_pixels).filter("grayscale", 1.0).preview()
        assert np.all(surface.pixels == np.array([76, 76, 76, 255], dtype=np.uint8))

    def test_methods_chain(self, photo):
        assert photo.crop(0, 0, 50, 50).contrast(10).saturation(5).exposure(1).temperature(-3) is photo
        assert len(photo.active_history()) == 5

    def test_crop_checked_against_projected_size(self, photo):
        with pytest.raises(InvalidCropError):
            photo.crop(150, 0, 100, 10)
        photo.resize(20, 20)
        assert photo.size == (20, 20)
        with pytest.raises(InvalidCropError):
            photo.crop(0, 0, 30, 30)
        photo.undo()
        photo.crop(0, 0, 30, 30)
        assert photo.size == (30, 30)

    def test_rejected_operations_are_not_recorded(self, photo):
        with pytest.raises(InvalidCropError):
            photo.crop(-1, 0, 10, 10)
        with pytest.raises(InvalidDimensionsError):
            photo.resize(0, 10)
        with pytest.raises(InvalidDimensionsError):
            photo.resize(16385, 10)
        with pytest.raises(InvalidOperationError):
            photo.resize(10, 10, quality="ultra")
        with pytest.raises(InvalidOperationError):
            photo.add_text("", 0, 0)
        with pytest.raises(InvalidColorError):
            photo.add_text("hi", 0, 0, color="nope")
        with pytest.raises(InvalidColorError):
            photo.add_shape("rectangle", 0, 0, 5, 5, fill="nope")
        with pytest.raises(InvalidOperationError):
            photo.add_shape("star", 0, 0, 5, 5)
        with pytest.raises(InvalidOperationError):
            photo.filter("emboss")
        assert photo.all_history() == ()

    def test_multiline_text_rejected_before_render(self, photo):
        with pytest.raises(InvalidOperationError):
            photo.add_text("a\nb", 5, 5, baseline="top")
        with pytest.raises(InvalidOperationError):
            photo.add_text("hello\nworld", 5, 5, max_width=10)
        assert photo.all_history() == ()
        photo.add_text("hello world", 5, 5, baseline="top", max_width=10)
        assert photo.render().pixels.shape == (100, 200, 4)

    def test_max_dimension_is_configurable(self, red_pixels):
        editor = PhotoEditor.from_array(red_pixels, max_dimension=64)
        with pytest.raises(InvalidDimensionsError):
            editor.resize(65, 10)

    def test_branch_truncation(self, photo):
        photo.brightness(10).contrast(10).undo().saturation(10)
        kinds = [op.params.adjustment_type.value for op in photo.all_history()]
        assert kinds == ["brightness", "saturation"]
        assert not photo.can_redo()

    def test_reset_and_redo(self, photo):
        photo.brightness(10).contrast(10).reset()
        assert photo.active_history() == ()
        assert photo.can_redo()
        photo.redo()
        assert len(photo.active_history()) == 1
        photo.clear()
        assert photo.all_history() == ()

    def test_source_is_never_touched(self, photo):
        original = photo.original().copy()
        photo.filter("invert").crop(0, 0, 10, 10).render()
        assert np.array_equal(photo.original(), original)
        assert not photo.original().flags.writeable


class TestExport:
    def test_licensed_png_round_trips(self, photo):
        photo.filter("sepia", 0.5)
        rendered = photo.render().pixels
        data = photo.to_bytes("png", entitlement=LICENSED)
        assert np.array_equal(_decode(data), rendered)

    def test_unlicensed_export_is_watermarked(self, photo):
        rendered = photo.render().pixels
        result = photo.export("image/png")
        assert result.watermarked
        assert not np.array_equal(_decode(result.data), rendered)
        # render itself stays clean
        assert np.array_equal(photo.render().pixels, rendered)

    def test_entitlement_from_constructor(self, red_pixels):
        editor = PhotoEditor.from_array(red_pixels, entitlement=LICENSED)
        assert not editor.export().watermarked

    def test_jpeg_and_webp(self, photo):
        assert photo.to_bytes("jpeg", 0.8, entitlement=LICENSED)[:2] == b"\xff\xd8"
        webp = photo.to_bytes("image/webp", 0.5, entitlement=LICENSED)
        assert webp[:4] == b"RIFF" and webp[8:12] == b"WEBP"

    def test_data_url(self, photo):
        assert photo.to_data_url(entitlement=LICENSED).startswith("data:image/png;base64,")

    def test_save(self, photo, tmp_path):
        path = photo.crop(0, 0, 40, 30).save(tmp_path / "out" / "edit.png", entitlement=LICENSED)
        assert path.exists()
        with Image.open(path) as img:
            assert img.size == (40, 30)


class TestFactories:
    def test_from_bytes_and_path(self, tmp_path):
        buf = io.BytesIO()
        Image.new("RGB", (6, 3), (10, 20, 30)).save(buf, format="PNG")
        editor = PhotoEditor.from_bytes(buf.getvalue())
        assert editor.size == (6, 3)
        assert editor.source.metadata.format == "PNG"

        path = tmp_path / "src.png"
        path.write_bytes(buf.getvalue())
        assert PhotoEditor.from_path(path).original()[0, 0].tolist() == [10, 20, 30, 255]

    def test_from_image(self):
        editor = PhotoEditor.from_image(Image.new("L", (3, 2), 77))
        assert editor.original()[1, 2].tolist() == [77, 77, 77, 255]

    def test_bad_bytes(self):
        with pytest.raises(ImageLoadError):
            PhotoEditor.from_bytes(b"definitely not an image")
