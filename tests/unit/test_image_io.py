import io
from unittest.mock import Mock

import numpy as np
import pytest
import requests
from PIL import Image

from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.errors import ExportError, ImageLoadError, SurfaceAllocationError
from retouchkit.infrastructure.imaging.image_encoder import ImageEncoder, normalize_format, quality_to_pillow
from retouchkit.infrastructure.imaging.image_loader import ImageLoader


def make_png_bytes(w=4, h=3, color=(128, 64, 32, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (w, h), color).save(buf, format="PNG")
    return buf.getvalue()


class TestImageLoader:
    def test_from_bytes(self):
        source = ImageLoader().from_bytes(make_png_bytes())
        assert (source.width, source.height) == (4, 3)
        assert source.pixels.shape == (3, 4, 4)
        assert source.pixels[0, 0].tolist() == [128, 64, 32, 255]
        assert source.metadata.format == "PNG"

    def test_jpeg_source_gets_opaque_alpha(self):
        buf = io.BytesIO()
        Image.new("RGB", (5, 5), (200, 10, 10)).save(buf, format="JPEG")
        source = ImageLoader().from_bytes(buf.getvalue())
        assert source.metadata.format == "JPEG"
        assert np.all(source.pixels[..., 3] == 255)

    @pytest.mark.parametrize("payload", [b"", b"garbage", make_png_bytes()[:20]])
    def test_undecodable_bytes(self, payload):
        with pytest.raises(ImageLoadError):
            ImageLoader().from_bytes(payload)

    def test_missing_path(self, tmp_path):
        with pytest.raises(ImageLoadError):
            ImageLoader().from_path(tmp_path / "missing.png")

    def test_from_url(self):
        session = Mock()
        session.get.return_value = Mock(content=make_png_bytes(2, 2))
        source = ImageLoader(timeout=3, session=session).from_url("https://img.test/a.png")
        assert source.width == 2
        session.get.assert_called_once_with("https://img.test/a.png", timeout=3)

    def test_from_url_network_failure(self):
        session = Mock()
        session.get.side_effect = requests.ConnectionError("down")
        with pytest.raises(ImageLoadError):
            ImageLoader(session=session).from_url("https://img.test/a.png")

    def test_from_url_http_error(self):
        resp = Mock()
        resp.raise_for_status.side_effect = requests.HTTPError("404")
        session = Mock()
        session.get.return_value = resp
        with pytest.raises(ImageLoadError):
            ImageLoader(session=session).from_url("https://img.test/missing.png")


class TestImageEncoder:
    def test_normalize_format(self):
        assert normalize_format(None) == "image/png"
        assert normalize_format("JPG") == "image/jpeg"
        assert normalize_format(".webp") == "image/webp"
        assert normalize_format("image/png") == "image/png"
        with pytest.raises(ExportError):
            normalize_format("gif")

    def test_quality_mapping(self):
        assert quality_to_pillow(1.0) == 100
        assert quality_to_pillow(0.5) == 50
        assert quality_to_pillow(0.001) == 1
        assert quality_to_pillow(None) == 92
        assert quality_to_pillow(0) == 92

    def test_jpeg_flattens_alpha_on_white(self):
        surface = Surface.allocate(8, 8)
        data = ImageEncoder.encode(surface, "image/jpeg", 1.0)
        decoded = np.array(Image.open(io.BytesIO(data)))
        assert decoded.shape == (8, 8, 3)
        assert decoded.min() > 245

    def test_data_url_prefix(self):
        url = ImageEncoder.to_data_url(Surface.allocate(2, 2), "webp")
        assert url.startswith("data:image/webp;base64,")


class TestSurface:
    def test_rejects_bad_buffers(self):
        with pytest.raises(SurfaceAllocationError):
            Surface(np.zeros((2, 2, 3), dtype=np.uint8))
        with pytest.raises(SurfaceAllocationError):
            Surface(np.zeros((2, 2, 4), dtype=np.float32))
        with pytest.raises(SurfaceAllocationError):
            Surface.allocate(0, 5)

    def test_read_only_input_is_copied(self):
        pixels = np.zeros((2, 2, 4), dtype=np.uint8)
        pixels.setflags(write=False)
        surface = Surface(pixels)
        assert surface.pixels.flags.writeable
