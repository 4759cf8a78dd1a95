from __future__ import annotations

import numpy as np
from PIL import Image

from retouchkit.domain.errors import SurfaceAllocationError


class Surface:
    """Mutable RGBA working buffer owned by a single render call.

    Pixels are a uint8 array shaped (H, W, 4). Drawing goes through Pillow:
    callers render onto a transparent layer and composite it back.
    """

    def __init__(self, pixels: np.ndarray) -> None:
        self._pixels = self._checked(pixels)

    @classmethod
    def allocate(cls, width: int, height: int) -> Surface:
        if int(width) <= 0 or int(height) <= 0:
            raise SurfaceAllocationError(f"Cannot allocate a {width}x{height} surface")
        return cls(np.zeros((int(height), int(width), 4), dtype=np.uint8))

    @classmethod
    def from_pixels(cls, pixels: np.ndarray) -> Surface:
        return cls(np.array(pixels, dtype=np.uint8, copy=True))

    @staticmethod
    def _checked(pixels: np.ndarray) -> np.ndarray:
        if pixels.ndim != 3 or pixels.shape[2] != 4 or pixels.dtype != np.uint8:
            raise SurfaceAllocationError(
                f"Surface buffer must be uint8 (H, W, 4), got {pixels.dtype} {pixels.shape}"
            )
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise SurfaceAllocationError("Surface buffer must not be empty")
        if not pixels.flags.writeable:
            pixels = pixels.copy()
        return pixels

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def replace(self, pixels: np.ndarray) -> None:
        """Swap in a new buffer; the surface may change size."""
        self._pixels = self._checked(pixels)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self._pixels)

    def replace_from_image(self, image: Image.Image) -> None:
        self.replace(np.array(image.convert("RGBA"), dtype=np.uint8))

    def new_layer(self) -> Image.Image:
        return Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))

    def composite(self, layer: Image.Image) -> None:
        """Alpha-composite a layer the size of the surface over it."""
        base = self.to_image()
        base.alpha_composite(layer)
        self.replace_from_image(base)

    def copy(self) -> Surface:
        return Surface(self._pixels.copy())
