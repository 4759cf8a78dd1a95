from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import numpy as np
from PIL import Image

from retouchkit.domain.errors import InvalidDimensionsError


@dataclass(frozen=True)
class SourceMetadata:
    created_at: datetime
    format: str  # decoder format, e.g. "PNG"; "RAW" for arrays
    width: int
    height: int


@dataclass(frozen=True, eq=False)
class SourceState:
    """The original bitmap every render starts from. Never mutated."""

    image: Image.Image
    pixels: np.ndarray  # read-only uint8 (H, W, 4)
    width: int
    height: int
    metadata: SourceMetadata

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensionsError("Source dimensions must be positive")
        if self.pixels.shape != (self.height, self.width, 4):
            raise InvalidDimensionsError(
                f"Pixel buffer {self.pixels.shape} does not match {self.width}x{self.height}"
            )
        if self.image.size != (self.width, self.height):
            raise InvalidDimensionsError(
                f"Bitmap size {self.image.size} does not match {self.width}x{self.height}"
            )

    @classmethod
    def from_image(cls, image: Image.Image, format: str | None = None) -> SourceState:
        fmt = format or image.format or "RAW"
        rgba = image.convert("RGBA")
        pixels = np.array(rgba, dtype=np.uint8)
        pixels.setflags(write=False)
        width, height = rgba.size
        return cls(
            image=rgba,
            pixels=pixels,
            width=width,
            height=height,
            metadata=SourceMetadata(
                created_at=datetime.now(timezone.utc), format=str(fmt).upper(), width=width, height=height
            ),
        )

    @classmethod
    def from_array(cls, array: np.ndarray) -> SourceState:
        """Build from (H, W), (H, W, 3) or (H, W, 4) arrays; floats in [0, 1] are scaled."""
        arr = np.asarray(array)
        if arr.dtype != np.uint8:
            # float images are normalized to [0,1]
            if np.issubdtype(arr.dtype, np.floating):
                arr = np.clip(arr, 0.0, 1.0) * 255.0
            arr = np.rint(np.clip(arr, 0, 255)).astype(np.uint8)
        if arr.ndim == 2:
            arr = np.repeat(arr[..., None], 3, axis=2)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise InvalidDimensionsError(f"Unsupported array shape {arr.shape}")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise InvalidDimensionsError("Source dimensions must be positive")
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=2)
        return cls.from_image(Image.fromarray(np.ascontiguousarray(arr)), format="RAW")

    def clone(self) -> SourceState:
        return SourceState(
            image=self.image,
            pixels=self.pixels,
            width=self.width,
            height=self.height,
            metadata=self.metadata,
        )
