from __future__ import annotations

from PIL import Image

from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.operations.params import CropParams, ResizeParams

RESAMPLING = {
    "low": Image.Resampling.NEAREST,
    "medium": Image.Resampling.BILINEAR,
    "high": Image.Resampling.LANCZOS,
}


class GeometryService:
    """Operations that change the surface dimensions."""

    # Crop region [y : y + height, x : x + width]
    @staticmethod
    def crop(surface: Surface, params: CropParams) -> None:
        x, y = params.x, params.y
        region = surface.pixels[y : y + params.height, x : x + params.width]
        surface.replace(region.copy())

    @staticmethod
    def resize(surface: Surface, params: ResizeParams) -> None:
        target = GeometryService.resize_target(surface.width, surface.height, params)
        if target == surface.size:
            return
        resized = surface.to_image().resize(target, resample=RESAMPLING[params.quality])
        surface.replace_from_image(resized)

    @staticmethod
    def resize_target(width: int, height: int, params: ResizeParams) -> tuple[int, int]:
        """Output size for a resize; with maintain_aspect_ratio the source is fitted inside the box."""
        if not params.maintain_aspect_ratio:
            return int(params.width), int(params.height)
        scale = min(params.width / width, params.height / height)
        return max(1, round(width * scale)), max(1, round(height * scale))
