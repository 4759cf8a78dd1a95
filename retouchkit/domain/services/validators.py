from __future__ import annotations

import math

from retouchkit.config import DEFAULT_MAX_DIMENSION
from retouchkit.domain.errors import InvalidCropError, InvalidDimensionsError


def validate_dimensions(width: float, height: float, max_dimension: int = DEFAULT_MAX_DIMENSION) -> None:
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError("Dimensions must be positive numbers")
    if width > max_dimension or height > max_dimension:
        raise InvalidDimensionsError(
            f"Dimensions exceed maximum size ({max_dimension}x{max_dimension})"
        )


def validate_crop_params(
    x: int, y: int, width: int, height: int, image_width: int, image_height: int
) -> None:
    if x < 0 or y < 0:
        raise InvalidCropError("Crop coordinates must be non-negative")
    if width <= 0 or height <= 0:
        raise InvalidCropError("Crop dimensions must be positive")
    if x + width > image_width or y + height > image_height:
        raise InvalidCropError(
            f"Crop area ({x}, {y}, {width}x{height}) exceeds image bounds "
            f"({image_width}x{image_height})"
        )


def clamp_adjustment_value(value: float, low: float = -100.0, high: float = 100.0) -> float:
    value = float(value)
    if math.isnan(value):
        return 0.0
    return max(low, min(high, value))


def clamp_filter_intensity(intensity: float | None = 1.0) -> float:
    if intensity is None:
        return 1.0
    intensity = float(intensity)
    if math.isnan(intensity):
        return 1.0
    return max(0.0, min(1.0, intensity))
