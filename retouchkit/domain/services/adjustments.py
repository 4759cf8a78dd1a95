from __future__ import annotations

import numpy as np

from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.operations.params import AdjustmentParams, AdjustmentType
from retouchkit.domain.services.kernels import PixelKernels


class AdjustmentService:
    """Tonal adjustments over RGB; value is already clamped to [-100, 100]."""

    @staticmethod
    def apply(surface: Surface, params: AdjustmentParams) -> None:
        pixels = surface.pixels
        rgb = pixels[..., :3].astype(np.float64)
        out = pixels.copy()
        out[..., :3] = PixelKernels.to_uint8(
            AdjustmentService.transform(rgb, params.adjustment_type, params.value)
        )
        surface.replace(out)

    @staticmethod
    def transform(rgb: np.ndarray, adjustment: AdjustmentType | str, value: float) -> np.ndarray:
        kind = AdjustmentType(adjustment)
        if kind is AdjustmentType.BRIGHTNESS:
            return AdjustmentService.brightness(rgb, value)
        elif kind is AdjustmentType.CONTRAST:
            return AdjustmentService.contrast(rgb, value)
        elif kind is AdjustmentType.SATURATION:
            return AdjustmentService.saturation(rgb, value)
        elif kind is AdjustmentType.EXPOSURE:
            return AdjustmentService.exposure(rgb, value)
        elif kind is AdjustmentType.TEMPERATURE:
            return AdjustmentService.temperature(rgb, value)
        raise ValueError(f"Unsupported adjustment: {adjustment}")

    # Brightness: c + value * 2.55
    @staticmethod
    def brightness(rgb: np.ndarray, value: float) -> np.ndarray:
        return rgb + float(value) * 2.55

    # Contrast: f = 259 (v + 255) / (255 (259 - v)); c = f (c - 128) + 128
    @staticmethod
    def contrast(rgb: np.ndarray, value: float) -> np.ndarray:
        v = float(value)
        factor = (259.0 * (v + 255.0)) / (255.0 * (259.0 - v))
        return factor * (rgb - 128.0) + 128.0

    # Saturation: f = (v + 100) / 100; c = luma + f (c - luma)
    @staticmethod
    def saturation(rgb: np.ndarray, value: float) -> np.ndarray:
        factor = (float(value) + 100.0) / 100.0
        gray = PixelKernels.luma(rgb)[..., None]
        return gray + factor * (rgb - gray)

    # Exposure: c * 2^(v / 100)
    @staticmethod
    def exposure(rgb: np.ndarray, value: float) -> np.ndarray:
        return rgb * (2.0 ** (float(value) / 100.0))

    # Temperature: t = v / 100; R += 40t, B -= 40t
    @staticmethod
    def temperature(rgb: np.ndarray, value: float) -> np.ndarray:
        t = float(value) / 100.0
        out = rgb.copy()
        out[..., 0] = rgb[..., 0] + t * 40.0
        out[..., 2] = rgb[..., 2] - t * 40.0
        return out
