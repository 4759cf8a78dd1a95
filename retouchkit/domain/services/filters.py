from __future__ import annotations

from typing import Any, Protocol

import numpy as np

from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.operations.params import FilterParams, FilterType
from retouchkit.domain.services.kernels import (
    OFFLOADABLE_KERNELS,
    PixelKernels,
    run_kernel_task,
)

SEPIA_MATRIX = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ],
    dtype=np.float64,
)


class KernelExecutor(Protocol):
    """Anything that can compute an offloadable kernel's full-effect buffer."""

    def run(self, kind: str, pixels: np.ndarray, params: dict[str, Any]) -> np.ndarray: ...


class FilterService:
    """Filters: compute the fully transformed RGB, then blend it in by intensity."""

    @staticmethod
    def apply(surface: Surface, params: FilterParams, executor: KernelExecutor | None = None) -> None:
        pixels = surface.pixels
        transformed = FilterService.transform(pixels, params, executor)
        surface.replace(PixelKernels.blend(pixels, transformed, params.intensity))

    @staticmethod
    def transform(
        pixels: np.ndarray, params: FilterParams, executor: KernelExecutor | None = None
    ) -> np.ndarray:
        """Return the full-effect RGB values (float or uint8, shape (H, W, 3))."""
        ft = FilterType(params.filter_type)
        rgb = pixels[..., :3].astype(np.float64)

        if ft.value in OFFLOADABLE_KERNELS:
            task_params = FilterService.kernel_params(params)
            if executor is not None:
                full = executor.run(ft.value, pixels, task_params)
            else:
                full = run_kernel_task(ft.value, pixels, task_params)
            return full[..., :3]

        if ft is FilterType.GRAYSCALE:
            gray = PixelKernels.luma(rgb)
            return np.repeat(gray[..., None], 3, axis=2)
        elif ft is FilterType.SEPIA:
            return FilterService._sepia(rgb)
        elif ft is FilterType.INVERT:
            return 255.0 - rgb
        elif ft is FilterType.POSTERIZE:
            return PixelKernels.posterize(rgb, params.levels or 4)
        elif ft is FilterType.VINTAGE:
            return FilterService._vintage(rgb)
        elif ft is FilterType.VIGNETTE:
            strength = 0.5 if params.strength is None else params.strength
            factor = PixelKernels.radial_falloff(rgb.shape[0], rgb.shape[1], strength)
            return rgb * factor[..., None]
        raise ValueError(f"Unsupported filter: {params.filter_type}")

    @staticmethod
    def kernel_params(params: FilterParams) -> dict[str, Any]:
        ft = FilterType(params.filter_type)
        if ft is FilterType.BLUR:
            return {"radius": params.radius or 1}
        if ft is FilterType.PIXELATE:
            return {"block_size": params.block_size or 10}
        return {}

    # Sepia: fixed 3x3 color matrix
    @staticmethod
    def _sepia(rgb: np.ndarray) -> np.ndarray:
        r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
        out = np.empty_like(rgb)
        for c in range(3):
            m = SEPIA_MATRIX[c]
            out[..., c] = r * m[0] + g * m[1] + b * m[2]
        return out

    # Vintage: warm tone, 20% desaturation toward the channel mean, vignette of 0.5
    @staticmethod
    def _vintage(rgb: np.ndarray) -> np.ndarray:
        warm = np.empty_like(rgb)
        warm[..., 0] = rgb[..., 0] * 0.9 + 30
        warm[..., 1] = rgb[..., 1] * 0.85 + 10
        warm[..., 2] = rgb[..., 2] * 0.7
        gray = (warm[..., 0] + warm[..., 1] + warm[..., 2]) / 3
        muted = warm * 0.8 + gray[..., None] * 0.2
        factor = PixelKernels.radial_falloff(rgb.shape[0], rgb.shape[1], 0.5)
        return muted * factor[..., None]
