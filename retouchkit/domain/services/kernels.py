from __future__ import annotations

from typing import Any

import numpy as np

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)

BLUR_KERNEL_3X3 = np.array(
    [[1 / 16, 2 / 16, 1 / 16], [2 / 16, 4 / 16, 2 / 16], [1 / 16, 2 / 16, 1 / 16]],
    dtype=np.float64,
)
SHARPEN_KERNEL_3X3 = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float64)
SOBEL_X_KERNEL = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
SOBEL_Y_KERNEL = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64)

# Kernels that may run through the worker pool.
OFFLOADABLE_KERNELS = frozenset({"blur", "sharpen", "edgeDetection", "pixelate"})


class PixelKernels:
    """Stateless pixel math on RGBA buffers.

    Buffers are uint8 arrays shaped (H, W, 4). Intermediate math runs in float64;
    every value written back to a buffer is clamped to [0, 255] and rounded to the
    nearest integer with ties to even, which is how a clamped 8-bit store behaves.
    """

    @staticmethod
    def to_uint8(values: np.ndarray) -> np.ndarray:
        return np.rint(np.clip(values, 0.0, 255.0)).astype(np.uint8)

    # Luma: 0.299*R + 0.587*G + 0.114*B
    @staticmethod
    def luma(rgb: np.ndarray) -> np.ndarray:
        rgb = rgb.astype(np.float64)
        return rgb[..., 0] * LUMA_WEIGHTS[0] + rgb[..., 1] * LUMA_WEIGHTS[1] + rgb[..., 2] * LUMA_WEIGHTS[2]

    # Intensity blend: out = orig * (1 - t) + transformed * t, alpha untouched
    @staticmethod
    def blend(original: np.ndarray, transformed_rgb: np.ndarray, intensity: float) -> np.ndarray:
        t = float(intensity)
        orig_rgb = original[..., :3].astype(np.float64)
        mixed = orig_rgb * (1.0 - t) + transformed_rgb.astype(np.float64) * t
        out = original.copy()
        out[..., :3] = PixelKernels.to_uint8(mixed)
        return out

    # 3x3 convolution over RGB with edge-clamped sampling; alpha copied from input
    @staticmethod
    def convolve3x3(pixels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
        h, w = pixels.shape[:2]
        padded = np.pad(pixels[..., :3].astype(np.float64), ((1, 1), (1, 1), (0, 0)), mode="edge")
        acc = np.zeros((h, w, 3), dtype=np.float64)
        for ky in range(3):
            for kx in range(3):
                weight = float(kernel[ky, kx])
                if weight == 0.0:
                    continue
                acc += padded[ky : ky + h, kx : kx + w, :] * weight
        out = pixels.copy()
        out[..., :3] = PixelKernels.to_uint8(acc)
        return out

    # Sobel gradient magnitude sqrt(gx^2 + gy^2) over the interior (H-2, W-2)
    @staticmethod
    def sobel_magnitude(gray: np.ndarray) -> np.ndarray:
        h, w = gray.shape
        if h < 3 or w < 3:
            return np.zeros((max(h - 2, 0), max(w - 2, 0)), dtype=np.uint8)
        g = gray.astype(np.float64)
        gx = np.zeros((h - 2, w - 2), dtype=np.float64)
        gy = np.zeros((h - 2, w - 2), dtype=np.float64)
        for ky in range(3):
            for kx in range(3):
                window = g[ky : ky + h - 2, kx : kx + w - 2]
                gx += window * SOBEL_X_KERNEL[ky, kx]
                gy += window * SOBEL_Y_KERNEL[ky, kx]
        return PixelKernels.to_uint8(np.sqrt(gx * gx + gy * gy))

    # Posterize: round(c / step) * step with step = 255 / (levels - 1)
    @staticmethod
    def posterize(rgb: np.ndarray, levels: int) -> np.ndarray:
        step = 255.0 / (int(levels) - 1)
        return np.floor(rgb.astype(np.float64) / step + 0.5) * step

    # Radial falloff: clamp(1 - dist / max_dist * strength, 0, 1), center at (w/2, h/2)
    @staticmethod
    def radial_falloff(height: int, width: int, strength: float) -> np.ndarray:
        cx = width / 2.0
        cy = height / 2.0
        max_distance = np.sqrt(cx * cx + cy * cy)
        ys, xs = np.indices((height, width), dtype=np.float64)
        distance = np.sqrt((xs - cx) ** 2 + (ys - cy) ** 2)
        if max_distance == 0:
            return np.ones((height, width), dtype=np.float64)
        return np.clip(1.0 - (distance / max_distance) * float(strength), 0.0, 1.0)

    # Block means for pixelate; edge blocks are clipped to the surface
    @staticmethod
    def block_means(pixels: np.ndarray, block_size: int) -> np.ndarray:
        h, w = pixels.shape[:2]
        size = max(1, int(block_size))
        ys = np.arange(0, h, size)
        xs = np.arange(0, w, size)
        rgb = pixels[..., :3].astype(np.float64)
        sums = np.add.reduceat(np.add.reduceat(rgb, ys, axis=0), xs, axis=1)
        rows = np.diff(np.append(ys, h))
        cols = np.diff(np.append(xs, w))
        counts = rows[:, None] * cols[None, :]
        # Rounded half up, as integer means are never negative
        means = np.floor(sums / counts[..., None] + 0.5)
        expanded = np.repeat(np.repeat(means, rows, axis=0), cols, axis=1)
        out = pixels.copy()
        out[..., :3] = expanded.astype(np.uint8)
        return out

    # --------- full-effect buffers for the offloadable kernels ---------
    @staticmethod
    def blur(pixels: np.ndarray, passes: int = 1) -> np.ndarray:
        out = pixels
        for _ in range(max(1, int(passes))):
            out = PixelKernels.convolve3x3(out, BLUR_KERNEL_3X3)
        return out

    @staticmethod
    def sharpen(pixels: np.ndarray) -> np.ndarray:
        return PixelKernels.convolve3x3(pixels, SHARPEN_KERNEL_3X3)

    @staticmethod
    def edge_detection(pixels: np.ndarray) -> np.ndarray:
        gray = PixelKernels.to_uint8(PixelKernels.luma(pixels[..., :3]))
        magnitude = PixelKernels.sobel_magnitude(gray)
        out = pixels.copy()
        h, w = pixels.shape[:2]
        if h >= 3 and w >= 3:
            out[1 : h - 1, 1 : w - 1, 0] = magnitude
            out[1 : h - 1, 1 : w - 1, 1] = magnitude
            out[1 : h - 1, 1 : w - 1, 2] = magnitude
        return out

    @staticmethod
    def pixelate(pixels: np.ndarray, block_size: int) -> np.ndarray:
        return PixelKernels.block_means(pixels, block_size)


def run_kernel_task(kind: str, pixels: np.ndarray, params: dict[str, Any] | None = None) -> np.ndarray:
    """Compute the full-effect buffer of an offloadable kernel.

    Module-level so it can be shipped to worker processes; the inline path and the
    worker pool both call this function.
    """
    params = params or {}
    if kind == "blur":
        return PixelKernels.blur(pixels, int(params.get("radius", 1)))
    elif kind == "sharpen":
        return PixelKernels.sharpen(pixels)
    elif kind == "edgeDetection":
        return PixelKernels.edge_detection(pixels)
    elif kind == "pixelate":
        return PixelKernels.pixelate(pixels, int(params.get("block_size", 10)))
    raise ValueError(f"Unsupported kernel: {kind}")
