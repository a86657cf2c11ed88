"""
Height maps for the 3D surface.

Heights are normalised to [0, 1]. They come either from an iteration field,
where in-set points sit at sea level (0) and quickly escaping points stand
tallest, or from an image region, where dark pixels stand tall.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image

# blend of exponential, logarithmic and sinusoidal terms of t = 1 - n/max
HEIGHT_WEIGHTS = (0.5, 0.3, 0.2)
_EXP_RATE = 3.0

LUMA = (0.299, 0.587, 0.114)

def height_curve(t: np.ndarray) -> np.ndarray:
    """Monotone map [0, 1] -> [0, 1]; each term is normalised to reach 1 at t = 1."""
    t = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)
    w_exp, w_log, w_sin = HEIGHT_WEIGHTS
    exp_term = (1.0 - np.exp(-_EXP_RATE * t)) / (1.0 - math.exp(-_EXP_RATE))
    log_term = np.log1p(9.0 * t) / math.log(10.0)
    sin_term = np.sin(t * math.pi / 2)
    return w_exp * exp_term + w_log * log_term + w_sin * sin_term

def heights_from_iterations(field: np.ndarray, max_iter: int) -> np.ndarray:
    field = np.asarray(field)
    if field.size == 0 or max_iter <= 0:
        return np.zeros(field.shape, dtype=np.float64)
    t = 1.0 - field.astype(np.float64) / max_iter
    heights = height_curve(t)
    heights[field >= max_iter] = 0.0
    return heights

def heights_from_image(
    image: Union[Image.Image, np.ndarray],
    box: Optional[Tuple[int, int, int, int]] = None,
) -> np.ndarray:
    """
    Inverted luminance of an RGB(A) image: ``(255 - L) / 255`` with
    ``L = 0.299 r + 0.587 g + 0.114 b``.

    ``box`` is a Pillow-style (left, upper, right, lower) crop, used to lift a
    captured screen region into a height field.
    """
    if isinstance(image, Image.Image):
        if box is not None:
            image = image.crop(box)
        rgb = np.asarray(image.convert("RGB"), dtype=np.float64)
    else:
        rgb = np.asarray(image, dtype=np.float64)
        if box is not None:
            left, upper, right, lower = box
            rgb = rgb[upper:lower, left:right]
        if rgb.ndim == 2:
            rgb = np.repeat(rgb[..., None], 3, axis=2)
        rgb = rgb[..., :3]

    if rgb.size == 0:
        return np.zeros(rgb.shape[:2], dtype=np.float64)
    luminance = rgb[..., 0] * LUMA[0] + rgb[..., 1] * LUMA[1] + rgb[..., 2] * LUMA[2]
    return (255.0 - luminance) / 255.0

def pseudo_iterations(heights: np.ndarray, max_iter: int) -> np.ndarray:
    """Iteration-like values for colouring an image-derived surface; never the in-set sentinel."""
    top = max(max_iter - 1, 0)
    return np.rint((1.0 - np.clip(heights, 0.0, 1.0)) * top).astype(np.int32)

def gaussian_kernel(radius: int) -> np.ndarray:
    """1D Gaussian weights for offsets -radius..radius, sigma = radius / 3, summing to 1."""
    if radius < 0:
        raise ValueError("smoothing radius must be >= 0")
    if radius == 0:
        return np.ones(1, dtype=np.float64)
    sigma = radius / 3.0
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    weights = np.exp(-(offsets ** 2) / (2.0 * sigma * sigma))
    return weights / weights.sum()

def gaussian_kernel_2d(radius: int) -> np.ndarray:
    k = gaussian_kernel(radius)
    return np.outer(k, k)

def _blur_axis(values: np.ndarray, kernel: np.ndarray, axis: int) -> np.ndarray:
    # weights falling outside the grid are dropped and the rest renormalised
    radius = len(kernel) // 2
    n = values.shape[axis]
    acc = np.zeros_like(values)
    norm = np.zeros(n, dtype=np.float64)
    for k, w in zip(range(-radius, radius + 1), kernel):
        lo, hi = max(0, -k), min(n, n - k)
        if lo >= hi:
            continue
        dst = [slice(None)] * values.ndim
        src = [slice(None)] * values.ndim
        dst[axis] = slice(lo, hi)
        src[axis] = slice(lo + k, hi + k)
        acc[tuple(dst)] += w * values[tuple(src)]
        norm[lo:hi] += w
    shape = [1] * values.ndim
    shape[axis] = n
    return acc / norm.reshape(shape)

def smooth_heights(heights: np.ndarray, radius: int) -> np.ndarray:
    """Separable Gaussian blur with a truncated kernel at the borders."""
    kernel = gaussian_kernel(radius)
    heights = np.asarray(heights, dtype=np.float64)
    if radius == 0 or heights.size == 0:
        return heights.copy()
    out = _blur_axis(heights, kernel, axis=0)
    return _blur_axis(out, kernel, axis=1)

def sample(grid: np.ndarray, gx: np.ndarray, gy: np.ndarray) -> np.ndarray:
    """Look up ``grid[gy, gx]`` with indices clamped to the nearest valid cell."""
    rows, cols = grid.shape[:2]
    gx = np.clip(np.asarray(gx), 0, cols - 1)
    gy = np.clip(np.asarray(gy), 0, rows - 1)
    return grid[gy, gx]
