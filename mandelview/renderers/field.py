"""
2D field renderer: pixel -> complex -> escape time -> palette.

All backends return the same int32 iteration field as a sequential row-major
scan; only the speed differs.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np

from mandelview.escape import ESCAPE_RADIUS_SQ
from mandelview.palette import Scheme, colorize
from mandelview.renderers.cpu_bands import compute_field_cpu
from mandelview.renderers.jit import compute_field_numba, probe_numba
from mandelview.viewport import Viewport, pixel_scale
from mandelview.util.logging_setup import get_logger

BACKENDS = ("auto", "cpu", "numpy", "numba")

def choose_backend(backend: str) -> str:
    if backend in ("cpu", "numpy", "numba"):
        return backend
    if backend != "auto":
        raise ValueError(f"backend must be one of: {', '.join(BACKENDS)}")
    return "numba" if probe_numba().get("available") else "numpy"

def complex_grid(viewport: Viewport, width: int, height: int):
    """Real and imaginary coordinates of every pixel, each shaped (height, width)."""
    scale = pixel_scale(viewport, width, height)
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)
    real = viewport.center_x + (xs - width / 2) * scale
    imag = viewport.center_y + (ys - height / 2) * scale
    return np.broadcast_to(real, (height, width)), np.broadcast_to(imag[:, None], (height, width))

def compute_field_numpy(*, viewport: Viewport, width: int, height: int, max_iter: int) -> np.ndarray:
    cr, ci = complex_grid(viewport, width, height)
    cr = cr.ravel()
    ci = ci.ravel()
    field = np.full(cr.shape, max_iter, dtype=np.int32)
    zr = np.zeros_like(cr)
    zi = np.zeros_like(ci)
    active = np.arange(cr.size)

    for n in range(max_iter):
        if active.size == 0:
            break
        r = zr[active]
        i = zi[active]
        tmp = r * r - i * i + cr[active]
        i = 2.0 * r * i + ci[active]
        r = tmp
        zr[active] = r
        zi[active] = i
        escaped = r * r + i * i > ESCAPE_RADIUS_SQ
        field[active[escaped]] = n
        active = active[~escaped]

    return field.reshape(height, width)

def compute_field(
    viewport: Viewport,
    width: int,
    height: int,
    max_iter: int,
    *,
    backend: str = "auto",
    workers: Optional[int] = None,
    log_queue=None,
    log_level: int = logging.INFO,
    progress: bool = False,
) -> np.ndarray:
    if width < 1 or height < 1:
        raise ValueError(f"canvas must be at least 1x1, got {width}x{height}")
    if max_iter < 0:
        raise ValueError("max_iter must be >= 0")

    resolved = choose_backend(backend)
    get_logger("field").debug("Field backend=%s (requested %s)", resolved, backend)
    if resolved == "cpu":
        return compute_field_cpu(
            viewport=viewport, width=width, height=height, max_iter=max_iter,
            workers=workers, log_queue=log_queue, log_level=log_level, progress=progress,
        )
    if resolved == "numba":
        return compute_field_numba(viewport=viewport, width=width, height=height, max_iter=max_iter)
    return compute_field_numpy(viewport=viewport, width=width, height=height, max_iter=max_iter)

def render_field(
    viewport: Viewport,
    width: int,
    height: int,
    max_iter: int,
    scheme: Union[str, Scheme] = Scheme.CLASSIC,
    **kwargs,
) -> np.ndarray:
    """RGBA pixel buffer, shape (height, width, 4), alpha always 255."""
    field = compute_field(viewport, width, height, max_iter, **kwargs)
    return colorize(field, max_iter, scheme)
