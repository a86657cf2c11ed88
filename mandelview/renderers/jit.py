from __future__ import annotations

from typing import Any, Dict

import numpy as np

from mandelview.viewport import Viewport, pixel_scale
from mandelview.util.logging_setup import get_logger

_KERNEL = None

def probe_numba() -> Dict[str, Any]:
    info: Dict[str, Any] = {"available": False}
    try:
        import numba  # type: ignore
    except Exception as e:
        info["error"] = str(e)
        return info
    info.update({"available": True, "version": numba.__version__})
    return info

def _build_kernel():
    from numba import njit  # type: ignore

    # no fastmath: results must match the Python scan bit for bit
    @njit(cache=False)
    def field_kernel(center_x, center_y, scale, width, height, max_iter, out):
        for y in range(height):
            imag = center_y + (y - height / 2) * scale
            for x in range(width):
                real = center_x + (x - width / 2) * scale
                zr = 0.0
                zi = 0.0
                n = 0
                escaped = False
                while n < max_iter:
                    tmp = zr * zr - zi * zi + real
                    zi = 2.0 * zr * zi + imag
                    zr = tmp
                    if zr * zr + zi * zi > 4.0:
                        escaped = True
                        break
                    n += 1
                out[y, x] = n if escaped else max_iter
        return out

    return field_kernel

def compute_field_numba(*, viewport: Viewport, width: int, height: int, max_iter: int) -> np.ndarray:
    global _KERNEL
    logger = get_logger("field")
    if _KERNEL is None:
        try:
            _KERNEL = _build_kernel()
        except Exception as e:
            raise RuntimeError(f"numba renderer not available: {e}") from e
        logger.debug("numba field kernel built")

    out = np.zeros((height, width), dtype=np.int32)
    scale = pixel_scale(viewport, width, height)
    logger.info("numba field start %sx%s iter=%s", width, height, max_iter)
    _KERNEL(float(viewport.center_x), float(viewport.center_y), float(scale),
            int(width), int(height), int(max_iter), out)
    logger.info("numba field done")
    return out
