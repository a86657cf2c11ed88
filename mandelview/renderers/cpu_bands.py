from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from typing import List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from mandelview.escape import escape_time
from mandelview.viewport import Viewport, pixel_scale
from mandelview.util.logging_setup import get_logger, worker_initialiser

_G = {}

def _init_worker(center_x, center_y, scale, width, height, max_iter, log_queue, log_level):
    _G["center_x"] = center_x
    _G["center_y"] = center_y
    _G["scale"] = scale
    _G["width"] = width
    _G["height"] = height
    _G["max_iter"] = max_iter
    worker_initialiser(log_queue, log_level)

def _render_band(y0_y1: Tuple[int, int]):
    y0, y1 = y0_y1
    width = _G["width"]
    height = _G["height"]
    cx = _G["center_x"]
    cy = _G["center_y"]
    scale = _G["scale"]
    max_iter = _G["max_iter"]

    logger = get_logger("field")
    band = np.zeros((y1 - y0, width), dtype=np.int32)

    for yi, y in enumerate(range(y0, y1)):
        imag = cy + (y - height / 2) * scale
        for x in range(width):
            real = cx + (x - width / 2) * scale
            band[yi, x] = escape_time(real, imag, max_iter)

    logger.debug("Band rows %s..%s done", y0, y1)
    return y0, band

def _bands(height: int, band_height: int) -> List[Tuple[int, int]]:
    bands: List[Tuple[int, int]] = []
    y = 0
    while y < height:
        y1 = min(height, y + band_height)
        bands.append((y, y1))
        y = y1
    return bands

def _collect(field: np.ndarray, results, total: int, progress: bool) -> None:
    for y0, band in tqdm(results, total=total, desc="rows", unit="band", disable=not progress):
        field[y0:y0 + band.shape[0]] = band

def compute_field_cpu(
    *,
    viewport: Viewport,
    width: int,
    height: int,
    max_iter: int,
    workers: Optional[int] = None,
    band_height: int = 32,
    log_queue=None,
    log_level: int = logging.INFO,
    progress: bool = False,
) -> np.ndarray:
    """
    Pure-Python escape-time scan split into row bands.

    Each pixel is independent, so the bands can go to a process pool;
    reassembly by band start row keeps the result identical to a single
    row-major scan. ``workers=0`` runs the bands in this process.
    """
    logger = get_logger("field")
    scale = pixel_scale(viewport, width, height)
    initargs = (viewport.center_x, viewport.center_y, scale, width, height, max_iter, log_queue, log_level)

    field = np.zeros((height, width), dtype=np.int32)
    bands = _bands(height, band_height)
    logger.info("CPU field start %sx%s iter=%s bands=%s workers=%s", width, height, max_iter, len(bands), workers)

    if workers == 0:
        _init_worker(*initargs[:6], None, log_level)
        _collect(field, map(_render_band, bands), len(bands), progress)
    else:
        with ProcessPoolExecutor(max_workers=workers, initializer=_init_worker, initargs=initargs) as pool:
            _collect(field, pool.map(_render_band, bands), len(bands), progress)

    logger.info("CPU field done")
    return field
