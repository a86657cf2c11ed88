from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image

from mandelview.palette import Scheme, colorize
from mandelview.renderers.field import compute_field
from mandelview.renderers.surface import SurfaceOptions, render_surface
from mandelview.viewport import Viewport
from mandelview.util.logging_setup import busy, get_logger

_generation = itertools.count(1)

@dataclass(frozen=True)
class RenderRequest:
    viewport: Viewport
    width: int
    height: int
    max_iter: int
    scheme: Scheme = Scheme.CLASSIC
    mode: str = "2d"
    surface: SurfaceOptions = SurfaceOptions()
    backend: str = "auto"
    workers: Optional[int] = None

@dataclass(frozen=True)
class RenderTicket:
    generation: int
    request: RenderRequest

@dataclass
class Frame:
    generation: int
    request: RenderRequest
    field: np.ndarray
    image: Image.Image

def begin_render(request: RenderRequest) -> RenderTicket:
    ticket = RenderTicket(next(_generation), request)
    get_logger().info("Render #%s queued mode=%s %sx%s iter=%s scheme=%s", ticket.generation, request.mode,
                      request.width, request.height, request.max_iter, request.scheme.value)
    return ticket

def compute_frame(ticket: RenderTicket, *, log_queue=None, log_level: int = logging.INFO, progress: bool = False) -> Frame:
    """Synchronous frame computation for a ticket issued by ``begin_render``."""
    req = ticket.request
    with busy(get_logger(), f"frame #{ticket.generation}"):
        field = compute_field(
            req.viewport, req.width, req.height, req.max_iter,
            backend=req.backend, workers=req.workers,
            log_queue=log_queue, log_level=log_level, progress=progress,
        )
        if req.mode == "3d":
            image = render_surface(field, req.max_iter, req.scheme,
                                   width=req.width, height=req.height, options=req.surface)
        else:
            image = Image.fromarray(colorize(field, req.max_iter, req.scheme))
    return Frame(ticket.generation, req, field, image)

def render_frame(request: RenderRequest, **kwargs) -> Frame:
    return compute_frame(begin_render(request), **kwargs)
