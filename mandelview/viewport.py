from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Tuple

# complex-plane units spanned by the shorter canvas side at zoom 1
PLANE_SPAN = 4.0

WHEEL_ZOOM_OUT = 0.9
WHEEL_ZOOM_IN = 1.1

@dataclass(frozen=True)
class Viewport:
    center_x: float = -0.5
    center_y: float = 0.0
    zoom: float = 1.0

    def __post_init__(self):
        if not self.zoom > 0:
            raise ValueError(f"zoom must be > 0, got {self.zoom}")

DEFAULT_VIEWPORT = Viewport(-0.5, 0.0, 1.0)

QUICK_LOCATIONS: Dict[str, Viewport] = {
    "seahorse-valley": Viewport(-0.75, 0.1, 50.0),
    "spiral": Viewport(-0.7269, 0.1889, 5000.0),
    "mini-mandelbrot": Viewport(-0.8, 0.156, 1000.0),
}

def quick_location(name: str) -> Viewport:
    try:
        return QUICK_LOCATIONS[name]
    except KeyError:
        raise KeyError(f"Unknown location {name!r}; choose from {', '.join(sorted(QUICK_LOCATIONS))}") from None

def pixel_scale(viewport: Viewport, width: int, height: int) -> float:
    return PLANE_SPAN / (viewport.zoom * min(width, height))

def pixel_to_complex(px: float, py: float, viewport: Viewport, width: int, height: int) -> Tuple[float, float]:
    scale = pixel_scale(viewport, width, height)
    real = viewport.center_x + (px - width / 2) * scale
    imag = viewport.center_y + (py - height / 2) * scale
    return real, imag

def complex_to_pixel(real: float, imag: float, viewport: Viewport, width: int, height: int) -> Tuple[float, float]:
    scale = pixel_scale(viewport, width, height)
    px = (real - viewport.center_x) / scale + width / 2
    py = (imag - viewport.center_y) / scale + height / 2
    return px, py

def wheel_factor(delta_y: float) -> float:
    # scrolling down (positive delta) zooms out
    return WHEEL_ZOOM_OUT if delta_y > 0 else WHEEL_ZOOM_IN

def zoom_at_cursor(viewport: Viewport, px: float, py: float, width: int, height: int, factor: float) -> Viewport:
    """Scale zoom by ``factor`` keeping the complex point under (px, py) fixed."""
    if factor <= 0:
        raise ValueError("zoom factor must be > 0")
    mouse_x = px - width / 2
    mouse_y = py - height / 2

    scale = pixel_scale(viewport, width, height)
    zoomed = replace(viewport, zoom=viewport.zoom * factor)
    new_scale = pixel_scale(zoomed, width, height)

    return replace(
        zoomed,
        center_x=viewport.center_x + mouse_x * scale - mouse_x * new_scale,
        center_y=viewport.center_y + mouse_y * scale - mouse_y * new_scale,
    )

def zoom_to_rectangle(
    viewport: Viewport,
    start: Tuple[float, float],
    end: Tuple[float, float],
    width: int,
    height: int,
) -> Viewport:
    """
    Fit the dragged rectangle to the canvas.

    The new center is the rectangle midpoint mapped through the pre-drag
    viewport; zoom is divided by the rectangle's larger relative side so the
    whole selection stays visible. Zero-area drags return ``viewport`` as is.
    """
    x0, x1 = min(start[0], end[0]), max(start[0], end[0])
    y0, y1 = min(start[1], end[1]), max(start[1], end[1])
    rect_w = x1 - x0
    rect_h = y1 - y0
    if rect_w <= 0 or rect_h <= 0:
        return viewport

    center_x, center_y = pixel_to_complex((x0 + x1) / 2, (y0 + y1) / 2, viewport, width, height)
    factor = max(rect_w / width, rect_h / height)
    return Viewport(center_x, center_y, viewport.zoom / factor)

def pan(viewport: Viewport, dx: float, dy: float, width: int, height: int) -> Viewport:
    # dragging the picture right moves the center left
    scale = pixel_scale(viewport, width, height)
    return replace(viewport, center_x=viewport.center_x - dx * scale, center_y=viewport.center_y - dy * scale)
