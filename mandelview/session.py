"""
The explorer session: the one place view state lives.

A Session owns the current Viewport and every user-facing control. Input
handlers call its methods between renders; each render takes a snapshot of
the state as a RenderRequest, so nothing the handlers do can reach a frame
already being computed.
"""

from __future__ import annotations

import os
from dataclasses import replace
from typing import Optional, Tuple

from mandelview import pipeline
from mandelview.config import clamp_iterations
from mandelview.palette import Scheme
from mandelview.renderers.surface import SurfaceOptions
from mandelview.util.logging_setup import get_logger
from mandelview.util.manifest import build_manifest, write_manifest
from mandelview.viewport import (
    DEFAULT_VIEWPORT,
    Viewport,
    pan,
    pixel_to_complex,
    quick_location,
    wheel_factor,
    zoom_at_cursor,
    zoom_to_rectangle,
)

Point = Tuple[float, float]

class Session:
    def __init__(
        self,
        width: int = 800,
        height: int = 600,
        *,
        viewport: Viewport = DEFAULT_VIEWPORT,
        max_iter: int = 100,
        scheme: str = "classic",
        is_3d: bool = False,
        surface: SurfaceOptions = SurfaceOptions(),
        backend: str = "auto",
        workers: Optional[int] = None,
    ):
        if width < 1 or height < 1:
            raise ValueError("canvas must be at least 1x1")
        self.width = width
        self.height = height
        self.viewport = viewport
        self.max_iter = clamp_iterations(max_iter)
        self.scheme = Scheme.parse(scheme)
        self.is_3d = is_3d
        self.surface = surface
        self.backend = backend
        self.workers = workers

        self.busy = False
        self.frame: Optional[pipeline.Frame] = None
        self._latest: Optional[int] = None
        self._log = get_logger("session")

    # -- navigation --------------------------------------------------------

    def wheel(self, px: float, py: float, delta_y: float) -> Viewport:
        self.viewport = zoom_at_cursor(self.viewport, px, py, self.width, self.height, wheel_factor(delta_y))
        return self.viewport

    def drag_zoom(self, start: Point, end: Point) -> bool:
        """Zoom into a dragged rectangle. Returns False when the drag had no area."""
        if self.is_3d:
            return False
        updated = zoom_to_rectangle(self.viewport, start, end, self.width, self.height)
        if updated is self.viewport:
            self._log.debug("Ignored degenerate drag %s -> %s", start, end)
            return False
        self.viewport = updated
        return True

    def pan(self, dx: float, dy: float) -> Viewport:
        self.viewport = pan(self.viewport, dx, dy, self.width, self.height)
        return self.viewport

    def reset(self) -> Viewport:
        self.viewport = DEFAULT_VIEWPORT
        return self.viewport

    def jump(self, name: str) -> Viewport:
        self.viewport = quick_location(name)
        return self.viewport

    # -- controls ----------------------------------------------------------

    def set_max_iter(self, n: int) -> int:
        self.max_iter = clamp_iterations(n)
        return self.max_iter

    def set_scheme(self, name: str) -> Scheme:
        self.scheme = Scheme.parse(name)
        return self.scheme

    def set_3d(self, enabled: bool) -> None:
        self.is_3d = bool(enabled)

    def set_rotation(self, pitch: Optional[float] = None, roll: Optional[float] = None,
                     yaw: Optional[float] = None) -> None:
        s = self.surface
        self.surface = replace(
            s,
            pitch=s.pitch if pitch is None else float(pitch),
            roll=s.roll if roll is None else float(roll),
            yaw=s.yaw if yaw is None else float(yaw),
        )

    def set_height_scale(self, value: float) -> None:
        self.surface = replace(self.surface, height_scale=float(value))

    def set_smoothing(self, radius: int) -> None:
        if radius < 0:
            raise ValueError("smoothing radius must be >= 0")
        self.surface = replace(self.surface, smoothing=int(radius))

    def set_resolution(self, step: int) -> None:
        if step < 1:
            raise ValueError("resolution must be >= 1")
        self.surface = replace(self.surface, resolution=int(step))

    def resize(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError("canvas must be at least 1x1")
        self.width, self.height = width, height

    # -- readouts ----------------------------------------------------------

    def cursor_label(self, px: float, py: float) -> str:
        if self.is_3d:
            return "3D Mode - Use sliders to rotate"
        real, imag = pixel_to_complex(px, py, self.viewport, self.width, self.height)
        return f"Real: {real:.6f}, Imag: {imag:.6f}"

    def zoom_label(self) -> str:
        return f"Zoom: {self.viewport.zoom:.2e}"

    # -- rendering ---------------------------------------------------------

    def request(self) -> pipeline.RenderRequest:
        return pipeline.RenderRequest(
            viewport=self.viewport,
            width=self.width,
            height=self.height,
            max_iter=self.max_iter,
            scheme=self.scheme,
            mode="3d" if self.is_3d else "2d",
            surface=self.surface,
            backend=self.backend,
            workers=self.workers,
        )

    def begin_render(self) -> pipeline.RenderTicket:
        ticket = pipeline.begin_render(self.request())
        self._latest = ticket.generation
        self.busy = True
        return ticket

    def end_render(self, frame: pipeline.Frame) -> bool:
        """Publish a finished frame. Frames from superseded tickets are dropped."""
        if frame.generation != self._latest:
            self._log.info("Dropped superseded frame #%s (latest #%s)", frame.generation, self._latest)
            return False
        self.frame = frame
        self.busy = False
        return True

    def render(self, **kwargs) -> pipeline.Frame:
        ticket = self.begin_render()
        try:
            frame = pipeline.compute_frame(ticket, **kwargs)
        except BaseException:
            # a newer ticket owns the busy flag once this one is superseded
            if ticket.generation == self._latest:
                self.busy = False
            raise
        self.end_render(frame)
        return frame

    def export(self, path: str, *, manifest: bool = True) -> str:
        """Save the current frame as PNG, with a JSON manifest beside it."""
        if self.frame is None:
            raise RuntimeError("Nothing rendered yet; call render() before export().")
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self.frame.image.save(path, format="PNG", optimize=True)
        self._log.info("Saved frame #%s -> %s", self.frame.generation, path)
        if manifest:
            write_manifest(os.path.splitext(path)[0] + ".json", build_manifest(self.frame.request))
        return path
