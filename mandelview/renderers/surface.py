"""
3D surface renderer.

One pass per call: heights -> optional blur -> vertex grid -> rotate/project
-> triangles -> depth sort -> shade -> draw back to front with Pillow.
Nothing is cached between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from PIL import Image, ImageDraw

from mandelview.palette import Scheme, palette_lut
from mandelview.surface.heightmap import heights_from_iterations, pseudo_iterations, smooth_heights
from mandelview.surface.mesh import (
    CAMERA_DISTANCE,
    ProjectedGrid,
    Triangles,
    build_grid,
    cull_behind_camera,
    depth_sort,
    project,
    tessellate,
)
from mandelview.surface.shading import face_normals, light_intensity, shade
from mandelview.util.logging_setup import get_logger

BACKGROUND = (0, 0, 0)

@dataclass(frozen=True)
class SurfaceOptions:
    pitch: float = 30.0
    roll: float = 0.0
    yaw: float = 45.0
    height_scale: float = 50.0
    smoothing: int = 0
    resolution: int = 4
    camera_distance: float = CAMERA_DISTANCE

@dataclass
class SurfaceMesh:
    projected: ProjectedGrid
    triangles: Triangles    # already depth sorted
    colors: np.ndarray      # (T, 3) uint8, shaded

def build_surface(
    heights: np.ndarray,
    iterations: np.ndarray,
    max_iter: int,
    scheme: Union[str, Scheme],
    width: int,
    height: int,
    options: SurfaceOptions,
) -> SurfaceMesh:
    heights = smooth_heights(heights, options.smoothing)
    grid = build_grid(heights, iterations, width, height,
                      resolution=options.resolution, height_scale=options.height_scale)
    projected = project(grid, (options.pitch, options.roll, options.yaw), width, height,
                        camera_distance=options.camera_distance)
    triangles = depth_sort(cull_behind_camera(tessellate(projected), projected, options.camera_distance))

    if len(triangles) == 0:
        return SurfaceMesh(projected, triangles, np.zeros((0, 3), dtype=np.uint8))

    lut = palette_lut(max_iter, scheme)
    base = lut[np.clip(triangles.iterations, 0, max_iter)]
    intensity = light_intensity(face_normals(projected.rotated, triangles.indices))
    return SurfaceMesh(projected, triangles, shade(base, intensity))

def draw_surface(mesh: SurfaceMesh, width: int, height: int) -> Image.Image:
    img = Image.new("RGB", (width, height), BACKGROUND)
    draw = ImageDraw.Draw(img)
    screen = mesh.projected.screen
    for tri, color in zip(mesh.triangles.indices, mesh.colors):
        pts = [tuple(p) for p in screen[tri]]
        fill = tuple(int(c) for c in color)
        # same-colour outline closes sub-pixel gaps between neighbours
        draw.polygon(pts, fill=fill, outline=fill)
    return img

def render_surface(
    field: np.ndarray,
    max_iter: int,
    scheme: Union[str, Scheme] = Scheme.CLASSIC,
    *,
    width: Optional[int] = None,
    height: Optional[int] = None,
    options: SurfaceOptions = SurfaceOptions(),
) -> Image.Image:
    """Render an iteration field as a shaded terrain."""
    field = np.asarray(field)
    if height is None:
        height = field.shape[0] if field.ndim == 2 else 0
    if width is None:
        width = field.shape[1] if field.ndim == 2 else 0
    logger = get_logger("surface")
    heights = heights_from_iterations(field, max_iter)
    mesh = build_surface(heights, field, max_iter, scheme, width, height, options)
    logger.info("Surface %sx%s triangles=%s res=%s smoothing=%s", width, height,
                len(mesh.triangles), options.resolution, options.smoothing)
    return draw_surface(mesh, max(width, 1), max(height, 1))

def render_height_surface(
    heights: np.ndarray,
    max_iter: int,
    scheme: Union[str, Scheme] = Scheme.CLASSIC,
    *,
    width: int,
    height: int,
    options: SurfaceOptions = SurfaceOptions(),
) -> Image.Image:
    """Render an externally supplied height map (for example a captured image region)."""
    heights = np.asarray(heights, dtype=np.float64)
    iterations = pseudo_iterations(heights, max_iter) if heights.size else np.zeros((0, 0), dtype=np.int32)
    mesh = build_surface(heights, iterations, max_iter, scheme, width, height, options)
    get_logger("surface").info("Height surface %sx%s triangles=%s", width, height, len(mesh.triangles))
    return draw_surface(mesh, max(width, 1), max(height, 1))
