from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Tuple

import numpy as np

from mandelview.surface.heightmap import sample

CAMERA_DISTANCE = 800.0
# floor for D + z so vertices behind the camera never flip through it
MIN_DEPTH = 1.0

class Point3D(NamedTuple):
    x: float
    y: float
    z: float
    iterations: int
    grid_x: int
    grid_y: int

class ProjectedPoint(NamedTuple):
    x: float
    y: float
    z: float
    iterations: int
    scale: float
    grid_x: int
    grid_y: int

class Triangle(NamedTuple):
    corners: Tuple[ProjectedPoint, ProjectedPoint, ProjectedPoint]
    avg_z: float
    iterations: int

@dataclass
class SurfaceGrid:
    """Object-space vertices, row-major over ``rows`` x ``cols``."""
    positions: np.ndarray   # (N, 3)
    iterations: np.ndarray  # (N,)
    grid_x: np.ndarray
    grid_y: np.ndarray
    rows: int
    cols: int

    def __len__(self) -> int:
        return self.rows * self.cols

    def point(self, i: int) -> Point3D:
        x, y, z = self.positions[i]
        return Point3D(float(x), float(y), float(z), int(self.iterations[i]),
                       int(self.grid_x[i]), int(self.grid_y[i]))

@dataclass
class ProjectedGrid:
    screen: np.ndarray      # (N, 2)
    depth: np.ndarray       # (N,) post-rotation z
    rotated: np.ndarray     # (N, 3) post-rotation positions, for normals
    scale: np.ndarray       # (N,) perspective factor
    iterations: np.ndarray
    grid_x: np.ndarray
    grid_y: np.ndarray
    rows: int
    cols: int

    def point(self, i: int) -> ProjectedPoint:
        return ProjectedPoint(float(self.screen[i, 0]), float(self.screen[i, 1]), float(self.depth[i]),
                              int(self.iterations[i]), float(self.scale[i]),
                              int(self.grid_x[i]), int(self.grid_y[i]))

@dataclass
class Triangles:
    indices: np.ndarray     # (T, 3) vertex indices into the projected grid
    avg_z: np.ndarray       # (T,)
    iterations: np.ndarray  # (T,) representative value for colouring

    def __len__(self) -> int:
        return len(self.indices)

    def take(self, order: np.ndarray) -> "Triangles":
        return Triangles(self.indices[order], self.avg_z[order], self.iterations[order])

    def triangle(self, i: int, projected: ProjectedGrid) -> Triangle:
        a, b, c = (projected.point(int(v)) for v in self.indices[i])
        return Triangle((a, b, c), float(self.avg_z[i]), int(self.iterations[i]))

def build_grid(
    heights: np.ndarray,
    iterations: np.ndarray,
    width: int,
    height: int,
    resolution: int = 4,
    height_scale: float = 50.0,
) -> SurfaceGrid:
    """
    Sample the height map every ``resolution`` canvas pixels.

    Vertices are centred on the canvas midpoint; z = -height * height_scale so
    that peaks rise toward the camera. Height and iteration lookups are
    clamped, so a map smaller than the canvas just repeats its edge cells.
    """
    if resolution < 1:
        raise ValueError("resolution must be >= 1")
    heights = np.asarray(heights, dtype=np.float64)
    iterations = np.asarray(iterations)
    if heights.size == 0 or width < 1 or height < 1:
        empty = np.zeros(0, dtype=np.int32)
        return SurfaceGrid(np.zeros((0, 3)), empty, empty, empty, 0, 0)

    xs = np.arange(0, width, resolution)
    ys = np.arange(0, height, resolution)
    gx, gy = np.meshgrid(xs, ys)
    gx = gx.ravel()
    gy = gy.ravel()

    # map canvas pixels onto the height grid when its size differs
    hr, hc = heights.shape
    hx = gx if hc == width else (gx * hc) // width
    hy = gy if hr == height else (gy * hr) // height

    z = -sample(heights, hx, hy) * height_scale
    if iterations.size:
        ir, ic = iterations.shape
        ix = gx if ic == width else (gx * ic) // width
        iy = gy if ir == height else (gy * ir) // height
        its = sample(iterations, ix, iy).astype(np.int32)
    else:
        its = np.zeros(gx.shape, dtype=np.int32)

    positions = np.column_stack([gx - width / 2, gy - height / 2, z]).astype(np.float64)
    return SurfaceGrid(positions, its, gx.astype(np.int32), gy.astype(np.int32), len(ys), len(xs))

def rotation_matrix(pitch: float, roll: float, yaw: float) -> np.ndarray:
    """Pitch about X, then roll about Y, then yaw about Z (degrees)."""
    ax, ay, az = (math.radians(a) for a in (pitch, roll, yaw))
    cx, sx = math.cos(ax), math.sin(ax)
    cy, sy = math.cos(ay), math.sin(ay)
    cz, sz = math.cos(az), math.sin(az)
    rx = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]], dtype=np.float64)
    ry = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]], dtype=np.float64)
    rz = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]], dtype=np.float64)
    return rz @ ry @ rx

def project(
    grid: SurfaceGrid,
    angles: Tuple[float, float, float],
    width: int,
    height: int,
    camera_distance: float = CAMERA_DISTANCE,
) -> ProjectedGrid:
    rotated = grid.positions @ rotation_matrix(*angles).T
    z = rotated[:, 2]
    perspective = camera_distance / np.maximum(camera_distance + z, MIN_DEPTH)
    screen = np.column_stack([
        rotated[:, 0] * perspective + width / 2,
        rotated[:, 1] * perspective + height / 2,
    ])
    return ProjectedGrid(screen, z.copy(), rotated, perspective, grid.iterations,
                         grid.grid_x, grid.grid_y, grid.rows, grid.cols)

def tessellate(projected: ProjectedGrid) -> Triangles:
    """
    Two triangles per quad, split along the same diagonal everywhere:

        a --- b
        |  /  |      upper-left (a, b, c), lower-right (b, d, c)
        c --- d
    """
    rows, cols = projected.rows, projected.cols
    if rows < 2 or cols < 2:
        return Triangles(np.zeros((0, 3), dtype=np.int64), np.zeros(0), np.zeros(0, dtype=np.int32))

    r, c = np.meshgrid(np.arange(rows - 1), np.arange(cols - 1), indexing="ij")
    a = (r * cols + c).ravel()
    b = a + 1
    cc = a + cols
    d = cc + 1

    upper = np.column_stack([a, b, cc])
    lower = np.column_stack([b, d, cc])
    # interleave so each quad's pair stays adjacent
    indices = np.empty((2 * len(a), 3), dtype=np.int64)
    indices[0::2] = upper
    indices[1::2] = lower

    avg_z = projected.depth[indices].mean(axis=1)
    # floor keeps the in-set sentinel only when every corner is in the set
    iterations = np.floor(projected.iterations[indices].mean(axis=1)).astype(np.int32)
    return Triangles(indices, avg_z, iterations)

def cull_behind_camera(triangles: Triangles, projected: ProjectedGrid,
                       camera_distance: float = CAMERA_DISTANCE) -> Triangles:
    """Drop triangles with any corner at or behind the camera plane (D + z <= MIN_DEPTH)."""
    in_front = (camera_distance + projected.depth[triangles.indices] > MIN_DEPTH).all(axis=1)
    if in_front.all():
        return triangles
    return triangles.take(np.flatnonzero(in_front))

def depth_sort(triangles: Triangles) -> Triangles:
    """Farthest first (descending average z), ties keep mesh order."""
    order = np.argsort(-triangles.avg_z, kind="stable")
    return triangles.take(order)
