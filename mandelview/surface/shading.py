from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

GAMMA = 2.2
AMBIENT_FLOOR = 0.18

def _unit(v: Sequence[float]) -> np.ndarray:
    v = np.asarray(v, dtype=np.float64)
    return v / np.linalg.norm(v)

# (direction toward the light, weight); the camera looks down +z
LIGHTS: Tuple[Tuple[np.ndarray, float], ...] = (
    (_unit((-0.4, -0.6, -0.7)), 0.65),  # key, upper left
    (_unit((0.6, 0.2, -0.75)), 0.25),   # fill, right
    (_unit((0.0, 0.8, -0.6)), 0.10),    # rim, from below
)

def face_normals(rotated: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Unit normals from the cross product of two edges, flipped to face the camera."""
    p0 = rotated[indices[:, 0]]
    p1 = rotated[indices[:, 1]]
    p2 = rotated[indices[:, 2]]
    n = np.cross(p1 - p0, p2 - p0)
    length = np.linalg.norm(n, axis=1, keepdims=True)
    # collapsed triangles get a normal pointing straight at the camera
    degenerate = length[:, 0] == 0
    n[degenerate] = (0.0, 0.0, -1.0)
    length[degenerate] = 1.0
    n = n / length
    n[n[:, 2] > 0] *= -1
    return n

def light_intensity(normals: np.ndarray) -> np.ndarray:
    total = np.zeros(len(normals), dtype=np.float64)
    for direction, weight in LIGHTS:
        total += weight * np.clip(normals @ direction, 0.0, None)
    return np.clip(total, AMBIENT_FLOOR, 1.0)

def shade(base: np.ndarray, intensity: np.ndarray) -> np.ndarray:
    """Apply lighting then gamma: 255 * (c/255 * i) ** (1/2.2), per channel."""
    lit = (np.asarray(base, dtype=np.float64) / 255.0) * np.asarray(intensity, dtype=np.float64)[:, None]
    out = 255.0 * np.power(lit, 1.0 / GAMMA)
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)
