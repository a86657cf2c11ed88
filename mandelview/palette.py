"""
Palette engine: escape ratio -> RGB.

Every scheme is a pure function of ``ratio = iterations / max_iterations`` in
[0, 1). Points with ``iterations == max_iterations`` are inside the set and are
always black, whatever the scheme.

To add a scheme:
1. Write a ``_xxx(ratio) -> RGB`` function below
2. Add a member to ``Scheme`` and an entry to ``_SCHEMES``
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Dict, NamedTuple, Sequence, Tuple, Union

import numpy as np

class RGB(NamedTuple):
    r: int
    g: int
    b: int

BLACK = RGB(0, 0, 0)

class Scheme(str, Enum):
    CLASSIC = "classic"
    FIRE = "fire"
    OCEAN = "ocean"
    RAINBOW = "rainbow"
    GRAYSCALE = "grayscale"
    SUNSET = "sunset"
    FOREST = "forest"
    COSMIC = "cosmic"
    ICE = "ice"
    VOLCANIC = "volcanic"
    NEON = "neon"
    COPPER = "copper"

    @classmethod
    def parse(cls, name: Union[str, "Scheme"]) -> "Scheme":
        """Resolve a scheme name; anything unrecognised falls back to classic."""
        if isinstance(name, Scheme):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            return cls.CLASSIC

def _round(v: float) -> int:
    # round half up
    return int(math.floor(v * 255 + 0.5))

def hue_to_rgb(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p

def hsl_to_rgb(h: float, s: float, l: float) -> RGB:
    """h in degrees, s and l in percent."""
    h /= 360
    s /= 100
    l /= 100

    if s == 0:
        r = g = b = l
    else:
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        r = hue_to_rgb(p, q, h + 1 / 3)
        g = hue_to_rgb(p, q, h)
        b = hue_to_rgb(p, q, h - 1 / 3)

    return RGB(_round(r), _round(g), _round(b))

Stops = Sequence[Tuple[float, Tuple[int, int, int]]]

def _ramp(ratio: float, stops: Stops) -> RGB:
    """Piecewise-linear blend between breakpoint colours."""
    if ratio <= stops[0][0]:
        return RGB(*stops[0][1])
    for (p0, c0), (p1, c1) in zip(stops, stops[1:]):
        if ratio <= p1:
            t = (ratio - p0) / (p1 - p0)
            return RGB(*(int(math.floor(a + (b - a) * t)) for a, b in zip(c0, c1)))
    return RGB(*stops[-1][1])

SUNSET_STOPS: Stops = (
    (0.0, (40, 0, 70)),      # deep purple
    (0.35, (190, 20, 120)),  # magenta
    (0.7, (255, 120, 30)),   # orange
    (1.0, (255, 215, 90)),   # gold
)

FOREST_STOPS: Stops = (
    (0.0, (5, 40, 15)),      # dark green
    (0.4, (40, 140, 50)),    # leaf
    (0.75, (130, 170, 60)),  # moss
    (1.0, (235, 240, 170)),  # pale yellow
)

COSMIC_STOPS: Stops = (
    (0.0, (2, 2, 20)),
    (0.25, (40, 20, 120)),   # indigo
    (0.5, (130, 40, 190)),   # violet
    (0.8, (240, 110, 190)),  # pink
    (1.0, (255, 255, 255)),
)

ICE_STOPS: Stops = (
    (0.0, (0, 20, 60)),      # navy
    (0.4, (70, 130, 180)),   # steel blue
    (0.8, (100, 230, 250)),  # cyan
    (1.0, (250, 255, 255)),
)

VOLCANIC_STOPS: Stops = (
    (0.0, (25, 20, 20)),     # charcoal
    (0.3, (120, 10, 0)),     # dark red
    (0.7, (250, 100, 0)),    # orange
    (1.0, (255, 240, 80)),   # yellow
)

def _classic(ratio: float) -> RGB:
    return hsl_to_rgb(ratio * 360, 100, 50)

def _fire(ratio: float) -> RGB:
    if ratio < 0.5:
        return RGB(int(math.floor(ratio * 2 * 255)), 0, 0)
    return RGB(255, int(math.floor((ratio - 0.5) * 2 * 255)), 0)

def _ocean(ratio: float) -> RGB:
    return RGB(
        int(math.floor(ratio * 50)),
        int(math.floor(ratio * 100 + 50)),
        int(math.floor(ratio * 200 + 55)),
    )

def _rainbow(ratio: float) -> RGB:
    segment = int(math.floor(ratio * 6))
    t = (ratio * 6) % 1
    up = int(math.floor(t * 255))
    down = int(math.floor((1 - t) * 255))
    if segment == 0:
        return RGB(255, up, 0)
    if segment == 1:
        return RGB(down, 255, 0)
    if segment == 2:
        return RGB(0, 255, up)
    if segment == 3:
        return RGB(0, down, 255)
    if segment == 4:
        return RGB(up, 0, 255)
    if segment == 5:
        return RGB(255, 0, down)
    return RGB(255, 0, 0)

def _grayscale(ratio: float) -> RGB:
    v = int(math.floor(ratio * 255))
    return RGB(v, v, v)

def _neon(ratio: float) -> RGB:
    phase = 2 * math.pi * 3 * ratio
    return RGB(*(
        int(math.floor(127.5 * (1 + math.sin(phase + shift))))
        for shift in (0.0, 2 * math.pi / 3, 4 * math.pi / 3)
    ))

def _copper(ratio: float) -> RGB:
    return RGB(
        min(255, int(math.floor(ratio * 1.25 * 255))),
        int(math.floor(ratio * 0.7812 * 255)),
        int(math.floor(ratio * 0.4975 * 255)),
    )

_SCHEMES: Dict[Scheme, Callable[[float], RGB]] = {
    Scheme.CLASSIC: _classic,
    Scheme.FIRE: _fire,
    Scheme.OCEAN: _ocean,
    Scheme.RAINBOW: _rainbow,
    Scheme.GRAYSCALE: _grayscale,
    Scheme.SUNSET: lambda r: _ramp(r, SUNSET_STOPS),
    Scheme.FOREST: lambda r: _ramp(r, FOREST_STOPS),
    Scheme.COSMIC: lambda r: _ramp(r, COSMIC_STOPS),
    Scheme.ICE: lambda r: _ramp(r, ICE_STOPS),
    Scheme.VOLCANIC: lambda r: _ramp(r, VOLCANIC_STOPS),
    Scheme.NEON: _neon,
    Scheme.COPPER: _copper,
}

def scheme_names() -> Tuple[str, ...]:
    return tuple(s.value for s in Scheme)

def get_color(iterations: int, max_iterations: int, scheme: Union[str, Scheme] = Scheme.CLASSIC) -> RGB:
    if iterations == max_iterations:
        return BLACK
    ratio = iterations / max_iterations
    return _SCHEMES[Scheme.parse(scheme)](ratio)

def palette_lut(max_iterations: int, scheme: Union[str, Scheme] = Scheme.CLASSIC) -> np.ndarray:
    """Tabulate get_color for every count 0..max_iterations as a (max+1, 3) uint8 array."""
    scheme = Scheme.parse(scheme)
    lut = np.zeros((max_iterations + 1, 3), dtype=np.uint8)
    for n in range(max_iterations + 1):
        lut[n] = get_color(n, max_iterations, scheme)
    return lut

def colorize(field: np.ndarray, max_iterations: int, scheme: Union[str, Scheme] = Scheme.CLASSIC) -> np.ndarray:
    """Map an iteration field to an RGBA buffer, alpha fixed at 255."""
    lut = palette_lut(max_iterations, scheme)
    idx = np.clip(field, 0, max_iterations)
    out = np.empty(field.shape + (4,), dtype=np.uint8)
    out[..., :3] = lut[idx]
    out[..., 3] = 255
    return out
