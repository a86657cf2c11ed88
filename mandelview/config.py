import json
from typing import Any, Dict, Optional

from mandelview.palette import Scheme
from mandelview.renderers.field import BACKENDS

MIN_ITER = 10
MAX_ITER = 1000

DEFAULT_CONFIG: Dict[str, Any] = {
    "width": 800,
    "height": 600,
    "max_iter": 100,
    "scheme": "classic",
    "mode": "2d",
    "center": [-0.5, 0.0],
    "zoom": 1.0,
    "pitch": 30.0,
    "roll": 0.0,
    "yaw": 45.0,
    "height_scale": 50.0,
    "smoothing": 0,
    "resolution": 4,
    "backend": "auto",
    "workers": None,
    "output": "mandelbrot.png",
}

def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    cfg = dict(DEFAULT_CONFIG)
    if config_path:
        with open(config_path, "r", encoding="utf-8") as f:
            user = json.load(f)
        if not isinstance(user, dict):
            raise ValueError("Config JSON must be an object.")
        unknown = sorted(set(user) - set(DEFAULT_CONFIG))
        if unknown:
            raise ValueError(f"Unknown config field(s): {', '.join(unknown)}")
        cfg.update(user)
    return cfg

def clamp_iterations(n: int) -> int:
    return max(MIN_ITER, min(int(n), MAX_ITER))

def normalise_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for r in DEFAULT_CONFIG:
        if r not in cfg:
            raise ValueError(f"Missing config field: {r}")

    width = int(cfg["width"])
    height = int(cfg["height"])
    if width <= 0 or height <= 0:
        raise ValueError("width/height must be positive.")

    center = cfg["center"]
    if not (isinstance(center, (list, tuple)) and len(center) == 2):
        raise ValueError("center must be [re, im].")

    zoom = float(cfg["zoom"])
    if zoom <= 0:
        raise ValueError("zoom must be positive.")

    mode = str(cfg["mode"]).lower()
    if mode not in ("2d", "3d"):
        raise ValueError("mode must be 2d or 3d.")

    backend = str(cfg["backend"])
    if backend not in BACKENDS:
        raise ValueError(f"backend must be one of: {', '.join(BACKENDS)}")

    resolution = int(cfg["resolution"])
    smoothing = int(cfg["smoothing"])
    if resolution < 1:
        raise ValueError("resolution must be >= 1.")
    if smoothing < 0:
        raise ValueError("smoothing must be >= 0.")

    out = dict(cfg)
    out["width"] = width
    out["height"] = height
    out["max_iter"] = clamp_iterations(cfg["max_iter"])
    out["scheme"] = Scheme.parse(cfg["scheme"]).value
    out["mode"] = mode
    out["center"] = [float(center[0]), float(center[1])]
    out["zoom"] = zoom
    for k in ("pitch", "roll", "yaw", "height_scale"):
        out[k] = float(cfg[k])
    out["smoothing"] = smoothing
    out["resolution"] = resolution
    out["backend"] = backend
    out["workers"] = None if cfg["workers"] is None else int(cfg["workers"])
    out["output"] = str(cfg["output"])
    return out
