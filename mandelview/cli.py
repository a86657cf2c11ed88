from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, Optional

from mandelview.config import load_config, normalise_config
from mandelview.palette import scheme_names
from mandelview.renderers.field import BACKENDS
from mandelview.renderers.surface import SurfaceOptions
from mandelview.server import DEFAULT_PORT, serve
from mandelview.session import Session
from mandelview.util.logging_setup import configure_logging, get_logger, queue_logging
from mandelview.viewport import QUICK_LOCATIONS, Viewport

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mandelview", description="Mandelbrot explorer: 2D fields and shaded 3D terrain.")
    p.add_argument("--config", type=str, default=None, help="Path to config JSON. Flags override its values.")
    p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level.")
    p.add_argument("--log-file", type=str, default="", help="Rotating log file path. Empty disables file logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", help="Render one frame to a PNG.")
    r.add_argument("--output", "-o", type=str, default=None, help="Output PNG (a .json manifest is written beside it).")
    r.add_argument("--size", type=int, nargs=2, metavar=("W", "H"), default=None, help="Canvas size in pixels.")
    r.add_argument("--max-iter", type=int, default=None, help="Iteration bound (clamped to 10..1000).")
    r.add_argument("--scheme", type=str, default=None, choices=scheme_names(), help="Palette scheme.")
    r.add_argument("--center", type=float, nargs=2, metavar=("RE", "IM"), default=None, help="View center.")
    r.add_argument("--zoom", type=float, default=None, help="Zoom factor (> 0).")
    r.add_argument("--location", type=str, default=None, choices=sorted(QUICK_LOCATIONS), help="Jump to a preset view.")
    r.add_argument("--zoom-rect", type=float, nargs=4, metavar=("X0", "Y0", "X1", "Y1"), default=None,
                   help="Zoom into a pixel rectangle of the starting view.")
    r.add_argument("--3d", dest="three_d", action="store_true", help="Render the shaded 3D surface.")
    r.add_argument("--pitch", type=float, default=None)
    r.add_argument("--roll", type=float, default=None)
    r.add_argument("--yaw", type=float, default=None)
    r.add_argument("--height-scale", type=float, default=None)
    r.add_argument("--smoothing", type=int, default=None, help="Gaussian blur radius for the height map.")
    r.add_argument("--resolution", type=int, default=None, help="3D grid step in pixels.")
    r.add_argument("--backend", type=str, default=None, choices=BACKENDS, help="Field backend.")
    r.add_argument("--workers", type=int, default=None, help="Process count for the cpu backend (0 = in-process).")
    r.add_argument("--progress", action="store_true", help="Show a progress bar (cpu backend).")

    s = sub.add_parser("serve", help="Serve a directory of static files over HTTP.")
    s.add_argument("--port", type=int, default=DEFAULT_PORT)
    s.add_argument("--host", type=str, default="127.0.0.1")
    s.add_argument("--directory", type=str, default=".")

    sub.add_parser("locations", help="List quick-jump locations.")
    sub.add_parser("schemes", help="List palette schemes.")
    return p

_FLAG_KEYS = ("output", "max_iter", "scheme", "zoom", "pitch", "roll", "yaw",
              "height_scale", "smoothing", "resolution", "backend", "workers")

def _merge_flags(cfg: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    out = dict(cfg)
    for k in _FLAG_KEYS:
        v = getattr(args, k)
        if v is not None:
            out[k] = v
    if args.size:
        out["width"], out["height"] = args.size
    if args.center:
        out["center"] = list(args.center)
    if args.three_d:
        out["mode"] = "3d"
    return out

def session_from_config(cfg: Dict[str, Any]) -> Session:
    return Session(
        cfg["width"],
        cfg["height"],
        viewport=Viewport(cfg["center"][0], cfg["center"][1], cfg["zoom"]),
        max_iter=cfg["max_iter"],
        scheme=cfg["scheme"],
        is_3d=cfg["mode"] == "3d",
        surface=SurfaceOptions(
            pitch=cfg["pitch"], roll=cfg["roll"], yaw=cfg["yaw"],
            height_scale=cfg["height_scale"], smoothing=cfg["smoothing"], resolution=cfg["resolution"],
        ),
        backend=cfg["backend"],
        workers=cfg["workers"],
    )

def _render(args: argparse.Namespace, log_level: int) -> int:
    logger = get_logger()
    cfg = normalise_config(_merge_flags(load_config(args.config), args))
    session = session_from_config(cfg)

    if args.location:
        session.jump(args.location)
    if args.zoom_rect:
        x0, y0, x1, y1 = args.zoom_rect
        if not session.drag_zoom((x0, y0), (x1, y1)):
            logger.warning("Zoom rectangle ignored (zero area or 3D mode)")

    logger.info("View center=(%s, %s) %s", session.viewport.center_x, session.viewport.center_y, session.zoom_label())
    with queue_logging() as queue:
        session.render(log_queue=queue, log_level=log_level, progress=args.progress)
    session.export(cfg["output"])
    return 0

def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None
    configure_logging(level=log_level, console=True, log_file=log_file)
    logger = get_logger()

    try:
        if args.cmd == "render":
            return _render(args, log_level)
        if args.cmd == "serve":
            serve(args.directory, args.port, args.host)
            return 0
        if args.cmd == "locations":
            for name, vp in sorted(QUICK_LOCATIONS.items()):
                print(f"{name:16s} center=({vp.center_x}, {vp.center_y}) zoom={vp.zoom:g}")
            return 0
        if args.cmd == "schemes":
            print("\n".join(scheme_names()))
            return 0
        raise RuntimeError("Unknown command.")
    except (ValueError, KeyError, RuntimeError, OSError) as e:
        logger.error("%s", e)
        return 1

if __name__ == "__main__":
    raise SystemExit(main())
