import importlib.metadata as importlib_metadata
import json
import os
import platform
import sys
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

@dataclass(frozen=True)
class ExportManifest:
    exported_utc: str
    view: Dict[str, Any]
    render: Dict[str, Any]
    surface: Optional[Dict[str, Any]]
    python: Dict[str, Any]
    packages: Dict[str, str]
    system: Dict[str, Any]

def _utc_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())

def _safe_pkg_version(name: str) -> Optional[str]:
    try:
        return importlib_metadata.version(name)
    except importlib_metadata.PackageNotFoundError:
        return None

def build_manifest(request) -> ExportManifest:
    """Describe a rendered frame well enough to reproduce it."""
    pkgs = {}
    for name in ["numpy", "Pillow", "numba", "tqdm"]:
        v = _safe_pkg_version(name)
        if v:
            pkgs[name] = v

    return ExportManifest(
        exported_utc=_utc_iso(),
        view=asdict(request.viewport),
        render={
            "width": request.width,
            "height": request.height,
            "max_iter": request.max_iter,
            "scheme": request.scheme.value,
            "mode": request.mode,
            "backend": request.backend,
        },
        surface=asdict(request.surface) if request.mode == "3d" else None,
        python={"version": sys.version, "executable": sys.executable},
        packages=pkgs,
        system={"platform": platform.platform(), "machine": platform.machine()},
    )

def write_manifest(path: str, manifest: ExportManifest) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(manifest), f, indent=2, sort_keys=True)
