"""Path resolution against the artifact root."""
from __future__ import annotations

import os
from typing import Union

from . import config

PathLike = Union[str, "os.PathLike[str]"]


def path(p: PathLike) -> str:
    """
    Resolve ``p`` against the artifact root.

    Absolute paths and paths already under the root are returned as-is, so
    resolving twice is harmless. A trailing separator is preserved because it
    marks a directory-shaped target.
    """
    p = os.fspath(p)
    if os.path.isabs(p):
        return p
    root = config.data_dir()
    prefix = root.rstrip("/") + "/"
    if p == root or p.startswith(prefix):
        return p
    return os.path.join(root, p)


def path_raw_map(name: str) -> str:
    return path(f"{config.RAW_MAPS_DIR}/{name}{config.BINARY_SUFFIX}")


def path_map(name: str) -> str:
    return path(f"{config.MAPS_DIR}/{name}{config.BINARY_SUFFIX}")


def path_city(city_name: str) -> str:
    return path(f"{config.CITIES_DIR}/{city_name}{config.BINARY_SUFFIX}")


def is_directory_shaped(p: str) -> bool:
    return p.endswith("/") or p.endswith(os.sep)


def sidecar_path(output: str, suffix: str = config.KML_SUFFIX) -> str:
    """``data/shapes.bin`` -> ``data/shapes.kml``."""
    root, _ext = os.path.splitext(output)
    return root + suffix


def ensure_parent_dir(output: str) -> str:
    """Create every parent directory of ``output`` and return the parent."""
    parent = os.path.dirname(output.rstrip("/")) if is_directory_shaped(output) else os.path.dirname(output)
    if parent:
        os.makedirs(parent, exist_ok=True)
    return parent
