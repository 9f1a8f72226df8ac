from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Union

from . import artifacts, config, paths
from .map_model import City, Map, RawMap, create_from_raw
from .timer import Timer

logger = logging.getLogger(__name__)

MapBuilder = Callable[[RawMap, bool, Timer], Map]
ManifestMaps = Union[Iterable[str], Callable[[Map], bool]]


def _wants_manifest(m: Map, manifest_maps: Optional[ManifestMaps]) -> bool:
    if manifest_maps is None:
        manifest_maps = config.city_manifest_maps()
    if callable(manifest_maps):
        return bool(manifest_maps(m))
    return m.get_name() in set(manifest_maps)


def raw_to_map(
    name: str,
    build_ch: bool,
    timer: Timer,
    *,
    builder: MapBuilder = create_from_raw,
    manifest_maps: Optional[ManifestMaps] = None,
) -> Map:
    """
    Convert the raw map ``name`` into a routable map, save it and return it.

    Maps selected by ``manifest_maps`` (names, or a predicate on the built
    map; defaults to ``config.city_manifest_maps()``) also get a city
    manifest written under ``system/cities/``.
    """
    timer.start(f"Raw->Map for {name}")
    raw: RawMap = artifacts.read_binary(paths.path_raw_map(name))
    m = builder(raw, build_ch, timer)
    timer.start("save map")
    m.save()
    timer.stop("save map")
    timer.stop(f"Raw->Map for {name}")

    if _wants_manifest(m, manifest_maps):
        timer.start("generating city manifest")
        artifacts.write_binary(paths.path_city(m.get_city_name()), City.from_map(m))
        timer.stop("generating city manifest")

    return m
