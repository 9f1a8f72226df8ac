"""
Binary artifact I/O.

Shape collections are GeoParquet; raw maps, maps and city manifests are
pickled. Writes land in a ``.part`` file first and are renamed into place,
so an artifact path only ever holds a complete file.
"""
import logging
import os
import pickle

import geopandas as gpd

logger = logging.getLogger(__name__)


def _part_path(path: str) -> str:
    return path + ".part"


def write_binary(path: str, obj) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp = _part_path(path)
    with open(tmp, "wb") as f:
        pickle.dump(obj, f, protocol=pickle.HIGHEST_PROTOCOL)
    os.replace(tmp, path)
    logger.info("Wrote %s", path)


def read_binary(path: str):
    with open(path, "rb") as f:
        return pickle.load(f)


def write_shapes(path: str, shapes: gpd.GeoDataFrame) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp = _part_path(path)
    shapes.to_parquet(tmp, index=False)
    os.replace(tmp, path)
    logger.info("Wrote %s (%d shapes)", path, len(shapes))


def read_shapes(path: str) -> gpd.GeoDataFrame:
    return gpd.read_parquet(path)
