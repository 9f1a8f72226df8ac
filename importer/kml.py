"""
KML -> bounded shape collection.

Every ``<coordinates>`` element inside a ``Placemark`` becomes one shape
carrying the placemark's attributes (name, description, ExtendedData). The
file is parsed incrementally so large exports don't need to fit in memory.
"""
from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional

import geopandas as gpd
from lxml import etree
from shapely.geometry import LineString, Point
from shapely.geometry.base import BaseGeometry

from .errors import KmlParseError
from .geometry_utils import BoundsFilter, LonLat
from .timer import Timer

logger = logging.getLogger(__name__)

SHAPE_COLUMNS = ["shape_id", "name", "num_points", "meta_json", "geometry"]


def parse_coordinates(text: str, source: str = "<kml>") -> List[LonLat]:
    """Parse ``lon,lat[,alt] lon,lat[,alt] ...``; altitude is dropped."""
    pts: List[LonLat] = []
    for chunk in text.split():
        parts = chunk.split(",")
        if len(parts) < 2:
            raise KmlParseError(f"{source}: bad coordinate tuple {chunk!r}")
        try:
            pts.append((float(parts[0]), float(parts[1])))
        except ValueError as exc:
            raise KmlParseError(f"{source}: bad coordinate tuple {chunk!r}") from exc
    return pts


def _child_text(elem, name: str) -> Optional[str]:
    child = elem.find(f"{{*}}{name}")
    if child is None or child.text is None:
        return None
    return child.text.strip()


def _placemark_attributes(placemark) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for key in ("name", "description"):
        value = _child_text(placemark, key)
        if value is not None:
            attributes[key] = value
    for data in placemark.iter("{*}Data"):
        key = data.get("name")
        if key:
            attributes[key] = _child_text(data, "value") or ""
    for data in placemark.iter("{*}SimpleData"):
        key = data.get("name")
        if key:
            attributes[key] = (data.text or "").strip()
    return attributes


def _to_geometry(pts: List[LonLat]) -> BaseGeometry:
    if len(pts) == 1:
        return Point(pts[0])
    return LineString(pts)


def empty_shapes() -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(columns=SHAPE_COLUMNS, geometry="geometry", crs="EPSG:4326")


def load(
    path: str,
    bounds: BaseGeometry,
    require_all_pts_in_bounds: bool,
    timer: Optional[Timer] = None,
) -> gpd.GeoDataFrame:
    """
    Load shapes from the KML at ``path``, keeping only those in ``bounds``.

    With ``require_all_pts_in_bounds`` a shape with any point outside is
    dropped entirely. Otherwise a shape keeps only its points inside the
    bounds, and is dropped when none are.

    Raises:
        KmlParseError: malformed XML or coordinates
    """
    flt = BoundsFilter(bounds)
    records = []
    skipped = 0
    if timer is not None:
        timer.start(f"extracting shapes from {path}")
    try:
        for _event, placemark in etree.iterparse(path, events=("end",), tag="{*}Placemark", huge_tree=True):
            attributes = _placemark_attributes(placemark)
            for coords in placemark.iter("{*}coordinates"):
                pts = parse_coordinates(coords.text or "", path)
                kept = flt.keep(pts, require_all_pts_in_bounds)
                if kept is None:
                    skipped += 1
                    continue
                records.append(
                    {
                        "shape_id": len(records),
                        "name": attributes.get("name"),
                        "num_points": len(kept),
                        "meta_json": json.dumps(attributes, sort_keys=True),
                        "geometry": _to_geometry(kept),
                    }
                )
            # Placemarks are self-contained; drop them once read
            placemark.clear()
            while placemark.getprevious() is not None:
                del placemark.getparent()[0]
    except etree.XMLSyntaxError as exc:
        raise KmlParseError(f"Malformed KML in {path}: {exc}") from exc
    finally:
        if timer is not None:
            timer.stop(f"extracting shapes from {path}")

    logger.info("Kept %d shapes from %s, skipped %d out of bounds", len(records), path, skipped)
    if not records:
        return empty_shapes()
    return gpd.GeoDataFrame(records, columns=SHAPE_COLUMNS, geometry="geometry", crs="EPSG:4326")
