"""
Bounding regions for filtering KML shapes.

Bounds are plain shapely geometries: a box built from a bbox, or the polygon
read from the same Osmosis ``.poly`` file handed to osmconvert.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from shapely.geometry import MultiPolygon, Point, Polygon, box
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep

LonLat = Tuple[float, float]


def bounds_from_bbox(min_lon: float, min_lat: float, max_lon: float, max_lat: float) -> Polygon:
    if min_lon > max_lon or min_lat > max_lat:
        raise ValueError(f"Inverted bbox: ({min_lon}, {min_lat}, {max_lon}, {max_lat})")
    return box(min_lon, min_lat, max_lon, max_lat)


def read_osmosis_polygon(path: str) -> BaseGeometry:
    """
    Parse an Osmosis polygon filter file.

    The first line is a name, then one section per ring: a ring id line
    (prefixed with ``!`` for holes), ``lon lat`` lines, and ``END``. A final
    ``END`` closes the file. Holes are subtracted from the outer ring that
    precedes them.
    """
    with open(path, "r") as f:
        lines = [line.strip() for line in f]

    outers: List[Tuple[List[LonLat], List[List[LonLat]]]] = []
    i = 1  # skip the name line
    while i < len(lines):
        header = lines[i]
        i += 1
        if not header:
            continue
        if header == "END":
            break
        is_hole = header.startswith("!")
        ring: List[LonLat] = []
        while i < len(lines) and lines[i] != "END":
            if lines[i]:
                parts = lines[i].split()
                if len(parts) < 2:
                    raise ValueError(f"{path}:{i + 1}: expected 'lon lat', got {lines[i]!r}")
                ring.append((float(parts[0]), float(parts[1])))
            i += 1
        i += 1  # consume the ring's END
        if len(ring) < 3:
            raise ValueError(f"{path}: ring {header!r} has fewer than 3 points")
        if is_hole:
            if not outers:
                raise ValueError(f"{path}: hole {header!r} appears before any outer ring")
            outers[-1][1].append(ring)
        else:
            outers.append((ring, []))

    if not outers:
        raise ValueError(f"{path}: no polygon rings found")
    polygons = [Polygon(shell, holes) for shell, holes in outers]
    if len(polygons) == 1:
        return polygons[0]
    return MultiPolygon(polygons)


class BoundsFilter:
    """Point-in-bounds tests against a prepared geometry; boundary points count as inside."""

    def __init__(self, bounds: BaseGeometry):
        self.bounds = bounds
        self._prepared = prep(bounds)

    def contains(self, pt: LonLat) -> bool:
        return self._prepared.covers(Point(pt[0], pt[1]))

    def keep(self, pts: Sequence[LonLat], require_all_pts_in_bounds: bool) -> Optional[List[LonLat]]:
        """
        Points of a shape that survive the bounds, or None to drop the shape.

        Strict mode keeps the shape unchanged only when every point is inside.
        Lenient mode keeps just the points inside.
        """
        inside = [pt for pt in pts if self.contains(pt)]
        if not inside:
            return None
        if require_all_pts_in_bounds and len(inside) != len(pts):
            return None
        return inside
