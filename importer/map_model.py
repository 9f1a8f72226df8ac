"""
Raw map -> routable map.

A ``RawMap`` is the intermediate produced by the OSM import: intersections
with coordinates and roads between them. ``create_from_raw`` turns it into a
``Map`` backed by a networkx graph and, optionally, CSR routing arrays
(forward and reverse) for fast shortest-path queries.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from math import asin, cos, radians, sin, sqrt
from typing import Dict, List, Optional, Tuple

import networkx as nx
import numpy as np

from . import artifacts, config, paths
from .timer import Timer


EARTH_RADIUS_M = 6371000.0


def great_circle_m(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """Haversine distance in meters between two (lon, lat) points."""
    lon1, lat1 = map(radians, a)
    lon2, lat2 = map(radians, b)
    h = sin((lat2 - lat1) / 2) ** 2 + cos(lat1) * cos(lat2) * sin((lon2 - lon1) / 2) ** 2
    return 2 * EARTH_RADIUS_M * asin(sqrt(h))


def default_speed_kmh_for_highway(hwy) -> float:
    # Conservative defaults; favor smaller values to avoid underestimating travel time
    if not isinstance(hwy, str):
        return config.DEFAULT_SPEED_KMH
    h = hwy.lower()
    if "motorway" in h:
        return 100.0
    if "trunk" in h:
        return 80.0
    if "primary" in h:
        return 65.0
    if "secondary" in h:
        return 55.0
    if "tertiary" in h:
        return 45.0
    if "residential" in h or "living_street" in h:
        return 25.0
    if "service" in h or "unclassified" in h:
        return 15.0
    return config.DEFAULT_SPEED_KMH


def parse_maxspeed_kmh(raw) -> Optional[float]:
    """'50', '50 km/h', '35 mph', '30;45' -> km/h (lowest value wins); None if unknown."""
    if raw is None:
        return None
    s = str(raw).lower()
    nums = [float(m) for m in re.findall(r"\d+(?:\.\d+)?", s)]
    if not nums or min(nums) <= 0:
        return None
    speed = min(nums)
    if "mph" in s:
        speed *= 1.60934
    return speed


@dataclass
class RawRoad:
    src: int
    dst: int
    highway: Optional[str] = None
    maxspeed: Optional[str] = None
    oneway: bool = False
    name: Optional[str] = None


@dataclass
class RawMap:
    name: str
    city_name: str
    # intersection id -> (lon, lat)
    intersections: Dict[int, Tuple[float, float]] = field(default_factory=dict)
    roads: List[RawRoad] = field(default_factory=list)


@dataclass
class RoutingGraph:
    """Forward CSR plus its transpose, with integer-second weights."""
    nodes: np.ndarray
    indptr: np.ndarray
    indices: np.ndarray
    w_sec: np.ndarray
    indptr_rev: np.ndarray
    indices_rev: np.ndarray
    w_rev: np.ndarray

    @property
    def num_nodes(self) -> int:
        return int(self.indptr.shape[0] - 1)


# Edge weights are stored as whole seconds in a uint16; the top value is reserved
MAX_EDGE_SECONDS = 65534


def _edge_seconds(travel_time: np.ndarray) -> np.ndarray:
    t = np.nan_to_num(travel_time, nan=MAX_EDGE_SECONDS, posinf=MAX_EDGE_SECONDS, neginf=0.0)
    return np.clip(np.ceil(t), 0, MAX_EDGE_SECONDS).astype(np.uint16)


def forward_csr(G: nx.MultiDiGraph, weight_key: str = "travel_time"):
    """
    Pack the edges of ``G`` that carry ``weight_key`` into CSR arrays.

    Returns (nodes, indptr:int64[N+1], indices:int32[M], w_sec:uint16[M]);
    row ``i`` is ``nodes[i]`` and each row's targets are sorted.
    """
    nodes = np.array(list(G.nodes), dtype=object)
    position = {n: i for i, n in enumerate(G.nodes)}
    edges = np.array(
        [(position[u], position[v], t) for u, v, t in G.edges(data=weight_key) if t is not None],
        dtype=np.float64,
    ).reshape(-1, 3)
    src = edges[:, 0].astype(np.int64)
    dst = edges[:, 1].astype(np.int32)

    order = np.lexsort((dst, src))
    indptr = np.zeros(len(nodes) + 1, dtype=np.int64)
    np.cumsum(np.bincount(src, minlength=len(nodes)), out=indptr[1:])
    return nodes, indptr, dst[order], _edge_seconds(edges[order, 2])


def reverse_csr(indptr: np.ndarray, indices: np.ndarray, w_sec: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Transpose a CSR graph: row ``v`` lists the sources of edges into ``v``.

    Sources within a row keep their forward order.
    """
    n = int(indptr.shape[0] - 1)
    sources = np.repeat(np.arange(n, dtype=np.int32), np.diff(indptr))
    order = np.argsort(indices, kind="stable")
    indptr_rev = np.zeros(n + 1, dtype=np.int64)
    np.cumsum(np.bincount(indices, minlength=n), out=indptr_rev[1:])
    return indptr_rev, sources[order], w_sec[order].astype(np.uint16)


def build_routing_graph(G) -> RoutingGraph:
    nodes, indptr, indices, w_sec = forward_csr(G)
    indptr_rev, indices_rev, w_rev = reverse_csr(indptr, indices, w_sec)
    return RoutingGraph(nodes, indptr, indices, w_sec, indptr_rev, indices_rev, w_rev)


class Map:
    def __init__(self, name: str, city_name: str, graph: nx.MultiDiGraph, routing: Optional[RoutingGraph] = None):
        self.name = name
        self.city_name = city_name
        self.graph = graph
        self.routing = routing

    def get_name(self) -> str:
        return self.name

    def get_city_name(self) -> str:
        return self.city_name

    def bbox(self) -> Optional[Tuple[float, float, float, float]]:
        """(min_lon, min_lat, max_lon, max_lat), or None for an empty map."""
        if self.graph.number_of_nodes() == 0:
            return None
        xs = [d["x"] for _, d in self.graph.nodes(data=True)]
        ys = [d["y"] for _, d in self.graph.nodes(data=True)]
        return (min(xs), min(ys), max(xs), max(ys))

    def save(self) -> str:
        out = paths.path_map(self.name)
        artifacts.write_binary(out, self)
        return out


@dataclass
class City:
    """Summary of a large reference map."""
    name: str
    boundary: Optional[Tuple[float, float, float, float]]
    maps: List[str]
    num_intersections: int
    num_roads: int

    @classmethod
    def from_map(cls, m: Map) -> "City":
        return cls(
            name=m.get_city_name(),
            boundary=m.bbox(),
            maps=[m.get_name()],
            num_intersections=m.graph.number_of_nodes(),
            num_roads=m.graph.number_of_edges(),
        )


def _add_road_edge(G: nx.MultiDiGraph, u: int, v: int, road: RawRoad, length_m: float, speed_kmh: float) -> None:
    G.add_edge(
        u,
        v,
        length=length_m,
        speed_kph=speed_kmh,
        travel_time=length_m / (speed_kmh * 1000.0 / 3600.0),
        highway=road.highway,
        name=road.name,
    )


def create_from_raw(raw: RawMap, build_ch: bool, timer: Timer) -> Map:
    """Build a routable map; roads pointing at unknown intersections are dropped."""
    timer.start("building road graph")
    G = nx.MultiDiGraph()
    for iid, (lon, lat) in raw.intersections.items():
        G.add_node(iid, x=float(lon), y=float(lat))
    for road in raw.roads:
        if road.src not in raw.intersections or road.dst not in raw.intersections:
            continue
        length_m = great_circle_m(raw.intersections[road.src], raw.intersections[road.dst])
        speed_kmh = parse_maxspeed_kmh(road.maxspeed) or default_speed_kmh_for_highway(road.highway)
        _add_road_edge(G, road.src, road.dst, road, length_m, speed_kmh)
        if not road.oneway:
            _add_road_edge(G, road.dst, road.src, road, length_m, speed_kmh)
    timer.stop("building road graph")

    routing = None
    if build_ch:
        timer.start("building routing graph")
        routing = build_routing_graph(G)
        timer.stop("building routing graph")
    return Map(raw.name, raw.city_name, G, routing)
