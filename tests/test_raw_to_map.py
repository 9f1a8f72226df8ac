"""
Raw map -> map contract: the map is saved to its canonical path and only
selected maps get a city manifest.
"""
import networkx as nx
import numpy as np
import pytest

from importer import artifacts, paths
from importer.map_model import (
    City,
    Map,
    RawMap,
    RawRoad,
    create_from_raw,
    forward_csr,
    great_circle_m,
    parse_maxspeed_kmh,
    reverse_csr,
)
from importer.raw_to_map import raw_to_map
from importer.timer import Timer


def tiny_raw(name: str = "montlake") -> RawMap:
    return RawMap(
        name=name,
        city_name="seattle",
        intersections={
            1: (-122.30, 47.64),
            2: (-122.30, 47.65),
            3: (-122.29, 47.65),
        },
        roads=[
            RawRoad(src=1, dst=2, highway="residential", name="Boyer Ave"),
            RawRoad(src=2, dst=3, highway="primary", maxspeed="30 mph", oneway=True),
            RawRoad(src=3, dst=99, highway="service"),  # dangling, dropped
        ],
    )


@pytest.fixture
def saved_raw(data_root):
    def _save(name: str = "montlake") -> RawMap:
        raw = tiny_raw(name)
        artifacts.write_binary(paths.path_raw_map(name), raw)
        return raw
    return _save


class TestCreateFromRaw:
    def test_graph_shape(self):
        m = create_from_raw(tiny_raw(), False, Timer("t"))

        assert m.get_name() == "montlake"
        assert m.get_city_name() == "seattle"
        # two-way residential + one-way primary
        assert m.graph.number_of_edges() == 3
        assert m.routing is None

    def test_routing_graph(self):
        m = create_from_raw(tiny_raw(), True, Timer("t"))

        r = m.routing
        assert r.num_nodes == 3
        assert r.indices.shape[0] == 3
        assert r.indptr_rev[-1] == r.indptr[-1]
        assert np.all(r.w_sec > 0)

    def test_edge_length_is_great_circle(self):
        m = create_from_raw(tiny_raw(), False, Timer("t"))

        # 0.01 degrees of latitude
        assert m.graph[1][2][0]["length"] == pytest.approx(1111.95, rel=1e-3)
        assert great_circle_m((-122.30, 47.64), (-122.30, 47.64)) == 0.0

    def test_maxspeed_parsing(self):
        assert parse_maxspeed_kmh("50") == 50.0
        assert parse_maxspeed_kmh("30 mph") == pytest.approx(48.28, rel=1e-3)
        assert parse_maxspeed_kmh("30;45") == 30.0
        assert parse_maxspeed_kmh("signals") is None
        assert parse_maxspeed_kmh(None) is None


class TestForwardCsr:
    def test_rows_sorted_and_weights_in_whole_seconds(self):
        G = nx.MultiDiGraph()
        G.add_nodes_from(["a", "b", "c"])
        G.add_edge("a", "c", travel_time=2.1)
        G.add_edge("a", "b", travel_time=0.4)
        G.add_edge("c", "a", travel_time=float("inf"))
        G.add_edge("b", "c")  # no travel time, left out

        nodes, indptr, indices, w_sec = forward_csr(G)

        assert list(nodes) == ["a", "b", "c"]
        assert list(indptr) == [0, 2, 2, 3]
        assert list(indices) == [1, 2, 0]
        assert list(w_sec) == [1, 3, 65534]
        assert w_sec.dtype == np.uint16


class TestReverseCsr:
    def test_transpose(self):
        # 0->1 (5s), 0->2 (7s), 2->1 (3s)
        indptr = np.array([0, 2, 2, 3], dtype=np.int64)
        indices = np.array([1, 2, 1], dtype=np.int32)
        w = np.array([5, 7, 3], dtype=np.uint16)

        indptr_rev, indices_rev, w_rev = reverse_csr(indptr, indices, w)

        assert list(indptr_rev) == [0, 0, 2, 3]
        assert sorted(zip(indices_rev[0:2].tolist(), w_rev[0:2].tolist())) == [(0, 5), (2, 3)]
        assert (int(indices_rev[2]), int(w_rev[2])) == (0, 7)


class TestRawToMap:
    def test_saves_and_returns_map(self, data_root, saved_raw):
        saved_raw()

        m = raw_to_map("montlake", True, Timer("t"))

        saved = artifacts.read_binary(paths.path_map("montlake"))
        assert isinstance(saved, Map)
        assert saved.graph.number_of_edges() == m.graph.number_of_edges()
        assert not (data_root / "system" / "cities").exists()

    def test_default_manifest_map(self, data_root, saved_raw):
        saved_raw("huge_seattle")

        raw_to_map("huge_seattle", False, Timer("t"))

        city = artifacts.read_binary(paths.path_city("seattle"))
        assert isinstance(city, City)
        assert city.maps == ["huge_seattle"]
        assert city.num_intersections == 3
        min_lon, min_lat, max_lon, max_lat = city.boundary
        assert (min_lon, max_lat) == (-122.30, 47.65)

    def test_manifest_maps_from_env(self, data_root, saved_raw, monkeypatch):
        monkeypatch.setenv("IMPORTER_CITY_MANIFEST_MAPS", "montlake, ballard")
        saved_raw()

        raw_to_map("montlake", False, Timer("t"))

        assert (data_root / "system" / "cities" / "seattle.bin").exists()

    def test_manifest_predicate(self, data_root, saved_raw):
        saved_raw()

        raw_to_map("montlake", False, Timer("t"), manifest_maps=lambda m: m.get_city_name() == "seattle")

        assert (data_root / "system" / "cities" / "seattle.bin").exists()

    def test_custom_builder(self, data_root, saved_raw):
        saved_raw()
        seen = []

        def builder(raw, build_ch, timer):
            seen.append((raw.name, build_ch))
            return create_from_raw(raw, build_ch, timer)

        raw_to_map("montlake", False, Timer("t"), builder=builder, manifest_maps=[])

        assert seen == [("montlake", False)]

    def test_missing_raw_map(self, data_root):
        with pytest.raises(FileNotFoundError):
            raw_to_map("nowhere", False, Timer("t"))
