import unittest
from pathlib import Path

from geodesy import path_length_km
from network_loader import parse_network
from pathfinding import PathResult, SearchTimeout, shortest_path
from station_graph import build_graph
from topology import build_topology

FIXTURE = Path(__file__).parent / "fixtures" / "sample_network.geojson"


def _station(name, lon, lat):
    return {"type": "Feature", "geometry": {"type": "Point", "coordinates": [lon, lat]},
            "properties": {"name": name, "stop_type": "station"}}


def _line(name, coords):
    return {"type": "Feature", "geometry": {"type": "LineString", "coordinates": coords},
            "properties": {"name": name}}


# A-B-C along a straight Main Line, a Loop Line on from C to D, and a
# Scenic Line that joins A to D directly but twice as far.
TRIANGLE = [
    _station("A", 0.0, 0.0), _station("B", 0.02, 0.0), _station("C", 0.04, 0.0),
    _station("D", 0.04, 0.04),
    _line("Main Line", [[0.0, 0.0], [0.02, 0.0], [0.04, 0.0]]),
    _line("Loop Line", [[0.04, 0.0], [0.04, 0.04]]),
    _line("Scenic Line", [[0.0, 0.0], [0.0, 0.08], [0.04, 0.08], [0.04, 0.04]]),
    _station("Island", 5.0, 5.0), _station("Islet", 5.02, 5.0),
    _line("Ferry", [[5.0, 5.0], [5.02, 5.0]]),
]


class TestShortestPath(unittest.TestCase):
    def setUp(self):
        self.topo = build_topology(parse_network({"type": "FeatureCollection", "features": TRIANGLE}))
        self.graph = build_graph(self.topo)

    def test_single_hop(self):
        result = shortest_path(self.graph, self.topo, "a", "b")
        self.assertEqual([(s.from_station, s.to_station, s.line) for s in result.segments], [("a", "b", "Main Line")])
        self.assertEqual([st.name for st in result.stations], ["a", "b"])

    def test_transfer_beats_scenic_route(self):
        result = shortest_path(self.graph, self.topo, "a", "d")
        self.assertEqual([s.line for s in result.segments], ["Main Line", "Main Line", "Loop Line"])
        self.assertEqual([st.name for st in result.stations], ["a", "b", "c", "d"])

    def test_totals_are_sums_of_segments(self):
        result = shortest_path(self.graph, self.topo, "a", "d")
        self.assertAlmostEqual(result.total_distance_km, sum(s.distance_km for s in result.segments))
        self.assertAlmostEqual(result.total_duration_seconds, result.total_distance_km * 3600 / 30)

    def test_segment_slices_run_source_to_target(self):
        result = shortest_path(self.graph, self.topo, "d", "a")
        for seg in result.segments:
            src = self.topo.stations_by_name[seg.from_station].coordinates
            dst = self.topo.stations_by_name[seg.to_station].coordinates
            self.assertEqual(seg.coordinates[0], src)
            self.assertEqual(seg.coordinates[-1], dst)
            self.assertAlmostEqual(seg.distance_km, path_length_km(seg.coordinates))

    def test_disconnected_returns_none(self):
        self.assertIsNone(shortest_path(self.graph, self.topo, "a", "island"))

    def test_unknown_station_returns_none(self):
        self.assertIsNone(shortest_path(self.graph, self.topo, "a", "atlantis"))
        self.assertIsNone(shortest_path(self.graph, self.topo, "atlantis", "a"))

    def test_same_station_is_an_empty_trip(self):
        result = shortest_path(self.graph, self.topo, "b", "b")
        self.assertEqual(result.segments, ())
        self.assertEqual([st.name for st in result.stations], ["b"])
        self.assertEqual(result.total_distance_km, 0.0)

    def test_results_are_independent(self):
        first = shortest_path(self.graph, self.topo, "a", "d")
        second = shortest_path(self.graph, self.topo, "a", "d")
        self.assertEqual(first, second)
        self.assertIsNot(first, second)

    def test_timeout(self):
        with self.assertRaises(SearchTimeout):
            shortest_path(self.graph, self.topo, "a", "d", timeout=-1)

    def test_to_dict(self):
        data = shortest_path(self.graph, self.topo, "a", "b").to_dict()
        self.assertEqual(data["segments"][0]["from"], "a")
        self.assertEqual(data["segments"][0]["coords"], [[0.0, 0.0], [0.02, 0.0]])
        self.assertEqual(data["stations"][-1], {"name": "b", "coords": [0.02, 0.0]})
        self.assertEqual(data["total_duration_seconds"], data["segments"][0]["duration_seconds"])


class TestSampleNetworkRoutes(unittest.TestCase):
    def setUp(self):
        self.topo = build_topology(parse_network(FIXTURE.read_text()))
        self.graph = build_graph(self.topo)

    def _check(self, result: PathResult):
        self.assertIsNotNone(result)
        self.assertGreaterEqual(len(result.segments), 1)
        self.assertGreater(result.total_distance_km, 0)
        self.assertGreater(result.total_duration_seconds, 0)
        for seg in result.segments:
            self.assertGreaterEqual(len(seg.coordinates), 2)
            self.assertGreater(seg.distance_km, 0)

    def test_same_line(self):
        result = shortest_path(self.graph, self.topo, "bishan", "ang mo kio")
        self._check(result)
        self.assertEqual(len(result.segments), 1)
        self.assertEqual(result.segments[0].line, "North South Line")

    def test_transfer(self):
        result = shortest_path(self.graph, self.topo, "aljunied", "ang mo kio")
        self._check(result)
        self.assertGreater(len(result.stations), 1)
        self.assertGreaterEqual(len({s.line for s in result.segments}), 2)
        self.assertEqual(result.stations[0].name, "aljunied")
        self.assertEqual(result.stations[-1].name, "ang mo kio")

    def test_island_line_unreachable(self):
        self.assertIsNone(shortest_path(self.graph, self.topo, "bishan", "imbiah"))

    def test_code_only_station_unreachable(self):
        self.assertIsNone(shortest_path(self.graph, self.topo, "mount pleasant", "woodlands"))


if __name__ == "__main__":
    unittest.main()
