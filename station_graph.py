"""Station adjacency graph built from line geometry.

Each station within STATION_MATCH_TOLERANCE_KM of a line is projected onto
the line's continuous geometry, and stations are ordered by that position.
Stations at consecutive positions are joined in both directions; each
direction keeps its own coordinate slice running from its source position
to its target position, projected points included.

Stations that land on the same position are all joined to the stations at
the previous and next positions, never to each other.
"""

import itertools
import logging
from dataclasses import dataclass, field
from types import MappingProxyType

from config import STATION_MATCH_TOLERANCE_KM, TRAIN_SPEED_KMPH, VERTEX_SNAP_KM
from geodesy import distance_km, interpolate, locate_on_line, path_length_km

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    line: str
    distance_km: float
    duration_seconds: float
    coordinates: tuple[tuple[float, float], ...]


def travel_seconds(km: float) -> float:
    return km / TRAIN_SPEED_KMPH * 3600


def make_edge(source: str, target: str, line: str, coords) -> Edge:
    """Edge over *coords*; distance follows the slice, not the chord."""
    coords = tuple(coords)
    km = path_length_km(coords)
    return Edge(source, target, line, km, travel_seconds(km), coords)


@dataclass(frozen=True)
class AdjacencyGraph:
    """Directed multigraph: normalized station name -> outgoing edges."""

    adjacency: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    def neighbors(self, station: str) -> tuple[Edge, ...]:
        return self.adjacency.get(station, ())

    def __contains__(self, station) -> bool:
        return station in self.adjacency

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.adjacency.values())


@dataclass(frozen=True, order=True)
class LinePosition:
    """Point on a line: fraction *t* of the way from vertex *index* to the next."""

    index: int
    t: float = 0.0


def place_on_line(point, coords, tolerance_km=STATION_MATCH_TOLERANCE_KM):
    """LinePosition of *point* projected onto *coords*, None beyond tolerance.

    Projections within VERTEX_SNAP_KM of a vertex land on the vertex.
    """
    index, t, d = locate_on_line(point, coords)
    if d > tolerance_km:
        return None
    if len(coords) == 1:
        return LinePosition(0)
    piece = distance_km(coords[index], coords[index + 1])
    if piece * t <= VERTEX_SNAP_KM:
        return LinePosition(index)
    if piece * (1 - t) <= VERTEX_SNAP_KM:
        return LinePosition(index + 1)
    return LinePosition(index, t)


def position_point(coords, pos: LinePosition) -> tuple[float, float]:
    if pos.t == 0:
        return tuple(coords[pos.index])
    return interpolate(coords[pos.index], coords[pos.index + 1], pos.t)


def slice_line(coords, start: LinePosition, end: LinePosition) -> tuple[tuple[float, float], ...]:
    """Coordinates from *start* to *end* (start < end), both included.

    Repeated consecutive points, as left by MultiLineString seams, are
    collapsed.
    """
    points = [position_point(coords, start)]
    points.extend(tuple(c) for c in coords[start.index + 1:end.index + 1])
    if end.t > 0:
        points.append(position_point(coords, end))
    out = [points[0]]
    for p in points[1:]:
        if p != out[-1]:
            out.append(p)
    return tuple(out)


def match_stations_along_line(line, stations) -> list[tuple[LinePosition, str]]:
    """(position, station name) pairs sorted along the line."""
    matches = []
    for station in stations:
        try:
            pos = place_on_line(station.coordinates, line.coordinates)
        except (TypeError, ValueError, IndexError):
            continue
        if pos is not None:
            matches.append((pos, station.name))
    matches.sort()
    return matches


def build_graph(topology) -> AdjacencyGraph:
    """Join stations at consecutive positions on every line of *topology*."""
    adjacency: dict[str, list[Edge]] = {}
    stations = list(topology.stations_by_name.values())

    for line in topology.lines:
        matches = match_stations_along_line(line, stations)
        groups = [(pos, [name for _, name in group])
                  for pos, group in itertools.groupby(matches, key=lambda m: m[0])]
        if len(groups) < 2:
            continue
        added = 0
        start, here = groups[0]
        for end, there in groups[1:]:
            forward = slice_line(line.coordinates, start, end)
            if len(forward) < 2 or path_length_km(forward) <= 0:
                # same point on the ground, e.g. both sides of a seam
                logger.debug(f"{line.name!r}: {here} and {there} coincide, merged")
                here = here + there
                continue
            backward = tuple(reversed(forward))
            for a in here:
                for b in there:
                    adjacency.setdefault(a, []).append(make_edge(a, b, line.name, forward))
                    adjacency.setdefault(b, []).append(make_edge(b, a, line.name, backward))
                    added += 1
            start, here = end, there
        logger.debug(f"{line.name!r}: {len(matches)} stations, {added} segments")

    graph = AdjacencyGraph(MappingProxyType({k: tuple(v) for k, v in adjacency.items()}))
    logger.info(f"Graph: {len(graph.adjacency)} connected stations, {graph.edge_count} edges")
    return graph
