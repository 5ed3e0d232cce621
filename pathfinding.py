"""Fastest route between two stations (Dijkstra on travel seconds).

Transfers between lines are free; the only cost is time on the train.
"""

import heapq
import itertools
import logging
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class SearchTimeout(Exception):
    """The search ran past the caller's time budget."""


@dataclass(frozen=True)
class StationStop:
    name: str  # normalized key
    display_name: str
    coordinates: tuple[float, float]


@dataclass(frozen=True)
class PathSegment:
    from_station: str
    to_station: str
    line: str
    distance_km: float
    duration_seconds: float
    coordinates: tuple[tuple[float, float], ...]


@dataclass(frozen=True)
class PathResult:
    segments: tuple[PathSegment, ...]
    stations: tuple[StationStop, ...]
    total_distance_km: float
    total_duration_seconds: float

    def to_dict(self) -> dict:
        """Plain JSON-ready form, coordinates as [lon, lat] lists."""
        return {
            "segments": [
                {
                    "from": s.from_station,
                    "to": s.to_station,
                    "line": s.line,
                    "distance_km": s.distance_km,
                    "duration_seconds": s.duration_seconds,
                    "coords": [list(c) for c in s.coordinates],
                }
                for s in self.segments
            ],
            "total_distance_km": self.total_distance_km,
            "total_duration_seconds": self.total_duration_seconds,
            "stations": [
                {"name": st.name, "coords": list(st.coordinates)} for st in self.stations
            ],
        }


def _stop(topology, name: str) -> StationStop:
    station = topology.stations_by_name[name]
    return StationStop(name, station.display_name, station.coordinates)


def shortest_path(graph, topology, start: str, end: str, timeout=None):
    """Return a PathResult from *start* to *end* (normalized names), or None.

    None means either endpoint is unknown or *end* is unreachable from
    *start*; disconnected networks are expected.  With *timeout* (seconds)
    set, SearchTimeout is raised once the budget is spent.
    """
    if start not in topology.stations_by_name or end not in topology.stations_by_name:
        logger.info(f"Unknown station in query {start!r} -> {end!r}")
        return None
    if start == end:
        return PathResult((), (_stop(topology, start),), 0.0, 0.0)

    deadline = time.monotonic() + timeout if timeout is not None else None
    durations = {start: 0.0}
    previous = {}  # station -> edge used to reach it
    counter = itertools.count()
    queue = [(0.0, next(counter), start)]

    while queue:
        if deadline is not None and time.monotonic() > deadline:
            raise SearchTimeout(f"No route {start!r} -> {end!r} within {timeout}s")
        current_duration, _, current = heapq.heappop(queue)
        if current_duration != durations.get(current):
            continue  # stale entry
        if current == end:
            break
        for edge in graph.neighbors(current):
            candidate = current_duration + edge.duration_seconds
            if candidate < durations.get(edge.target, float("inf")):
                durations[edge.target] = candidate
                previous[edge.target] = edge
                heapq.heappush(queue, (candidate, next(counter), edge.target))

    if end not in previous:
        logger.info(f"No path between {start!r} and {end!r}")
        return None

    edges = []
    cursor = end
    while cursor != start:
        edge = previous[cursor]
        edges.append(edge)
        cursor = edge.source
    edges.reverse()

    segments = tuple(
        PathSegment(e.source, e.target, e.line, e.distance_km, e.duration_seconds, e.coordinates)
        for e in edges
    )
    stations = (_stop(topology, start),) + tuple(_stop(topology, e.target) for e in edges)
    return PathResult(
        segments=segments,
        stations=stations,
        total_distance_km=sum(s.distance_km for s in segments),
        total_duration_seconds=sum(s.duration_seconds for s in segments),
    )
