"""Query interface over one transit network snapshot.

    repo = NetworkRepository()
    path = await repo.compute_shortest_path_between_stations("NS17", "Bayfront")

The repository owns its snapshot: the first ``load()`` runs the fetcher in
a worker thread, concurrent callers share that one in-flight load, and the
derived topology and graph are built at most once per snapshot.  Create a
fresh repository (or call ``reload()``) to pick up a different snapshot.
"""

import asyncio
import logging

from network_loader import default_fetcher
from pathfinding import shortest_path
from station_graph import build_graph
from topology import build_topology, normalize_name

logger = logging.getLogger(__name__)


class NetworkRepository:
    """Cached snapshot plus the station queries the game UI needs."""

    def __init__(self, fetcher=default_fetcher):
        self.fetcher = fetcher
        self._snapshot = None
        self._pending = None
        self._topology = None
        self._graph = None

    async def load(self):
        """Return the snapshot, fetching it on first use only.

        Raises LoadError when the fetcher does; nothing is cached then.
        """
        if self._snapshot is not None:
            return self._snapshot
        if self._pending is None:
            self._pending = asyncio.ensure_future(asyncio.to_thread(self.fetcher))
        task = self._pending
        try:
            snapshot = await asyncio.shield(task)
        except Exception:
            # failed loads are not cached; the next call fetches again
            if self._pending is task:
                self._pending = None
            raise
        # a reload() during the fetch orphans this task; don't cache its result
        if self._pending is task:
            self._snapshot = snapshot
            self._pending = None
        return snapshot

    def reload(self) -> None:
        """Forget the snapshot and everything derived from it."""
        self._snapshot = None
        self._pending = None
        self._topology = None
        self._graph = None

    async def topology(self):
        await self.load()
        if self._topology is None:
            self._topology = build_topology(self._snapshot)
        return self._topology

    async def graph(self):
        topology = await self.topology()
        if self._graph is None:
            self._graph = build_graph(topology)
        return self._graph

    # ── Station queries ──────────────────────────────────────────────

    async def get_line_names_for_station_name(self, name) -> list[str]:
        if not name:
            return []
        topology = await self.topology()
        return topology.line_names_for(name)

    async def are_stations_on_same_line(self, a, b) -> bool:
        if not a or not b:
            return False
        topology = await self.topology()
        return topology.share_line(a, b)

    async def find_station_by_name(self, name):
        if not name:
            return None
        topology = await self.topology()
        return topology.station_by_name(name)

    async def find_station_by_code(self, code):
        if not code:
            return None
        topology = await self.topology()
        return topology.station_by_code(code)

    async def find_nearest_station_by_coordinates(self, point):
        """Closest station to a [lon, lat] point, None for an empty network."""
        topology = await self.topology()
        return topology.nearest_station(point)

    # ── Routing ──────────────────────────────────────────────────────

    async def compute_shortest_path_between_stations(self, origin, destination, timeout=None):
        """Fastest path between two stations given by code or by name."""
        topology = await self.topology()
        start = topology.resolve(origin)
        end = topology.resolve(destination)
        if start is None or end is None:
            logger.info(f"Cannot resolve {origin!r} -> {destination!r}")
            return None
        logger.debug(f"Routing {start.name!r} -> {end.name!r}")
        return shortest_path(await self.graph(), topology, start.name, end.name, timeout=timeout)

    async def compute_shortest_path_between_station_names(self, origin, destination, timeout=None):
        if not origin or not destination:
            return None
        graph = await self.graph()
        return shortest_path(graph, await self.topology(), normalize_name(origin),
                             normalize_name(destination), timeout=timeout)
