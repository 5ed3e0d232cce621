"""Derive stations, lines and station-line membership from a snapshot.

Membership is not in the source data; it is inferred per (line, station)
pair by trying MEMBERSHIP_STRATEGIES in order:

  proximity   — the station lies within STATION_MATCH_TOLERANCE_KM of the
                line's continuous geometry.
  code_prefix — one of the station's codes (e.g. "NS17" -> "NS") maps
                through LINE_CODE_PATTERNS to a pattern the line's display
                name matches.

Both are best-effort.  Stations may end up on no line at all, which is
valid: they stay searchable by name/code but have no route.

Names collide last-write-wins: when two station features normalize to the
same name the later feature in the collection owns the name (and any
shared code), so the result depends on feature order.
"""

import logging
import re
from dataclasses import dataclass, field

from config import LINE_CODE_PATTERNS, STATION_MATCH_TOLERANCE_KM
from geodesy import distance_km, point_to_line_distance_km

logger = logging.getLogger(__name__)

_CODE_PATTERNS = {
    prefix: re.compile(pattern, re.IGNORECASE)
    for prefix, pattern in LINE_CODE_PATTERNS.items()
}


def normalize_name(name) -> str:
    """Case, whitespace and punctuation-insensitive station key."""
    if not name:
        return ""
    n = re.sub(r"\s+", " ", str(name).lower())
    n = re.sub(r"[.\-'/]", "", n)
    return n.strip()


def normalize_code(code) -> str:
    return str(code or "").strip().upper()


def split_codes(raw) -> tuple[str, ...]:
    """Split dash-separated codes: 'NS17-CC15' -> ('NS17', 'CC15')."""
    if not raw:
        return ()
    return tuple(c for c in (normalize_code(part) for part in str(raw).split("-")) if c)


@dataclass(frozen=True)
class Station:
    name: str  # normalized key
    display_name: str
    coordinates: tuple[float, float]  # (lon, lat)
    codes: tuple[str, ...] = ()
    network: str = ""


@dataclass(frozen=True)
class Line:
    index: int  # position in the feature collection, the only unique handle
    name: str  # display name, may be empty or shared with other lines
    coordinates: tuple[tuple[float, float], ...]
    network: str = ""


def _coerce_position(value):
    """Return (lon, lat) floats or None for anything malformed."""
    try:
        lon, lat = float(value[0]), float(value[1])
    except (TypeError, ValueError, IndexError):
        return None
    if not (-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0):
        return None
    return lon, lat


def station_from_feature(feature):
    """Build a Station from a point feature, or None if unusable."""
    props = feature.get("properties") or {}
    display_name = props.get("name:en") or props.get("name") or ""
    name = normalize_name(display_name)
    coords = _coerce_position((feature.get("geometry") or {}).get("coordinates"))
    if coords is None:
        logger.warning(f"Skipping station {display_name!r}: malformed coordinates")
        return None
    return Station(
        name=name,
        display_name=display_name,
        coordinates=coords,
        codes=split_codes(props.get("station_codes")),
        network=props.get("network") or "",
    )


def line_from_feature(index: int, feature) -> Line:
    """Build a Line, flattening MultiLineString parts by concatenation.

    The parts are joined end to start as they come, so there may be a jump
    at each seam.
    """
    props = feature.get("properties") or {}
    geometry = feature.get("geometry") or {}
    raw = geometry.get("coordinates") or []
    if geometry.get("type") == "MultiLineString":
        raw = [pos for part in raw if isinstance(part, list) for pos in part]

    coords = []
    dropped = 0
    for pos in raw:
        p = _coerce_position(pos)
        if p is None:
            dropped += 1
        else:
            coords.append(p)
    name = props.get("name") or props.get("network") or ""
    if dropped:
        logger.warning(f"Line {name!r}: dropped {dropped} malformed coordinates")
    return Line(index=index, name=name, coordinates=tuple(coords), network=props.get("network") or "")


# ── Membership strategies ────────────────────────────────────────────

def matches_by_proximity(station: Station, line: Line) -> bool:
    try:
        d = point_to_line_distance_km(station.coordinates, line.coordinates)
    except (TypeError, ValueError) as e:
        logger.debug(f"Distance from {station.name!r} to line {line.name!r} failed: {e}")
        return False
    return d <= STATION_MATCH_TOLERANCE_KM


def matches_by_code_prefix(station: Station, line: Line) -> bool:
    for code in station.codes:
        matcher = _CODE_PATTERNS.get(re.sub(r"[0-9]", "", code))
        if matcher and matcher.search(line.name or ""):
            return True
    return False


MEMBERSHIP_STRATEGIES = (
    ("proximity", matches_by_proximity),
    ("code_prefix", matches_by_code_prefix),
)


def match_strategy(station: Station, line: Line):
    """Name of the first strategy placing *station* on *line*, else None."""
    for strategy_name, strategy in MEMBERSHIP_STRATEGIES:
        if strategy(station, line):
            return strategy_name
    return None


@dataclass
class Topology:
    """Station indices and inferred memberships for one snapshot.

    Treat as read-only once built.
    """

    stations: list[Station] = field(default_factory=list)
    lines: list[Line] = field(default_factory=list)
    stations_by_name: dict[str, Station] = field(default_factory=dict)
    stations_by_code: dict[str, Station] = field(default_factory=dict)
    # normalized station name -> line names, in discovery order
    station_lines: dict[str, dict[str, None]] = field(default_factory=dict)

    def station_by_name(self, name):
        return self.stations_by_name.get(normalize_name(name))

    def station_by_code(self, code):
        return self.stations_by_code.get(normalize_code(code))

    def resolve(self, name_or_code):
        """Code lookup first, then normalized name."""
        if not name_or_code:
            return None
        return self.station_by_code(name_or_code) or self.station_by_name(name_or_code)

    def line_names_for(self, name) -> list[str]:
        return list(self.station_lines.get(normalize_name(name), ()))

    def share_line(self, a, b) -> bool:
        la = self.station_lines.get(normalize_name(a))
        lb = self.station_lines.get(normalize_name(b))
        if not la or not lb:
            return False
        return any(line in lb for line in la)

    def nearest_station(self, point):
        """Closest station feature to a [lon, lat] point by great-circle distance."""
        best, best_d = None, float("inf")
        for station in self.stations:
            d = distance_km(point, station.coordinates)
            if d < best_d:
                best, best_d = station, d
        return best


def build_topology(snapshot) -> Topology:
    """Index stations and infer which lines serve each of them."""
    topo = Topology()

    for feature in snapshot.station_features:
        station = station_from_feature(feature)
        if station is None:
            continue
        topo.stations.append(station)
        if station.name:
            topo.stations_by_name[station.name] = station
        for code in station.codes:
            topo.stations_by_code[code] = station
        topo.station_lines.setdefault(station.name, {})

    for index, feature in enumerate(snapshot.line_features):
        line = line_from_feature(index, feature)
        topo.lines.append(line)
        if not line.coordinates:
            logger.warning(f"Line {line.name!r} has no usable coordinates")
        for station in topo.stations:
            strategy = match_strategy(station, line)
            if strategy is None:
                continue
            topo.station_lines.setdefault(station.name, {})[line.name] = None
            logger.debug(f"{station.display_name!r} on {line.name!r} via {strategy}")

    unplaced = [name for name, lines in topo.station_lines.items() if not lines]
    if unplaced:
        logger.debug(f"{len(unplaced)} stations matched no line: {', '.join(sorted(unplaced))}")
    logger.info(
        f"Topology: {len(topo.stations_by_name)} stations, {len(topo.stations_by_code)} codes, "
        f"{len(topo.lines)} lines"
    )
    return topo
