"""Distance helpers over GeoJSON [lon, lat] coordinates.

Great-circle distances use the haversine formula on a spherical Earth.
Point-to-line distances project the line into a local kilometre grid
centred on the point and let shapely measure against the continuous
path, so a station beside a long straight segment still counts as close.
"""

import math

from shapely.geometry import LineString, Point

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = EARTH_RADIUS_KM * math.pi / 180


def haversine_km(lat1, lon1, lat2, lon2):
    """Return the great-circle distance in km between two points."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(a, b) -> float:
    """Great-circle distance between two [lon, lat] positions."""
    return haversine_km(a[1], a[0], b[1], b[0])


def path_length_km(coords) -> float:
    """Sum of great-circle distances between consecutive positions."""
    return sum(distance_km(coords[i], coords[i + 1]) for i in range(len(coords) - 1))


def _project_local(point, coords):
    """*coords* as (x, y) km offsets from *point* on a local flat grid."""
    if not coords:
        raise ValueError("line has no coordinates")
    lon0, lat0 = float(point[0]), float(point[1])
    kx = KM_PER_DEGREE * math.cos(math.radians(lat0))
    return [
        ((float(lon) - lon0) * kx, (float(lat) - lat0) * KM_PER_DEGREE)
        for lon, lat, *_ in coords
    ]


def point_to_line_distance_km(point, coords) -> float:
    """Shortest distance in km from *point* to the polyline *coords*.

    Raises ValueError for an empty polyline and TypeError/ValueError for
    positions that are not numeric pairs.
    """
    projected = _project_local(point, coords)
    origin = Point(0.0, 0.0)
    if len(projected) == 1:
        return origin.distance(Point(projected[0]))
    return origin.distance(LineString(projected))


def locate_on_line(point, coords) -> tuple[int, float, float]:
    """Closest position to *point* on the continuous polyline *coords*.

    Returns ``(index, t, distance_km)``: the position lies on the piece
    from ``coords[index]`` to ``coords[index + 1]`` at fraction ``t``.
    Raises like point_to_line_distance_km.
    """
    projected = _project_local(point, coords)
    origin = Point(0.0, 0.0)
    if len(projected) == 1:
        return 0, 0.0, origin.distance(Point(projected[0]))

    line = LineString(projected)
    along = line.project(origin)
    walked = 0.0
    last = len(projected) - 2
    for i in range(last + 1):
        (ax, ay), (bx, by) = projected[i], projected[i + 1]
        piece = math.hypot(bx - ax, by - ay)
        if along <= walked + piece or i == last:
            t = (along - walked) / piece if piece > 0 else 0.0
            return i, max(0.0, min(1.0, t)), origin.distance(line)
        walked += piece


def interpolate(a, b, ratio: float) -> tuple[float, float]:
    """Linear interpolation between two [lon, lat] positions."""
    ratio = max(0.0, min(1.0, ratio))
    return (a[0] + (b[0] - a[0]) * ratio, a[1] + (b[1] - a[1]) * ratio)
