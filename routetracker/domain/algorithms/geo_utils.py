from __future__ import annotations

import math
from typing import Protocol, Sequence

EARTH_RADIUS_M = 6371000.0


class LatLon(Protocol):
    @property
    def lat(self) -> float: ...

    @property
    def lon(self) -> float: ...


def haversine_distance_m(a: LatLon, b: LatLon) -> float:
    """Great-circle distance in meters."""

    lat1 = math.radians(a.lat)
    lon1 = math.radians(a.lon)
    lat2 = math.radians(b.lat)
    lon2 = math.radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    s = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_M * math.asin(math.sqrt(s))


def nearest_point_index(points: Sequence[LatLon], target: LatLon) -> int | None:
    """Index of the point closest to `target` by great-circle distance.

    Ties resolve to the lowest index. Returns None for an empty sequence.
    """

    best_i: int | None = None
    best_d = float("inf")
    # Linear scan is fine for shape sizes seen in bus feeds.
    for i, p in enumerate(points):
        d = haversine_distance_m(target, p)
        if d < best_d:
            best_d = d
            best_i = i
    return best_i
