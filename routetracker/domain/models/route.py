from __future__ import annotations

from dataclasses import dataclass, field

from .geo import GeoPoint
from .stop import Stop


@dataclass(frozen=True, slots=True)
class UpcomingStop:
    """A stop the vehicle should reach within the prediction window."""

    stop: Stop
    stop_sequence: int
    arrival_time: str | None = None  # scheduled, raw GTFS string
    departure_time: str | None = None  # scheduled, raw GTFS string
    predicted_arrival_time: str | None = None  # HH:MM:SS
    arrival_delay: int | None = None  # seconds, positive = late
    is_realtime: bool = False


@dataclass(frozen=True, slots=True)
class UpcomingRoute:
    trip_id: str
    route_id: str | None = None
    headsign: str | None = None
    direction_id: int | None = None
    upcoming_stops: tuple[UpcomingStop, ...] = field(default_factory=tuple)
    # Forward path from the vehicle to the last upcoming stop (>= 2 points).
    geometry: tuple[GeoPoint, ...] | None = None
