from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class RealtimeVehicle:
    """One decoded VehiclePosition entity. Any field may be missing upstream."""

    vehicle_id: str | None
    trip_id: str | None
    route_id: str | None
    lat: float | None = None
    lon: float | None = None
    bearing: float | None = None
    speed_mps: float | None = None
    timestamp: datetime | None = None
    stop_id: str | None = None
    direction_id: int | None = None
    start_time: str | None = None
    start_date: str | None = None


@dataclass(frozen=True, slots=True)
class StopTimePrediction:
    """Realtime info for one stop of one trip, keyed by stop_sequence.

    Times are POSIX timestamps; delays are seconds (positive = late).
    """

    stop_sequence: int
    stop_id: str | None = None
    arrival_time: int | None = None
    arrival_delay: int | None = None
    departure_time: int | None = None
    departure_delay: int | None = None

    @property
    def has_data(self) -> bool:
        return any(
            v is not None
            for v in (
                self.arrival_time,
                self.arrival_delay,
                self.departure_time,
                self.departure_delay,
            )
        )


@dataclass(frozen=True, slots=True)
class TripUpdate:
    trip_id: str
    predictions: tuple[StopTimePrediction, ...]
