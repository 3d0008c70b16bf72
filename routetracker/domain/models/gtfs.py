from __future__ import annotations

from dataclasses import dataclass, field

from .stop import Stop


@dataclass(frozen=True, slots=True)
class Trip:
    trip_id: str
    route_id: str | None = None
    service_id: str | None = None
    shape_id: str | None = None
    direction_id: int | None = None
    headsign: str | None = None
    block_id: str | None = None


@dataclass(frozen=True, slots=True)
class StopTime:
    """A trip's visit to one stop.

    `arrival_s`/`departure_s` are seconds since service day midnight (GTFS time
    semantics; may exceed 24h). They are None when the raw value was blank.
    """

    stop_id: str
    stop_sequence: int
    arrival_time: str | None = None
    departure_time: str | None = None
    arrival_s: int | None = None
    departure_s: int | None = None


@dataclass(frozen=True, slots=True)
class ShapePoint:
    lat: float
    lon: float
    sequence: int
    dist_traveled: float | None = None


@dataclass(frozen=True, slots=True)
class ServiceCalendar:
    service_id: str
    monday: bool
    tuesday: bool
    wednesday: bool
    thursday: bool
    friday: bool
    saturday: bool
    sunday: bool
    start_date: str  # YYYYMMDD
    end_date: str  # YYYYMMDD

    def runs_on_weekday(self, weekday: int) -> bool:
        """`weekday` follows `date.weekday()`: Monday is 0."""

        return (
            self.monday,
            self.tuesday,
            self.wednesday,
            self.thursday,
            self.friday,
            self.saturday,
            self.sunday,
        )[weekday]


class ExceptionType:
    ADDED = 1
    REMOVED = 2


@dataclass(frozen=True, slots=True)
class CalendarException:
    date: str  # YYYYMMDD
    exception_type: int


@dataclass(frozen=True, slots=True)
class ScheduleFeed:
    """In-memory representation of the static schedule needed for prediction.

    Stop times and shape points are sorted ascending by sequence.
    """

    trips_by_id: dict[str, Trip]
    stop_times_by_trip: dict[str, tuple[StopTime, ...]]
    stops_by_id: dict[str, Stop]
    shapes_by_id: dict[str, tuple[ShapePoint, ...]]
    calendars_by_service: dict[str, ServiceCalendar] = field(default_factory=dict)
    exceptions_by_service: dict[str, tuple[CalendarException, ...]] = field(
        default_factory=dict
    )
