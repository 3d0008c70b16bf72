from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from routetracker.app.ports.output import IScheduleRepository
from routetracker.domain.algorithms.service_calendar import is_service_active
from routetracker.domain.exceptions.schedule import ScheduleNotLoadedError
from routetracker.domain.models import (
    CalendarException,
    ScheduleFeed,
    ServiceCalendar,
    ShapePoint,
    Stop,
    StopTime,
    Trip,
)


@dataclass(slots=True)
class ScheduleStore:
    """Read-only lookups over the static schedule.

    `load()` is called once at startup; after that the feed is never
    mutated, so concurrent readers need no locking.
    """

    repository: IScheduleRepository
    _feed: ScheduleFeed | None = field(default=None, init=False, repr=False)

    def load(self) -> None:
        # Errors propagate: serving without a schedule is not an option.
        self._feed = self.repository.load_feed()

    @property
    def is_loaded(self) -> bool:
        return self._feed is not None

    @property
    def feed(self) -> ScheduleFeed:
        if self._feed is None:
            raise ScheduleNotLoadedError("Static schedule has not been loaded")
        return self._feed

    def get_trip(self, trip_id: str) -> Trip | None:
        return self.feed.trips_by_id.get(trip_id)

    def get_stop_times(self, trip_id: str) -> tuple[StopTime, ...] | None:
        return self.feed.stop_times_by_trip.get(trip_id)

    def get_stop(self, stop_id: str) -> Stop | None:
        return self.feed.stops_by_id.get(stop_id)

    def get_shape(self, shape_id: str) -> tuple[ShapePoint, ...] | None:
        return self.feed.shapes_by_id.get(shape_id)

    def get_calendar(self, service_id: str) -> ServiceCalendar | None:
        return self.feed.calendars_by_service.get(service_id)

    def get_calendar_exceptions(
        self, service_id: str
    ) -> tuple[CalendarException, ...] | None:
        return self.feed.exceptions_by_service.get(service_id)

    def is_service_active_on_date(
        self, service_id: str | None, day: date | datetime
    ) -> bool:
        if not service_id:
            return False
        return is_service_active(
            self.get_calendar(service_id),
            self.get_calendar_exceptions(service_id) or (),
            day,
        )
