from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from routetracker.domain.algorithms.gtfs_time import date_key
from routetracker.domain.models.gtfs import (
    CalendarException,
    ExceptionType,
    ServiceCalendar,
)


def is_service_active(
    calendar: ServiceCalendar | None,
    exceptions: Iterable[CalendarException],
    day: date | datetime,
) -> bool:
    """Decide whether a service runs on `day`.

    The calendar range bounds everything: a date outside
    [start_date, end_date] is inactive even if an exception adds it. Inside
    the range, an exception for the date wins over the weekday pattern.
    """

    if calendar is None:
        return False

    key = date_key(day)
    # YYYYMMDD strings compare correctly as text.
    if key < calendar.start_date or key > calendar.end_date:
        return False

    for exc in exceptions:
        if exc.date == key:
            return exc.exception_type == ExceptionType.ADDED

    return calendar.runs_on_weekday(day.weekday())
