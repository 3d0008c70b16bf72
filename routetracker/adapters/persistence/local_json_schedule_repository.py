from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from routetracker.app.ports.output import IScheduleRepository
from routetracker.domain.algorithms.gtfs_time import parse_gtfs_time_to_seconds
from routetracker.domain.exceptions.schedule import ScheduleLoadError
from routetracker.domain.models import (
    CalendarException,
    GeoPoint,
    ScheduleFeed,
    ServiceCalendar,
    ShapePoint,
    Stop,
    StopTime,
    Trip,
)

logger = logging.getLogger(__name__)

TABLE_FILES = (
    "trips.json",
    "stop_times.json",
    "stops.json",
    "shapes.json",
    "calendar.json",
    "calendar_dates.json",
)

_WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _opt_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _opt_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


@dataclass(slots=True)
class LocalJsonScheduleRepository(IScheduleRepository):
    """Loads the pre-processed static schedule from a directory of JSON tables.

    The tables are produced by `routetracker.build_static`. Every table is
    required; a missing or malformed file raises ScheduleLoadError.

    Env vars:
      - GTFS_DATA_DIR: directory containing the six JSON tables
    """

    base_path: str | Path | None = None

    def _base(self) -> Path:
        value = self.base_path or os.getenv("GTFS_DATA_DIR") or "data/gtfs"
        return Path(value)

    def _read_table(self, name: str) -> dict[str, Any]:
        path = self._base() / name
        try:
            with path.open("r", encoding="utf-8") as fp:
                data = json.load(fp)
        except FileNotFoundError as exc:
            raise ScheduleLoadError(f"Missing static table: {path}") from exc
        except (OSError, ValueError) as exc:
            raise ScheduleLoadError(f"Unreadable static table {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ScheduleLoadError(f"Static table {path} must be a JSON object")
        return data

    def load_feed(self) -> ScheduleFeed:
        base = self._base()
        logger.info("Loading static schedule from %s", base)

        raw = {name: self._read_table(name) for name in TABLE_FILES}

        try:
            feed = ScheduleFeed(
                trips_by_id=_build_trips(raw["trips.json"]),
                stop_times_by_trip=_build_stop_times(raw["stop_times.json"]),
                stops_by_id=_build_stops(raw["stops.json"]),
                shapes_by_id=_build_shapes(raw["shapes.json"]),
                calendars_by_service=_build_calendars(raw["calendar.json"]),
                exceptions_by_service=_build_exceptions(raw["calendar_dates.json"]),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ScheduleLoadError(f"Malformed static schedule in {base}: {exc}") from exc

        logger.info(
            "Loaded %d trips, %d stops, %d shapes, %d services",
            len(feed.trips_by_id),
            len(feed.stops_by_id),
            len(feed.shapes_by_id),
            len(feed.calendars_by_service),
        )
        return feed


def _build_trips(table: dict[str, Any]) -> dict[str, Trip]:
    trips: dict[str, Trip] = {}
    for trip_id, row in table.items():
        trips[trip_id] = Trip(
            trip_id=trip_id,
            route_id=_opt_str(row.get("routeId")),
            service_id=_opt_str(row.get("serviceId")),
            shape_id=_opt_str(row.get("shapeId")),
            direction_id=_opt_int(row.get("directionId")),
            headsign=_opt_str(row.get("tripHeadsign")),
            block_id=_opt_str(row.get("blockId")),
        )
    return trips


def _build_stop_times(table: dict[str, Any]) -> dict[str, tuple[StopTime, ...]]:
    out: dict[str, tuple[StopTime, ...]] = {}
    for trip_id, rows in table.items():
        entries: list[StopTime] = []
        for row in rows:
            arrival = _opt_str(row.get("arrivalTime"))
            departure = _opt_str(row.get("departureTime"))
            arrival_s = row.get("arrivalSeconds")
            departure_s = row.get("departureSeconds")
            entries.append(
                StopTime(
                    stop_id=str(row["stopId"]),
                    stop_sequence=int(row["stopSequence"]),
                    arrival_time=arrival,
                    departure_time=departure,
                    arrival_s=(
                        int(arrival_s)
                        if arrival_s is not None
                        else parse_gtfs_time_to_seconds(arrival)
                    ),
                    departure_s=(
                        int(departure_s)
                        if departure_s is not None
                        else parse_gtfs_time_to_seconds(departure)
                    ),
                )
            )
        entries.sort(key=lambda st: st.stop_sequence)
        out[trip_id] = tuple(entries)
    return out


def _build_stops(table: dict[str, Any]) -> dict[str, Stop]:
    stops: dict[str, Stop] = {}
    skipped = 0
    for stop_id, row in table.items():
        location = GeoPoint.maybe(_opt_float(row.get("lat")), _opt_float(row.get("lon")))
        if location is None:
            skipped += 1
            continue
        stops[stop_id] = Stop(
            id=stop_id,
            name=_opt_str(row.get("name")) or stop_id,
            location=location,
        )
    if skipped:
        logger.warning("Skipped %d stops without usable coordinates", skipped)
    return stops


def _build_shapes(table: dict[str, Any]) -> dict[str, tuple[ShapePoint, ...]]:
    shapes: dict[str, tuple[ShapePoint, ...]] = {}
    for shape_id, rows in table.items():
        pts = [
            ShapePoint(
                lat=float(row["lat"]),
                lon=float(row["lon"]),
                sequence=int(row["sequence"]),
                dist_traveled=_opt_float(row.get("distTraveled")),
            )
            for row in rows
        ]
        pts.sort(key=lambda p: p.sequence)
        shapes[shape_id] = tuple(pts)
    return shapes


def _build_calendars(table: dict[str, Any]) -> dict[str, ServiceCalendar]:
    calendars: dict[str, ServiceCalendar] = {}
    for service_id, row in table.items():
        flags = {day: bool(row.get(day)) for day in _WEEKDAYS}
        calendars[service_id] = ServiceCalendar(
            service_id=service_id,
            start_date=str(row["startDate"]),
            end_date=str(row["endDate"]),
            **flags,
        )
    return calendars


def _build_exceptions(
    table: dict[str, Any],
) -> dict[str, tuple[CalendarException, ...]]:
    return {
        service_id: tuple(
            CalendarException(
                date=str(row["date"]), exception_type=int(row["exceptionType"])
            )
            for row in rows
        )
        for service_id, rows in table.items()
    }
