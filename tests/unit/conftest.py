from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime

import pytest

from routetracker.app.services.route_predictor import RoutePredictor
from routetracker.app.services.schedule_store import ScheduleStore
from routetracker.app.services.trip_update_cache import TripUpdateCache
from routetracker.domain.models import (
    CalendarException,
    GeoPoint,
    RealtimeVehicle,
    ScheduleFeed,
    ServiceCalendar,
    ShapePoint,
    Stop,
    StopTime,
    Trip,
    TripUpdate,
)

# Friday, inside the WK service range.
FRIDAY = datetime(2026, 10, 16, 8, 5, 0)
BASE_LAT = 40.0
BASE_LON = -75.0
STEP = 0.001


def shape_lon(index: int) -> float:
    return BASE_LON + index * STEP


def _stop_time(stop_id: str, seq: int, hhmmss: str) -> StopTime:
    hh, mm, ss = (int(p) for p in hhmmss.split(":"))
    secs = hh * 3600 + mm * 60 + ss
    return StopTime(
        stop_id=stop_id,
        stop_sequence=seq,
        arrival_time=hhmmss,
        departure_time=hhmmss,
        arrival_s=secs,
        departure_s=secs,
    )


def _calendar(service_id: str, weekdays: bool) -> ServiceCalendar:
    return ServiceCalendar(
        service_id=service_id,
        monday=weekdays,
        tuesday=weekdays,
        wednesday=weekdays,
        thursday=weekdays,
        friday=weekdays,
        saturday=not weekdays,
        sunday=not weekdays,
        start_date="20260101",
        end_date="20261231",
    )


def make_feed() -> ScheduleFeed:
    """A 30-point east-west shape with stops A (index 0), B (20) and C (29)."""

    stops = {
        "A": Stop(id="A", name="Alpha", location=GeoPoint(lat=BASE_LAT, lon=shape_lon(0))),
        "B": Stop(id="B", name="Beta", location=GeoPoint(lat=BASE_LAT, lon=shape_lon(20))),
        "C": Stop(id="C", name="Gamma", location=GeoPoint(lat=BASE_LAT, lon=shape_lon(29))),
    }
    stop_times = (
        _stop_time("A", 1, "08:00:00"),
        _stop_time("B", 2, "08:10:00"),
        _stop_time("C", 3, "08:45:00"),
    )
    return ScheduleFeed(
        trips_by_id={
            "T1": Trip(
                trip_id="T1",
                route_id="R1",
                service_id="WK",
                shape_id="S1",
                direction_id=0,
                headsign="Center City",
            ),
            "T2": Trip(trip_id="T2", route_id="R1", service_id="WK", shape_id=None),
            "T3": Trip(trip_id="T3", route_id="R1", service_id="WK", shape_id="MISSING"),
            "T4": Trip(trip_id="T4", route_id="R1", service_id="WK", shape_id="S1"),
            "T5": Trip(trip_id="T5", route_id="R2", service_id="WE", shape_id="S1"),
        },
        stop_times_by_trip={
            "T1": stop_times,
            "T2": stop_times,
            "T3": stop_times,
            "T4": (),
            "T5": stop_times,
        },
        stops_by_id=stops,
        shapes_by_id={
            "S1": tuple(
                ShapePoint(lat=BASE_LAT, lon=shape_lon(i), sequence=i + 1)
                for i in range(30)
            ),
        },
        calendars_by_service={
            "WK": _calendar("WK", weekdays=True),
            "WE": _calendar("WE", weekdays=False),
        },
        exceptions_by_service={
            "WK": (
                CalendarException(date="20261012", exception_type=2),
                CalendarException(date="20270105", exception_type=1),
            ),
            "WE": (CalendarException(date="20261014", exception_type=1),),
        },
    )


@dataclass(slots=True)
class FakeScheduleRepository:
    feed: ScheduleFeed

    def load_feed(self) -> ScheduleFeed:
        return self.feed


@dataclass(slots=True)
class FakeTripUpdateProvider:
    updates: tuple[TripUpdate, ...] = ()
    error: Exception | None = None
    calls: int = 0

    async def list_trip_updates(self) -> tuple[TripUpdate, ...]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.updates


@dataclass(slots=True)
class FakeVehicleProvider:
    vehicles: tuple[RealtimeVehicle, ...] = ()
    error: Exception | None = None

    async def list_vehicles(self) -> tuple[RealtimeVehicle, ...]:
        if self.error is not None:
            raise self.error
        return self.vehicles


@pytest.fixture
def feed() -> ScheduleFeed:
    return make_feed()


@pytest.fixture
def schedule(feed: ScheduleFeed) -> ScheduleStore:
    store = ScheduleStore(repository=FakeScheduleRepository(feed))
    store.load()
    return store


@pytest.fixture
def trip_update_provider() -> FakeTripUpdateProvider:
    return FakeTripUpdateProvider()


@pytest.fixture
def trip_updates(trip_update_provider: FakeTripUpdateProvider) -> TripUpdateCache:
    return TripUpdateCache(provider=trip_update_provider)


@pytest.fixture
def load_predictions(
    trip_update_provider: FakeTripUpdateProvider, trip_updates: TripUpdateCache
):
    """Refresh the cache with the given trip updates."""

    def _load(*updates: TripUpdate) -> None:
        trip_update_provider.updates = tuple(updates)
        trip_update_provider.error = None
        assert asyncio.run(trip_updates.refresh()) is True

    return _load


@pytest.fixture
def predictor(schedule: ScheduleStore, trip_updates: TripUpdateCache) -> RoutePredictor:
    return RoutePredictor(schedule=schedule, trip_updates=trip_updates)


@pytest.fixture
def vehicle_provider() -> FakeVehicleProvider:
    return FakeVehicleProvider()


@pytest.fixture
def friday_morning() -> datetime:
    return FRIDAY
