from __future__ import annotations

import os
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from fastapi import Request

from routetracker.adapters.persistence import LocalJsonScheduleRepository
from routetracker.adapters.realtime.http_gtfs_realtime_trip_update_provider import (
    HttpGtfsRealtimeTripUpdateProvider,
)
from routetracker.adapters.realtime.http_gtfs_realtime_vehicle_provider import (
    HttpGtfsRealtimeVehicleProvider,
)
from routetracker.app.services.position_reconciler import (
    DEFAULT_PRIMARY_VEHICLE_IDS,
    PositionReconciler,
    parse_prefix_quotas,
    parse_vehicle_allow_list,
)
from routetracker.app.services.route_predictor import RoutePredictor
from routetracker.app.services.schedule_store import ScheduleStore
from routetracker.app.services.snapshot_store import SnapshotStore
from routetracker.app.services.trip_update_cache import TripUpdateCache
from routetracker.poller import RealtimePoller


@dataclass(slots=True)
class Runtime:
    """Process-wide services shared by the poller and the API."""

    schedule: ScheduleStore
    trip_updates: TripUpdateCache
    snapshots: SnapshotStore
    reconciler: PositionReconciler
    poller: RealtimePoller


def clock_from_env() -> Callable[[], datetime]:
    tz_name = (os.getenv("AGENCY_TIMEZONE") or "").strip()
    if not tz_name:
        return datetime.now
    tz = ZoneInfo(tz_name)
    return lambda: datetime.now(tz)


def build_runtime() -> Runtime:
    schedule = ScheduleStore(repository=LocalJsonScheduleRepository())
    trip_updates = TripUpdateCache(provider=HttpGtfsRealtimeTripUpdateProvider())
    snapshots = SnapshotStore()

    seed = os.getenv("SAMPLE_SEED")
    reconciler = PositionReconciler(
        vehicle_provider=HttpGtfsRealtimeVehicleProvider(),
        trip_updates=trip_updates,
        predictor=RoutePredictor(schedule=schedule, trip_updates=trip_updates),
        snapshots=snapshots,
        primary=parse_vehicle_allow_list(
            os.getenv("PRIMARY_VEHICLE_IDS") or ",".join(DEFAULT_PRIMARY_VEHICLE_IDS)
        ),
        sample_prefix_quotas=parse_prefix_quotas(os.getenv("SAMPLE_PREFIX_QUOTAS")),
        rng=random.Random(int(seed)) if seed else random.Random(),
        clock=clock_from_env(),
    )
    if os.getenv("SAMPLE_SIZE"):
        reconciler.sample_size = int(os.environ["SAMPLE_SIZE"])

    return Runtime(
        schedule=schedule,
        trip_updates=trip_updates,
        snapshots=snapshots,
        reconciler=reconciler,
        poller=RealtimePoller(reconciler=reconciler),
    )


def get_runtime(request: Request) -> Runtime:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise RuntimeError("Service is not initialised")
    return runtime


def get_snapshot_store(request: Request) -> SnapshotStore:
    return get_runtime(request).snapshots
