from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from routetracker.app.ports.output import IRealtimeVehicleProvider
from routetracker.app.services.geojson_features import (
    feature_collection,
    route_features,
    vehicle_feature,
)
from routetracker.app.services.route_predictor import RoutePredictor
from routetracker.app.services.snapshot_store import SnapshotStore
from routetracker.app.services.trip_update_cache import TripUpdateCache
from routetracker.domain.exceptions.feeds import FeedError
from routetracker.domain.models import (
    GeoPoint,
    RealtimeVehicle,
    RouteSnapshot,
    TrackedGroup,
    TrackedVehicle,
)

logger = logging.getLogger(__name__)

PALETTE = (
    "#e53935",  # red
    "#43a047",  # green
    "#1e88e5",  # blue
    "#fdd835",  # gold
    "#8e24aa",  # purple
    "#00897b",  # teal
    "#f4511e",  # deep orange
    "#c2185b",  # pink
)

# Decorated holiday buses.
DEFAULT_PRIMARY_VEHICLE_IDS = (
    "3090",
    "3410",
    "3069",
    "3019",
    "3125",
    "3817",
    "3364",
    "3160",
)

DEFAULT_SAMPLE_SIZE = 8


def color_for_index(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def tracked_group(
    vehicle_ids: Iterable[str], labels: Mapping[str, str] | None = None
) -> tuple[TrackedVehicle, ...]:
    """Assign palette colors by position in the group, cycling."""

    labels = labels or {}
    return tuple(
        TrackedVehicle(vehicle_id=vid, color=color_for_index(i), label=labels.get(vid))
        for i, vid in enumerate(vehicle_ids)
    )


def parse_vehicle_allow_list(raw: str | None) -> tuple[TrackedVehicle, ...]:
    """Parse 'id' or 'id=Label' entries separated by commas; duplicates dropped."""

    ids: list[str] = []
    labels: dict[str, str] = {}
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        vid, _, label = part.partition("=")
        vid = vid.strip()
        if not vid or vid in ids:
            continue
        ids.append(vid)
        if label.strip():
            labels[vid] = label.strip()
    return tracked_group(ids, labels)


def parse_prefix_quotas(raw: str | None) -> dict[str, int]:
    """Parse 'prefix:count;prefix2:count2' into a quota mapping."""

    quotas: dict[str, int] = {}
    for part in (raw or "").split(";"):
        part = part.strip()
        if not part or ":" not in part:
            continue
        prefix, count = part.split(":", 1)
        quotas[prefix.strip()] = int(count)
    return quotas


def has_fix(vehicle: RealtimeVehicle) -> bool:
    return GeoPoint.maybe(vehicle.lat, vehicle.lon) is not None


@dataclass(slots=True)
class PositionReconciler:
    """Runs one polling cycle and publishes per-group snapshots.

    The primary group is a fixed allow-list. The sample group is drawn once
    from vehicles currently running a predictable trip and then kept for
    the lifetime of the process.
    """

    vehicle_provider: IRealtimeVehicleProvider
    trip_updates: TripUpdateCache
    predictor: RoutePredictor
    snapshots: SnapshotStore
    primary: tuple[TrackedVehicle, ...] = ()
    sample_size: int = DEFAULT_SAMPLE_SIZE
    sample_prefix_quotas: dict[str, int] = field(default_factory=dict)
    rng: random.Random = field(default_factory=random.Random)
    clock: Callable[[], datetime] = datetime.now
    _sample: tuple[TrackedVehicle, ...] | None = field(default=None, init=False)
    _generation: int = field(default=0, init=False)

    @property
    def sample(self) -> tuple[TrackedVehicle, ...]:
        return self._sample or ()

    def members(self, group: TrackedGroup) -> tuple[TrackedVehicle, ...]:
        if group is TrackedGroup.PRIMARY:
            return self.primary
        return self.sample

    async def _fetch_vehicles(self) -> tuple[RealtimeVehicle, ...] | None:
        try:
            return await self.vehicle_provider.list_vehicles()
        except FeedError as exc:
            logger.warning("Vehicle positions unavailable: %s", exc)
        except Exception:
            logger.exception("Unexpected error fetching vehicle positions")
        return None

    async def select_sample_group(
        self, now: datetime | None = None
    ) -> tuple[TrackedVehicle, ...] | None:
        """Pick the sample group from the live feed; None if the feed is down."""

        vehicles = await self._fetch_vehicles()
        if vehicles is None:
            return None
        self._sample = self._draw_sample(vehicles, now or self.clock())
        return self._sample

    def _draw_sample(
        self, vehicles: Iterable[RealtimeVehicle], now: datetime
    ) -> tuple[TrackedVehicle, ...]:
        primary_ids = {t.vehicle_id for t in self.primary}

        candidates: set[str] = set()
        for v in vehicles:
            if not v.vehicle_id or v.vehicle_id in primary_ids:
                continue
            if not v.trip_id or not has_fix(v):
                continue
            route = self._predict(v, now)
            if route is not None and route.upcoming_stops:
                candidates.add(v.vehicle_id)

        # Sorted so a seeded rng gives a reproducible draw.
        pool = sorted(candidates)
        limit = max(0, self.sample_size)
        chosen: list[str] = []
        if self.sample_prefix_quotas:
            for prefix, quota in self.sample_prefix_quotas.items():
                # Each vehicle is drawn at most once across overlapping prefixes.
                matching = [
                    vid for vid in pool if vid.startswith(prefix) and vid not in chosen
                ]
                take = min(max(0, quota), len(matching), limit - len(chosen))
                if take > 0:
                    chosen.extend(self.rng.sample(matching, take))
        else:
            chosen = self.rng.sample(pool, min(limit, len(pool)))

        sample = tracked_group(chosen)
        logger.info(
            "Selected %d sample vehicles from %d candidates: %s",
            len(sample),
            len(pool),
            ", ".join(t.vehicle_id for t in sample),
        )
        return sample

    def _predict(self, vehicle: RealtimeVehicle, now: datetime):
        try:
            return self.predictor.predict_upcoming_route(
                str(vehicle.trip_id), vehicle.lat, vehicle.lon, now
            )
        except Exception:
            logger.exception(
                "Prediction failed for vehicle %s on trip %s",
                vehicle.vehicle_id,
                vehicle.trip_id,
            )
            return None

    async def run_cycle(self, now: datetime | None = None) -> bool:
        """Refresh both feeds, reconcile, publish. Returns True if published."""

        _, vehicles = await asyncio.gather(
            self.trip_updates.refresh(), self._fetch_vehicles()
        )
        if vehicles is None:
            return False

        now = now or self.clock()
        if self._sample is None:
            self._sample = self._draw_sample(vehicles, now)

        by_id: dict[str, RealtimeVehicle] = {}
        for v in vehicles:
            if v.vehicle_id:
                by_id[v.vehicle_id] = v

        self._generation += 1
        snapshots = {
            group: self._build_snapshot(group, by_id, now, self._generation)
            for group in TrackedGroup
        }
        published = self.snapshots.publish(snapshots)

        logger.info(
            "Cycle %d: %s",
            self._generation,
            ", ".join(
                f"{g.value}={len(s.buses['features'])} buses/"
                f"{len(s.routes['features'])} route features"
                for g, s in snapshots.items()
            ),
        )
        return published

    def _build_snapshot(
        self,
        group: TrackedGroup,
        by_id: Mapping[str, RealtimeVehicle],
        now: datetime,
        generation: int,
    ) -> RouteSnapshot:
        buses: list[dict[str, Any]] = []
        routes: list[dict[str, Any]] = []

        for tracked in self.members(group):
            vehicle = by_id.get(tracked.vehicle_id)
            if vehicle is None or not has_fix(vehicle):
                continue

            buses.append(vehicle_feature(tracked, vehicle))

            if not vehicle.trip_id:
                continue
            route = self._predict(vehicle, now)
            if route is None:
                continue
            routes.extend(route_features(tracked, route))

        return RouteSnapshot(
            group=group,
            generation=generation,
            generated_at=now,
            buses=feature_collection(buses),
            routes=feature_collection(routes),
        )
