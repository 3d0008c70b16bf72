from __future__ import annotations

from typing import Any, Iterable

from routetracker.domain.models import (
    RealtimeVehicle,
    TrackedVehicle,
    UpcomingRoute,
)
from routetracker.domain.models.snapshot import (
    FeatureCollection,
    frozen_feature_collection,
)


def feature_collection(features: Iterable[dict[str, Any]]) -> FeatureCollection:
    return frozen_feature_collection(features)


def vehicle_feature(
    tracked: TrackedVehicle, vehicle: RealtimeVehicle
) -> dict[str, Any]:
    properties: dict[str, Any] = {
        "vehicleId": tracked.vehicle_id,
        "color": tracked.color,
        "routeId": vehicle.route_id,
        "tripId": vehicle.trip_id,
        "directionId": vehicle.direction_id,
        "bearing": vehicle.bearing,
        "speed": vehicle.speed_mps,
        "timestamp": vehicle.timestamp.isoformat() if vehicle.timestamp else None,
    }
    if tracked.label:
        properties["label"] = tracked.label

    return {
        "type": "Feature",
        "properties": properties,
        "geometry": {"type": "Point", "coordinates": [vehicle.lon, vehicle.lat]},
    }


def route_features(
    tracked: TrackedVehicle, route: UpcomingRoute
) -> list[dict[str, Any]]:
    """One `type=route` line (when there is geometry) then one `type=stop` per stop."""

    features: list[dict[str, Any]] = []

    if route.geometry:
        features.append(
            {
                "type": "Feature",
                "properties": {
                    "type": "route",
                    "vehicleId": tracked.vehicle_id,
                    "color": tracked.color,
                    "tripId": route.trip_id,
                    "routeId": route.route_id,
                    "headsign": route.headsign,
                },
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[p.lon, p.lat] for p in route.geometry],
                },
            }
        )

    for s in route.upcoming_stops:
        features.append(
            {
                "type": "Feature",
                "properties": {
                    "type": "stop",
                    "vehicleId": tracked.vehicle_id,
                    "color": tracked.color,
                    "stopId": s.stop.id,
                    "name": s.stop.name,
                    "arrivalTime": s.arrival_time,
                    "departureTime": s.departure_time,
                    "predictedArrivalTime": s.predicted_arrival_time,
                    "arrivalDelay": s.arrival_delay,
                    "isRealTime": s.is_realtime,
                    "stopSequence": s.stop_sequence,
                },
                "geometry": {
                    "type": "Point",
                    "coordinates": [s.stop.location.lon, s.stop.location.lat],
                },
            }
        )

    return features
