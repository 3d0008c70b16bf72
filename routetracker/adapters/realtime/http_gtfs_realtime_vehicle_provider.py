from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx
from google.transit import gtfs_realtime_pb2

from routetracker.adapters.realtime.gtfs_realtime_http import (
    fetch_feed_message,
    parse_headers,
)
from routetracker.app.ports.output import IRealtimeVehicleProvider
from routetracker.domain.models.realtime import RealtimeVehicle

DEFAULT_VEHICLE_POSITIONS_URL = (
    "https://www3.septa.org/gtfsrt/septa-pa-us/Vehicle/rtVehiclePosition.pb"
)


@dataclass(slots=True)
class HttpGtfsRealtimeVehicleProvider(IRealtimeVehicleProvider):
    """Fetches a GTFS-Realtime VehiclePositions feed over HTTP.

    Env vars:
      - GTFS_RT_VEHICLE_POSITIONS_URL: URL to a GTFS-RT VehiclePositions feed
      - GTFS_RT_HEADERS: optional headers, as 'Key:Value;Key2:Value2'
      - GTFS_RT_TIMEOUT_S: request timeout (default 10)
    """

    url: str | None = None
    headers_raw: str | None = None
    timeout_s: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        if self.url is None:
            self.url = (
                os.getenv("GTFS_RT_VEHICLE_POSITIONS_URL")
                or DEFAULT_VEHICLE_POSITIONS_URL
            )
        if self.headers_raw is None:
            self.headers_raw = os.getenv("GTFS_RT_HEADERS")
        if os.getenv("GTFS_RT_TIMEOUT_S"):
            self.timeout_s = float(os.environ["GTFS_RT_TIMEOUT_S"])

    async def list_vehicles(self) -> tuple[RealtimeVehicle, ...]:
        feed = await fetch_feed_message(
            str(self.url),
            headers=parse_headers(self.headers_raw),
            timeout_s=self.timeout_s,
            transport=self.transport,
        )
        return parse_vehicle_positions(feed)


def parse_vehicle_positions(
    feed: gtfs_realtime_pb2.FeedMessage,
) -> tuple[RealtimeVehicle, ...]:
    out: list[RealtimeVehicle] = []

    for ent in feed.entity:
        if not ent.HasField("vehicle"):
            continue

        v = ent.vehicle

        lat = lon = bearing = speed = None
        if v.HasField("position"):
            pos = v.position
            lat = float(pos.latitude)
            lon = float(pos.longitude)
            bearing = float(pos.bearing) if pos.HasField("bearing") else None
            speed = float(pos.speed) if pos.HasField("speed") else None

        trip_id = route_id = start_time = start_date = None
        direction_id = None
        if v.HasField("trip"):
            trip = v.trip
            trip_id = trip.trip_id or None
            route_id = trip.route_id or None
            start_time = trip.start_time or None
            start_date = trip.start_date or None
            if trip.HasField("direction_id"):
                direction_id = int(trip.direction_id)

        vehicle_id = None
        if v.HasField("vehicle"):
            vehicle_id = v.vehicle.id or None

        timestamp = None
        if v.HasField("timestamp") and int(v.timestamp) > 0:
            timestamp = datetime.fromtimestamp(int(v.timestamp), tz=timezone.utc)

        out.append(
            RealtimeVehicle(
                vehicle_id=vehicle_id,
                trip_id=trip_id,
                route_id=route_id,
                lat=lat,
                lon=lon,
                bearing=bearing,
                speed_mps=speed,
                timestamp=timestamp,
                stop_id=v.stop_id or None,
                direction_id=direction_id,
                start_time=start_time,
                start_date=start_date,
            )
        )

    return tuple(out)
