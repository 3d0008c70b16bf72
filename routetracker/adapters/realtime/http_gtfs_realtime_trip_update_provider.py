from __future__ import annotations

import os
from dataclasses import dataclass

import httpx
from google.transit import gtfs_realtime_pb2

from routetracker.adapters.realtime.gtfs_realtime_http import (
    fetch_feed_message,
    parse_headers,
)
from routetracker.app.ports.output import ITripUpdateProvider
from routetracker.domain.models.realtime import StopTimePrediction, TripUpdate

DEFAULT_TRIP_UPDATES_URL = (
    "https://www3.septa.org/gtfsrt/septa-pa-us/Trip/rtTripUpdates.pb"
)


@dataclass(slots=True)
class HttpGtfsRealtimeTripUpdateProvider(ITripUpdateProvider):
    """Fetches a GTFS-Realtime TripUpdates feed over HTTP.

    Env vars:
      - GTFS_RT_TRIP_UPDATES_URL: URL to a GTFS-RT TripUpdates feed
      - GTFS_RT_HEADERS: optional headers, as 'Key:Value;Key2:Value2'
      - GTFS_RT_TIMEOUT_S: request timeout (default 10)
    """

    url: str | None = None
    headers_raw: str | None = None
    timeout_s: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        if self.url is None:
            self.url = os.getenv("GTFS_RT_TRIP_UPDATES_URL") or DEFAULT_TRIP_UPDATES_URL
        if self.headers_raw is None:
            self.headers_raw = os.getenv("GTFS_RT_HEADERS")
        if os.getenv("GTFS_RT_TIMEOUT_S"):
            self.timeout_s = float(os.environ["GTFS_RT_TIMEOUT_S"])

    async def list_trip_updates(self) -> tuple[TripUpdate, ...]:
        feed = await fetch_feed_message(
            str(self.url),
            headers=parse_headers(self.headers_raw),
            timeout_s=self.timeout_s,
            transport=self.transport,
        )
        return parse_trip_updates(feed)


def _event_time(event) -> int | None:
    # A zero timestamp is how producers leave the field effectively unset.
    if event.HasField("time") and int(event.time) > 0:
        return int(event.time)
    return None


def _event_delay(event) -> int | None:
    return int(event.delay) if event.HasField("delay") else None


def parse_trip_updates(feed: gtfs_realtime_pb2.FeedMessage) -> tuple[TripUpdate, ...]:
    out: list[TripUpdate] = []

    for ent in feed.entity:
        if not ent.HasField("trip_update"):
            continue

        tu = ent.trip_update
        trip_id = tu.trip.trip_id if tu.HasField("trip") else ""
        if not trip_id:
            continue

        predictions: list[StopTimePrediction] = []
        for stu in tu.stop_time_update:
            if not stu.HasField("stop_sequence"):
                continue

            arrival_time = arrival_delay = departure_time = departure_delay = None
            if stu.HasField("arrival"):
                arrival_time = _event_time(stu.arrival)
                arrival_delay = _event_delay(stu.arrival)
            if stu.HasField("departure"):
                departure_time = _event_time(stu.departure)
                departure_delay = _event_delay(stu.departure)

            predictions.append(
                StopTimePrediction(
                    stop_sequence=int(stu.stop_sequence),
                    stop_id=stu.stop_id or None,
                    arrival_time=arrival_time,
                    arrival_delay=arrival_delay,
                    departure_time=departure_time,
                    departure_delay=departure_delay,
                )
            )

        out.append(TripUpdate(trip_id=trip_id, predictions=tuple(predictions)))

    return tuple(out)
