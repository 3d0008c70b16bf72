from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from routetracker.app.services.schedule_store import ScheduleStore
from routetracker.app.services.trip_update_cache import TripUpdateCache
from routetracker.domain.algorithms.geo_utils import nearest_point_index
from routetracker.domain.algorithms.gtfs_time import (
    format_seconds_hhmmss,
    format_timestamp_hhmmss,
    seconds_of_day,
    timestamp_to_local,
)
from routetracker.domain.models import (
    GeoPoint,
    ShapePoint,
    StopTime,
    StopTimePrediction,
    Trip,
    UpcomingRoute,
    UpcomingStop,
)

DEFAULT_WINDOW_S = 30 * 60
DEFAULT_LOOKBACK_S = 60


@dataclass(frozen=True, slots=True)
class EffectiveArrival:
    seconds: int
    predicted_time: str | None = None
    delay_s: int | None = None
    is_realtime: bool = False


def effective_arrival(
    scheduled_s: int, prediction: StopTimePrediction | None, now: datetime
) -> EffectiveArrival:
    """Blend a scheduled arrival with its realtime prediction, if any.

    An absolute timestamp wins; a delay alone shifts the scheduled time. The
    departure event is used only when the prediction has no arrival data.
    """

    if prediction is None:
        return EffectiveArrival(seconds=scheduled_s)

    event_time, event_delay = prediction.arrival_time, prediction.arrival_delay
    if event_time is None and event_delay is None:
        event_time, event_delay = prediction.departure_time, prediction.departure_delay
    if event_time is None and event_delay is None:
        return EffectiveArrival(seconds=scheduled_s)

    if event_time is not None:
        return EffectiveArrival(
            seconds=seconds_of_day(timestamp_to_local(event_time, now)),
            predicted_time=format_timestamp_hhmmss(event_time, now),
            delay_s=event_delay,
            is_realtime=True,
        )

    shifted = scheduled_s + int(event_delay)  # type: ignore[arg-type]
    return EffectiveArrival(
        seconds=shifted,
        predicted_time=format_seconds_hhmmss(shifted),
        delay_s=event_delay,
        is_realtime=True,
    )


def forward_path(
    shape: Sequence[ShapePoint], start_index: int, end_index: int
) -> tuple[GeoPoint, ...] | None:
    """Shape points from the vehicle's index to the target index, inclusive.

    Nothing is returned once the vehicle is past the target, or when the
    slice is too short to draw a line.
    """

    if start_index > end_index:
        return None
    segment = shape[start_index : end_index + 1]
    if len(segment) < 2:
        return None
    return tuple(GeoPoint(lat=p.lat, lon=p.lon) for p in segment)


@dataclass(slots=True)
class RoutePredictor:
    """Projects a live vehicle onto its scheduled trip.

    Produces the stops expected within `window_s` seconds (plus a short
    `lookback_s` so the stop being approached is not dropped the moment its
    time passes) and the stretch of shape the vehicle will drive to reach
    the last of them.
    """

    schedule: ScheduleStore
    trip_updates: TripUpdateCache
    window_s: int = DEFAULT_WINDOW_S
    lookback_s: int = DEFAULT_LOOKBACK_S

    def predict_upcoming_route(
        self,
        trip_id: str,
        vehicle_lat: float | None,
        vehicle_lon: float | None,
        now: datetime,
    ) -> UpcomingRoute | None:
        trip = self.schedule.get_trip(trip_id)
        if trip is None:
            return None

        if not self.schedule.is_service_active_on_date(trip.service_id, now):
            return None

        stop_times = self.schedule.get_stop_times(trip_id)
        if not stop_times:
            return None

        upcoming = self.upcoming_stops(trip_id, stop_times, now)
        geometry = self.route_geometry(
            trip, upcoming, GeoPoint.maybe(vehicle_lat, vehicle_lon)
        )

        return UpcomingRoute(
            trip_id=trip_id,
            route_id=trip.route_id,
            headsign=trip.headsign,
            direction_id=trip.direction_id,
            upcoming_stops=upcoming,
            geometry=geometry,
        )

    def upcoming_stops(
        self, trip_id: str, stop_times: Sequence[StopTime], now: datetime
    ) -> tuple[UpcomingStop, ...]:
        now_s = seconds_of_day(now)
        window_start = now_s - self.lookback_s
        window_end = now_s + self.window_s

        out: list[UpcomingStop] = []
        for st in stop_times:
            if st.arrival_s is None:
                continue

            arrival = effective_arrival(
                st.arrival_s,
                self.trip_updates.get_prediction(trip_id, st.stop_sequence),
                now,
            )
            if not (window_start <= arrival.seconds <= window_end):
                continue

            stop = self.schedule.get_stop(st.stop_id)
            if stop is None:
                continue

            out.append(
                UpcomingStop(
                    stop=stop,
                    stop_sequence=st.stop_sequence,
                    arrival_time=st.arrival_time,
                    departure_time=st.departure_time,
                    predicted_arrival_time=arrival.predicted_time,
                    arrival_delay=arrival.delay_s,
                    is_realtime=arrival.is_realtime,
                )
            )
        return tuple(out)

    def route_geometry(
        self,
        trip: Trip,
        upcoming: Sequence[UpcomingStop],
        vehicle: GeoPoint | None,
    ) -> tuple[GeoPoint, ...] | None:
        if not trip.shape_id or vehicle is None:
            return None

        shape = self.schedule.get_shape(trip.shape_id)
        if not shape:
            return None

        start_index = nearest_point_index(shape, vehicle)
        if upcoming:
            end_index = nearest_point_index(shape, upcoming[-1].stop.location)
        else:
            end_index = len(shape) - 1

        if start_index is None or end_index is None:
            return None
        return forward_path(shape, start_index, end_index)
