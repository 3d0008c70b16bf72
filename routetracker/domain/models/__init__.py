from .geo import GeoPoint
from .gtfs import (
    CalendarException,
    ScheduleFeed,
    ServiceCalendar,
    ShapePoint,
    StopTime,
    Trip,
)
from .realtime import RealtimeVehicle, StopTimePrediction, TripUpdate
from .route import UpcomingRoute, UpcomingStop
from .snapshot import RouteSnapshot, TrackedGroup, TrackedVehicle
from .stop import Stop

__all__ = [
    "CalendarException",
    "GeoPoint",
    "RealtimeVehicle",
    "RouteSnapshot",
    "ScheduleFeed",
    "ServiceCalendar",
    "ShapePoint",
    "Stop",
    "StopTime",
    "StopTimePrediction",
    "TrackedGroup",
    "TrackedVehicle",
    "Trip",
    "TripUpdate",
    "UpcomingRoute",
    "UpcomingStop",
]
