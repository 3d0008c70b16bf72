from .realtime_vehicle_provider import IRealtimeVehicleProvider
from .schedule_repository import IScheduleRepository
from .trip_update_provider import ITripUpdateProvider

__all__ = [
    "IRealtimeVehicleProvider",
    "IScheduleRepository",
    "ITripUpdateProvider",
]
