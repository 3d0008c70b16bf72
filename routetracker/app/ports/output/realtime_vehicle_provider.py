from __future__ import annotations

from abc import ABC, abstractmethod

from routetracker.domain.models.realtime import RealtimeVehicle


class IRealtimeVehicleProvider(ABC):
    """Port for obtaining realtime vehicle positions (e.g., via GTFS-Realtime)."""

    @abstractmethod
    async def list_vehicles(self) -> tuple[RealtimeVehicle, ...]:
        """Fetch the current feed; raise FeedError if it cannot be used."""
