from __future__ import annotations

from abc import ABC, abstractmethod

from routetracker.domain.models.realtime import TripUpdate


class ITripUpdateProvider(ABC):
    """Port for obtaining realtime trip updates (stop-level predictions)."""

    @abstractmethod
    async def list_trip_updates(self) -> tuple[TripUpdate, ...]:
        """Fetch the current feed; raise FeedError if it cannot be used."""
