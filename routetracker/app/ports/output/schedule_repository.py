from __future__ import annotations

from abc import ABC, abstractmethod

from routetracker.domain.models.gtfs import ScheduleFeed


class IScheduleRepository(ABC):
    """Port for loading the static schedule into an in-memory feed."""

    @abstractmethod
    def load_feed(self) -> ScheduleFeed:
        """Load every static table; raise ScheduleLoadError if one is unusable."""
