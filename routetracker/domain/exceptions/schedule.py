class ScheduleError(Exception):
    """Base exception for static schedule failures."""


class ScheduleLoadError(ScheduleError):
    """Raised when a required static table is missing or cannot be parsed."""


class ScheduleNotLoadedError(ScheduleError):
    """Raised when the schedule is queried before it has been loaded."""
