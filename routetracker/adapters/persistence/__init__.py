from .local_json_schedule_repository import LocalJsonScheduleRepository

__all__ = [
    "LocalJsonScheduleRepository",
]
