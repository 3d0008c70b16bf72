from __future__ import annotations

from datetime import date, datetime

SECONDS_PER_DAY = 24 * 3600


def parse_gtfs_time_to_seconds(raw: str | None) -> int | None:
    """Parse GTFS `HH:MM:SS` (HH possibly >= 24) to seconds; None if blank/invalid."""

    if not raw or not raw.strip():
        return None
    parts = raw.strip().split(":")
    if len(parts) != 3:
        return None
    try:
        hh, mm, ss = (int(p) for p in parts)
    except ValueError:
        return None
    return hh * 3600 + mm * 60 + ss


def seconds_of_day(moment: datetime) -> int:
    return moment.hour * 3600 + moment.minute * 60 + moment.second


def format_seconds_hhmmss(seconds: int) -> str:
    """Format seconds as a wall-clock `HH:MM:SS`, wrapping past midnight."""

    seconds = seconds % SECONDS_PER_DAY
    return f"{seconds // 3600:02d}:{(seconds % 3600) // 60:02d}:{seconds % 60:02d}"


def format_timestamp_hhmmss(timestamp: int, like: datetime) -> str:
    """Format a POSIX timestamp as `HH:MM:SS` in the timezone of `like`."""

    return timestamp_to_local(timestamp, like).strftime("%H:%M:%S")


def timestamp_to_local(timestamp: int, like: datetime) -> datetime:
    # Naive `like` means system local time, matching datetime.now().
    return datetime.fromtimestamp(int(timestamp), tz=like.tzinfo)


def date_key(day: date | datetime) -> str:
    return f"{day.year:04d}{day.month:02d}{day.day:02d}"
