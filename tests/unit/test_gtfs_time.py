from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from routetracker.domain.algorithms.gtfs_time import (
    date_key,
    format_seconds_hhmmss,
    format_timestamp_hhmmss,
    parse_gtfs_time_to_seconds,
    seconds_of_day,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("08:10:00", 29400),
        ("8:10:00", 29400),
        ("25:30:15", 91815),
        ("", None),
        (None, None),
        ("08:10", None),
        ("aa:bb:cc", None),
    ],
)
def test_parse_gtfs_time_to_seconds(raw, expected) -> None:
    assert parse_gtfs_time_to_seconds(raw) == expected


def test_format_seconds_wraps_past_midnight() -> None:
    assert format_seconds_hhmmss(29520) == "08:12:00"
    assert format_seconds_hhmmss(91815) == "01:30:15"
    assert format_seconds_hhmmss(-60) == "23:59:00"


def test_seconds_of_day() -> None:
    assert seconds_of_day(datetime(2026, 10, 16, 8, 5, 7)) == 29107


def test_format_timestamp_uses_timezone_of_reference() -> None:
    ts = int(datetime(2026, 10, 16, 12, 15, 0, tzinfo=timezone.utc).timestamp())
    ref = datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)
    assert format_timestamp_hhmmss(ts, ref) == "12:15:00"


def test_date_key() -> None:
    assert date_key(date(2026, 3, 7)) == "20260307"
    assert date_key(datetime(2026, 12, 31, 23, 59)) == "20261231"
