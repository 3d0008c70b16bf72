from __future__ import annotations

import json
from pathlib import Path

import pytest

from routetracker.adapters.persistence import LocalJsonScheduleRepository
from routetracker.adapters.persistence.local_json_schedule_repository import (
    TABLE_FILES,
)
from routetracker.domain.exceptions.schedule import ScheduleLoadError


def _write_tables(base: Path, **overrides) -> None:
    tables = {
        "trips.json": {
            "T1": {
                "routeId": "17",
                "serviceId": "WK",
                "shapeId": "S1",
                "directionId": 1,
                "tripHeadsign": "Broad-Erie",
                "blockId": None,
            }
        },
        "stop_times.json": {
            "T1": [
                {
                    "stopId": "B",
                    "stopSequence": 2,
                    "arrivalTime": "08:10:00",
                    "departureTime": "08:10:30",
                    "arrivalSeconds": 29400,
                    "departureSeconds": 29430,
                },
                {
                    "stopId": "A",
                    "stopSequence": 1,
                    "arrivalTime": "08:00:00",
                    "departureTime": "08:00:00",
                },
            ]
        },
        "stops.json": {
            "A": {"name": "Market St", "lat": 39.95, "lon": -75.16},
            "B": {"name": "Spring Garden", "lat": 39.96, "lon": -75.16},
            "X": {"name": "No coords", "lat": None, "lon": None},
        },
        "shapes.json": {
            "S1": [
                {"lat": 39.96, "lon": -75.16, "sequence": 3, "distTraveled": 2.0},
                {"lat": 39.95, "lon": -75.16, "sequence": 1, "distTraveled": None},
                {"lat": 39.955, "lon": -75.16, "sequence": 2},
            ]
        },
        "calendar.json": {
            "WK": {
                "monday": True,
                "tuesday": True,
                "wednesday": True,
                "thursday": True,
                "friday": True,
                "saturday": False,
                "sunday": False,
                "startDate": "20260101",
                "endDate": "20261231",
            }
        },
        "calendar_dates.json": {"WK": [{"date": "20261126", "exceptionType": 2}]},
    }
    tables.update(overrides)
    base.mkdir(parents=True, exist_ok=True)
    for name, data in tables.items():
        if data is None:
            continue
        (base / name).write_text(
            data if isinstance(data, str) else json.dumps(data), encoding="utf-8"
        )


def test_load_feed_builds_sorted_indexes(tmp_path: Path) -> None:
    _write_tables(tmp_path)

    feed = LocalJsonScheduleRepository(base_path=tmp_path).load_feed()

    trip = feed.trips_by_id["T1"]
    assert trip.route_id == "17"
    assert trip.direction_id == 1
    assert trip.headsign == "Broad-Erie"

    stop_times = feed.stop_times_by_trip["T1"]
    assert [st.stop_sequence for st in stop_times] == [1, 2]
    # Seconds are parsed when the producer left them out.
    assert stop_times[0].arrival_s == 28800
    assert stop_times[1].departure_s == 29430

    assert [p.sequence for p in feed.shapes_by_id["S1"]] == [1, 2, 3]
    assert feed.shapes_by_id["S1"][2].dist_traveled == 2.0

    assert set(feed.stops_by_id) == {"A", "B"}
    assert feed.calendars_by_service["WK"].saturday is False
    assert feed.exceptions_by_service["WK"][0].exception_type == 2


def test_load_feed_uses_env_directory(tmp_path: Path, monkeypatch) -> None:
    _write_tables(tmp_path / "gtfs")
    monkeypatch.setenv("GTFS_DATA_DIR", str(tmp_path / "gtfs"))

    feed = LocalJsonScheduleRepository().load_feed()

    assert "T1" in feed.trips_by_id


@pytest.mark.parametrize("missing", TABLE_FILES)
def test_missing_table_is_fatal(tmp_path: Path, missing: str) -> None:
    _write_tables(tmp_path, **{missing: None})

    with pytest.raises(ScheduleLoadError, match=missing):
        LocalJsonScheduleRepository(base_path=tmp_path).load_feed()


def test_unparseable_table_is_fatal(tmp_path: Path) -> None:
    _write_tables(tmp_path, **{"stops.json": "{not json"})

    with pytest.raises(ScheduleLoadError):
        LocalJsonScheduleRepository(base_path=tmp_path).load_feed()


def test_malformed_record_is_fatal(tmp_path: Path) -> None:
    _write_tables(tmp_path, **{"shapes.json": {"S1": [{"lat": 1.0}]}})

    with pytest.raises(ScheduleLoadError):
        LocalJsonScheduleRepository(base_path=tmp_path).load_feed()


def test_non_object_table_is_fatal(tmp_path: Path) -> None:
    _write_tables(tmp_path, **{"trips.json": []})

    with pytest.raises(ScheduleLoadError):
        LocalJsonScheduleRepository(base_path=tmp_path).load_feed()
