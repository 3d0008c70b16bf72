"""Build the JSON schedule tables from a GTFS feed.

Usage:
    python -m routetracker.build_static [--url URL | --source DIR] [--out DIR]

Reads trips, stop_times, stops, shapes, calendar and (optionally)
calendar_dates, pre-parses times to seconds, sorts per-trip stop times and
per-shape points by sequence, and writes the tables
`LocalJsonScheduleRepository` loads.
"""

from __future__ import annotations

import argparse
import csv
import io
import json
import logging
import os
import sys
import tempfile
import zipfile
from pathlib import Path
from typing import Any, Iterator

import httpx

from routetracker.domain.algorithms.gtfs_time import parse_gtfs_time_to_seconds
from routetracker.logging_config import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_GTFS_URL = "https://www3.septa.org/developer/google_bus.zip"

_WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def _rows(base: Path, name: str) -> Iterator[dict[str, str]]:
    # utf-8-sig: many agencies ship a BOM on the header row.
    with (base / name).open("r", encoding="utf-8-sig", newline="") as fp:
        for row in csv.DictReader(fp):
            yield {k.strip(): (v or "").strip() for k, v in row.items() if k}


def build_trips(base: Path) -> dict[str, Any]:
    trips: dict[str, Any] = {}
    for row in _rows(base, "trips.txt"):
        trip_id = row.get("trip_id")
        if not trip_id:
            continue
        direction = row.get("direction_id")
        trips[trip_id] = {
            "routeId": row.get("route_id") or None,
            "serviceId": row.get("service_id") or None,
            "shapeId": row.get("shape_id") or None,
            "directionId": int(direction) if direction else None,
            "tripHeadsign": row.get("trip_headsign") or None,
            "blockId": row.get("block_id") or None,
        }
    return trips


def build_stop_times(base: Path) -> dict[str, list[dict[str, Any]]]:
    stop_times: dict[str, list[dict[str, Any]]] = {}
    for row in _rows(base, "stop_times.txt"):
        trip_id = row.get("trip_id")
        stop_id = row.get("stop_id")
        if not trip_id or not stop_id:
            continue
        arrival = row.get("arrival_time") or None
        departure = row.get("departure_time") or None
        stop_times.setdefault(trip_id, []).append(
            {
                "stopId": stop_id,
                "stopSequence": int(row.get("stop_sequence") or 0),
                "arrivalTime": arrival,
                "departureTime": departure,
                "arrivalSeconds": parse_gtfs_time_to_seconds(arrival),
                "departureSeconds": parse_gtfs_time_to_seconds(departure),
            }
        )

    for entries in stop_times.values():
        entries.sort(key=lambda e: e["stopSequence"])
    return stop_times


def build_stops(base: Path) -> dict[str, Any]:
    stops: dict[str, Any] = {}
    for row in _rows(base, "stops.txt"):
        stop_id = row.get("stop_id")
        if not stop_id:
            continue
        try:
            lat = float(row["stop_lat"])
            lon = float(row["stop_lon"])
        except (KeyError, ValueError):
            # Stations without coordinates cannot be drawn.
            continue
        stops[stop_id] = {"name": row.get("stop_name") or stop_id, "lat": lat, "lon": lon}
    return stops


def build_shapes(base: Path) -> dict[str, list[dict[str, Any]]]:
    shapes: dict[str, list[dict[str, Any]]] = {}
    if not (base / "shapes.txt").exists():
        logger.warning("No shapes.txt found; routes will have no geometry")
        return shapes

    for row in _rows(base, "shapes.txt"):
        shape_id = row.get("shape_id")
        if not shape_id:
            continue
        try:
            point = {
                "lat": float(row["shape_pt_lat"]),
                "lon": float(row["shape_pt_lon"]),
                "sequence": int(row.get("shape_pt_sequence") or 0),
                "distTraveled": (
                    float(row["shape_dist_traveled"])
                    if row.get("shape_dist_traveled")
                    else None
                ),
            }
        except (KeyError, ValueError):
            continue
        shapes.setdefault(shape_id, []).append(point)

    for pts in shapes.values():
        pts.sort(key=lambda p: p["sequence"])
    return shapes


def build_calendar(base: Path) -> dict[str, Any]:
    calendar: dict[str, Any] = {}
    if not (base / "calendar.txt").exists():
        logger.warning(
            "No calendar.txt found; trips of services without a calendar entry "
            "will never be predicted"
        )
        return calendar

    for row in _rows(base, "calendar.txt"):
        service_id = row.get("service_id")
        if not service_id:
            continue
        entry: dict[str, Any] = {day: row.get(day) == "1" for day in _WEEKDAYS}
        entry["startDate"] = row.get("start_date")
        entry["endDate"] = row.get("end_date")
        calendar[service_id] = entry
    return calendar


def build_calendar_dates(base: Path) -> dict[str, list[dict[str, Any]]]:
    calendar_dates: dict[str, list[dict[str, Any]]] = {}
    if not (base / "calendar_dates.txt").exists():
        logger.info("No calendar_dates.txt found, skipping")
        return calendar_dates

    for row in _rows(base, "calendar_dates.txt"):
        service_id = row.get("service_id")
        if not service_id or not row.get("date"):
            continue
        calendar_dates.setdefault(service_id, []).append(
            {"date": row["date"], "exceptionType": int(row.get("exception_type") or 0)}
        )
    return calendar_dates


def build_tables(source: Path) -> dict[str, Any]:
    return {
        "trips.json": build_trips(source),
        "stop_times.json": build_stop_times(source),
        "stops.json": build_stops(source),
        "shapes.json": build_shapes(source),
        "calendar.json": build_calendar(source),
        "calendar_dates.json": build_calendar_dates(source),
    }


def write_tables(tables: dict[str, Any], out: Path) -> None:
    out.mkdir(parents=True, exist_ok=True)
    for name, data in tables.items():
        # Write then rename so a running server never sees a half-written file.
        tmp = out / f"{name}.tmp"
        with tmp.open("w", encoding="utf-8") as fp:
            json.dump(data, fp, separators=(",", ":"))
        os.replace(tmp, out / name)
        logger.info("Wrote %s (%d entries)", out / name, len(data))


def download_and_extract(url: str, dest: Path, timeout_s: float = 120.0) -> None:
    logger.info("Downloading GTFS data from %s", url)
    with httpx.Client(timeout=timeout_s, follow_redirects=True) as client:
        resp = client.get(url)
        resp.raise_for_status()
    with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
        zf.extractall(dest)


def main(argv: list[str] | None = None) -> int:
    configure_logging()

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--url", default=None, help="GTFS zip URL (GTFS_STATIC_URL)")
    src.add_argument("--source", default=None, help="directory of extracted GTFS .txt")
    parser.add_argument(
        "--out",
        default=os.getenv("GTFS_DATA_DIR") or "data/gtfs",
        help="output directory (GTFS_DATA_DIR)",
    )
    args = parser.parse_args(argv)

    out = Path(args.out)
    try:
        if args.source:
            tables = build_tables(Path(args.source))
        else:
            url = args.url or os.getenv("GTFS_STATIC_URL") or DEFAULT_GTFS_URL
            with tempfile.TemporaryDirectory() as tmp:
                download_and_extract(url, Path(tmp))
                tables = build_tables(Path(tmp))
        write_tables(tables, out)
    except (OSError, ValueError, KeyError, zipfile.BadZipFile, httpx.HTTPError) as exc:
        logger.error("Static data build failed: %s", exc)
        return 1

    logger.info(
        "Built %d trips, %d stops, %d shapes into %s",
        len(tables["trips.json"]),
        len(tables["stops.json"]),
        len(tables["shapes.json"]),
        out,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
