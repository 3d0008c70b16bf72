from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import httpx
import pytest

from routetracker.adapters.api.dependencies import get_runtime, get_snapshot_store
from routetracker.app.services.snapshot_store import SnapshotStore
from routetracker.domain.models import RouteSnapshot, TrackedGroup
from routetracker.main import app


def _bus(vehicle_id: str) -> dict:
    return {
        "type": "Feature",
        "properties": {"vehicleId": vehicle_id, "color": "#e53935"},
        "geometry": {"type": "Point", "coordinates": [-75.1, 40.0]},
    }


def _store() -> SnapshotStore:
    store = SnapshotStore()
    store.publish(
        {
            TrackedGroup.PRIMARY: RouteSnapshot(
                group=TrackedGroup.PRIMARY,
                generation=4,
                generated_at=datetime(2026, 10, 16, 8, 5, 0),
                buses={"type": "FeatureCollection", "features": [_bus("3090")]},
                routes={"type": "FeatureCollection", "features": []},
            ),
            TrackedGroup.SAMPLE: RouteSnapshot(
                group=TrackedGroup.SAMPLE,
                generation=4,
                generated_at=datetime(2026, 10, 16, 8, 5, 0),
                buses={"type": "FeatureCollection", "features": [_bus("7001")]},
                routes={"type": "FeatureCollection", "features": [_bus("7001")]},
            ),
        }
    )
    return store


async def _get(path: str, **client_kwargs) -> httpx.Response:
    transport = httpx.ASGITransport(app=app, **client_kwargs)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path)


@pytest.fixture
def with_store():
    store = _store()
    app.dependency_overrides[get_snapshot_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


@pytest.mark.unit
@pytest.mark.anyio
async def test_map_data_defaults_to_primary_group(with_store) -> None:
    resp = await _get("/api/map-data")

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["buses"]["type"] == "FeatureCollection"
    assert [f["properties"]["vehicleId"] for f in payload["buses"]["features"]] == ["3090"]
    assert payload["routes"]["features"] == []
    assert payload["lastUpdated"] == "2026-10-16T08:05:00"
    assert payload["generation"] == 4


@pytest.mark.unit
@pytest.mark.anyio
@pytest.mark.parametrize("query", ["?test=true", "?group=sample"])
async def test_map_data_sample_group(with_store, query: str) -> None:
    resp = await _get(f"/api/map-data{query}")

    assert resp.status_code == 200
    payload = resp.json()
    assert [f["properties"]["vehicleId"] for f in payload["buses"]["features"]] == ["7001"]
    assert len(payload["routes"]["features"]) == 1


@pytest.mark.unit
@pytest.mark.anyio
async def test_buses_and_routes_endpoints(with_store) -> None:
    buses = await _get("/api/buses")
    routes = await _get("/api/routes?test=true")

    assert buses.status_code == 200
    assert buses.json()["features"][0]["properties"]["vehicleId"] == "3090"
    assert routes.status_code == 200
    assert routes.json()["features"][0]["properties"]["vehicleId"] == "7001"


@pytest.mark.unit
@pytest.mark.anyio
async def test_unknown_group_is_rejected(with_store) -> None:
    resp = await _get("/api/map-data?group=everything")
    assert resp.status_code == 422


@pytest.mark.unit
@pytest.mark.anyio
async def test_map_data_before_first_cycle_is_empty() -> None:
    app.dependency_overrides[get_snapshot_store] = lambda: SnapshotStore()
    try:
        resp = await _get("/api/map-data")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["buses"]["features"] == []
    assert payload["lastUpdated"] is None
    assert payload["generation"] == 0


@pytest.mark.unit
@pytest.mark.anyio
async def test_health_reports_runtime_state() -> None:
    runtime = SimpleNamespace(
        schedule=SimpleNamespace(is_loaded=True),
        trip_updates=SimpleNamespace(trip_count=12),
        snapshots=_store(),
    )
    app.dependency_overrides[get_runtime] = lambda: runtime
    try:
        resp = await _get("/health")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "schedule_loaded": True,
        "cached_trip_updates": 12,
        "snapshot_generation": 4,
    }


@pytest.mark.unit
@pytest.mark.anyio
async def test_uninitialised_service_returns_json_error() -> None:
    resp = await _get("/api/map-data", raise_app_exceptions=False)

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Service is not initialised"}
