from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from routetracker.adapters.api.dependencies import get_snapshot_store
from routetracker.adapters.api.schemas.map_data import (
    FeatureCollectionSchema,
    MapDataSchema,
)
from routetracker.app.services.snapshot_store import SnapshotStore
from routetracker.domain.models.snapshot import FeatureCollection, TrackedGroup

router = APIRouter(prefix="/api", tags=["map-data"])


def _group(group: TrackedGroup, test: bool) -> TrackedGroup:
    # `test=true` is the older way of asking for the sample group.
    return TrackedGroup.SAMPLE if test else group


def _collection(fc: FeatureCollection) -> FeatureCollectionSchema:
    return FeatureCollectionSchema(
        type=fc.get("type", "FeatureCollection"), features=list(fc["features"])
    )


@router.get("/map-data", response_model=MapDataSchema)
def get_map_data(
    group: TrackedGroup = Query(default=TrackedGroup.PRIMARY),
    test: bool = Query(default=False),
    snapshots: SnapshotStore = Depends(get_snapshot_store),
) -> MapDataSchema:
    # One read so buses and routes always come from the same cycle.
    snapshot = snapshots.get_snapshot(_group(group, test))
    return MapDataSchema(
        buses=_collection(snapshot.buses),
        routes=_collection(snapshot.routes),
        last_updated=snapshot.generated_at,
        generation=snapshot.generation,
    )


@router.get("/buses", response_model=FeatureCollectionSchema)
def get_buses(
    group: TrackedGroup = Query(default=TrackedGroup.PRIMARY),
    test: bool = Query(default=False),
    snapshots: SnapshotStore = Depends(get_snapshot_store),
) -> FeatureCollectionSchema:
    return _collection(snapshots.get_buses(_group(group, test)))


@router.get("/routes", response_model=FeatureCollectionSchema)
def get_routes(
    group: TrackedGroup = Query(default=TrackedGroup.PRIMARY),
    test: bool = Query(default=False),
    snapshots: SnapshotStore = Depends(get_snapshot_store),
) -> FeatureCollectionSchema:
    return _collection(snapshots.get_routes(_group(group, test)))
