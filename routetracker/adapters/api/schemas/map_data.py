from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FeatureCollectionSchema(BaseModel):
    type: str = "FeatureCollection"
    features: list[dict[str, Any]]


class MapDataSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    buses: FeatureCollectionSchema
    routes: FeatureCollectionSchema
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")
    generation: int = 0


class HealthSchema(BaseModel):
    status: str
    schedule_loaded: bool
    cached_trip_updates: int
    snapshot_generation: int
