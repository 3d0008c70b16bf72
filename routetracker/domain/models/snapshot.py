from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping

FeatureCollection = Mapping[str, Any]


def frozen_feature_collection(features: Iterable[Mapping[str, Any]]) -> FeatureCollection:
    """A read-only FeatureCollection holding a tuple of features."""

    return MappingProxyType({"type": "FeatureCollection", "features": tuple(features)})


def empty_feature_collection() -> FeatureCollection:
    return frozen_feature_collection(())


class TrackedGroup(str, Enum):
    PRIMARY = "primary"
    SAMPLE = "sample"


@dataclass(frozen=True, slots=True)
class TrackedVehicle:
    vehicle_id: str
    color: str
    label: str | None = None


@dataclass(frozen=True, slots=True)
class RouteSnapshot:
    """One published, internally consistent view of a tracked group.

    `buses` and `routes` are stored read-only whatever mapping is passed in.
    """

    group: TrackedGroup
    generation: int
    generated_at: datetime | None = None
    buses: FeatureCollection = field(default_factory=empty_feature_collection)
    routes: FeatureCollection = field(default_factory=empty_feature_collection)

    def __post_init__(self) -> None:
        for name in ("buses", "routes"):
            fc = getattr(self, name)
            if not (
                isinstance(fc, MappingProxyType)
                and isinstance(fc.get("features"), tuple)
            ):
                object.__setattr__(
                    self, name, frozen_feature_collection(fc.get("features", ()))
                )
