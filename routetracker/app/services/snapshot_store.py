from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from routetracker.domain.models.snapshot import (
    FeatureCollection,
    RouteSnapshot,
    TrackedGroup,
    empty_feature_collection,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SnapshotStore:
    """Holds the last fully published snapshot of every tracked group.

    `publish` swaps one read-only mapping for another; the lock only guards
    the generation check and the swap, never a read.
    """

    _snapshots: Mapping[TrackedGroup, RouteSnapshot] = field(
        default_factory=lambda: MappingProxyType({}), init=False, repr=False
    )
    _generation: int = field(default=0, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def generation(self) -> int:
        return self._generation

    def publish(self, snapshots: Mapping[TrackedGroup, RouteSnapshot]) -> bool:
        """Publish a cycle's snapshots; stale generations are discarded."""

        generations = {s.generation for s in snapshots.values()}
        if len(generations) != 1:
            raise ValueError("All snapshots of one publish must share a generation")
        generation = generations.pop()

        with self._lock:
            if generation <= self._generation:
                logger.warning(
                    "Discarding stale snapshot generation %d (current %d)",
                    generation,
                    self._generation,
                )
                return False
            self._snapshots = MappingProxyType(dict(snapshots))
            self._generation = generation
        return True

    def get_snapshot(self, group: TrackedGroup) -> RouteSnapshot:
        snapshot = self._snapshots.get(group)
        if snapshot is None:
            return RouteSnapshot(group=group, generation=0)
        return snapshot

    def get_buses(self, group: TrackedGroup) -> FeatureCollection:
        snapshot = self._snapshots.get(group)
        return snapshot.buses if snapshot else empty_feature_collection()

    def get_routes(self, group: TrackedGroup) -> FeatureCollection:
        snapshot = self._snapshots.get(group)
        return snapshot.routes if snapshot else empty_feature_collection()
