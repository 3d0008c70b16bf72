from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, Mapping

from routetracker.app.ports.output import ITripUpdateProvider
from routetracker.domain.exceptions.feeds import FeedError
from routetracker.domain.models.realtime import StopTimePrediction, TripUpdate

logger = logging.getLogger(__name__)

PredictionIndex = Mapping[str, Mapping[int, StopTimePrediction]]

_EMPTY: PredictionIndex = MappingProxyType({})


def build_prediction_index(updates: Iterable[TripUpdate]) -> PredictionIndex:
    """Index predictions by trip_id, then stop_sequence.

    Updates with no time or delay are dropped, and so are trips left with
    nothing. The result is read-only.
    """

    staging: dict[str, dict[int, StopTimePrediction]] = {}
    for update in updates:
        for p in update.predictions:
            if not p.has_data:
                continue
            staging.setdefault(update.trip_id, {})[p.stop_sequence] = p

    return MappingProxyType(
        {trip_id: MappingProxyType(by_seq) for trip_id, by_seq in staging.items()}
    )


@dataclass(frozen=True, slots=True)
class _CacheState:
    predictions: PredictionIndex = field(default_factory=lambda: _EMPTY)
    refreshed_at: datetime | None = None


@dataclass(slots=True)
class TripUpdateCache:
    """Latest per-trip, per-stop predictions, replaced wholesale on refresh.

    Readers always see either the previous or the new state; a failed
    refresh keeps the previous state (stale but available).
    """

    provider: ITripUpdateProvider
    _state: _CacheState = field(default_factory=_CacheState, init=False, repr=False)

    async def refresh(self) -> bool:
        try:
            updates = await self.provider.list_trip_updates()
            predictions = build_prediction_index(updates)
        except FeedError as exc:
            logger.warning(
                "Trip updates unavailable, keeping %d cached trips: %s",
                self.trip_count,
                exc,
            )
            return False
        except Exception:
            logger.exception(
                "Unexpected error refreshing trip updates, keeping %d cached trips",
                self.trip_count,
            )
            return False

        self._state = _CacheState(
            predictions=predictions, refreshed_at=datetime.now(timezone.utc)
        )
        logger.info("Cached predictions for %d trips", len(predictions))
        return True

    @property
    def trip_count(self) -> int:
        return len(self._state.predictions)

    @property
    def refreshed_at(self) -> datetime | None:
        return self._state.refreshed_at

    def get_trip_predictions(
        self, trip_id: str
    ) -> Mapping[int, StopTimePrediction] | None:
        return self._state.predictions.get(trip_id)

    def get_prediction(
        self, trip_id: str, stop_sequence: int
    ) -> StopTimePrediction | None:
        by_seq = self._state.predictions.get(trip_id)
        if by_seq is None:
            return None
        return by_seq.get(stop_sequence)
