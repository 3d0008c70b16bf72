from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field

from routetracker.app.services.position_reconciler import PositionReconciler

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RealtimePoller:
    """Drives reconciliation cycles at a fixed interval.

    Each cycle is awaited (bounded by `cycle_timeout_s`) before the next one
    is scheduled, so two cycles never run at once and snapshots are
    published in order.

    Env vars:
      - POLL_INTERVAL_S: seconds between cycle starts (default 5)
      - POLL_CYCLE_TIMEOUT_S: upper bound on one cycle (default 30)
    """

    reconciler: PositionReconciler
    interval_s: float = 5.0
    cycle_timeout_s: float = 30.0
    _stop: asyncio.Event | None = field(default=None, init=False, repr=False)
    _task: asyncio.Task | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if os.getenv("POLL_INTERVAL_S"):
            self.interval_s = float(os.environ["POLL_INTERVAL_S"])
        if os.getenv("POLL_CYCLE_TIMEOUT_S"):
            self.cycle_timeout_s = float(os.environ["POLL_CYCLE_TIMEOUT_S"])

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        try:
            return await asyncio.wait_for(
                self.reconciler.run_cycle(), timeout=self.cycle_timeout_s
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Cycle exceeded %.1fs; keeping last snapshot", self.cycle_timeout_s
            )
            return False
        except Exception:
            logger.exception("Polling cycle failed; keeping last snapshot")
            return False

    async def run_forever(self) -> None:
        if self._stop is None:
            self._stop = asyncio.Event()
        loop = asyncio.get_running_loop()

        while not self._stop.is_set():
            started = loop.time()
            await self.run_once()
            delay = max(0.0, self.interval_s - (loop.time() - started))
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                continue

    def start(self) -> asyncio.Task:
        self._stop = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self.run_forever())
        logger.info("Polling every %.1fs", self.interval_s)
        return self._task

    async def stop(self) -> None:
        if self._stop is not None:
            self._stop.set()
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        logger.info("Polling stopped")
