from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from routetracker.adapters.api.controllers.map_data import router as map_data_router
from routetracker.adapters.api.dependencies import Runtime, build_runtime, get_runtime
from routetracker.adapters.api.schemas.map_data import HealthSchema
from routetracker.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load the schedule, seed the sample group, then poll until shutdown.

    A schedule that cannot be loaded aborts startup.
    """

    configure_logging()
    runtime = build_runtime()

    await asyncio.to_thread(runtime.schedule.load)
    app.state.runtime = runtime

    await runtime.trip_updates.refresh()
    if await runtime.reconciler.select_sample_group() is None:
        logger.warning("Vehicle feed unavailable at startup; sample group deferred")

    runtime.poller.start()
    try:
        yield
    finally:
        await runtime.poller.stop()


app = FastAPI(title="Route Tracker", lifespan=lifespan)
app.include_router(map_data_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Ensure API errors are JSON so the map client can display them."""

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("ROUTETRACKER_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    if reveal or isinstance(exc, RuntimeError):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health", response_model=HealthSchema)
def health(runtime: Runtime = Depends(get_runtime)) -> HealthSchema:
    return HealthSchema(
        status="ok",
        schedule_loaded=runtime.schedule.is_loaded,
        cached_trip_updates=runtime.trip_updates.trip_count,
        snapshot_generation=runtime.snapshots.generation,
    )
