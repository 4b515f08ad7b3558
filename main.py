"""
Entry point for the cross-signal correlation API server.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from api.routes import router
from config import settings
from datasources.exceptions import DataSourceError
from datasources.provider import close_querier, get_querier

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
log = logging.getLogger(__name__)

_backend_ready = False
_backend_status: Dict[str, str] = {}


async def wait_for_backend(timeout: float, interval: float = 2.0) -> None:
    global _backend_ready
    querier = get_querier()
    deadline = time.monotonic() + timeout
    attempt = 0
    _backend_status[settings.telemetry_backend] = "waiting"
    while time.monotonic() < deadline:
        attempt += 1
        try:
            healthy, latency = await querier.health()
            if healthy:
                log.info(
                    "%s ready (attempt %d, %.0fms)",
                    settings.telemetry_backend, attempt, latency * 1000,
                )
                _backend_status[settings.telemetry_backend] = "ready"
                _backend_ready = True
                return
        except DataSourceError as exc:
            log.debug("%s not reachable (attempt %d): %s", settings.telemetry_backend, attempt, exc)
        await asyncio.sleep(interval)
    _backend_status[settings.telemetry_backend] = f"failed: not ready within {timeout}s"
    log.warning("%s did not become ready within %ss; serving anyway", settings.telemetry_backend, timeout)
    _backend_ready = True


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    readiness_task = asyncio.create_task(wait_for_backend(settings.connector_timeout * 4))
    try:
        yield
    finally:
        readiness_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await readiness_task
        await close_querier()


app = FastAPI(
    title="Cross-Signal Correlation Engine",
    description="Temporal clustering, severity scoring and error propagation inference over logs and traces.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


@app.get("/api/v1/ready", tags=["health"], summary="Backend readiness check")
async def ready() -> JSONResponse:
    code = 200 if _backend_ready else 503
    return JSONResponse(
        status_code=code,
        content={"ready": _backend_ready, "backends": _backend_status},
    )


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=4322,
        log_level="info",
        access_log=True,
    )
