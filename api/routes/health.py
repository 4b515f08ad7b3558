"""
Health check route to verify telemetry backend connectivity.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from typing import Any, Dict

from fastapi import APIRouter

from api.routes.exception import handle_exceptions
from datasources.provider import get_querier

router = APIRouter(tags=["Health"])


@router.get("/health")
@handle_exceptions
async def health() -> Dict[str, Any]:
    healthy, latency = await get_querier().health()
    return {
        "status": "ok" if healthy else "degraded",
        "backend_latency_ms": round(latency * 1000, 1),
    }
