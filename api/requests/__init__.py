from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field

from config import settings


class CorrelateRequest(BaseModel):
    duration_minutes: int = Field(default=settings.default_duration_minutes, ge=1, le=10080)
    service: Optional[str] = None
    # non-positive values fall back to the engine defaults
    bucket_seconds: int = settings.default_bucket_seconds
    min_events: int = settings.default_min_events
    limit: int = Field(default=settings.query_limit, ge=1, le=1000)
