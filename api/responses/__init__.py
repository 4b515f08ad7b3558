"""
Response models for the correlation API and JSON output.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from engine.enums import HealthStatus, Severity, SignalSource


class ServiceHealth(BaseModel):

    name: str
    call_count: int
    error_count: int
    error_rate: float
    status: HealthStatus


class SignalOut(BaseModel):

    timestamp: datetime
    source: SignalSource
    service: str
    severity: str
    summary: str
    duration_ms: float = 0.0
    is_error: bool


class ClusterOut(BaseModel):

    start: datetime
    end: datetime
    duration_seconds: float
    signal_count: int
    error_count: int
    services: Dict[str, int]
    score: float = Field(ge=0.0, le=100.0)
    severity: Severity
    signals: List[SignalOut]


class PropagationEdgeOut(BaseModel):

    source: str
    target: str
    count: int
    delay_ms: float
    error_rate: float


class CorrelationReport(BaseModel):

    time_range_minutes: float
    collected_at: datetime
    signal_count: int
    quiet: bool
    services: List[ServiceHealth]
    clusters: List[ClusterOut]
    propagation: List[PropagationEdgeOut]
    signals: List[SignalOut] = []
    # AI narrative, filled only by the CLI json output
    narrative: Optional[str] = None


class MarkdownReport(BaseModel):

    markdown: str
    quiet: bool
