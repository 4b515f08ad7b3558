"""
Typed records returned by telemetry connectors.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, Field, computed_field

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ServiceSummary(BaseModel):

    name: str
    call_count: int = 0
    error_count: int = 0
    reported_error_rate: float = 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def error_rate(self) -> float:
        """Error rate in percent, derived from counts when the backend gave none."""
        if self.reported_error_rate == 0 and self.call_count > 0:
            return self.error_count / self.call_count * 100
        return self.reported_error_rate


class LogRecord(BaseModel):

    timestamp: datetime = _EPOCH
    body: str = ""
    service: str = ""
    severity_text: str = ""
    attributes: Dict[str, str] = Field(default_factory=dict)


class SpanRecord(BaseModel):

    timestamp: datetime = _EPOCH
    service: str = ""
    operation_name: str = ""
    duration_nano: int = 0
    status_code: str = ""
    trace_id: str = ""
    span_id: str = ""
    parent_span_id: Optional[str] = None

    @property
    def duration_ms(self) -> float:
        return self.duration_nano / 1e6
