import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

# ensure workspace root is on sys.path so our application packages can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from datasources.records import LogRecord, ServiceSummary, SpanRecord
from engine.correlation.models import Signal
from engine.enums import SignalSource

BASE_TIME = datetime(2026, 2, 28, 10, 0, 0, tzinfo=timezone.utc)


def at(seconds: float = 0.0, millis: float = 0.0) -> datetime:
    return BASE_TIME + timedelta(seconds=seconds, milliseconds=millis)


def make_signal(
    service: str = "svc-a",
    seconds: float = 0.0,
    millis: float = 0.0,
    is_error: bool = True,
    source: SignalSource = SignalSource.logs,
    summary: str = "",
) -> Signal:
    return Signal(
        timestamp=at(seconds, millis),
        source=source,
        service=service,
        severity="error" if is_error else "info",
        summary=summary,
        is_error=is_error,
    )


class FakeQuerier:
    """In-memory telemetry querier; services listed in ``failing`` raise on query."""

    def __init__(
        self,
        services: List[ServiceSummary],
        logs: Optional[Dict[str, List[LogRecord]]] = None,
        traces: Optional[Dict[str, List[SpanRecord]]] = None,
        failing: Optional[Dict[str, Exception]] = None,
    ):
        self.services = services
        self.logs = logs or {}
        self.traces = traces or {}
        self.failing = failing or {}
        self.calls: List[tuple] = []

    async def health(self):
        return True, 0.001

    async def list_services(self):
        self.calls.append(("list_services",))
        return list(self.services)

    async def query_logs(self, service, duration_minutes, limit, severity="error"):
        self.calls.append(("logs", service, duration_minutes, limit, severity))
        if service in self.failing:
            raise self.failing[service]
        return [r for r in self.logs.get(service, []) if r.severity_text == severity][:limit]

    async def query_traces(self, service, duration_minutes, limit):
        self.calls.append(("traces", service, duration_minutes, limit))
        if service in self.failing:
            raise self.failing[service]
        return list(self.traces.get(service, []))[:limit]

    async def aclose(self):
        return None


@pytest.fixture
def fake_querier_cls():
    return FakeQuerier
