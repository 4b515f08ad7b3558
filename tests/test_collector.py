"""
Signal collection tests: per-service log and trace queries, span filtering,
failure isolation, cancellation and the time-sorted output stream.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import asyncio

import pytest

from conftest import FakeQuerier, at
from datasources.exceptions import DataSourceUnavailable, ServiceNotFound
from datasources.records import LogRecord, ServiceSummary, SpanRecord
from engine.collector import (
    collect_signals,
    resolve_targets,
    signal_from_log,
    signal_from_span,
    truncate_summary,
)
from engine.enums import SignalSource


def _log(seconds, body="boom", service="svc-a", severity="error"):
    return LogRecord(timestamp=at(seconds), body=body, service=service, severity_text=severity)


def _span(seconds, status="", duration_ms=10.0, service="svc-a", name="GET /orders"):
    return SpanRecord(
        timestamp=at(seconds),
        service=service,
        operation_name=name,
        duration_nano=int(duration_ms * 1e6),
        status_code=status,
    )


def test_truncate_summary():
    assert truncate_summary("short") == "short"
    assert truncate_summary("x" * 120) == "x" * 120
    assert truncate_summary("x" * 130) == "x" * 120 + "..."
    assert truncate_summary("abcdef", max_length=3) == "abc..."
    assert truncate_summary("") == ""


def test_log_signal_is_always_an_error():
    sig = signal_from_log(_log(1, body="db connection refused"), "svc-a")
    assert sig.source == SignalSource.logs
    assert sig.is_error is True
    assert sig.summary == "db connection refused"
    assert sig.service == "svc-a"


def test_ok_fast_span_is_dropped():
    assert signal_from_span(_span(1, status="", duration_ms=5), "svc-a") is None
    assert signal_from_span(_span(1, status="OK", duration_ms=5), "svc-a") is None
    assert signal_from_span(_span(1, status="0", duration_ms=1000), "svc-a") is None


def test_error_span_becomes_error_signal():
    sig = signal_from_span(_span(1, status="STATUS_CODE_ERROR", duration_ms=12), "svc-a")
    assert sig is not None
    assert sig.is_error is True
    assert sig.source == SignalSource.traces
    assert sig.summary == "GET /orders [status:STATUS_CODE_ERROR]"


def test_slow_ok_span_becomes_non_error_signal():
    sig = signal_from_span(_span(1, status="OK", duration_ms=2500), "svc-a")
    assert sig is not None
    assert sig.is_error is False
    assert sig.duration_ms == pytest.approx(2500.0)
    assert sig.summary == "GET /orders [2500ms]"


def test_slow_error_span_carries_both_markers():
    sig = signal_from_span(_span(1, status="2", duration_ms=1500), "svc-a")
    assert sig.summary == "GET /orders [status:2] [1500ms]"


def test_span_without_service_uses_queried_service():
    sig = signal_from_span(_span(1, status="ERROR", service=""), "svc-q")
    assert sig.service == "svc-q"


def test_resolve_targets():
    services = [ServiceSummary(name="svc-a"), ServiceSummary(name="svc-b")]
    assert [s.name for s in resolve_targets(services)] == ["svc-a", "svc-b"]
    assert [s.name for s in resolve_targets(services, "svc-b")] == ["svc-b"]


def test_resolve_targets_unknown_service_raises():
    with pytest.raises(ServiceNotFound) as exc:
        resolve_targets([ServiceSummary(name="svc-a")], "nope")
    assert exc.value.service == "nope"
    assert "nope" in str(exc.value)


@pytest.mark.asyncio
async def test_collect_merges_logs_and_traces_in_time_order():
    services = [ServiceSummary(name="svc-a"), ServiceSummary(name="svc-b")]
    querier = FakeQuerier(
        services,
        logs={
            "svc-a": [_log(30), _log(5), _log(12, severity="info")],
            "svc-b": [_log(20, service="svc-b")],
        },
        traces={
            "svc-b": [_span(1, status="ERROR", service="svc-b"), _span(2, service="svc-b")],
        },
    )
    signals = await collect_signals(querier, services, 30, limit=50)

    stamps = [s.timestamp for s in signals]
    assert stamps == sorted(stamps)
    assert [(s.service, s.source) for s in signals] == [
        ("svc-b", SignalSource.traces),
        ("svc-a", SignalSource.logs),
        ("svc-b", SignalSource.logs),
        ("svc-a", SignalSource.logs),
    ]
    assert ("logs", "svc-a", 30, 50, "error") in querier.calls
    assert ("traces", "svc-b", 30, 50) in querier.calls


@pytest.mark.asyncio
async def test_collect_skips_failing_service():
    services = [ServiceSummary(name="svc-a"), ServiceSummary(name="svc-b")]
    querier = FakeQuerier(
        services,
        logs={"svc-a": [_log(1)], "svc-b": [_log(2, service="svc-b")]},
        failing={"svc-b": DataSourceUnavailable("down")},
    )
    signals = await collect_signals(querier, services, 30)
    assert [s.service for s in signals] == ["svc-a"]


@pytest.mark.asyncio
async def test_collect_with_no_services_returns_empty():
    assert await collect_signals(FakeQuerier([]), [], 30) == []


@pytest.mark.asyncio
async def test_collect_bounds_parallel_queries():
    services = [ServiceSummary(name=f"svc-{i}") for i in range(6)]
    in_flight = 0
    peak = 0

    class CountingQuerier(FakeQuerier):
        async def query_logs(self, service, duration_minutes, limit, severity="error"):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return [_log(1, service=service)]

        async def query_traces(self, service, duration_minutes, limit):
            await self.query_logs(service, duration_minutes, limit)
            return []

    signals = await collect_signals(CountingQuerier(services), services, 30, max_parallel=2)
    assert peak <= 2
    assert len(signals) == 6


@pytest.mark.asyncio
async def test_cancel_keeps_signals_already_collected():
    services = [ServiceSummary(name="fast"), ServiceSummary(name="slow")]

    class SlowQuerier(FakeQuerier):
        async def query_logs(self, service, duration_minutes, limit, severity="error"):
            if service == "slow":
                await asyncio.sleep(30)
            return [_log(1, service=service)]

        async def query_traces(self, service, duration_minutes, limit):
            return []

    cancel = asyncio.Event()
    asyncio.get_running_loop().call_later(0.05, cancel.set)
    signals = await asyncio.wait_for(
        collect_signals(SlowQuerier(services), services, 30, cancel_event=cancel),
        timeout=5,
    )
    assert [s.service for s in signals] == ["fast"]
