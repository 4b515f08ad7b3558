"""
Signal collection: concurrent per-service log and trace queries normalized
into one time-sorted signal stream.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from config import OK_STATUS_CODES, settings
from datasources.base import TelemetryQuerier
from datasources.exceptions import ServiceNotFound
from datasources.records import LogRecord, ServiceSummary, SpanRecord
from engine.correlation.models import Signal
from engine.enums import SignalSource

log = logging.getLogger(__name__)


def truncate_summary(text: str, max_length: Optional[int] = None) -> str:
    limit = settings.summary_max_length if max_length is None else max_length
    text = text or ""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def is_error_status(status_code: str) -> bool:
    return (status_code or "") not in OK_STATUS_CODES


def signal_from_log(record: LogRecord, service: str) -> Signal:
    return Signal(
        timestamp=record.timestamp,
        source=SignalSource.logs,
        service=service,
        severity=record.severity_text,
        summary=truncate_summary(record.body),
        is_error=True,
    )


def signal_from_span(record: SpanRecord, service: str) -> Optional[Signal]:
    """Error or slow spans become signals; anything else carries no correlation value."""
    duration_ms = record.duration_ms
    is_error = is_error_status(record.status_code)
    is_slow = duration_ms > settings.slow_span_threshold_ms
    if not is_error and not is_slow:
        return None

    summary = record.operation_name
    if is_error:
        summary += f" [status:{record.status_code}]"
    if is_slow:
        summary += f" [{duration_ms:.0f}ms]"
    return Signal(
        timestamp=record.timestamp,
        source=SignalSource.traces,
        service=record.service or service,
        severity=record.status_code,
        summary=truncate_summary(summary),
        duration_ms=duration_ms,
        is_error=is_error,
    )


def resolve_targets(services: Sequence[ServiceSummary], focus: Optional[str] = None) -> List[ServiceSummary]:
    if not focus:
        return list(services)
    for svc in services:
        if svc.name == focus:
            return [svc]
    raise ServiceNotFound(focus)


def sort_signals(signals: Sequence[Signal]) -> List[Signal]:
    return sorted(signals, key=lambda s: s.timestamp)


async def _await_or_cancel(
    tasks: List[asyncio.Task],
    cancel_event: Optional[asyncio.Event],
) -> None:
    if cancel_event is None:
        await asyncio.gather(*tasks, return_exceptions=True)
        return

    waiter = asyncio.create_task(cancel_event.wait())
    gathered = asyncio.gather(*tasks, return_exceptions=True)
    try:
        await asyncio.wait({gathered, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if not gathered.done():
            pending = sum(1 for t in tasks if not t.done())
            log.info("collect_signals cancelled; abandoning %d in-flight quer(ies)", pending)
            for task in tasks:
                task.cancel()
        await gathered
    finally:
        waiter.cancel()


async def collect_signals(
    querier: TelemetryQuerier,
    services: Sequence[ServiceSummary],
    duration_minutes: int,
    *,
    limit: Optional[int] = None,
    max_parallel: Optional[int] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> List[Signal]:
    """Query error logs and traces for each service and return one sorted stream.

    A failed or cancelled query only drops that service's contribution.
    """
    limit = limit or settings.query_limit
    max_parallel = max(1, int(max_parallel or settings.collector_max_parallel_queries))
    sem = asyncio.Semaphore(max_parallel)

    async def _logs(name: str) -> List[Signal]:
        async with sem:
            records = await querier.query_logs(name, duration_minutes, limit, "error")
        return [signal_from_log(r, name) for r in records]

    async def _traces(name: str) -> List[Signal]:
        async with sem:
            records = await querier.query_traces(name, duration_minutes, limit)
        converted = (signal_from_span(r, name) for r in records)
        return [s for s in converted if s is not None]

    jobs: List[Tuple[str, str, Callable[[str], Awaitable[List[Signal]]]]] = []
    for svc in services:
        jobs.append((svc.name, "logs", _logs))
        jobs.append((svc.name, "traces", _traces))

    tasks = [asyncio.create_task(fn(name)) for name, _, fn in jobs]
    try:
        await _await_or_cancel(tasks, cancel_event)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()

    signals: List[Signal] = []
    for (name, kind, _), task in zip(jobs, tasks):
        if task.cancelled():
            log.debug("collect_signals %s service=%s cancelled", kind, name)
            continue
        exc = task.exception()
        if exc is not None:
            log.warning("collect_signals %s service=%s failed: %s", kind, name, exc)
            continue
        collected = task.result()
        log.debug("collect_signals %s service=%s signals=%d", kind, name, len(collected))
        signals.extend(collected)

    return sort_signals(signals)
