"""
SigNoz connector: service listing and query_range log/trace queries, with the
response-shape tolerance needed across self-hosted (v3) and cloud (v5) APIs.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx

from config import HEALTH_PATH, SERVICES_PATH, settings
from datasources.base import TelemetryQuerier
from datasources.exceptions import DataSourceUnavailable, QueryTimeout
from datasources.helpers import fetch_json, post_json
from datasources.records import LogRecord, ServiceSummary, SpanRecord
from datasources.retry import retry

log = logging.getLogger(__name__)

_RETRYABLE = (DataSourceUnavailable, QueryTimeout)
_ENVELOPE_KEYS = ("data", "result", "results")
_ROW_LIST_KEYS = ("list", "rows")

_LOG_FIELDS = {"body", "severity_text", "severityText", "service_name", "serviceName", "timestamp"}


def _with_retry():
    return retry(
        attempts=settings.connector_retry_attempts,
        delay=settings.connector_retry_delay,
        backoff=settings.connector_retry_backoff,
        exceptions=_RETRYABLE,
    )


def join_filters(parts: List[str]) -> str:
    return " AND ".join(p for p in parts if p)


def _quote(value: str) -> str:
    return "'" + str(value).replace("'", "\\'") + "'"


def build_query_range_payload(
    signal: str,
    request_type: str,
    duration_minutes: int,
    limit: int = 0,
    filter_expr: str = "",
    order_field: str = "",
    aggregations: Optional[List[Dict[str, Any]]] = None,
    group_by: Optional[List[Dict[str, Any]]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    end = now or datetime.now(timezone.utc)
    end_ms = int(end.timestamp() * 1000)
    start_ms = end_ms - int(duration_minutes) * 60_000

    spec: Dict[str, Any] = {
        "name": "A",
        "signal": signal,
        "stepInterval": 60,
        "disabled": False,
    }
    if limit > 0:
        spec["limit"] = limit
    if filter_expr:
        spec["filter"] = {"expression": filter_expr}
    if order_field:
        spec["order"] = [{"key": {"name": order_field}, "direction": "desc"}]
    if aggregations is not None:
        spec["aggregations"] = aggregations
    if group_by is not None:
        spec["groupBy"] = group_by

    return {
        "start": start_ms,
        "end": end_ms,
        "requestType": request_type,
        "compositeQuery": {
            "queries": [{"type": "builder_query", "spec": spec}],
        },
    }


def _extract_rows(payload: Any) -> List[Dict[str, Any]]:
    """Flatten a query_range response into raw row dicts.

    Accepts nested ``data``/``result``/``results`` envelopes, result items
    carrying a ``list`` or ``rows`` array, and bare arrays of records.
    """
    node = payload
    while isinstance(node, dict):
        for key in _ENVELOPE_KEYS:
            if isinstance(node.get(key), (dict, list)):
                node = node[key]
                break
        else:
            break
    if not isinstance(node, list):
        return []

    rows: List[Dict[str, Any]] = []
    nested = False
    for item in node:
        if not isinstance(item, dict):
            continue
        for key in _ROW_LIST_KEYS:
            inner = item.get(key)
            if isinstance(inner, list):
                nested = True
                rows.extend(r for r in inner if isinstance(r, dict))
                break
    if nested:
        return rows
    return [item for item in node if isinstance(item, dict)]


def _flatten_row(row: Dict[str, Any]) -> Dict[str, Any]:
    inner = row.get("data")
    if isinstance(inner, dict):
        merged = {k: v for k, v in row.items() if k != "data"}
        merged.update(inner)
        return merged
    return row


def _pick_str(row: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = row.get(key)
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
    return ""


def _pick_int(row: Dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = row.get(key)
        if value is None or isinstance(value, bool):
            continue
        try:
            return int(float(value))
        except (TypeError, ValueError):
            continue
    return 0


def parse_timestamp(value: Any) -> Optional[datetime]:
    """RFC3339 strings or epoch numbers (s, ms, us or ns by magnitude) to UTC."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                return parse_timestamp(float(text))
            except ValueError:
                return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
        if number != number:
            return None
        if abs(number) >= 1e17:
            seconds = number / 1e9
        elif abs(number) >= 1e14:
            seconds = number / 1e6
        elif abs(number) >= 1e11:
            seconds = number / 1e3
        else:
            seconds = number
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    return None


def _to_log_record(raw: Dict[str, Any]) -> LogRecord:
    row = _flatten_row(raw)
    record: Dict[str, Any] = {
        "body": _pick_str(row, "body"),
        "severity_text": _pick_str(row, "severity_text", "severityText"),
        "service": _pick_str(row, "service_name", "serviceName"),
        "attributes": {k: v for k, v in row.items() if k not in _LOG_FIELDS and isinstance(v, str)},
    }
    ts = parse_timestamp(row.get("timestamp"))
    if ts is not None:
        record["timestamp"] = ts
    return LogRecord(**record)


def _to_span_record(raw: Dict[str, Any]) -> SpanRecord:
    row = _flatten_row(raw)
    record: Dict[str, Any] = {
        "trace_id": _pick_str(row, "traceID", "trace_id"),
        "span_id": _pick_str(row, "spanID", "span_id"),
        "parent_span_id": _pick_str(row, "parentSpanID", "parent_span_id") or None,
        "service": _pick_str(row, "serviceName", "service_name"),
        "operation_name": _pick_str(row, "name", "operationName", "operation_name"),
        "duration_nano": _pick_int(row, "durationNano", "duration_nano"),
        "status_code": _pick_str(row, "statusCode", "status_code"),
    }
    ts = parse_timestamp(row.get("timestamp"))
    if ts is not None:
        record["timestamp"] = ts
    return SpanRecord(**record)


def parse_logs_response(payload: Any) -> List[LogRecord]:
    return [_to_log_record(row) for row in _extract_rows(payload)]


def parse_traces_response(payload: Any) -> List[SpanRecord]:
    return [_to_span_record(row) for row in _extract_rows(payload)]


def parse_services_response(payload: Any) -> List[ServiceSummary]:
    items = payload
    if isinstance(items, dict):
        items = items.get("data", items.get("services", []))
    if not isinstance(items, list):
        return []

    services: List[ServiceSummary] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = _pick_str(item, "serviceName", "service_name", "name")
        if not name:
            continue
        try:
            reported = float(item.get("errorRate") or 0.0)
        except (TypeError, ValueError):
            reported = 0.0
        services.append(ServiceSummary(
            name=name,
            call_count=_pick_int(item, "numCalls", "num_calls", "callCount"),
            error_count=_pick_int(item, "numErrors", "num_errors", "errorCount"),
            reported_error_rate=reported,
        ))
    return services


class SignozConnector(TelemetryQuerier):
    health_path = HEALTH_PATH

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        api_version: str = "v3",
        timeout: int = 30,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(base_url, timeout=timeout, headers=headers)
        self.api_key = api_key
        self.api_version = api_version or "v3"

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        if self.api_key:
            headers["SIGNOZ-API-KEY"] = self.api_key
        return headers

    @property
    def query_range_url(self) -> str:
        return f"{self.base_url}/api/{self.api_version}/query_range"

    async def health(self) -> Tuple[bool, float]:
        started = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(self.health_url, headers=self._headers())
        except httpx.TimeoutException as e:
            raise QueryTimeout("SigNoz health check timed out") from e
        except httpx.RequestError as e:
            raise DataSourceUnavailable(f"Cannot reach SigNoz at {self.health_url}") from e
        latency = time.monotonic() - started
        if resp.status_code != 200:
            log.warning("SigNoz health returned status %d", resp.status_code)
        return resp.status_code == 200, latency

    @_with_retry()
    async def list_services(self) -> List[ServiceSummary]:
        payload = await fetch_json(
            f"{self.base_url}{SERVICES_PATH}",
            headers=self._headers(),
            timeout=self.timeout,
            invalid_msg="SigNoz service listing failed",
            timeout_msg="SigNoz service listing timed out",
            unavailable_msg="Cannot reach SigNoz at",
        )
        services = parse_services_response(payload)
        log.debug("list_services: %d service(s)", len(services))
        return services

    async def _query_range(self, payload: Dict[str, Any], what: str) -> Any:
        return await post_json(
            self.query_range_url,
            payload,
            headers=self._headers(),
            timeout=self.timeout,
            invalid_msg=f"SigNoz {what} query failed",
            timeout_msg=f"SigNoz {what} query timed out",
            unavailable_msg="Cannot reach SigNoz at",
        )

    @_with_retry()
    async def query_logs(
        self,
        service: str,
        duration_minutes: int,
        limit: int,
        severity: str = "error",
    ) -> List[LogRecord]:
        parts = []
        if service:
            parts.append(f"service_name = {_quote(service)}")
        if severity:
            parts.append(f"severity_text = {_quote(severity)}")
        payload = build_query_range_payload(
            "logs", "raw", duration_minutes, limit if limit > 0 else settings.query_limit,
            join_filters(parts), "timestamp",
        )
        records = parse_logs_response(await self._query_range(payload, "logs"))
        log.debug("query_logs service=%s records=%d", service, len(records))
        return records

    @_with_retry()
    async def query_traces(
        self,
        service: str,
        duration_minutes: int,
        limit: int,
    ) -> List[SpanRecord]:
        filter_expr = f"service_name = {_quote(service)}" if service else ""
        payload = build_query_range_payload(
            "traces", "raw", duration_minutes, limit if limit > 0 else settings.query_limit,
            filter_expr, "timestamp",
        )
        records = parse_traces_response(await self._query_range(payload, "traces"))
        log.debug("query_traces service=%s records=%d", service, len(records))
        return records

