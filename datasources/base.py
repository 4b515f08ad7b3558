"""
Base connectors and shared utilities for data sources

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from datasources.records import LogRecord, ServiceSummary, SpanRecord


class BaseConnector(ABC):
    health_path: str = ""

    def __init__(self, base_url: str, timeout: int = 30, headers: Optional[Dict[str, str]] = None):
        self.base_url = str(base_url).rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}

    @property
    def health_url(self) -> str:
        if not self.health_path:
            raise NotImplementedError("connector must define health_path")
        return f"{self.base_url}{self.health_path}"

    def _headers(self) -> Dict[str, str]:
        """Basic header set applied to every outbound request."""
        return {**self.headers, "Content-Type": "application/json"}

    async def aclose(self) -> None:
        return None


class TelemetryQuerier(BaseConnector):
    """Per-service telemetry queries consumed by the signal collector.

    Every call may fail independently; callers decide whether a failure is
    fatal.
    """

    @abstractmethod
    async def health(self) -> Tuple[bool, float]: ...

    @abstractmethod
    async def list_services(self) -> List[ServiceSummary]: ...

    @abstractmethod
    async def query_logs(
        self,
        service: str,
        duration_minutes: int,
        limit: int,
        severity: str = "error",
    ) -> List[LogRecord]: ...

    @abstractmethod
    async def query_traces(
        self,
        service: str,
        duration_minutes: int,
        limit: int,
    ) -> List[SpanRecord]: ...
