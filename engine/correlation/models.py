"""
Data model for cross-signal correlation: normalized signals, temporal clusters,
propagation edges and the assembled result.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Mapping, Tuple

from datasources.records import ServiceSummary
from engine.enums import Severity, SignalSource


@dataclass(frozen=True)
class Signal:
    timestamp: datetime
    source: SignalSource
    service: str
    severity: str = ""
    summary: str = ""
    duration_ms: float = 0.0
    is_error: bool = False

    def __post_init__(self) -> None:
        if not self.service:
            raise ValueError("signal service must be non-empty")


@dataclass(frozen=True)
class Cluster:
    start: datetime
    end: datetime
    signals: Tuple[Signal, ...]
    services: Mapping[str, int]
    error_count: int
    score: float

    @property
    def signal_count(self) -> int:
        return len(self.signals)

    @property
    def service_count(self) -> int:
        return len(self.services)

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()

    @property
    def severity(self) -> Severity:
        return Severity.from_score(self.score)


@dataclass(frozen=True)
class PropagationEdge:
    source: str
    target: str
    count: int
    delay_ms: float
    # share of the target's error signals explained by this edge, 0..1
    error_rate: float = 0.0

    def __post_init__(self) -> None:
        if self.source == self.target:
            raise ValueError(f"propagation edge cannot point at itself ({self.source!r})")


@dataclass(frozen=True)
class CorrelationResult:
    time_range: timedelta
    services: Tuple[ServiceSummary, ...] = ()
    signals: Tuple[Signal, ...] = ()
    clusters: Tuple[Cluster, ...] = ()
    propagation: Tuple[PropagationEdge, ...] = ()
    collected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_quiet(self) -> bool:
        return not self.clusters and not self.propagation
