"""
Assembly of the immutable correlation result consumed by presentation layers.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from datasources.records import ServiceSummary
from engine.correlation.models import Cluster, CorrelationResult, PropagationEdge, Signal


def assemble(
    time_range: timedelta,
    services: Iterable[ServiceSummary],
    signals: Iterable[Signal],
    clusters: Iterable[Cluster],
    propagation: Iterable[PropagationEdge],
    collected_at: Optional[datetime] = None,
) -> CorrelationResult:
    return CorrelationResult(
        time_range=time_range,
        services=tuple(services),
        signals=tuple(signals),
        clusters=tuple(clusters),
        propagation=tuple(propagation),
        collected_at=collected_at or datetime.now(timezone.utc),
    )
