"""
Error propagation inference across services: ordered pairs of error signals
from different services within a time window become delay-annotated edges.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Sequence, Set, Tuple

import numpy as np

from config import DEFAULT_BUCKET_SECONDS
from engine.correlation.models import PropagationEdge, Signal

log = logging.getLogger(__name__)

MIN_SUPPORT = 2

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


@dataclass
class _Aggregate:
    count: int = 0
    delay_ms_sum: int = 0
    explained: Set[int] = field(default_factory=set)


def _to_micros(ts: datetime) -> int:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - _EPOCH) // _MICROSECOND


def detect_propagation(
    signals: Sequence[Signal],
    window_seconds: int = DEFAULT_BUCKET_SECONDS,
) -> List[PropagationEdge]:
    """Infer ``source -> target`` edges from error signals sorted by time.

    For every error ``a`` and every later error ``b`` at most
    ``window_seconds`` after it, a pair from different services with a
    positive delay counts toward the ``(a.service, b.service)`` edge. Edges
    need at least two supporting pairs; ``delay_ms`` is the mean delay.
    The upper bound of each inner scan is a binary search over the error
    timestamps, which selects exactly the pairs an early break would.
    """
    if window_seconds is None or window_seconds <= 0:
        window_seconds = DEFAULT_BUCKET_SECONDS

    errors = [s for s in signals if s.is_error]
    if len(errors) < 2:
        return []

    micros = np.fromiter((_to_micros(s.timestamp) for s in errors), dtype=np.int64, count=len(errors))
    window_us = int(window_seconds) * 1_000_000
    upper = np.searchsorted(micros, micros + window_us, side="right")

    aggregates: Dict[Tuple[str, str], _Aggregate] = {}
    for i, a in enumerate(errors):
        for j in range(i + 1, int(upper[i])):
            b = errors[j]
            delay_us = int(micros[j] - micros[i])
            if delay_us <= 0 or a.service == b.service:
                continue
            agg = aggregates.setdefault((a.service, b.service), _Aggregate())
            agg.count += 1
            agg.delay_ms_sum += delay_us // 1000
            agg.explained.add(j)

    target_errors = Counter(s.service for s in errors)
    edges: List[PropagationEdge] = []
    for (source, target), agg in aggregates.items():
        if agg.count < MIN_SUPPORT:
            continue
        edges.append(PropagationEdge(
            source=source,
            target=target,
            count=agg.count,
            delay_ms=agg.delay_ms_sum / agg.count,
            error_rate=round(len(agg.explained) / target_errors[target], 4),
        ))

    log.debug(
        "detect_propagation errors=%d window=%ds candidates=%d edges=%d",
        len(errors), window_seconds, len(aggregates), len(edges),
    )
    return sorted(edges, key=lambda e: e.count, reverse=True)
