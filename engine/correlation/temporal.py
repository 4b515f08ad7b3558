"""
Temporal clustering of a sorted signal stream using anchor-based bucket-gap
partitioning, producing scored incident clusters.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import timedelta
from types import MappingProxyType
from typing import List, Sequence

from config import DEFAULT_BUCKET_SECONDS, DEFAULT_MIN_EVENTS
from engine.correlation.models import Cluster, Signal
from engine.correlation.scoring import score_parts

log = logging.getLogger(__name__)


def normalize_params(bucket_seconds: int, min_events: int) -> tuple[int, int]:
    if bucket_seconds is None or bucket_seconds <= 0:
        bucket_seconds = DEFAULT_BUCKET_SECONDS
    if min_events is None or min_events <= 0:
        min_events = DEFAULT_MIN_EVENTS
    return int(bucket_seconds), int(min_events)


def _build_cluster(bucket: Sequence[Signal]) -> Cluster:
    services = Counter(sig.service for sig in bucket)
    errors = sum(1 for sig in bucket if sig.is_error)
    return Cluster(
        start=bucket[0].timestamp,
        end=bucket[-1].timestamp,
        signals=tuple(bucket),
        services=MappingProxyType(dict(services)),
        error_count=errors,
        score=score_parts(len(services), errors, len(bucket)),
    )


def find_clusters(
    signals: Sequence[Signal],
    bucket_seconds: int = DEFAULT_BUCKET_SECONDS,
    min_events: int = DEFAULT_MIN_EVENTS,
) -> List[Cluster]:
    """Partition ``signals`` (sorted by timestamp) into scored clusters.

    A bucket is anchored at its first signal and the anchor never moves: a
    signal joins the open bucket while it lies less than ``bucket_seconds``
    after the anchor, otherwise it opens a new bucket. Buckets with fewer than
    ``min_events`` signals are dropped; adjacent buckets are never merged.
    The result is ordered by score, highest first, ties in time order.
    """
    bucket_seconds, min_events = normalize_params(bucket_seconds, min_events)
    if not signals:
        return []

    gap = timedelta(seconds=bucket_seconds)
    buckets: List[List[Signal]] = []
    current: List[Signal] = []

    for sig in signals:
        if not current or sig.timestamp - current[0].timestamp >= gap:
            if len(current) >= min_events:
                buckets.append(current)
            current = []
        current.append(sig)
    if len(current) >= min_events:
        buckets.append(current)

    clusters = [_build_cluster(bucket) for bucket in buckets]
    log.debug(
        "find_clusters signals=%d bucket=%ds min_events=%d clusters=%d",
        len(signals), bucket_seconds, min_events, len(clusters),
    )
    return sorted(clusters, key=lambda c: c.score, reverse=True)
