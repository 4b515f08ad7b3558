"""
Correlation run orchestration: service discovery, focus resolution, signal
collection, then clustering and propagation inference over the same stream.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Optional

from api.requests import CorrelateRequest
from datasources.base import TelemetryQuerier
from datasources.exceptions import DataSourceError
from engine.collector import collect_signals, resolve_targets
from engine.correlation import CorrelationResult, assemble, detect_propagation, find_clusters
from engine.correlation.temporal import normalize_params

log = logging.getLogger(__name__)


async def run(
    querier: TelemetryQuerier,
    req: CorrelateRequest,
    cancel_event: Optional[asyncio.Event] = None,
) -> CorrelationResult:
    bucket_seconds, min_events = normalize_params(req.bucket_seconds, req.min_events)

    try:
        services = await querier.list_services()
    except DataSourceError as exc:
        log.error("listing services failed: %s", exc)
        raise

    targets = resolve_targets(services, req.service)
    log.info(
        "correlating %d of %d service(s) over %d minute(s)",
        len(targets), len(services), req.duration_minutes,
    )

    signals = tuple(await collect_signals(
        querier,
        targets,
        req.duration_minutes,
        limit=req.limit,
        cancel_event=cancel_event,
    ))

    # both passes only read the signal tuple
    clusters, edges = await asyncio.gather(
        asyncio.to_thread(find_clusters, signals, bucket_seconds, min_events),
        asyncio.to_thread(detect_propagation, signals, bucket_seconds),
    )
    log.info(
        "correlation complete signals=%d clusters=%d edges=%d",
        len(signals), len(clusters), len(edges),
    )

    return assemble(
        time_range=timedelta(minutes=req.duration_minutes),
        services=services,
        signals=signals,
        clusters=clusters,
        propagation=edges,
    )
