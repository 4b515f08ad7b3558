"""
Severity scoring for temporal clusters: service fan-out, error density and
signal volume, each capped before summation.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass

from config import settings
from engine.correlation.models import Cluster


@dataclass(frozen=True)
class ScoreBreakdown:
    service_factor: float
    error_factor: float
    volume_factor: float

    @property
    def total(self) -> float:
        raw = self.service_factor + self.error_factor + self.volume_factor
        return max(0.0, min(settings.score_max, raw))


def breakdown(service_count: int, error_count: int, signal_count: int) -> ScoreBreakdown:
    if signal_count <= 0:
        return ScoreBreakdown(0.0, 0.0, 0.0)

    service_factor = min(service_count / settings.score_service_saturation, 1.0) * settings.score_service_weight
    error_factor = min(error_count / signal_count, 1.0) * settings.score_error_weight
    volume_factor = min(signal_count / settings.score_volume_saturation, 1.0) * settings.score_volume_weight
    return ScoreBreakdown(
        service_factor=max(0.0, service_factor),
        error_factor=max(0.0, error_factor),
        volume_factor=max(0.0, volume_factor),
    )


def score_parts(service_count: int, error_count: int, signal_count: int) -> float:
    return breakdown(service_count, error_count, signal_count).total


def score_cluster(cluster: Cluster) -> float:
    """Score a cluster from its own histogram and counts, ignoring ``cluster.score``."""
    return score_parts(cluster.service_count, cluster.error_count, cluster.signal_count)
