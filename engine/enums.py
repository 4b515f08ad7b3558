"""
Enumerations for Signal Sources, Cluster Severity and Service Health

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum

from config import settings


class SignalSource(str, Enum):
    logs = "logs"
    traces = "traces"


class Severity(str, Enum):
    low = "low"
    medium = "medium"
    critical = "critical"

    @classmethod
    def from_score(cls, score: float) -> Severity:
        if score >= settings.severity_score_critical:
            return cls.critical
        if score >= settings.severity_score_medium:
            return cls.medium
        return cls.low


class HealthStatus(str, Enum):
    healthy = "healthy"
    degraded = "degraded"
    critical = "critical"

    @classmethod
    def from_error_rate(cls, error_rate_pct: float) -> HealthStatus:
        if error_rate_pct > settings.health_error_rate_critical:
            return cls.critical
        if error_rate_pct > settings.health_error_rate_degraded:
            return cls.degraded
        return cls.healthy
