"""
Constants and configuration for the cross-signal correlation engine.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
from typing import Tuple

from pydantic_settings import BaseSettings


TELEMETRY_BACKEND_SIGNOZ = "signoz"
SIGNOZ_API_VERSIONS: Tuple[str, ...] = ("v3", "v5")

CORRELATE_TELEMETRY_BACKEND = os.getenv("CORRELATE_TELEMETRY_BACKEND", TELEMETRY_BACKEND_SIGNOZ).lower()
CORRELATE_SIGNOZ_URL = os.getenv("CORRELATE_SIGNOZ_URL", "http://localhost:3301").rstrip("/")
CORRELATE_SIGNOZ_API_KEY = os.getenv("CORRELATE_SIGNOZ_API_KEY", "")
# "v3" for self-hosted, "v5" for cloud
CORRELATE_SIGNOZ_API_VERSION = os.getenv("CORRELATE_SIGNOZ_API_VERSION", "v3").lower()
CORRELATE_CONNECTOR_TIMEOUT = int(os.getenv("CORRELATE_CONNECTOR_TIMEOUT", "30"))

CORRELATE_ANTHROPIC_API_KEY = os.getenv("CORRELATE_ANTHROPIC_API_KEY", os.getenv("ANTHROPIC_API_KEY", ""))

HEALTH_PATH = "/api/v1/health"
SERVICES_PATH = "/api/v1/services"

# trace status codes that mean "not an error"
OK_STATUS_CODES: Tuple[str, ...] = ("", "OK", "0")

SLOW_SPAN_THRESHOLD_MS: float = 1000.0
SUMMARY_MAX_LENGTH: int = 120

DEFAULT_BUCKET_SECONDS: int = 60
DEFAULT_MIN_EVENTS: int = 3


class Settings(BaseSettings):
    telemetry_backend: str = CORRELATE_TELEMETRY_BACKEND
    signoz_url: str = CORRELATE_SIGNOZ_URL
    signoz_api_key: str = CORRELATE_SIGNOZ_API_KEY
    signoz_api_version: str = CORRELATE_SIGNOZ_API_VERSION
    connector_timeout: int = CORRELATE_CONNECTOR_TIMEOUT

    # connector retry policy; the collector itself never retries
    connector_retry_attempts: int = 3
    connector_retry_delay: float = 0.5
    connector_retry_backoff: float = 2.0

    # correlation defaults
    default_duration_minutes: int = 30
    default_bucket_seconds: int = DEFAULT_BUCKET_SECONDS
    default_min_events: int = DEFAULT_MIN_EVENTS
    query_limit: int = 100
    slow_span_threshold_ms: float = SLOW_SPAN_THRESHOLD_MS
    summary_max_length: int = SUMMARY_MAX_LENGTH
    collector_max_parallel_queries: int = 8

    # cluster scoring: (divisor, weight) per factor
    score_service_saturation: float = 3.0
    score_service_weight: float = 40.0
    score_error_weight: float = 40.0
    score_volume_saturation: float = 20.0
    score_volume_weight: float = 20.0
    score_max: float = 100.0

    # severity label cutoffs on the 0-100 cluster score
    severity_score_critical: float = 60.0
    severity_score_medium: float = 30.0

    # service health thresholds, error rate in percent
    health_error_rate_degraded: float = 1.0
    health_error_rate_critical: float = 5.0

    # rendering limits
    render_max_clusters: int = 5
    render_max_cluster_signals: int = 5
    prompt_max_timeline_signals: int = 100

    anthropic_api_key: str = CORRELATE_ANTHROPIC_API_KEY
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = 4096
    anthropic_timeout: int = 120

    model_config = {
        "env_prefix": "CORRELATE_",
        "extra": "ignore",
    }


settings = Settings()
