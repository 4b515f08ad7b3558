"""
Connection settings for the telemetry backend queried by the signal collector.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings
from config import (
    TELEMETRY_BACKEND_SIGNOZ,
    SIGNOZ_API_VERSIONS,
    CORRELATE_TELEMETRY_BACKEND,
    CORRELATE_SIGNOZ_URL,
    CORRELATE_SIGNOZ_API_KEY,
    CORRELATE_SIGNOZ_API_VERSION,
    CORRELATE_CONNECTOR_TIMEOUT,
)

class DataSourceSettings(BaseSettings):
    telemetry_backend: str = CORRELATE_TELEMETRY_BACKEND
    signoz_url: str = CORRELATE_SIGNOZ_URL
    signoz_api_key: str = CORRELATE_SIGNOZ_API_KEY
    signoz_api_version: str = CORRELATE_SIGNOZ_API_VERSION
    connector_timeout: int = CORRELATE_CONNECTOR_TIMEOUT

    @field_validator("signoz_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return str(v or "").rstrip("/")

    @field_validator("telemetry_backend", mode="before")
    @classmethod
    def validate_telemetry_backend(cls, v: str) -> str:
        value = str(v or "").strip().lower()
        if value not in {TELEMETRY_BACKEND_SIGNOZ}:
            raise ValueError(f"Unsupported telemetry backend: {value!r}")
        return value

    @field_validator("signoz_api_version", mode="before")
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        value = str(v or "").strip().lower() or SIGNOZ_API_VERSIONS[0]
        if value not in SIGNOZ_API_VERSIONS:
            raise ValueError(f"Unsupported SigNoz API version: {value!r}")
        return value

    model_config = {"env_prefix": "CORRELATE_", "extra": "ignore"}
