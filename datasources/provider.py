"""
Provider for the process-wide telemetry connector built from configuration.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from typing import Optional

from .base import TelemetryQuerier
from .data_config import DataSourceSettings
from .factory import DataSourceFactory

_querier: Optional[TelemetryQuerier] = None


def get_querier() -> TelemetryQuerier:
    global _querier
    if _querier is None:
        _querier = DataSourceFactory.create_telemetry(DataSourceSettings())
    return _querier


async def close_querier() -> None:
    global _querier
    querier, _querier = _querier, None
    if querier is not None:
        await querier.aclose()
