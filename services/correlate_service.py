"""
Correlation service: runs the correlation engine against the configured
telemetry backend and optionally narrates the result with the AI analyzer.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional

from api.requests import CorrelateRequest
from datasources.provider import get_querier
from config import settings
from connectors.anthropic import AnthropicAnalyzer
from engine.analyzer import run
from engine.correlation import CorrelationResult
from engine.correlation.render import build_ai_prompt

log = logging.getLogger(__name__)


async def run_correlation(
    req: CorrelateRequest,
    cancel_event: Optional[asyncio.Event] = None,
) -> CorrelationResult:
    return await run(get_querier(), req, cancel_event=cancel_event)


def default_analyzer() -> AnthropicAnalyzer:
    return AnthropicAnalyzer(
        api_key=settings.anthropic_api_key,
        model=settings.anthropic_model,
        max_tokens=settings.anthropic_max_tokens,
        timeout=settings.anthropic_timeout,
    )


async def narrate(
    result: CorrelationResult,
    analyzer: Optional[AnthropicAnalyzer] = None,
) -> AsyncIterator[str]:
    """Stream an AI narrative for ``result``; nothing is yielded for an empty stream."""
    if not result.signals:
        log.info("no signals to analyze; skipping AI correlation")
        return
    analyzer = analyzer or default_analyzer()
    async for chunk in analyzer.analyze(build_ai_prompt(result)):
        yield chunk
