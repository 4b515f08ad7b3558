"""
Correlation routes: cross-signal clustering and propagation as JSON or markdown.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from fastapi import APIRouter

from api.requests import CorrelateRequest
from api.responses import CorrelationReport, MarkdownReport
from api.routes.exception import handle_exceptions
from engine.correlation.render import render_markdown, to_report
from services import correlate_service

router = APIRouter(tags=["Correlation"])


@router.post("/correlate", response_model=CorrelationReport, summary="Cross-signal temporal correlation")
@handle_exceptions
async def correlate_signals(req: CorrelateRequest, include_signals: bool = False) -> CorrelationReport:
    result = await correlate_service.run_correlation(req)
    return to_report(result, include_signals=include_signals)


@router.post("/correlate/markdown", response_model=MarkdownReport, summary="Correlation report as markdown")
@handle_exceptions
async def correlate_markdown(req: CorrelateRequest) -> MarkdownReport:
    result = await correlate_service.run_correlation(req)
    return MarkdownReport(markdown=render_markdown(result), quiet=result.is_quiet)
