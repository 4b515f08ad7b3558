"""
Readiness behavior tests for API health endpoint.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import json

import pytest

import main as app_main
from config import TELEMETRY_BACKEND_SIGNOZ
from datasources.exceptions import DataSourceUnavailable


@pytest.mark.asyncio
async def test_ready_endpoint_returns_503_with_backend_details_when_not_ready(monkeypatch):
    monkeypatch.setattr(app_main, "_backend_ready", False)
    monkeypatch.setattr(app_main, "_backend_status", {TELEMETRY_BACKEND_SIGNOZ: "waiting"})
    response = await app_main.ready()
    payload = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 503
    assert payload["ready"] is False
    assert payload["backends"][TELEMETRY_BACKEND_SIGNOZ] == "waiting"


@pytest.mark.asyncio
async def test_wait_for_backend_marks_ready_once_healthy(monkeypatch):
    attempts = []

    class Querier:
        async def health(self):
            attempts.append(1)
            if len(attempts) < 2:
                raise DataSourceUnavailable("not yet")
            return True, 0.01

    monkeypatch.setattr(app_main, "get_querier", lambda: Querier())
    monkeypatch.setattr(app_main, "_backend_ready", False)
    monkeypatch.setattr(app_main, "_backend_status", {})

    await app_main.wait_for_backend(timeout=5, interval=0.01)

    assert app_main._backend_ready is True
    assert app_main._backend_status[TELEMETRY_BACKEND_SIGNOZ] == "ready"
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_wait_for_backend_gives_up_but_serves(monkeypatch):
    class Querier:
        async def health(self):
            return False, 0.01

    monkeypatch.setattr(app_main, "get_querier", lambda: Querier())
    monkeypatch.setattr(app_main, "_backend_ready", False)
    monkeypatch.setattr(app_main, "_backend_status", {})

    await app_main.wait_for_backend(timeout=0.05, interval=0.01)

    assert app_main._backend_ready is True
    assert app_main._backend_status[TELEMETRY_BACKEND_SIGNOZ].startswith("failed:")
