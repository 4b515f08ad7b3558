"""
Test Suite for Helper Functions

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest
import httpx

from datasources import helpers
from datasources.helpers import fetch_json, post_json
from datasources.exceptions import InvalidQuery, QueryTimeout, DataSourceUnavailable


class DummyResponse:
    def __init__(self, status_code=200, text="", json_data=None, bad_json=False):
        self.status_code = status_code
        self.text = text
        self._json = json_data or {}
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError("err", request=None, response=self)

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._json


class DummyClient:
    def __init__(self, resp=None, exc=None):
        self.resp = resp
        self.exc = exc
        self.sent = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def get(self, url, params=None, headers=None):
        if self.exc:
            raise self.exc
        self.sent = params
        return self.resp

    async def post(self, url, json=None, headers=None):
        if self.exc:
            raise self.exc
        self.sent = json
        return self.resp


def _install(monkeypatch, client):
    monkeypatch.setattr(helpers.httpx, "AsyncClient", lambda timeout=None: client)


@pytest.mark.asyncio
async def test_fetch_json_success(monkeypatch):
    _install(monkeypatch, DummyClient(DummyResponse(json_data={"a": 1})))
    assert await fetch_json("http://x", params={"q": "1"}) == {"a": 1}


@pytest.mark.asyncio
async def test_post_json_sends_payload(monkeypatch):
    client = DummyClient(DummyResponse(json_data={"ok": True}))
    _install(monkeypatch, client)
    assert await post_json("http://x", {"start": 1}) == {"ok": True}
    assert client.sent == {"start": 1}


@pytest.mark.asyncio
async def test_http_status_error_maps_to_invalid_query(monkeypatch):
    _install(monkeypatch, DummyClient(DummyResponse(status_code=400, text="bad")))
    with pytest.raises(InvalidQuery) as exc:
        await post_json("http://x", {}, invalid_msg="logs query failed")
    assert "[400]" in str(exc.value)
    assert "logs query failed" in str(exc.value)


@pytest.mark.asyncio
async def test_timeout_maps_to_query_timeout(monkeypatch):
    _install(monkeypatch, DummyClient(exc=httpx.ReadTimeout("slow")))
    with pytest.raises(QueryTimeout):
        await fetch_json("http://x")


@pytest.mark.asyncio
async def test_request_error_maps_to_unavailable(monkeypatch):
    _install(monkeypatch, DummyClient(exc=httpx.ConnectError("refused")))
    with pytest.raises(DataSourceUnavailable) as exc:
        await post_json("http://x", {}, unavailable_msg="Cannot reach SigNoz at")
    assert "http://x" in str(exc.value)


@pytest.mark.asyncio
async def test_non_json_body_maps_to_invalid_query(monkeypatch):
    _install(monkeypatch, DummyClient(DummyResponse(bad_json=True)))
    with pytest.raises(InvalidQuery):
        await fetch_json("http://x")
