"""
Command-line entry point tests: argument parsing, output dispatch and
interrupt handling.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import asyncio
import json
import signal
from datetime import timedelta

import pytest

import cli
from conftest import make_signal
from datasources.exceptions import DataSourceUnavailable, ServiceNotFound
from datasources.records import ServiceSummary
from engine.correlation import assemble, find_clusters


def _result():
    signals = [make_signal("svc-a", seconds=i) for i in range(4)]
    return assemble(
        time_range=timedelta(minutes=10),
        services=[ServiceSummary(name="svc-a", call_count=50, error_count=4)],
        signals=signals,
        clusters=find_clusters(signals, 60, 3),
        propagation=[],
    )


@pytest.fixture
def stub_backend(monkeypatch):
    seen = {}
    closed = []

    async def fake_run(req, cancel_event=None):
        seen["req"] = req
        return _result()

    async def fake_close():
        closed.append(True)

    monkeypatch.setattr(cli, "run_correlation", fake_run)
    monkeypatch.setattr(cli, "close_querier", fake_close)
    return seen, closed


def test_parser_defaults():
    args = cli.build_parser().parse_args(["run"])
    assert args.command == "run"
    assert args.duration == 30
    assert args.bucket == 60
    assert args.min_events == 3
    assert args.output == "text"
    assert args.service is None
    assert args.ai is False


def test_parser_flags():
    args = cli.build_parser().parse_args(
        ["run", "-d", "60", "-s", "checkout", "-b", "30", "-m", "5", "-o", "markdown", "--ai"]
    )
    assert (args.duration, args.service, args.bucket, args.min_events) == (60, "checkout", 30, 5)
    assert args.output == "markdown"
    assert args.ai is True


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_run_json_output(stub_backend, capsys):
    seen, closed = stub_backend
    assert cli.main(["run", "-d", "10", "-o", "json", "--signals"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["signal_count"] == 4
    assert len(payload["signals"]) == 4
    assert payload["clusters"][0]["services"] == {"svc-a": 4}
    assert seen["req"].duration_minutes == 10
    assert closed == [True]


def test_run_markdown_output(stub_backend, capsys):
    assert cli.main(["run", "-o", "markdown"]) == 0
    assert capsys.readouterr().out.startswith("# Cross-Signal Correlation Report")


def test_unknown_service_exits_with_error(monkeypatch, capsys):
    async def fake_run(req, cancel_event=None):
        raise ServiceNotFound(req.service)

    async def fake_close():
        return None

    monkeypatch.setattr(cli, "run_correlation", fake_run)
    monkeypatch.setattr(cli, "close_querier", fake_close)

    assert cli.main(["run", "-s", "ghost"]) == 1
    assert "service 'ghost' not found" in capsys.readouterr().err


def test_services_command_reports_backend_failure(monkeypatch, capsys):
    class Querier:
        async def list_services(self):
            raise DataSourceUnavailable("connection refused")

    async def fake_close():
        return None

    monkeypatch.setattr(cli, "get_querier", lambda: Querier())
    monkeypatch.setattr(cli, "close_querier", fake_close)

    assert cli.main(["services"]) == 1
    assert "connection refused" in capsys.readouterr().err


def test_run_json_with_ai_keeps_stdout_a_single_document(stub_backend, monkeypatch, capsys):
    async def fake_narrate(result, analyzer=None):
        for chunk in ("Root cause: ", "svc-a"):
            yield chunk

    monkeypatch.setattr(cli, "narrate", fake_narrate)
    assert cli.main(["run", "-o", "json", "--ai"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["narrative"] == "Root cause: svc-a"
    assert payload["signal_count"] == 4


def test_run_json_without_ai_has_no_narrative(stub_backend, capsys):
    assert cli.main(["run", "-o", "json"]) == 0
    assert json.loads(capsys.readouterr().out)["narrative"] is None


def test_interrupt_handler_released_before_narration(stub_backend, monkeypatch, capsys):
    handlers = []

    async def fake_narrate(result, analyzer=None):
        handlers.append(signal.getsignal(signal.SIGINT))
        yield "done"

    monkeypatch.setattr(cli, "narrate", fake_narrate)
    assert cli.main(["run", "-o", "markdown", "--ai"]) == 0
    assert handlers == [signal.default_int_handler]
    assert capsys.readouterr().out.rstrip().endswith("done")


@pytest.mark.asyncio
async def test_first_interrupt_cancels_and_second_raises():
    cancel = asyncio.Event()
    release = cli._install_interrupt(cancel)
    try:
        assert signal.getsignal(signal.SIGINT) is not signal.default_int_handler

        signal.raise_signal(signal.SIGINT)
        await asyncio.wait_for(cancel.wait(), timeout=2)

        assert signal.getsignal(signal.SIGINT) is signal.default_int_handler
        with pytest.raises(KeyboardInterrupt):
            signal.raise_signal(signal.SIGINT)
    finally:
        release()
