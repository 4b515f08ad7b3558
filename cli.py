#!/usr/bin/env python3

"""
Command-line entry point for cross-signal correlation.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from typing import Callable, List, Optional

from rich.console import Console

from api.requests import CorrelateRequest
from config import settings
from datasources.exceptions import AnalyzerNotConfigured, DataSourceError, ServiceNotFound
from datasources.provider import close_querier, get_querier
from engine.correlation.render import render_markdown, render_terminal, to_report
from services.correlate_service import narrate, run_correlation

log = logging.getLogger("correlate")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="correlate",
        description="Correlate error logs and anomalous spans across services",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="cluster signals and infer error propagation")
    run.add_argument("-d", "--duration", type=int, default=settings.default_duration_minutes,
                     help="minutes to look back (default %(default)s)")
    run.add_argument("-s", "--service", default=None, help="focus on a single service")
    run.add_argument("-b", "--bucket", type=int, default=settings.default_bucket_seconds,
                     help="cluster bucket and propagation window in seconds (default %(default)s)")
    run.add_argument("-m", "--min-events", type=int, default=settings.default_min_events,
                     help="minimum signals per cluster (default %(default)s)")
    run.add_argument("-l", "--limit", type=int, default=settings.query_limit,
                     help="max records per query (default %(default)s)")
    run.add_argument("-o", "--output", choices=("text", "markdown", "json"), default="text")
    run.add_argument("--signals", action="store_true", help="include the full signal stream in json output")
    run.add_argument("--ai", action="store_true", help="stream an AI narrative after the report")

    sub.add_parser("services", help="list services known to the telemetry backend")
    sub.add_parser("health", help="check telemetry backend connectivity")
    return parser


def _install_interrupt(cancel_event: asyncio.Event) -> Callable[[], None]:
    """Route the first Ctrl-C to ``cancel_event``; returns a release callback.

    The handler removes itself when it fires, so a second Ctrl-C raises
    KeyboardInterrupt as usual.
    """
    loop = asyncio.get_running_loop()

    def _release() -> None:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(signal.SIGINT)

    def _on_interrupt() -> None:
        log.info("interrupt received; finishing with the signals collected so far")
        cancel_event.set()
        _release()

    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, _on_interrupt)
    return _release


async def _run(args: argparse.Namespace, console: Console) -> int:
    req = CorrelateRequest(
        duration_minutes=args.duration,
        service=args.service,
        bucket_seconds=args.bucket,
        min_events=args.min_events,
        limit=args.limit,
    )
    cancel_event = asyncio.Event()
    release_interrupt = _install_interrupt(cancel_event)
    try:
        result = await run_correlation(req, cancel_event=cancel_event)
    finally:
        release_interrupt()

    if args.output == "json":
        # stdout stays a single JSON document
        report = to_report(result, include_signals=args.signals)
        if args.ai:
            report.narrative = "".join([chunk async for chunk in narrate(result)]) or None
        print(report.model_dump_json(indent=2))
        return 0

    if args.output == "markdown":
        print(render_markdown(result))
    else:
        render_terminal(result, console)

    if args.ai:
        if not result.signals:
            console.print("  No signals to analyze — skipping AI correlation.")
            return 0
        console.print("\n[bold]▸ AI Correlation Analysis\n")
        async for chunk in narrate(result):
            sys.stdout.write(chunk)
            sys.stdout.flush()
        sys.stdout.write("\n")
    return 0


async def _services(console: Console) -> int:
    services = await get_querier().list_services()
    if not services:
        console.print("No services reported by the telemetry backend.")
    for svc in services:
        console.print(
            f"{svc.name:<30} {svc.call_count:>8} calls  {svc.error_count:>6} errors  ({svc.error_rate:.2f}%)",
            markup=False,
        )
    return 0


async def _health(console: Console) -> int:
    healthy, latency = await get_querier().health()
    state = "healthy" if healthy else "unhealthy"
    console.print(f"{settings.telemetry_backend} at {settings.signoz_url}: {state} ({latency * 1000:.0f}ms)")
    return 0 if healthy else 1


async def _dispatch(args: argparse.Namespace) -> int:
    console = Console()
    try:
        if args.command == "run":
            return await _run(args, console)
        if args.command == "services":
            return await _services(console)
        return await _health(console)
    except (ServiceNotFound, AnalyzerNotConfigured) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except DataSourceError as exc:
        print(f"error: telemetry backend: {exc}", file=sys.stderr)
        return 1
    finally:
        await close_querier()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    return asyncio.run(_dispatch(args))


if __name__ == "__main__":
    sys.exit(main())
