"""
Stateless presentation of a correlation result: terminal report, markdown
report, AI prompt serialization and the JSON report model.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable, List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from api.responses import (
    ClusterOut,
    CorrelationReport,
    PropagationEdgeOut,
    ServiceHealth,
    SignalOut,
)
from config import settings
from datasources.records import ServiceSummary
from engine.correlation.models import Cluster, CorrelationResult, Signal
from engine.enums import HealthStatus, Severity, SignalSource

QUIET_MESSAGE = "No event clusters detected — system looks quiet ✅"

_HEALTH_ICONS = {
    HealthStatus.healthy: "✅",
    HealthStatus.degraded: "🟡",
    HealthStatus.critical: "🔴",
}
_HEALTH_LABELS = {
    HealthStatus.healthy: "✅ Healthy",
    HealthStatus.degraded: "🟡 Degraded",
    HealthStatus.critical: "🔴 Critical",
}
_SEVERITY_STYLES = {
    Severity.low: ("LOW", "green", "🟢"),
    Severity.medium: ("MEDIUM", "yellow", "🟡"),
    Severity.critical: ("CRITICAL", "red", "🔴"),
}

_MERMAID_REPLACEMENTS = str.maketrans({"-": "_", ".": "_", "/": "_"})


def sanitize_mermaid(name: str) -> str:
    return name.translate(_MERMAID_REPLACEMENTS)


def format_duration(value: timedelta) -> str:
    total = int(round(value.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{minutes}m{seconds}s"
    return f"{seconds}s"


def _service_status(svc: ServiceSummary) -> HealthStatus:
    return HealthStatus.from_error_rate(svc.error_rate)


def _sorted_histogram(cluster: Cluster, with_counts: bool = True) -> List[str]:
    if with_counts:
        return sorted(f"{name}({count})" for name, count in cluster.services.items())
    return sorted(cluster.services)


def _header(result: CorrelationResult) -> str:
    return (
        f"Time window: {format_duration(result.time_range)}  |  "
        f"Signals: {len(result.signals)}  |  Services: {len(result.services)}"
    )


def render_terminal(result: CorrelationResult, console: Optional[Console] = None) -> None:
    console = console or Console()

    console.print()
    console.rule("[bold]Cross-Signal Correlation")
    console.print(f"  {_header(result)}")

    console.print("\n[bold]▸ Service Health")
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("")
    table.add_column("Service")
    table.add_column("Calls", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Error Rate", justify="right")
    for svc in result.services:
        table.add_row(
            _HEALTH_ICONS[_service_status(svc)],
            svc.name,
            str(svc.call_count),
            str(svc.error_count),
            f"{svc.error_rate:.2f}%",
        )
    console.print(table)

    if result.clusters:
        console.print(f"\n[bold]▸ Event Clusters ({len(result.clusters)} found)")
        for i, cluster in enumerate(result.clusters[: settings.render_max_clusters], start=1):
            label, color, _ = _SEVERITY_STYLES[cluster.severity]
            console.print(
                Text.assemble(
                    f"\n  Cluster #{i} — ",
                    (label, f"bold {color}"),
                    f" (score: {cluster.score:.0f})",
                )
            )
            console.print(
                f"    Time: {cluster.start:%H:%M:%S} → {cluster.end:%H:%M:%S} "
                f"({format_duration(cluster.end - cluster.start)})",
                markup=False,
            )
            console.print(f"    Signals: {cluster.signal_count} ({cluster.error_count} errors)")
            console.print(f"    Services: {', '.join(_sorted_histogram(cluster))}", markup=False)

            shown = cluster.signals[: settings.render_max_cluster_signals]
            for sig in shown:
                icon = "🔗" if sig.source == SignalSource.traces else "📝"
                err = " ❌" if sig.is_error else ""
                console.print(
                    f"    {icon} [{sig.timestamp:%H:%M:%S}] {sig.service}: {sig.summary}{err}",
                    markup=False,
                    highlight=False,
                )
            remaining = cluster.signal_count - len(shown)
            if remaining > 0:
                console.print(f"    ... and {remaining} more signals")
    else:
        console.print(f"\n  {QUIET_MESSAGE}")

    if result.propagation:
        console.print("\n[bold]▸ Error Propagation Patterns")
        for edge in result.propagation:
            console.print(
                f"  {edge.source} → {edge.target}  "
                f"({edge.count} correlated events, avg delay: {edge.delay_ms:.0f}ms)",
                markup=False,
            )
    console.print()


def render_markdown(result: CorrelationResult) -> str:
    lines: List[str] = [
        "# Cross-Signal Correlation Report",
        "",
        f"**Time window:** {format_duration(result.time_range)} | "
        f"**Signals:** {len(result.signals)} | **Services:** {len(result.services)}",
        "",
        "## Service Health",
        "",
        "| Service | Calls | Errors | Error Rate | Status |",
        "|---------|------:|-------:|-----------:|--------|",
    ]
    for svc in result.services:
        lines.append(
            f"| {svc.name} | {svc.call_count} | {svc.error_count} | "
            f"{svc.error_rate:.2f}% | {_HEALTH_LABELS[_service_status(svc)]} |"
        )

    if result.clusters:
        lines += ["", f"## Event Clusters ({len(result.clusters)})", ""]
        for i, cluster in enumerate(result.clusters, start=1):
            label, _, icon = _SEVERITY_STYLES[cluster.severity]
            lines += [
                f"### Cluster #{i} — {icon} {label} (score: {cluster.score:.0f})",
                "",
                f"- **Time:** {cluster.start:%H:%M:%S} → {cluster.end:%H:%M:%S}",
                f"- **Signals:** {cluster.signal_count} ({cluster.error_count} errors)",
                f"- **Services:** {', '.join(_sorted_histogram(cluster, with_counts=False))}",
                "",
            ]
    else:
        lines += ["", QUIET_MESSAGE, ""]

    if result.propagation:
        lines += ["## Error Propagation", "", "```mermaid", "graph LR"]
        for edge in result.propagation:
            lines.append(
                f"    {sanitize_mermaid(edge.source)} -->|{edge.count}x, ~{edge.delay_ms:.0f}ms| "
                f"{sanitize_mermaid(edge.target)}"
            )
        lines.append("```")

    return "\n".join(lines) + "\n"


_PROMPT_HEADER = """You are an expert SRE performing cross-signal correlation analysis.
Analyze the following observability data from multiple services and identify:
1. Root cause chains — which service triggered the cascade?
2. Temporal correlations — events that happen together
3. Propagation paths — how errors spread between services
4. Actionable recommendations

"""

_PROMPT_INSTRUCTIONS = """
## Instructions

Provide:
1. **Incident Summary** — What happened, in plain English
2. **Root Cause Chain** — The sequence of events from trigger to impact
3. **Blast Radius** — Which services are affected and how
4. **Remediation Steps** — Ordered by priority
5. **Prevention** — How to avoid this in the future

Be specific. Reference actual timestamps, services, and error messages.
"""


def _timeline(signals: Iterable[Signal]) -> List[str]:
    rows = []
    for sig in signals:
        mark = " [ERROR]" if sig.is_error else ""
        stamp = sig.timestamp.strftime("%H:%M:%S.") + f"{sig.timestamp.microsecond // 1000:03d}"
        rows.append(f"- {stamp} | {sig.source.value} | {sig.service} | {sig.summary}{mark}")
    return rows


def build_ai_prompt(result: CorrelationResult) -> str:
    timeline = _timeline(result.signals[: settings.prompt_max_timeline_signals])
    return (
        _PROMPT_HEADER
        + render_markdown(result)
        + "\n## Signal Timeline (chronological)\n\n"
        + "".join(row + "\n" for row in timeline)
        + _PROMPT_INSTRUCTIONS
    )


def _signal_out(sig: Signal) -> SignalOut:
    return SignalOut(
        timestamp=sig.timestamp,
        source=sig.source,
        service=sig.service,
        severity=sig.severity,
        summary=sig.summary,
        duration_ms=sig.duration_ms,
        is_error=sig.is_error,
    )


def to_report(result: CorrelationResult, include_signals: bool = False) -> CorrelationReport:
    return CorrelationReport(
        time_range_minutes=result.time_range.total_seconds() / 60,
        collected_at=result.collected_at,
        signal_count=len(result.signals),
        quiet=result.is_quiet,
        services=[
            ServiceHealth(
                name=svc.name,
                call_count=svc.call_count,
                error_count=svc.error_count,
                error_rate=round(svc.error_rate, 4),
                status=_service_status(svc),
            )
            for svc in result.services
        ],
        clusters=[
            ClusterOut(
                start=c.start,
                end=c.end,
                duration_seconds=c.duration_seconds,
                signal_count=c.signal_count,
                error_count=c.error_count,
                services=dict(c.services),
                score=round(c.score, 3),
                severity=c.severity,
                signals=[_signal_out(s) for s in c.signals],
            )
            for c in result.clusters
        ],
        propagation=[
            PropagationEdgeOut(
                source=e.source,
                target=e.target,
                count=e.count,
                delay_ms=round(e.delay_ms, 3),
                error_rate=e.error_rate,
            )
            for e in result.propagation
        ],
        signals=[_signal_out(s) for s in result.signals] if include_signals else [],
    )
