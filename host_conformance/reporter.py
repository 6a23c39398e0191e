"""Aggregate results into a report, its text rendering and an exit code."""

import logging
from collections.abc import Sequence
from typing import Any

from host_conformance.models.config import RunConfiguration
from host_conformance.models.report import Report
from host_conformance.models.result import RunResult, Status

STATUS_SYMBOLS: dict[Status, str] = {
    "pass": "✓",
    "fail": "✗",
    "error": "!",
    "timeout": "⏱",
}

DEFAULT_ENVIRONMENT = "(default)"


def summarize(results: Sequence[RunResult]) -> tuple[Report, int]:
    """Build the report for a finished matrix.

    Returns:
        The report and the process exit code: 0 iff every result passed,
        1 otherwise

    """
    ordered = sorted(results, key=lambda result: result.index)
    report = Report(
        results=ordered,
        passed=sum(1 for r in ordered if r.status == "pass"),
        failed=sum(1 for r in ordered if r.status == "fail"),
        errors=sum(1 for r in ordered if r.status == "error"),
        timeouts=sum(1 for r in ordered if r.status == "timeout"),
    )
    return report, 0 if report.ok else 1


def format_result_line(result: RunResult) -> str:
    descriptor = result.descriptor
    environment = descriptor.environment or DEFAULT_ENVIRONMENT
    return (
        f"{STATUS_SYMBOLS[result.status]} "
        f"{descriptor.implementation:<12} {descriptor.fixture:<12} "
        f"{environment:<10} {result.status:<8} ({result.duration:.2f}s)"
    )


def format_summary(report: Report) -> str:
    return (
        f"{report.passed} passed, {report.failed} failed, "
        f"{report.errors} errors, {report.timeouts} timeouts "
        f"({report.total} total)"
    )


def render_report(report: Report) -> str:
    """Render one line per result in matrix order followed by the counts.

    Messages and captured output are indented under the row they belong to.
    """
    lines = ["RESULTS:"]
    for result in report.results:
        lines.append(format_result_line(result))
        if result.message:
            lines.append(f"    {result.message}")
        if result.output:
            lines.extend(f"    | {line}" for line in result.output.splitlines())
    lines.append("")
    lines.append(format_summary(report))
    return "\n".join(lines)


def format_output(report: Report) -> dict[str, Any]:
    """Format a report for JSON output."""
    return {
        "total": report.total,
        "passed": report.passed,
        "failed": report.failed,
        "errors": report.errors,
        "timeouts": report.timeouts,
        "results": [
            {
                "implementation": result.descriptor.implementation,
                "fixture": result.descriptor.fixture,
                "environment": result.descriptor.environment,
                "status": result.status,
                "duration": result.duration,
                "message": result.message,
                "output": result.output,
            }
            for result in report.results
        ],
    }


def log_configuration(log: logging.Logger, config: RunConfiguration) -> None:
    """Log the resolved configuration before execution starts."""
    log.info("Configuration:")
    log.info("  Loglevel:        %s", "verbose" if config.verbose else "info")
    log.info("  Binaries:        %s", "container" if config.docker else "local")
    log.info("  Implementations: %s", ", ".join(config.implementations))
    log.info("  Fixtures:        %s", ", ".join(config.fixtures))
    log.info(
        "  Environments:    %s",
        ", ".join(config.environments) or DEFAULT_ENVIRONMENT,
    )
    log.info("  Jobs:            %d", config.jobs)
    log.info("  Timeout:         %gs", config.timeout)
