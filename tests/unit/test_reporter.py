"""Tests for the reporter."""

import logging

import pytest

from host_conformance.models.config import RunConfiguration
from host_conformance.models.result import RunResult
from host_conformance.reporter import (
    format_output,
    format_result_line,
    log_configuration,
    render_report,
    summarize,
)
from host_conformance.testing.factories import RunDescriptorFactory, RunResultFactory


def result(index: int, status: str, **kwargs: object) -> RunResult:
    return RunResultFactory.build(index=index, status=status, **kwargs)


class TestSummarize:
    """Tests for summarize."""

    def test_all_passed(self) -> None:
        """All passing results exit 0 and report no failures."""
        results = [result(i, "pass", duration=1.0) for i in range(3)]

        report, exit_code = summarize(results)

        assert exit_code == 0
        assert report.ok is True
        assert report.passed == 3
        assert "0 failed" in render_report(report)

    def test_one_timeout_among_passes(self) -> None:
        """A single timeout fails the run and shows up as exactly one row."""
        results = [result(i, "pass") for i in range(10)]
        results.insert(4, result(10, "timeout", message="Killed after exceeding 5s"))

        report, exit_code = summarize(results)
        text = render_report(report)

        assert exit_code != 0
        assert report.timeouts == 1
        assert report.total == 11
        timeout_rows = [line for line in text.splitlines() if " timeout " in line]
        assert len(timeout_rows) == 1

    @pytest.mark.parametrize("status", ["fail", "error", "timeout"])
    def test_any_non_pass_is_non_zero(self, status: str) -> None:
        """Every non-pass status yields the same non-zero exit code."""
        _, exit_code = summarize([result(0, "pass"), result(1, status)])

        assert exit_code == 1

    def test_empty_matrix_passes(self) -> None:
        """Nothing selected is not a failure."""
        report, exit_code = summarize([])

        assert exit_code == 0
        assert report.total == 0

    def test_counts_and_orders_by_index(self) -> None:
        """Results are sorted back into matrix order and counted per status."""
        results = [
            result(3, "timeout"),
            result(0, "pass"),
            result(2, "error"),
            result(1, "fail"),
        ]

        report, _ = summarize(results)

        assert [r.index for r in report.results] == [0, 1, 2, 3]
        assert (report.passed, report.failed, report.errors, report.timeouts) == (
            1,
            1,
            1,
            1,
        )


class TestRenderReport:
    """Tests for the text report."""

    def test_result_line(self) -> None:
        """A row shows implementation, fixture, environment, status and time."""
        row = format_result_line(
            result(
                0,
                "fail",
                duration=1.5,
                descriptor=RunDescriptorFactory.build(
                    implementation="kagome", fixture="host-api", environment="wasmi"
                ),
            )
        )

        assert row.startswith("✗ kagome")
        assert row.split() == ["✗", "kagome", "host-api", "wasmi", "fail", "(1.50s)"]

    def test_default_environment(self) -> None:
        """Runs without environment show the default placeholder."""
        row = format_result_line(
            result(
                0,
                "pass",
                duration=0.25,
                descriptor=RunDescriptorFactory.build(
                    implementation="gossamer", fixture="scale-codec"
                ),
            )
        )

        assert row.split() == [
            "✓",
            "gossamer",
            "scale-codec",
            "(default)",
            "pass",
            "(0.25s)",
        ]

    def test_lists_every_result_with_diagnostics(self) -> None:
        """Messages and output are indented under their row."""
        report, _ = summarize(
            [
                result(0, "pass"),
                result(
                    1,
                    "error",
                    message="Executable not found on PATH: kagome-adapter",
                ),
                result(2, "fail", message="Exited with code 1", output="line 1\nline 2"),
            ]
        )

        lines = render_report(report).splitlines()

        assert lines[0] == "RESULTS:"
        assert lines[1].startswith("✓ ")
        assert lines[2].startswith("! ")
        assert lines[3] == "    Executable not found on PATH: kagome-adapter"
        assert lines[4].startswith("✗ ")
        assert lines[5:8] == [
            "    Exited with code 1",
            "    | line 1",
            "    | line 2",
        ]
        assert lines[-1] == "1 passed, 1 failed, 1 errors, 0 timeouts (3 total)"


def test_format_output_empty() -> None:
    """Returns empty totals when no results."""
    report, _ = summarize([])

    assert format_output(report) == {
        "total": 0,
        "passed": 0,
        "failed": 0,
        "errors": 0,
        "timeouts": 0,
        "results": [],
    }


def test_format_output_mixed_results() -> None:
    """Formats mixed results with correct totals and descriptor fields."""
    descriptor = RunDescriptorFactory.build(
        implementation="substrate", fixture="host-api", environment="wasmtime"
    )
    report, _ = summarize(
        [
            result(0, "pass", descriptor=descriptor, duration=1.0),
            result(1, "fail", duration=2.0, message="Exited with code 2"),
            result(2, "error", duration=0.0),
            result(3, "timeout", duration=5.0),
        ]
    )

    output = format_output(report)

    assert output["total"] == 4
    assert output["passed"] == 1
    assert output["failed"] == 1
    assert output["errors"] == 1
    assert output["timeouts"] == 1
    assert output["results"][0] == {
        "implementation": "substrate",
        "fixture": "host-api",
        "environment": "wasmtime",
        "status": "pass",
        "duration": 1.0,
        "message": None,
        "output": None,
    }
    assert output["results"][1]["message"] == "Exited with code 2"


def test_log_configuration(caplog: pytest.LogCaptureFixture) -> None:
    """Logs the configuration block before execution."""
    config = RunConfiguration(
        docker=True,
        implementations=("substrate", "kagome"),
        fixtures=("host-api",),
        environments=("wasmi",),
    )

    with caplog.at_level(logging.INFO):
        log_configuration(logging.getLogger(), config)

    assert "Loglevel:        info" in caplog.text
    assert "Binaries:        container" in caplog.text
    assert "Implementations: substrate, kagome" in caplog.text
    assert "Fixtures:        host-api" in caplog.text
    assert "Environments:    wasmi" in caplog.text


def test_log_configuration_without_environments(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """An empty environment set is shown as the default."""
    with caplog.at_level(logging.INFO):
        log_configuration(logging.getLogger(), RunConfiguration(verbose=True))

    assert "Loglevel:        verbose" in caplog.text
    assert "Binaries:        local" in caplog.text
    assert "Environments:    (default)" in caplog.text
