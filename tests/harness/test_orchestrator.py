"""Tests for PhaseOrchestrator."""

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from pathlib import Path

import pytest

from installcheck.config.models import InstallcheckConfig
from installcheck.core.errors import ErrorCode, HarnessAbort
from installcheck.harness.codes import SUCCESS_ONLY, SUITE_TABLES
from installcheck.harness.context import RunContext
from installcheck.harness.models import HostInfo
from installcheck.harness.orchestrator import (
    Phase,
    PhaseOrchestrator,
    PlannedTest,
    bug_report_guidance,
)
from installcheck.harness.runner import ProcessRunner


@pytest.fixture
def ctx(config: InstallcheckConfig, host: HostInfo) -> Iterator[RunContext]:
    context = RunContext.create(config, host=host)
    yield context
    context.finish(keep_tmp=False)


@pytest.fixture
def runner(ctx: RunContext) -> ProcessRunner:
    return ProcessRunner(ctx.config, env=ctx.env, scratch_root=ctx.tmp_dir)


def _phase(runner: ProcessRunner, *paths: str, tables=SUITE_TABLES) -> Phase:
    return Phase(
        name="03_unittests",
        title="Phase 3: Running unit tests",
        tests=[PlannedTest(path, tables, runner) for path in paths],
    )


def _report(ctx: RunContext, name: str = "03_unittests") -> ET.Element:
    return ET.parse(ctx.output_dir / f"TEST-{name}.xml").getroot()


class TestRunPhase:
    """Phase execution."""

    def test_all_pass(self, ctx: RunContext, runner: ProcessRunner, write_script) -> None:
        write_script("unittests/test_a.sli")
        write_script("unittests/test_b.sli", exit_code=200)

        result = PhaseOrchestrator(ctx).run_phase(
            _phase(runner, "unittests/test_a.sli", "unittests/test_b.sli")
        )

        assert (result.tests, result.failures, result.skipped) == (2, 0, False)
        assert (ctx.totals.total, ctx.totals.passed, ctx.totals.skipped) == (2, 2, 1)
        root = _report(ctx)
        assert root.get("tests") == "2"
        assert root.get("failures") == "0"

    def test_failure_does_not_stop_phase(
        self, ctx: RunContext, runner: ProcessRunner, write_script
    ) -> None:
        write_script("unittests/test_a.sli", exit_code=1, output="assertion failed")
        write_script("unittests/test_b.sli")

        result = PhaseOrchestrator(ctx).run_phase(
            _phase(runner, "unittests/test_a.sli", "unittests/test_b.sli")
        )

        assert (result.tests, result.failures) == (2, 1)
        assert (ctx.totals.passed, ctx.totals.failed) == (1, 1)
        failure = _report(ctx).find("testcase/failure")
        assert failure is not None
        assert failure.get("message") == "Failed: missed assertion"
        assert failure.text is not None
        assert "assertion failed" in failure.text

    def test_unexpected_exit_aborts(
        self, ctx: RunContext, runner: ProcessRunner, write_script, capsys
    ) -> None:
        write_script("unittests/test_a.sli")
        write_script("unittests/test_b.sli", exit_code=42)
        marker = ctx.tmp_dir / "third-ran"
        write_script("unittests/test_c.sli", body=f"touch {marker}\nexit 0\n")

        with pytest.raises(HarnessAbort) as exc_info:
            PhaseOrchestrator(ctx).run_phase(
                _phase(runner, "unittests/test_a.sli", "unittests/test_b.sli", "unittests/test_c.sli")
            )

        assert exc_info.value.code is ErrorCode.TEST_UNEXPECTED_EXIT_CODE
        assert exc_info.value.details["exit_code"] == 42
        assert not marker.exists()
        assert not ctx.reports.is_open
        root = _report(ctx)
        assert root.get("tests") == "2"
        assert root.get("failures") == "1"
        assert (ctx.totals.total, ctx.totals.failed) == (2, 1)
        assert "*** An unexpected error occurred" in capsys.readouterr().out

    def test_spawn_failure_aborts(self, ctx: RunContext, runner: ProcessRunner, capsys) -> None:
        # Unknown suffix runs the path directly; a missing file cannot be started.
        phase = _phase(runner, "unittests/test_missing.bin", tables=SUCCESS_ONLY)

        with pytest.raises(HarnessAbort) as exc_info:
            PhaseOrchestrator(ctx).run_phase(phase)

        assert exc_info.value.code is ErrorCode.TEST_SPAWN_FAILED
        assert _report(ctx).get("tests") == "0"
        assert ctx.totals.total == 0
        assert str(ctx.tmp_dir) in capsys.readouterr().out

    def test_unavailable_phase_is_skipped(self, ctx: RunContext, capsys) -> None:
        phase = Phase(
            name="05_mpitests",
            title="Phase 5: Running distributed (MPI) tests",
            available=False,
            unavailable_reason="Not running MPI tests",
        )

        result = PhaseOrchestrator(ctx).run_phase(phase)

        assert result.skipped
        assert not (ctx.output_dir / "TEST-05_mpitests.xml").exists()
        assert "Not running MPI tests" in capsys.readouterr().out

    def test_empty_phase_still_reports(self, ctx: RunContext, runner: ProcessRunner) -> None:
        result = PhaseOrchestrator(ctx).run_phase(_phase(runner))
        assert result.tests == 0
        assert _report(ctx).get("tests") == "0"


class TestRunLog:
    def test_output_lines_prefixed(
        self, ctx: RunContext, runner: ProcessRunner, write_script
    ) -> None:
        write_script("unittests/test_a.sli", exit_code=1, output="first\nsecond")

        PhaseOrchestrator(ctx).run_phase(_phase(runner, "unittests/test_a.sli"))
        ctx.run_log.close()

        text = ctx.run_log.path.read_text()
        assert "Phase 3: Running unit tests" in text
        assert "Running test 'unittests/test_a.sli'... Failed: missed assertion" in text
        assert "   > first\n   > second\n" in text

    def test_console_shows_output_of_failures_only(
        self, ctx: RunContext, runner: ProcessRunner, write_script, capsys
    ) -> None:
        write_script("unittests/test_a.sli", output="quiet success")
        write_script("unittests/test_b.sli", exit_code=1, output="loud failure")

        PhaseOrchestrator(ctx).run_phase(
            _phase(runner, "unittests/test_a.sli", "unittests/test_b.sli")
        )

        out = capsys.readouterr().out
        assert "quiet success" not in out
        assert "   > loud failure" in out


def test_bug_report_guidance_names_directories(ctx: RunContext) -> None:
    text = bug_report_guidance(ctx, "unittests/test_a.sli")
    assert "'unittests/test_a.sli'" in text
    assert str(ctx.output_dir) in text
    assert str(ctx.tmp_dir) in text
    assert all(line.startswith("***") for line in text.splitlines())


def test_output_dir_layout(ctx: RunContext, tmp_path: Path) -> None:
    assert ctx.output_dir == (tmp_path / "reports").resolve()
    assert ctx.data_dir.is_dir()
    assert ctx.env["NEST_DATA_PATH"] == str(ctx.data_dir)
    assert ctx.tmp_dir.is_dir()
