"""Drive the tests of one phase through run, classify, record.

A failing test is counted and the phase goes on. An exit code neither table
anticipates means the harness or the environment is broken: the run stops
right there, later phases included.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from installcheck.core.errors import HarnessAbort
from installcheck.core.logging import get_log_file_path, get_logger
from installcheck.core.progress import heading, pluralize, print_block, status
from installcheck.harness.codes import CodeTablePair, Outcome
from installcheck.harness.context import RunContext
from installcheck.harness.junit import JUnitReportSession
from installcheck.harness.models import TestCase
from installcheck.harness.runner import ProcessRunner

log = get_logger("orchestrator")

_STATUS_STYLES = {
    Outcome.SUCCESS: "success",
    Outcome.FAILURE: "error",
    Outcome.UNEXPECTED: "error",
}


@dataclass(frozen=True)
class PlannedTest:
    """A test path with the tables and runner it is judged by."""

    path: str
    tables: CodeTablePair
    runner: ProcessRunner


@dataclass
class Phase:
    """Named, ordered group of tests sharing one report."""

    name: str
    title: str
    tests: list[PlannedTest] = field(default_factory=list)
    available: bool = True
    unavailable_reason: str = ""


@dataclass
class PhaseResult:
    name: str
    tests: int = 0
    failures: int = 0
    skipped: bool = False


def bug_report_guidance(ctx: RunContext, test_path: str) -> str:
    lines = [
        "***",
        f"*** An unexpected error occurred while running '{test_path}'.",
        "*** Please report the problem to the maintainers of the test suite.",
        "***",
        "*** To help diagnose the problem, please attach the archived content",
        "*** of these directories to the report:",
        f"***     - '{ctx.output_dir}'",
        f"***     - '{ctx.tmp_dir}'",
    ]
    if log_file := get_log_file_path():
        lines.append(f"***     - '{log_file}'")
    lines.append("***")
    return "\n".join(lines)


class PhaseOrchestrator:
    """Runs phases against one RunContext, strictly one test at a time."""

    def __init__(self, ctx: RunContext) -> None:
        self._ctx = ctx

    @property
    def context(self) -> RunContext:
        return self._ctx

    def run_phase(self, phase: Phase) -> PhaseResult:
        ctx = self._ctx
        heading(phase.title)
        ctx.run_log.write()
        ctx.run_log.write(phase.title)

        if not phase.available:
            status(phase.unavailable_reason, style="warning", indent=2)
            ctx.run_log.write(f"  {phase.unavailable_reason}")
            log.info("phase_skipped", phase=phase.name, reason=phase.unavailable_reason)
            return PhaseResult(name=phase.name, skipped=True)

        log.info("phase_started", phase=phase.name, tests=len(phase.tests))
        with ctx.reports.session(phase.name) as report:
            for planned in phase.tests:
                self.run_test(planned, report)
            result = PhaseResult(name=phase.name, tests=report.tests, failures=report.failures)

        status(
            f"{pluralize(result.tests, 'test')}, {pluralize(result.failures, 'failure')}",
            style="info",
        )
        log.info("phase_finished", phase=phase.name, tests=result.tests, failures=result.failures)
        return result

    def run_test(self, planned: PlannedTest, report: JUnitReportSession) -> TestCase:
        """Run, classify and record one test.

        Raises:
            HarnessAbort: The test could not be started or exited with an
                unexpected code.
        """
        ctx = self._ctx
        case = TestCase.from_path(planned.path)
        try:
            result = planned.runner.execute(case, ctx.test_dir)
        except HarnessAbort as e:
            status(f"Running test '{case.path}'... {e.message}", style="error", indent=2)
            ctx.run_log.write(f"  Running test '{case.path}'... {e.message}")
            print_block(bug_report_guidance(ctx, case.path))
            raise

        case.apply_result(result)
        classification = planned.runner.classify(case, result, planned.tables)
        case.apply_classification(classification)
        ctx.totals.add(classification, case.elapsed)

        line = f"Running test '{case.path}'... {case.explanation} ({case.elapsed:.1f} s)"
        status(line, style=_STATUS_STYLES[classification.outcome], indent=2)
        ctx.run_log.write(f"  {line}")
        ctx.run_log.write_output(case.output)

        report.record(
            case.classname,
            case.name,
            classification.outcome,
            case.explanation,
            case.output,
            case.elapsed,
        )

        if classification.outcome is not Outcome.SUCCESS:
            print_block(case.output, prefix="   > ")
        if classification.outcome is Outcome.UNEXPECTED:
            guidance = bug_report_guidance(ctx, case.path)
            print_block(guidance)
            ctx.run_log.write(guidance)
            log.error("unexpected_exit_code", test=case.path, exit_code=case.exit_code)
            raise HarnessAbort.unexpected_exit_code(case.path, case.exit_code or 0)
        return case
