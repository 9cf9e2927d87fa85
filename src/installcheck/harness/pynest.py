"""PyNEST phase: results produced by a Python test runner, not by exit codes.

With a source tree, pytest runs the PyNEST tests and writes its own JUnit
report, which is read back for the counts. Without one, the installed
module's built-in test entry point runs and its summary is parsed.
"""

from __future__ import annotations

from pathlib import Path

from installcheck.config.constants import REPORT_FILE_TEMPLATE
from installcheck.config.models import InstallcheckConfig
from installcheck.core.logging import get_logger
from installcheck.harness.models import ParsedTestSuite, RunResult, SuiteCounts
from installcheck.harness.parsers import parse_junit_xml, parse_runner_summary
from installcheck.harness.runner import ProcessRunner

log = get_logger("pynest")

PHASE_NAME = "07_pynesttests"


class PynestProducer:
    """Runs the PyNEST tests and reports (total, passed, failed)."""

    def __init__(
        self,
        config: InstallcheckConfig,
        runner: ProcessRunner,
        *,
        output_dir: Path,
        source_dir: Path | None = None,
    ) -> None:
        self._config = config
        self._runner = runner
        self._output_dir = output_dir
        self._source_dir = source_dir

    @property
    def report_path(self) -> Path:
        return self._output_dir / REPORT_FILE_TEMPLATE.format(name=PHASE_NAME)

    @property
    def uses_source_tree(self) -> bool:
        return self._source_dir is not None

    def command(self) -> list[str]:
        pynest = self._config.pynest
        if self._source_dir is None:
            return [pynest.python, "-c", pynest.fallback_code]
        return [
            pynest.python,
            "-m",
            "pytest",
            str(self._source_dir / pynest.tests_subdir),
            f"--junitxml={self.report_path}",
            "-q",
        ]

    def run(self) -> tuple[SuiteCounts, RunResult]:
        """Run the tests. Spawn failures propagate as HarnessAbort."""
        if self.uses_source_tree:
            self.report_path.unlink(missing_ok=True)
        result = self._runner.spawn(self.command(), cwd=self._source_dir)
        suite = self._parse(result)
        counts = suite.counts()
        counts.elapsed = result.elapsed
        log.info(
            "pynest_finished",
            exit_code=result.exit_code,
            total=counts.total,
            passed=counts.passed,
            failed=counts.failed,
        )
        return counts, result

    def _parse(self, result: RunResult) -> ParsedTestSuite:
        if self.uses_source_tree and self.report_path.exists():
            return parse_junit_xml(self.report_path.read_text(encoding="utf-8"))
        return parse_runner_summary(result.output)
