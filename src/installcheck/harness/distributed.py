"""Multi-process test runner.

The launcher starts the cooperating processes; the harness only sees the
launcher's own exit code.
"""

from __future__ import annotations

import re
from pathlib import Path

from installcheck.config.models import InstallcheckConfig
from installcheck.core.errors import HarnessAbort
from installcheck.core.logging import get_logger
from installcheck.harness.codes import Classification, CodeTablePair, classify_exit_code
from installcheck.harness.models import RunResult, TestCase
from installcheck.harness.runner import ProcessRunner

log = get_logger("distributed")


def declared_process_count(text: str, pattern: str, default: int = 1) -> int:
    """Largest process count in the first declaration matched by *pattern*.

    The first group of *pattern* must capture whitespace-separated integers,
    e.g. ``[1 2 4] { ... }`` declares that the test runs with up to 4 processes.
    """
    match = re.search(pattern, text)
    if match is None:
        return default
    counts = [int(token) for token in match.group(1).split()]
    return max(counts) if counts else default


class DistributedRunner(ProcessRunner):
    """Runs a test script under the configured multi-process launcher."""

    def __init__(
        self,
        config: InstallcheckConfig,
        *,
        expected_failure: bool = False,
        env: dict[str, str] | None = None,
        scratch_root: Path | None = None,
    ) -> None:
        super().__init__(config, env=env, scratch_root=scratch_root)
        self._expected_failure = expected_failure

    @property
    def expected_failure(self) -> bool:
        return self._expected_failure

    def process_count(self, script: Path) -> int:
        mpi = self.config.mpi
        text = script.read_text(errors="replace")
        return declared_process_count(text, mpi.procs_pattern, mpi.default_procs)

    def launch_command(self, procs: int, target: list[str]) -> list[str]:
        mpi = self.config.mpi
        return [mpi.launcher, mpi.numproc_flag, str(procs), *mpi.preflags, *target]

    def build_command(self, case: TestCase, test_dir: Path) -> list[str]:
        script = test_dir / case.path
        try:
            procs = self.process_count(script)
        except OSError as e:
            log.error("script_unreadable", test=case.path, error=str(e))
            raise HarnessAbort.staging_failed(case.path, e.strerror or str(e)) from e
        log.debug("process_count", test=case.path, procs=procs)
        return self.launch_command(procs, self.command_for(script))

    def classify(
        self,
        case: TestCase,  # noqa: ARG002
        result: RunResult,
        tables: CodeTablePair,
    ) -> Classification:
        if self._expected_failure:
            tables = tables.inverted()
        return classify_exit_code(result.exit_code, tables)
