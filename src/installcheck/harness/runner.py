"""Run one external test program and capture its result.

The exit code of a test program is data, never an error: only a program
that cannot be started at all aborts the run.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
import time
from pathlib import Path

from installcheck.config.models import InstallcheckConfig
from installcheck.core.errors import HarnessAbort
from installcheck.core.logging import get_logger
from installcheck.harness.codes import Classification, CodeTablePair, classify_exit_code
from installcheck.harness.models import RunResult, TestCase

log = get_logger("runner")


def normalize_returncode(returncode: int) -> int:
    """Map signal terminations to the shell convention (128 + signal).

    ``subprocess`` reports a child killed by SIGSEGV as -11; the exit-code
    tables use the value a shell would report, 139.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


class ProcessRunner:
    """Spawns one test program per call.

    Combined stdout/stderr goes to a scratch file in a fresh temporary
    directory owned by the call, so successive calls never share files.
    """

    def __init__(
        self,
        config: InstallcheckConfig,
        *,
        env: dict[str, str] | None = None,
        scratch_root: Path | None = None,
    ) -> None:
        self._config = config
        self._env = env
        self._scratch_root = scratch_root

    @property
    def config(self) -> InstallcheckConfig:
        return self._config

    def command_for(self, script: Path) -> list[str]:
        """Interpreter prefix chosen by file suffix, then the script."""
        interpreter = self._config.executables.interpreters.get(script.suffix)
        if interpreter is None:
            return [str(script)]
        return [*interpreter, str(script)]

    def build_command(self, case: TestCase, test_dir: Path) -> list[str]:
        return self.command_for(test_dir / case.path)

    def spawn(self, command: list[str], *, cwd: Path | None = None) -> RunResult:
        """Run *command* to completion.

        Raises:
            HarnessAbort: The program could not be started.
        """
        log.debug("spawn", command=command, cwd=str(cwd) if cwd else None)
        with tempfile.TemporaryDirectory(prefix="run-", dir=self._scratch_root) as scratch:
            output_path = Path(scratch) / "output.log"
            with output_path.open("wb") as out:
                start = time.monotonic()
                try:
                    proc = subprocess.run(
                        command,
                        stdin=subprocess.DEVNULL,
                        stdout=out,
                        stderr=subprocess.STDOUT,
                        cwd=cwd,
                        env=self._env,
                        check=False,
                    )
                except OSError as e:
                    log.error("spawn_failed", command=command, error=str(e))
                    raise HarnessAbort.spawn_failed(command, e.strerror or str(e)) from e
                elapsed = time.monotonic() - start
            output = output_path.read_text(errors="replace")

        exit_code = normalize_returncode(proc.returncode)
        log.debug("exited", command=command, exit_code=exit_code, elapsed=round(elapsed, 3))
        return RunResult(exit_code=exit_code, output=output, elapsed=elapsed)

    def execute(self, case: TestCase, test_dir: Path) -> RunResult:
        return self.spawn(self.build_command(case, test_dir))

    def classify(
        self,
        case: TestCase,  # noqa: ARG002
        result: RunResult,
        tables: CodeTablePair,
    ) -> Classification:
        return classify_exit_code(result.exit_code, tables)


def child_environment(data_path_env: str, data_dir: Path) -> dict[str, str]:
    """Environment for test programs: inherited, plus the data directory."""
    env = dict(os.environ)
    env[data_path_env] = str(data_dir)
    return env
