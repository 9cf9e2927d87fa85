"""Run-wide state shared by every phase.

One RunContext exists per invocation. Only the active phase writes to it,
so nothing here is locked.
"""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from installcheck.config.constants import (
    DATA_SUBDIR,
    LOG_FILE_NAME,
    OUTPUT_LINE_PREFIX,
    TMP_DIR_PREFIX,
)
from installcheck.config.models import InstallcheckConfig
from installcheck.harness.junit import JUnitReportSession
from installcheck.harness.models import HostInfo, RunTotals
from installcheck.harness.runner import child_environment


class RunLog:
    """Cumulative plain-text log of a run (``installcheck.log``)."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._file: TextIO | None = None

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._path.open("w", encoding="utf-8")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def write(self, line: str = "") -> None:
        if self._file is None:
            return
        self._file.write(f"{line}\n")
        self._file.flush()

    def write_output(self, output: str) -> None:
        """Append captured test output, every line prefixed."""
        if self._file is None:
            return
        for line in output.splitlines():
            self._file.write(f"{OUTPUT_LINE_PREFIX}{line}\n")
        self._file.flush()


@dataclass
class RunContext:
    """Everything a phase needs besides its own test list."""

    config: InstallcheckConfig
    test_dir: Path
    output_dir: Path
    tmp_dir: Path
    host: HostInfo
    env: dict[str, str]
    run_log: RunLog
    reports: JUnitReportSession
    totals: RunTotals = field(default_factory=RunTotals)

    @classmethod
    def create(
        cls,
        config: InstallcheckConfig,
        *,
        host: HostInfo | None = None,
    ) -> RunContext:
        """Prepare output and temporary directories and the child environment."""
        output_dir = config.suite.output_dir.resolve()
        output_dir.mkdir(parents=True, exist_ok=True)
        data_dir = output_dir / DATA_SUBDIR
        data_dir.mkdir(parents=True, exist_ok=True)
        tmp_dir = Path(tempfile.mkdtemp(prefix=TMP_DIR_PREFIX))
        host = host or HostInfo.capture()

        run_log = RunLog(output_dir / LOG_FILE_NAME)
        run_log.open()
        return cls(
            config=config,
            test_dir=config.suite.test_dir.resolve(),
            output_dir=output_dir,
            tmp_dir=tmp_dir,
            host=host,
            env=child_environment(config.suite.data_path_env, data_dir),
            run_log=run_log,
            reports=JUnitReportSession(output_dir, host),
        )

    @property
    def data_dir(self) -> Path:
        return self.output_dir / DATA_SUBDIR

    def finish(self, *, keep_tmp: bool) -> None:
        """Close the run log; the temporary directory is kept for diagnosis on request."""
        self.run_log.close()
        if not keep_tmp:
            shutil.rmtree(self.tmp_dir, ignore_errors=True)
