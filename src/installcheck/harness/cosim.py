"""Co-simulation test runner.

A co-simulation test is a manifest naming the participating scripts and
their process counts, plus an optional post-run driver that checks the
results. Everything is staged into a fresh directory which is purged after
the test, whatever its outcome.
"""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from installcheck.config.models import InstallcheckConfig
from installcheck.core.errors import HarnessAbort
from installcheck.core.logging import get_logger
from installcheck.harness.codes import Classification, CodeTablePair, Outcome
from installcheck.harness.models import RunResult, TestCase
from installcheck.harness.runner import ProcessRunner

log = get_logger("cosim")


@dataclass
class Manifest:
    """What a co-simulation manifest references."""

    path: Path
    process_counts: list[int] = field(default_factory=list)
    scripts: list[Path] = field(default_factory=list)
    post_run: Path | None = None

    @property
    def total_processes(self) -> int:
        return sum(self.process_counts)

    def artifacts(self) -> list[Path]:
        files = [self.path, *self.scripts]
        if self.post_run is not None:
            files.append(self.post_run)
        return files


def parse_manifest(path: Path, post_run_suffix: str = ".sh") -> Manifest:
    """Read ``np=`` counts and ``args=`` script references from a manifest.

    Only ``args`` tokens naming a file next to the manifest are staged.
    """
    manifest = Manifest(path=path)
    for raw in path.read_text(errors="replace").splitlines():
        line = raw.strip()
        if line.startswith("np="):
            manifest.process_counts.append(int(line.removeprefix("np=").strip()))
        elif line.startswith("args="):
            for token in line.removeprefix("args=").split():
                candidate = path.parent / token
                if candidate.is_file() and candidate not in manifest.scripts:
                    manifest.scripts.append(candidate)

    post_run = path.with_suffix(post_run_suffix)
    if post_run.is_file():
        manifest.post_run = post_run
    return manifest


class CoSimulationRunner(ProcessRunner):
    """Stages a manifest and its scripts, then runs them as one unit."""

    def __init__(
        self,
        config: InstallcheckConfig,
        *,
        work_root: Path,
        env: dict[str, str] | None = None,
        scratch_root: Path | None = None,
    ) -> None:
        super().__init__(config, env=env, scratch_root=scratch_root)
        self._work_root = work_root

    def expects_failure(self, case: TestCase) -> bool:
        return self.config.music.failure_marker in case.name

    def launch_command(self, manifest: Manifest) -> list[str]:
        mpi = self.config.mpi
        return [
            mpi.launcher,
            mpi.numproc_flag,
            str(manifest.total_processes),
            *mpi.preflags,
            self.config.music.binary,
            manifest.path.name,
        ]

    def stage(self, case: TestCase, test_dir: Path) -> tuple[Manifest, Path]:
        """Parse the manifest and copy it with its scripts into a fresh directory.

        Raises:
            HarnessAbort: The manifest is unreadable or malformed, or staging failed.
        """
        try:
            manifest = parse_manifest(test_dir / case.path, self.config.music.post_run_suffix)
            self._work_root.mkdir(parents=True, exist_ok=True)
            workdir = Path(tempfile.mkdtemp(prefix="cosim-", dir=self._work_root))
        except (OSError, ValueError) as e:
            log.error("staging_failed", test=case.path, error=str(e))
            raise HarnessAbort.staging_failed(case.path, str(e)) from e

        try:
            for artifact in manifest.artifacts():
                shutil.copy2(artifact, workdir / artifact.name)
        except OSError as e:
            shutil.rmtree(workdir, ignore_errors=True)
            log.error("staging_failed", test=case.path, error=str(e))
            raise HarnessAbort.staging_failed(case.path, str(e)) from e

        log.debug(
            "staged",
            test=case.path,
            workdir=str(workdir),
            processes=manifest.total_processes,
        )
        return manifest, workdir

    def execute(self, case: TestCase, test_dir: Path) -> RunResult:
        manifest, workdir = self.stage(case, test_dir)
        try:
            result = self.spawn(self.launch_command(manifest), cwd=workdir)
            if manifest.post_run is None:
                return result

            driver = self.command_for(workdir / manifest.post_run.name)
            post = self.spawn(driver, cwd=workdir)
            return RunResult(
                exit_code=post.exit_code,
                output=result.output + post.output,
                elapsed=result.elapsed + post.elapsed,
            )
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    def classify(
        self,
        case: TestCase,
        result: RunResult,
        tables: CodeTablePair,  # noqa: ARG002
    ) -> Classification:
        failed = result.exit_code != 0
        if self.expects_failure(case):
            if failed:
                return Classification(Outcome.SUCCESS, "Success (expected failure)")
            return Classification(Outcome.FAILURE, "Failed: test failed to fail")
        if failed:
            return Classification(Outcome.FAILURE, f"Failed: exit code {result.exit_code}")
        return Classification(Outcome.SUCCESS, "Success")
