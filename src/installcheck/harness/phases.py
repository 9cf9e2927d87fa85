"""The test campaign: which tests run in which phase, judged by which tables.

Hand-picked self-tests run in declared order; bulk directories run in
lexical order, interpreter scripts before Python scripts.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path

from installcheck.core.logging import get_logger
from installcheck.core.progress import heading, status
from installcheck.harness import codes
from installcheck.harness.codes import CodeTablePair
from installcheck.harness.context import RunContext
from installcheck.harness.cosim import CoSimulationRunner
from installcheck.harness.distributed import DistributedRunner
from installcheck.harness.orchestrator import Phase, PhaseOrchestrator, PhaseResult, PlannedTest
from installcheck.harness.pynest import PHASE_NAME as PYNEST_PHASE_NAME
from installcheck.harness.pynest import PynestProducer
from installcheck.harness.runner import ProcessRunner

log = get_logger("phases")

SCRIPT_SUFFIXES = (".sli", ".py")

BASE_PASSING = ("test_pass.sli", "test_goodhandler.sli", "test_lazyhandler.sli")
BASE_FAILING = ("test_fail.sli", "test_stop.sli", "test_badhandler.sli")

SELFTESTS: tuple[tuple[str, CodeTablePair], ...] = (
    # pass_or_die first: assert_or_die is built on it
    ("test_pass_or_die.sli", codes.PASS_OR_DIE),
    ("test_assert_or_die_b.sli", codes.ASSERT_OR_DIE),
    ("test_assert_or_die_p.sli", codes.ASSERT_OR_DIE),
    ("test_fail_or_die.sli", codes.FAIL_OR_DIE),
    ("test_crash_or_die.sli", codes.CRASH_OR_DIE),
    ("test_failbutnocrash_or_die_crash.sli", codes.FAILBUTNOCRASH_OR_DIE),
    ("test_failbutnocrash_or_die_pass.sli", codes.FAILBUTNOCRASH_OR_DIE),
    ("test_passorfailbutnocrash_or_die.sli", codes.PASSORFAILBUTNOCRASH_OR_DIE),
)


def list_tests(test_dir: Path, subdir: str, suffixes: Iterable[str] = SCRIPT_SUFFIXES) -> list[str]:
    """Suite-relative paths of the scripts in *subdir*, grouped by suffix."""
    directory = test_dir / subdir
    if not directory.is_dir():
        log.warning("missing_test_directory", directory=str(directory))
        return []
    found: list[str] = []
    for suffix in suffixes:
        names = sorted(p.name for p in directory.iterdir() if p.is_file() and p.suffix == suffix)
        found.extend(f"{subdir}/{name}" for name in names)
    return found


def declared_tests(test_dir: Path, subdir: str, names: Iterable[str]) -> list[str]:
    """Hand-picked tests in declared order; missing ones are reported and left out."""
    found: list[str] = []
    for name in names:
        rel = f"{subdir}/{name}"
        if (test_dir / rel).is_file():
            found.append(rel)
        else:
            log.warning("missing_declared_test", test=rel)
    return found


def capability_available(enabled: bool | None, binary: str) -> bool:
    """Explicit setting wins; otherwise look *binary* up on PATH."""
    if enabled is not None:
        return enabled
    return shutil.which(binary) is not None


def build_phases(ctx: RunContext) -> list[Phase]:
    """Phases 1-6, in execution order."""
    config = ctx.config
    test_dir = ctx.test_dir
    runner = ProcessRunner(config, env=ctx.env, scratch_root=ctx.tmp_dir)

    base = Phase(
        name="01_basetests",
        title="Phase 1: Testing if the interpreter can execute scripts and report errors",
    )
    base.tests += [
        PlannedTest(rel, codes.SUCCESS_ONLY, runner)
        for rel in declared_tests(test_dir, "selftests", BASE_PASSING)
    ]
    base.tests += [
        PlannedTest(rel, codes.SUCCESS_ON_126, runner)
        for rel in declared_tests(test_dir, "selftests", BASE_FAILING)
    ]

    selftest_names = dict(SELFTESTS)
    selftests = Phase(name="02_selftests", title="Phase 2: Testing the unittest library")
    selftests.tests = [
        PlannedTest(rel, selftest_names[Path(rel).name], runner)
        for rel in declared_tests(test_dir, "selftests", selftest_names)
    ]

    unittests = Phase(
        name="03_unittests",
        title="Phase 3: Running unit tests",
        tests=[
            PlannedTest(rel, codes.SUITE_TABLES, runner)
            for rel in list_tests(test_dir, "unittests")
        ],
    )

    regressiontests = Phase(
        name="04_regressiontests",
        title="Phase 4: Running regression tests",
        tests=[
            PlannedTest(rel, codes.SUITE_TABLES, runner)
            for rel in list_tests(test_dir, "regressiontests")
        ],
    )

    return [
        base,
        selftests,
        unittests,
        regressiontests,
        _distributed_phase(ctx),
        _cosimulation_phase(ctx),
    ]


def _distributed_phase(ctx: RunContext) -> Phase:
    config = ctx.config
    phase = Phase(name="05_mpitests", title="Phase 5: Running distributed (MPI) tests")
    if not capability_available(config.mpi.enabled, config.mpi.launcher):
        phase.available = False
        phase.unavailable_reason = (
            "Not running MPI tests: no support for distributed computing "
            f"(launcher '{config.mpi.launcher}' disabled or not found)."
        )
        return phase

    runner = DistributedRunner(config, env=ctx.env, scratch_root=ctx.tmp_dir)
    expected_failure = DistributedRunner(
        config, expected_failure=True, env=ctx.env, scratch_root=ctx.tmp_dir
    )
    for subdir in ("mpi_selftests/pass", "mpitests"):
        phase.tests += [
            PlannedTest(rel, codes.SUITE_TABLES, runner)
            for rel in list_tests(ctx.test_dir, subdir, (".sli",))
        ]
    phase.tests += [
        PlannedTest(rel, codes.DISTRIBUTED_SELFTEST, expected_failure)
        for rel in list_tests(ctx.test_dir, "mpi_selftests/fail", (".sli",))
    ]
    return phase


def _cosimulation_phase(ctx: RunContext) -> Phase:
    config = ctx.config
    phase = Phase(name="06_musictests", title="Phase 6: Running co-simulation (MUSIC) tests")
    if not capability_available(config.music.enabled, config.music.binary):
        phase.available = False
        phase.unavailable_reason = (
            "Not running co-simulation tests: no MUSIC support "
            f"(binary '{config.music.binary}' disabled or not found)."
        )
        return phase

    runner = CoSimulationRunner(
        config, work_root=ctx.tmp_dir / "cosim", env=ctx.env, scratch_root=ctx.tmp_dir
    )
    phase.tests = [
        PlannedTest(rel, codes.SUCCESS_ONLY, runner)
        for rel in list_tests(ctx.test_dir, "musictests", (config.music.manifest_suffix,))
    ]
    return phase


def run_pynest_phase(ctx: RunContext) -> PhaseResult:
    """Phase 7: counts come from the Python test runner, not exit-code tables."""
    title = "Phase 7: Running PyNEST tests"
    heading(title)
    ctx.run_log.write()
    ctx.run_log.write(title)

    runner = ProcessRunner(ctx.config, env=ctx.env, scratch_root=ctx.tmp_dir)
    producer = PynestProducer(
        ctx.config,
        runner,
        output_dir=ctx.output_dir,
        source_dir=ctx.config.suite.source_dir,
    )
    counts, result = producer.run()
    ctx.totals.add_counts(counts.total, counts.passed, counts.failed, counts.elapsed)
    ctx.run_log.write_output(result.output)

    line = f"PyNEST tests: {counts.total} total, {counts.passed} passed, {counts.failed} failed"
    status(line, style="error" if counts.failed else "success", indent=2)
    ctx.run_log.write(f"  {line}")
    return PhaseResult(name=PYNEST_PHASE_NAME, tests=counts.total, failures=counts.failed)


def run_campaign(ctx: RunContext, *, test_pynest: bool = False) -> list[PhaseResult]:
    """Run every phase in sequence. HarnessAbort propagates to the caller."""
    orchestrator = PhaseOrchestrator(ctx)
    results: list[PhaseResult] = []
    for phase in build_phases(ctx):
        results.append(orchestrator.run_phase(phase))
    if test_pynest:
        results.append(run_pynest_phase(ctx))
    return results
