"""Harness data model.

TestCase records move through a fixed lifecycle: created when a phase
starts iterating, filled once by the runner, classified once, then written
to the phase report.
"""

from __future__ import annotations

import getpass
import platform
import socket
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Literal

from installcheck.config.constants import EXIT_FAILURES, EXIT_OK, HOST_PROPERTIES
from installcheck.harness.codes import Classification, Outcome


@dataclass(frozen=True, slots=True)
class RunResult:
    """What one runner invocation produced."""

    exit_code: int
    output: str
    elapsed: float

    def __post_init__(self) -> None:
        if self.elapsed < 0:
            object.__setattr__(self, "elapsed", 0.0)


@dataclass
class TestCase:
    """A runnable unit identified by its path relative to the suite root."""

    __test__ = False  # keep pytest from collecting this class

    path: str
    classname: str
    name: str
    exit_code: int | None = None
    elapsed: float = 0.0
    output: str = ""
    outcome: Outcome | None = None
    explanation: str = ""

    @classmethod
    def from_path(cls, path: str) -> TestCase:
        """Derive classname and short name from a suite-relative path.

        ``mpi_selftests/pass/test_x.sli`` -> classname ``mpi_selftests.pass``,
        name ``test_x``.
        """
        rel = PurePosixPath(path)
        parent = rel.parent.as_posix()
        classname = "" if parent == "." else parent.replace("/", ".")
        return cls(path=rel.as_posix(), classname=classname, name=rel.stem)

    @property
    def ran(self) -> bool:
        return self.exit_code is not None

    def apply_result(self, result: RunResult) -> None:
        if self.exit_code is not None:
            raise RuntimeError(f"Result already recorded for {self.path}")
        self.exit_code = result.exit_code
        self.output = result.output
        self.elapsed = result.elapsed

    def apply_classification(self, classification: Classification) -> None:
        if self.outcome is not None:
            raise RuntimeError(f"Outcome already recorded for {self.path}")
        self.outcome = classification.outcome
        self.explanation = classification.explanation


@dataclass
class RunTotals:
    """Process-wide counters. Only ever incremented."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    elapsed: float = 0.0

    def add(self, classification: Classification, elapsed: float) -> None:
        self.total += 1
        self.elapsed += max(elapsed, 0.0)
        if classification.outcome is Outcome.SUCCESS:
            self.passed += 1
            if classification.skipped:
                self.skipped += 1
        else:
            self.failed += 1

    def add_counts(self, total: int, passed: int, failed: int, elapsed: float = 0.0) -> None:
        """Merge counts produced outside the orchestrator (PyNEST phase)."""
        self.total += total
        self.passed += passed
        self.failed += failed
        self.elapsed += max(elapsed, 0.0)

    @property
    def exit_code(self) -> int:
        return EXIT_FAILURES if self.failed else EXIT_OK


@dataclass(frozen=True, slots=True)
class HostInfo:
    """Host metadata embedded in every report."""

    arch: str
    os_name: str
    os_version: str
    home: str
    user: str
    hostname: str

    @classmethod
    def capture(cls) -> HostInfo:
        try:
            user = getpass.getuser()
        except (KeyError, OSError):
            user = "unknown"
        return cls(
            arch=platform.machine(),
            os_name=platform.system(),
            os_version=platform.release(),
            home=str(Path.home()),
            user=user,
            hostname=socket.getfqdn(),
        )

    def properties(self) -> list[tuple[str, str]]:
        values = (self.arch, self.os_name, self.os_version, self.home, self.user)
        return list(zip(HOST_PROPERTIES, values, strict=True))


@dataclass
class SuiteCounts:
    """Counts yielded by an external result producer."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    elapsed: float = 0.0


# =============================================================================
# Parsed reports - read back from JUnit XML or runner summaries
# =============================================================================


@dataclass
class ParsedTestCase:
    """A single test case read back from a report."""

    __test__ = False

    name: str
    classname: str | None
    status: Literal["passed", "failed", "skipped", "error"]
    duration_seconds: float
    message: str | None = None
    traceback: str | None = None


@dataclass
class ParsedTestSuite:
    """Parsed report of one suite."""

    __test__ = False

    name: str
    tests: list[ParsedTestCase] = field(default_factory=list)
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0
    duration_seconds: float = 0.0

    def counts(self) -> SuiteCounts:
        """Collapse into harness counts.

        Errors count as failures, skipped tests as passed.
        """
        failed = self.failed + self.errors
        return SuiteCounts(
            total=self.total,
            passed=self.total - failed,
            failed=failed,
            elapsed=self.duration_seconds,
        )
