"""Exit-code tables and outcome classification.

A test program reports its result only through its exit code. Each phase
declares which codes mean success and which mean a legitimate test failure;
any other code means the test or the environment is broken.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum


class Outcome(Enum):
    """Classification result of one test run."""

    SUCCESS = "success"
    FAILURE = "failure"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True, slots=True)
class Classification:
    outcome: Outcome
    explanation: str

    @property
    def skipped(self) -> bool:
        """Success reported through one of the skip codes."""
        return self.outcome is Outcome.SUCCESS and self.explanation.startswith("Skipped")


class CodeTable:
    """Ordered, immutable mapping from exit code to explanation."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[tuple[int, str]] = ()) -> None:
        table: dict[int, str] = {}
        for code, explanation in entries:
            if code in table:
                raise ValueError(f"Duplicate exit code {code} in code table")
            table[code] = explanation
        self._entries = table

    @classmethod
    def of(cls, mapping: Mapping[int, str] | None = None) -> CodeTable:
        return cls((mapping or {}).items())

    def lookup(self, code: int) -> str | None:
        return self._entries.get(code)

    def entries(self) -> list[tuple[int, str]]:
        return list(self._entries.items())

    def codes(self) -> frozenset[int]:
        return frozenset(self._entries)

    def describe(self) -> str:
        return ", ".join(f"{code} {text}" for code, text in self._entries.items())

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CodeTable):
            return NotImplemented
        return self.entries() == other.entries()

    def __hash__(self) -> int:
        return hash(tuple(self._entries.items()))

    def __repr__(self) -> str:
        return f"CodeTable({self._entries!r})"


@dataclass(frozen=True, slots=True)
class CodeTablePair:
    """Success and failure tables used to classify one test."""

    success: CodeTable
    failure: CodeTable

    @classmethod
    def of(
        cls,
        success: Mapping[int, str] | None = None,
        failure: Mapping[int, str] | None = None,
    ) -> CodeTablePair:
        return cls(CodeTable.of(success), CodeTable.of(failure))

    def overlap(self) -> frozenset[int]:
        """Codes declared in both tables. The success table wins for these."""
        return self.success.codes() & self.failure.codes()

    def inverted(self) -> CodeTablePair:
        """Pair for tests that are expected to fail.

        Failure codes become success codes and success codes become failures.
        """
        success = CodeTable(
            (code, f"Success (expected failure: {_strip_failed(text)})")
            for code, text in self.failure.entries()
        )
        failure = CodeTable(
            (code, "Failed: test failed to fail") for code in self.success
        )
        return CodeTablePair(success, failure)


def _strip_failed(text: str) -> str:
    return text.removeprefix("Failed:").strip() or text


def classify_exit_code(exit_code: int, tables: CodeTablePair) -> Classification:
    """Classify *exit_code* against a phase's tables.

    The success table is consulted first, so a code declared in both tables
    classifies as success.
    """
    explanation = tables.success.lookup(exit_code)
    if explanation is not None:
        return Classification(Outcome.SUCCESS, explanation)
    explanation = tables.failure.lookup(exit_code)
    if explanation is not None:
        return Classification(Outcome.FAILURE, explanation)
    return Classification(Outcome.UNEXPECTED, f"Failed: unexpected exit code {exit_code}")


# =============================================================================
# Standard tables
# =============================================================================

SUCCESS_ONLY = CodeTablePair.of({0: "Success"})
"""Plain pass/fail self-tests."""

SUCCESS_ON_126 = CodeTablePair.of({126: "Success"})
"""Self-tests that must make the interpreter report an error."""

_ASSERTION_FAILURES = {
    1: "Failed: missed assertion",
    2: "Failed: error in tested code block",
    126: "Failed: error in test script",
}

PASS_OR_DIE = CodeTablePair.of({2: "Success"}, {126: "Failed: error in test script"})

ASSERT_OR_DIE = CodeTablePair.of(
    {1: "Success"},
    {2: "Failed: error in tested code block", 126: "Failed: error in test script"},
)

FAIL_OR_DIE = CodeTablePair.of({3: "Success"}, _ASSERTION_FAILURES)

CRASH_OR_DIE = CodeTablePair.of({3: "Success"}, _ASSERTION_FAILURES)

FAILBUTNOCRASH_OR_DIE = CodeTablePair.of({4: "Success"}, _ASSERTION_FAILURES)

PASSORFAILBUTNOCRASH_OR_DIE = CodeTablePair.of({5: "Success"}, _ASSERTION_FAILURES)

SUITE_TABLES = CodeTablePair.of(
    {
        0: "Success",
        200: "Skipped",
        201: "Skipped (build with-mpi=OFF required)",
        202: "Skipped (build with-mpi=ON required)",
        203: "Skipped (build with-openmp=ON required)",
        204: "Skipped (build with-gsl=ON required)",
        205: "Skipped (build with-music=ON required)",
    },
    {
        1: "Failed: missed assertion",
        2: "Failed: error in tested code block",
        3: "Failed: tested code block failed to fail",
        4: "Failed: re-run serial",
        10: "Failed: unknown error",
        20: "Failed: inconsistent number of failures",
        30: "Failed: inconsistent number of crashes",
        31: "Failed: inconsistent number of failures and crashes",
        125: "Failed: unknown C++ exception",
        126: "Failed: error in test script",
        127: "Failed: fatal error",
        134: "Failed: missed C++ assertion",
        139: "Failed: segmentation fault",
    },
)
"""Unit, regression and distributed tests."""

DISTRIBUTED_SELFTEST = CodeTablePair.of({0: "Success"}, {1: "Failed: missed assertion"})
"""Base pair for distributed self-tests; the expected-failure ones run it inverted."""
