"""Tests for the harness data model."""

import pytest

from installcheck.harness.codes import Classification, Outcome
from installcheck.harness.models import (
    HostInfo,
    ParsedTestSuite,
    RunResult,
    RunTotals,
    TestCase,
)


class TestTestCase:
    """TestCase identity and lifecycle."""

    @pytest.mark.parametrize(
        ("path", "classname", "name"),
        [
            ("unittests/test_iaf.sli", "unittests", "test_iaf"),
            ("mpi_selftests/pass/test_gather.sli", "mpi_selftests.pass", "test_gather"),
            ("regressiontests/ticket-310.py", "regressiontests", "ticket-310"),
            ("test_top.sli", "", "test_top"),
        ],
    )
    def test_from_path(self, path: str, classname: str, name: str) -> None:
        case = TestCase.from_path(path)
        assert case.path == path
        assert case.classname == classname
        assert case.name == name
        assert not case.ran

    def test_result_applied_once(self) -> None:
        case = TestCase.from_path("unittests/test_a.sli")
        case.apply_result(RunResult(exit_code=1, output="out", elapsed=0.5))

        assert case.ran
        assert case.exit_code == 1
        assert case.output == "out"
        assert case.elapsed == 0.5
        with pytest.raises(RuntimeError):
            case.apply_result(RunResult(exit_code=0, output="", elapsed=0.1))

    def test_classification_applied_once(self) -> None:
        case = TestCase.from_path("unittests/test_a.sli")
        case.apply_classification(Classification(Outcome.FAILURE, "Failed: x"))

        assert case.outcome is Outcome.FAILURE
        assert case.explanation == "Failed: x"
        with pytest.raises(RuntimeError):
            case.apply_classification(Classification(Outcome.SUCCESS, "Success"))


class TestRunResult:
    def test_negative_elapsed_clamped(self) -> None:
        assert RunResult(exit_code=0, output="", elapsed=-0.01).elapsed == 0.0


class TestRunTotals:
    """Run-wide counters."""

    def test_counts_outcomes(self) -> None:
        totals = RunTotals()
        totals.add(Classification(Outcome.SUCCESS, "Success"), 1.0)
        totals.add(Classification(Outcome.SUCCESS, "Skipped (build with-gsl=ON required)"), 0.5)
        totals.add(Classification(Outcome.FAILURE, "Failed: missed assertion"), 0.25)
        totals.add(Classification(Outcome.UNEXPECTED, "Failed: unexpected exit code 9"), 0.25)

        assert totals.total == 4
        assert totals.passed == 2
        assert totals.skipped == 1
        assert totals.failed == 2
        assert totals.elapsed == pytest.approx(2.0)

    def test_exit_code(self) -> None:
        totals = RunTotals()
        assert totals.exit_code == 0
        totals.add(Classification(Outcome.FAILURE, "Failed"), 0.0)
        assert totals.exit_code == 1

    def test_add_counts(self) -> None:
        totals = RunTotals(total=2, passed=2)
        totals.add_counts(10, 7, 3, elapsed=4.0)
        assert (totals.total, totals.passed, totals.failed) == (12, 9, 3)
        assert totals.elapsed == 4.0


class TestHostInfo:
    def test_capture_fills_every_field(self) -> None:
        host = HostInfo.capture()
        assert host.arch
        assert host.os_name
        assert host.home
        assert host.hostname

    def test_properties_order(self, host: HostInfo) -> None:
        assert [name for name, _ in host.properties()] == [
            "os.arch",
            "os.name",
            "os.version",
            "user.home",
            "user.name",
        ]


class TestParsedTestSuite:
    def test_counts_fold_errors_into_failures(self) -> None:
        suite = ParsedTestSuite(name="s", total=10, passed=6, failed=2, errors=1, skipped=1)
        counts = suite.counts()
        assert (counts.total, counts.passed, counts.failed) == (10, 7, 3)
