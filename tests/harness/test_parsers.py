"""Tests for external result parsers."""

import pytest

from installcheck.harness.parsers import (
    parse_junit_xml,
    parse_pytest_summary,
    parse_runner_summary,
    parse_unittest_summary,
)


class TestParseJunitXml:
    """JUnit XML parsing."""

    def test_parses_testsuites_wrapper(self) -> None:
        xml = """<?xml version="1.0"?>
<testsuites>
  <testsuite name="pytest" tests="4">
    <testcase classname="test_nest" name="test_a" time="0.5"/>
    <testcase classname="test_nest" name="test_b" time="0.25">
      <failure message="assert 1 == 2">traceback</failure>
    </testcase>
    <testcase classname="test_nest" name="test_c" time="0.1">
      <error message="fixture broke"/>
    </testcase>
    <testcase classname="test_nest" name="test_d" time="0">
      <skipped message="needs gsl"/>
    </testcase>
  </testsuite>
</testsuites>
"""
        result = parse_junit_xml(xml)

        assert result.name == "pytest"
        assert (result.total, result.passed, result.failed) == (4, 1, 1)
        assert (result.errors, result.skipped) == (1, 1)
        assert result.duration_seconds == pytest.approx(0.85)
        assert result.tests[1].message == "assert 1 == 2"
        assert result.tests[1].traceback == "traceback"

        counts = result.counts()
        assert (counts.total, counts.passed, counts.failed) == (4, 2, 2)

    def test_bad_time_attribute(self) -> None:
        result = parse_junit_xml('<testsuite><testcase name="t" time="n/a"/></testsuite>')
        assert result.tests[0].duration_seconds == 0.0

    def test_malformed_xml_is_a_parse_error(self) -> None:
        result = parse_junit_xml("<testsuite><testcase")
        assert result.name == "parse_error"
        assert result.counts().failed == 1


class TestParseUnittestSummary:
    def test_ok(self) -> None:
        content = "....\n----------------------------------------------------------------------\nRan 4 tests in 0.012s\n\nOK\n"
        result = parse_unittest_summary(content)
        assert result is not None
        assert (result.total, result.passed, result.failed) == (4, 4, 0)
        assert result.duration_seconds == pytest.approx(0.012)

    def test_failed_with_details(self) -> None:
        content = "Ran 10 tests in 1.5s\n\nFAILED (failures=2, errors=1, skipped=3)\n"
        result = parse_unittest_summary(content)
        assert result is not None
        assert (result.failed, result.errors, result.skipped, result.passed) == (2, 1, 3, 4)

    def test_single_test(self) -> None:
        result = parse_unittest_summary("Ran 1 test in 0.001s\nOK\n")
        assert result is not None
        assert result.total == 1

    def test_no_summary(self) -> None:
        assert parse_unittest_summary("ImportError: No module named nest\n") is None


class TestParsePytestSummary:
    @pytest.mark.parametrize(
        "line",
        [
            "========== 3 failed, 10 passed, 1 skipped in 1.20s ==========",
            "3 failed, 10 passed, 1 skipped in 1.20s",
        ],
    )
    def test_counts(self, line: str) -> None:
        result = parse_pytest_summary(f"collected 14 items\n\n{line}\n")
        assert result is not None
        assert (result.total, result.passed, result.failed, result.skipped) == (14, 10, 3, 1)
        assert result.duration_seconds == pytest.approx(1.2)

    def test_errors(self) -> None:
        result = parse_pytest_summary("==== 1 passed, 2 errors in 0.30s ====\n")
        assert result is not None
        assert result.errors == 2
        assert result.counts().failed == 2

    def test_no_summary(self) -> None:
        assert parse_pytest_summary("nothing here\n") is None


class TestParseRunnerSummary:
    def test_prefers_pytest(self) -> None:
        content = "Ran 2 tests in 0.1s\nOK\n==== 5 passed in 0.50s ====\n"
        assert parse_runner_summary(content).name == "pytest"

    def test_falls_back_to_unittest(self) -> None:
        assert parse_runner_summary("Ran 2 tests in 0.1s\nOK\n").name == "unittest"

    def test_unrecognized_output_counts_as_one_failure(self) -> None:
        counts = parse_runner_summary("Segmentation fault\n").counts()
        assert (counts.total, counts.passed, counts.failed) == (1, 0, 1)
