"""Test result parsers.

Reads results produced outside the harness back into a common format.
Supports: JUnit XML, unittest summaries, pytest summary lines.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Literal

from installcheck.harness.models import ParsedTestCase, ParsedTestSuite

__all__ = [
    "parse_junit_xml",
    "parse_pytest_summary",
    "parse_runner_summary",
    "parse_unittest_summary",
]


def _parse_error(message: str) -> ParsedTestSuite:
    return ParsedTestSuite(
        name="parse_error",
        total=1,
        errors=1,
        tests=[
            ParsedTestCase(
                name="parse_error",
                classname=None,
                status="error",
                duration_seconds=0,
                message=message,
            )
        ],
    )


def parse_junit_xml(content: str) -> ParsedTestSuite:
    """Parse JUnit XML format (single testsuite or testsuites wrapper)."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        return _parse_error(str(e))

    suites = list(root) if root.tag == "testsuites" else [root]
    all_tests: list[ParsedTestCase] = []
    total_duration = 0.0

    for suite in suites:
        for testcase in suite.findall(".//testcase"):
            name = testcase.get("name", "unknown")
            classname = testcase.get("classname")
            try:
                duration = float(testcase.get("time", "0"))
            except ValueError:
                duration = 0.0
            total_duration += duration

            failure = testcase.find("failure")
            error = testcase.find("error")
            skipped = testcase.find("skipped")

            if failure is not None:
                status: Literal["passed", "failed", "skipped", "error"] = "failed"
                message = failure.get("message")
                tb = failure.text
            elif error is not None:
                status = "error"
                message = error.get("message")
                tb = error.text
            elif skipped is not None:
                status = "skipped"
                message = skipped.get("message")
                tb = None
            else:
                status = "passed"
                message = None
                tb = None

            all_tests.append(
                ParsedTestCase(
                    name=name,
                    classname=classname,
                    status=status,
                    duration_seconds=duration,
                    message=message,
                    traceback=tb,
                )
            )

    return ParsedTestSuite(
        name=suites[0].get("name", "testsuite") if suites else "unknown",
        tests=all_tests,
        total=len(all_tests),
        passed=sum(1 for t in all_tests if t.status == "passed"),
        failed=sum(1 for t in all_tests if t.status == "failed"),
        skipped=sum(1 for t in all_tests if t.status == "skipped"),
        errors=sum(1 for t in all_tests if t.status == "error"),
        duration_seconds=total_duration,
    )


_RAN = re.compile(r"^Ran (\d+) tests? in ([\d.]+)s", re.MULTILINE)
_VERDICT = re.compile(r"^(OK|FAILED)(?: \(([^)]*)\))?\s*$", re.MULTILINE)
_PYTEST_SUMMARY = re.compile(r"^=*\s*(\d+ \w+.*?) in ([\d.]+)s(?: \([^)]*\))?\s*=*\s*$", re.MULTILINE)


def _counts(detail: str | None) -> dict[str, int]:
    """``failures=2, errors=1`` -> {"failures": 2, "errors": 1}."""
    result: dict[str, int] = {}
    for part in (detail or "").split(","):
        key, sep, value = part.strip().partition("=")
        if sep and value.isdigit():
            result[key] = int(value)
    return result


def parse_unittest_summary(content: str) -> ParsedTestSuite | None:
    """Parse the trailer printed by ``unittest`` runners.

    Returns None when *content* holds no ``Ran N tests`` line.
    """
    ran = None
    for ran in _RAN.finditer(content):
        pass
    if ran is None:
        return None

    verdicts = list(_VERDICT.finditer(content))
    detail = _counts(verdicts[-1].group(2)) if verdicts else {}
    total = int(ran.group(1))
    failed = detail.get("failures", 0)
    errors = detail.get("errors", 0)
    skipped = detail.get("skipped", 0)
    return ParsedTestSuite(
        name="unittest",
        total=total,
        passed=total - failed - errors - skipped,
        failed=failed,
        errors=errors,
        skipped=skipped,
        duration_seconds=float(ran.group(2)),
    )


def parse_pytest_summary(content: str) -> ParsedTestSuite | None:
    """Parse pytest's final ``3 failed, 10 passed in 1.2s`` line, with or without ``=`` rules."""
    match = None
    for match in _PYTEST_SUMMARY.finditer(content):
        pass
    if match is None:
        return None

    counts: dict[str, int] = {}
    for part in match.group(1).split(","):
        number, _, word = part.strip().partition(" ")
        if number.isdigit():
            counts[word.strip()] = int(number)

    passed = counts.get("passed", 0)
    failed = counts.get("failed", 0)
    errors = counts.get("error", 0) + counts.get("errors", 0)
    skipped = counts.get("skipped", 0)
    return ParsedTestSuite(
        name="pytest",
        total=passed + failed + errors + skipped,
        passed=passed,
        failed=failed,
        errors=errors,
        skipped=skipped,
        duration_seconds=float(match.group(2)),
    )


def parse_runner_summary(content: str) -> ParsedTestSuite:
    """Try the known summary formats, pytest first."""
    for parser in (parse_pytest_summary, parse_unittest_summary):
        result = parser(content)
        if result is not None:
            return result
    return _parse_error("Could not find a test summary in runner output")
