"""Streaming JUnit XML report for one phase.

Test cases are appended to the file as they finish so a report survives an
interrupted phase. The aggregate attributes of ``testsuite`` are unknown
until the phase ends: they are written as placeholder tokens and patched in
place by ``close()``, which rewrites only the ``testsuite`` start tag.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TextIO
from xml.sax.saxutils import quoteattr

from installcheck.config.constants import (
    CDATA_END,
    PLACEHOLDER,
    REPORT_FILE_TEMPLATE,
)
from installcheck.core.errors import ReportStateError
from installcheck.core.logging import get_logger
from installcheck.harness.codes import Outcome
from installcheck.harness.models import HostInfo

log = get_logger("junit")

# Characters outside the XML 1.0 Char production; not even CDATA can carry them.
_ILLEGAL_XML_CHARS = re.compile("[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def strip_illegal_xml_chars(text: str) -> str:
    return _ILLEGAL_XML_CHARS.sub("", text)


def escape_cdata(text: str) -> str:
    """Make *text* safe to embed inside one CDATA section.

    Each ``]]>`` is split across two sections so the payload can never
    terminate the block early.
    """
    return strip_illegal_xml_chars(text).replace(CDATA_END, "]]]]><![CDATA[>")


def _attr(value: str) -> str:
    return quoteattr(strip_illegal_xml_chars(value))


def _format_time(seconds: float) -> str:
    return f"{seconds:.3f}"


class JUnitReportSession:
    """Writes ``TEST-<phase>.xml`` reports, one open report at a time."""

    def __init__(self, report_dir: Path, host: HostInfo) -> None:
        self._report_dir = report_dir
        self._host = host
        self._path: Path | None = None
        self._header: tuple[str, str] = ("", "")
        self._file: TextIO | None = None
        self._tests = 0
        self._failures = 0
        self._elapsed = 0.0

    @property
    def is_open(self) -> bool:
        return self._file is not None

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def tests(self) -> int:
        return self._tests

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def elapsed(self) -> float:
        return self._elapsed

    def open(self, phase_name: str) -> Path:
        """Start a fresh report with placeholder aggregates."""
        if self._file is not None:
            raise ReportStateError.already_open(str(self._path))
        if not phase_name:
            raise ValueError("phase_name must not be empty")

        self._report_dir.mkdir(parents=True, exist_ok=True)
        path = self._report_dir / REPORT_FILE_TEMPLATE.format(name=phase_name)
        timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S")

        handle = path.open("w", encoding="utf-8")
        handle.write('<?xml version="1.0" encoding="UTF-8" ?>\n')
        handle.write(self._start_tag(phase_name, timestamp, PLACEHOLDER, PLACEHOLDER, PLACEHOLDER))
        handle.write("  <properties>\n")
        for name, value in self._host.properties():
            handle.write(f"    <property name={_attr(name)} value={_attr(value)} />\n")
        handle.write("  </properties>\n")
        handle.flush()

        self._path = path
        self._header = (phase_name, timestamp)
        self._file = handle
        self._tests = 0
        self._failures = 0
        self._elapsed = 0.0
        log.debug("report_opened", path=str(path))
        return path

    def record(
        self,
        classname: str,
        testname: str,
        outcome: Outcome,
        explanation: str,
        captured_output: str,
        elapsed: float = 0.0,
    ) -> None:
        """Append one ``testcase``. Any non-success outcome is a failure."""
        if self._file is None:
            raise ReportStateError.not_open("record")

        seconds = round(max(elapsed, 0.0), 3)
        self._tests += 1
        self._elapsed += seconds

        opening = (
            f"  <testcase classname={_attr(classname)} name={_attr(testname)}"
            f" time={_attr(_format_time(seconds))}"
        )
        if outcome is Outcome.SUCCESS:
            self._file.write(f"{opening} />\n")
        else:
            self._failures += 1
            self._file.write(f"{opening}>\n")
            self._file.write(f'    <failure message={_attr(explanation)} type=""><![CDATA[\n')
            self._file.write(escape_cdata(captured_output))
            if captured_output and not captured_output.endswith("\n"):
                self._file.write("\n")
            self._file.write("]]></failure>\n")
            self._file.write("  </testcase>\n")
        self._file.flush()

    def close(self) -> Path:
        """Patch the aggregate placeholders and finish the document."""
        if self._file is None or self._path is None:
            raise ReportStateError.not_open("close")

        self._file.close()
        path = self._path
        self._file = None
        self._path = None

        values = {
            "failures": str(self._failures),
            "tests": str(self._tests),
            "time": _format_time(self._elapsed),
        }
        # The declaration and the start tag are the first two lines written by open().
        declaration, _, body = path.read_text(encoding="utf-8").split("\n", 2)
        start_tag = self._start_tag(
            *self._header, _attr(values["failures"]), _attr(values["tests"]), _attr(values["time"])
        )
        content = f"{declaration}\n{start_tag}{body}"

        tmp_path = path.with_name(path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as out:
            out.write(content)
            out.write("  <system-out><![CDATA[]]></system-out>\n")
            out.write("  <system-err><![CDATA[]]></system-err>\n")
            out.write("</testsuite>\n")
        os.replace(tmp_path, path)

        log.debug("report_closed", path=str(path), **values)
        return path

    def _start_tag(
        self, phase_name: str, timestamp: str, failures: str, tests: str, time: str
    ) -> str:
        return (
            f'<testsuite errors="0" failures={failures}'
            f" hostname={_attr(self._host.hostname)} name={_attr(phase_name)}"
            f" tests={tests} time={time} timestamp={_attr(timestamp)}>\n"
        )

    @contextmanager
    def session(self, phase_name: str) -> Iterator[JUnitReportSession]:
        """Open a report and close it on every exit path."""
        self.open(phase_name)
        try:
            yield self
        finally:
            self.close()
