"""Test-run-and-classify engine."""

from installcheck.harness.codes import (
    Classification,
    CodeTable,
    CodeTablePair,
    Outcome,
    classify_exit_code,
)
from installcheck.harness.context import RunContext, RunLog
from installcheck.harness.cosim import CoSimulationRunner
from installcheck.harness.distributed import DistributedRunner
from installcheck.harness.junit import JUnitReportSession
from installcheck.harness.models import HostInfo, RunResult, RunTotals, TestCase
from installcheck.harness.orchestrator import Phase, PhaseOrchestrator, PlannedTest
from installcheck.harness.phases import run_campaign
from installcheck.harness.runner import ProcessRunner

__all__ = [
    "Classification",
    "CoSimulationRunner",
    "CodeTable",
    "CodeTablePair",
    "DistributedRunner",
    "HostInfo",
    "JUnitReportSession",
    "Outcome",
    "Phase",
    "PhaseOrchestrator",
    "PlannedTest",
    "ProcessRunner",
    "RunContext",
    "RunLog",
    "RunResult",
    "RunTotals",
    "TestCase",
    "classify_exit_code",
    "run_campaign",
]
