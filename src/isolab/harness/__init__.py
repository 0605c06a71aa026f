"""Harness – barriers, workers, scenarios and the runner that drives them."""
from isolab.harness.barrier import Barrier, BarrierStatus
from isolab.harness.report import AssertionResult, ScenarioReport, StepRecord, WorkerReport
from isolab.harness.runner import ScenarioRunner
from isolab.harness.scenario import Scenario
from isolab.harness.state import StepStatus, WorkerOutcome, WorkerState
from isolab.harness.steps import (
    Abort,
    AdjustBalance,
    Commit,
    CountWhere,
    ExpectObserved,
    InvalidateLocalView,
    ReadBalance,
    Signal,
    Step,
    TimeoutPolicy,
    WaitFor,
)
from isolab.harness.worker import Worker, WorkerSpec

__all__ = [
    "Abort",
    "AdjustBalance",
    "AssertionResult",
    "Barrier",
    "BarrierStatus",
    "Commit",
    "CountWhere",
    "ExpectObserved",
    "InvalidateLocalView",
    "ReadBalance",
    "Scenario",
    "ScenarioReport",
    "ScenarioRunner",
    "Signal",
    "Step",
    "StepRecord",
    "StepStatus",
    "TimeoutPolicy",
    "WaitFor",
    "Worker",
    "WorkerOutcome",
    "WorkerReport",
    "WorkerSpec",
    "WorkerState",
]
