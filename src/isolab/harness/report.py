"""Harness – per-run result aggregation.

A :class:`ScenarioReport` is the only thing a run returns. It passes when
every assertion passed and every worker ended in the terminal state its
spec declared; otherwise :meth:`ScenarioReport.raise_for_failure` raises
the first mismatch with the full step history of every worker attached.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from isolab.harness.state import StepStatus, WorkerOutcome, WorkerState
from isolab.kernel.errors import (
    AssertionMismatch,
    ScenarioFailed,
    ScenarioTimeout,
    UnexpectedAbort,
    WorkerFailed,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AssertionResult:
    """Expected vs. observed, recorded by a worker step."""

    label: str
    expected: Any
    observed: Any
    passed: bool

    @classmethod
    def compare(cls, label: str, expected: Any, observed: Any) -> "AssertionResult":
        return cls(label=label, expected=expected, observed=observed, passed=expected == observed)

    def __str__(self) -> str:
        mark = "pass" if self.passed else "FAIL"
        return f"[{mark}] {self.label}: expected {self.expected!r}, observed {self.observed!r}"


@dataclass(frozen=True)
class StepRecord:
    """One executed step in a worker's history."""

    index: int
    description: str
    status: StepStatus = StepStatus.OK
    observed: Any = None
    detail: str | None = None
    assertion: AssertionResult | None = None
    at: datetime = field(default_factory=_utcnow)

    def __str__(self) -> str:
        parts = [f"#{self.index} {self.description}", str(self.status)]
        if self.observed is not None:
            parts.append(f"observed={self.observed!r}")
        if self.detail:
            parts.append(self.detail)
        if self.assertion is not None:
            parts.append(str(self.assertion))
        return " ".join(parts)


@dataclass(frozen=True)
class WorkerReport:
    name: str
    isolation: str
    state: WorkerState
    expect_abort: bool = False
    assertions: tuple[AssertionResult, ...] = ()
    steps: tuple[StepRecord, ...] = ()
    abort_reason: str | None = None
    error: str | None = None
    unexpected_abort: bool = False

    @property
    def outcome(self) -> WorkerOutcome:
        if not self.state.is_terminal:
            return WorkerOutcome.UNFINISHED
        if self.state is WorkerState.FAILED:
            return WorkerOutcome.ABORTED_UNEXPECTED if self.unexpected_abort else WorkerOutcome.ERRORED
        if any(not a.passed for a in self.assertions):
            return WorkerOutcome.ASSERTION_FAILED
        if self.state is WorkerState.ABORTED:
            return WorkerOutcome.ABORTED_EXPECTED
        return WorkerOutcome.COMMITTED

    @property
    def state_matches(self) -> bool:
        expected = WorkerState.ABORTED if self.expect_abort else WorkerState.COMMITTED
        return self.state is expected

    @property
    def passed(self) -> bool:
        return self.state_matches and all(a.passed for a in self.assertions)

    def failures(self) -> list[tuple[type[ScenarioFailed], str]]:
        found: list[tuple[type[ScenarioFailed], str]] = []
        for assertion in self.assertions:
            if not assertion.passed:
                found.append((AssertionMismatch, f"worker '{self.name}': {assertion}"))
        if not self.state.is_terminal:
            found.append((ScenarioTimeout, f"worker '{self.name}' still {self.state} at the run deadline"))
        elif self.state is WorkerState.FAILED and self.unexpected_abort:
            found.append((UnexpectedAbort, f"worker '{self.name}' aborted unexpectedly: {self.abort_reason}"))
        elif self.state is WorkerState.FAILED:
            found.append((WorkerFailed, f"worker '{self.name}' failed: {self.error}"))
        elif not self.state_matches:
            expected = "abort" if self.expect_abort else "commit"
            found.append((ScenarioFailed, f"worker '{self.name}' ended {self.state}, expected {expected}"))
        return found

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "isolation": self.isolation,
            "state": self.state.value,
            "outcome": self.outcome.value,
            "expect_abort": self.expect_abort,
            "passed": self.passed,
            "abort_reason": self.abort_reason,
            "error": self.error,
            "assertions": [
                {"label": a.label, "expected": a.expected, "observed": a.observed, "passed": a.passed}
                for a in self.assertions
            ],
            "steps": [
                {
                    "index": s.index,
                    "description": s.description,
                    "status": s.status.value,
                    "observed": s.observed,
                    "detail": s.detail,
                    "at": s.at.isoformat(),
                }
                for s in self.steps
            ],
        }


@dataclass(frozen=True)
class ScenarioReport:
    scenario: str
    workers: tuple[WorkerReport, ...]
    timed_out: bool = False
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime = field(default_factory=_utcnow)

    def worker(self, name: str) -> WorkerReport:
        for report in self.workers:
            if report.name == name:
                return report
        raise KeyError(f"No worker named '{name}' in scenario '{self.scenario}'")

    @property
    def passed(self) -> bool:
        return not self.timed_out and all(w.passed for w in self.workers)

    @property
    def assertions(self) -> tuple[AssertionResult, ...]:
        return tuple(a for w in self.workers for a in w.assertions)

    def _failures(self) -> list[tuple[type[ScenarioFailed], str]]:
        found: list[tuple[type[ScenarioFailed], str]] = []
        for worker in self.workers:
            found.extend(worker.failures())
        if self.timed_out:
            found.sort(key=lambda item: item[0] is not ScenarioTimeout)
        return found

    def failures(self) -> list[str]:
        return [message for _, message in self._failures()]

    def first_failure(self) -> str | None:
        found = self._failures()
        return found[0][1] if found else None

    def signature(self) -> tuple[tuple[str, str, tuple[bool, ...]], ...]:
        """Terminal states and assertion pass pattern; equal across deterministic runs."""
        return tuple(
            (w.name, w.state.value, tuple(a.passed for a in w.assertions))
            for w in self.workers
        )

    def raise_for_failure(self) -> None:
        found = self._failures()
        if not found:
            return
        error_class, message = found[0]
        raise error_class(
            f"Scenario '{self.scenario}' failed: {message}",
            report=self,
            detail={"failures": [m for _, m in found], "history": self.render()},
        )

    def render(self) -> str:
        """Human-readable step history of every worker."""
        verdict = "passed" if self.passed else "FAILED"
        lines = [f"Scenario '{self.scenario}' {verdict}" + (" (timed out)" if self.timed_out else "")]
        for worker in self.workers:
            lines.append(
                f"  worker '{worker.name}' [{worker.isolation}] "
                f"state={worker.state} outcome={worker.outcome}"
            )
            for step in worker.steps:
                lines.append(f"    {step}")
            if worker.abort_reason:
                lines.append(f"    abort reason: {worker.abort_reason}")
            if worker.error:
                lines.append(f"    error: {worker.error}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario": self.scenario,
            "passed": self.passed,
            "timed_out": self.timed_out,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "workers": [w.to_dict() for w in self.workers],
        }


__all__ = ["AssertionResult", "ScenarioReport", "StepRecord", "WorkerReport"]
