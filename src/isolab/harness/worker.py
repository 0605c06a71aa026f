"""Harness – WorkerSpec (declarative) and Worker (runtime).

A worker owns exactly one transaction scope for its whole life and runs
its steps on its own thread. It never talks to sibling workers except
through barriers, and never propagates its errors to them: everything
that happens is recorded and surfaced through :meth:`Worker.report`.

A :class:`~isolab.kernel.errors.CommitConflict` from any step ends the
scope like an abort would; the remaining scope steps are skipped but the
barrier steps still run, so siblings waiting on this worker are released.
Any other error stops the worker on the spot.
"""
from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from isolab.harness.barrier import Barrier
from isolab.harness.report import AssertionResult, StepRecord, WorkerReport
from isolab.harness.state import ALLOWED_TRANSITIONS, StepStatus, WorkerState
from isolab.harness.steps import Step, StepResult
from isolab.kernel.errors import (
    BaseError,
    CommitConflict,
    UnexpectedAbort,
    WorkerStateError,
)
from isolab.kernel.ledger import IsolationLevel, LedgerStore, ScopeStatus, TransactionScope
from isolab.observability.logging import get_logger

_log = get_logger(__name__)


@dataclass(frozen=True)
class WorkerSpec:
    """One logical transaction's program.

    Args:
        name: Unique within its scenario.
        isolation: Level the worker's scope is opened with.
        steps: Ordered steps with exactly one ``Commit`` or ``Abort``; only
            barrier and assertion steps may follow it.
        expect_abort: Declares that ending in an abort is the expected outcome.
    """

    name: str
    isolation: IsolationLevel | str
    steps: Sequence[Step]
    expect_abort: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "isolation", IsolationLevel.parse(self.isolation))
        object.__setattr__(self, "steps", tuple(self.steps))

    def barrier_names(self) -> set[str]:
        return {name for step in self.steps for name in step.barrier_names()}


def _describe_error(exc: BaseException) -> str:
    if isinstance(exc, BaseError):
        return exc.summary
    return f"{type(exc).__name__}: {exc}"


class Worker:
    """Runtime of a :class:`WorkerSpec`; :meth:`run` is the thread target."""

    def __init__(
        self,
        spec: WorkerSpec,
        store: LedgerStore,
        barriers: Mapping[str, Barrier],
        *,
        scenario: str = "",
        barrier_timeout: float | None = None,
    ) -> None:
        self.spec = spec
        self._barrier_timeout = barrier_timeout
        self._store = store
        self._barriers = barriers
        self._scope: TransactionScope | None = None
        self._observations: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._state = WorkerState.CREATED
        self._steps: list[StepRecord] = []
        self._assertions: list[AssertionResult] = []
        self._abort_reason: str | None = None
        self._error: str | None = None
        self._unexpected_abort = False
        self._log = _log.bind(scenario=scenario, worker=spec.name, isolation=spec.isolation.value)

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def state(self) -> WorkerState:
        with self._lock:
            return self._state

    # ------------------------------------------------------------------
    # StepContext
    # ------------------------------------------------------------------

    @property
    def scope(self) -> TransactionScope:
        if self._scope is None:
            raise WorkerStateError(self.name, self.state, "a step without an open scope")
        return self._scope

    @property
    def observations(self) -> dict[str, Any]:
        return self._observations

    @property
    def barrier_timeout(self) -> float | None:
        """Bound for ``WaitFor(bounded=True)`` steps without their own timeout."""
        return self._barrier_timeout

    def barrier(self, name: str) -> Barrier:
        return self._barriers[name]

    def record_assertion(self, label: str, expected: Any, observed: Any) -> AssertionResult:
        result = AssertionResult.compare(label, expected, observed)
        with self._lock:
            self._assertions.append(result)
        if result.passed:
            self._log.info("assertion.passed", label=label, expected=expected, observed=observed)
        else:
            self._log.warning("assertion.failed", label=label, expected=expected, observed=observed)
        return result

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self) -> None:
        self._transition(WorkerState.RUNNING)
        self._log.info("worker.started", steps=len(self.spec.steps))
        try:
            self._run_steps()
        except Exception as exc:  # noqa: BLE001
            # the thread target must always leave the worker terminal
            self._abandon_scope(f"worker failed: {_describe_error(exc)}")
            if not self.state.is_terminal:
                self._fail(exc)

    def _run_steps(self) -> None:
        try:
            self._scope = self._store.begin(self.spec.isolation)
        except Exception as exc:  # noqa: BLE001
            self._fail(exc)
            return

        for index, step in enumerate(self.spec.steps):
            if step.uses_scope and self._scope.closed:
                # only reachable after a conflict closed the scope early
                self._record(index, step, StepResult(status=StepStatus.SKIPPED, detail="scope already aborted"))
                continue
            self._log.debug("step.started", index=index, step=step.describe())
            try:
                result = step.execute(self)
            except CommitConflict as exc:
                rollback_error = self._abandon_scope(f"commit conflict: {exc.message}")
                detail = exc.message if rollback_error is None else f"{exc.message}; rollback failed: {rollback_error}"
                self._record(index, step, StepResult(status=StepStatus.CONFLICT, detail=detail))
                self._log.info("worker.conflict", index=index, reason=exc.message)
                continue
            except Exception as exc:  # noqa: BLE001
                self._record(index, step, StepResult(status=StepStatus.ERROR, detail=_describe_error(exc)))
                self._abandon_scope(f"worker failed: {_describe_error(exc)}")
                self._fail(exc)
                return
            self._record(index, step, result)
            if result.status is StepStatus.TIMED_OUT:
                self._log.info("barrier.timed_out", index=index, step=step.describe())

        self._finish()

    def report(self) -> WorkerReport:
        with self._lock:
            return WorkerReport(
                name=self.name,
                isolation=self.spec.isolation.value,
                state=self._state,
                expect_abort=self.spec.expect_abort,
                assertions=tuple(self._assertions),
                steps=tuple(self._steps),
                abort_reason=self._abort_reason,
                error=self._error,
                unexpected_abort=self._unexpected_abort,
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(self, new_state: WorkerState) -> None:
        with self._lock:
            if new_state not in ALLOWED_TRANSITIONS[self._state]:
                raise WorkerStateError(self.name, self._state, new_state)
            self._state = new_state

    def _record(self, index: int, step: Step, result: StepResult) -> None:
        record = StepRecord(
            index=index,
            description=step.describe(),
            status=result.status,
            observed=result.observed,
            detail=result.detail,
            assertion=result.assertion,
        )
        with self._lock:
            self._steps.append(record)

    def _finish(self) -> None:
        scope = self.scope
        if scope.status is ScopeStatus.COMMITTED:
            self._transition(WorkerState.COMMITTED)
            self._log.info("worker.committed")
        elif scope.status is ScopeStatus.ABORTED:
            self._finish_aborted(scope.abort_reason or "aborted")
        else:
            self._abandon_scope("worker ended without commit or abort")
            self._fail(WorkerStateError(self.name, WorkerState.RUNNING, "an open scope at the end of its steps"))

    def _finish_aborted(self, reason: str) -> None:
        with self._lock:
            self._abort_reason = reason
        if self.spec.expect_abort:
            self._transition(WorkerState.ABORTED)
            self._log.info("worker.aborted", reason=reason)
            return
        error = UnexpectedAbort(f"Worker '{self.name}' aborted: {reason}")
        with self._lock:
            self._unexpected_abort = True
            self._error = _describe_error(error)
        self._transition(WorkerState.FAILED)
        self._log.warning("worker.aborted_unexpectedly", reason=reason)

    def _abandon_scope(self, reason: str) -> str | None:
        """Abort the scope if still open; return the rollback error, if any.

        A failed rollback still leaves the scope closed as aborted, so the
        worker carries on with its barrier steps and ends normally.
        """
        scope = self._scope
        if scope is None or scope.closed:
            return None
        try:
            scope.abort(reason)
        except Exception as exc:  # noqa: BLE001
            self._log.warning("worker.rollback_failed", reason=reason, exc_info=True)
            return _describe_error(exc)
        return None

    def _fail(self, exc: BaseException) -> None:
        with self._lock:
            self._error = _describe_error(exc)
        self._transition(WorkerState.FAILED)
        self._log.warning("worker.failed", error=self._error)

    def __repr__(self) -> str:
        return f"Worker(name={self.name!r}, isolation={self.spec.isolation.value!r}, state={self.state.value!r})"


__all__ = ["Worker", "WorkerSpec"]
