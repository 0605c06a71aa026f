"""Harness – worker lifecycle states and terminal outcomes."""

from __future__ import annotations

import enum


class WorkerState(str, enum.Enum):
    """``CREATED → RUNNING → {COMMITTED, ABORTED, FAILED}``."""

    CREATED = "created"
    RUNNING = "running"
    COMMITTED = "committed"
    ABORTED = "aborted"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({WorkerState.COMMITTED, WorkerState.ABORTED, WorkerState.FAILED})

ALLOWED_TRANSITIONS: dict[WorkerState, frozenset[WorkerState]] = {
    WorkerState.CREATED: frozenset({WorkerState.RUNNING}),
    WorkerState.RUNNING: _TERMINAL,
    WorkerState.COMMITTED: frozenset(),
    WorkerState.ABORTED: frozenset(),
    WorkerState.FAILED: frozenset(),
}


class WorkerOutcome(str, enum.Enum):
    """How a worker ended, as judged against its declared expectations."""

    COMMITTED = "committed"
    ABORTED_EXPECTED = "aborted_expected"
    ABORTED_UNEXPECTED = "aborted_unexpected"
    ASSERTION_FAILED = "assertion_failed"
    ERRORED = "errored"
    UNFINISHED = "unfinished"

    def __str__(self) -> str:
        return self.value


class StepStatus(str, enum.Enum):
    OK = "ok"
    TIMED_OUT = "timed_out"
    CONFLICT = "conflict"
    SKIPPED = "skipped"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


__all__ = ["ALLOWED_TRANSITIONS", "StepStatus", "WorkerOutcome", "WorkerState"]
