"""Harness errors – scenario authoring mistakes and run-level failures."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from isolab.kernel.errors.base import BaseError

if TYPE_CHECKING:
    from isolab.harness.report import ScenarioReport


class HarnessError(BaseError):
    """Base class for errors raised by the harness itself."""

    default_code = "harness_error"


class ScenarioDefinitionError(HarnessError):
    """A scenario definition is malformed (detected before any thread starts)."""

    default_code = "scenario_definition_error"


class WorkerStateError(HarnessError):
    """Illegal worker state transition."""

    default_code = "worker_state_error"

    def __init__(self, worker: str, from_state: Any, to_state: Any, **kwargs: Any) -> None:
        super().__init__(
            f"Worker '{worker}' cannot move from {from_state} to {to_state}",
            **kwargs,
        )
        self.worker = worker
        self.from_state = from_state
        self.to_state = to_state


class BarrierTimeout(HarnessError):
    """A bounded barrier wait elapsed and the step asked to fail on timeout."""

    default_code = "barrier_timeout"

    def __init__(self, barrier: str, timeout: float, **kwargs: Any) -> None:
        super().__init__(f"Barrier '{barrier}' still closed after {timeout}s", **kwargs)
        self.barrier = barrier
        self.timeout = timeout


class ScenarioFailed(HarnessError):
    """A scenario run did not match its declared expectations.

    ``report`` carries the full per-worker step history.
    """

    default_code = "scenario_failed"

    def __init__(self, message: str, *, report: ScenarioReport | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.report = report


class AssertionMismatch(ScenarioFailed):
    """An expected value diverged from the observed one."""

    default_code = "assertion_mismatch"


class UnexpectedAbort(ScenarioFailed):
    """A worker aborted without the scenario declaring that outcome."""

    default_code = "unexpected_abort"


class WorkerFailed(ScenarioFailed):
    """A worker hit a store-level error and stopped."""

    default_code = "worker_failed"


class ScenarioTimeout(ScenarioFailed):
    """Some workers never reached a terminal state before the run deadline."""

    default_code = "scenario_timeout"


__all__ = [
    "AssertionMismatch",
    "BarrierTimeout",
    "HarnessError",
    "ScenarioDefinitionError",
    "ScenarioFailed",
    "ScenarioTimeout",
    "UnexpectedAbort",
    "WorkerFailed",
    "WorkerStateError",
]
