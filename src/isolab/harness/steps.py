"""Harness – the step vocabulary of a worker program.

A worker is a straight-line list of these steps. Store operations go
through the worker's own transaction scope; :class:`Signal` and
:class:`WaitFor` are the only way one worker orders itself against another.
Assertions record a result and never stop the worker.
"""
from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import Any, ClassVar, Protocol

from isolab.harness.barrier import Barrier, BarrierStatus
from isolab.harness.report import AssertionResult
from isolab.harness.state import StepStatus
from isolab.kernel.errors import BarrierTimeout
from isolab.kernel.ledger import BalancePredicate, TransactionScope


class StepContext(Protocol):
    """What a step can reach while it runs (implemented by the worker)."""

    @property
    def scope(self) -> TransactionScope: ...

    @property
    def observations(self) -> dict[str, Any]: ...

    @property
    def barrier_timeout(self) -> float | None: ...

    def barrier(self, name: str) -> Barrier: ...

    def record_assertion(self, label: str, expected: Any, observed: Any) -> AssertionResult: ...


@dataclass(frozen=True)
class StepResult:
    status: StepStatus = StepStatus.OK
    observed: Any = None
    detail: str | None = None
    assertion: AssertionResult | None = None


class TimeoutPolicy(str, enum.Enum):
    """What a bounded :class:`WaitFor` does when the barrier stays closed."""

    CONTINUE = "continue"
    FAIL = "fail"


class Step(abc.ABC):
    #: Commit and Abort end the scope; a worker has exactly one.
    terminal: ClassVar[bool] = False
    #: Steps that do not touch the scope may follow the terminal step.
    uses_scope: ClassVar[bool] = True

    @abc.abstractmethod
    def execute(self, ctx: StepContext) -> StepResult: ...

    @abc.abstractmethod
    def describe(self) -> str: ...

    def barrier_names(self) -> tuple[str, ...]:
        return ()

    def __str__(self) -> str:
        return self.describe()


# ---------------------------------------------------------------------------
# Store operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReadBalance(Step):
    """Read an account balance, optionally asserting on it.

    The value is stored under *key* (default: the account name) for later
    :class:`ExpectObserved` steps.
    """

    account: str
    expect: int | None = None
    key: str | None = None
    label: str | None = None

    @property
    def observation_key(self) -> str:
        return self.key or self.account

    def execute(self, ctx: StepContext) -> StepResult:
        value = ctx.scope.read_balance(self.account)
        ctx.observations[self.observation_key] = value
        assertion = None
        if self.expect is not None:
            assertion = ctx.record_assertion(self.label or f"balance of {self.account}", self.expect, value)
        return StepResult(observed=value, assertion=assertion)

    def describe(self) -> str:
        return f"read_balance({self.account!r})"


@dataclass(frozen=True)
class AdjustBalance(Step):
    account: str
    delta: int

    def execute(self, ctx: StepContext) -> StepResult:
        ctx.scope.adjust_balance(self.account, self.delta)
        return StepResult()

    def describe(self) -> str:
        return f"adjust_balance({self.account!r}, {self.delta:+d})"


@dataclass(frozen=True)
class CountWhere(Step):
    """Count rows matching *predicate*, optionally asserting on the count."""

    predicate: BalancePredicate
    expect: int | None = None
    key: str | None = None
    label: str | None = None

    @property
    def observation_key(self) -> str:
        return self.key or f"count({self.predicate})"

    def execute(self, ctx: StepContext) -> StepResult:
        count = ctx.scope.count_where(self.predicate)
        ctx.observations[self.observation_key] = count
        assertion = None
        if self.expect is not None:
            assertion = ctx.record_assertion(self.label or f"rows where {self.predicate}", self.expect, count)
        return StepResult(observed=count, assertion=assertion)

    def describe(self) -> str:
        return f"count_where({self.predicate})"


@dataclass(frozen=True)
class InvalidateLocalView(Step):
    """Force the next read to hit the store instead of the session cache."""

    def execute(self, ctx: StepContext) -> StepResult:
        ctx.scope.invalidate_local_view()
        detail = None if ctx.scope.supports_local_view else "no local view"
        return StepResult(detail=detail)

    def describe(self) -> str:
        return "invalidate_local_view()"


# ---------------------------------------------------------------------------
# Barrier edges
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Signal(Step):
    uses_scope: ClassVar[bool] = False

    barrier: str

    def execute(self, ctx: StepContext) -> StepResult:
        remaining = ctx.barrier(self.barrier).signal()
        return StepResult(detail=f"remaining={remaining}")

    def barrier_names(self) -> tuple[str, ...]:
        return (self.barrier,)

    def describe(self) -> str:
        return f"signal({self.barrier!r})"


@dataclass(frozen=True)
class WaitFor(Step):
    """Wait for a barrier to open.

    With a *timeout* the wait is a soft ordering: by default the worker
    carries on when it elapses and the step is recorded as ``timed_out``.
    ``bounded=True`` without a *timeout* takes the bound from the running
    worker (the runner's ``barrier_timeout`` setting).
    ``on_timeout=TimeoutPolicy.FAIL`` turns the elapsed bound into a
    :class:`~isolab.kernel.errors.BarrierTimeout`.

    The outcome is stored in the observations under :attr:`observation_key`
    as a :class:`BarrierStatus`, so a later :class:`ExpectObserved` can
    branch on it.
    """

    barrier: str
    timeout: float | None = None
    on_timeout: TimeoutPolicy = TimeoutPolicy.CONTINUE
    bounded: bool = False
    uses_scope: ClassVar[bool] = False

    @property
    def observation_key(self) -> str:
        return f"wait:{self.barrier}"

    def effective_timeout(self, ctx: StepContext) -> float | None:
        if self.timeout is not None or not self.bounded:
            return self.timeout
        return ctx.barrier_timeout

    def execute(self, ctx: StepContext) -> StepResult:
        timeout = self.effective_timeout(ctx)
        status = ctx.barrier(self.barrier).wait(timeout)
        ctx.observations[self.observation_key] = status
        if status is BarrierStatus.OPENED:
            return StepResult(observed=status)
        if self.on_timeout is TimeoutPolicy.FAIL:
            raise BarrierTimeout(self.barrier, timeout or 0.0)
        return StepResult(status=StepStatus.TIMED_OUT, observed=status, detail=f"continued after {timeout}s")

    def barrier_names(self) -> tuple[str, ...]:
        return (self.barrier,)

    def describe(self) -> str:
        if self.timeout is not None:
            return f"wait_for({self.barrier!r}, timeout={self.timeout})"
        if self.bounded:
            return f"wait_for({self.barrier!r}, bounded)"
        return f"wait_for({self.barrier!r})"


# ---------------------------------------------------------------------------
# Local assertions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExpectObserved(Step):
    """Compare a value stored by an earlier read step."""

    uses_scope: ClassVar[bool] = False

    key: str
    expected: Any
    label: str | None = None

    def execute(self, ctx: StepContext) -> StepResult:
        observed = ctx.observations.get(self.key)
        assertion = ctx.record_assertion(self.label or self.key, self.expected, observed)
        return StepResult(observed=observed, assertion=assertion)

    def describe(self) -> str:
        return f"expect({self.key!r} == {self.expected!r})"


# ---------------------------------------------------------------------------
# Terminal actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Commit(Step):
    terminal: ClassVar[bool] = True

    def execute(self, ctx: StepContext) -> StepResult:
        ctx.scope.commit()
        return StepResult()

    def describe(self) -> str:
        return "commit()"


@dataclass(frozen=True)
class Abort(Step):
    terminal: ClassVar[bool] = True

    reason: str = field(default="transaction rollback")

    def execute(self, ctx: StepContext) -> StepResult:
        ctx.scope.abort(self.reason)
        return StepResult(detail=self.reason)

    def describe(self) -> str:
        return f"abort({self.reason!r})"


__all__ = [
    "Abort",
    "AdjustBalance",
    "Commit",
    "CountWhere",
    "ExpectObserved",
    "InvalidateLocalView",
    "ReadBalance",
    "Signal",
    "Step",
    "StepContext",
    "StepResult",
    "TimeoutPolicy",
    "WaitFor",
]
