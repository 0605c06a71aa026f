"""Unit tests for Worker execution, driven synchronously on the test thread."""

from __future__ import annotations

import pytest

from isolab.adapters.memory import InMemoryLedgerStore
from isolab.harness import (
    Abort,
    AdjustBalance,
    Barrier,
    Commit,
    CountWhere,
    ReadBalance,
    Signal,
    StepStatus,
    Worker,
    WorkerOutcome,
    WorkerSpec,
    WorkerState,
)
from isolab.kernel.errors import CommitConflict, WorkerStateError
from isolab.kernel.ledger import BalancePredicate, IsolationLevel, ScopeStatus


@pytest.fixture
def store() -> InMemoryLedgerStore:
    s = InMemoryLedgerStore()
    s.create_account("acc", 0)
    return s


def _run(spec: WorkerSpec, store, barriers=None) -> Worker:  # type: ignore[no-untyped-def]
    worker = Worker(spec, store, barriers or {}, scenario="test")
    worker.run()
    return worker


# ---------------------------------------------------------------------------
# WorkerSpec
# ---------------------------------------------------------------------------


class TestWorkerSpec:
    def test_parses_isolation(self) -> None:
        spec = WorkerSpec("w", "READ_COMMITTED", [Commit()])
        assert spec.isolation is IsolationLevel.READ_COMMITTED

    def test_steps_become_tuple(self) -> None:
        assert isinstance(WorkerSpec("w", "serializable", [Commit()]).steps, tuple)

    def test_barrier_names(self) -> None:
        spec = WorkerSpec("w", "serializable", [Signal("a"), Commit(), Signal("b")])
        assert spec.barrier_names() == {"a", "b"}


# ---------------------------------------------------------------------------
# Terminal states
# ---------------------------------------------------------------------------


class TestWorkerOutcomes:
    def test_commit(self, store: InMemoryLedgerStore) -> None:
        worker = _run(WorkerSpec("w", "read-committed", [AdjustBalance("acc", 5), Commit()]), store)
        report = worker.report()
        assert report.state is WorkerState.COMMITTED
        assert report.outcome is WorkerOutcome.COMMITTED
        assert report.passed
        assert store.balance_of("acc") == 5

    def test_expected_abort(self, store: InMemoryLedgerStore) -> None:
        spec = WorkerSpec("w", "read-committed", [AdjustBalance("acc", 5), Abort("undo")], expect_abort=True)
        report = _run(spec, store).report()
        assert report.state is WorkerState.ABORTED
        assert report.outcome is WorkerOutcome.ABORTED_EXPECTED
        assert report.abort_reason == "undo"
        assert report.passed
        assert store.balance_of("acc") == 0

    def test_unexpected_abort_fails(self, store: InMemoryLedgerStore) -> None:
        report = _run(WorkerSpec("w", "read-committed", [Abort("oops")]), store).report()
        assert report.state is WorkerState.FAILED
        assert report.outcome is WorkerOutcome.ABORTED_UNEXPECTED
        assert report.abort_reason == "oops"
        assert report.error is not None and "UnexpectedAbort" in report.error
        assert not report.passed

    def test_expected_abort_that_commits_does_not_pass(self, store: InMemoryLedgerStore) -> None:
        report = _run(WorkerSpec("w", "read-committed", [Commit()], expect_abort=True), store).report()
        assert report.state is WorkerState.COMMITTED
        assert not report.state_matches
        assert not report.passed

    def test_failed_assertion_keeps_running(self, store: InMemoryLedgerStore) -> None:
        spec = WorkerSpec(
            "w",
            "read-committed",
            [ReadBalance("acc", expect=99), AdjustBalance("acc", 1), Commit()],
        )
        report = _run(spec, store).report()
        assert report.state is WorkerState.COMMITTED
        assert report.outcome is WorkerOutcome.ASSERTION_FAILED
        assert [s.status for s in report.steps] == [StepStatus.OK] * 3
        assert store.balance_of("acc") == 1

    def test_unsupported_level_fails_before_any_step(self) -> None:
        store = InMemoryLedgerStore(supported_levels=["serializable"])
        report = _run(WorkerSpec("w", "read-committed", [Commit()]), store).report()
        assert report.state is WorkerState.FAILED
        assert report.outcome is WorkerOutcome.ERRORED
        assert report.steps == ()
        assert "UnsupportedIsolationLevel" in (report.error or "")

    def test_store_error_short_circuits(self, store: InMemoryLedgerStore) -> None:
        barriers = {"after": Barrier("after")}
        spec = WorkerSpec("w", "read-committed", [ReadBalance("missing"), Signal("after"), Commit()])
        worker = _run(spec, store, barriers)
        report = worker.report()
        assert report.state is WorkerState.FAILED
        assert len(report.steps) == 1
        assert report.steps[0].status is StepStatus.ERROR
        assert "AccountNotFound" in (report.error or "")
        assert worker.scope.status is ScopeStatus.ABORTED
        assert not barriers["after"].is_open

    def test_run_twice_is_illegal(self, store: InMemoryLedgerStore) -> None:
        worker = _run(WorkerSpec("w", "read-committed", [Commit()]), store)
        with pytest.raises(WorkerStateError):
            worker.run()

    def test_repr(self, store: InMemoryLedgerStore) -> None:
        worker = Worker(WorkerSpec("w", "serializable", [Commit()]), store, {})
        assert "created" in repr(worker)


# ---------------------------------------------------------------------------
# Commit conflicts
# ---------------------------------------------------------------------------


class ConflictingPredicate(BalancePredicate):
    """Predicate whose evaluation simulates a serialization failure."""

    def matches(self, balance: int) -> bool:
        raise CommitConflict("serialization failure")


class TestWorkerConflicts:
    def test_conflict_is_an_abort(self, store: InMemoryLedgerStore) -> None:
        barriers = {"done": Barrier("done")}
        spec = WorkerSpec(
            "w",
            "read-committed",
            [
                CountWhere(ConflictingPredicate(">", 0)),
                AdjustBalance("acc", 1),
                Commit(),
                Signal("done"),
            ],
            expect_abort=True,
        )
        report = _run(spec, store, barriers).report()
        assert report.state is WorkerState.ABORTED
        assert [s.status for s in report.steps] == [
            StepStatus.CONFLICT,
            StepStatus.SKIPPED,
            StepStatus.SKIPPED,
            StepStatus.OK,
        ]
        assert "commit conflict" in (report.abort_reason or "")
        assert barriers["done"].is_open
        assert store.balance_of("acc") == 0

    def test_unexpected_conflict_fails(self, store: InMemoryLedgerStore) -> None:
        spec = WorkerSpec("w", "read-committed", [CountWhere(ConflictingPredicate(">", 0)), Commit()])
        report = _run(spec, store).report()
        assert report.outcome is WorkerOutcome.ABORTED_UNEXPECTED


# ---------------------------------------------------------------------------
# Failing rollbacks
# ---------------------------------------------------------------------------


class LostConnectionStore(InMemoryLedgerStore):
    """Store whose rollback fails, like a dropped database connection."""

    def discard(self, txid: int) -> None:
        raise RuntimeError("connection lost")


@pytest.fixture
def lost_connection_store() -> LostConnectionStore:
    s = LostConnectionStore()
    s.create_account("acc", 0)
    return s


class TestWorkerRollbackFailures:
    def test_conflict_with_failing_rollback_still_finishes(self, lost_connection_store: LostConnectionStore) -> None:
        barriers = {"done": Barrier("done")}
        spec = WorkerSpec(
            "w",
            "read-committed",
            [CountWhere(ConflictingPredicate(">", 0)), Commit(), Signal("done")],
        )
        worker = _run(spec, lost_connection_store, barriers)
        report = worker.report()
        assert report.state.is_terminal
        assert report.state is WorkerState.FAILED
        assert report.outcome is WorkerOutcome.ABORTED_UNEXPECTED
        assert barriers["done"].is_open
        assert [s.status for s in report.steps] == [StepStatus.CONFLICT, StepStatus.SKIPPED, StepStatus.OK]
        assert "rollback failed: RuntimeError: connection lost" in (report.steps[0].detail or "")

    def test_expected_conflict_with_failing_rollback(self, lost_connection_store: LostConnectionStore) -> None:
        spec = WorkerSpec(
            "w",
            "read-committed",
            [CountWhere(ConflictingPredicate(">", 0)), Commit()],
            expect_abort=True,
        )
        report = _run(spec, lost_connection_store).report()
        assert report.state is WorkerState.ABORTED
        assert report.passed

    def test_open_scope_with_failing_rollback_fails_worker(self, lost_connection_store: LostConnectionStore) -> None:
        spec = WorkerSpec("w", "read-committed", [AdjustBalance("acc", 1)])
        worker = _run(spec, lost_connection_store)
        report = worker.report()
        assert report.state is WorkerState.FAILED
        assert "open scope" in (report.error or "")
        assert worker.scope.status is ScopeStatus.ABORTED
        assert lost_connection_store.balance_of("acc") == 0
