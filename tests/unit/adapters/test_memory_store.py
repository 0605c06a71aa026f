"""Unit tests for InMemoryLedgerStore isolation semantics (single-threaded interleavings)."""

from __future__ import annotations

import pytest

from isolab.adapters.memory import InMemoryLedgerStore
from isolab.kernel.errors import AccountNotFound, DuplicateAccount, LockWaitTimeout, UnsupportedIsolationLevel
from isolab.kernel.ledger import IsolationLevel, ScopeStatus, balance_gt


@pytest.fixture
def store() -> InMemoryLedgerStore:
    s = InMemoryLedgerStore(lock_timeout=0.05)
    s.create_account("acc", 0)
    return s


class TestAccounts:
    def test_create_and_read(self, store: InMemoryLedgerStore) -> None:
        store.create_account("other", 25)
        assert store.balance_of("other") == 25

    def test_duplicate(self, store: InMemoryLedgerStore) -> None:
        with pytest.raises(DuplicateAccount):
            store.create_account("acc")

    def test_missing(self, store: InMemoryLedgerStore) -> None:
        with pytest.raises(AccountNotFound):
            store.balance_of("nobody")
        scope = store.begin("read-committed")
        with pytest.raises(AccountNotFound):
            scope.read_balance("nobody")
        with pytest.raises(AccountNotFound):
            scope.adjust_balance("nobody", 1)

    def test_supported_levels(self) -> None:
        store = InMemoryLedgerStore(supported_levels=["serializable"])
        assert store.supported_isolation_levels == frozenset({IsolationLevel.SERIALIZABLE})
        with pytest.raises(UnsupportedIsolationLevel):
            store.begin("read-uncommitted")


class TestWrites:
    def test_commit_publishes(self, store: InMemoryLedgerStore) -> None:
        scope = store.begin("read-committed")
        scope.adjust_balance("acc", 10)
        scope.adjust_balance("acc", 5)
        assert scope.read_balance("acc") == 15
        assert store.balance_of("acc") == 0
        scope.commit()
        assert store.balance_of("acc") == 15

    def test_abort_discards(self, store: InMemoryLedgerStore) -> None:
        scope = store.begin("read-committed")
        scope.adjust_balance("acc", 10)
        scope.abort()
        assert store.balance_of("acc") == 0
        assert store.begin("read-uncommitted").read_balance("acc") == 0

    def test_end_releases_locks(self, store: InMemoryLedgerStore) -> None:
        scope = store.begin("read-committed")
        scope.adjust_balance("acc", 1)
        assert store.locks.held_by(scope.txid)  # type: ignore[attr-defined]
        scope.commit()
        assert store.locks.held_by(scope.txid) == {}  # type: ignore[attr-defined]

    def test_concurrent_writer_waits_for_row_lock(self, store: InMemoryLedgerStore) -> None:
        first = store.begin("read-committed")
        first.adjust_balance("acc", 1)
        second = store.begin("read-committed")
        with pytest.raises(LockWaitTimeout):
            second.adjust_balance("acc", 1)


# ---------------------------------------------------------------------------
# Visibility per level
# ---------------------------------------------------------------------------


class TestVisibility:
    def test_read_uncommitted_sees_pending(self, store: InMemoryLedgerStore) -> None:
        writer = store.begin("read-committed")
        writer.adjust_balance("acc", 100)
        reader = store.begin("read-uncommitted")
        assert reader.read_balance("acc") == 100
        assert reader.count_where(balance_gt(0)) == 1

    def test_read_committed_ignores_pending(self, store: InMemoryLedgerStore) -> None:
        writer = store.begin("read-committed")
        writer.adjust_balance("acc", 100)
        reader = store.begin("read-committed")
        assert reader.read_balance("acc") == 0
        writer.commit()
        assert reader.read_balance("acc") == 100

    def test_repeatable_read_keeps_snapshot(self, store: InMemoryLedgerStore) -> None:
        reader = store.begin("repeatable-read")
        assert reader.read_balance("acc") == 0
        writer = store.begin("read-committed")
        writer.adjust_balance("acc", 100)
        writer.commit()
        assert reader.read_balance("acc") == 0
        assert reader.count_where(balance_gt(0)) == 0

    def test_repeatable_read_snapshot_taken_at_first_read(self, store: InMemoryLedgerStore) -> None:
        reader = store.begin("repeatable-read")
        writer = store.begin("read-committed")
        writer.adjust_balance("acc", 100)
        writer.commit()
        assert reader.read_balance("acc") == 100

    def test_repeatable_read_sees_accounts_created_before_snapshot_only(self, store: InMemoryLedgerStore) -> None:
        reader = store.begin("repeatable-read")
        assert reader.count_where(balance_gt(-1)) == 1
        store.create_account("late", 5)
        assert reader.count_where(balance_gt(-1)) == 1

    def test_serializable_reader_blocks_writer(self, store: InMemoryLedgerStore) -> None:
        reader = store.begin("serializable")
        assert reader.read_balance("acc") == 0
        writer = store.begin("serializable")
        with pytest.raises(LockWaitTimeout):
            writer.adjust_balance("acc", 1)

    def test_serializable_count_blocks_insert_like_writes(self, store: InMemoryLedgerStore) -> None:
        reader = store.begin("serializable")
        assert reader.count_where(balance_gt(0)) == 0
        writer = store.begin("read-committed")
        with pytest.raises(LockWaitTimeout):
            writer.adjust_balance("acc", 1)
        reader.commit()
        writer.adjust_balance("acc", 1)
        writer.commit()
        assert store.balance_of("acc") == 1

    def test_own_writes_overlay_count(self, store: InMemoryLedgerStore) -> None:
        scope = store.begin("repeatable-read")
        scope.adjust_balance("acc", 3)
        assert scope.count_where(balance_gt(0)) == 1
        scope.abort()
        assert scope.status is ScopeStatus.ABORTED
