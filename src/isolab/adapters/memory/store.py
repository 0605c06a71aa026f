"""In-memory store – a versioned ledger with real isolation semantics.

Committed balances are kept as version lists tagged with a commit
sequence number, so a repeatable-read scope can read "as of" the moment
of its first read. At most one uncommitted value per row exists at a time
(writers hold an exclusive row lock until they finish); read-uncommitted
scopes see it. Serializable scopes take shared locks on what they read,
so a concurrent writer blocks until the reader ends.
"""
from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable

from isolab.adapters.memory.locks import LockManager, LockMode
from isolab.kernel.errors import AccountNotFound, DuplicateAccount
from isolab.kernel.ledger import (
    ALL_ISOLATION_LEVELS,
    BalancePredicate,
    IsolationLevel,
    LedgerStore,
    TransactionScope,
)
from isolab.observability.logging import get_logger

_log = get_logger(__name__)

_TABLE = ("table", "accounts")


def _row(name: str) -> tuple[str, str]:
    return ("row", name)


class InMemoryLedgerStore(LedgerStore):
    """Thread-safe in-memory ledger.

    Args:
        supported_levels: Levels :meth:`begin` accepts (default: all four).
        lock_timeout: Seconds a lock request may block before
            :class:`~isolab.kernel.errors.LockWaitTimeout`.
    """

    def __init__(
        self,
        supported_levels: Iterable[IsolationLevel | str] | None = None,
        lock_timeout: float = 5.0,
    ) -> None:
        self._supported = (
            ALL_ISOLATION_LEVELS
            if supported_levels is None
            else frozenset(IsolationLevel.parse(level) for level in supported_levels)
        )
        self._mutex = threading.RLock()
        self._versions: dict[str, list[tuple[int, int]]] = {}
        self._pending: dict[str, tuple[int, int]] = {}
        self._seq = 0
        self._txids = itertools.count(1)
        self.locks = LockManager(lock_timeout)

    @property
    def supported_isolation_levels(self) -> frozenset[IsolationLevel]:
        return self._supported

    def _begin(self, isolation_level: IsolationLevel) -> "InMemoryScope":
        txid = next(self._txids)
        _log.debug("store.begin", txid=txid, isolation=isolation_level.value)
        return InMemoryScope(self, txid, isolation_level)

    def create_account(self, name: str, balance: int = 0) -> None:
        with self._mutex:
            if name in self._versions:
                raise DuplicateAccount(name)
            self._seq += 1
            self._versions[name] = [(self._seq, balance)]

    def balance_of(self, name: str) -> int:
        with self._mutex:
            balance = self.committed_balance(name)
        if balance is None:
            raise AccountNotFound(name)
        return balance

    # ------------------------------------------------------------------
    # Views used by scopes
    # ------------------------------------------------------------------

    @property
    def commit_sequence(self) -> int:
        with self._mutex:
            return self._seq

    def committed_balance(self, name: str, as_of: int | None = None) -> int | None:
        with self._mutex:
            for seq, balance in reversed(self._versions.get(name, ())):
                if as_of is None or seq <= as_of:
                    return balance
            return None

    def committed_rows(self, as_of: int | None = None) -> dict[str, int]:
        with self._mutex:
            rows: dict[str, int] = {}
            for name in self._versions:
                balance = self.committed_balance(name, as_of)
                if balance is not None:
                    rows[name] = balance
            return rows

    def dirty_balance(self, name: str) -> int | None:
        with self._mutex:
            if name in self._pending:
                return self._pending[name][1]
            return self.committed_balance(name)

    def dirty_rows(self) -> dict[str, int]:
        with self._mutex:
            rows = self.committed_rows()
            rows.update({name: balance for name, (_, balance) in self._pending.items() if name in rows})
            return rows

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def publish_pending(self, txid: int, name: str, balance: int) -> None:
        with self._mutex:
            self._pending[name] = (txid, balance)

    def apply(self, txid: int, writes: dict[str, int]) -> int:
        with self._mutex:
            self._seq += 1
            for name, balance in writes.items():
                self._versions[name].append((self._seq, balance))
            self._drop_pending(txid)
            return self._seq

    def discard(self, txid: int) -> None:
        with self._mutex:
            self._drop_pending(txid)

    def _drop_pending(self, txid: int) -> None:
        for name in [n for n, (owner, _) in self._pending.items() if owner == txid]:
            del self._pending[name]


class InMemoryScope(TransactionScope):
    """A transaction on :class:`InMemoryLedgerStore`; nothing cached locally."""

    def __init__(self, store: InMemoryLedgerStore, txid: int, isolation_level: IsolationLevel) -> None:
        super().__init__(isolation_level)
        self._store = store
        self.txid = txid
        self._writes: dict[str, int] = {}
        self._snapshot: int | None = None

    def _read_balance(self, name: str) -> int:
        if self.isolation_level is IsolationLevel.SERIALIZABLE:
            self._lock(_TABLE, LockMode.INTENTION_SHARED)
            self._lock(_row(name), LockMode.SHARED)
        if name in self._writes:
            return self._writes[name]
        level = self.isolation_level
        if level is IsolationLevel.READ_UNCOMMITTED:
            balance = self._store.dirty_balance(name)
        elif level is IsolationLevel.REPEATABLE_READ:
            balance = self._store.committed_balance(name, as_of=self._snapshot_seq())
        else:
            balance = self._store.committed_balance(name)
        if balance is None:
            raise AccountNotFound(name)
        return balance

    def _adjust_balance(self, name: str, delta: int) -> None:
        self._lock(_TABLE, LockMode.INTENTION_EXCLUSIVE)
        self._lock(_row(name), LockMode.EXCLUSIVE)
        base = self._writes.get(name)
        if base is None:
            base = self._store.committed_balance(name)
        if base is None:
            raise AccountNotFound(name)
        self._writes[name] = base + delta
        self._store.publish_pending(self.txid, name, base + delta)

    def _count_where(self, predicate: BalancePredicate) -> int:
        level = self.isolation_level
        if level is IsolationLevel.SERIALIZABLE:
            self._lock(_TABLE, LockMode.SHARED)
        if level is IsolationLevel.READ_UNCOMMITTED:
            rows = self._store.dirty_rows()
        elif level is IsolationLevel.REPEATABLE_READ:
            rows = self._store.committed_rows(as_of=self._snapshot_seq())
        else:
            rows = self._store.committed_rows()
        rows.update(self._writes)
        return sum(1 for balance in rows.values() if predicate.matches(balance))

    def _commit(self) -> None:
        try:
            if self._writes:
                seq = self._store.apply(self.txid, self._writes)
                _log.debug("store.commit", txid=self.txid, seq=seq, rows=sorted(self._writes))
        finally:
            self._store.locks.release_all(self.txid)

    def _rollback(self) -> None:
        try:
            self._store.discard(self.txid)
        finally:
            self._writes.clear()
            self._store.locks.release_all(self.txid)

    def _snapshot_seq(self) -> int:
        if self._snapshot is None:
            self._snapshot = self._store.commit_sequence
        return self._snapshot

    def _lock(self, resource: tuple[str, str], mode: LockMode) -> None:
        self._store.locks.acquire(self.txid, resource, mode)


__all__ = ["InMemoryLedgerStore", "InMemoryScope"]
