"""Ledger contract – TransactionScope port.

A scope is the bounded lifetime of one logical transaction. The public
methods enforce the lifecycle (begin, operations, exactly one of
commit/abort, closed); adapters implement the underscore hooks.
"""
from __future__ import annotations

import abc
import enum
from typing import Any

from isolab.kernel.errors import CommitConflict, ScopeClosedError
from isolab.kernel.ledger.isolation import IsolationLevel
from isolab.kernel.ledger.predicate import BalancePredicate


class ScopeStatus(str, enum.Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ABORTED = "aborted"

    def __str__(self) -> str:
        return self.value


class TransactionScope(abc.ABC):
    """Port: one transaction opened at a fixed isolation level."""

    #: Whether :meth:`invalidate_local_view` drops anything.
    supports_local_view: bool = False

    def __init__(self, isolation_level: IsolationLevel | str) -> None:
        self._isolation_level = IsolationLevel.parse(isolation_level)
        self._status = ScopeStatus.ACTIVE
        self.abort_reason: str | None = None

    @property
    def isolation_level(self) -> IsolationLevel:
        return self._isolation_level

    @property
    def status(self) -> ScopeStatus:
        return self._status

    @property
    def closed(self) -> bool:
        return self._status is not ScopeStatus.ACTIVE

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def read_balance(self, name: str) -> int:
        """Balance of *name* as visible under this scope's isolation level."""
        self._ensure_active("read balance")
        return self._read_balance(name)

    def adjust_balance(self, name: str, delta: int) -> None:
        """Apply a relative change; the writer sees it immediately."""
        self._ensure_active("adjust balance")
        self._adjust_balance(name, delta)

    def count_where(self, predicate: BalancePredicate) -> int:
        self._ensure_active("count rows")
        return self._count_where(predicate)

    def invalidate_local_view(self) -> None:
        """Drop scope-local memoisation so the next read hits the store."""
        self._ensure_active("invalidate local view")
        self._invalidate_local_view()

    def commit(self) -> None:
        """Apply the scope's writes.

        On :class:`CommitConflict` the scope is rolled back and closed as
        aborted before the error propagates.
        """
        self._ensure_active("commit")
        try:
            self._commit()
        except CommitConflict as exc:
            self._close_aborted(f"commit conflict: {exc.message}")
            raise
        self._status = ScopeStatus.COMMITTED

    def abort(self, reason: str = "aborted") -> None:
        """Discard the scope's writes. Always succeeds on an active scope."""
        self._ensure_active("abort")
        self._close_aborted(reason)

    # ------------------------------------------------------------------
    # Context manager: commit on success, abort on error
    # ------------------------------------------------------------------

    def __enter__(self) -> "TransactionScope":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.closed:
            return
        if exc_type is None:
            self.commit()
        else:
            self.abort(f"{exc_type.__name__}: {exc_val}")

    # ------------------------------------------------------------------
    # Adapter hooks
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def _read_balance(self, name: str) -> int: ...

    @abc.abstractmethod
    def _adjust_balance(self, name: str, delta: int) -> None: ...

    @abc.abstractmethod
    def _count_where(self, predicate: BalancePredicate) -> int: ...

    @abc.abstractmethod
    def _commit(self) -> None: ...

    @abc.abstractmethod
    def _rollback(self) -> None: ...

    def _invalidate_local_view(self) -> None:
        """A pass-through store has nothing to invalidate."""

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_active(self, operation: str) -> None:
        if self.closed:
            raise ScopeClosedError(operation, self._status)

    def _close_aborted(self, reason: str) -> None:
        try:
            self._rollback()
        finally:
            self._status = ScopeStatus.ABORTED
            self.abort_reason = reason

    def __repr__(self) -> str:
        return f"{type(self).__name__}(isolation={self._isolation_level.value!r}, status={self._status.value!r})"


__all__ = ["ScopeStatus", "TransactionScope"]
