"""Adapters – session-level identity map over any ledger store.

ORM sessions keep one object per row for the life of a transaction, so a
second read of the same row returns the object already loaded instead of
re-querying. That gives "application-level" repeatable reads regardless
of the database isolation level. :class:`IdentityMapScope` reproduces the
behaviour explicitly so scenarios can show it, and undo it with
``invalidate_local_view()``.
"""
from __future__ import annotations

from isolab.kernel.ledger import BalancePredicate, IsolationLevel, LedgerStore, TransactionScope
from isolab.observability.logging import get_logger

_log = get_logger(__name__)


class IdentityMapScope(TransactionScope):
    """Wrap *inner* with a per-scope balance cache."""

    supports_local_view = True

    def __init__(self, inner: TransactionScope) -> None:
        super().__init__(inner.isolation_level)
        self._inner = inner
        self._identity_map: dict[str, int] = {}

    @property
    def cached_accounts(self) -> frozenset[str]:
        return frozenset(self._identity_map)

    def _read_balance(self, name: str) -> int:
        if name not in self._identity_map:
            self._identity_map[name] = self._inner.read_balance(name)
        return self._identity_map[name]

    def _adjust_balance(self, name: str, delta: int) -> None:
        self._inner.adjust_balance(name, delta)
        if name in self._identity_map:
            self._identity_map[name] += delta

    def _count_where(self, predicate: BalancePredicate) -> int:
        return self._inner.count_where(predicate)

    def _invalidate_local_view(self) -> None:
        _log.debug("identity_map.cleared", accounts=sorted(self._identity_map))
        self._identity_map.clear()

    def _commit(self) -> None:
        self._inner.commit()
        self._identity_map.clear()

    def _rollback(self) -> None:
        self._identity_map.clear()
        if not self._inner.closed:
            self._inner.abort("rolled back by identity map scope")


class CachingLedgerStore(LedgerStore):
    """A :class:`LedgerStore` whose scopes all carry an identity map."""

    def __init__(self, inner: LedgerStore) -> None:
        self._inner = inner

    @property
    def inner(self) -> LedgerStore:
        return self._inner

    @property
    def supported_isolation_levels(self) -> frozenset[IsolationLevel]:
        return self._inner.supported_isolation_levels

    def _begin(self, isolation_level: IsolationLevel) -> IdentityMapScope:
        return IdentityMapScope(self._inner.begin(isolation_level))

    def create_account(self, name: str, balance: int = 0) -> None:
        self._inner.create_account(name, balance)

    def balance_of(self, name: str) -> int:
        return self._inner.balance_of(name)


__all__ = ["CachingLedgerStore", "IdentityMapScope"]
