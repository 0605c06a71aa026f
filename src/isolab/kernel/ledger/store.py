"""Ledger contract – LedgerStore port."""
from __future__ import annotations

import abc

from isolab.kernel.errors import UnsupportedIsolationLevel
from isolab.kernel.ledger.isolation import ALL_ISOLATION_LEVELS, IsolationLevel
from isolab.kernel.ledger.scope import TransactionScope


class LedgerStore(abc.ABC):
    """Port: a transactional store of named accounts with numeric balances.

    Account names are unique for the lifetime of the store.
    """

    @property
    def supported_isolation_levels(self) -> frozenset[IsolationLevel]:
        return ALL_ISOLATION_LEVELS

    def begin(self, isolation_level: IsolationLevel | str) -> TransactionScope:
        """Open a new scope, or raise :class:`UnsupportedIsolationLevel`."""
        level = IsolationLevel.parse(isolation_level)
        supported = self.supported_isolation_levels
        if level not in supported:
            raise UnsupportedIsolationLevel(level, supported)
        return self._begin(level)

    @abc.abstractmethod
    def _begin(self, isolation_level: IsolationLevel) -> TransactionScope: ...

    @abc.abstractmethod
    def create_account(self, name: str, balance: int = 0) -> None:
        """Insert *name* in its own committed transaction.

        Raises :class:`~isolab.kernel.errors.DuplicateAccount` if it exists.
        """

    @abc.abstractmethod
    def balance_of(self, name: str) -> int:
        """Latest committed balance of *name*, read outside any scenario scope."""


__all__ = ["LedgerStore"]
