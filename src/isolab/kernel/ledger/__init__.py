"""Ledger contract – the store surface every worker talks to."""
from isolab.kernel.ledger.isolation import ALL_ISOLATION_LEVELS, IsolationLevel
from isolab.kernel.ledger.predicate import (
    BalancePredicate,
    balance_eq,
    balance_ge,
    balance_gt,
    balance_le,
    balance_lt,
)
from isolab.kernel.ledger.scope import ScopeStatus, TransactionScope
from isolab.kernel.ledger.store import LedgerStore

__all__ = [
    "ALL_ISOLATION_LEVELS",
    "BalancePredicate",
    "IsolationLevel",
    "LedgerStore",
    "ScopeStatus",
    "TransactionScope",
    "balance_eq",
    "balance_ge",
    "balance_gt",
    "balance_le",
    "balance_lt",
]
