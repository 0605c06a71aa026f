"""Testing generators – Hypothesis strategies for ledger types."""
from isolab.testing.generators.strategies import (
    account_name_strategy,
    balance_predicate_strategy,
    barrier_parties_strategy,
    isolation_level_strategy,
)

__all__ = [
    "account_name_strategy",
    "balance_predicate_strategy",
    "barrier_parties_strategy",
    "isolation_level_strategy",
]
