"""Ledger contract – BalancePredicate used by ``count_where``."""
from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}


@dataclass(frozen=True)
class BalancePredicate:
    """A single comparison against an account balance, e.g. ``balance > 0``."""

    op: str
    threshold: int

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(
                f"Unsupported operator {self.op!r}; expected one of {sorted(_OPERATORS)}"
            )

    def matches(self, balance: int) -> bool:
        return _OPERATORS[self.op](balance, self.threshold)

    def apply(self, column: Any) -> Any:
        """Build the same comparison against *column* (e.g. a SQL expression)."""
        return _OPERATORS[self.op](column, self.threshold)

    def __str__(self) -> str:
        return f"balance {self.op} {self.threshold}"


def balance_gt(threshold: int) -> BalancePredicate:
    return BalancePredicate(">", threshold)


def balance_ge(threshold: int) -> BalancePredicate:
    return BalancePredicate(">=", threshold)


def balance_lt(threshold: int) -> BalancePredicate:
    return BalancePredicate("<", threshold)


def balance_le(threshold: int) -> BalancePredicate:
    return BalancePredicate("<=", threshold)


def balance_eq(threshold: int) -> BalancePredicate:
    return BalancePredicate("==", threshold)


__all__ = [
    "BalancePredicate",
    "balance_eq",
    "balance_ge",
    "balance_gt",
    "balance_le",
    "balance_lt",
]
