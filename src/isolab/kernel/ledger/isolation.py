"""Ledger contract – IsolationLevel enum."""
from __future__ import annotations

import enum


class IsolationLevel(str, enum.Enum):
    """Transaction isolation levels a scope can be opened with.

    Values are the hyphenated names used in scenario definitions;
    :attr:`sql_name` gives the spelling relational drivers expect.
    """

    READ_UNCOMMITTED = "read-uncommitted"
    READ_COMMITTED = "read-committed"
    REPEATABLE_READ = "repeatable-read"
    SERIALIZABLE = "serializable"

    def __str__(self) -> str:
        return self.value

    @property
    def sql_name(self) -> str:
        return self.value.replace("-", " ").upper()

    @classmethod
    def parse(cls, value: "IsolationLevel | str") -> "IsolationLevel":
        """Accept the enum itself, its value, its member name or its SQL name."""
        if isinstance(value, cls):
            return value
        normalised = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        try:
            return cls(normalised)
        except ValueError:
            raise ValueError(f"Unknown isolation level: {value!r}") from None


ALL_ISOLATION_LEVELS: frozenset[IsolationLevel] = frozenset(IsolationLevel)


__all__ = ["ALL_ISOLATION_LEVELS", "IsolationLevel"]
