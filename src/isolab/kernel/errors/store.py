"""Store errors – raised by ledger store adapters through a transaction scope."""

from __future__ import annotations

from typing import Any

from isolab.kernel.errors.base import BaseError


class StoreError(BaseError):
    """A ledger store operation failed."""

    default_code = "store_error"


class UnsupportedIsolationLevel(StoreError):
    """The store cannot honour the requested isolation level."""

    default_code = "unsupported_isolation_level"

    def __init__(self, level: Any, supported: Any = (), **kwargs: Any) -> None:
        names = ", ".join(sorted(str(s) for s in supported)) or "none"
        super().__init__(
            f"Isolation level '{level}' is not supported (supported: {names})",
            **kwargs,
        )
        self.level = level


class CommitConflict(StoreError):
    """The store detected a write-write or serialization conflict.

    Workers treat this exactly like an explicit abort.
    """

    default_code = "commit_conflict"


class ScopeClosedError(StoreError):
    """An operation was attempted on a committed or aborted scope."""

    default_code = "scope_closed"

    def __init__(self, operation: str, status: Any, **kwargs: Any) -> None:
        super().__init__(f"Cannot {operation}: transaction scope is {status}", **kwargs)
        self.operation = operation
        self.status = status


class AccountNotFound(StoreError):
    default_code = "account_not_found"

    def __init__(self, name: str, **kwargs: Any) -> None:
        super().__init__(f"Account '{name}' not found", **kwargs)
        self.name = name


class DuplicateAccount(StoreError):
    """Account names are unique within a store."""

    default_code = "duplicate_account"

    def __init__(self, name: str, **kwargs: Any) -> None:
        super().__init__(f"Account '{name}' already exists", **kwargs)
        self.name = name


class LockWaitTimeout(StoreError):
    """A lock could not be acquired within the store's lock timeout."""

    default_code = "lock_wait_timeout"


__all__ = [
    "AccountNotFound",
    "CommitConflict",
    "DuplicateAccount",
    "LockWaitTimeout",
    "ScopeClosedError",
    "StoreError",
    "UnsupportedIsolationLevel",
]
