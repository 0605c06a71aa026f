"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── HarnessError              (harness.py)
    │   ├── ScenarioDefinitionError
    │   ├── WorkerStateError
    │   ├── BarrierTimeout
    │   └── ScenarioFailed
    │       ├── AssertionMismatch
    │       ├── UnexpectedAbort
    │       ├── WorkerFailed
    │       └── ScenarioTimeout
    └── StoreError                (store.py)
        ├── UnsupportedIsolationLevel
        ├── CommitConflict
        ├── ScopeClosedError
        ├── AccountNotFound
        ├── DuplicateAccount
        └── LockWaitTimeout
"""

from isolab.kernel.errors.base import BaseError
from isolab.kernel.errors.harness import (
    AssertionMismatch,
    BarrierTimeout,
    HarnessError,
    ScenarioDefinitionError,
    ScenarioFailed,
    ScenarioTimeout,
    UnexpectedAbort,
    WorkerFailed,
    WorkerStateError,
)
from isolab.kernel.errors.store import (
    AccountNotFound,
    CommitConflict,
    DuplicateAccount,
    LockWaitTimeout,
    ScopeClosedError,
    StoreError,
    UnsupportedIsolationLevel,
)

__all__ = [
    "AccountNotFound",
    "AssertionMismatch",
    "BarrierTimeout",
    "BaseError",
    "CommitConflict",
    "DuplicateAccount",
    "HarnessError",
    "LockWaitTimeout",
    "ScenarioDefinitionError",
    "ScenarioFailed",
    "ScenarioTimeout",
    "ScopeClosedError",
    "StoreError",
    "UnexpectedAbort",
    "UnsupportedIsolationLevel",
    "WorkerFailed",
    "WorkerStateError",
]
