"""In-memory ledger store with lock-based and snapshot isolation."""
from isolab.adapters.memory.locks import LockManager, LockMode
from isolab.adapters.memory.store import InMemoryLedgerStore, InMemoryScope

__all__ = ["InMemoryLedgerStore", "InMemoryScope", "LockManager", "LockMode"]
