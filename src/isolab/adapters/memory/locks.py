"""In-memory store – hierarchical lock manager.

Locks are taken on a table resource and on row resources in one of four
modes and held until the owning transaction ends. Compatibility::

         IS   IX   S    X
    IS   ok   ok   ok   -
    IX   ok   ok   -    -
    S    ok   -    ok   -
    X    -    -    -    -
"""
from __future__ import annotations

import enum
import threading
import time
from collections.abc import Hashable

from isolab.kernel.errors import CommitConflict, LockWaitTimeout
from isolab.observability.logging import get_logger

_log = get_logger(__name__)


class LockMode(str, enum.Enum):
    INTENTION_SHARED = "IS"
    INTENTION_EXCLUSIVE = "IX"
    SHARED = "S"
    EXCLUSIVE = "X"


_COMPATIBLE: dict[LockMode, frozenset[LockMode]] = {
    LockMode.INTENTION_SHARED: frozenset(
        {LockMode.INTENTION_SHARED, LockMode.INTENTION_EXCLUSIVE, LockMode.SHARED}
    ),
    LockMode.INTENTION_EXCLUSIVE: frozenset({LockMode.INTENTION_SHARED, LockMode.INTENTION_EXCLUSIVE}),
    LockMode.SHARED: frozenset({LockMode.INTENTION_SHARED, LockMode.SHARED}),
    LockMode.EXCLUSIVE: frozenset(),
}


class LockManager:
    """Blocking lock table with wait-for-graph deadlock detection.

    A request that would close a cycle in the wait-for graph raises
    :class:`CommitConflict` instead of waiting; a request still blocked
    after *timeout* seconds raises :class:`LockWaitTimeout`.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self._timeout = timeout
        self._cond = threading.Condition()
        self._held: dict[Hashable, dict[Hashable, set[LockMode]]] = {}
        self._waiting: dict[Hashable, set[Hashable]] = {}

    def acquire(self, owner: Hashable, resource: Hashable, mode: LockMode) -> None:
        deadline = time.monotonic() + self._timeout
        with self._cond:
            while True:
                blockers = self._blockers(owner, resource, mode)
                if not blockers:
                    self._waiting.pop(owner, None)
                    self._held.setdefault(resource, {}).setdefault(owner, set()).add(mode)
                    return
                if self._closes_cycle(owner, blockers):
                    self._waiting.pop(owner, None)
                    _log.info("lock.deadlock", owner=owner, resource=resource, mode=mode.value)
                    raise CommitConflict(
                        f"Deadlock detected while transaction {owner} requested {mode.value} on {resource}",
                        detail={"owner": owner, "blockers": sorted(map(str, blockers))},
                    )
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self._waiting.pop(owner, None)
                    raise LockWaitTimeout(
                        f"Transaction {owner} waited more than {self._timeout}s for {mode.value} on {resource}"
                    )
                self._waiting[owner] = blockers
                _log.debug("lock.waiting", owner=owner, resource=resource, mode=mode.value)
                self._cond.wait(remaining)

    def release_all(self, owner: Hashable) -> None:
        with self._cond:
            for holders in self._held.values():
                holders.pop(owner, None)
            self._held = {resource: holders for resource, holders in self._held.items() if holders}
            self._waiting.pop(owner, None)
            self._cond.notify_all()

    def held_by(self, owner: Hashable) -> dict[Hashable, frozenset[LockMode]]:
        with self._cond:
            return {
                resource: frozenset(holders[owner])
                for resource, holders in self._held.items()
                if owner in holders
            }

    def _blockers(self, owner: Hashable, resource: Hashable, mode: LockMode) -> set[Hashable]:
        compatible = _COMPATIBLE[mode]
        return {
            other
            for other, modes in self._held.get(resource, {}).items()
            if other != owner and any(held not in compatible for held in modes)
        }

    def _closes_cycle(self, owner: Hashable, blockers: set[Hashable]) -> bool:
        stack = list(blockers)
        seen: set[Hashable] = set()
        while stack:
            current = stack.pop()
            if current == owner:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._waiting.get(current, ()))
        return False


__all__ = ["LockManager", "LockMode"]
