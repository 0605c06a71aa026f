"""Harness – Barrier, a one-shot counting latch.

Every cross-worker ordering in a scenario is expressed as a barrier edge:
one worker :meth:`~Barrier.signal`\\ s, another :meth:`~Barrier.wait`\\ s.
"""
from __future__ import annotations

import enum
import threading


class BarrierStatus(str, enum.Enum):
    OPENED = "opened"
    TIMED_OUT = "timed_out"

    def __str__(self) -> str:
        return self.value


class Barrier:
    """One-shot gate that opens after *parties* signals.

    * :meth:`signal` decrements the remaining count atomically; calls beyond
      the required count are no-ops.
    * :meth:`wait` blocks until the gate is open or *timeout* seconds have
      elapsed, and reports which happened instead of raising.
    * Once open the gate stays open; later waits return immediately.

    Example::

        written = Barrier("written", parties=1)
        # worker 1                 # worker 2
        written.signal()           written.wait()
    """

    def __init__(self, name: str, parties: int = 1) -> None:
        if parties < 0:
            raise ValueError(f"Barrier '{name}' needs a non-negative party count, got {parties}")
        self.name = name
        self.parties = parties
        self._remaining = parties
        self._signal_count = 0
        self._cond = threading.Condition()

    @property
    def remaining(self) -> int:
        with self._cond:
            return self._remaining

    @property
    def is_open(self) -> bool:
        with self._cond:
            return self._remaining == 0

    @property
    def signal_count(self) -> int:
        """Number of :meth:`signal` calls, surplus ones included."""
        with self._cond:
            return self._signal_count

    def signal(self) -> int:
        """Count one party as done and return the remaining count."""
        with self._cond:
            self._signal_count += 1
            if self._remaining > 0:
                self._remaining -= 1
                if self._remaining == 0:
                    self._cond.notify_all()
            return self._remaining

    def wait(self, timeout: float | None = None) -> BarrierStatus:
        """Block until open, or until *timeout* seconds pass (``None`` waits forever)."""
        with self._cond:
            opened = self._cond.wait_for(lambda: self._remaining == 0, timeout=timeout)
        return BarrierStatus.OPENED if opened else BarrierStatus.TIMED_OUT

    def __repr__(self) -> str:
        return f"Barrier(name={self.name!r}, parties={self.parties}, remaining={self.remaining})"


__all__ = ["Barrier", "BarrierStatus"]
