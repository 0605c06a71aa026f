"""Observability – structlog processors and get_logger helper."""
from __future__ import annotations

import threading
from typing import Any

import structlog


class ThreadNameProcessor:
    """structlog processor that tags every event with the emitting thread.

    Worker threads are named after their scenario and worker, so the
    interleaving of a run can be read straight from the log.
    """

    def __call__(
        self,
        logger: Any,           # noqa: ARG002
        method_name: str,      # noqa: ARG002
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        event_dict.setdefault("thread", threading.current_thread().name)
        return event_dict


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a bound structlog logger.

    Parameters
    ----------
    name:
        Logger name (typically ``__name__`` of the calling module).
    **initial_values:
        Key-value pairs to bind on the returned logger.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


__all__ = ["ThreadNameProcessor", "get_logger"]
