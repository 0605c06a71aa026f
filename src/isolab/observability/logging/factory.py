"""Observability – structlog configuration."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import structlog

from isolab.observability.logging.processors import ThreadNameProcessor

if TYPE_CHECKING:
    from isolab.config import HarnessSettings


class LoggerFactory:
    """Configure structlog on top of the stdlib logging tree."""

    @staticmethod
    def configure(level: int = logging.INFO, json: bool = False) -> None:
        shared_processors: list[Any] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            ThreadNameProcessor(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
        ]
        renderer: Any = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(colors=False)

        structlog.configure(
            processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        formatter = structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)


def configure_logging(level: int | str = logging.INFO, json: bool = False) -> None:
    """Shortcut for :meth:`LoggerFactory.configure` accepting level names."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    LoggerFactory.configure(level=level, json=json)


def configure_logging_from(settings: HarnessSettings) -> None:
    """Apply ``log_level`` and ``log_json`` from *settings*."""
    LoggerFactory.configure(level=settings.log_level_number, json=settings.log_json)


__all__ = ["LoggerFactory", "configure_logging", "configure_logging_from"]
