"""Observability – logging for scenario runs."""
from isolab.observability.logging import (
    LoggerFactory,
    ThreadNameProcessor,
    configure_logging,
    configure_logging_from,
    get_logger,
)

__all__ = ["LoggerFactory", "ThreadNameProcessor", "configure_logging", "configure_logging_from", "get_logger"]
