"""Observability – structured logging helpers."""
from isolab.observability.logging.factory import LoggerFactory, configure_logging, configure_logging_from
from isolab.observability.logging.processors import ThreadNameProcessor, get_logger

__all__ = ["LoggerFactory", "ThreadNameProcessor", "configure_logging", "configure_logging_from", "get_logger"]
