"""Scenarios – ready-made isolation anomaly demonstrations."""
from isolab.scenarios.catalog import (
    CATALOG,
    application_level_inconsistent_read,
    application_level_inconsistent_read_prevented,
    application_level_repeatable_read,
    dirty_read,
    dirty_read_prevented,
    non_repeatable_read,
    non_repeatable_read_prevented,
    phantom_read,
    phantom_read_prevented,
)

__all__ = [
    "CATALOG",
    "application_level_inconsistent_read",
    "application_level_inconsistent_read_prevented",
    "application_level_repeatable_read",
    "dirty_read",
    "dirty_read_prevented",
    "non_repeatable_read",
    "non_repeatable_read_prevented",
    "phantom_read",
    "phantom_read_prevented",
]
