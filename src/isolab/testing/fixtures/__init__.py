"""Testing fixtures – pytest plugin.

Enable with ``pytest_plugins = ["isolab.testing.fixtures"]`` in a
``conftest.py``.
"""
from isolab.testing.fixtures.stores import (
    caching_ledger_store,
    harness_settings,
    ledger_store,
    scenario_runner,
)

__all__ = [
    "caching_ledger_store",
    "harness_settings",
    "ledger_store",
    "scenario_runner",
]
