"""Testing fixtures – ledger_store, caching_ledger_store, scenario_runner."""
from __future__ import annotations

import pytest

from isolab.adapters.identity_map import CachingLedgerStore
from isolab.adapters.memory import InMemoryLedgerStore
from isolab.config import HarnessSettings
from isolab.harness import ScenarioRunner


@pytest.fixture
def harness_settings() -> HarnessSettings:
    """Settings with short timeouts so a stuck scenario fails fast."""
    return HarnessSettings(barrier_timeout=0.3, run_timeout=5.0, lock_timeout=2.0)


@pytest.fixture
def ledger_store(harness_settings: HarnessSettings) -> InMemoryLedgerStore:
    return InMemoryLedgerStore(lock_timeout=harness_settings.lock_timeout)


@pytest.fixture
def caching_ledger_store(ledger_store: InMemoryLedgerStore) -> CachingLedgerStore:
    """The in-memory store with an identity map on every scope."""
    return CachingLedgerStore(ledger_store)


@pytest.fixture
def scenario_runner(harness_settings: HarnessSettings) -> ScenarioRunner:
    return ScenarioRunner(harness_settings)


__all__ = ["caching_ledger_store", "harness_settings", "ledger_store", "scenario_runner"]
