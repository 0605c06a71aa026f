"""Harness – ScenarioRunner.

Launches every worker of a scenario on its own thread, waits for all of
them, and aggregates a :class:`ScenarioReport`. Threads are started with
no gate and no pacing: the barriers declared by the scenario are the only
ordering between workers.
"""
from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone

from isolab.config import DotenvSettingsLoader, EnvSettingsLoader, HarnessSettings
from isolab.harness.report import ScenarioReport
from isolab.harness.scenario import Scenario
from isolab.harness.worker import Worker
from isolab.kernel.ledger import LedgerStore
from isolab.observability.logging import configure_logging_from, get_logger

_log = get_logger(__name__)


class ScenarioRunner:
    """Run scenarios against a ledger store.

    Example::

        runner = ScenarioRunner()
        report = runner.run(dirty_read(), InMemoryLedgerStore())
        report.raise_for_failure()
    """

    def __init__(self, settings: HarnessSettings | None = None) -> None:
        self._settings = settings or HarnessSettings()
        _log.debug("runner.configured", **self._settings.as_dict())

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "ScenarioRunner":
        """Build a runner from ``ISOLAB_*`` variables and apply their logging setup.

        With *env_file* the variables are first read from that dotenv file.
        """
        loader = DotenvSettingsLoader(env_file) if env_file is not None else EnvSettingsLoader()
        settings = loader.load(HarnessSettings)
        configure_logging_from(settings)
        return cls(settings)

    @property
    def settings(self) -> HarnessSettings:
        return self._settings

    def run(
        self,
        scenario: Scenario,
        store: LedgerStore,
        timeout: float | None = None,
    ) -> ScenarioReport:
        """Run *scenario* once against *store*.

        *timeout* bounds the whole run (default ``settings.run_timeout``).
        Workers still running at the deadline are left alone and reported
        as unfinished; a worker stuck on a barrier nobody signals is a
        scenario bug, not something the runner can cancel.
        """
        log = _log.bind(scenario=scenario.name)
        for account, balance in scenario.accounts.items():
            store.create_account(account, balance)

        barriers = scenario.build_barriers()
        workers = [
            Worker(spec, store, barriers, scenario=scenario.name, barrier_timeout=self._settings.barrier_timeout)
            for spec in scenario.workers
        ]
        threads = [
            threading.Thread(target=worker.run, name=f"{scenario.name}/{worker.name}", daemon=True)
            for worker in workers
        ]

        log.info("scenario.started", workers=[w.name for w in workers], barriers=sorted(barriers))
        started_at = datetime.now(timezone.utc)
        deadline = time.monotonic() + (timeout if timeout is not None else self._settings.run_timeout)
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))

        # a thread may still be unwinding after its worker reached a terminal state
        reports = tuple(worker.report() for worker in workers)
        report = ScenarioReport(
            scenario=scenario.name,
            workers=reports,
            timed_out=any(not r.state.is_terminal for r in reports),
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )
        if report.passed:
            log.info("scenario.passed", signature=report.signature())
        else:
            log.warning("scenario.failed", failures=report.failures(), timed_out=report.timed_out)
        return report

    def run_many(
        self,
        scenario: Scenario,
        store_factory: Callable[[], LedgerStore],
        repetitions: int,
        timeout: float | None = None,
    ) -> list[ScenarioReport]:
        """Run *scenario* *repetitions* times, each against a fresh store."""
        if repetitions < 1:
            raise ValueError("repetitions must be at least 1")
        return [self.run(scenario, store_factory(), timeout=timeout) for _ in range(repetitions)]


__all__ = ["ScenarioRunner"]
