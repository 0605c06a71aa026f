"""
isolab – deterministic transaction-interleaving harness.

Import path convention::

    from isolab.harness import Scenario, ScenarioRunner, WorkerSpec
    from isolab.harness.steps import ReadBalance, Signal, WaitFor, Commit
    from isolab.kernel.ledger import IsolationLevel, balance_gt
    from isolab.adapters.memory import InMemoryLedgerStore
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
