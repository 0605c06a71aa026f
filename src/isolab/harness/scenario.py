"""Harness – Scenario, a declarative pairing of workers and barriers."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from isolab.harness.barrier import Barrier
from isolab.harness.worker import WorkerSpec
from isolab.kernel.errors import ScenarioDefinitionError


@dataclass(frozen=True)
class Scenario:
    """One anomaly demonstration.

    Args:
        name: Identifier used in logs and reports.
        workers: Worker programs, all launched concurrently.
        barriers: Barrier name → number of signals needed to open it.
        accounts: Account name → opening balance, created before any
            worker starts.
        description: Free text describing the expected interleaving.

    The definition is validated eagerly so authoring mistakes surface before
    any thread starts. Barriers are declared by count only; every run gets
    fresh :class:`Barrier` instances from :meth:`build_barriers`.
    """

    name: str
    workers: Sequence[WorkerSpec]
    barriers: Mapping[str, int] = field(default_factory=dict)
    accounts: Mapping[str, int] = field(default_factory=dict)
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "workers", tuple(self.workers))
        object.__setattr__(self, "barriers", dict(self.barriers))
        object.__setattr__(self, "accounts", dict(self.accounts))
        self._validate()

    def worker(self, name: str) -> WorkerSpec:
        for spec in self.workers:
            if spec.name == name:
                return spec
        raise KeyError(f"No worker named '{name}' in scenario '{self.name}'")

    def build_barriers(self) -> dict[str, Barrier]:
        return {name: Barrier(name, parties) for name, parties in self.barriers.items()}

    def _validate(self) -> None:
        if not self.workers:
            raise ScenarioDefinitionError(f"Scenario '{self.name}' has no workers")

        seen: set[str] = set()
        for spec in self.workers:
            if spec.name in seen:
                raise ScenarioDefinitionError(f"Scenario '{self.name}' has two workers named '{spec.name}'")
            seen.add(spec.name)

        for barrier, parties in self.barriers.items():
            if parties < 0:
                raise ScenarioDefinitionError(
                    f"Barrier '{barrier}' in scenario '{self.name}' has a negative count ({parties})"
                )

        for spec in self.workers:
            undeclared = spec.barrier_names() - set(self.barriers)
            if undeclared:
                raise ScenarioDefinitionError(
                    f"Worker '{spec.name}' uses undeclared barriers: {', '.join(sorted(undeclared))}",
                    detail={"scenario": self.name, "worker": spec.name},
                )
            terminal = [i for i, step in enumerate(spec.steps) if step.terminal]
            if len(terminal) != 1:
                raise ScenarioDefinitionError(
                    f"Worker '{spec.name}' must have exactly one commit or abort step",
                    detail={"scenario": self.name, "worker": spec.name, "terminal_steps": terminal},
                )
            trailing = [step.describe() for step in spec.steps[terminal[0] + 1:] if step.uses_scope]
            if trailing:
                raise ScenarioDefinitionError(
                    f"Worker '{spec.name}' uses its scope after commit/abort: {', '.join(trailing)}",
                    detail={"scenario": self.name, "worker": spec.name},
                )


__all__ = ["Scenario"]
