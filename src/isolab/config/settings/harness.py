"""Config settings – HarnessSettings."""
from __future__ import annotations

import dataclasses
import logging

from isolab.config.settings.base import Settings
from isolab.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class HarnessSettings(Settings):
    """Tunables for scenario runs, read from ``ISOLAB_*`` variables.

    ``barrier_timeout`` is the bound the runner hands to soft-ordering
    waits (``WaitFor(bounded=True)``, a step that waits "until the other
    side has probably moved"). A store slower than this bound can turn a
    soft ordering into a false negative, so raise it rather than treat it
    as a hard guarantee.

    ``log_level`` and ``log_json`` are applied by
    :func:`~isolab.observability.logging.configure_logging_from`, and
    ``database_url`` is read by ``SqlAlchemyLedgerStore.from_settings``.
    """

    _prefix: dataclasses.ClassVar[str] = "ISOLAB"

    barrier_timeout: float = 0.3
    run_timeout: float = 10.0
    lock_timeout: float = 5.0
    log_level: str = "INFO"
    log_json: bool = False
    database_url: str = ""

    def _validate(self) -> None:
        for name in ("barrier_timeout", "run_timeout", "lock_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise InvalidSettingValueError(name, value, "must be positive")
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise InvalidSettingValueError("log_level", self.log_level, "unknown log level")

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level.upper())


__all__ = ["HarnessSettings"]
