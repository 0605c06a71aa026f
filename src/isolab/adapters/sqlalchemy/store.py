"""SQLAlchemy adapter – SqlAlchemyLedgerStore and SqlAlchemyScope.

Each scope is one ORM :class:`~sqlalchemy.orm.Session` bound to an engine
copy carrying the requested ``isolation_level``. The session identity map
is the scope's local view: reading the same account twice returns the
already-loaded object without refreshing it, and
``invalidate_local_view()`` expires everything so the next read reloads.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, delete, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from isolab.adapters.sqlalchemy.models import AccountRecord, Base
from isolab.config.validation import MissingRequiredSettingError
from isolab.kernel.errors import (
    AccountNotFound,
    CommitConflict,
    DuplicateAccount,
    LockWaitTimeout,
    StoreError,
)
from isolab.kernel.ledger import (
    ALL_ISOLATION_LEVELS,
    BalancePredicate,
    IsolationLevel,
    LedgerStore,
    TransactionScope,
)
from isolab.observability.logging import get_logger

if TYPE_CHECKING:
    from isolab.config import HarnessSettings

_log = get_logger(__name__)

# pysqlite only distinguishes these two
_DIALECT_LEVELS: dict[str, frozenset[IsolationLevel]] = {
    "sqlite": frozenset({IsolationLevel.READ_UNCOMMITTED, IsolationLevel.SERIALIZABLE}),
}

_CONFLICT_SQLSTATES = frozenset({"40001", "40P01"})
_MYSQL_DEADLOCK = 1213
_MYSQL_LOCK_WAIT_TIMEOUT = 1205


def _error_code(exc: DBAPIError) -> Any:
    args = getattr(exc.orig, "args", ())
    return args[0] if args else None


def translate_error(exc: DBAPIError, operation: str) -> StoreError:
    """Map a driver error to the store error taxonomy."""
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    code = _error_code(exc)
    if sqlstate in _CONFLICT_SQLSTATES or code == _MYSQL_DEADLOCK:
        return CommitConflict(f"{operation} hit a serialization conflict: {exc.orig}", cause=exc)
    if code == _MYSQL_LOCK_WAIT_TIMEOUT:
        return LockWaitTimeout(f"{operation} timed out waiting for a lock: {exc.orig}", cause=exc)
    return StoreError(f"{operation} failed: {exc.orig}", cause=exc)


class SqlAlchemyScope(TransactionScope):
    supports_local_view = True

    def __init__(self, session: Session, isolation_level: IsolationLevel) -> None:
        super().__init__(isolation_level)
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def _read_balance(self, name: str) -> int:
        try:
            record = self._session.scalars(
                select(AccountRecord).where(AccountRecord.name == name)
            ).one_or_none()
        except DBAPIError as exc:
            raise translate_error(exc, "read_balance") from exc
        if record is None:
            raise AccountNotFound(name)
        return record.balance

    def _adjust_balance(self, name: str, delta: int) -> None:
        try:
            result = self._session.execute(
                update(AccountRecord)
                .where(AccountRecord.name == name)
                .values(balance=AccountRecord.balance + delta)
            )
        except DBAPIError as exc:
            raise translate_error(exc, "adjust_balance") from exc
        if result.rowcount == 0:
            raise AccountNotFound(name)

    def _count_where(self, predicate: BalancePredicate) -> int:
        try:
            count = self._session.scalar(
                select(func.count())
                .select_from(AccountRecord)
                .where(predicate.apply(AccountRecord.balance))
            )
        except DBAPIError as exc:
            raise translate_error(exc, "count_where") from exc
        return int(count or 0)

    def _invalidate_local_view(self) -> None:
        self._session.expire_all()

    def _commit(self) -> None:
        try:
            self._session.commit()
        except DBAPIError as exc:
            raise translate_error(exc, "commit") from exc
        self._session.close()

    def _rollback(self) -> None:
        try:
            self._session.rollback()
        finally:
            self._session.close()


class SqlAlchemyLedgerStore(LedgerStore):
    """Ledger store backed by a relational database.

    Args:
        bind: An :class:`~sqlalchemy.engine.Engine` or a database URL.
        supported_levels: Override the levels :meth:`begin` accepts
            (default depends on the dialect).
        **engine_kwargs: Passed to :func:`~sqlalchemy.create_engine` when
            *bind* is a URL.
    """

    def __init__(
        self,
        bind: Engine | str,
        supported_levels: Iterable[IsolationLevel | str] | None = None,
        **engine_kwargs: Any,
    ) -> None:
        self._engine = create_engine(bind, **engine_kwargs) if isinstance(bind, str) else bind
        if supported_levels is None:
            self._supported = _DIALECT_LEVELS.get(self._engine.dialect.name, ALL_ISOLATION_LEVELS)
        else:
            self._supported = frozenset(IsolationLevel.parse(level) for level in supported_levels)
        self._session_factories: dict[IsolationLevel, sessionmaker[Session]] = {}

    @classmethod
    def from_settings(cls, settings: HarnessSettings, **engine_kwargs: Any) -> "SqlAlchemyLedgerStore":
        """Connect to ``settings.database_url`` (``ISOLAB_DATABASE_URL``)."""
        if not settings.database_url:
            raise MissingRequiredSettingError(settings.env_key("database_url"))
        return cls(settings.database_url, **engine_kwargs)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def supported_isolation_levels(self) -> frozenset[IsolationLevel]:
        return self._supported

    def create_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    def drop_schema(self) -> None:
        Base.metadata.drop_all(self._engine)

    def delete_all_accounts(self) -> None:
        with Session(self._engine) as session, session.begin():
            session.execute(delete(AccountRecord))

    def dispose(self) -> None:
        self._engine.dispose()

    def _begin(self, isolation_level: IsolationLevel) -> SqlAlchemyScope:
        factory = self._session_factories.get(isolation_level)
        if factory is None:
            factory = sessionmaker(
                bind=self._engine.execution_options(isolation_level=isolation_level.sql_name),
                expire_on_commit=False,
            )
            self._session_factories[isolation_level] = factory
        _log.debug("store.begin", isolation=isolation_level.value, dialect=self._engine.dialect.name)
        return SqlAlchemyScope(factory(), isolation_level)

    def create_account(self, name: str, balance: int = 0) -> None:
        try:
            with Session(self._engine) as session, session.begin():
                session.add(AccountRecord(name=name, balance=balance))
        except IntegrityError as exc:
            raise DuplicateAccount(name, cause=exc) from exc

    def balance_of(self, name: str) -> int:
        with Session(self._engine) as session:
            balance = session.scalar(select(AccountRecord.balance).where(AccountRecord.name == name))
        if balance is None:
            raise AccountNotFound(name)
        return balance


__all__ = ["SqlAlchemyLedgerStore", "SqlAlchemyScope", "translate_error"]
