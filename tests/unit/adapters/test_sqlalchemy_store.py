"""Unit tests for the SQLAlchemy ledger store against a SQLite file."""

from __future__ import annotations

import pathlib

import pytest
from sqlalchemy.exc import OperationalError

from isolab.adapters.sqlalchemy import SqlAlchemyLedgerStore, SqlAlchemyScope, translate_error
from isolab.config import HarnessSettings, MissingRequiredSettingError
from isolab.kernel.errors import (
    AccountNotFound,
    CommitConflict,
    DuplicateAccount,
    LockWaitTimeout,
    StoreError,
    UnsupportedIsolationLevel,
)
from isolab.kernel.ledger import IsolationLevel, ScopeStatus, balance_gt


@pytest.fixture
def store(tmp_path: pathlib.Path):  # type: ignore[no-untyped-def]
    s = SqlAlchemyLedgerStore(f"sqlite:///{tmp_path / 'ledger.db'}")
    s.create_schema()
    s.create_account("acc", 0)
    yield s
    s.drop_schema()
    s.dispose()


class _DriverError(Exception):
    def __init__(self, *args: object, sqlstate: str | None = None) -> None:
        super().__init__(*args)
        self.sqlstate = sqlstate


def _wrap(orig: Exception) -> OperationalError:
    return OperationalError("UPDATE accounts ...", {}, orig)


# ---------------------------------------------------------------------------
# Driver error translation
# ---------------------------------------------------------------------------


class TestTranslateError:
    def test_mysql_deadlock(self) -> None:
        err = translate_error(_wrap(_DriverError(1213, "Deadlock found")), "commit")
        assert isinstance(err, CommitConflict)
        assert err.cause is not None

    def test_serialization_sqlstate(self) -> None:
        assert isinstance(translate_error(_wrap(_DriverError("x", sqlstate="40001")), "read"), CommitConflict)
        assert isinstance(translate_error(_wrap(_DriverError("x", sqlstate="40P01")), "read"), CommitConflict)

    def test_mysql_lock_wait_timeout(self) -> None:
        err = translate_error(_wrap(_DriverError(1205, "Lock wait timeout exceeded")), "adjust_balance")
        assert isinstance(err, LockWaitTimeout)

    def test_anything_else_is_store_error(self) -> None:
        err = translate_error(_wrap(_DriverError(1146, "no such table")), "read")
        assert type(err) is StoreError
        assert "read failed" in err.message


# ---------------------------------------------------------------------------
# Store behaviour on SQLite
# ---------------------------------------------------------------------------


class TestSqlAlchemyLedgerStore:
    def test_sqlite_supported_levels(self, store: SqlAlchemyLedgerStore) -> None:
        assert store.supported_isolation_levels == frozenset(
            {IsolationLevel.READ_UNCOMMITTED, IsolationLevel.SERIALIZABLE}
        )
        with pytest.raises(UnsupportedIsolationLevel):
            store.begin("read-committed")

    def test_override_supported_levels(self, tmp_path: pathlib.Path) -> None:
        s = SqlAlchemyLedgerStore(f"sqlite:///{tmp_path / 'x.db'}", supported_levels=["serializable"])
        assert s.supported_isolation_levels == frozenset({IsolationLevel.SERIALIZABLE})
        s.dispose()

    def test_duplicate_account(self, store: SqlAlchemyLedgerStore) -> None:
        with pytest.raises(DuplicateAccount):
            store.create_account("acc")

    def test_missing_account(self, store: SqlAlchemyLedgerStore) -> None:
        with pytest.raises(AccountNotFound):
            store.balance_of("nobody")
        scope = store.begin("serializable")
        with pytest.raises(AccountNotFound):
            scope.read_balance("nobody")
        with pytest.raises(AccountNotFound):
            scope.adjust_balance("nobody", 1)
        scope.abort()

    def test_commit(self, store: SqlAlchemyLedgerStore) -> None:
        scope = store.begin("serializable")
        assert isinstance(scope, SqlAlchemyScope)
        scope.adjust_balance("acc", 40)
        assert scope.count_where(balance_gt(0)) == 1
        scope.commit()
        assert scope.status is ScopeStatus.COMMITTED
        assert store.balance_of("acc") == 40

    def test_abort(self, store: SqlAlchemyLedgerStore) -> None:
        scope = store.begin("serializable")
        scope.adjust_balance("acc", 40)
        scope.abort("undo")
        assert store.balance_of("acc") == 0

    def test_session_identity_map_is_the_local_view(self, store: SqlAlchemyLedgerStore) -> None:
        reader = store.begin("serializable")
        assert reader.read_balance("acc") == 0
        writer = store.begin("serializable")
        writer.adjust_balance("acc", 100)
        writer.commit()
        assert reader.read_balance("acc") == 0
        reader.invalidate_local_view()
        assert reader.read_balance("acc") == 100
        reader.commit()

    def test_session_identity_map_mixes_stale_and_fresh_rows(self, store: SqlAlchemyLedgerStore) -> None:
        store.create_account("other", 0)
        reader = store.begin("serializable")
        assert reader.read_balance("acc") == 0
        writer = store.begin("serializable")
        writer.adjust_balance("acc", 100)
        writer.adjust_balance("other", 100)
        writer.commit()
        assert reader.read_balance("acc") == 0
        assert reader.read_balance("other") == 100
        reader.commit()

    def test_delete_all_accounts(self, store: SqlAlchemyLedgerStore) -> None:
        store.delete_all_accounts()
        with pytest.raises(AccountNotFound):
            store.balance_of("acc")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestFromSettings:
    def test_connects_to_database_url(self, tmp_path: pathlib.Path) -> None:
        settings = HarnessSettings(database_url=f"sqlite:///{tmp_path / 'configured.db'}")
        s = SqlAlchemyLedgerStore.from_settings(settings)
        try:
            s.create_schema()
            s.create_account("acc", 5)
            assert s.balance_of("acc") == 5
            assert s.engine.dialect.name == "sqlite"
        finally:
            s.dispose()

    def test_missing_database_url(self) -> None:
        with pytest.raises(MissingRequiredSettingError) as exc_info:
            SqlAlchemyLedgerStore.from_settings(HarnessSettings())
        assert exc_info.value.setting_name == "ISOLAB_DATABASE_URL"
