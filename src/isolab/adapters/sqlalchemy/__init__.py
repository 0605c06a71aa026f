"""SQLAlchemy adapter – relational ledger store and its ORM model."""
from isolab.adapters.sqlalchemy.models import AccountRecord, Base
from isolab.adapters.sqlalchemy.store import SqlAlchemyLedgerStore, SqlAlchemyScope, translate_error

__all__ = ["AccountRecord", "Base", "SqlAlchemyLedgerStore", "SqlAlchemyScope", "translate_error"]
