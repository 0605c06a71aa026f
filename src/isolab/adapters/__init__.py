"""Adapters – ledger store implementations (in-memory, identity map, SQLAlchemy)."""
