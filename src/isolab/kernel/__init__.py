"""Kernel – error hierarchy and the ledger store contract."""
