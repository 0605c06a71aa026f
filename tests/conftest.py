"""Shared pytest configuration."""
pytest_plugins = ["isolab.testing.fixtures"]
