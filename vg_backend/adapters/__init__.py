"""Adapters for external systems (database, filesystem, command-line tools)."""
