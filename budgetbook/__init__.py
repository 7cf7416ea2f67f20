"""Budgeting backend exposing a REST API over users, overviews, logbooks, entries and purchases."""

__all__ = [
    "config",
    "database",
    "models",
    "schemas",
    "crud",
    "envelope",
    "validation",
    "server",
]
