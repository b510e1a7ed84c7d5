"""Bookkeeping backend package providing a REST API for incomes, expenses and receipts."""

__all__ = [
    "cli",
    "config",
    "crud",
    "database",
    "ingest",
    "logging",
    "models",
    "receipts",
    "reports",
    "schemas",
    "server",
]

__version__ = "1.0.0"
