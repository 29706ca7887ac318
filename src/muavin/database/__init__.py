"""Database layer for muavin application."""

from muavin.database.base import LedgerRepository
from muavin.database.factories import create_sqlite_repository

__all__ = ["LedgerRepository", "create_sqlite_repository"]
