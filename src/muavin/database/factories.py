"""Repository factory functions."""

import os
from pathlib import Path
from typing import Optional

from muavin.database.sqlalchemy_db import SQLAlchemyLedgerRepository

DB_ENV_VAR = "MUAVIN_DB_PATH"


def create_sqlite_repository(database_path: Optional[str] = None) -> SQLAlchemyLedgerRepository:
    """Create a SQLite ledger repository.

    Args:
        database_path: Path to SQLite database file. If None, checks MUAVIN_DB_PATH
            environment variable, then defaults to ~/.muavin/muavin.db

    Returns:
        SQLAlchemyLedgerRepository instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_ENV_VAR)

    if database_path is None:
        db_dir = Path.home() / ".muavin"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "muavin.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyLedgerRepository(database_url)
