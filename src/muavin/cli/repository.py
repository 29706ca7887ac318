"""Lazy repository access for CLI commands."""

import click

from muavin.database.base import LedgerRepository
from muavin.database.factories import create_sqlite_repository


def get_repository(ctx: click.Context) -> LedgerRepository:
    """Open the repository on first use and close it with the context."""
    root = ctx.find_root()
    root.ensure_object(dict)
    repo = root.obj.get("db")
    if repo is None:
        repo = create_sqlite_repository(database_path=root.obj.get("db_path"))
        repo.connect()
        repo.initialize_schema()
        root.obj["db"] = repo
        root.call_on_close(repo.disconnect)
    return repo
