"""Main CLI entry point."""

import click

from muavin.logging_config import LOG_LEVEL_ENV_VAR, configure_logging

# Import and register all commands at module level
from muavin.cli.commands import (
    aging,
    convert,
    import_cmd,
    mizan,
    paths,
    vouchers,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides MUAVIN_DB_PATH environment variable)",
    envvar="MUAVIN_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
    envvar=LOG_LEVEL_ENV_VAR,
    help="Level of records written to log files",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Muavin - subsidiary ledger tool for Turkish e-Defter exports.

    Converts e-Defter XML and muavin text exports into one table, stores
    them per company and period, and reports trial balances, voucher
    imbalances and receivable aging.
    """
    ctx.ensure_object(dict)
    # The database is opened lazily by the commands that need it
    ctx.obj["db_path"] = db_path
    ctx.obj["log_level"] = log_level.upper()
    configure_logging(level=ctx.obj["log_level"])


# Register all commands
convert.register_commands(cli)
import_cmd.register_commands(cli)
mizan.register_commands(cli)
aging.register_commands(cli)
vouchers.register_commands(cli)
paths.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
