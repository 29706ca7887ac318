"""Ledger conversion command."""

from pathlib import Path

import click

from muavin.cli.error_handling import handle_domain_error
from muavin.domain.batch import LedgerBatch
from muavin.domain.errors import DomainError, NotFoundError
from muavin.domain.export import export_rows_csv
from muavin.domain.field_map import FieldMap
from muavin.logging_config import DEBUG_LOG_NAME, configure_logging, shutdown_file_logging

EXIT_NO_INPUT = 2


@click.command("convert")
@click.argument("input_path", type=click.Path())
@click.argument("output", type=click.Path(dir_okay=False))
@click.option("--fieldmap", type=click.Path(), help="Field map JSON (overrides MUAVIN_FIELDMAP_PATH)")
@click.option("--global-balance", is_flag=True, help="One running balance across all accounts")
@click.option("--account-codes", is_flag=True, help="Also fill account-level counter codes")
@click.pass_context
def convert(ctx, input_path: str, output: str, fieldmap: str | None, global_balance: bool, account_codes: bool):
    """Convert e-Defter XML or muavin TXT/CSV files into one CSV table.

    INPUT_PATH may be a single file, a directory or a zip archive. A
    diagnostic log is written next to OUTPUT.
    """
    log_file = Path(output).resolve().parent / DEBUG_LOG_NAME
    configure_logging(log_file=log_file, level=ctx.obj["log_level"])

    try:
        field_map = FieldMap.load(fieldmap)
        result = LedgerBatch(field_map).run(
            input_path,
            per_account=not global_balance,
            include_account_codes=account_codes,
        )
    except NotFoundError as e:
        click.echo(f"Warning: {e}", err=True)
        ctx.exit(EXIT_NO_INPUT)
    except DomainError as e:
        handle_domain_error(ctx, e)
    finally:
        shutdown_file_logging()

    if not result.files:
        click.echo("Warning: No ledger files found.", err=True)
        ctx.exit(EXIT_NO_INPUT)

    for name, message in result.errors.items():
        click.echo(f"  Failed: {name}: {message}", err=True)
    if result.all_failed:
        click.echo("Error: No file could be parsed.", err=True)
        ctx.exit(1)

    count = export_rows_csv(result.rows, output)
    click.echo("\nConversion complete:")
    click.echo(f"  Files: {len(result.files)} ({len(result.errors)} failed)")
    click.echo(f"  Rows: {count}")
    click.echo(f"  Output: {output}")


def register_commands(cli):
    """Register convert command with main CLI."""
    cli.add_command(convert)
