"""Ledger import command."""

import click

from muavin.cli.error_handling import handle_domain_error
from muavin.cli.repository import get_repository
from muavin.domain.batch import LedgerBatch
from muavin.domain.errors import DomainError
from muavin.domain.field_map import FieldMap


@click.command("import")
@click.argument("input_path", type=click.Path(exists=True))
@click.option("--company", required=True, help="Company code")
@click.option("--no-replace", is_flag=True, help="Keep rows stored earlier from the same source file")
@click.option("--fieldmap", type=click.Path(), help="Field map JSON (overrides MUAVIN_FIELDMAP_PATH)")
@click.pass_context
def import_ledgers(ctx, input_path: str, company: str, no_replace: bool, fieldmap: str | None):
    """Import ledger files into the database for a company."""
    try:
        field_map = FieldMap.load(fieldmap)
        result = LedgerBatch(field_map).run(input_path, company_code=company)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not result.files:
        click.echo("No ledger files found.")
        return

    repo = get_repository(ctx)
    imported = 0
    try:
        for source_file, rows in result.rows_by_source().items():
            imported += repo.bulk_insert(
                company, rows, source_file, replace_existing_for_same_source=not no_replace
            )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {imported} rows from {len(result.files) - len(result.errors)} file(s)")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for name, message in result.errors.items():
            click.echo(f"    {name}: {message}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_ledgers)
