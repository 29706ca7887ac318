"""XML path explorer command."""

import click

from muavin.cli.error_handling import handle_domain_error
from muavin.domain.errors import DomainError
from muavin.domain.path_explorer import PathLister


@click.command("paths")
@click.argument("input_path", type=click.Path(exists=True))
@click.argument("output_dir", type=click.Path(file_okay=False))
@click.pass_context
def paths(ctx, input_path: str, output_dir: str):
    """List element, attribute and text paths of e-Defter XML files.

    Writes paths_all.txt, one list per kind and paths_detailed.csv into
    OUTPUT_DIR.
    """
    lister = PathLister()
    try:
        result = lister.list_paths(input_path)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if result.total_paths == 0:
        click.echo("No XML paths found.")
        return

    written = lister.write_to_files(result, output_dir)
    click.echo(f"Found {result.total_paths} paths:")
    click.echo(f"  Elements: {len(result.elements)}")
    click.echo(f"  Attributes: {len(result.attributes)}")
    click.echo(f"  Texts: {len(result.texts)}")
    for path in written:
        click.echo(f"  Wrote {path}")


def register_commands(cli):
    """Register paths command with main CLI."""
    cli.add_command(paths)
