"""Receivable and payable aging command."""

import click

from muavin.cli.date_filters import resolve_single_date
from muavin.cli.repository import get_repository
from muavin.domain.aging import DEFAULT_AGING_LEDGERS, AgingCalculator, bucket_totals
from muavin.domain.entities import aging_bucket_labels
from muavin.domain.post_processors import compute_running_balance_per_account


@click.command("aging")
@click.option("--company", required=True, help="Company code")
@click.option("--year", type=int, required=True, help="Fiscal year")
@click.option("--date", "aging_date", required=True, help="Aging date (e.g. 31.12.2024 or YYYY-MM-DD)")
@click.option(
    "--ledger",
    "ledgers",
    multiple=True,
    help="Ledger code to age (repeatable, defaults to receivable and payable ledgers)",
)
@click.pass_context
def aging(ctx, company: str, year: int, aging_date: str, ledgers: tuple[str, ...]):
    """Show the aging of account balances at a date."""
    cutoff = resolve_single_date(ctx, aging_date, "aging date")
    rows = get_repository(ctx).fetch_rows(company, year)
    # stored balances only cover the batch they were imported with
    compute_running_balance_per_account(rows)
    report = AgingCalculator().calculate(rows, cutoff, ledger_codes=list(ledgers) or list(DEFAULT_AGING_LEDGERS))

    if not report:
        click.echo("No open balances found.")
        return

    labels = aging_bucket_labels()
    header = f"{'Account':<16} {'Name':<30} {'Net':>14} {'Opening':>12}" + "".join(
        f" {label:>12}" for label in labels
    )
    click.echo(f"\nAging {company} at {cutoff}")
    click.echo("-" * len(header))
    click.echo(header)
    click.echo("-" * len(header))
    for row in report:
        amounts = list(row.buckets) + [row.overflow]
        click.echo(
            f"{row.account_code[:16]:<16} {row.account_name[:30]:<30} {row.net_balance:>14,.2f} "
            f"{row.opening:>12,.2f}" + "".join(f" {amount:>12,.2f}" for amount in amounts)
        )

    opening, buckets, overflow = bucket_totals(report)
    click.echo("-" * len(header))
    click.echo(
        f"{'TOTAL':<47} {'':>14} {opening:>12,.2f}"
        + "".join(f" {amount:>12,.2f}" for amount in buckets + [overflow])
    )


def register_commands(cli):
    """Register aging command with main CLI."""
    cli.add_command(aging)
