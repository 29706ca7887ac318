"""Voucher balance command."""

import click

from muavin.cli.repository import get_repository
from muavin.domain.post_processors import total_imbalance, voucher_balances


@click.command("vouchers")
@click.option("--company", required=True, help="Company code")
@click.option("--year", type=int, required=True, help="Fiscal year")
@click.option("--month", type=int, help="Month of the period (1-12)")
@click.option("--unbalanced-only", is_flag=True, help="Only list vouchers whose debit and credit differ")
@click.pass_context
def vouchers(ctx, company: str, year: int, month: int | None, unbalanced_only: bool):
    """Show debit and credit totals per voucher."""
    rows = get_repository(ctx).fetch_rows(company, year, month)
    balances = voucher_balances(rows)
    if unbalanced_only:
        balances = [balance for balance in balances if not balance.is_balanced]

    if not balances:
        click.echo("No vouchers found.")
        return

    click.echo(f"\nFound {len(balances)} voucher(s):")
    click.echo("-" * 100)
    click.echo(f"{'Voucher':<44} {'Lines':>6} {'Debit':>15} {'Credit':>15} {'Difference':>15}")
    click.echo("-" * 100)
    for balance in balances:
        click.echo(
            f"{str(balance.group_key)[:44]:<44} {balance.line_count:>6} {balance.total_debit:>15,.2f} "
            f"{balance.total_credit:>15,.2f} {balance.imbalance:>15,.2f}"
        )
    click.echo("-" * 100)
    click.echo(f"Total difference: {total_imbalance(rows):,.2f}")


def register_commands(cli):
    """Register vouchers command with main CLI."""
    cli.add_command(vouchers)
