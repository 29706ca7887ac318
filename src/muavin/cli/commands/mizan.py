"""Trial balance (mizan) command."""

import click

from muavin.cli.date_filters import resolve_period_window
from muavin.cli.error_handling import handle_domain_error
from muavin.cli.repository import get_repository
from muavin.domain.account_plan import AccountPlan
from muavin.domain.entities import ActivityFilter, ViewMode, ZERO
from muavin.domain.errors import DomainError
from muavin.domain.mizan import MizanCalculator, ledger_balance_totals


def _amount(value) -> str:
    return f"{value:,.2f}" if value else ""


@click.command("mizan")
@click.option("--company", required=True, help="Company code")
@click.option("--year", type=int, required=True, help="Fiscal year")
@click.option("--month", type=int, help="Month of the period (1-12)")
@click.option("--start-date", help="Start date (overrides the period start)")
@click.option("--end-date", help="End date (overrides the period end)")
@click.option("--only-active", is_flag=True, help="Only accounts with movements in the period")
@click.option("--only-inactive", is_flag=True, help="Only accounts without movements in the period")
@click.option("--ledgers-only", is_flag=True, help="Show ledger (kebir) rows only")
@click.option("--exclude-closing", is_flag=True, help="Leave closing (Kapanış) vouchers out")
@click.option("--chart", type=click.Path(), envvar="MUAVIN_CHART_PATH", help="Chart of accounts file")
@click.pass_context
def mizan(
    ctx,
    company: str,
    year: int,
    month: int | None,
    start_date: str | None,
    end_date: str | None,
    only_active: bool,
    only_inactive: bool,
    ledgers_only: bool,
    exclude_closing: bool,
    chart: str | None,
):
    """Show the trial balance of a company period."""
    if only_active and only_inactive:
        click.echo("Error: --only-active and --only-inactive cannot be combined.", err=True)
        ctx.exit(1)

    start, end = resolve_period_window(ctx, year=year, month=month, start_date=start_date, end_date=end_date)

    activity_filter = ActivityFilter.ALL
    if only_active:
        activity_filter = ActivityFilter.ACTIVE_ONLY
    elif only_inactive:
        activity_filter = ActivityFilter.INACTIVE_ONLY
    view_mode = ViewMode.LEDGERS_ONLY if ledgers_only else ViewMode.DETAILED

    # Balances need every row before the window, so read the whole year
    rows = get_repository(ctx).fetch_rows(company, year)
    try:
        report = MizanCalculator(AccountPlan.load(chart)).calculate(
            rows,
            start,
            end,
            activity_filter=activity_filter,
            view_mode=view_mode,
            exclude_closing_entries=exclude_closing,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not report:
        click.echo("No ledger rows found.")
        return

    click.echo(f"\nMizan {company} {start} - {end}")
    click.echo("-" * 124)
    click.echo(
        f"{'Code':<20} {'Name':<40} {'Debit':>15} {'Credit':>15} {'Debit Bal.':>15} {'Credit Bal.':>15}"
    )
    click.echo("-" * 124)
    for row in report:
        code = ("  " * row.level + row.account_code)[:20]
        name = row.account_name[:40]
        click.echo(
            f"{code:<20} {name:<40} {_amount(row.debit):>15} {_amount(row.credit):>15} "
            f"{_amount(row.debit_balance):>15} {_amount(row.credit_balance):>15}"
        )

    ledger_rows = [row for row in report if row.is_ledger_row]
    total_debit = sum((row.debit for row in ledger_rows), ZERO)
    total_credit = sum((row.credit for row in ledger_rows), ZERO)
    balance_debit, balance_credit = ledger_balance_totals(report)
    click.echo("-" * 124)
    click.echo(
        f"{'TOTAL':<61} {total_debit:>15,.2f} {total_credit:>15,.2f} "
        f"{balance_debit:>15,.2f} {balance_credit:>15,.2f}"
    )


def register_commands(cli):
    """Register mizan command with main CLI."""
    cli.add_command(mizan)
