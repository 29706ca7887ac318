"""CLI helpers for period and date window resolution."""

from datetime import date

import click

from muavin.utils.date_parser import parse_date, year_range


def resolve_period_window(
    ctx,
    *,
    year: int,
    month: int | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> tuple[date, date]:
    """Resolve the reporting window from a year/month and optional explicit dates.

    Explicit dates override the matching end of the period.
    """
    if month is not None and not 1 <= month <= 12:
        click.echo(f"Error: Invalid month: {month}", err=True)
        ctx.exit(1)

    start, end = year_range(year, month)

    if start_date:
        try:
            start = parse_date(start_date)
        except ValueError as e:
            click.echo(f"Error: Invalid start date: {e}", err=True)
            ctx.exit(1)

    if end_date:
        try:
            end = parse_date(end_date)
        except ValueError as e:
            click.echo(f"Error: Invalid end date: {e}", err=True)
            ctx.exit(1)

    if start > end:
        click.echo(f"Error: Start date {start} is after end date {end}", err=True)
        ctx.exit(1)

    return start, end


def resolve_single_date(ctx, value: str, label: str = "date") -> date:
    """Parse one CLI date or exit with an error."""
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)
