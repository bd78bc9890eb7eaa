"""CLI helpers for date range resolution."""

from datetime import date

import click

from shopledger.utils.date_parser import get_date_range, parse_date

PERIODS = ("this-month", "last-month", "this-year", "last-year")


def period_options(func):
    """Add --start-date, --end-date and --period to a command."""
    func = click.option(
        "--period",
        type=click.Choice(PERIODS),
        help="Show a predefined period instead of explicit dates",
    )(func)
    func = click.option("--end-date", help="End date (inclusive)")(func)
    func = click.option("--start-date", help="Start date (inclusive)")(func)
    return func


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from a period name or explicit dates."""
    if period is not None and (start_date or end_date):
        click.echo(
            "Error: --period cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if period is not None:
        return get_date_range(period)

    start = None
    end = None
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
    return start, end
