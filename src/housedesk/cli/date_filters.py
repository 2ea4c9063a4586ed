"""CLI helpers for date range resolution."""

from datetime import date

import click

from housedesk.cli.error_handling import fail
from housedesk.utils.date_parser import get_date_range, parse_date


def resolve_cli_date_range(
    ctx: click.Context,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    period_count = sum(1 for is_set in period_flags.values() if is_set)

    if period_count > 1:
        fail(ctx, "Only one period option (--this-month, --last-month, --this-year, --last-30-days) can be specified at a time.")

    if period_count > 0 and (start_date or end_date):
        fail(ctx, "Period options cannot be combined with --start-date or --end-date.")

    if period_count == 1:
        period = next(name for name, is_set in period_flags.items() if is_set)
        return get_date_range(period)

    start = None
    end = None
    if start_date:
        try:
            start = parse_date(start_date)
        except ValueError as e:
            fail(ctx, f"Invalid start date: {e}")
    if end_date:
        try:
            end = parse_date(end_date)
        except ValueError as e:
            fail(ctx, f"Invalid end date: {e}")
    return start, end
