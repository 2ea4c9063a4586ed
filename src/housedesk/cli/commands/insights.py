"""Account analytics command."""

import click

from housedesk.cli.date_filters import resolve_cli_date_range
from housedesk.cli.error_handling import HANDLED_ERRORS, handle_domain_error
from housedesk.cli.session import require_user
from housedesk.domain.constants import ACCOUNT_STATUS_LABELS
from housedesk.domain.entities import AccountStatus
from housedesk.domain.insights import DATE_FIELDS, InsightsService


@click.command("insights")
@click.option("--house", help="Only accounts of this house")
@click.option(
    "--date-field",
    type=click.Choice(DATE_FIELDS),
    default="createdAt",
    show_default=True,
    help="Which date the range applies to",
)
@click.option("--start-date", help="Start date (YYYY-MM-DD, DD/MM/YYYY or relative like 'this month')")
@click.option("--end-date", help="End date (inclusive)")
@click.option("--this-month", is_flag=True, help="Current month")
@click.option("--last-month", is_flag=True, help="Previous month")
@click.option("--this-year", is_flag=True, help="Current year")
@click.option("--last-30-days", is_flag=True, help="Last 30 days")
@click.pass_context
def insights(
    ctx,
    house: str | None,
    date_field: str,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    last_month: bool,
    this_year: bool,
    last_30_days: bool,
) -> None:
    """Show account cost and lifetime analytics (admins only).

    Examples:
        housedesk insights --this-month
        housedesk insights --house Betano --date-field limitedAt --start-date 2024-01-01
    """
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={
            "this-month": this_month,
            "last-month": last_month,
            "this-year": this_year,
            "last-30-days": last_30_days,
        },
    )
    service = InsightsService(ctx.obj["snapshot"], require_user(ctx))
    try:
        report = service.report(house=house, date_field=date_field, start=start, end=end)
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)

    click.echo(f"Accounts:   {report.account_count}")
    click.echo(f"Total cost: R$ {report.total_cost:.2f}")
    if report.status_counts:
        click.echo("\nBy status:")
        for status, count in sorted(report.status_counts.items()):
            click.echo(f"  {ACCOUNT_STATUS_LABELS[AccountStatus(status)]:10s} {count:5d}")
    if report.lifetimes:
        click.echo("\nAverage days until limited:")
        for lifetime in report.lifetimes:
            click.echo(f"  {lifetime.house:15s} {lifetime.average_days:5d} days ({lifetime.count} accounts)")


def register_commands(cli):
    """Register insights command with main CLI."""
    cli.add_command(insights)
