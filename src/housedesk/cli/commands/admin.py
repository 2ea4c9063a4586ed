"""Bulk data administration commands."""

import click

from housedesk.cli.error_handling import HANDLED_ERRORS, handle_domain_error
from housedesk.cli.session import require_user
from housedesk.domain.admin import AdminService


@click.group()
def admin_group():
    """Administrative operations."""
    pass


@admin_group.command("clear-data")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def clear_data(ctx, yes: bool) -> None:
    """Delete every task, account, pack, log entry and Pix key.

    Users and the house/type lists are kept. This cannot be undone.
    """
    service = AdminService(ctx.obj["db"], ctx.obj["snapshot"], require_user(ctx))
    if not yes and not click.confirm("Delete ALL operational data? This cannot be undone"):
        click.echo("Clear cancelled.")
        return

    try:
        total = service.clear_operational_data()
        click.echo(f"Deleted {total} documents")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register admin commands with main CLI."""
    cli.add_command(admin_group, name="admin")
