"""Audit history command."""

import click

from housedesk.cli.error_handling import HANDLED_ERRORS, handle_domain_error
from housedesk.cli.session import require_user
from housedesk.domain.activity_log import ActivityLog


@click.command("history")
@click.option("--task", "task_id", help="Only entries about this task, account or pack ID")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum entries shown")
@click.pass_context
def history(ctx, task_id: str | None, limit: int) -> None:
    """Show the audit log, newest first."""
    log = ActivityLog(ctx.obj["db"], require_user(ctx))
    try:
        entries = log.history(task_id)
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)

    if not entries:
        click.echo("No history found.")
        return
    for entry in entries[:limit]:
        when = f"{entry.timestamp:%Y-%m-%d %H:%M}" if entry.timestamp else ""
        click.echo(f"{when} | {entry.user:15s} | {entry.task_description}: {entry.action}")


def register_commands(cli):
    """Register history command with main CLI."""
    cli.add_command(history)
