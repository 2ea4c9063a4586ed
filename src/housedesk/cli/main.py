"""Main CLI entry point."""

import click

from housedesk.database.factories import create_sqlite_store
from housedesk.domain.snapshot import Snapshot
from housedesk.logging_config import setup_logging

# Import and register all commands at module level
from housedesk.cli.commands import (
    account,
    admin,
    config,
    history,
    insights,
    pack,
    pix,
    task,
    user,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides HOUSEDESK_DB_PATH environment variable)",
    envvar="HOUSEDESK_DB_PATH",
)
@click.option("--user", "identifier", envvar="HOUSEDESK_USER", help="Email or username to act as")
@click.option("--password", envvar="HOUSEDESK_PASSWORD", help="Password of the acting user")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="HOUSEDESK_LOG_LEVEL",
    help="Developer log verbosity",
)
@click.pass_context
def cli(ctx, db_path: str | None, identifier: str | None, password: str | None, log_level: str):
    """Housedesk - operations desk for betting-house accounts.

    Track work requests, the accounts they concern, the packs those accounts
    are drawn from, and an audit log of every change.
    """
    setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["credentials"] = (identifier, password)

    # Open the store only when actually running a command (not for --help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_store(database_path=db_path)
        db.connect()
        db.initialize_schema()
        snapshot = Snapshot(db).start()
        ctx.obj["db"] = db
        ctx.obj["snapshot"] = snapshot

        def close() -> None:
            snapshot.stop()
            db.disconnect()

        ctx.call_on_close(close)


# Register all commands
task.register_commands(cli)
account.register_commands(cli)
pack.register_commands(cli)
pix.register_commands(cli)
config.register_commands(cli)
user.register_commands(cli)
admin.register_commands(cli)
history.register_commands(cli)
insights.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
