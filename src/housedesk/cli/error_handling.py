"""CLI error handling helpers."""

import click

from housedesk.auth.base import AuthError
from housedesk.database.base import StorageError
from housedesk.domain.errors import DomainError

# Errors a command reports to the user instead of crashing
HANDLED_ERRORS = (DomainError, StorageError, AuthError)


def handle_domain_error(ctx: click.Context, error: Exception) -> None:
    """Render a domain, storage or auth error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def fail(ctx: click.Context, message: str) -> None:
    """Print an error message and exit with failure."""
    click.echo(f"Error: {message}", err=True)
    ctx.exit(1)
