"""Acting-user resolution for commands."""

import click

from housedesk.auth import AuthService, LocalAuthProvider
from housedesk.cli.error_handling import HANDLED_ERRORS, fail, handle_domain_error
from housedesk.domain.entities import User


def get_auth_service(ctx: click.Context) -> AuthService:
    """Build an AuthService over the store of the current invocation."""
    db = ctx.obj["db"]
    return AuthService(db, LocalAuthProvider(db.session_factory))


def require_user(ctx: click.Context) -> User:
    """Sign in with the --user/--password credentials, or exit.

    The profile is cached for the rest of the invocation.
    """
    if ctx.obj.get("actor") is not None:
        return ctx.obj["actor"]

    identifier, secret = ctx.obj.get("credentials", (None, None))
    if not identifier or not secret:
        fail(ctx, "Sign in first: pass --user and --password (or set HOUSEDESK_USER and HOUSEDESK_PASSWORD)")

    try:
        actor = get_auth_service(ctx).login(identifier, secret)
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)
    ctx.obj["actor"] = actor
    return actor
