"""User and sign-in commands."""

import click

from housedesk.cli.error_handling import HANDLED_ERRORS, handle_domain_error
from housedesk.cli.resolution import resolve_id, short_id
from housedesk.cli.session import get_auth_service, require_user
from housedesk.domain.admin import AdminService
from housedesk.domain.entities import Role


def _admin_service(ctx) -> AdminService:
    return AdminService(ctx.obj["db"], ctx.obj["snapshot"], require_user(ctx))


@click.group()
def user_group():
    """Manage users and roles."""
    pass


@user_group.command("register")
@click.argument("name")
@click.argument("username")
@click.argument("email")
@click.password_option("--new-password", help="Password for the new user")
@click.pass_context
def register_user(ctx, name: str, username: str, email: str, new_password: str) -> None:
    """Create a user. New users start with the USER role.

    Examples:
        housedesk user register "Maria Souza" maria maria@mail.com
    """
    try:
        user = get_auth_service(ctx).register(name, username, email, new_password)
        click.echo(f"Registered '{user.username}' (ID: {user.id})")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@user_group.command("whoami")
@click.pass_context
def whoami(ctx) -> None:
    """Show the signed-in profile."""
    user = require_user(ctx)
    click.echo(f"{user.name} ({user.username}) <{user.email}> - {user.role.value}")


@user_group.command("list")
@click.option("--agents", "agents_only", is_flag=True, help="Only agency users")
@click.pass_context
def list_users(ctx, agents_only: bool) -> None:
    """List users."""
    service = _admin_service(ctx)
    users = service.list_agents() if agents_only else service.list_users()
    if not users:
        click.echo("No users found.")
        return
    for u in users:
        click.echo(f"{short_id(u.id)} | {u.name:20s} | {u.username:15s} | {u.role.value}")


@user_group.command("role")
@click.argument("user_id", metavar="USER")
@click.argument("role", type=click.Choice([r.value for r in Role], case_sensitive=False))
@click.pass_context
def change_role(ctx, user_id: str, role: str) -> None:
    """Change a user's role (admins only)."""
    service = _admin_service(ctx)
    user_id = resolve_id(ctx, "User", (u.id for u in ctx.obj["snapshot"].users), user_id)
    try:
        user = service.change_role(user_id, role.upper())
        click.echo(f"{user.name} is now {user.role.value}")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register user commands with main CLI."""
    cli.add_command(user_group, name="user")
