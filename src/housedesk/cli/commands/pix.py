"""Pix key commands."""

import click

from housedesk.cli.error_handling import HANDLED_ERRORS, handle_domain_error
from housedesk.cli.resolution import resolve_id, short_id
from housedesk.cli.session import require_user
from housedesk.domain.entities import PixKeyType
from housedesk.domain.pix import PixKeyService


def _service(ctx) -> PixKeyService:
    return PixKeyService(ctx.obj["db"], ctx.obj["snapshot"], require_user(ctx))


def _resolve_key(ctx, value: str) -> str:
    return resolve_id(ctx, "Pix key", (k.id for k in ctx.obj["snapshot"].pix_keys), value)


@click.group()
def pix_group():
    """Manage saved Pix keys."""
    pass


@pix_group.command("add")
@click.argument("name")
@click.argument("bank")
@click.argument("key_type", type=click.Choice([t.value for t in PixKeyType], case_sensitive=False))
@click.argument("key")
@click.pass_context
def add_key(ctx, name: str, bank: str, key_type: str, key: str) -> None:
    """Save a Pix key.

    Examples:
        housedesk pix add "Conta Principal" Nubank EMAIL financeiro@mail.com
    """
    service = _service(ctx)
    try:
        pix_id = service.add_key(name, bank, key_type.upper(), key)
        click.echo(f"Saved Pix key '{name}' (ID: {pix_id})")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@pix_group.command("list")
@click.pass_context
def list_keys(ctx) -> None:
    """List saved Pix keys."""
    service = _service(ctx)
    keys = service.list_keys()
    if not keys:
        click.echo("No Pix keys found.")
        return

    profile = ctx.obj["snapshot"].user(service.actor.id) or service.actor
    click.echo("\nPix keys:")
    click.echo("-" * 70)
    for k in keys:
        marker = " *" if k.id == profile.default_pix_key_id else ""
        click.echo(f"{short_id(k.id)} | {k.name:20s} | {k.bank:12s} | {k.key_type.value:9s} | {k.key}{marker}")


@pix_group.command("remove")
@click.argument("pix_key_id", metavar="PIX_KEY")
@click.pass_context
def remove_key(ctx, pix_key_id: str) -> None:
    """Delete a saved Pix key."""
    service = _service(ctx)
    pix_key_id = _resolve_key(ctx, pix_key_id)
    try:
        service.remove_key(pix_key_id)
        click.echo(f"Removed Pix key {short_id(pix_key_id)}")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@pix_group.command("default")
@click.argument("pix_key_id", metavar="PIX_KEY", required=False)
@click.option("--clear", is_flag=True, help="Remove the default key")
@click.pass_context
def set_default(ctx, pix_key_id: str | None, clear: bool) -> None:
    """Set your default payout key, used for new withdrawals."""
    service = _service(ctx)
    if clear:
        pix_key_id = None
    elif pix_key_id is None:
        raise click.UsageError("Give a PIX_KEY or --clear")
    else:
        pix_key_id = _resolve_key(ctx, pix_key_id)

    try:
        service.set_default(pix_key_id)
        click.echo("Default Pix key cleared" if pix_key_id is None else f"Default Pix key set to {short_id(pix_key_id)}")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register Pix key commands with main CLI."""
    cli.add_command(pix_group, name="pix")
