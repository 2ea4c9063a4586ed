"""Pack inventory commands."""

import click

from housedesk.cli.error_handling import HANDLED_ERRORS, fail, handle_domain_error
from housedesk.cli.resolution import resolve_id, short_id
from housedesk.cli.session import require_user
from housedesk.domain.pack import PackService
from housedesk.utils.amount_parser import parse_amount


def _service(ctx) -> PackService:
    return PackService(ctx.obj["db"], ctx.obj["snapshot"], require_user(ctx))


def _price(ctx, value: str | None):
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        fail(ctx, f"Invalid price: {e}")


@click.group()
def pack_group():
    """Manage purchased account packs."""
    pass


@pack_group.command("create")
@click.argument("house", metavar="HOUSE")
@click.argument("quantity", type=int)
@click.argument("price", metavar="PRICE")
@click.pass_context
def create_pack(ctx, house: str, quantity: int, price: str) -> None:
    """Register a purchased pack.

    Examples:
        housedesk pack create Betano 10 "R$ 1.500,00"
    """
    service = _service(ctx)
    try:
        pack_id = service.create_pack(house, quantity, _price(ctx, price))
        click.echo(f"Created pack {short_id(pack_id)} (ID: {pack_id})")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@pack_group.command("list")
@click.option("--house", help="Only packs of this house")
@click.option("--active", "active_only", is_flag=True, help="Only packs with accounts left")
@click.pass_context
def list_packs(ctx, house: str | None, active_only: bool) -> None:
    """List packs, newest first."""
    service = _service(ctx)
    packs = service.list_packs(house=house, active_only=active_only)
    if not packs:
        click.echo("No packs found.")
        return

    click.echo("\nPacks:")
    click.echo("-" * 70)
    for p in packs:
        click.echo(
            f"{short_id(p.id)} | {p.house:12s} | {p.delivered:3d}/{p.quantity:<3d} | "
            f"R$ {p.price:>10.2f} | {p.status.value}"
        )


@pack_group.command("edit")
@click.argument("pack_id", metavar="PACK")
@click.option("--house", help="New house")
@click.option("--quantity", type=int, help="New quantity")
@click.option("--price", help="New price")
@click.option("--delivered", type=int, help="Corrected delivered count")
@click.pass_context
def edit_pack(
    ctx,
    pack_id: str,
    house: str | None,
    quantity: int | None,
    price: str | None,
    delivered: int | None,
) -> None:
    """Correct a pack (admins only). The status follows the counts."""
    service = _service(ctx)
    pack_id = resolve_id(ctx, "Pack", (p.id for p in ctx.obj["snapshot"].packs), pack_id)
    try:
        pack = service.edit_pack(
            pack_id,
            house=house,
            quantity=quantity,
            price=_price(ctx, price),
            delivered=delivered,
        )
        click.echo(f"Updated pack {short_id(pack_id)}: {pack.delivered}/{pack.quantity} ({pack.status.value})")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register pack commands with main CLI."""
    cli.add_command(pack_group, name="pack")
