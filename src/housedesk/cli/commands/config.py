"""House and task type configuration commands."""

import click

from housedesk.cli.error_handling import HANDLED_ERRORS, handle_domain_error
from housedesk.cli.session import require_user
from housedesk.domain.config import ConfigService


def _service(ctx) -> ConfigService:
    return ConfigService(ctx.obj["db"], ctx.obj["snapshot"], require_user(ctx))


@click.group()
def config_group():
    """Manage the house and task type lists."""
    pass


@config_group.group("house")
def house_group():
    """Manage betting houses."""
    pass


@house_group.command("list")
@click.pass_context
def list_houses(ctx) -> None:
    """List houses in display order."""
    houses = _service(ctx).list_houses()
    if not houses:
        click.echo("No houses configured. Run 'housedesk config restore-defaults' to add the defaults.")
        return
    for h in houses:
        click.echo(f"{h.order:3d}. {h.name}")


@house_group.command("add")
@click.argument("name")
@click.pass_context
def add_house(ctx, name: str) -> None:
    """Add a house at the end of the list."""
    try:
        _service(ctx).add_house(name)
        click.echo(f"Added house '{name.strip()}'")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@house_group.command("remove")
@click.argument("name")
@click.pass_context
def remove_house(ctx, name: str) -> None:
    """Remove a house."""
    try:
        removed = _service(ctx).remove_house(name)
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)
    if removed:
        click.echo(f"Removed house '{name}'")
    else:
        click.echo(f"House '{name}' not found.")


@house_group.command("reorder")
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def reorder_houses(ctx, names: tuple[str, ...]) -> None:
    """Store a new house order.

    Examples:
        housedesk config house reorder Betano Bet365 KTO
    """
    try:
        count = _service(ctx).reorder_houses(list(names))
        click.echo(f"Reordered {count} houses")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@config_group.group("type")
def type_group():
    """Manage task types."""
    pass


@type_group.command("list")
@click.pass_context
def list_types(ctx) -> None:
    """List task types in display order."""
    for t in _service(ctx).list_task_types():
        click.echo(f"{t.order:3d}. {t.value:16s} {t.label}")


@type_group.command("add")
@click.argument("label")
@click.pass_context
def add_type(ctx, label: str) -> None:
    """Add a task type; its value is derived from the label."""
    try:
        _service(ctx).add_task_type(label)
        click.echo(f"Added task type '{label.strip()}'")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@type_group.command("remove")
@click.argument("value")
@click.pass_context
def remove_type(ctx, value: str) -> None:
    """Remove a task type by value."""
    try:
        removed = _service(ctx).remove_task_type(value.upper())
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)
    if removed:
        click.echo(f"Removed task type '{value.upper()}'")
    else:
        click.echo(f"Task type '{value}' not found.")


@type_group.command("reorder")
@click.argument("values", nargs=-1, required=True)
@click.pass_context
def reorder_types(ctx, values: tuple[str, ...]) -> None:
    """Store a new task type order, given type values."""
    try:
        count = _service(ctx).reorder_task_types([v.upper() for v in values])
        click.echo(f"Reordered {count} task types")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@config_group.command("restore-defaults")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def restore_defaults(ctx, yes: bool) -> None:
    """Replace every house and task type with the built-in lists."""
    service = _service(ctx)
    if not yes and not click.confirm("Replace all houses and task types with the defaults?"):
        click.echo("Restore cancelled.")
        return

    try:
        houses, types = service.restore_defaults()
        click.echo(f"Restored {houses} houses and {types} task types")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register configuration commands with main CLI."""
    cli.add_command(config_group, name="config")
