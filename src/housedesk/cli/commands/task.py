"""Task (pendência) commands."""

import click

from housedesk.cli.error_handling import HANDLED_ERRORS, fail, handle_domain_error
from housedesk.cli.resolution import resolve_id, short_id
from housedesk.cli.session import require_user
from housedesk.domain.constants import TASK_STATUS_LABELS
from housedesk.domain.entities import AccountById, DeliveredAccount, TaskStatus
from housedesk.domain.pix import PixKeyService
from housedesk.domain.task import TaskService
from housedesk.utils.amount_parser import parse_amount

STATUS_CHOICE = click.Choice([s.value for s in TaskStatus], case_sensitive=False)


def _services(ctx) -> tuple[TaskService, PixKeyService]:
    actor = require_user(ctx)
    db, snapshot = ctx.obj["db"], ctx.obj["snapshot"]
    return TaskService(db, snapshot, actor), PixKeyService(db, snapshot, actor)


def _resolve_task(ctx, value: str) -> str:
    return resolve_id(ctx, "Task", (t.id for t in ctx.obj["snapshot"].tasks), value)


def _payout(ctx, pix_service: PixKeyService, pix_key: str | None, pix_manual: str | None) -> str | None:
    saved_id = None
    if pix_key is not None:
        saved_id = resolve_id(ctx, "Pix key", (k.id for k in ctx.obj["snapshot"].pix_keys), pix_key)
    return pix_service.payout_info(saved_id=saved_id, manual=pix_manual)


@click.group()
def task_group():
    """Manage tasks (work requests)."""
    pass


@task_group.command("create")
@click.argument("task_type", metavar="TYPE")
@click.option("--house", help="Betting house (defaults to the account's house)")
@click.option("--account", "account_id", help="Target account ID (or unique prefix)")
@click.option("--quantity", type=int, help="Number of accounts requested (CONTA_NOVA only)")
@click.option("--description", help="Free text, required for OUTRO")
@click.option("--pix-key", help="Saved Pix key ID for the payout")
@click.option("--pix-manual", help="Pix key typed in manually")
@click.option("--status", type=STATUS_CHOICE, help="Initial status (defaults by type)")
@click.pass_context
def create_task(
    ctx,
    task_type: str,
    house: str | None,
    account_id: str | None,
    quantity: int | None,
    description: str | None,
    pix_key: str | None,
    pix_manual: str | None,
    status: str | None,
) -> None:
    """Create a task.

    TYPE is a task type value such as SMS, SAQUE, CONTA_NOVA or OUTRO.

    Examples:
        housedesk task create SAQUE --account 3f2a --pix-manual "joao@pix.com"
        housedesk task create CONTA_NOVA --house Betano --quantity 5
        housedesk task create OUTRO --house KTO --description "Verificar documentos"
    """
    service, pix_service = _services(ctx)

    account = None
    if account_id is not None:
        account = AccountById(resolve_id(ctx, "Account", (a.id for a in ctx.obj["snapshot"].accounts), account_id))

    try:
        task_id = service.create_task(
            task_type.upper(),
            house=house,
            account=account,
            quantity=quantity,
            description=description,
            pix_key_info=_payout(ctx, pix_service, pix_key, pix_manual),
            status=TaskStatus(status.upper()) if status else None,
        )
        click.echo(f"Created task {short_id(task_id)} (ID: {task_id})")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@task_group.command("list")
@click.option("--status", type=STATUS_CHOICE, help="Only tasks in this status")
@click.option("--all", "include_deleted", is_flag=True, help="Include deleted tasks")
@click.pass_context
def list_tasks(ctx, status: str | None, include_deleted: bool) -> None:
    """List tasks in display order."""
    service, _ = _services(ctx)
    snapshot = ctx.obj["snapshot"]

    tasks = service.list_tasks(status=TaskStatus(status.upper()) if status else None, include_deleted=include_deleted)
    if not tasks:
        click.echo("No tasks found.")
        return

    click.echo("\nTasks:")
    click.echo("-" * 90)
    for t in tasks:
        label = snapshot.task_type_label(t.type)
        quantity = f" x{t.quantity}" if t.quantity else ""
        click.echo(
            f"{short_id(t.id)} | {TASK_STATUS_LABELS[t.status]:10s} | {label + quantity:18s} | "
            f"{t.house:12s} | {t.account_name or '':20s}"
        )


@task_group.command("show")
@click.argument("task_id", metavar="TASK")
@click.pass_context
def show_task(ctx, task_id: str) -> None:
    """Show one task."""
    service, _ = _services(ctx)
    t = service.get_task(_resolve_task(ctx, task_id))

    click.echo(f"ID:          {t.id}")
    click.echo(f"Type:        {ctx.obj['snapshot'].task_type_label(t.type)}")
    click.echo(f"Status:      {TASK_STATUS_LABELS[t.status]}")
    click.echo(f"House:       {t.house}")
    click.echo(f"Account:     {t.account_name or ''}")
    if t.quantity:
        click.echo(f"Quantity:    {t.quantity}")
    if t.description:
        click.echo(f"Description: {t.description}")
    if t.pix_key_info:
        click.echo(f"Payout:      {t.pix_key_info}")
    if t.deletion_reason:
        click.echo(f"Deleted:     {t.deletion_reason}")
    click.echo(f"Created:     {t.created_at:%Y-%m-%d %H:%M}")
    if t.resolved_at:
        click.echo(f"Resolved:    {t.resolved_at:%Y-%m-%d %H:%M}")


@task_group.command("status")
@click.argument("task_id", metavar="TASK")
@click.argument("new_status", type=STATUS_CHOICE)
@click.option("--agent", help="ID of the agency user who did the work")
@click.pass_context
def set_status(ctx, task_id: str, new_status: str, agent: str | None) -> None:
    """Move a task to a new status.

    Examples:
        housedesk task status 3f2a SOLICITADA
        housedesk task status 3f2a FINALIZADA --agent 91bc
    """
    service, _ = _services(ctx)
    task_id = _resolve_task(ctx, task_id)
    agent_id = None
    if agent is not None:
        agent_id = resolve_id(ctx, "User", (u.id for u in ctx.obj["snapshot"].users), agent)

    try:
        task = service.set_status(task_id, TaskStatus(new_status.upper()), agent_id=agent_id)
        click.echo(f"Task {short_id(task_id)} is now {TASK_STATUS_LABELS[task.status]}")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@task_group.command("restore")
@click.argument("task_id", metavar="TASK")
@click.pass_context
def restore_task(ctx, task_id: str) -> None:
    """Bring a deleted task back to Pendente."""
    service, _ = _services(ctx)
    task_id = _resolve_task(ctx, task_id)
    try:
        service.restore_task(task_id)
        click.echo(f"Restored task {short_id(task_id)}")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@task_group.command("edit")
@click.argument("task_id", metavar="TASK")
@click.option("--type", "task_type", help="New task type value")
@click.option("--house", help="New betting house")
@click.option("--account-name", help="New account name")
@click.option("--quantity", type=int, help="New quantity")
@click.option("--description", help="New description")
@click.option("--pix-key", help="Saved Pix key ID for the payout")
@click.option("--pix-manual", help="Pix key typed in manually")
@click.pass_context
def edit_task(
    ctx,
    task_id: str,
    task_type: str | None,
    house: str | None,
    account_name: str | None,
    quantity: int | None,
    description: str | None,
    pix_key: str | None,
    pix_manual: str | None,
) -> None:
    """Edit a task. Only the fields that are provided change."""
    service, pix_service = _services(ctx)
    task_id = _resolve_task(ctx, task_id)

    updates = {}
    if task_type is not None:
        updates["type"] = task_type.upper()
    if house is not None:
        updates["house"] = house
    if account_name is not None:
        updates["account_name"] = account_name
    if quantity is not None:
        updates["quantity"] = quantity
    if description is not None:
        updates["description"] = description
    if pix_key is not None or pix_manual is not None:
        updates["pix_key_info"] = _payout(ctx, pix_service, pix_key, pix_manual)
    if not updates:
        fail(ctx, "Nothing to update")

    try:
        service.edit_task(task_id, updates)
        click.echo(f"Updated task {short_id(task_id)}")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@task_group.command("move")
@click.argument("dragged", metavar="TASK")
@click.argument("target", metavar="TARGET")
@click.pass_context
def move_task(ctx, dragged: str, target: str) -> None:
    """Swap the display position of two tasks."""
    service, _ = _services(ctx)
    dragged_id, target_id = _resolve_task(ctx, dragged), _resolve_task(ctx, target)
    try:
        if service.reorder(dragged_id, target_id):
            click.echo(f"Swapped {short_id(dragged_id)} and {short_id(target_id)}")
        else:
            click.echo("Nothing to reorder.")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@task_group.command("delete")
@click.argument("task_id", metavar="TASK")
@click.option("--reason", help="Why the task is being deleted")
@click.pass_context
def delete_task(ctx, task_id: str, reason: str | None) -> None:
    """Delete a task (it can be restored later)."""
    service, _ = _services(ctx)
    task_id = _resolve_task(ctx, task_id)
    try:
        service.delete_task(task_id, reason)
        click.echo(f"Deleted task {short_id(task_id)}")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@task_group.command("deliver")
@click.argument("task_id", metavar="TASK")
@click.option(
    "--account",
    "entries",
    nargs=3,
    multiple=True,
    metavar="NAME EMAIL DEPOSIT",
    help="Delivered account (repeat for each one)",
)
@click.option("--pack", "pack_id", help="Pack the accounts are drawn from")
@click.pass_context
def deliver_accounts(ctx, task_id: str, entries: tuple[tuple[str, str, str], ...], pack_id: str | None) -> None:
    """Deliver accounts for a CONTA_NOVA task.

    Delivering fewer accounts than requested keeps the task open with the
    remaining quantity.

    Examples:
        housedesk task deliver 3f2a --pack 77de --account "Maria" maria@mail.com 50
    """
    service, _ = _services(ctx)
    task_id = _resolve_task(ctx, task_id)
    if pack_id is not None:
        pack_id = resolve_id(ctx, "Pack", (p.id for p in ctx.obj["snapshot"].packs), pack_id)

    delivered = []
    for name, email, deposit in entries:
        try:
            delivered.append(DeliveredAccount(name=name, email=email, deposit_value=parse_amount(deposit)))
        except ValueError as e:
            fail(ctx, f"Invalid deposit for '{name}': {e}")

    try:
        task = service.finish_new_account_delivery(task_id, delivered, pack_id=pack_id)
        if task.status == TaskStatus.FINALIZADA:
            click.echo(f"Delivered {len(delivered)} accounts; task {short_id(task_id)} finished")
        else:
            click.echo(f"Delivered {len(delivered)} accounts; {task.quantity} still pending")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register task commands with main CLI."""
    cli.add_command(task_group, name="task")
