"""Account management commands."""

from dataclasses import replace
from decimal import Decimal

import click

from housedesk.cli.error_handling import HANDLED_ERRORS, fail, handle_domain_error
from housedesk.cli.resolution import resolve_id, short_id
from housedesk.cli.session import require_user
from housedesk.domain.account import AccountService
from housedesk.domain.constants import ACCOUNT_STATUS_LABELS
from housedesk.domain.entities import AccountDraft, AccountStatus
from housedesk.domain.pix import PixKeyService
from housedesk.utils.amount_parser import parse_amount

STATUS_CHOICE = click.Choice([s.value for s in AccountStatus], case_sensitive=False)


def _service(ctx) -> AccountService:
    return AccountService(ctx.obj["db"], ctx.obj["snapshot"], require_user(ctx))


def _resolve_account(ctx, value: str) -> str:
    return resolve_id(ctx, "Account", (a.id for a in ctx.obj["snapshot"].accounts), value)


def _resolve_pack(ctx, value: str | None) -> str | None:
    if value is None:
        return None
    return resolve_id(ctx, "Pack", (p.id for p in ctx.obj["snapshot"].packs), value)


def _deposit(ctx, value: str | None):
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        fail(ctx, f"Invalid deposit value: {e}")


def _payout(ctx, service: AccountService, pix_key: str | None, pix_manual: str | None) -> str | None:
    pix_service = PixKeyService(service.db, service.snapshot, service.actor)
    saved_id = None
    if pix_key is not None:
        saved_id = resolve_id(ctx, "Pix key", (k.id for k in ctx.obj["snapshot"].pix_keys), pix_key)
    return pix_service.payout_info(saved_id=saved_id, manual=pix_manual)


def withdrawal_options(command):
    """Options shared by commands that may open a withdrawal task."""
    command = click.option("--pix-manual", help="Pix key typed in manually")(command)
    command = click.option("--pix-key", help="Saved Pix key ID for the withdrawal")(command)
    command = click.option("--withdrawal", is_flag=True, help="Also open a withdrawal (SAQUE) task")(command)
    return command


@click.group()
def account_group():
    """Manage betting-house accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="NAME")
@click.argument("email", metavar="EMAIL")
@click.argument("house", metavar="HOUSE")
@click.option("--deposit", help="Deposit value (e.g., 50 or 1.234,56)")
@click.option("--status", type=STATUS_CHOICE, default=AccountStatus.ACTIVE.value, show_default=True)
@click.option("--pack", "pack_id", help="Pack the account is drawn from (required for non-admins)")
@click.option("--username", help="Login at the house")
@click.option("--password", "account_password", help="Password at the house")
@click.option("--card", help="Card used on the account")
@click.option("--owner", help="Account holder")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.pass_context
def create_account(
    ctx,
    name: str,
    email: str,
    house: str,
    deposit: str | None,
    status: str,
    pack_id: str | None,
    username: str | None,
    account_password: str | None,
    card: str | None,
    owner: str | None,
    tags: tuple[str, ...],
) -> None:
    """Register an account manually.

    Examples:
        housedesk account create "Maria" maria@mail.com Betano --pack 77de
        housedesk account create "Joao" joao@mail.com KTO --deposit 100 --tag vip
    """
    service = _service(ctx)
    draft = AccountDraft(
        name=name,
        email=email,
        house=house,
        deposit_value=_deposit(ctx, deposit) or Decimal("0"),
        status=AccountStatus(status.upper()),
        username=username,
        password=account_password,
        card=card,
        owner=owner,
        tags=tags,
    )
    try:
        account_id = service.save_account(draft, pack_id=_resolve_pack(ctx, pack_id))
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@account_group.command("edit")
@click.argument("account_id", metavar="ACCOUNT")
@click.option("--name", help="New name (open tasks follow the rename)")
@click.option("--email", help="New email")
@click.option("--house", help="New house (open tasks follow the change)")
@click.option("--deposit", help="New deposit value")
@click.option("--username", help="Login at the house")
@click.option("--password", "account_password", help="Password at the house")
@click.option("--card", help="Card used on the account")
@click.option("--owner", help="Account holder")
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable)")
@click.pass_context
def edit_account(
    ctx,
    account_id: str,
    name: str | None,
    email: str | None,
    house: str | None,
    deposit: str | None,
    username: str | None,
    account_password: str | None,
    card: str | None,
    owner: str | None,
    tags: tuple[str, ...],
) -> None:
    """Edit an account. Only the fields that are provided change."""
    service = _service(ctx)
    account = service.get_account(_resolve_account(ctx, account_id))

    changes = {
        "name": name,
        "email": email,
        "house": house,
        "deposit_value": _deposit(ctx, deposit),
        "username": username,
        "password": account_password,
        "card": card,
        "owner": owner,
        "tags": tags or None,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        fail(ctx, "Nothing to update")

    draft = AccountDraft(
        id=account.id,
        name=account.name,
        email=account.email,
        house=account.house,
        deposit_value=account.deposit_value,
        status=account.status,
        username=account.username,
        password=account.password,
        card=account.card,
        owner=account.owner,
        tags=account.tags,
    )
    try:
        service.save_account(replace(draft, **changes))
        click.echo(f"Updated account '{changes.get('name', account.name)}'")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--status", type=STATUS_CHOICE, help="Only accounts in this status")
@click.option("--house", help="Only accounts of this house")
@click.pass_context
def list_accounts(ctx, status: str | None, house: str | None) -> None:
    """List accounts, most recently touched first."""
    service = _service(ctx)
    accounts = service.list_accounts(status=AccountStatus(status.upper()) if status else None, house=house)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 90)
    for acc in accounts:
        tags = f" [{', '.join(acc.tags)}]" if acc.tags else ""
        click.echo(
            f"{short_id(acc.id)} | {ACCOUNT_STATUS_LABELS[acc.status]:9s} | {acc.house:12s} | "
            f"{acc.name:20s} | {acc.email}{tags}"
        )


@account_group.command("show")
@click.argument("account_id", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account_id: str) -> None:
    """Show one account."""
    service = _service(ctx)
    acc = service.get_account(_resolve_account(ctx, account_id))

    click.echo(f"ID:       {acc.id}")
    click.echo(f"Name:     {acc.name}")
    click.echo(f"Email:    {acc.email}")
    click.echo(f"House:    {acc.house}")
    click.echo(f"Status:   {service.status_label(acc.status)}")
    click.echo(f"Deposit:  R$ {acc.deposit_value:.2f}")
    for label, value in (
        ("Username", acc.username),
        ("Card", acc.card),
        ("Owner", acc.owner),
        ("Pack", acc.pack_id),
        ("Reason", acc.deletion_reason),
    ):
        if value:
            click.echo(f"{label + ':':9s} {value}")
    if acc.tags:
        click.echo(f"Tags:     {', '.join(acc.tags)}")


@account_group.command("limit")
@click.argument("account_id", metavar="ACCOUNT")
@withdrawal_options
@click.pass_context
def limit_account(ctx, account_id: str, withdrawal: bool, pix_key: str | None, pix_manual: str | None) -> None:
    """Mark an active account as limited by the house."""
    service = _service(ctx)
    account_id = _resolve_account(ctx, account_id)
    try:
        service.limit_account(account_id, withdrawal, _payout(ctx, service, pix_key, pix_manual))
        click.echo(f"Account {short_id(account_id)} marked as limited")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@account_group.command("replace")
@click.argument("account_id", metavar="ACCOUNT")
@withdrawal_options
@click.pass_context
def replace_account(ctx, account_id: str, withdrawal: bool, pix_key: str | None, pix_manual: str | None) -> None:
    """Mark an account for replacement (its pack slot is given back)."""
    service = _service(ctx)
    account_id = _resolve_account(ctx, account_id)
    try:
        service.mark_replacement(account_id, withdrawal, _payout(ctx, service, pix_key, pix_manual))
        click.echo(f"Account {short_id(account_id)} marked for replacement")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@account_group.command("withdraw")
@click.argument("account_id", metavar="ACCOUNT")
@click.option("--pix-key", help="Saved Pix key ID for the withdrawal")
@click.option("--pix-manual", help="Pix key typed in manually")
@click.pass_context
def request_withdrawal(ctx, account_id: str, pix_key: str | None, pix_manual: str | None) -> None:
    """Open a manual withdrawal task for an account."""
    service = _service(ctx)
    account_id = _resolve_account(ctx, account_id)
    try:
        task_id = service.request_withdrawal(account_id, _payout(ctx, service, pix_key, pix_manual))
        click.echo(f"Created withdrawal task {short_id(task_id)}")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@account_group.command("reactivate")
@click.argument("account_id", metavar="ACCOUNT")
@click.pass_context
def reactivate_account(ctx, account_id: str) -> None:
    """Move a limited, replaced or deleted account back to active."""
    service = _service(ctx)
    account_id = _resolve_account(ctx, account_id)
    try:
        service.reactivate(account_id)
        click.echo(f"Account {short_id(account_id)} is active again")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@account_group.command("delete")
@click.argument("account_id", metavar="ACCOUNT")
@click.option("--reason", help="Why the account is being deleted")
@click.pass_context
def delete_account(ctx, account_id: str, reason: str | None) -> None:
    """Delete an account (it can be reactivated later)."""
    service = _service(ctx)
    account_id = _resolve_account(ctx, account_id)
    try:
        service.delete_account(account_id, reason)
        click.echo(f"Deleted account {short_id(account_id)}")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


@account_group.command("purge")
@click.argument("account_id", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def purge_account(ctx, account_id: str, yes: bool) -> None:
    """Permanently remove a deleted account.

    This cannot be undone.
    """
    service = _service(ctx)
    account_id = _resolve_account(ctx, account_id)
    account = service.get_account(account_id)

    if not yes and not click.confirm(f"Permanently remove account '{account.name}' (ID: {account_id})?"):
        click.echo("Removal cancelled.")
        return

    try:
        service.hard_delete(account_id)
        click.echo(f"Removed account '{account.name}'")
    except HANDLED_ERRORS as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
