"""Tests for the account lifecycle."""

from dataclasses import replace
from decimal import Decimal

import pytest

from housedesk.domain.account import AccountService
from housedesk.domain.constants import ACCOUNTS, LOGS, PACKS, TASKS
from housedesk.domain.entities import (
    AccountById,
    AccountDraft,
    AccountSnapshot,
    AccountStatus,
    PackStatus,
    TaskStatus,
)
from housedesk.domain.errors import ValidationError


def _draft(**overrides):
    fields = {"name": "Joao", "email": "joao@mail.com", "house": "Betano", "deposit_value": Decimal("50")}
    fields.update(overrides)
    return AccountDraft(**fields)


def _draft_of(account):
    return AccountDraft(
        id=account.id,
        name=account.name,
        email=account.email,
        house=account.house,
        deposit_value=account.deposit_value,
        status=account.status,
    )


class TestCreate:
    def test_create_with_pack_draws_from_it(self, account_service, sample_pack, snapshot, temp_store):
        account_id = account_service.save_account(_draft(tags=("vip", "vip", " ")), pack_id=sample_pack.id)

        account = snapshot.account(account_id)
        assert account.status == AccountStatus.ACTIVE
        assert account.pack_id == sample_pack.id
        assert account.tags == ("vip",)
        assert snapshot.pack(sample_pack.id).delivered == 1
        assert [d["action"] for d in temp_store.query(LOGS, {"taskId": account_id})] == [
            "Conta cadastrada manualmente (ACTIVE)"
        ]

    def test_name_and_house_required(self, account_service, temp_store):
        with pytest.raises(ValidationError):
            account_service.save_account(_draft(name="  "))
        with pytest.raises(ValidationError):
            account_service.save_account(_draft(house=""))
        assert temp_store.list_all(ACCOUNTS) == []

    def test_non_admin_needs_pack_for_active_account(self, temp_store, snapshot, regular_user):
        service = AccountService(temp_store, snapshot, regular_user)
        with pytest.raises(ValidationError):
            service.save_account(_draft())
        assert temp_store.list_all(ACCOUNTS) == []

    def test_non_admin_may_register_inactive_account_without_pack(self, temp_store, snapshot, regular_user):
        service = AccountService(temp_store, snapshot, regular_user)
        account_id = service.save_account(_draft(status=AccountStatus.LIMITED))
        assert snapshot.account(account_id).status == AccountStatus.LIMITED

    def test_non_admin_cannot_use_completed_pack(self, temp_store, snapshot, regular_user, pack_service, sample_pack):
        pack_service.bump_delivered(sample_pack.id, 4)
        service = AccountService(temp_store, snapshot, regular_user)
        with pytest.raises(ValidationError):
            service.save_account(_draft(), pack_id=sample_pack.id)

    def test_non_admin_with_active_pack(self, temp_store, snapshot, regular_user, sample_pack):
        service = AccountService(temp_store, snapshot, regular_user)
        account_id = service.save_account(_draft(), pack_id=sample_pack.id)
        assert snapshot.account(account_id).pack_id == sample_pack.id

    def test_pack_must_match_house(self, temp_store, snapshot, regular_user, sample_pack):
        service = AccountService(temp_store, snapshot, regular_user)
        with pytest.raises(ValidationError):
            service.save_account(_draft(house="KTO"), pack_id=sample_pack.id)
        assert temp_store.list_all(ACCOUNTS) == []
        assert snapshot.pack(sample_pack.id).delivered == 0


class TestCascadeRename:
    def test_rename_rewrites_linked_tasks(self, account_service, task_service, temp_store, snapshot):
        account_id = account_service.save_account(_draft(name="X"))
        first = task_service.create_task("SAQUE", account=AccountById(account_id))
        second = task_service.create_task("SMS", account=AccountSnapshot("X", "Betano"))
        unrelated = task_service.create_task("SMS", account=AccountSnapshot("X", "KTO"))

        account_service.save_account(replace(_draft_of(snapshot.account(account_id)), name="Y"))

        assert temp_store.get_one(TASKS, first)["accountName"] == "Y"
        assert temp_store.get_one(TASKS, second)["accountName"] == "Y"
        assert temp_store.get_one(TASKS, unrelated)["accountName"] == "X"
        sync_logs = [
            d["action"] for d in temp_store.query(LOGS, {"taskId": account_id}) if d["action"].startswith("Atualizou")
        ]
        assert sync_logs == ["Atualizou 2 pendências antigas para a nova casa/nome."]

    def test_house_change_moves_tasks(self, account_service, task_service, temp_store, snapshot):
        account_id = account_service.save_account(_draft(name="X"))
        task_id = task_service.create_task("SAQUE", account=AccountById(account_id))

        account_service.save_account(replace(_draft_of(snapshot.account(account_id)), house="KTO"))

        assert temp_store.get_one(TASKS, task_id)["house"] == "KTO"

    def test_deposit_edit_leaves_tasks_alone(self, account_service, task_service, temp_store, snapshot):
        account_id = account_service.save_account(_draft(name="X"))
        task_id = task_service.create_task("SAQUE", account=AccountById(account_id))
        task_before = temp_store.get_one(TASKS, task_id)

        account_service.save_account(replace(_draft_of(snapshot.account(account_id)), deposit_value=Decimal("99")))

        assert temp_store.get_one(TASKS, task_id) == task_before
        assert snapshot.account(account_id).deposit_value == Decimal("99")
        actions = [d["action"] for d in temp_store.query(LOGS, {"taskId": account_id})]
        assert not any(action.startswith("Atualizou") for action in actions)
        assert "Dados da conta atualizados manualmente" in actions

    def test_editing_unknown_account_is_a_no_op(self, account_service, temp_store):
        assert account_service.save_account(_draft(id="missing")) is None
        assert temp_store.list_all(ACCOUNTS) == []


class TestTransitions:
    def test_limit_with_withdrawal(self, account_service, sample_account, temp_store):
        account = account_service.limit_account(sample_account.id, create_withdrawal=True, payout_info="Chave Pix (Manual): 1")

        assert account.status == AccountStatus.LIMITED
        assert account.limited_at is not None
        tasks = temp_store.query(TASKS, {"type": "SAQUE"})
        assert len(tasks) == 1
        assert tasks[0]["accountName"] == "Maria"
        assert tasks[0]["status"] == TaskStatus.PENDENTE.value
        assert tasks[0]["pixKeyInfo"] == "Chave Pix (Manual): 1"

    def test_limit_requires_active(self, account_service, sample_account):
        account_service.limit_account(sample_account.id)
        with pytest.raises(ValidationError):
            account_service.limit_account(sample_account.id)

    def test_replacement_gives_pack_slot_back(self, account_service, sample_pack, snapshot):
        account_ids = [
            account_service.save_account(_draft(name=f"Conta {i}"), pack_id=sample_pack.id) for i in range(4)
        ]
        assert snapshot.pack(sample_pack.id).status == PackStatus.COMPLETED

        account = account_service.mark_replacement(account_ids[0])

        assert account.status == AccountStatus.REPLACEMENT
        assert account.replacement_at is not None
        pack = snapshot.pack(sample_pack.id)
        assert pack.delivered == 3
        assert pack.status == PackStatus.ACTIVE

    def test_replacement_without_pack(self, account_service, sample_account, temp_store):
        account_service.mark_replacement(sample_account.id)
        assert temp_store.list_all(PACKS) == []

    def test_request_withdrawal_context(self, account_service, sample_account, temp_store):
        account_service.limit_account(sample_account.id)

        task_id = account_service.request_withdrawal(sample_account.id)

        task = temp_store.get_one(TASKS, task_id)
        assert task["description"] == "Solicitação de saque manual (Conta Limitada)."
        assert "Solicitou saque em conta LIMITED." in [
            d["action"] for d in temp_store.query(LOGS, {"taskId": sample_account.id})
        ]

    def test_delete_and_reactivate(self, account_service, sample_account):
        account = account_service.delete_account(sample_account.id, "banida")
        assert account.status == AccountStatus.DELETED
        assert account.deletion_reason == "banida"

        account = account_service.reactivate(sample_account.id)
        assert account.status == AccountStatus.ACTIVE
        assert account.deletion_reason is None

    def test_reactivate_active_account(self, account_service, sample_account):
        with pytest.raises(ValidationError):
            account_service.reactivate(sample_account.id)

    def test_hard_delete_only_after_soft_delete(self, account_service, sample_account, temp_store):
        with pytest.raises(ValidationError):
            account_service.hard_delete(sample_account.id)

        account_service.delete_account(sample_account.id)
        assert account_service.hard_delete(sample_account.id) is True
        assert temp_store.get_one(ACCOUNTS, sample_account.id) is None
        assert temp_store.query(LOGS, {"taskId": "SYSTEM", "action": f"ID: {sample_account.id} removido definitivamente."})


def test_stale_account_id_is_a_no_op(account_service, temp_store):
    before = {name: temp_store.list_all(name) for name in (ACCOUNTS, TASKS, LOGS)}

    assert account_service.limit_account("missing", create_withdrawal=True) is None
    assert account_service.mark_replacement("missing") is None
    assert account_service.request_withdrawal("missing") is None
    assert account_service.reactivate("missing") is None
    assert account_service.delete_account("missing", "x") is None
    assert account_service.hard_delete("missing") is False

    assert {name: temp_store.list_all(name) for name in (ACCOUNTS, TASKS, LOGS)} == before


def test_list_accounts_filters(account_service, sample_account):
    other = account_service.save_account(_draft(house="KTO"))
    account_service.limit_account(other)

    assert [a.id for a in account_service.list_accounts(status=AccountStatus.LIMITED)] == [other]
    assert [a.id for a in account_service.list_accounts(house="Betano")] == [sample_account.id]
