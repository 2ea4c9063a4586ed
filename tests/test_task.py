"""Tests for the task lifecycle."""

from decimal import Decimal

import pytest

from housedesk.domain.constants import ACCOUNTS, LOGS, TASKS
from housedesk.domain.entities import (
    AccountById,
    AccountSnapshot,
    AccountStatus,
    DeliveredAccount,
    TaskStatus,
)
from housedesk.domain.errors import NotFoundError, ValidationError
from housedesk.domain.task import TaskService


def _logs_for(store, subject_id):
    return [doc["action"] for doc in store.query(LOGS, {"taskId": subject_id})]


def _delivered(count):
    return [DeliveredAccount(name=f"Conta {i}", email=f"conta{i}@mail.com", deposit_value=Decimal("20")) for i in range(count)]


class TestCreateTask:
    def test_withdrawal_starts_pending(self, task_service, sample_account, temp_store):
        task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))
        task = task_service.get_task(task_id)

        assert task.status == TaskStatus.PENDENTE
        assert task.account_name == "Maria"
        assert task.house == "Betano"
        assert task.quantity is None
        assert _logs_for(temp_store, task_id) == ["Pendência criada (Pendente)"]

    def test_auto_requested_type_starts_requested(self, task_service, sample_account):
        task_id = task_service.create_task("SMS", account=AccountSnapshot("Maria", "Betano"))
        assert task_service.get_task(task_id).status == TaskStatus.SOLICITADA

    def test_explicit_status_wins(self, task_service, sample_account):
        task_id = task_service.create_task("SMS", account=AccountById(sample_account.id), status=TaskStatus.PENDENTE)
        assert task_service.get_task(task_id).status == TaskStatus.PENDENTE

    def test_new_account_request(self, task_service):
        task_id = task_service.create_task("CONTA_NOVA", house="KTO", quantity=5)
        task = task_service.get_task(task_id)

        assert task.account_name == "N/A"
        assert task.quantity == 5
        assert task.status == TaskStatus.SOLICITADA

    def test_new_account_quantity_defaults_to_one(self, task_service):
        task_id = task_service.create_task("CONTA_NOVA", house="KTO")
        assert task_service.get_task(task_id).quantity == 1

    def test_unknown_account_id_is_recorded(self, task_service):
        task_id = task_service.create_task("SMS", house="KTO", account=AccountById("gone"))
        assert task_service.get_task(task_id).account_name == "Desconhecida"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"task_type": "SAQUE", "house": "Betano"},
            {"task_type": "OUTRO", "house": "Betano"},
            {"task_type": "CONTA_NOVA"},
            {"task_type": "CONTA_NOVA", "house": "KTO", "quantity": 0},
        ],
    )
    def test_validation_writes_nothing(self, task_service, temp_store, kwargs):
        with pytest.raises(ValidationError):
            task_service.create_task(**kwargs)
        assert temp_store.list_all(TASKS) == []

    def test_withdrawal_uses_default_pix_key(self, task_service, pix_service, sample_account):
        key_id = pix_service.add_key("Principal", "Nubank", "EMAIL", "pix@mail.com")
        pix_service.set_default(key_id)

        task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))

        assert task_service.get_task(task_id).pix_key_info == "Chave Pix (Principal - Nubank): pix@mail.com"


class TestStatus:
    def test_status_change_is_logged(self, task_service, sample_account, temp_store):
        task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))

        task = task_service.set_status(task_id, TaskStatus.SOLICITADA)

        assert task.status == TaskStatus.SOLICITADA
        assert "Status alterado: Pendente → Solicitada" in _logs_for(temp_store, task_id)

    def test_finish_stamps_resolution(self, task_service, sample_account, admin_user):
        task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))

        task = task_service.set_status(task_id, TaskStatus.FINALIZADA)

        assert task.resolved_at is not None
        assert task.finished_by == admin_user.id

    def test_finish_touches_linked_account(self, task_service, sample_account, temp_store):
        task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))
        before = temp_store.get_one(ACCOUNTS, sample_account.id)["updatedAt"]

        task_service.set_status(task_id, TaskStatus.FINALIZADA)

        assert temp_store.get_one(ACCOUNTS, sample_account.id)["updatedAt"] >= before

    def test_disallowed_transition(self, task_service, sample_account):
        task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))
        task_service.set_status(task_id, TaskStatus.FINALIZADA)

        with pytest.raises(ValidationError):
            task_service.set_status(task_id, TaskStatus.EXCLUIDA)

    def test_kfb_must_name_an_agent(self, temp_store, snapshot, kfb_user, agency_user, sample_account):
        service = TaskService(temp_store, snapshot, kfb_user)
        task_id = service.create_task("SAQUE", account=AccountById(sample_account.id))

        with pytest.raises(ValidationError):
            service.set_status(task_id, TaskStatus.FINALIZADA)

        task = service.set_status(task_id, TaskStatus.FINALIZADA, agent_id=agency_user.id)
        assert task.finished_by == agency_user.id
        assert _logs_for(temp_store, task_id)[-1].endswith("(Realizado por: Agencia)")


class TestDeleteRestore:
    def test_delete_then_restore(self, task_service, sample_account, temp_store):
        task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))

        task = task_service.delete_task(task_id, "dup")
        assert task.status == TaskStatus.EXCLUIDA
        assert task.deletion_reason == "dup"

        task = task_service.restore_task(task_id)
        assert task.status == TaskStatus.PENDENTE
        assert "Solicitação excluída. Motivo: dup" in _logs_for(temp_store, task_id)

        # Normal transitions work again
        assert task_service.set_status(task_id, TaskStatus.SOLICITADA).status == TaskStatus.SOLICITADA

    def test_delete_without_reason(self, task_service, sample_account, temp_store):
        task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))
        task_service.delete_task(task_id)
        assert "Solicitação excluída. Motivo: Não informado" in _logs_for(temp_store, task_id)

    def test_list_hides_deleted(self, task_service, sample_account):
        kept = task_service.create_task("SAQUE", account=AccountById(sample_account.id))
        deleted = task_service.create_task("SMS", account=AccountById(sample_account.id))
        task_service.delete_task(deleted)

        assert [t.id for t in task_service.list_tasks()] == [kept]
        assert {t.id for t in task_service.list_tasks(include_deleted=True)} == {kept, deleted}
        assert [t.id for t in task_service.list_tasks(status=TaskStatus.EXCLUIDA)] == [deleted]


def test_reorder_swaps_only_the_two_tasks(task_service, sample_account, temp_store):
    a = task_service.create_task("SAQUE", account=AccountById(sample_account.id))
    b = task_service.create_task("SMS", account=AccountById(sample_account.id))
    c = task_service.create_task("DEPOSITO", account=AccountById(sample_account.id))
    temp_store.update(TASKS, a, {"orderIndex": 10})
    temp_store.update(TASKS, b, {"orderIndex": 20})
    c_order = temp_store.get_one(TASKS, c)["orderIndex"]

    assert task_service.reorder(a, b) is True

    assert temp_store.get_one(TASKS, a)["orderIndex"] == 20
    assert temp_store.get_one(TASKS, b)["orderIndex"] == 10
    assert temp_store.get_one(TASKS, c)["orderIndex"] == c_order


def test_list_orders_by_order_index(task_service, sample_account, temp_store):
    a = task_service.create_task("SAQUE", account=AccountById(sample_account.id))
    b = task_service.create_task("SMS", account=AccountById(sample_account.id))
    temp_store.update(TASKS, a, {"orderIndex": 50})
    temp_store.update(TASKS, b, {"orderIndex": 5})

    assert [t.id for t in task_service.list_tasks()] == [a, b]


def test_edit_task_logs_pix_separately(task_service, sample_account, temp_store):
    task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))

    task = task_service.edit_task(task_id, {"pix_key_info": "Chave Pix (Manual): 123", "description": "urgente"})

    assert task.pix_key_info == "Chave Pix (Manual): 123"
    actions = _logs_for(temp_store, task_id)
    assert "Chave Pix atualizada." in actions
    assert "Pendência editada: description." in actions


def test_edit_task_rejects_unknown_fields(task_service, sample_account):
    task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))
    with pytest.raises(ValidationError):
        task_service.edit_task(task_id, {"status": "FINALIZADA"})


class TestDelivery:
    def test_partial_delivery(self, task_service, pack_service, temp_store):
        pack_id = pack_service.create_pack("KTO", 10, Decimal("1000"))
        task_id = task_service.create_task("CONTA_NOVA", house="KTO", quantity=5)

        task = task_service.finish_new_account_delivery(task_id, _delivered(3), pack_id=pack_id)

        accounts = temp_store.query(ACCOUNTS, {"taskIdSource": task_id})
        assert len(accounts) == 3
        assert all(doc["status"] == AccountStatus.ACTIVE.value for doc in accounts)
        assert all(doc["house"] == "KTO" for doc in accounts)
        assert task.quantity == 2
        assert task.status == TaskStatus.SOLICITADA
        assert "Entregues: 3. Restantes: 2." in _logs_for(temp_store, task_id)
        assert pack_service.get_pack(pack_id).delivered == 3

    def test_full_delivery(self, task_service, pack_service, temp_store, admin_user):
        pack_id = pack_service.create_pack("KTO", 5, Decimal("500"))
        task_id = task_service.create_task("CONTA_NOVA", house="KTO", quantity=5)

        task = task_service.finish_new_account_delivery(task_id, _delivered(5), pack_id=pack_id)

        assert task.status == TaskStatus.FINALIZADA
        assert task.resolved_at is not None
        assert task.finished_by == admin_user.id
        pack = pack_service.get_pack(pack_id)
        assert pack.delivered == 5
        assert pack.status.value == "COMPLETED"
        assert "Tarefa concluída. 5 contas entregues." in _logs_for(temp_store, task_id)

    def test_admin_may_deliver_without_pack(self, task_service, temp_store):
        task_id = task_service.create_task("CONTA_NOVA", house="KTO", quantity=1)
        task = task_service.finish_new_account_delivery(task_id, _delivered(1))
        assert task.status == TaskStatus.FINALIZADA

    def test_non_admin_needs_active_pack(self, temp_store, snapshot, regular_user):
        service = TaskService(temp_store, snapshot, regular_user)
        task_id = service.create_task("CONTA_NOVA", house="KTO", quantity=1)

        with pytest.raises(ValidationError):
            service.finish_new_account_delivery(task_id, _delivered(1))
        assert temp_store.list_all(ACCOUNTS) == []

    def test_entries_need_name_and_email(self, task_service, temp_store):
        task_id = task_service.create_task("CONTA_NOVA", house="KTO", quantity=1)
        with pytest.raises(ValidationError):
            task_service.finish_new_account_delivery(task_id, [DeliveredAccount(name="X", email="")])
        assert temp_store.list_all(ACCOUNTS) == []

    def test_only_new_account_tasks(self, task_service, sample_account):
        task_id = task_service.create_task("SAQUE", account=AccountById(sample_account.id))
        with pytest.raises(ValidationError):
            task_service.finish_new_account_delivery(task_id, _delivered(1))

    def test_unknown_pack(self, task_service):
        task_id = task_service.create_task("CONTA_NOVA", house="KTO", quantity=1)
        with pytest.raises(NotFoundError):
            task_service.finish_new_account_delivery(task_id, _delivered(1), pack_id="missing")

    def test_pack_must_match_task_house(self, temp_store, snapshot, regular_user, pack_service):
        pack_id = pack_service.create_pack("Betano", 3, Decimal("300"))
        service = TaskService(temp_store, snapshot, regular_user)
        task_id = service.create_task("CONTA_NOVA", house="KTO", quantity=1)

        with pytest.raises(ValidationError):
            service.finish_new_account_delivery(task_id, _delivered(1), pack_id=pack_id)

        assert temp_store.list_all(ACCOUNTS) == []
        assert snapshot.pack(pack_id).delivered == 0
        assert snapshot.task(task_id).status == TaskStatus.SOLICITADA


def test_stale_task_id_is_a_no_op(task_service, temp_store):
    before = {name: temp_store.list_all(name) for name in (TASKS, ACCOUNTS, LOGS)}

    assert task_service.set_status("missing", TaskStatus.FINALIZADA) is None
    assert task_service.restore_task("missing") is None
    assert task_service.edit_task("missing", {"description": "x"}) is None
    assert task_service.delete_task("missing", "dup") is None
    assert task_service.reorder("missing", "other") is False
    assert task_service.finish_new_account_delivery("missing", _delivered(1)) is None

    assert {name: temp_store.list_all(name) for name in (TASKS, ACCOUNTS, LOGS)} == before
