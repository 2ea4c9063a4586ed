"""Tests for document mappers."""

from datetime import datetime, UTC
from decimal import Decimal

from housedesk.database.mappers import (
    account_from_doc,
    compact,
    house_from_doc,
    pack_from_doc,
    task_from_doc,
    task_type_from_doc,
    user_from_doc,
    user_to_doc,
)
from housedesk.domain.entities import AccountStatus, PackStatus, Role, TaskStatus


class TestTaskMapper:
    """Tests for the task mapper."""

    def test_full_document(self):
        task = task_from_doc(
            {
                "id": "t1",
                "type": "SAQUE",
                "house": "Betano",
                "status": "SOLICITADA",
                "createdAt": "2024-03-01T10:00:00Z",
                "updatedAt": "2024-03-02T10:00:00+00:00",
                "accountName": "Maria",
                "quantity": "2",
                "orderIndex": 5,
            }
        )

        assert task.status == TaskStatus.SOLICITADA
        assert task.created_at == datetime(2024, 3, 1, 10, tzinfo=UTC)
        assert task.quantity == 2
        assert task.order_index == 5
        assert task.resolved_at is None

    def test_missing_fields_get_defaults(self):
        task = task_from_doc({"id": "t2", "deletionReason": ""})

        assert task.status == TaskStatus.PENDENTE
        assert task.order_index is None
        assert task.deletion_reason is None
        assert task.created_at is None


class TestAccountMapper:
    """Tests for the account mapper."""

    def test_money_and_tags(self):
        account = account_from_doc(
            {"id": "a1", "name": "Ana", "depositValue": 50.1, "tags": ["vip"], "status": "LIMITED", "packId": ""}
        )

        assert account.deposit_value == Decimal("50.1")
        assert account.tags == ("vip",)
        assert account.status == AccountStatus.LIMITED
        assert account.pack_id is None

    def test_missing_deposit_is_zero(self):
        assert account_from_doc({"id": "a2"}).deposit_value == Decimal("0")


def test_pack_from_doc():
    pack = pack_from_doc({"id": "p1", "house": "KTO", "quantity": 3, "delivered": 1, "price": 300})

    assert pack.status == PackStatus.ACTIVE
    assert pack.price == Decimal("300")
    assert pack.delivered == 1


def test_user_round_trip_drops_empty_default_key():
    doc = {"id": "u1", "name": "Ana", "username": "ana", "email": "ana@mail.com", "role": "KFB"}
    user = user_from_doc(doc)

    assert user.role == Role.KFB
    assert user_to_doc(user) == doc


def test_config_orders():
    assert house_from_doc({"id": "h1", "name": "KTO"}).order == 0
    assert task_type_from_doc({"id": "c1", "label": "Sms", "value": "SMS"}).order == 999


def test_compact():
    assert compact({"a": 1, "b": None, "c": ""}) == {"a": 1, "c": ""}
