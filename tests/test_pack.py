"""Tests for pack inventory."""

from decimal import Decimal

import pytest

from housedesk.domain.constants import LOGS, PACKS
from housedesk.domain.entities import PackStatus
from housedesk.domain.errors import AuthorizationError, ValidationError
from housedesk.domain.pack import PackService, derive_status


@pytest.mark.parametrize(
    "delivered, quantity, expected",
    [
        (0, 5, PackStatus.ACTIVE),
        (4, 5, PackStatus.ACTIVE),
        (5, 5, PackStatus.COMPLETED),
        (6, 5, PackStatus.COMPLETED),
    ],
)
def test_derive_status(delivered, quantity, expected):
    assert derive_status(delivered, quantity) == expected


def test_create_pack(pack_service, temp_store):
    pack_id = pack_service.create_pack("Betano", 10, Decimal("1500"))
    pack = pack_service.get_pack(pack_id)

    assert pack.house == "Betano"
    assert pack.quantity == 10
    assert pack.delivered == 0
    assert pack.price == Decimal("1500")
    assert pack.status == PackStatus.ACTIVE

    logs = temp_store.query(LOGS, {"taskId": pack_id})
    assert len(logs) == 1
    assert logs[0]["action"] == "Novo pack criado: 10 contas"
    assert logs[0]["taskDescription"] == "Pack Betano"


@pytest.mark.parametrize(
    "house, quantity, price",
    [("", 5, Decimal("10")), ("Betano", 0, Decimal("10")), ("Betano", 5, Decimal("-1"))],
)
def test_create_pack_validation(pack_service, temp_store, house, quantity, price):
    with pytest.raises(ValidationError):
        pack_service.create_pack(house, quantity, price)
    assert temp_store.list_all(PACKS) == []


def test_bump_delivered_completes_pack(pack_service, sample_pack):
    pack = pack_service.bump_delivered(sample_pack.id, 3)
    assert pack.delivered == 3
    assert pack.status == PackStatus.ACTIVE

    pack = pack_service.bump_delivered(sample_pack.id, 1)
    assert pack.delivered == 4
    assert pack.status == PackStatus.COMPLETED


def test_bump_delivered_uses_latest_stored_count(pack_service, sample_pack, temp_store, snapshot):
    """Two services acting on the same snapshot never lose an increment."""
    other = PackService(temp_store, snapshot, pack_service.actor)

    pack_service.bump_delivered(sample_pack.id, 2)
    other.bump_delivered(sample_pack.id, 2)

    assert temp_store.get_one(PACKS, sample_pack.id)["delivered"] == 4
    assert snapshot.pack(sample_pack.id).status == PackStatus.COMPLETED


def test_reverse_delivery_floors_at_zero(pack_service, sample_pack):
    pack = pack_service.reverse_delivery(sample_pack.id)
    assert pack.delivered == 0
    assert pack.status == PackStatus.ACTIVE


def test_reverse_delivery_reopens_completed_pack(pack_service, sample_pack):
    pack_service.bump_delivered(sample_pack.id, 4)

    pack = pack_service.reverse_delivery(sample_pack.id)

    assert pack.delivered == 3
    assert pack.status == PackStatus.ACTIVE


def test_edit_pack_recomputes_status(pack_service, sample_pack):
    pack = pack_service.edit_pack(sample_pack.id, delivered=1, status=PackStatus.COMPLETED)
    assert pack.status == PackStatus.ACTIVE

    pack = pack_service.edit_pack(sample_pack.id, quantity=1)
    assert pack.delivered == 1
    assert pack.status == PackStatus.COMPLETED


def test_edit_pack_requires_admin(temp_store, snapshot, sample_pack, regular_user):
    service = PackService(temp_store, snapshot, regular_user)
    with pytest.raises(AuthorizationError):
        service.edit_pack(sample_pack.id, quantity=10)


def test_unknown_pack_is_a_no_op(pack_service, temp_store):
    before = temp_store.list_all(LOGS)

    assert pack_service.bump_delivered("missing", 1) is None
    assert pack_service.reverse_delivery("missing") is None
    assert pack_service.edit_pack("missing", quantity=3) is None

    assert temp_store.list_all(PACKS) == []
    assert temp_store.list_all(LOGS) == before


def test_list_packs_active_only(pack_service, sample_pack):
    full_id = pack_service.create_pack("KTO", 1, Decimal("50"))
    pack_service.bump_delivered(full_id, 1)

    assert [p.id for p in pack_service.list_packs(active_only=True)] == [sample_pack.id]
    assert {p.id for p in pack_service.list_packs()} == {sample_pack.id, full_id}
    assert [p.id for p in pack_service.list_packs(house="KTO")] == [full_id]
