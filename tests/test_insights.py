"""Tests for account analytics."""

from datetime import date
from decimal import Decimal

import pytest

from housedesk.domain.constants import ACCOUNTS, PACKS
from housedesk.domain.errors import AuthorizationError, ValidationError
from housedesk.domain.insights import InsightsService


@pytest.fixture
def insights(snapshot, admin_user):
    return InsightsService(snapshot, admin_user)


@pytest.fixture
def seeded(temp_store):
    pack_id = temp_store.insert(PACKS, {"house": "Betano", "quantity": 4, "delivered": 3, "price": 100.0, "status": "ACTIVE"})
    empty_pack = temp_store.insert(PACKS, {"house": "KTO", "quantity": 0, "delivered": 0, "price": 50.0, "status": "COMPLETED"})

    def account(name, house, status, created, limited=None, pack=None):
        fields = {"name": name, "email": f"{name}@mail.com", "house": house, "status": status, "createdAt": created}
        if limited:
            fields["limitedAt"] = limited
        if pack:
            fields["packId"] = pack
        return temp_store.insert(ACCOUNTS, fields)

    account("a", "Betano", "LIMITED", "2024-01-01T10:00:00+00:00", "2024-01-03T09:00:00+00:00", pack_id)
    account("b", "Betano", "LIMITED", "2024-01-05T10:00:00+00:00", "2024-01-10T11:00:00+00:00", pack_id)
    account("c", "Betano", "ACTIVE", "2024-02-01T10:00:00+00:00", pack=pack_id)
    account("d", "KTO", "LIMITED", "2024-02-10T10:00:00+00:00", "2024-02-20T10:00:00+00:00", empty_pack)
    account("e", "KTO", "DELETED", "2024-02-10T10:00:00+00:00", "2024-03-20T10:00:00+00:00", pack_id)
    return pack_id


def test_report(insights, seeded):
    report = insights.report()

    assert report.account_count == 4
    assert report.total_cost == Decimal("75")
    assert report.status_counts == {"LIMITED": 3, "ACTIVE": 1}
    # Betano: ceil(1.96)=2 and ceil(5.04)=6 -> 4; KTO: 10
    assert [(l.house, l.average_days, l.count) for l in report.lifetimes] == [("KTO", 10, 1), ("Betano", 4, 2)]


def test_house_filter(insights, seeded):
    report = insights.report(house="KTO")
    assert report.account_count == 1
    assert report.total_cost == Decimal("0")


def test_date_range_is_inclusive(insights, seeded):
    report = insights.report(start=date(2024, 1, 1), end=date(2024, 1, 5))
    assert report.account_count == 2


def test_limited_at_field(insights, seeded):
    assert insights.report(date_field="limitedAt").account_count == 3
    assert insights.report(date_field="limitedAt", start=date(2024, 1, 10), end=date(2024, 1, 31)).account_count == 1


def test_invalid_arguments(insights, seeded):
    with pytest.raises(ValidationError):
        insights.report(date_field="updatedAt")
    with pytest.raises(ValidationError):
        insights.report(start=date(2024, 2, 1), end=date(2024, 1, 1))


def test_only_admins_see_insights(snapshot, kfb_user):
    with pytest.raises(AuthorizationError):
        InsightsService(snapshot, kfb_user).report()
