"""Tests for the push-refreshed snapshot."""

import logging

from housedesk.database.base import PermissionDeniedError
from housedesk.domain.constants import ACCOUNTS, CONFIG_HOUSES, TASKS
from housedesk.domain.snapshot import Snapshot


def test_snapshot_follows_writes(temp_store, snapshot):
    account_id = temp_store.insert(ACCOUNTS, {"name": "Maria", "email": "m@mail.com", "house": "Betano", "status": "ACTIVE"})

    assert snapshot.account(account_id).name == "Maria"
    assert snapshot.find_account("Maria", "Betano").id == account_id
    assert snapshot.find_account("Maria", "KTO") is None

    temp_store.delete(ACCOUNTS, account_id)
    assert snapshot.account(account_id) is None


def test_stopped_snapshot_no_longer_updates(temp_store):
    snap = Snapshot(temp_store).start()
    snap.stop()

    temp_store.insert(TASKS, {"type": "SMS", "house": "KTO", "status": "PENDENTE"})

    assert snap.tasks == []


def test_houses_default_order(temp_store, snapshot):
    temp_store.insert(CONFIG_HOUSES, {"name": "B", "order": 2})
    temp_store.insert(CONFIG_HOUSES, {"name": "A"})

    assert [h.name for h in snapshot.houses] == ["A", "B"]


def test_permission_denied_is_logged_as_warning(temp_store, caplog):
    snap = Snapshot(temp_store)
    with caplog.at_level(logging.WARNING):
        snap._report(TASKS)(PermissionDeniedError("denied"))

    assert any(r.levelno == logging.WARNING and "Permission denied for tasks" in r.getMessage() for r in caplog.records)
