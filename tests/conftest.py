"""Shared pytest fixtures for housedesk tests."""

import os
from decimal import Decimal
import tempfile

import pytest

from housedesk.auth import AuthService, LocalAuthProvider
from housedesk.database.base import BatchOperation
from housedesk.database.factories import create_sqlite_store
from housedesk.database.mappers import user_to_doc
from housedesk.domain.account import AccountService
from housedesk.domain.admin import AdminService
from housedesk.domain.config import ConfigService
from housedesk.domain.constants import USERS
from housedesk.domain.entities import AccountDraft, Role, User
from housedesk.domain.pack import PackService
from housedesk.domain.pix import PixKeyService
from housedesk.domain.snapshot import Snapshot
from housedesk.domain.task import TaskService


@pytest.fixture
def temp_store():
    """Create a temporary document store for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    store.database_path = db_path
    store.connect()
    store.initialize_schema()

    yield store

    store.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def snapshot(temp_store):
    """A started snapshot of the temporary store."""
    with Snapshot(temp_store) as snap:
        yield snap


def _seed_user(store, user_id: str, name: str, role: Role) -> User:
    user = User(id=user_id, name=name, username=name.lower(), email=f"{name.lower()}@example.com", role=role)
    store.atomic_batch([BatchOperation.insert_with_id(USERS, user.id, user_to_doc(user))])
    return user


@pytest.fixture
def admin_user(temp_store, snapshot):
    """An ADMIN profile."""
    return _seed_user(temp_store, "admin-1", "Admin", Role.ADMIN)


@pytest.fixture
def regular_user(temp_store, snapshot):
    """A USER profile."""
    return _seed_user(temp_store, "user-1", "Operador", Role.USER)


@pytest.fixture
def kfb_user(temp_store, snapshot):
    """A KFB profile."""
    return _seed_user(temp_store, "kfb-1", "Supervisor", Role.KFB)


@pytest.fixture
def agency_user(temp_store, snapshot):
    """An AGENCIA profile, nameable as the agent finishing a task."""
    return _seed_user(temp_store, "agencia-1", "Agencia", Role.AGENCIA)


@pytest.fixture
def pack_service(temp_store, snapshot, admin_user):
    """PackService acting as an admin."""
    return PackService(temp_store, snapshot, admin_user)


@pytest.fixture
def task_service(temp_store, snapshot, admin_user):
    """TaskService acting as an admin."""
    return TaskService(temp_store, snapshot, admin_user)


@pytest.fixture
def account_service(temp_store, snapshot, admin_user):
    """AccountService acting as an admin."""
    return AccountService(temp_store, snapshot, admin_user)


@pytest.fixture
def pix_service(temp_store, snapshot, admin_user):
    """PixKeyService acting as an admin."""
    return PixKeyService(temp_store, snapshot, admin_user)


@pytest.fixture
def config_service(temp_store, snapshot, admin_user):
    """ConfigService acting as an admin."""
    return ConfigService(temp_store, snapshot, admin_user)


@pytest.fixture
def admin_service(temp_store, snapshot, admin_user):
    """AdminService acting as an admin."""
    return AdminService(temp_store, snapshot, admin_user)


@pytest.fixture
def auth_service(temp_store):
    """AuthService over the local credentials table."""
    return AuthService(temp_store, LocalAuthProvider(temp_store.session_factory))


@pytest.fixture
def sample_pack(pack_service):
    """An active Betano pack of 4 accounts."""
    pack_id = pack_service.create_pack("Betano", 4, Decimal("400"))
    return pack_service.get_pack(pack_id)


@pytest.fixture
def sample_account(account_service, snapshot):
    """An active Betano account with no pack."""
    account_id = account_service.save_account(AccountDraft(name="Maria", email="maria@mail.com", house="Betano"))
    return snapshot.account(account_id)


@pytest.fixture
def cli_credentials(auth_service, temp_store):
    """Register an admin who can sign in from the CLI. Returns the global options."""
    user = auth_service.register("Admin CLI", "admincli", "admin@cli.com", "secret123")
    temp_store.update(USERS, user.id, {"role": Role.ADMIN.value})
    return ["--db-path", temp_store.database_path, "--user", "admincli", "--password", "secret123"]


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
