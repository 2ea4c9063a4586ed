"""In-memory projections of the store, refreshed by push notifications."""

import logging
from typing import Callable, Optional

from housedesk.database.base import Document, DocumentStore, PermissionDeniedError
from housedesk.database.mappers import (
    account_from_doc,
    house_from_doc,
    log_entry_from_doc,
    pack_from_doc,
    pix_key_from_doc,
    task_from_doc,
    task_type_from_doc,
    user_from_doc,
)
from housedesk.domain.constants import (
    ACCOUNTS,
    CONFIG_HOUSES,
    CONFIG_TYPES,
    LOGS,
    PACKS,
    PIX_KEYS,
    TASK_TYPE_LABELS,
    TASKS,
    USERS,
)
from housedesk.domain.entities import (
    Account,
    House,
    LogEntry,
    Pack,
    PixKey,
    Task,
    TaskTypeConfig,
    User,
)

logger = logging.getLogger(__name__)

SUBSCRIBED_COLLECTIONS = (TASKS, ACCOUNTS, PACKS, LOGS, PIX_KEYS, USERS, CONFIG_HOUSES, CONFIG_TYPES)


def task_display_key(task: Task) -> tuple[int, float]:
    """Sort key for display: newest orderIndex first, then newest createdAt."""
    created = task.created_at.timestamp() if task.created_at else 0.0
    return (-(task.order_index or 0), -created)


class Snapshot:
    """Read-only local copy of every collection the services act on.

    The store pushes the full document set of a collection after each change,
    so a snapshot is eventually consistent with the store. Services decide
    what to write from it; they never write to it.
    """

    def __init__(self, db: DocumentStore):
        self.db = db
        self._docs: dict[str, dict[str, Document]] = {name: {} for name in SUBSCRIBED_COLLECTIONS}
        self._unsubscribers: list[Callable[[], None]] = []

    def start(self) -> "Snapshot":
        """Subscribe to every collection."""
        if not self._unsubscribers:
            for collection in SUBSCRIBED_COLLECTIONS:
                self._unsubscribers.append(
                    self.db.subscribe(
                        collection,
                        self._replace(collection),
                        self._report(collection),
                    )
                )
        return self

    def stop(self) -> None:
        """Cancel every subscription."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def __enter__(self) -> "Snapshot":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _replace(self, collection: str) -> Callable[[list[Document]], None]:
        def on_change(documents: list[Document]) -> None:
            self._docs[collection] = {doc["id"]: doc for doc in documents}

        return on_change

    def _report(self, collection: str) -> Callable[[Exception], None]:
        def on_error(error: Exception) -> None:
            if isinstance(error, PermissionDeniedError):
                logger.warning("Permission denied for %s; check the store access rules", collection)
            else:
                logger.error("Failed to load %s: %s", collection, error)

        return on_error

    # Collections
    @property
    def tasks(self) -> list[Task]:
        """Tasks in display order."""
        return sorted((task_from_doc(doc) for doc in self._docs[TASKS].values()), key=task_display_key)

    @property
    def accounts(self) -> list[Account]:
        return [account_from_doc(doc) for doc in self._docs[ACCOUNTS].values()]

    @property
    def packs(self) -> list[Pack]:
        return [pack_from_doc(doc) for doc in self._docs[PACKS].values()]

    @property
    def pix_keys(self) -> list[PixKey]:
        return [pix_key_from_doc(doc) for doc in self._docs[PIX_KEYS].values()]

    @property
    def users(self) -> list[User]:
        return [user_from_doc(doc) for doc in self._docs[USERS].values()]

    @property
    def logs(self) -> list[LogEntry]:
        """Log entries, newest first."""
        entries = [log_entry_from_doc(doc) for doc in self._docs[LOGS].values()]
        return sorted(entries, key=lambda entry: entry.timestamp.timestamp() if entry.timestamp else 0.0, reverse=True)

    @property
    def houses(self) -> list[House]:
        return sorted((house_from_doc(doc) for doc in self._docs[CONFIG_HOUSES].values()), key=lambda h: h.order)

    @property
    def task_types(self) -> list[TaskTypeConfig]:
        """Configured task types, or the built-in set while none is stored."""
        stored = [task_type_from_doc(doc) for doc in self._docs[CONFIG_TYPES].values()]
        if not stored:
            return [
                TaskTypeConfig(id="", label=label, value=value, order=index)
                for index, (value, label) in enumerate(TASK_TYPE_LABELS.items())
            ]
        return sorted(stored, key=lambda t: t.order)

    # Lookups
    def task(self, task_id: str) -> Optional[Task]:
        doc = self._docs[TASKS].get(task_id)
        return task_from_doc(doc) if doc is not None else None

    def account(self, account_id: str) -> Optional[Account]:
        doc = self._docs[ACCOUNTS].get(account_id)
        return account_from_doc(doc) if doc is not None else None

    def pack(self, pack_id: str) -> Optional[Pack]:
        doc = self._docs[PACKS].get(pack_id)
        return pack_from_doc(doc) if doc is not None else None

    def pix_key(self, pix_key_id: str) -> Optional[PixKey]:
        doc = self._docs[PIX_KEYS].get(pix_key_id)
        return pix_key_from_doc(doc) if doc is not None else None

    def user(self, user_id: str) -> Optional[User]:
        doc = self._docs[USERS].get(user_id)
        return user_from_doc(doc) if doc is not None else None

    def find_account(self, name: Optional[str], house: str) -> Optional[Account]:
        """Resolve a name/house snapshot link to an account, if one matches."""
        if not name:
            return None
        for account in self.accounts:
            if account.name == name and account.house == house:
                return account
        return None

    def task_type_label(self, value: str) -> str:
        """Human label of a task type, falling back to its raw value."""
        for task_type in self.task_types:
            if task_type.value == value:
                return task_type.label
        return TASK_TYPE_LABELS.get(value, value)
