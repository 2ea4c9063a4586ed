"""House and task type configuration service."""

import logging
import re

from housedesk.database.base import BatchOperation, DocumentStore
from housedesk.domain.activity_log import ActivityLog
from housedesk.domain.authorization import Action, require
from housedesk.domain.constants import CONFIG_HOUSES, CONFIG_TYPES, DEFAULT_HOUSES, TASK_TYPE_LABELS
from housedesk.domain.entities import House, TaskTypeConfig, User
from housedesk.domain.errors import ConflictError, ValidationError
from housedesk.domain.snapshot import Snapshot

logger = logging.getLogger(__name__)


def type_value_from_label(label: str) -> str:
    """Derive a task type value: upper-cased label, whitespace runs as '_'."""
    return re.sub(r"\s+", "_", label.strip().upper())


class ConfigService:
    """Service for the ordered house and task type lists."""

    def __init__(self, db: DocumentStore, snapshot: Snapshot, actor: User):
        self.db = db
        self.snapshot = snapshot
        self.actor = actor
        self.log = ActivityLog(db, actor)

    # Houses
    def list_houses(self) -> list[House]:
        return self.snapshot.houses

    def add_house(self, name: str) -> str:
        """Append a house to the list.

        Raises:
            ValidationError: If the name is empty
            ConflictError: If the house already exists
        """
        require(Action.MANAGE_SETTINGS, self.actor)
        name = (name or "").strip()
        if not name:
            raise ValidationError("House name is required")
        houses = self.snapshot.houses
        if any(h.name == name for h in houses):
            raise ConflictError(f"House '{name}' already exists")

        order = max((h.order for h in houses), default=-1) + 1
        house_id = self.db.insert(CONFIG_HOUSES, {"name": name, "order": order})
        self.log.system("Configuração: Casas", f"Adicionou a casa: {name}")
        return house_id

    def remove_house(self, name: str) -> int:
        """Remove every house document with that name. Returns how many."""
        require(Action.MANAGE_SETTINGS, self.actor)
        matches = self.db.query(CONFIG_HOUSES, {"name": name})
        if not matches:
            return 0
        self.db.atomic_batch([BatchOperation.delete(CONFIG_HOUSES, doc["id"]) for doc in matches])
        self.log.system("Configuração: Casas", f"Removeu a casa: {name}")
        return len(matches)

    def reorder_houses(self, names: list[str]) -> int:
        """Store a new house order given the full list of names.

        Names with no stored house are skipped. Returns how many were written.
        """
        require(Action.MANAGE_SETTINGS, self.actor)
        by_name = {h.name: h for h in self.snapshot.houses}
        operations = [
            BatchOperation.update(CONFIG_HOUSES, by_name[name].id, {"order": index})
            for index, name in enumerate(names)
            if name in by_name
        ]
        self.db.atomic_batch(operations)
        return len(operations)

    # Task types
    def list_task_types(self) -> list[TaskTypeConfig]:
        return self.snapshot.task_types

    def add_task_type(self, label: str) -> str:
        """Add a task type; its value is derived from the label.

        Raises:
            ValidationError: If the label is empty
            ConflictError: If a stored type already has that value
        """
        require(Action.MANAGE_SETTINGS, self.actor)
        label = (label or "").strip()
        if not label:
            raise ValidationError("Task type label is required")
        value = type_value_from_label(label)
        stored = [t for t in self.snapshot.task_types if t.id]
        if any(t.value == value for t in stored):
            raise ConflictError(f"Task type '{value}' already exists")

        order = max((t.order for t in stored), default=-1) + 1
        type_id = self.db.insert(CONFIG_TYPES, {"label": label, "value": value, "order": order})
        self.log.system("Configuração: Tipos", f"Adicionou o tipo: {label}")
        return type_id

    def remove_task_type(self, value: str) -> int:
        """Remove every task type document with that value. Returns how many."""
        require(Action.MANAGE_SETTINGS, self.actor)
        matches = self.db.query(CONFIG_TYPES, {"value": value})
        if not matches:
            return 0
        self.db.atomic_batch([BatchOperation.delete(CONFIG_TYPES, doc["id"]) for doc in matches])
        self.log.system("Configuração: Tipos", f"Removeu o tipo: {matches[0].get('label', value)}")
        return len(matches)

    def reorder_task_types(self, values: list[str]) -> int:
        """Store a new task type order given the full list of values.

        Returns how many were written.
        """
        require(Action.MANAGE_SETTINGS, self.actor)
        by_value = {t.value: t for t in self.snapshot.task_types if t.id}
        operations = [
            BatchOperation.update(CONFIG_TYPES, by_value[value].id, {"order": index})
            for index, value in enumerate(values)
            if value in by_value
        ]
        self.db.atomic_batch(operations)
        return len(operations)

    def restore_defaults(self) -> tuple[int, int]:
        """Replace every house and task type with the built-in sets.

        Destructive: callers must obtain an explicit confirmation first.

        Returns:
            (houses written, task types written)
        """
        require(Action.RESTORE_DEFAULTS, self.actor)
        operations = [BatchOperation.delete(CONFIG_HOUSES, doc["id"]) for doc in self.db.list_all(CONFIG_HOUSES)]
        operations += [BatchOperation.delete(CONFIG_TYPES, doc["id"]) for doc in self.db.list_all(CONFIG_TYPES)]
        operations += [
            BatchOperation.insert(CONFIG_HOUSES, {"name": name, "order": index})
            for index, name in enumerate(DEFAULT_HOUSES)
        ]
        operations += [
            BatchOperation.insert(CONFIG_TYPES, {"label": label, "value": value, "order": index})
            for index, (value, label) in enumerate(TASK_TYPE_LABELS.items())
        ]
        self.db.atomic_batch(operations)
        logger.info("Restored default houses and task types")
        self.log.system("Configuração", "Casas e tipos de pendência restaurados para o padrão")
        return len(DEFAULT_HOUSES), len(TASK_TYPE_LABELS)
