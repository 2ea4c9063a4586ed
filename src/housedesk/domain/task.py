"""Task lifecycle domain service."""

import logging
import time
from typing import Any, Optional

from housedesk.database.base import BatchOperation, DocumentStore
from housedesk.database.mappers import compact, money_to_doc
from housedesk.domain.activity_log import ActivityLog
from housedesk.domain.authorization import Action, is_allowed
from housedesk.domain.constants import (
    ACCOUNTS,
    AUTO_REQUESTED_TYPES,
    NO_ACCOUNT_NAME,
    NOT_INFORMED,
    TASK_STATUS_LABELS,
    TASKS,
    UNKNOWN_ACCOUNT_NAME,
)
from housedesk.domain.entities import (
    AccountById,
    AccountRef,
    AccountSnapshot,
    AccountStatus,
    DeliveredAccount,
    PackStatus,
    Role,
    Task,
    TaskStatus,
    TaskType,
    User,
)
from housedesk.domain.errors import (
    NotFoundError,
    ValidationError,
    account_required,
    agent_required,
    description_required,
    house_required,
    pack_house_mismatch,
    pack_required,
)
from housedesk.domain.pack import PackService
from housedesk.domain.pix import PixKeyService
from housedesk.domain.snapshot import Snapshot
from housedesk.utils.timestamps import now_iso

logger = logging.getLogger(__name__)

# Allowed status changes; EXCLUIDA is left through a restore to PENDENTE
TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDENTE: frozenset({TaskStatus.SOLICITADA, TaskStatus.FINALIZADA, TaskStatus.EXCLUIDA}),
    TaskStatus.SOLICITADA: frozenset({TaskStatus.PENDENTE, TaskStatus.FINALIZADA, TaskStatus.EXCLUIDA}),
    TaskStatus.FINALIZADA: frozenset({TaskStatus.SOLICITADA}),
    TaskStatus.EXCLUIDA: frozenset({TaskStatus.PENDENTE}),
}

# Task attribute name -> stored field name, for edits
EDITABLE_FIELDS = {
    "type": "type",
    "house": "house",
    "account_name": "accountName",
    "quantity": "quantity",
    "description": "description",
    "pix_key_info": "pixKeyInfo",
}

ACCOUNTLESS_TYPES = frozenset({TaskType.CONTA_NOVA.value, TaskType.OUTRO.value})


def _order_index() -> int:
    """New tasks sort first: the order key is the creation time in ms."""
    return int(time.time() * 1000)


class TaskService:
    """Service for creating and moving tasks through their lifecycle.

    Every mutation looks the task up in the snapshot first; an id that is
    not there makes the call a silent no-op returning None.
    """

    def __init__(self, db: DocumentStore, snapshot: Snapshot, actor: User):
        """Initialize task service.

        Args:
            db: Document store instance
            snapshot: Local projection of the store
            actor: Acting user
        """
        self.db = db
        self.snapshot = snapshot
        self.actor = actor
        self.log = ActivityLog(db, actor)
        self.packs = PackService(db, snapshot, actor)

    def _label(self, task: Task) -> str:
        return f"{self.snapshot.task_type_label(task.type)} - {task.house}"

    def get_task(self, task_id: str) -> Optional[Task]:
        return self.snapshot.task(task_id)

    def list_tasks(self, status: Optional[TaskStatus] = None, include_deleted: bool = False) -> list[Task]:
        """List tasks in display order.

        Args:
            status: Only tasks in this status
            include_deleted: Include EXCLUIDA tasks when no status is given
        """
        tasks = self.snapshot.tasks
        if status is not None:
            return [t for t in tasks if t.status == status]
        if not include_deleted:
            tasks = [t for t in tasks if t.status != TaskStatus.EXCLUIDA]
        return tasks

    def create_task(
        self,
        task_type: str,
        house: Optional[str] = None,
        account: Optional[AccountRef] = None,
        quantity: Optional[int] = None,
        description: Optional[str] = None,
        pix_key_info: Optional[str] = None,
        status: Optional[TaskStatus] = None,
    ) -> str:
        """Create a task.

        Args:
            task_type: Request kind (a TaskType value or a configured type)
            house: Betting house; defaults to the account's house
            account: Target account, required unless the type is CONTA_NOVA or OUTRO
            quantity: Accounts requested (CONTA_NOVA only, default 1)
            description: Free text, required for OUTRO
            pix_key_info: Payout snapshot; withdrawals default to the actor's key
            status: Initial status; auto-requested types default to SOLICITADA

        Returns:
            Task ID

        Raises:
            ValidationError: If a required field is missing
        """
        task_type = getattr(task_type, "value", task_type)
        if not task_type:
            raise ValidationError("Task type is required")
        is_new_account = task_type == TaskType.CONTA_NOVA.value

        account_name = NO_ACCOUNT_NAME
        if isinstance(account, AccountById):
            linked = self.snapshot.account(account.id)
            if linked is not None:
                account_name = linked.name
                house = house or linked.house
            else:
                account_name = UNKNOWN_ACCOUNT_NAME
        elif isinstance(account, AccountSnapshot):
            account_name = account.name
            house = house or account.house
        elif task_type not in ACCOUNTLESS_TYPES:
            raise ValidationError(account_required())

        if is_new_account:
            account_name = NO_ACCOUNT_NAME
            quantity = 1 if quantity is None else quantity
            if quantity < 1:
                raise ValidationError("Quantity must be at least 1")
        else:
            quantity = None

        house = (house or "").strip()
        if not house:
            raise ValidationError(house_required())

        description = description.strip() if description else None
        if task_type == TaskType.OUTRO.value and not description:
            raise ValidationError(description_required())

        if pix_key_info is None and task_type == TaskType.SAQUE.value:
            pix_key_info = PixKeyService(self.db, self.snapshot, self.actor).default_payout_info()

        if status is None:
            status = TaskStatus.SOLICITADA if task_type in AUTO_REQUESTED_TYPES else TaskStatus.PENDENTE

        timestamp = now_iso()
        task_id = self.db.insert(
            TASKS,
            compact(
                {
                    "type": task_type,
                    "house": house,
                    "accountName": account_name,
                    "quantity": quantity,
                    "description": description,
                    "pixKeyInfo": pix_key_info,
                    "status": status.value,
                    "orderIndex": _order_index(),
                    "createdAt": timestamp,
                    "updatedAt": timestamp,
                }
            ),
        )
        logger.info("Created task %s (%s, %s)", task_id, task_type, status.value)
        self.log.record(
            task_id,
            f"{self.snapshot.task_type_label(task_type)} - {house}",
            f"Pendência criada ({TASK_STATUS_LABELS[status]})",
        )
        return task_id

    def set_status(self, task_id: str, new_status: TaskStatus, agent_id: Optional[str] = None) -> Optional[Task]:
        """Move a task to a new status.

        Finishing stamps resolvedAt and finishedBy (the named agent, else the
        actor). The linked account, if its name/house still match, gets its
        updatedAt touched.

        Returns:
            The updated task, or None if the task is unknown

        Raises:
            ValidationError: If the transition is not allowed, or a KFB actor
                finishes without naming an agent
        """
        task = self.snapshot.task(task_id)
        if task is None:
            return None

        new_status = TaskStatus(new_status)
        if new_status not in TRANSITIONS[task.status]:
            raise ValidationError(
                f"Cannot move task from {TASK_STATUS_LABELS[task.status]} to {TASK_STATUS_LABELS[new_status]}"
            )
        if new_status == TaskStatus.FINALIZADA and self.actor.role == Role.KFB and not agent_id:
            raise ValidationError(agent_required())

        timestamp = now_iso()
        payload: dict[str, Any] = {"status": new_status.value, "updatedAt": timestamp}
        if new_status == TaskStatus.FINALIZADA:
            payload["resolvedAt"] = timestamp
            payload["finishedBy"] = agent_id or self.actor.id
        self.db.update(TASKS, task_id, payload)

        linked = self.snapshot.find_account(task.account_name, task.house)
        if linked is not None:
            self.db.update(ACCOUNTS, linked.id, {"updatedAt": timestamp})

        action = (
            f"Status alterado: {TASK_STATUS_LABELS[task.status]} → {TASK_STATUS_LABELS[new_status]}"
        )
        if agent_id:
            agent = self.snapshot.user(agent_id)
            action += f" (Realizado por: {agent.name if agent else 'Desconhecido'})"
        self.log.record(task_id, self._label(task), action)
        return self.snapshot.task(task_id)

    def restore_task(self, task_id: str) -> Optional[Task]:
        """Bring a deleted task back to PENDENTE."""
        return self.set_status(task_id, TaskStatus.PENDENTE)

    def edit_task(self, task_id: str, updates: dict[str, Any]) -> Optional[Task]:
        """Merge field updates into a task.

        Args:
            task_id: Task ID
            updates: Task attribute names (type, house, account_name, quantity,
                description, pix_key_info) mapped to new values

        Returns:
            The updated task, or None if the task is unknown

        Raises:
            ValidationError: If an attribute is not editable
        """
        task = self.snapshot.task(task_id)
        if task is None:
            return None

        unknown = sorted(set(updates) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Cannot edit task field(s): {', '.join(unknown)}")
        if "house" in updates and not (updates["house"] or "").strip():
            raise ValidationError(house_required())
        if updates.get("quantity") is not None and updates["quantity"] < 1:
            raise ValidationError("Quantity must be at least 1")

        payload = {EDITABLE_FIELDS[name]: value for name, value in updates.items()}
        payload["updatedAt"] = now_iso()
        self.db.update(TASKS, task_id, payload)

        house = updates.get("house", task.house)
        pix_changed = "pix_key_info" in updates and updates["pix_key_info"] != task.pix_key_info
        if pix_changed:
            self.log.record(task_id, f"Edição - {house}", "Chave Pix atualizada.")
        other_changes = [
            name for name, value in updates.items()
            if name != "pix_key_info" and value != getattr(task, name)
        ]
        if other_changes:
            self.log.record(task_id, f"Edição - {house}", f"Pendência editada: {', '.join(other_changes)}.")
        return self.snapshot.task(task_id)

    def reorder(self, dragged_id: str, target_id: str) -> bool:
        """Swap the order keys of two tasks in one atomic write.

        Returns:
            True if the swap was written
        """
        if dragged_id == target_id:
            return False
        dragged = self.snapshot.task(dragged_id)
        target = self.snapshot.task(target_id)
        if dragged is None or target is None:
            return False

        self.db.atomic_batch(
            [
                BatchOperation.update(TASKS, dragged_id, {"orderIndex": target.order_index or 0}),
                BatchOperation.update(TASKS, target_id, {"orderIndex": dragged.order_index or 0}),
            ]
        )
        return True

    def delete_task(self, task_id: str, reason: Optional[str] = None) -> Optional[Task]:
        """Soft-delete a task, keeping the reason.

        Returns:
            The updated task, or None if the task is unknown

        Raises:
            ValidationError: If the task is already finished or deleted
        """
        task = self.snapshot.task(task_id)
        if task is None:
            return None
        if not task.is_open:
            raise ValidationError(f"Cannot delete a task that is {TASK_STATUS_LABELS[task.status]}")

        reason = (reason or "").strip()
        self.db.update(
            TASKS,
            task_id,
            {
                "status": TaskStatus.EXCLUIDA.value,
                "deletionReason": reason,
                "updatedAt": now_iso(),
            },
        )
        self.log.record(
            task_id,
            self._label(task),
            f"Solicitação excluída. Motivo: {reason or NOT_INFORMED}",
        )
        return self.snapshot.task(task_id)

    def finish_new_account_delivery(
        self,
        task_id: str,
        delivered: list[DeliveredAccount],
        pack_id: Optional[str] = None,
    ) -> Optional[Task]:
        """Deliver accounts for a CONTA_NOVA task.

        Creates one ACTIVE account per delivered entry, draws them from the
        pack when given, then either shrinks the task to the remainder
        (partial delivery) or finishes it.

        Returns:
            The updated task, or None if the task is unknown

        Raises:
            ValidationError: If the task is not a new-account request, an
                entry lacks name/email, or a non-admin omits an active pack
            NotFoundError: If the pack does not exist
        """
        task = self.snapshot.task(task_id)
        if task is None:
            return None
        if task.type != TaskType.CONTA_NOVA.value:
            raise ValidationError("Only new-account requests can be delivered")
        if not task.is_open:
            raise ValidationError(f"Cannot deliver a task that is {TASK_STATUS_LABELS[task.status]}")
        if not delivered:
            raise ValidationError("Deliver at least one account")
        for entry in delivered:
            if not (entry.name or "").strip() or not (entry.email or "").strip():
                raise ValidationError("Por favor, preencha todos os campos obrigatórios (Nome e Email).")
            if entry.deposit_value < 0:
                raise ValidationError("Deposit value cannot be negative")

        if pack_id:
            pack = self.snapshot.pack(pack_id)
            if pack is None:
                raise NotFoundError(f"Pack {pack_id} not found")
            if pack.house != task.house:
                raise ValidationError(pack_house_mismatch(pack.house, task.house))
            if pack.status != PackStatus.ACTIVE and not is_allowed(Action.BYPASS_PACK_REQUIREMENT, self.actor.role):
                raise ValidationError(pack_required())
        elif not is_allowed(Action.BYPASS_PACK_REQUIREMENT, self.actor.role):
            raise ValidationError(pack_required())

        delivered_count = len(delivered)
        requested_count = task.quantity or 1

        timestamp = now_iso()
        for entry in delivered:
            self.db.insert(
                ACCOUNTS,
                compact(
                    {
                        "name": entry.name.strip(),
                        "email": entry.email.strip(),
                        "depositValue": money_to_doc(entry.deposit_value),
                        "username": entry.username,
                        "password": entry.password,
                        "card": entry.card,
                        "owner": entry.owner,
                        "house": task.house,
                        "status": AccountStatus.ACTIVE.value,
                        "tags": [],
                        "createdAt": timestamp,
                        "updatedAt": timestamp,
                        "taskIdSource": task_id,
                        "packId": pack_id or None,
                    }
                ),
            )

        if pack_id:
            self.packs.bump_delivered(pack_id, delivered_count)

        if delivered_count < requested_count:
            remaining = requested_count - delivered_count
            self.db.update(TASKS, task_id, {"quantity": remaining, "updatedAt": now_iso()})
            logger.info("Partial delivery on task %s: %d delivered, %d left", task_id, delivered_count, remaining)
            self.log.record(
                task_id,
                f"Entrega Parcial - {task.house}",
                f"Entregues: {delivered_count}. Restantes: {remaining}.",
            )
        else:
            finished_at = now_iso()
            self.db.update(
                TASKS,
                task_id,
                {
                    "status": TaskStatus.FINALIZADA.value,
                    "updatedAt": finished_at,
                    "resolvedAt": finished_at,
                    "finishedBy": self.actor.id,
                },
            )
            logger.info("Task %s finished with %d accounts", task_id, delivered_count)
            self.log.record(
                task_id,
                f"Entrega Finalizada - {task.house}",
                f"Tarefa concluída. {delivered_count} contas entregues.",
            )
        return self.snapshot.task(task_id)
