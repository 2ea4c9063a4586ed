"""Account lifecycle domain service."""

import logging
from typing import Optional

from housedesk.database.base import BatchOperation, DocumentStore
from housedesk.database.mappers import compact, money_to_doc
from housedesk.domain.activity_log import ActivityLog
from housedesk.domain.authorization import Action, is_allowed
from housedesk.domain.constants import ACCOUNTS, ACCOUNT_STATUS_LABELS, NOT_INFORMED, TASKS
from housedesk.domain.entities import (
    Account,
    AccountDraft,
    AccountSnapshot,
    AccountStatus,
    PackStatus,
    TaskStatus,
    TaskType,
    User,
)
from housedesk.domain.errors import (
    NotFoundError,
    ValidationError,
    pack_house_mismatch,
    pack_required,
)
from housedesk.domain.pack import PackService
from housedesk.domain.snapshot import Snapshot
from housedesk.domain.task import TaskService
from housedesk.utils.timestamps import now_iso

logger = logging.getLogger(__name__)

REACTIVATABLE = frozenset({AccountStatus.LIMITED, AccountStatus.REPLACEMENT, AccountStatus.DELETED})
REPLACEABLE = frozenset({AccountStatus.ACTIVE, AccountStatus.LIMITED})

WITHDRAWAL_CONTEXT = {
    AccountStatus.LIMITED: "Conta Limitada",
    AccountStatus.REPLACEMENT: "Conta Reposição",
}


class AccountService:
    """Service for managing accounts.

    Mutations resolve the account in the snapshot first; unknown ids are a
    silent no-op returning None (or False).
    """

    def __init__(self, db: DocumentStore, snapshot: Snapshot, actor: User):
        """Initialize account service.

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
        self.tasks = TaskService(db, snapshot, actor)

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.snapshot.account(account_id)

    def list_accounts(self, status: Optional[AccountStatus] = None, house: Optional[str] = None) -> list[Account]:
        """List accounts, most recently touched first."""
        accounts = self.snapshot.accounts
        if status is not None:
            accounts = [a for a in accounts if a.status == status]
        if house is not None:
            accounts = [a for a in accounts if a.house == house]
        return sorted(
            accounts,
            key=lambda a: (a.updated_at or a.created_at).timestamp() if (a.updated_at or a.created_at) else 0.0,
            reverse=True,
        )

    def _withdrawal(self, account: Account, description: str, payout_info: Optional[str]) -> str:
        return self.tasks.create_task(
            TaskType.SAQUE.value,
            house=account.house,
            account=AccountSnapshot(account.name, account.house),
            description=description,
            pix_key_info=payout_info,
            status=TaskStatus.PENDENTE,
        )

    def limit_account(
        self,
        account_id: str,
        create_withdrawal: bool = False,
        payout_info: Optional[str] = None,
    ) -> Optional[Account]:
        """Mark an active account as limited by the house.

        Args:
            account_id: Account ID
            create_withdrawal: Also open a PENDENTE withdrawal task for it
            payout_info: Payout snapshot for that withdrawal

        Raises:
            ValidationError: If the account is not ACTIVE
        """
        account = self.snapshot.account(account_id)
        if account is None:
            return None
        if account.status != AccountStatus.ACTIVE:
            raise ValidationError(f"Only active accounts can be limited (account is {account.status.value})")

        timestamp = now_iso()
        self.db.update(
            ACCOUNTS,
            account_id,
            {"status": AccountStatus.LIMITED.value, "limitedAt": timestamp, "updatedAt": timestamp},
        )
        if create_withdrawal:
            self._withdrawal(account, "Gerado automaticamente ao limitar conta.", payout_info)

        logger.info("Account %s limited", account_id)
        self.log.record(account_id, f"Conta {account.name}", "Conta marcada como LIMITADA.")
        return self.snapshot.account(account_id)

    def mark_replacement(
        self,
        account_id: str,
        create_withdrawal: bool = False,
        payout_info: Optional[str] = None,
    ) -> Optional[Account]:
        """Mark an account for replacement.

        An account drawn from a pack gives its slot back: the pack's delivered
        count drops by one and the pack reopens.

        Raises:
            ValidationError: If the account is neither ACTIVE nor LIMITED
        """
        account = self.snapshot.account(account_id)
        if account is None:
            return None
        if account.status not in REPLACEABLE:
            raise ValidationError(f"Account is {account.status.value} and cannot be replaced")

        if account.pack_id:
            self.packs.reverse_delivery(account.pack_id)

        timestamp = now_iso()
        self.db.update(
            ACCOUNTS,
            account_id,
            {
                "status": AccountStatus.REPLACEMENT.value,
                "replacementAt": timestamp,
                "updatedAt": timestamp,
            },
        )
        if create_withdrawal:
            self._withdrawal(account, "Gerado automaticamente (Conta para Reposição).", payout_info)

        logger.info("Account %s marked for replacement", account_id)
        self.log.record(account_id, f"Conta {account.name}", "Marcada para REPOSIÇÃO.")
        return self.snapshot.account(account_id)

    def request_withdrawal(self, account_id: str, payout_info: Optional[str] = None) -> Optional[str]:
        """Open a manual withdrawal task for an account.

        Returns:
            The new task ID, or None if the account is unknown
        """
        account = self.snapshot.account(account_id)
        if account is None:
            return None

        context = WITHDRAWAL_CONTEXT.get(account.status, "Conta")
        task_id = self._withdrawal(account, f"Solicitação de saque manual ({context}).", payout_info)
        self.db.update(ACCOUNTS, account_id, {"updatedAt": now_iso()})
        self.log.record(account_id, f"Conta {account.name}", f"Solicitou saque em conta {account.status.value}.")
        return task_id

    def reactivate(self, account_id: str) -> Optional[Account]:
        """Move a limited, replaced or deleted account back to ACTIVE.

        Pack counts are left as they are.

        Raises:
            ValidationError: If the account is already ACTIVE
        """
        account = self.snapshot.account(account_id)
        if account is None:
            logger.warning("Account %s not found for reactivation", account_id)
            return None
        if account.status not in REACTIVATABLE:
            raise ValidationError("Account is already active")

        self.db.update(
            ACCOUNTS,
            account_id,
            {"status": AccountStatus.ACTIVE.value, "deletionReason": "", "updatedAt": now_iso()},
        )
        self.log.record(account_id, f"Conta {account.name}", "Conta restaurada/reativada (Movida para Ativas).")
        return self.snapshot.account(account_id)

    def delete_account(self, account_id: str, reason: Optional[str] = None) -> Optional[Account]:
        """Soft-delete an account, keeping the reason."""
        account = self.snapshot.account(account_id)
        if account is None:
            return None

        reason = (reason or "").strip()
        self.db.update(
            ACCOUNTS,
            account_id,
            {"status": AccountStatus.DELETED.value, "deletionReason": reason, "updatedAt": now_iso()},
        )
        self.log.record(account_id, f"Conta {account.name}", f"Conta excluída. Motivo: {reason or NOT_INFORMED}")
        return self.snapshot.account(account_id)

    def hard_delete(self, account_id: str) -> bool:
        """Remove a soft-deleted account from the store for good.

        Callers must obtain an explicit confirmation first.

        Returns:
            True if the document was removed

        Raises:
            ValidationError: If the account is not soft-deleted
        """
        account = self.snapshot.account(account_id)
        if account is None:
            return False
        if account.status != AccountStatus.DELETED:
            raise ValidationError("Only deleted accounts can be removed permanently")

        self.db.delete(ACCOUNTS, account_id)
        logger.info("Account %s permanently deleted", account_id)
        self.log.system("Conta Excluída Permanentemente", f"ID: {account_id} removido definitivamente.")
        return True

    def save_account(self, draft: AccountDraft, pack_id: Optional[str] = None) -> Optional[str]:
        """Create or edit an account.

        Editing a name or house rewrites every task that still points at the
        old name/house, in one atomic batch. Creating with a pack draws one
        account from it; non-admins creating an ACTIVE account must pick an
        active pack with room left.

        Args:
            draft: Form values; ``draft.id`` selects the edit path
            pack_id: Pack to draw from (create path only)

        Returns:
            Account ID, or None when editing an unknown account

        Raises:
            ValidationError: If name/house is missing, the deposit is negative
                or the pack requirement is not met
            NotFoundError: If the pack does not exist
        """
        name = (draft.name or "").strip()
        house = (draft.house or "").strip()
        if not name or not house:
            raise ValidationError("Nome e Casa são obrigatórios.")
        if draft.deposit_value < 0:
            raise ValidationError("Deposit value cannot be negative")

        fields = {
            "name": name,
            "email": (draft.email or "").strip(),
            "house": house,
            "depositValue": money_to_doc(draft.deposit_value),
            "status": AccountStatus(draft.status).value,
            "username": draft.username,
            "password": draft.password,
            "card": draft.card,
            "owner": draft.owner,
            "tags": list(dict.fromkeys(tag.strip() for tag in draft.tags if tag.strip())),
        }

        if draft.id:
            return self._edit(draft.id, fields)
        return self._create(fields, pack_id)

    def _edit(self, account_id: str, fields: dict) -> Optional[str]:
        previous = self.db.get_one(ACCOUNTS, account_id)
        if previous is None:
            return None

        self.db.update(ACCOUNTS, account_id, compact({**fields, "updatedAt": now_iso()}))

        old_name, old_house = previous.get("name"), previous.get("house")
        if old_name != fields["name"] or old_house != fields["house"]:
            linked_tasks = self.db.query(TASKS, {"accountName": old_name, "house": old_house})
            if linked_tasks:
                self.db.atomic_batch(
                    [
                        BatchOperation.update(
                            TASKS,
                            doc["id"],
                            {"accountName": fields["name"], "house": fields["house"]},
                        )
                        for doc in linked_tasks
                    ]
                )
                logger.info("Resynchronized %d tasks after renaming account %s", len(linked_tasks), account_id)
                self.log.record(
                    account_id,
                    f"Sincronização - {fields['name']}",
                    f"Atualizou {len(linked_tasks)} pendências antigas para a nova casa/nome.",
                )

        self.log.record(account_id, f"Conta {fields['name']}", "Dados da conta atualizados manualmente")
        return account_id

    def _create(self, fields: dict, pack_id: Optional[str]) -> str:
        status = AccountStatus(fields["status"])
        may_bypass = is_allowed(Action.BYPASS_PACK_REQUIREMENT, self.actor.role)
        if pack_id:
            pack = self.snapshot.pack(pack_id)
            if pack is None:
                raise NotFoundError(f"Pack {pack_id} not found")
            if pack.house != fields["house"]:
                raise ValidationError(pack_house_mismatch(pack.house, fields["house"]))
            if not may_bypass and (pack.status != PackStatus.ACTIVE or pack.remaining < 1):
                raise ValidationError(pack_required())
        elif status == AccountStatus.ACTIVE and not may_bypass:
            raise ValidationError(pack_required())

        timestamp = now_iso()
        account_id = self.db.insert(
            ACCOUNTS,
            compact({**fields, "createdAt": timestamp, "updatedAt": timestamp, "packId": pack_id or None}),
        )
        if pack_id:
            self.packs.bump_delivered(pack_id, 1)

        logger.info("Created account %s (%s)", account_id, fields["house"])
        self.log.record(
            account_id,
            f"Conta {fields['name']}",
            f"Conta cadastrada manualmente ({status.value})",
        )
        return account_id

    def status_label(self, status: AccountStatus) -> str:
        return ACCOUNT_STATUS_LABELS[AccountStatus(status)]
