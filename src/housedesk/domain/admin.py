"""User administration and bulk data operations."""

import logging
from typing import Optional

from housedesk.database.base import BatchOperation, DocumentStore
from housedesk.domain.activity_log import ActivityLog
from housedesk.domain.authorization import Action, require
from housedesk.domain.constants import OPERATIONAL_COLLECTIONS, USERS, WIPE_BATCH_SIZE
from housedesk.domain.entities import Role, User
from housedesk.domain.errors import ValidationError
from housedesk.domain.snapshot import Snapshot

logger = logging.getLogger(__name__)


class AdminService:
    """Service for admin-only user and data management."""

    def __init__(self, db: DocumentStore, snapshot: Snapshot, actor: User):
        """Initialize admin service.

        Args:
            db: Document store instance
            snapshot: Local projection of the store
            actor: Acting user
        """
        self.db = db
        self.snapshot = snapshot
        self.actor = actor
        self.log = ActivityLog(db, actor)

    def list_users(self) -> list[User]:
        return sorted(self.snapshot.users, key=lambda u: u.name.lower())

    def list_agents(self) -> list[User]:
        """Users who may be named as the agent finishing a task."""
        return [u for u in self.list_users() if u.role == Role.AGENCIA]

    def change_role(self, user_id: str, role: Role | str) -> Optional[User]:
        """Change a user's role.

        Returns:
            The updated user, or None if the profile is unknown

        Raises:
            AuthorizationError: If the actor is not an admin
            ValidationError: If the role is unknown
        """
        require(Action.CHANGE_ROLE, self.actor)
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError(f"Unknown role '{role}'")

        user = self.snapshot.user(user_id)
        if user is None:
            return None

        self.db.update(USERS, user_id, {"role": role.value})
        logger.info("Role of user %s changed to %s", user_id, role.value)
        self.log.record(user_id, "Gestão de Usuários", f"Alterou cargo do usuário para {role.value}")
        return self.snapshot.user(user_id)

    def clear_operational_data(self, batch_size: int = WIPE_BATCH_SIZE) -> int:
        """Delete every task, account, pack, log entry and Pix key.

        Each collection is drained in pages of ``batch_size`` documents, one
        atomic batch per page, until a page comes back empty. Users and the
        house/type configuration are kept.

        Destructive: callers must obtain an explicit confirmation first.

        Returns:
            Total number of documents deleted
        """
        require(Action.CLEAR_OPERATIONAL_DATA, self.actor)
        if batch_size < 1:
            raise ValidationError("Batch size must be at least 1")

        total = 0
        for collection in OPERATIONAL_COLLECTIONS:
            while True:
                page = self.db.paginated_scan(collection, batch_size)
                if not page:
                    break
                self.db.atomic_batch([BatchOperation.delete(collection, doc["id"]) for doc in page])
                total += len(page)
                logger.debug("Deleted %d documents from %s", len(page), collection)

        logger.warning("Operational data cleared by %s: %d documents deleted", self.actor.id, total)
        return total
