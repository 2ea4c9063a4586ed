"""Audit log writer."""

import logging
from typing import Optional

from housedesk.database.base import DocumentStore
from housedesk.database.mappers import log_entry_from_doc
from housedesk.domain.authorization import Action, require
from housedesk.domain.constants import LOGS, SYSTEM_TASK_ID, SYSTEM_USER_NAME
from housedesk.domain.entities import LogEntry, User
from housedesk.utils.timestamps import now_iso

logger = logging.getLogger(__name__)


class ActivityLog:
    """Appends immutable entries describing every state change.

    A failed append never fails the operation it describes: the error is
    reported to the developer log and swallowed.
    """

    def __init__(self, db: DocumentStore, actor: Optional[User] = None):
        """Initialize the activity log.

        Args:
            db: Document store instance
            actor: User whose display name is stamped on entries
        """
        self.db = db
        self.actor = actor

    def record(self, task_id: Optional[str], task_description: str, action: str) -> Optional[str]:
        """Append an entry. Returns its id, or None if the write failed.

        Args:
            task_id: Related task/account/pack id, or None for system-level actions
            task_description: Human label of the subject, captured now
            action: What happened
        """
        try:
            return self.db.insert(
                LOGS,
                {
                    "taskId": task_id or SYSTEM_TASK_ID,
                    "taskDescription": task_description,
                    "action": action,
                    "user": self.actor.name if self.actor else SYSTEM_USER_NAME,
                    "timestamp": now_iso(),
                },
            )
        except Exception:
            logger.exception("Failed to add log entry for %s", task_description)
            return None

    def system(self, description: str, action: str) -> Optional[str]:
        """Append a system-level entry (not linked to a task)."""
        return self.record(None, description, action)

    def history(self, task_id: Optional[str] = None) -> list[LogEntry]:
        """List entries newest first, optionally only those of one subject.

        Raises:
            AuthorizationError: If the actor may not view the history
        """
        if self.actor is not None:
            require(Action.VIEW_HISTORY, self.actor)

        if task_id is None:
            docs = self.db.list_all(LOGS)
        else:
            docs = self.db.query(LOGS, {"taskId": task_id})
        entries = [log_entry_from_doc(doc) for doc in docs]
        return sorted(
            entries,
            key=lambda entry: entry.timestamp.timestamp() if entry.timestamp else 0.0,
            reverse=True,
        )
