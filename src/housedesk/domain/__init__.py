"""Domain layer for housedesk.

Services live in their own modules (``housedesk.domain.task`` and so on);
only entities and errors are re-exported here so that the storage layer can
import them without pulling in the services.
"""

from housedesk.domain.entities import (
    Account,
    AccountById,
    AccountSnapshot,
    AccountStatus,
    LogEntry,
    Pack,
    PackStatus,
    PixKey,
    Role,
    Task,
    TaskStatus,
    TaskType,
    User,
)
from housedesk.domain.errors import (
    AuthorizationError,
    DomainError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "Account",
    "AccountById",
    "AccountSnapshot",
    "AccountStatus",
    "AuthorizationError",
    "DomainError",
    "LogEntry",
    "NotFoundError",
    "Pack",
    "PackStatus",
    "PixKey",
    "Role",
    "Task",
    "TaskStatus",
    "TaskType",
    "User",
    "ValidationError",
]
