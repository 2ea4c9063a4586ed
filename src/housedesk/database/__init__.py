"""Storage layer for housedesk."""

from housedesk.database.base import (
    BatchOperation,
    DocumentStore,
    PermissionDeniedError,
    StorageError,
)
from housedesk.database.factories import create_sqlite_store

__all__ = [
    "BatchOperation",
    "DocumentStore",
    "PermissionDeniedError",
    "StorageError",
    "create_sqlite_store",
]
