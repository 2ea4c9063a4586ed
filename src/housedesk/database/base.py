"""Abstract document store interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

Document = dict[str, Any]
ChangeListener = Callable[[list[Document]], None]
ErrorListener = Callable[[Exception], None]
Mutator = Callable[[Document], Optional[Document]]


class StorageError(Exception):
    """A storage operation failed (connection, constraint, quota...)."""


class PermissionDeniedError(StorageError):
    """The store refused access to a collection."""


class BatchKind(str, Enum):
    """Kinds of operation accepted by ``DocumentStore.atomic_batch``."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class BatchOperation:
    """One write inside an atomic batch.

    ``doc_id`` may be omitted for inserts, in which case the store assigns one.
    """

    kind: BatchKind
    collection: str
    doc_id: Optional[str] = None
    fields: Document = field(default_factory=dict)

    @classmethod
    def insert(cls, collection: str, fields: Document) -> "BatchOperation":
        return cls(BatchKind.INSERT, collection, None, dict(fields))

    @classmethod
    def insert_with_id(cls, collection: str, doc_id: str, fields: Document) -> "BatchOperation":
        return cls(BatchKind.INSERT, collection, doc_id, dict(fields))

    @classmethod
    def update(cls, collection: str, doc_id: str, fields: Document) -> "BatchOperation":
        return cls(BatchKind.UPDATE, collection, doc_id, dict(fields))

    @classmethod
    def delete(cls, collection: str, doc_id: str) -> "BatchOperation":
        return cls(BatchKind.DELETE, collection, doc_id)


class DocumentStore(ABC):
    """Abstract document store for housedesk.

    Documents are plain dicts keyed by an opaque string id. Every document
    returned by the store carries its id under the ``"id"`` key.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize storage schema (create tables)."""
        pass

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        on_change: ChangeListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Callable[[], None]:
        """Push the full document set of a collection on every change.

        The current set is pushed once immediately. Returns a callable that
        cancels the subscription.
        """
        pass

    @abstractmethod
    def get_one(self, collection: str, doc_id: str) -> Optional[Document]:
        """Get a document by id."""
        pass

    @abstractmethod
    def query(self, collection: str, field_equals: dict[str, Any]) -> list[Document]:
        """List documents whose fields equal every given value."""
        pass

    @abstractmethod
    def list_all(self, collection: str) -> list[Document]:
        """List every document of a collection."""
        pass

    @abstractmethod
    def insert(self, collection: str, fields: Document) -> str:
        """Insert a document. Returns the new id."""
        pass

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Document) -> None:
        """Merge fields into an existing document."""
        pass

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document."""
        pass

    @abstractmethod
    def atomic_batch(self, operations: list[BatchOperation]) -> list[str]:
        """Apply all operations or none of them.

        Returns the ids of the documents touched, in operation order.
        """
        pass

    @abstractmethod
    def paginated_scan(self, collection: str, limit: int) -> list[Document]:
        """Read at most ``limit`` documents of a collection."""
        pass

    @abstractmethod
    def apply(self, collection: str, doc_id: str, mutator: Mutator) -> Optional[Document]:
        """Read-modify-write a document inside one transaction.

        ``mutator`` receives the latest stored document and returns the
        fields to merge (or None to leave it untouched). Returns the document
        after the write, or None if it does not exist.
        """
        pass
