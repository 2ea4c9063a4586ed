"""Generic SQLAlchemy document store implementation."""

import logging
import uuid
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from housedesk.database.base import (
    BatchKind,
    BatchOperation,
    ChangeListener,
    Document,
    DocumentStore,
    ErrorListener,
    Mutator,
    StorageError,
)
from housedesk.database.models import DocumentRow, create_session_factory

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def _to_document(row: DocumentRow) -> Document:
    return {"id": row.id, **(row.data or {})}


def _strip_id(fields: Document) -> Document:
    return {key: value for key, value in fields.items() if key != "id"}


class SQLAlchemyDocumentStore(DocumentStore):
    """SQLAlchemy-based implementation of the DocumentStore interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy document store.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None
        self._listeners: dict[str, list[tuple[ChangeListener, Optional[ErrorListener]]]] = (
            defaultdict(list)
        )

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    @contextmanager
    def _write(self, *collections: str) -> Iterator[Session]:
        """Run a unit of work, committing on success and notifying listeners.

        Any SQLAlchemy failure rolls the whole unit back and surfaces as
        StorageError.
        """
        session = self._get_session()
        touched: set[str] = set(collections)
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageError(str(exc)) from exc
        except Exception:
            session.rollback()
            raise
        self._notify(touched)

    def connect(self) -> None:
        """Connect to the store."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the store."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    # Subscriptions
    def subscribe(
        self,
        collection: str,
        on_change: ChangeListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Callable[[], None]:
        """Register a listener and push the current documents to it."""
        entry = (on_change, on_error)
        self._listeners[collection].append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners[collection]:
                self._listeners[collection].remove(entry)

        self._push(collection, [entry])
        return unsubscribe

    def _notify(self, collections: set[str]) -> None:
        for collection in sorted(collections):
            listeners = list(self._listeners.get(collection, ()))
            if listeners:
                self._push(collection, listeners)

    def _push(
        self,
        collection: str,
        listeners: list[tuple[ChangeListener, Optional[ErrorListener]]],
    ) -> None:
        try:
            documents = self.list_all(collection)
        except StorageError as exc:
            for _, on_error in listeners:
                if on_error is not None:
                    on_error(exc)
                else:
                    logger.error("Failed to load %s for subscribers: %s", collection, exc)
            return

        for on_change, on_error in listeners:
            try:
                on_change([dict(doc) for doc in documents])
            except Exception as exc:
                # A failing listener never undoes the committed write
                if on_error is not None:
                    on_error(exc)
                else:
                    logger.exception("Listener for %s failed", collection)

    # Reads
    def get_one(self, collection: str, doc_id: str) -> Optional[Document]:
        """Get a document by id."""
        session = self._get_session()
        try:
            row = session.get(DocumentRow, (collection, doc_id))
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        if row is None:
            return None
        return _to_document(row)

    def list_all(self, collection: str) -> list[Document]:
        """List every document of a collection in insertion order."""
        session = self._get_session()
        try:
            rows = (
                session.query(DocumentRow)
                .filter(DocumentRow.collection == collection)
                .order_by(DocumentRow.seq)
                .all()
            )
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        return [_to_document(row) for row in rows]

    def query(self, collection: str, field_equals: dict[str, Any]) -> list[Document]:
        """List documents whose fields equal every given value."""
        return [
            doc
            for doc in self.list_all(collection)
            if all(doc.get(key) == value for key, value in field_equals.items())
        ]

    def paginated_scan(self, collection: str, limit: int) -> list[Document]:
        """Read at most ``limit`` documents of a collection."""
        session = self._get_session()
        try:
            rows = (
                session.query(DocumentRow)
                .filter(DocumentRow.collection == collection)
                .order_by(DocumentRow.seq)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        return [_to_document(row) for row in rows]

    # Writes
    def _next_seq(self, session: Session, collection: str) -> int:
        current = (
            session.query(func.max(DocumentRow.seq))
            .filter(DocumentRow.collection == collection)
            .scalar()
        )
        return (current or 0) + 1

    def _insert_row(self, session: Session, collection: str, doc_id: Optional[str], fields: Document) -> str:
        doc_id = doc_id or _new_id()
        row = DocumentRow(
            collection=collection,
            id=doc_id,
            data=_strip_id(fields),
            seq=self._next_seq(session, collection),
        )
        session.add(row)
        session.flush()
        return doc_id

    def _update_row(self, session: Session, collection: str, doc_id: str, fields: Document) -> None:
        row = session.get(DocumentRow, (collection, doc_id))
        if row is None:
            raise StorageError(f"No document to update: {collection}/{doc_id}")
        # Assign a new dict so the JSON column registers the change
        row.data = {**(row.data or {}), **_strip_id(fields)}

    def _delete_row(self, session: Session, collection: str, doc_id: str) -> None:
        row = session.get(DocumentRow, (collection, doc_id))
        if row is not None:
            session.delete(row)

    def insert(self, collection: str, fields: Document) -> str:
        """Insert a document. Returns the new id."""
        with self._write(collection) as session:
            doc_id = self._insert_row(session, collection, None, fields)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: Document) -> None:
        """Merge fields into an existing document."""
        with self._write(collection) as session:
            self._update_row(session, collection, doc_id, fields)

    def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document. Deleting a missing document is a no-op."""
        with self._write(collection) as session:
            self._delete_row(session, collection, doc_id)

    def atomic_batch(self, operations: list[BatchOperation]) -> list[str]:
        """Apply all operations in one transaction."""
        if not operations:
            return []

        ids: list[str] = []
        collections = {op.collection for op in operations}
        with self._write(*collections) as session:
            for op in operations:
                if op.kind == BatchKind.INSERT:
                    ids.append(self._insert_row(session, op.collection, op.doc_id, op.fields))
                elif op.kind == BatchKind.UPDATE:
                    self._update_row(session, op.collection, op.doc_id, op.fields)
                    ids.append(op.doc_id)
                elif op.kind == BatchKind.DELETE:
                    self._delete_row(session, op.collection, op.doc_id)
                    ids.append(op.doc_id)
                else:
                    raise StorageError(f"Unknown batch operation: {op.kind}")
        return ids

    def apply(self, collection: str, doc_id: str, mutator: Mutator) -> Optional[Document]:
        """Read-modify-write a document inside one transaction.

        A no-op UPDATE takes the write lock before the row is read, since
        SQLite ignores FOR UPDATE. Concurrent callers serialize on it.
        """
        with self._write(collection) as session:
            session.execute(
                update(DocumentRow)
                .where(DocumentRow.collection == collection, DocumentRow.id == doc_id)
                .values(seq=DocumentRow.seq)
                .execution_options(synchronize_session=False)
            )
            row = (
                session.query(DocumentRow)
                .filter(DocumentRow.collection == collection, DocumentRow.id == doc_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if row is None:
                return None
            changes = mutator(_to_document(row))
            if changes:
                row.data = {**(row.data or {}), **_strip_id(changes)}
            result = _to_document(row)
        return result
