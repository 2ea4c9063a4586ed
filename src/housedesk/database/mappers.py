"""Mapper functions to convert between stored documents and domain entities.

Documents use the camelCase field names of the persisted record shapes and
ISO-8601 timestamp strings. This layer isolates that layout from the domain
services.
"""

from decimal import Decimal
from typing import Any, Optional

from housedesk.database.base import Document
from housedesk.domain.entities import (
    Account,
    AccountStatus,
    House,
    LogEntry,
    Pack,
    PackStatus,
    PixKey,
    PixKeyType,
    Role,
    Task,
    TaskStatus,
    TaskTypeConfig,
    User,
)
from housedesk.utils.timestamps import parse_iso


def compact(fields: dict[str, Any]) -> Document:
    """Drop None values before a write, leaving stored fields untouched."""
    return {key: value for key, value in fields.items() if value is not None}


def money_to_doc(value: Optional[Decimal]) -> Optional[float]:
    """Store money as a JSON number."""
    if value is None:
        return None
    return float(value)


def _money(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def task_from_doc(doc: Document) -> Task:
    """Convert a stored task document to a Task entity."""
    return Task(
        id=doc["id"],
        type=doc.get("type", ""),
        house=doc.get("house", ""),
        status=TaskStatus(doc.get("status", TaskStatus.PENDENTE.value)),
        created_at=parse_iso(doc.get("createdAt")),
        updated_at=parse_iso(doc.get("updatedAt")),
        account_name=doc.get("accountName"),
        quantity=_optional_int(doc.get("quantity")),
        description=doc.get("description"),
        pix_key_info=doc.get("pixKeyInfo"),
        deletion_reason=doc.get("deletionReason") or None,
        order_index=_optional_int(doc.get("orderIndex")),
        finished_by=doc.get("finishedBy"),
        resolved_at=parse_iso(doc.get("resolvedAt")),
    )


def account_from_doc(doc: Document) -> Account:
    """Convert a stored account document to an Account entity."""
    return Account(
        id=doc["id"],
        name=doc.get("name", ""),
        email=doc.get("email", ""),
        house=doc.get("house", ""),
        deposit_value=_money(doc.get("depositValue")),
        status=AccountStatus(doc.get("status", AccountStatus.ACTIVE.value)),
        created_at=parse_iso(doc.get("createdAt")),
        updated_at=parse_iso(doc.get("updatedAt")),
        username=doc.get("username"),
        password=doc.get("password"),
        card=doc.get("card"),
        owner=doc.get("owner"),
        tags=tuple(doc.get("tags") or ()),
        limited_at=parse_iso(doc.get("limitedAt")),
        replacement_at=parse_iso(doc.get("replacementAt")),
        deletion_reason=doc.get("deletionReason") or None,
        task_id_source=doc.get("taskIdSource"),
        pack_id=doc.get("packId") or None,
    )


def pack_from_doc(doc: Document) -> Pack:
    """Convert a stored pack document to a Pack entity."""
    return Pack(
        id=doc["id"],
        house=doc.get("house", ""),
        quantity=int(doc.get("quantity", 0)),
        delivered=int(doc.get("delivered", 0)),
        price=_money(doc.get("price")),
        status=PackStatus(doc.get("status", PackStatus.ACTIVE.value)),
        created_at=parse_iso(doc.get("createdAt")),
        updated_at=parse_iso(doc.get("updatedAt")),
    )


def pix_key_from_doc(doc: Document) -> PixKey:
    """Convert a stored Pix key document to a PixKey entity."""
    return PixKey(
        id=doc["id"],
        name=doc.get("name", ""),
        bank=doc.get("bank", ""),
        key_type=PixKeyType(doc.get("keyType", PixKeyType.CPF.value)),
        key=doc.get("key", ""),
    )


def user_from_doc(doc: Document) -> User:
    """Convert a stored user profile to a User entity."""
    return User(
        id=doc["id"],
        name=doc.get("name", ""),
        username=doc.get("username", ""),
        email=doc.get("email", ""),
        role=Role(doc.get("role", Role.USER.value)),
        default_pix_key_id=doc.get("defaultPixKeyId") or None,
    )


def user_to_doc(user: User) -> Document:
    """Convert a User entity to a stored profile (id included)."""
    return compact(
        {
            "id": user.id,
            "name": user.name,
            "username": user.username,
            "email": user.email,
            "role": user.role.value,
            "defaultPixKeyId": user.default_pix_key_id,
        }
    )


def log_entry_from_doc(doc: Document) -> LogEntry:
    """Convert a stored log document to a LogEntry entity."""
    return LogEntry(
        id=doc["id"],
        task_id=doc.get("taskId", ""),
        task_description=doc.get("taskDescription", ""),
        action=doc.get("action", ""),
        user=doc.get("user", ""),
        timestamp=parse_iso(doc.get("timestamp")),
    )


def house_from_doc(doc: Document) -> House:
    """Convert a stored house config document to a House entity."""
    order = doc.get("order")
    return House(id=doc["id"], name=doc.get("name", ""), order=int(order) if order is not None else 0)


def task_type_from_doc(doc: Document) -> TaskTypeConfig:
    """Convert a stored task type config document to a TaskTypeConfig entity."""
    order = doc.get("order")
    return TaskTypeConfig(
        id=doc["id"],
        label=doc.get("label", ""),
        value=doc.get("value", ""),
        order=int(order) if order is not None else 999,
    )
