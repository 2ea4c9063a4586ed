"""Pack inventory domain service."""

import logging
from decimal import Decimal
from typing import Optional

from housedesk.database.base import Document, DocumentStore
from housedesk.database.mappers import money_to_doc, pack_from_doc
from housedesk.domain.activity_log import ActivityLog
from housedesk.domain.authorization import Action, require
from housedesk.domain.constants import PACKS
from housedesk.domain.entities import Pack, PackStatus, User
from housedesk.domain.errors import ValidationError
from housedesk.domain.snapshot import Snapshot
from housedesk.utils.timestamps import now_iso

logger = logging.getLogger(__name__)


def derive_status(delivered: int, quantity: int) -> PackStatus:
    """A pack is COMPLETED exactly when every purchased account was delivered."""
    return PackStatus.COMPLETED if delivered >= quantity else PackStatus.ACTIVE


class PackService:
    """Service for managing packs and their delivered counts.

    ``bump_delivered`` and ``reverse_delivery`` are the only paths that change
    a pack's delivered count outside of an admin edit. Both read-modify-write
    inside the store so concurrent deliveries cannot overwrite each other.
    """

    def __init__(self, db: DocumentStore, snapshot: Snapshot, actor: User):
        """Initialize pack service.

        Args:
            db: Document store instance
            snapshot: Local projection of the store
            actor: Acting user
        """
        self.db = db
        self.snapshot = snapshot
        self.actor = actor
        self.log = ActivityLog(db, actor)

    def create_pack(self, house: str, quantity: int, price: Decimal) -> str:
        """Create a pack with nothing delivered yet.

        Returns:
            Pack ID

        Raises:
            ValidationError: If house is empty, quantity < 1 or price < 0
        """
        house = (house or "").strip()
        if not house:
            raise ValidationError("A casa de aposta é obrigatória.")
        if quantity < 1:
            raise ValidationError("Pack quantity must be at least 1")
        if price < 0:
            raise ValidationError("Pack price cannot be negative")

        timestamp = now_iso()
        pack_id = self.db.insert(
            PACKS,
            {
                "house": house,
                "quantity": quantity,
                "delivered": 0,
                "price": money_to_doc(price),
                "status": PackStatus.ACTIVE.value,
                "createdAt": timestamp,
                "updatedAt": timestamp,
            },
        )
        logger.info("Created pack %s (%s x%d)", pack_id, house, quantity)
        self.log.record(pack_id, f"Pack {house}", f"Novo pack criado: {quantity} contas")
        return pack_id

    def get_pack(self, pack_id: str) -> Optional[Pack]:
        return self.snapshot.pack(pack_id)

    def list_packs(self, house: Optional[str] = None, active_only: bool = False) -> list[Pack]:
        """List packs, newest first."""
        packs = self.snapshot.packs
        if house is not None:
            packs = [p for p in packs if p.house == house]
        if active_only:
            packs = [p for p in packs if p.status == PackStatus.ACTIVE and p.remaining > 0]
        return sorted(packs, key=lambda p: p.created_at.timestamp() if p.created_at else 0.0, reverse=True)

    def bump_delivered(self, pack_id: str, amount: int) -> Optional[Pack]:
        """Add delivered accounts to a pack and recompute its status.

        Returns:
            The updated pack, or None if the pack is unknown
        """
        if self.snapshot.pack(pack_id) is None:
            return None

        def increment(doc: Document) -> Document:
            delivered = int(doc.get("delivered", 0)) + amount
            return {
                "delivered": delivered,
                "status": derive_status(delivered, int(doc.get("quantity", 0))).value,
                "updatedAt": now_iso(),
            }

        doc = self.db.apply(PACKS, pack_id, increment)
        if doc is None:
            return None
        pack = pack_from_doc(doc)
        logger.debug("Pack %s delivered %d/%d", pack_id, pack.delivered, pack.quantity)
        return pack

    def reverse_delivery(self, pack_id: str) -> Optional[Pack]:
        """Give one delivered slot back to a pack.

        The pack always returns to ACTIVE: a replacement reopens a slot.

        Returns:
            The updated pack, or None if the pack is unknown
        """
        if self.snapshot.pack(pack_id) is None:
            return None

        def decrement(doc: Document) -> Document:
            return {
                "delivered": max(0, int(doc.get("delivered", 0)) - 1),
                "status": PackStatus.ACTIVE.value,
                "updatedAt": now_iso(),
            }

        doc = self.db.apply(PACKS, pack_id, decrement)
        return pack_from_doc(doc) if doc is not None else None

    def edit_pack(
        self,
        pack_id: str,
        house: Optional[str] = None,
        quantity: Optional[int] = None,
        price: Optional[Decimal] = None,
        delivered: Optional[int] = None,
        status: Optional[PackStatus] = None,
    ) -> Optional[Pack]:
        """Apply an admin correction to a pack.

        The stored status is always recomputed from the final delivered and
        quantity values; a requested ``status`` never overrides it.

        Returns:
            The updated pack, or None if the pack is unknown

        Raises:
            AuthorizationError: If the actor is not an admin
            ValidationError: If a value is out of range
        """
        require(Action.EDIT_PACK, self.actor)
        if self.snapshot.pack(pack_id) is None:
            return None
        if quantity is not None and quantity < 1:
            raise ValidationError("Pack quantity must be at least 1")
        if delivered is not None and delivered < 0:
            raise ValidationError("Delivered count cannot be negative")
        if price is not None and price < 0:
            raise ValidationError("Pack price cannot be negative")
        if house is not None and not house.strip():
            raise ValidationError("A casa de aposta é obrigatória.")
        if status is not None:
            logger.debug("Ignoring requested status %s for pack %s; it is derived", status, pack_id)

        def correct(doc: Document) -> Document:
            changes: Document = {"updatedAt": now_iso()}
            if house is not None:
                changes["house"] = house.strip()
            if quantity is not None:
                changes["quantity"] = quantity
            if price is not None:
                changes["price"] = money_to_doc(price)
            if delivered is not None:
                changes["delivered"] = delivered
            final_quantity = quantity if quantity is not None else int(doc.get("quantity", 0))
            final_delivered = delivered if delivered is not None else int(doc.get("delivered", 0))
            changes["status"] = derive_status(final_delivered, final_quantity).value
            return changes

        doc = self.db.apply(PACKS, pack_id, correct)
        if doc is None:
            return None
        self.log.record(pack_id, "Gestão de Packs", "Pack atualizado por admin")
        return pack_from_doc(doc)
