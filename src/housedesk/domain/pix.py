"""Pix key domain service."""

import logging
from dataclasses import replace
from typing import Optional

from housedesk.database.base import BatchOperation, DocumentStore
from housedesk.database.mappers import user_to_doc
from housedesk.domain.activity_log import ActivityLog
from housedesk.domain.authorization import Action, require
from housedesk.domain.constants import PIX_KEYS, USERS
from housedesk.domain.entities import PixKey, PixKeyType, User
from housedesk.domain.errors import NotFoundError, ValidationError
from housedesk.domain.snapshot import Snapshot

logger = logging.getLogger(__name__)


def format_pix_key(key: PixKey) -> str:
    """Render a saved key as the free-text snapshot stored on tasks."""
    return f"Chave Pix ({key.name} - {key.bank}): {key.key}"


def format_manual_pix(value: str) -> str:
    """Render a typed-in key as the free-text snapshot stored on tasks."""
    return f"Chave Pix (Manual): {value}"


class PixKeyService:
    """Service for saved payout destinations."""

    def __init__(self, db: DocumentStore, snapshot: Snapshot, actor: User):
        self.db = db
        self.snapshot = snapshot
        self.actor = actor
        self.log = ActivityLog(db, actor)

    def add_key(self, name: str, bank: str, key_type: PixKeyType | str, key: str) -> str:
        """Save a Pix key.

        Returns:
            Pix key ID

        Raises:
            ValidationError: If a field is empty or the key type is unknown
        """
        require(Action.MANAGE_SETTINGS, self.actor)
        name, bank, key = (name or "").strip(), (bank or "").strip(), (key or "").strip()
        if not (name and bank and key):
            raise ValidationError("Pix key name, bank and key are required")
        try:
            key_type = PixKeyType(str(getattr(key_type, "value", key_type)).upper())
        except ValueError:
            raise ValidationError(f"Unknown Pix key type '{key_type}'")

        pix_id = self.db.insert(
            PIX_KEYS, {"name": name, "bank": bank, "keyType": key_type.value, "key": key}
        )
        logger.info("Added Pix key %s (%s)", pix_id, key_type.value)
        self.log.system("Configuração: Pix", f"Adicionou chave Pix: {name} ({bank})")
        return pix_id

    def remove_key(self, pix_key_id: str) -> bool:
        """Delete a saved key. Returns False if it is unknown."""
        require(Action.MANAGE_SETTINGS, self.actor)
        key = self.snapshot.pix_key(pix_key_id)
        if key is None:
            return False
        self.db.delete(PIX_KEYS, pix_key_id)
        logger.info("Removed Pix key %s", pix_key_id)
        self.log.system("Configuração: Pix", f"Removeu chave Pix: {key.name}")
        return True

    def list_keys(self) -> list[PixKey]:
        return sorted(self.snapshot.pix_keys, key=lambda k: k.name.lower())

    def set_default(self, pix_key_id: Optional[str]) -> None:
        """Make a saved key the acting user's default payout destination.

        Raises:
            NotFoundError: If the key does not exist
        """
        if pix_key_id and self.snapshot.pix_key(pix_key_id) is None:
            raise NotFoundError(f"Pix key {pix_key_id} not found")
        if self.snapshot.user(self.actor.id) is None:
            # Synthesized profiles have no stored document yet
            profile = replace(self.actor, default_pix_key_id=pix_key_id or None)
            self.db.atomic_batch([BatchOperation.insert_with_id(USERS, profile.id, user_to_doc(profile))])
        else:
            self.db.update(USERS, self.actor.id, {"defaultPixKeyId": pix_key_id or ""})
        self.log.system("Configuração: Usuário", "Alterou a chave Pix padrão")

    def payout_info(self, saved_id: Optional[str] = None, manual: Optional[str] = None) -> Optional[str]:
        """Build the payout snapshot for a task.

        A manual value wins over a saved key; an unknown saved id yields None.
        """
        if manual and manual.strip():
            return format_manual_pix(manual.strip())
        if saved_id:
            key = self.snapshot.pix_key(saved_id)
            return format_pix_key(key) if key else None
        return None

    def default_payout_info(self) -> Optional[str]:
        """Payout snapshot of the acting user's default key, if any."""
        profile = self.snapshot.user(self.actor.id) or self.actor
        if not profile.default_pix_key_id:
            return None
        return self.payout_info(saved_id=profile.default_pix_key_id)
