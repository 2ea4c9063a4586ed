"""Sign-in provider backed by the credentials table."""

import logging
import uuid
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from werkzeug.security import check_password_hash, generate_password_hash

from housedesk.auth.base import (
    AuthListener,
    AuthProvider,
    EmailInUseError,
    InvalidCredentialsError,
    WeakPasswordError,
)
from housedesk.database.base import StorageError
from housedesk.database.models import CredentialRow
from housedesk.domain.constants import MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class LocalAuthProvider(AuthProvider):
    """AuthProvider storing pbkdf2 password hashes next to the documents."""

    def __init__(self, session_factory: sessionmaker[Session]):
        """Initialize local auth provider.

        Args:
            session_factory: Session factory of the SQLAlchemy store
        """
        self.session_factory = session_factory
        self._uid: Optional[str] = None
        self._listeners: list[AuthListener] = []

    @property
    def current_uid(self) -> Optional[str]:
        return self._uid

    def on_auth_change(self, callback: AuthListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        callback(self._uid)
        return unsubscribe

    def _set_uid(self, uid: Optional[str]) -> None:
        self._uid = uid
        for listener in list(self._listeners):
            listener(uid)

    def display_name(self, uid: str) -> Optional[str]:
        """Name given at registration, if any."""
        with self.session_factory() as session:
            row = session.get(CredentialRow, uid)
            return row.display_name if row else None

    def sign_in(self, email: str, secret: str) -> str:
        """Check credentials and sign in.

        Raises:
            InvalidCredentialsError: If the email is unknown or the secret is wrong
        """
        email = _normalize_email(email)
        try:
            with self.session_factory() as session:
                row = session.query(CredentialRow).filter(CredentialRow.email == email).first()
                password_hash = row.password_hash if row else None
                uid = row.uid if row else None
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

        if password_hash is None or not check_password_hash(password_hash, secret or ""):
            logger.info("Failed sign-in for %s", email)
            raise InvalidCredentialsError("Email ou senha inválidos.")

        self._set_uid(uid)
        logger.debug("Signed in as %s", uid)
        return uid

    def register(self, email: str, secret: str, display_name: Optional[str] = None) -> str:
        """Create credentials and sign in.

        Raises:
            WeakPasswordError: If the secret is shorter than the minimum
            EmailInUseError: If the email already has credentials
        """
        email = _normalize_email(email)
        if len(secret or "") < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError(f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres.")

        uid = uuid.uuid4().hex
        row = CredentialRow(
            uid=uid,
            email=email,
            password_hash=generate_password_hash(secret, method="pbkdf2:sha256"),
            display_name=display_name,
        )
        with self.session_factory() as session:
            try:
                session.add(row)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise EmailInUseError("Este email já está em uso.") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                raise StorageError(str(exc)) from exc

        logger.info("Registered credentials for %s", email)
        self._set_uid(uid)
        return uid

    def sign_out(self) -> None:
        self._set_uid(None)
