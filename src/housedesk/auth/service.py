"""Sign-in flow and profile resolution."""

import logging
from typing import Optional

from housedesk.auth.base import AuthProvider, InvalidCredentialsError
from housedesk.database.base import BatchOperation, DocumentStore
from housedesk.database.mappers import user_from_doc, user_to_doc
from housedesk.domain.activity_log import ActivityLog
from housedesk.domain.constants import USERS
from housedesk.domain.entities import Role, User
from housedesk.domain.errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "Usuário"


class AuthService:
    """Service for signing users in and resolving their profiles."""

    def __init__(self, db: DocumentStore, provider: AuthProvider):
        """Initialize auth service.

        Args:
            db: Document store holding the ``users`` profiles
            provider: Credential provider
        """
        self.db = db
        self.provider = provider

    def resolve_email(self, identifier: str) -> str:
        """Turn a login identifier into an email.

        Anything containing "@" is taken as an email; otherwise it is a
        username looked up in the profiles.

        Raises:
            InvalidCredentialsError: If no profile has that username
        """
        identifier = (identifier or "").strip()
        if "@" in identifier:
            return identifier
        matches = self.db.query(USERS, {"username": identifier})
        if not matches or not matches[0].get("email"):
            raise InvalidCredentialsError("Usuário não encontrado.")
        return matches[0]["email"]

    def login(self, identifier: str, secret: str) -> User:
        """Sign in by email or username and return the acting profile."""
        email = self.resolve_email(identifier)
        uid = self.provider.sign_in(email, secret)
        return self.profile(uid, email)

    def profile(self, uid: str, email: str = "") -> User:
        """Load the profile of a uid, synthesizing a USER one if none is stored."""
        doc = self.db.get_one(USERS, uid)
        if doc is not None:
            return user_from_doc(doc)

        logger.info("No profile stored for %s; using a default one", uid)
        return User(
            id=uid,
            name=self.provider.display_name(uid) or DEFAULT_DISPLAY_NAME,
            username=email.split("@")[0] if email else "",
            email=email,
            role=Role.USER,
        )

    def register(self, name: str, username: str, email: str, secret: str) -> User:
        """Create credentials and a USER profile.

        Raises:
            ValidationError: If a field is empty
            ConflictError: If the username is taken
            EmailInUseError: If the email is taken
            WeakPasswordError: If the secret is too short
        """
        name, username, email = (name or "").strip(), (username or "").strip(), (email or "").strip()
        if not (name and username and email and secret):
            raise ValidationError("Nome, usuário, email e senha são obrigatórios.")
        if "@" in username:
            raise ValidationError("O nome de usuário não pode conter '@'.")
        if self.db.query(USERS, {"username": username}):
            raise ConflictError(f"Username '{username}' is already taken")

        uid = self.provider.register(email, secret, display_name=name)
        user = User(id=uid, name=name, username=username, email=email.lower(), role=Role.USER)
        self.db.atomic_batch([BatchOperation.insert_with_id(USERS, uid, user_to_doc(user))])
        ActivityLog(self.db, user).system("Gestão de Usuários", f"Novo usuário cadastrado: {username}")
        return user

    def logout(self) -> None:
        self.provider.sign_out()

    def current_user(self) -> Optional[User]:
        uid = self.provider.current_uid
        return self.profile(uid) if uid else None
