"""Abstract sign-in provider interface."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

AuthListener = Callable[[Optional[str]], None]


class AuthError(Exception):
    """Base class for sign-in and registration failures."""


class InvalidCredentialsError(AuthError):
    """Unknown identifier or wrong secret."""


class EmailInUseError(AuthError):
    """An account with that email already exists."""


class WeakPasswordError(AuthError):
    """The secret is too short."""


class AuthProvider(ABC):
    """Credential check and identity tracking.

    Identities are opaque uid strings; the extended profile of a uid lives in
    the ``users`` collection of the document store.
    """

    @property
    @abstractmethod
    def current_uid(self) -> Optional[str]:
        """The signed-in uid, or None when signed out."""
        pass

    @abstractmethod
    def on_auth_change(self, callback: AuthListener) -> Callable[[], None]:
        """Call ``callback`` with the uid (or None) on every sign-in/out.

        The current state is reported once immediately. Returns a callable
        that cancels the subscription.
        """
        pass

    @abstractmethod
    def sign_in(self, email: str, secret: str) -> str:
        """Check credentials and sign in. Returns the uid."""
        pass

    @abstractmethod
    def register(self, email: str, secret: str, display_name: Optional[str] = None) -> str:
        """Create credentials and sign in as the new identity. Returns the uid."""
        pass

    @abstractmethod
    def sign_out(self) -> None:
        """Forget the signed-in identity."""
        pass

    def display_name(self, uid: str) -> Optional[str]:
        """Name given at registration, if the provider keeps one."""
        return None
