"""Sign-in for housedesk."""

from housedesk.auth.base import (
    AuthError,
    AuthProvider,
    EmailInUseError,
    InvalidCredentialsError,
    WeakPasswordError,
)
from housedesk.auth.local import LocalAuthProvider
from housedesk.auth.service import AuthService

__all__ = [
    "AuthError",
    "AuthProvider",
    "AuthService",
    "EmailInUseError",
    "InvalidCredentialsError",
    "LocalAuthProvider",
    "WeakPasswordError",
]
