"""
External authentication provider interface.

The provider owns credentials and sessions; the application only sees
the identity it issues (user_id) and an opaque access token.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass


class AuthError(Exception):
    """Auth provider rejected the request or could not be reached"""
    pass


@dataclass(frozen=True)
class AuthIdentity:
    user_id: str
    email: str


@dataclass(frozen=True)
class AuthSession:
    user_id: str
    email: str
    access_token: str


class AuthProvider(ABC):

    @abstractmethod
    def sign_up(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    def get_session(self, access_token: str | None) -> AuthSession | None:
        """Session for the token, or None when it is missing/expired"""

    @abstractmethod
    def sign_out(self, access_token: str) -> None:
        ...

    @abstractmethod
    def list_users(self) -> list[AuthIdentity]:
        """All identities known to the provider (maintenance only)"""
