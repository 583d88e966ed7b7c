"""
In-process auth provider for development and tests
"""
import logging
import secrets
import threading
import uuid

from passlib.context import CryptContext

from paytracker.infrastructure.auth.base import AuthError, AuthIdentity, AuthProvider, AuthSession

logger = logging.getLogger(__name__)

# pbkdf2_sha256: no native deps
pwd_context = CryptContext(schemes=["pbkdf2_sha256"])

DEMO_USERS = (
    ("test-user-1", "test@example.com", "password123"),
    ("premium-user-1", "premium@example.com", "premium123"),
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


class InMemoryAuthProvider(AuthProvider):

    def __init__(self, seed_demo_users: bool = False):
        # email -> (user_id, password_hash)
        self._users: dict[str, tuple[str, str]] = {}
        self._sessions: dict[str, AuthSession] = {}
        self._lock = threading.Lock()
        if seed_demo_users:
            for user_id, email, password in DEMO_USERS:
                self._users[email] = (user_id, hash_password(password))
            logger.info("Auth provider seeded with demo users: %s", [u[1] for u in DEMO_USERS])

    def _open_session(self, user_id: str, email: str) -> AuthSession:
        session = AuthSession(user_id=user_id, email=email, access_token=secrets.token_urlsafe(32))
        self._sessions[session.access_token] = session
        return session

    def sign_up(self, email: str, password: str) -> AuthSession:
        with self._lock:
            if email in self._users:
                raise AuthError("User already exists")
            user_id = str(uuid.uuid4())
            self._users[email] = (user_id, hash_password(password))
            return self._open_session(user_id, email)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        with self._lock:
            entry = self._users.get(email)
            if entry is None or not verify_password(password, entry[1]):
                raise AuthError("Invalid email or password")
            return self._open_session(entry[0], email)

    def get_session(self, access_token: str | None) -> AuthSession | None:
        if not access_token:
            return None
        return self._sessions.get(access_token)

    def sign_out(self, access_token: str) -> None:
        with self._lock:
            self._sessions.pop(access_token, None)

    def list_users(self) -> list[AuthIdentity]:
        with self._lock:
            return [AuthIdentity(user_id=uid, email=email) for email, (uid, _) in self._users.items()]
