"""
Auth use cases: register, login, logout, current user.

Identity and credentials belong to the auth provider; the profile row is
fetched (or reconciled) through ProfileResolver every time an identity
is turned into a user.
"""
import logging
from decimal import Decimal

from paytracker.application.notifications import send_best_effort
from paytracker.application.reconciliation import ProfileResolver, Resolution
from paytracker.domain.profile import Profile
from paytracker.infrastructure.auth.base import AuthError, AuthProvider, AuthSession
from paytracker.infrastructure.notifications.email import WELCOME, EmailSender
from paytracker.infrastructure.store.base import USERS, RecordStore

logger = logging.getLogger(__name__)


class AuthValidationError(AuthError):
    pass


class AuthService:

    def __init__(self, provider: AuthProvider, resolver: ProfileResolver, store: RecordStore,
                 email_sender: EmailSender):
        self.provider = provider
        self.resolver = resolver
        self.store = store
        self.email_sender = email_sender

    def _resolve(self, session: AuthSession, email: str) -> Resolution:
        resolution = self.resolver.resolve(session.user_id, email)
        logger.info("Profile %s resolved (%s)", session.user_id, resolution.state.value)
        return resolution

    def register(self, email: str, password: str, confirm_password: str | None = None) -> tuple[AuthSession, Profile]:
        """
        Create the auth identity and its profile, then send a welcome email

        Raises:
            AuthValidationError: passwords do not match
            AuthError: provider rejected the sign-up
            ProfileMergeError: an orphaned profile with this email could not be merged
        """
        logger.info("Registration attempt for %s", email)
        if confirm_password is not None and password != confirm_password:
            raise AuthValidationError("Passwords do not match")

        session = self.provider.sign_up(email, password)
        profile = self._resolve(session, email).profile

        send_best_effort(self.email_sender, email, WELCOME, {"email": email})
        logger.info("User registered: %s", email)
        return session, profile

    def login(self, email: str, password: str) -> tuple[AuthSession, Profile]:
        """
        Raises:
            AuthError: bad credentials or provider failure
            ProfileMergeError: profile reconciliation failed; user is not logged in
        """
        logger.info("Login attempt for %s", email)
        session = self.provider.sign_in_with_password(email, password)
        profile = self._resolve(session, email).profile
        logger.info("Login successful for %s", email)
        return session, profile

    def logout(self, access_token: str) -> None:
        self.provider.sign_out(access_token)

    def get_current_user(self, access_token: str | None) -> Profile | None:
        """
        Profile of the session behind the token, or None without a session

        Raises:
            ProfileMergeError: profile reconciliation failed
        """
        session = self.provider.get_session(access_token)
        if session is None:
            return None
        return self._resolve(session, session.email).profile

    def update_available_money(self, user_id: str, amount: Decimal) -> Profile:
        rows = self.store.update(USERS, {"available_money": amount}, "id", user_id)
        if not rows:
            raise AuthError("User not authenticated")
        logger.info("Available money updated for %s", user_id)
        return Profile.from_row(rows[0])
