"""
Authentication service used by the shell and the pages.

Logs in against the hosted identity service and, when it is unreachable or
FORCE_TEMP_AUTH is set, against the fallback demo table (TempAuth). Either
way the result is a Session kept in the client's storage.
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from ..api.models import Role, Session, UserStatus
from .errors import AuthenticationError, IdentityUnavailableError
from .i18n import I18n
from .identity import IdentityResult
from .storage import LocalStorage
from .temp_auth import TempAuth

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "currentUser"

# auth code -> message key
AUTH_ERROR_MESSAGES = {
    "auth/user-not-found": "errors.user_not_found",
    "auth/wrong-password": "errors.wrong_password",
    "auth/invalid-credential": "errors.invalid_credential",
    "auth/user-disabled": "errors.user_disabled",
    "auth/too-many-requests": "errors.too_many_requests",
    "auth/account-pending": "errors.account_pending",
    "auth/email-already-in-use": "errors.email_already_in_use",
    "auth/weak-password": "errors.weak_password",
    "auth/invalid-email": "errors.invalid_email",
    "auth/network-request-failed": "errors.network",
}


def auth_error_message(i18n: I18n, code: str, default_key: str = "errors.login_failed") -> str:
    return i18n.t(AUTH_ERROR_MESSAGES.get(code, default_key))


class AuthService:
    def __init__(self, context, storage: LocalStorage):
        self.context = context
        self.storage = storage
        self.temp_auth = TempAuth(storage)

    @property
    def force_temp_auth(self) -> bool:
        return self.context.force_temp_auth

    async def login(self, email: str, password: str) -> Session:
        """Log in and persist the session.

        Raises:
            AuthenticationError: credentials rejected, or the profile is
                missing / not yet approved
        """
        if self.force_temp_auth:
            return await self.temp_auth.login(email, password)

        try:
            result = await self.context.identity.sign_in(email, password)
        except IdentityUnavailableError as e:
            logger.warning(f"Identity service unavailable, using temporary authentication: {e}")
            return await self.temp_auth.login(email, password)

        session = await self._session_for(result)
        self.storage.set_item(CURRENT_USER_KEY, session.model_dump_json())
        logger.info(f"User {session.email} logged in ({session.role.value})")
        return session

    async def _session_for(self, result: IdentityResult) -> Session:
        db = self.context.db
        user = await db.get_user(result.uid) or await db.get_user_by_email(result.email)
        if user is None:
            raise AuthenticationError("auth/user-not-found", f"no profile for {result.email}")
        if user.status == UserStatus.pending_approval:
            raise AuthenticationError("auth/account-pending", f"{result.email} is awaiting approval")
        if user.status != UserStatus.active:
            raise AuthenticationError("auth/user-disabled", f"{result.email} is {user.status.value}")
        return Session(
            uid=user.id,
            email=user.email,
            display_name=user.name or result.display_name,
            role=user.role,
            tenant_id=user.tenant_id,
            status=user.status,
            is_temp=False,
        )

    async def logout(self) -> None:
        self.storage.remove_item(CURRENT_USER_KEY)
        await self.temp_auth.logout()

    def current_user(self) -> Optional[Session]:
        raw = self.storage.get_item(CURRENT_USER_KEY)
        if raw is not None:
            try:
                return Session.model_validate(json.loads(raw))
            except (ValueError, ValidationError) as e:
                logger.error(f"Stored session unreadable, clearing it: {e}")
                self.storage.remove_item(CURRENT_USER_KEY)
        return self.temp_auth.get_current_user()

    def is_authenticated(self) -> bool:
        return self.current_user() is not None

    def has_role(self, *roles: Role) -> bool:
        user = self.current_user()
        return user is not None and user.has_role(*roles)

    def is_temp_session(self) -> bool:
        user = self.current_user()
        return user is not None and user.is_temp

    async def register_with_email(self, email: str, password: str, display_name: str = "") -> IdentityResult:
        """Create an identity-service account. The caller creates the profile."""
        try:
            return await self.context.identity.sign_up(email, password, display_name)
        except IdentityUnavailableError as e:
            raise AuthenticationError("auth/network-request-failed", str(e)) from e
