"""
Client for the hosted identity service (Identity Toolkit REST API).

The API key comes from the runtime configuration resolved by Environment.
Rejections are raised as AuthenticationError with an ``auth/...`` code;
anything that means "the service can't be used right now" (transport
failure, 5xx, a project that isn't set up) is IdentityUnavailableError so
the caller can fall back to the local provider.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from .environment import Environment
from .errors import AuthenticationError, ConfigurationError, IdentityUnavailableError

logger = logging.getLogger(__name__)

# Vendor error message -> auth code
ERROR_CODES = {
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "USER_DISABLED": "auth/user-disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "WEAK_PASSWORD": "auth/weak-password",
    "INVALID_EMAIL": "auth/invalid-email",
    "MISSING_PASSWORD": "auth/missing-password",
}

# Messages meaning the project/key is unusable rather than the credentials
UNAVAILABLE_MARKERS = ("API key not valid", "CONFIGURATION_NOT_FOUND", "PROJECT_NOT_FOUND")


class IdentityResult(BaseModel):
    uid: str
    email: str
    display_name: str = ""
    id_token: str = ""
    refresh_token: str = ""


def map_error(message: str) -> str:
    """Map an Identity Toolkit error message to an auth code.

    Messages may carry detail after the code, e.g.
    ``WEAK_PASSWORD : Password should be at least 6 characters``.
    """
    head = message.split(" : ", 1)[0].strip()
    return ERROR_CODES.get(head, "auth/internal-error")


class IdentityService:
    def __init__(self, env: Environment, base_url: str, timeout: float = 10.0,
                 client: Optional[httpx.AsyncClient] = None):
        self._env = env
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def sign_in(self, email: str, password: str) -> IdentityResult:
        data = await self._call("accounts:signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return self._result(data)

    async def sign_up(self, email: str, password: str, display_name: str = "") -> IdentityResult:
        payload: Dict[str, Any] = {"email": email, "password": password, "returnSecureToken": True}
        if display_name:
            payload["displayName"] = display_name
        data = await self._call("accounts:signUp", payload)
        result = self._result(data)
        if display_name and not result.display_name:
            result.display_name = display_name
        return result

    @staticmethod
    def _result(data: Dict[str, Any]) -> IdentityResult:
        return IdentityResult(
            uid=data.get("localId", ""),
            email=data.get("email", ""),
            display_name=data.get("displayName") or "",
            id_token=data.get("idToken", ""),
            refresh_token=data.get("refreshToken", ""),
        )

    async def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            firebase = await self._env.firebase_config()
        except ConfigurationError as e:
            raise IdentityUnavailableError(f"identity service is not configured: {e}") from e

        url = f"{self._base_url}/{method}"
        params = {"key": firebase.api_key}
        try:
            if self._client is not None:
                response = await self._client.post(url, params=params, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, params=params, json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"Identity service unreachable ({method}): {e}")
            raise IdentityUnavailableError(str(e)) from e

        if response.status_code >= 500:
            logger.warning(f"Identity service error {response.status_code} ({method})")
            raise IdentityUnavailableError(f"identity service returned {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise IdentityUnavailableError(f"identity service returned a non-JSON body: {e}") from e

        if response.status_code >= 400:
            message = str((data.get("error") or {}).get("message", "")) if isinstance(data, dict) else ""
            if any(marker in message for marker in UNAVAILABLE_MARKERS):
                logger.warning(f"Identity service rejected the project configuration: {message}")
                raise IdentityUnavailableError(message)
            code = map_error(message)
            logger.info(f"Identity service rejected {method}: {message} -> {code}")
            raise AuthenticationError(code, message)

        return data
