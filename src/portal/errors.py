"""Error taxonomy for the portal.

Configuration and authentication errors propagate to the caller. Navigation
errors never leave the router: it turns them into an inline error panel.
"""

from typing import Optional


class PortalError(Exception):
    """Base class for all portal errors."""


class ConfigurationError(PortalError):
    """Every configuration source was tried and none provided the required keys."""

    def __init__(self, message: str, attempts: Optional[dict] = None):
        super().__init__(message)
        self.attempts = attempts or {}


class AuthenticationError(PortalError):
    """Credentials were rejected, either by the identity service or the fallback table."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code


class IdentityUnavailableError(PortalError):
    """The hosted identity service could not be reached."""


class NotFoundError(PortalError):
    def __init__(self, kind: str, identifier: str, reason: str = "not found"):
        super().__init__(f"{kind} '{identifier}' {reason}")
        self.kind = kind
        self.identifier = identifier
        self.reason = reason


class NavigationError(PortalError):
    """A page could not be resolved or rendered."""
