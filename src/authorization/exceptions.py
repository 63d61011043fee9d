"""
Errors raised by the authorization engine.

A request that the engine does not apply to (unknown method, no application) is not an error;
it yields a NOT_APPLICABLE result instead.
"""

from typing import Optional

from .domain import AccessMode, Decision


class AuthorizationError(Exception):
    """Base class for authorization engine errors."""
    pass


class ConfigurationError(AuthorizationError):
    """Query templates or application/service metadata are missing or invalid. Never retried."""
    pass


class BackendQueryFailure(AuthorizationError):
    """The policy query could not be completed by the backend service. Distinct from a denial."""

    def __init__(self, endpoint: str, message: str):
        super().__init__(message)
        self.endpoint = endpoint


class AuthorizationDenied(AuthorizationError):
    """The policy query completed but no authorization grants the requested access mode."""

    decision = Decision.DENIED

    def __init__(self, resource: str, mode: AccessMode, message: Optional[str] = None):
        super().__init__(message or f"Access not authorized for request URI: {resource} (mode: {mode.value})")
        self.resource = resource
        self.mode = mode
