"""Error taxonomy for the ArcSight integration layer.

Callers (route handlers, the CLI) translate these into status codes or
exit codes; nothing HTTP-specific leaks past this module.
"""


class ArcBridgeError(Exception):
    """Base error for arcbridge."""


class ConfigurationError(ArcBridgeError):
    """Required endpoint or credential configuration is missing."""


class AuthenticationError(ArcBridgeError):
    """Login failed or returned an unusable token."""


class UpstreamAuthError(ArcBridgeError):
    """Credential rejected again after a fresh login."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"ArcSight rejected credentials after re-authentication: {path}")


class RequestTimeoutError(ArcBridgeError, TimeoutError):
    """An upstream call exceeded its timeout budget."""

    def __init__(self, path: str, timeout: float) -> None:
        self.path = path
        self.timeout = timeout
        super().__init__(f"ArcSight request timed out after {timeout:g}s: {path}")


class UpstreamError(ArcBridgeError):
    """Non-success status, transport failure or malformed payload from a data call."""

    def __init__(self, reason: str, status_code: int | None = None, path: str | None = None) -> None:
        self.reason = reason
        self.status_code = status_code
        self.path = path
        if status_code is not None:
            message = f"ArcSight API error: {status_code} {reason}"
        else:
            message = f"ArcSight API error: {reason}"
        if path:
            message = f"{message} ({path})"
        super().__init__(message)


class NotFoundError(ArcBridgeError):
    """Semantic absence, e.g. a customer without a parent group."""


class ValidationError(ArcBridgeError):
    """Caller input violates a precondition; raised before any network call."""


__all__ = [
    "ArcBridgeError",
    "AuthenticationError",
    "ConfigurationError",
    "NotFoundError",
    "RequestTimeoutError",
    "UpstreamAuthError",
    "UpstreamError",
    "ValidationError",
]
