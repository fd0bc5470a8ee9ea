"""ArcSight credential lifecycle.

Architecture:
    One credential per process:
        - static override (ARCSIGHT_API_TOKEN): never expires, never invalidated
        - session token: obtained via form login, cached in a TokenStore,
          cleared when a data call is rejected with 401, re-obtained on demand

    Concurrent logins are tolerated; the last one to finish wins the slot.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from arcbridge.core.exceptions import AuthenticationError, ConfigurationError, RequestTimeoutError
from arcbridge.core.settings import EnvSettings

logger = logging.getLogger(__name__)


def pool_limits(settings: EnvSettings) -> httpx.Limits:
    """Connection cap shared by every client talking to ESM."""
    return httpx.Limits(
        max_connections=settings.arcsight_max_connections,
        max_keepalive_connections=settings.arcsight_max_connections,
    )


def pool_timeout(settings: EnvSettings, budget: float | None = None) -> httpx.Timeout:
    return httpx.Timeout(
        budget if budget is not None else settings.arcsight_request_timeout,
        connect=settings.arcsight_connect_timeout,
    )


# ============================================
# Token Storage
# ============================================
class TokenStore(ABC):
    """Abstract single mutable slot holding the cached session token."""

    @abstractmethod
    def get(self) -> str | None:
        """Return the cached token, or None if empty."""
        ...

    @abstractmethod
    def set(self, token: str) -> None:
        """Replace the cached token."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Empty the slot."""
        ...


class InMemoryTokenStore(TokenStore):
    """Process-local token slot."""

    def __init__(self) -> None:
        self._token: str | None = None

    def get(self) -> str | None:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


# ============================================
# Token Manager
# ============================================
class TokenManager:
    """Hands out the bearer credential, logging in when needed."""

    def __init__(
        self,
        settings: EnvSettings | None = None,
        store: TokenStore | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize token manager.

        Args:
            settings: Connection settings (default: global settings)
            store: Token slot (default: new InMemoryTokenStore)
            http_client: Client used for the login call (default: one-off client per login)
        """
        if settings is None:
            from arcbridge.core.settings import settings as global_settings

            settings = global_settings

        self.settings = settings
        self.store = store or InMemoryTokenStore()
        self.http_client = http_client

    @property
    def static_token(self) -> str | None:
        return self.settings.arcsight_api_token or None

    async def get_credential(self, http_client: httpx.AsyncClient | None = None) -> str:
        """
        Return the credential to send as bearer token.

        Args:
            http_client: Pooled client to log in through when no client was
                configured on this manager

        Returns:
            Static override, cached session token, or a freshly obtained one

        Raises:
            ConfigurationError: If neither a static token nor login settings are configured
            AuthenticationError: If login fails
        """
        if self.static_token:
            return self.static_token

        cached = self.store.get()
        if cached:
            return cached

        return await self.login(http_client)

    async def login(self, http_client: httpx.AsyncClient | None = None) -> str:
        """
        Authenticate against the ESM login service and cache the session token.

        Args:
            http_client: Client to send the login through (the manager's own
                client takes precedence)

        Returns:
            New session token

        Raises:
            ConfigurationError: If login URL, username or password is missing
            AuthenticationError: On non-success status or missing token
            RequestTimeoutError: If the login call exceeds the request timeout
        """
        if not self.settings.has_login_config:
            msg = (
                "ArcSight login not configured. Set ARCSIGHT_LOGIN_URL, ARCSIGHT_USERNAME "
                "and ARCSIGHT_PASSWORD, or ARCSIGHT_API_TOKEN"
            )
            raise ConfigurationError(msg)

        logger.info("Authenticating with ArcSight login service")

        try:
            response = await self._post_login(http_client)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                self.settings.arcsight_login_url, self.settings.arcsight_request_timeout
            ) from e
        except httpx.RequestError as e:
            msg = f"Cannot reach ArcSight login service: {e}"
            raise AuthenticationError(msg) from e

        if not response.is_success:
            msg = f"ArcSight login failed: {response.status_code} {response.reason_phrase}"
            raise AuthenticationError(msg)

        try:
            data = response.json()
        except ValueError as e:
            msg = "ArcSight login response is not valid JSON"
            raise AuthenticationError(msg) from e

        token = _extract_token(data)
        if not token:
            msg = f"ArcSight login response missing token. Got: {response.text[:200]}"
            raise AuthenticationError(msg)

        self.store.set(token)
        logger.info("Authenticated with ArcSight successfully")
        return token

    def invalidate(self) -> None:
        """Drop the cached session token. The static override is unaffected."""
        if self.store.get() is not None:
            logger.debug("Clearing cached ArcSight session token")
        self.store.clear()

    async def _post_login(self, http_client: httpx.AsyncClient | None) -> httpx.Response:
        request_kwargs: dict[str, Any] = {
            "data": {
                "login": self.settings.arcsight_username,
                "password": self.settings.arcsight_password,
            },
            "headers": {"Accept": "application/json"},
            "timeout": pool_timeout(self.settings),
        }

        client = self.http_client or http_client
        if client is not None:
            return await client.post(self.settings.arcsight_login_url, **request_kwargs)

        async with httpx.AsyncClient(
            limits=pool_limits(self.settings),
            timeout=pool_timeout(self.settings),
            verify=self.settings.arcsight_verify_ssl,
        ) as client:
            return await client.post(self.settings.arcsight_login_url, **request_kwargs)


def _extract_token(data: Any) -> str | None:
    """Pull the token out of {"log.loginResponse": {"log.return": "..."}}."""
    if not isinstance(data, dict):
        return None
    login_response = data.get("log.loginResponse")
    if not isinstance(login_response, dict):
        return None
    token = login_response.get("log.return")
    if isinstance(token, str) and token:
        return token
    return None


# Global token manager (singleton pattern)
_token_manager: TokenManager | None = None


def get_token_manager() -> TokenManager:
    """Get the process-wide TokenManager."""
    global _token_manager

    if _token_manager is None:
        _token_manager = TokenManager()

    return _token_manager


def reset_token_manager(manager: TokenManager | None = None) -> None:
    """Replace (or drop) the process-wide TokenManager. Used by tests."""
    global _token_manager
    _token_manager = manager
