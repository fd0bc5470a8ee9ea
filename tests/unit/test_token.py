"""Unit tests for the ArcSight TokenManager."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from arcbridge.client.token import (
    InMemoryTokenStore,
    TokenStore,
    TokenManager,
    get_token_manager,
    reset_token_manager,
)
from arcbridge.core.exceptions import AuthenticationError, ConfigurationError, RequestTimeoutError
from arcbridge.core.settings import EnvSettings


def _manager(settings: EnvSettings, handler, store=None) -> TokenManager:
    return TokenManager(
        settings,
        store=store,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _no_network(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


class TestGetCredential:
    """Tests for credential selection order."""

    @pytest.mark.asyncio
    async def test_static_token_takes_priority(self, test_settings: EnvSettings) -> None:
        """A configured static token is returned without logging in."""
        settings = test_settings.model_copy(update={"arcsight_api_token": "static-tok"})
        store = InMemoryTokenStore()
        store.set("cached-tok")
        manager = _manager(settings, _no_network, store=store)

        assert await manager.get_credential() == "static-tok"

    @pytest.mark.asyncio
    async def test_returns_cached_token(self, test_settings: EnvSettings) -> None:
        """Cached session token is reused."""
        store = InMemoryTokenStore()
        store.set("cached-tok")
        manager = _manager(test_settings, _no_network, store=store)

        assert await manager.get_credential() == "cached-tok"

    @pytest.mark.asyncio
    async def test_logs_in_when_cache_empty(self, token_manager: TokenManager, fake) -> None:
        """Empty cache triggers one login; the result is cached."""
        assert await token_manager.get_credential() == "session-1"
        assert await token_manager.get_credential() == "session-1"
        assert fake.logins == 1

    @pytest.mark.asyncio
    async def test_missing_configuration(self) -> None:
        """Neither static token nor login settings raises ConfigurationError."""
        settings = EnvSettings(
            _env_file=None,
            arcsight_api_token="",
            arcsight_login_url="https://esm.test/login",
            arcsight_username="analyst",
            arcsight_password="",
        )
        manager = _manager(settings, _no_network)

        with pytest.raises(ConfigurationError):
            await manager.get_credential()


class TestLogin:
    """Tests for the form login call."""

    @pytest.mark.asyncio
    async def test_login_sends_form_body(self, test_settings: EnvSettings) -> None:
        """Login posts url-encoded login/password and asks for JSON."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"log.loginResponse": {"log.return": "tok-abc"}})

        manager = _manager(test_settings, handler)
        token = await manager.login()

        assert token == "tok-abc"
        assert manager.store.get() == "tok-abc"
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://esm.test/login"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert request.headers["accept"] == "application/json"
        assert request.content == b"login=analyst&password=s3cret"

    @pytest.mark.asyncio
    async def test_login_overwrites_previous_token(self, token_manager: TokenManager) -> None:
        """Each login replaces the cached value."""
        token_manager.store.set("old")
        assert await token_manager.login() == "session-1"
        assert token_manager.store.get() == "session-1"

    @pytest.mark.asyncio
    async def test_login_non_success_status(self, test_settings: EnvSettings) -> None:
        """Non-2xx login raises AuthenticationError and caches nothing."""
        manager = _manager(test_settings, lambda r: httpx.Response(403))

        with pytest.raises(AuthenticationError, match="403"):
            await manager.login()
        assert manager.store.get() is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"log.loginResponse": {}},
            {"log.loginResponse": {"log.return": ""}},
            {"log.loginResponse": {"log.return": 42}},
            {"log.loginResponse": "nope"},
            ["not", "a", "dict"],
        ],
    )
    async def test_login_missing_token(self, test_settings: EnvSettings, payload) -> None:
        """Missing or malformed token field raises AuthenticationError."""
        manager = _manager(test_settings, lambda r: httpx.Response(200, json=payload))

        with pytest.raises(AuthenticationError, match="missing token"):
            await manager.login()

    @pytest.mark.asyncio
    async def test_login_invalid_json(self, test_settings: EnvSettings) -> None:
        """Non-JSON body raises AuthenticationError."""
        manager = _manager(test_settings, lambda r: httpx.Response(200, text="<html>"))

        with pytest.raises(AuthenticationError):
            await manager.login()

    @pytest.mark.asyncio
    async def test_login_connection_error(self, test_settings: EnvSettings) -> None:
        """Transport failure raises AuthenticationError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        manager = _manager(test_settings, handler)

        with pytest.raises(AuthenticationError, match="Cannot reach"):
            await manager.login()

    @pytest.mark.asyncio
    async def test_login_timeout(self, test_settings: EnvSettings) -> None:
        """Login timeout raises RequestTimeoutError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        manager = _manager(test_settings, handler)

        with pytest.raises(RequestTimeoutError):
            await manager.login()


class TestInvalidate:
    """Tests for invalidate()."""

    def test_invalidate_clears_cache(self, token_manager: TokenManager) -> None:
        token_manager.store.set("tok")
        token_manager.invalidate()
        assert token_manager.store.get() is None

    def test_invalidate_is_idempotent(self, token_manager: TokenManager) -> None:
        token_manager.invalidate()
        token_manager.invalidate()
        assert token_manager.store.get() is None

    @pytest.mark.asyncio
    async def test_invalidate_keeps_static_token(self, test_settings: EnvSettings) -> None:
        """Static override survives invalidate()."""
        settings = test_settings.model_copy(update={"arcsight_api_token": "static-tok"})
        manager = _manager(settings, _no_network)

        manager.invalidate()

        assert await manager.get_credential() == "static-tok"


class TestGlobalManager:
    """Tests for the process-wide singleton."""

    def test_get_token_manager_is_singleton(self) -> None:
        assert get_token_manager() is get_token_manager()

    def test_reset_replaces_instance(self, test_settings: EnvSettings) -> None:
        first = get_token_manager()
        custom = TokenManager(test_settings)
        reset_token_manager(custom)
        assert get_token_manager() is custom
        reset_token_manager()
        assert get_token_manager() is not first


class TestTokenStore:
    """Tests for the token slot interface."""

    def test_base_store_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            TokenStore()

    def test_in_memory_roundtrip(self) -> None:
        store = InMemoryTokenStore()
        store.set("tok")
        assert store.get() == "tok"
        store.clear()
        assert store.get() is None


class TestLoginClient:
    """Tests for which client carries the login request."""

    @pytest.mark.asyncio
    async def test_login_uses_passed_client(self, test_settings: EnvSettings, fake) -> None:
        """Without its own client, the manager logs in through the caller's pool."""
        manager = TokenManager(test_settings)
        pooled = httpx.AsyncClient(transport=httpx.MockTransport(fake))

        assert await manager.get_credential(pooled) == "session-1"
        assert fake.logins == 1

    @pytest.mark.asyncio
    async def test_own_client_takes_precedence(self, test_settings: EnvSettings, fake) -> None:
        manager = TokenManager(test_settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(fake)))
        other = httpx.AsyncClient(transport=httpx.MockTransport(_no_network))

        assert await manager.login(other) == "session-1"

    @pytest.mark.asyncio
    async def test_one_off_client_is_bounded(self, test_settings: EnvSettings) -> None:
        """A standalone login client gets the same pool limits and connect timeout."""
        settings = test_settings.model_copy(
            update={"arcsight_max_connections": 4, "arcsight_connect_timeout": 7.0}
        )
        manager = TokenManager(settings)

        with patch("arcbridge.client.token.httpx.AsyncClient") as mock_client:
            session = mock_client.return_value.__aenter__.return_value
            session.post = AsyncMock(
                return_value=httpx.Response(200, json={"log.loginResponse": {"log.return": "tok"}})
            )
            assert await manager.login() == "tok"

        kwargs = mock_client.call_args.kwargs
        assert kwargs["limits"].max_connections == 4
        assert kwargs["timeout"].connect == 7.0
