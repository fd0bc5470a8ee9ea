"""Pytest configuration and shared fixtures.

Adds `src/` to `sys.path` so tests can import the project package
without requiring installation.
"""

import logging
import os
import sys
from collections.abc import Callable
from typing import Any

import httpx
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_PATH = os.path.join(PROJECT_ROOT, "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from arcbridge.client.api import ArcSightClient  # noqa: E402
from arcbridge.client.fetcher import ResilientFetcher  # noqa: E402
from arcbridge.client.token import TokenManager, reset_token_manager  # noqa: E402
from arcbridge.core.settings import EnvSettings  # noqa: E402

BASE_URL = "https://esm.test/rest"
LOGIN_URL = "https://esm.test/login"
API_PREFIX = "/rest/v1"


def api_path(path: str) -> str:
    """Request path as seen by the transport for an API path."""
    return f"{API_PREFIX}{path}"


def login_payload(token: str) -> dict[str, Any]:
    return {"log.loginResponse": {"log.return": token}}


Route = tuple[int, Any] | Callable[[httpx.Request], httpx.Response]


class FakeArcSight:
    """In-memory ArcSight ESM for httpx.MockTransport.

    Routes map (method, path) to either a (status, json) tuple, a callable
    taking the request, or a list of those consumed one per call.
    Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Route | list[Route]] = {}
        self.requests: list[httpx.Request] = []
        self.logins = 0
        self.routes[("POST", "/login")] = self._login

    def add(self, method: str, path: str, route: Route | list[Route]) -> None:
        self.routes[(method, api_path(path))] = route

    def _login(self, request: httpx.Request) -> httpx.Response:
        self.logins += 1
        return httpx.Response(200, json=login_payload(f"session-{self.logins}"))

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == api_path(path)]

    def api_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith(API_PREFIX)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404)
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if callable(route):
            return route(request)
        status, payload = route
        return httpx.Response(status, json=payload)


@pytest.fixture(autouse=True)
def isolated_token_manager():
    """Drop the process-wide TokenManager around every test."""
    reset_token_manager()
    yield
    reset_token_manager()


@pytest.fixture(autouse=True)
def restore_arcbridge_logger():
    """Undo setup_logging() so caplog still sees arcbridge records."""
    root_level = logging.getLogger().level
    yield
    logging.getLogger().setLevel(root_level)
    bridge_logger = logging.getLogger("arcbridge")
    bridge_logger.handlers.clear()
    bridge_logger.propagate = True
    bridge_logger.setLevel(logging.NOTSET)


@pytest.fixture
def test_settings() -> EnvSettings:
    """Settings with login configured and no static token; ignores any .env file."""
    return EnvSettings(
        _env_file=None,
        arcsight_api_base_url=BASE_URL,
        arcsight_login_url=LOGIN_URL,
        arcsight_username="analyst",
        arcsight_password="s3cret",
        arcsight_api_token="",
        arcsight_batch_size=50,
    )


@pytest.fixture
def fake() -> FakeArcSight:
    return FakeArcSight()


@pytest.fixture
def token_manager(fake: FakeArcSight, test_settings: EnvSettings) -> TokenManager:
    transport = httpx.MockTransport(fake)
    return TokenManager(test_settings, http_client=httpx.AsyncClient(transport=transport))


@pytest.fixture
def fetcher(fake: FakeArcSight, test_settings: EnvSettings, token_manager: TokenManager) -> ResilientFetcher:
    return ResilientFetcher(test_settings, token_manager, transport=httpx.MockTransport(fake))


@pytest.fixture
def client(fetcher: ResilientFetcher) -> ArcSightClient:
    return ArcSightClient(fetcher)
