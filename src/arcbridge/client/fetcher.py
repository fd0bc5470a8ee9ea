"""Authenticated request executor for the ArcSight ESM API.

Every call:
    - attaches the bearer credential from TokenManager
    - goes through one pooled httpx.AsyncClient (bounded connections, HTTP/1.1)
    - runs under its own timeout budget
    - on 401, drops the cached token and retries exactly once
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from arcbridge.client.token import TokenManager, get_token_manager, pool_limits, pool_timeout
from arcbridge.core.exceptions import (
    ConfigurationError,
    RequestTimeoutError,
    UpstreamAuthError,
    UpstreamError,
)
from arcbridge.core.settings import EnvSettings

logger = logging.getLogger(__name__)


class ResilientFetcher:
    """Bearer-authenticated HTTP executor with a bounded 401 retry."""

    # First attempt plus one retry after re-authentication
    MAX_ATTEMPTS = 2

    def __init__(
        self,
        settings: EnvSettings | None = None,
        token_manager: TokenManager | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize fetcher.

        Args:
            settings: Connection settings (default: global settings)
            token_manager: Credential source (default: process-wide TokenManager)
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        if settings is None:
            from arcbridge.core.settings import settings as global_settings

            settings = global_settings

        self.settings = settings
        self.token_manager = token_manager or get_token_manager()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ResilientFetcher:
        self._get_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=pool_limits(self.settings),
                timeout=pool_timeout(self.settings),
                verify=self.settings.arcsight_verify_ssl,
                transport=self._transport,
            )
        return self._client

    # ------------------------------------------
    # Core request
    # ------------------------------------------
    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        timeout: float | None = None,
        revalidate: int | None = None,
    ) -> httpx.Response:
        """
        Execute an authenticated request against the ArcSight API.

        Args:
            method: HTTP method
            path: API path below the configured prefix (e.g., "/connectors/live")
            params: Query parameters (list values repeat the key)
            json: JSON request body
            timeout: Whole-call budget in seconds (default: ARCSIGHT_REQUEST_TIMEOUT)
            revalidate: Freshness hint in seconds for intermediary caches (GET only)

        Returns:
            Successful httpx.Response

        Raises:
            ConfigurationError: If ARCSIGHT_API_BASE_URL is not set
            UpstreamAuthError: If the credential is rejected after re-authentication
            RequestTimeoutError: If the call exceeds its budget
            UpstreamError: On any other non-success status or transport failure
        """
        base_url = self.settings.base_url
        if not base_url:
            msg = "ArcSight API not configured. Set ARCSIGHT_API_BASE_URL"
            raise ConfigurationError(msg)

        method = method.upper()
        budget = timeout if timeout is not None else self.settings.arcsight_request_timeout
        url = f"{base_url}{path}"

        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            token = await self.token_manager.get_credential(self._get_client())
            headers = {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            }
            if revalidate is not None and method == "GET":
                headers["Cache-Control"] = f"max-age={revalidate}"

            response = await self._send(
                method, url, path, budget, headers=headers, params=params, json=json
            )

            if response.status_code == httpx.codes.UNAUTHORIZED:
                if attempt < self.MAX_ATTEMPTS:
                    logger.info(f"401 on {method} {path} - re-authenticating")
                    self.token_manager.invalidate()
                    continue
                logger.error(f"401 on {method} {path} after re-authentication")
                raise UpstreamAuthError(path)

            if not response.is_success:
                logger.warning(f"ArcSight {method} {path} failed: {response.status_code}")
                raise UpstreamError(
                    response.reason_phrase or "request failed",
                    status_code=response.status_code,
                    path=path,
                )

            return response

        raise UpstreamAuthError(path)

    async def _send(
        self,
        method: str,
        url: str,
        path: str,
        budget: float,
        **request_kwargs: Any,
    ) -> httpx.Response:
        client = self._get_client()
        try:
            return await asyncio.wait_for(
                client.request(
                    method,
                    url,
                    timeout=pool_timeout(self.settings, budget),
                    **request_kwargs,
                ),
                timeout=budget,
            )
        except (TimeoutError, httpx.TimeoutException) as e:
            logger.error(f"ArcSight {method} {path} timed out after {budget:g}s")
            raise RequestTimeoutError(path, budget) from e
        except httpx.RequestError as e:
            logger.error(f"ArcSight {method} {path} request failed: {e}")
            raise UpstreamError(f"request failed: {e}", path=path) from e

    # ------------------------------------------
    # JSON helpers
    # ------------------------------------------
    async def get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
        revalidate: int | None = None,
    ) -> Any:
        """GET a path and decode the JSON body.

        Raises:
            UpstreamError: If the body is not valid JSON (plus everything request() raises)
        """
        response = await self.request(
            "GET", path, params=params, timeout=timeout, revalidate=revalidate
        )
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Malformed JSON from ArcSight GET {path}")
            raise UpstreamError("malformed response", status_code=response.status_code, path=path) from e

    async def post_json(self, path: str, body: Any, *, timeout: float | None = None) -> None:
        """POST a JSON body; any response body is ignored."""
        await self.request("POST", path, json=body, timeout=timeout)
