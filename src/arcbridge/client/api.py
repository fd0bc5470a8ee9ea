"""ArcSight ESM endpoint wrappers.

Thin typed layer over ResilientFetcher: one method per upstream endpoint,
payloads validated into arcbridge.models.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from urllib.parse import quote

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from arcbridge.client.fetcher import ResilientFetcher
from arcbridge.core.exceptions import UpstreamError
from arcbridge.core.settings import EnvSettings
from arcbridge.models import Connector, Customer, DeviceDetail, DeviceMap, ResourceId

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Freshness hints (seconds) handed to intermediary caches
REVALIDATE_DEFAULT = 30
REVALIDATE_LISTING = 60
REVALIDATE_HEALTH = 10

_ID_LIST = TypeAdapter(list[ResourceId])
_CUSTOMER = TypeAdapter(Customer)
_CUSTOMERS = TypeAdapter(list[Customer])
_CONNECTORS = TypeAdapter(list[Connector])


def _segment(resource_id: str) -> str:
    return quote(resource_id, safe="")


def _parse(adapter: TypeAdapter[T], payload: Any, path: str) -> T:
    try:
        return adapter.validate_python(payload)
    except PydanticValidationError as e:
        logger.error(f"Unexpected payload shape from ArcSight {path}: {e.error_count()} errors")
        raise UpstreamError("malformed response", path=path) from e


def _parse_device_map(payload: Any, path: str) -> DeviceMap:
    """Validate the device map device by device, dropping only bad records."""
    if not isinstance(payload, dict):
        logger.error(f"Unexpected payload shape from ArcSight {path}: {type(payload).__name__}")
        raise UpstreamError("malformed response", path=path)

    device_map: DeviceMap = {}
    dropped = 0
    for connector_id, records in payload.items():
        if not isinstance(records, list):
            logger.warning(f"Skipping device list for connector {connector_id}: not a list")
            continue
        devices: list[DeviceDetail] = []
        for record in records:
            try:
                devices.append(DeviceDetail.model_validate(record))
            except PydanticValidationError:
                dropped += 1
        device_map[connector_id] = devices

    if dropped:
        logger.warning(f"Dropped {dropped} malformed device records from ArcSight {path}")
    return device_map


class ArcSightClient:
    """Typed access to the ArcSight ESM resource API."""

    def __init__(self, fetcher: ResilientFetcher | None = None) -> None:
        self.fetcher = fetcher or ResilientFetcher()

    @property
    def settings(self) -> EnvSettings:
        return self.fetcher.settings

    async def __aenter__(self) -> ArcSightClient:
        await self.fetcher.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.fetcher.aclose()

    async def aclose(self) -> None:
        await self.fetcher.aclose()

    async def _get(self, adapter: TypeAdapter[T], path: str, **kwargs: Any) -> T:
        payload = await self.fetcher.get_json(path, **kwargs)
        return _parse(adapter, payload, path)

    # ------------------------------------------
    # Customers
    # ------------------------------------------
    async def get_all_customer_ids(self) -> list[ResourceId]:
        return await self._get(_ID_LIST, "/customers/allIds", revalidate=REVALIDATE_LISTING)

    async def get_customers_by_ids(self, ids: list[ResourceId]) -> list[Customer]:
        return await self._get(
            _CUSTOMERS, "/customers/ids", params={"ids": ids}, revalidate=REVALIDATE_LISTING
        )

    async def get_customer(self, customer_id: ResourceId) -> Customer:
        return await self._get(
            _CUSTOMER, f"/customers/{_segment(customer_id)}", revalidate=REVALIDATE_DEFAULT
        )

    async def get_customer_paths_to_root(self, customer_id: ResourceId) -> list[ResourceId]:
        """Ancestor group IDs of a customer, as returned (index 0 taken as nearest)."""
        return await self._get(
            _ID_LIST,
            f"/customers/{_segment(customer_id)}/allPathsToRoot",
            revalidate=REVALIDATE_DEFAULT,
        )

    # ------------------------------------------
    # Groups
    # ------------------------------------------
    async def get_group_children(self, group_id: ResourceId) -> list[ResourceId]:
        return await self._get(
            _ID_LIST, f"/groups/{_segment(group_id)}/children", revalidate=REVALIDATE_DEFAULT
        )

    async def add_group_children(self, group_id: ResourceId, child_ids: list[ResourceId]) -> None:
        await self.fetcher.post_json(f"/groups/{_segment(group_id)}/children", child_ids)

    async def remove_group_children(self, group_id: ResourceId, child_ids: list[ResourceId]) -> None:
        await self.fetcher.post_json(f"/groups/{_segment(group_id)}/removeChildren", child_ids)

    # ------------------------------------------
    # Connectors
    # ------------------------------------------
    async def get_all_connector_ids(self) -> list[ResourceId]:
        return await self._get(_ID_LIST, "/connectors/allIds", revalidate=REVALIDATE_LISTING)

    async def get_connectors_by_ids(self, ids: list[ResourceId]) -> list[Connector]:
        """Resolve IDs to connectors; IDs that are not connectors are dropped upstream."""
        return await self._get(
            _CONNECTORS, "/connectors/ids", params={"ids": ids}, revalidate=REVALIDATE_DEFAULT
        )

    async def get_connector_devices(self, timeout: float | None = None) -> DeviceMap:
        """Device map for every connector (slow on large deployments).

        Malformed device records are dropped individually; only a payload
        that is not an object fails the call.
        """
        if timeout is None:
            timeout = self.settings.arcsight_device_map_timeout
        path = "/connectors/devices"
        payload = await self.fetcher.get_json(path, timeout=timeout, revalidate=REVALIDATE_DEFAULT)
        return _parse_device_map(payload, path)

    async def get_live_connector_ids(self) -> list[ResourceId]:
        return await self._get(_ID_LIST, "/connectors/live", revalidate=REVALIDATE_HEALTH)

    async def get_dead_connector_ids(self) -> list[ResourceId]:
        return await self._get(_ID_LIST, "/connectors/dead", revalidate=REVALIDATE_HEALTH)
