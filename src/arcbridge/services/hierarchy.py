"""Customer-to-connector bridge over the ArcSight group hierarchy.

ArcSight has no "connectors per customer" endpoint. The relation is derived
on every read:
    1. paths-to-root of the customer -> nearest parent group (index 0)
    2. children of that group
    3. children resolved as connectors (non-connectors drop out) + device map
    4. devices joined onto connectors by resource ID

Writes add or remove connector IDs as children of the same parent group.
"""

from __future__ import annotations

import logging

from arcbridge.client.api import ArcSightClient
from arcbridge.client.batching import fetch_all_by_ids
from arcbridge.core.exceptions import NotFoundError, ValidationError
from arcbridge.models import Connector, ConnectorWithDevices, DeviceMap, ResourceId
from arcbridge.services.settle import Facet, settle

logger = logging.getLogger(__name__)


class HierarchyBridge:
    """Reads and writes a customer's connectors through its parent group."""

    def __init__(self, client: ArcSightClient | None = None, batch_size: int | None = None) -> None:
        """
        Initialize bridge.

        Args:
            client: ArcSight API client (default: create new)
            batch_size: IDs per bulk connector fetch (default: ARCSIGHT_BATCH_SIZE)
        """
        self.client = client or ArcSightClient()
        self.batch_size = batch_size or self.client.settings.arcsight_batch_size

    async def resolve_parent_group(self, customer_id: ResourceId) -> ResourceId:
        """
        Return the customer's working group: the first paths-to-root entry.

        Raises:
            NotFoundError: If the customer has no parent group
        """
        paths = await self.client.get_customer_paths_to_root(customer_id)
        logger.debug(f"[{customer_id}] allPathsToRoot: {paths}")
        if not paths:
            msg = f"Customer {customer_id} has no parent group"
            raise NotFoundError(msg)
        return paths[0]

    async def connectors_for_customer(self, customer_id: ResourceId) -> list[ConnectorWithDevices]:
        """
        Connectors reported to a customer, each with its device list.

        A customer without a parent group, or whose group has no children, has
        no connectors. Connector metadata and the device map are independent
        facets: if either fetch fails it is replaced by an empty result.
        """
        tag = f"[connectors_for_customer {customer_id}]"

        try:
            group_id = await self.resolve_parent_group(customer_id)
        except NotFoundError:
            logger.info(f"{tag} no parent group - returning []")
            return []

        child_ids = await self.client.get_group_children(group_id)
        logger.debug(f"{tag} group {group_id} has {len(child_ids)} children")
        if not child_ids:
            return []

        context = {"customer": customer_id, "group": group_id}
        connectors_result, devices_result = await settle(
            Facet(
                "connector fetch",
                fetch_all_by_ids(child_ids, self.batch_size, self.client.get_connectors_by_ids),
                default=[],
                context=context,
            ),
            Facet(
                "device map fetch",
                self.client.get_connector_devices(),
                default={},
                context=context,
            ),
        )
        connectors: list[Connector] = connectors_result.value
        device_map: DeviceMap = devices_result.value

        logger.info(
            f"{tag} connectors: {len(connectors)} | device map entries: {len(device_map)}"
        )
        return join_devices(connectors, device_map)

    async def link_connectors(self, customer_id: ResourceId, connector_ids: list[ResourceId]) -> None:
        """
        Add connectors to the customer's parent group.

        Raises:
            ValidationError: If connector_ids is empty
            NotFoundError: If the customer has no parent group
        """
        _require_ids(connector_ids)
        group_id = await self.resolve_parent_group(customer_id)
        logger.info(f"Linking {len(connector_ids)} connectors to customer {customer_id} (group {group_id})")
        await self.client.add_group_children(group_id, list(connector_ids))

    async def unlink_connectors(self, customer_id: ResourceId, connector_ids: list[ResourceId]) -> None:
        """
        Remove connectors from the customer's parent group.

        Removing an ID that is not a child is a no-op upstream; repeats are allowed.

        Raises:
            ValidationError: If connector_ids is empty
            NotFoundError: If the customer has no parent group
        """
        _require_ids(connector_ids)
        group_id = await self.resolve_parent_group(customer_id)
        logger.info(
            f"Unlinking {len(connector_ids)} connectors from customer {customer_id} (group {group_id})"
        )
        await self.client.remove_group_children(group_id, list(connector_ids))


def join_devices(connectors: list[Connector], device_map: DeviceMap) -> list[ConnectorWithDevices]:
    """Attach each connector's devices, defaulting to an empty list."""
    return [
        ConnectorWithDevices.model_validate(
            {**connector.model_dump(), "devices": device_map.get(connector.resource_id, [])}
        )
        for connector in connectors
    ]


def _require_ids(connector_ids: list[ResourceId]) -> None:
    if not connector_ids:
        msg = "connectorIds must be a non-empty list"
        raise ValidationError(msg)
