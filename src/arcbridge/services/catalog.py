"""Customer and connector listings."""

import logging

from arcbridge.client.api import ArcSightClient
from arcbridge.client.batching import fetch_all_by_ids
from arcbridge.models import Connector, Customer, DeviceMap, ResourceId

logger = logging.getLogger(__name__)


class Catalog:
    """Batched listings of customers and connectors."""

    def __init__(self, client: ArcSightClient | None = None, batch_size: int | None = None) -> None:
        self.client = client or ArcSightClient()
        self.batch_size = batch_size or self.client.settings.arcsight_batch_size

    async def list_customers(self, search: str | None = None) -> list[Customer]:
        """
        All customers, optionally filtered.

        Args:
            search: Case-insensitive substring matched against name, alias,
                external ID, city and country

        Returns:
            Customers in upstream ID order
        """
        ids = await self.client.get_all_customer_ids()
        customers = await fetch_all_by_ids(ids, self.batch_size, self.client.get_customers_by_ids)

        if search:
            customers = [c for c in customers if c.matches(search)]
        return customers

    async def get_customer(self, customer_id: ResourceId) -> Customer:
        return await self.client.get_customer(customer_id)

    async def list_connectors(self) -> list[Connector]:
        ids = await self.client.get_all_connector_ids()
        return await fetch_all_by_ids(ids, self.batch_size, self.client.get_connectors_by_ids)

    async def connector_devices(self, degrade: bool = True) -> DeviceMap:
        """
        Global connector-to-devices map.

        Args:
            degrade: Return an empty map instead of raising when the fetch fails
        """
        try:
            return await self.client.get_connector_devices()
        except Exception as e:
            if not degrade:
                raise
            logger.error(f"Connector devices unavailable: {e}")
            return {}
