"""Connector health summary."""

import asyncio
import logging

from arcbridge.client.api import ArcSightClient
from arcbridge.models import ConnectorHealth

logger = logging.getLogger(__name__)


class HealthAggregator:
    """Combines the live and dead connector ID lists."""

    def __init__(self, client: ArcSightClient | None = None) -> None:
        self.client = client or ArcSightClient()

    async def connector_health(self) -> ConnectorHealth:
        """
        Fetch live and dead connector IDs concurrently.

        Both lists are required; any failure fails the whole call. Upstream is
        trusted to keep the sets disjoint.
        """
        tasks = [
            asyncio.create_task(self.client.get_live_connector_ids()),
            asyncio.create_task(self.client.get_dead_connector_ids()),
        ]
        try:
            live, dead = await asyncio.gather(*tasks)
        except Exception as e:
            logger.error(f"connector_health failed: {e}")
            # Release the sibling's pool slot
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return ConnectorHealth(live=live, dead=dead, total=len(live) + len(dead))
