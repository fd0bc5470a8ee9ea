"""Step-by-step trace of customer-to-connector resolution.

Runs the same steps as HierarchyBridge.connectors_for_customer one at a
time and records each outcome, so an operator can see which upstream call
explains an empty or failing connector list.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from arcbridge.client.api import ArcSightClient
from arcbridge.client.batching import fetch_all_by_ids
from arcbridge.models import ResolutionReport, ResourceId, StepResult

logger = logging.getLogger(__name__)


async def run_step(fn: Callable[[], Awaitable[Any]]) -> StepResult:
    """Await fn and record the result or error with its duration."""
    start = time.perf_counter()
    try:
        data = await fn()
    except Exception as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.warning(f"Diagnostic step failed after {duration_ms}ms: {e}")
        return StepResult(status="error", error=str(e), duration_ms=duration_ms)
    return StepResult(status="ok", data=data, duration_ms=int((time.perf_counter() - start) * 1000))


def skipped(reason: str) -> StepResult:
    return StepResult(status="skipped", reason=reason)


async def diagnose_customer(
    customer_id: ResourceId,
    client: ArcSightClient | None = None,
    batch_size: int | None = None,
) -> ResolutionReport:
    """Trace connector resolution for one customer. Upstream errors are recorded, not raised."""
    client = client or ArcSightClient()
    batch_size = batch_size or client.settings.arcsight_batch_size

    paths = await run_step(lambda: client.get_customer_paths_to_root(customer_id))
    if paths.status != "ok" or not paths.data:
        reason = (
            "paths-to-root failed"
            if paths.status == "error"
            else "customer has no parent group - no connectors possible"
        )
        return ResolutionReport(
            customer_id=customer_id,
            paths_to_root=paths,
            group_children=skipped(reason),
            connectors=skipped("group children skipped"),
            devices=skipped("group children skipped"),
        )

    group_id = paths.data[0]
    children = await run_step(lambda: client.get_group_children(group_id))
    if children.status != "ok" or not children.data:
        reason = (
            "group children failed"
            if children.status == "error"
            else "group has no children - no connectors"
        )
        return ResolutionReport(
            customer_id=customer_id,
            paths_to_root=paths,
            group_children=children,
            connectors=skipped(reason),
            devices=skipped("connectors skipped"),
        )

    connectors = await run_step(
        lambda: fetch_all_by_ids(children.data, batch_size, client.get_connectors_by_ids)
    )
    if connectors.status == "ok":
        connectors.data = [c.to_api() for c in connectors.data]

    devices = await run_step(client.get_connector_devices)
    if devices.status == "ok":
        devices.data = {"totalDeviceMappings": len(devices.data)}

    return ResolutionReport(
        customer_id=customer_id,
        paths_to_root=paths,
        group_children=children,
        connectors=connectors,
        devices=devices,
    )
