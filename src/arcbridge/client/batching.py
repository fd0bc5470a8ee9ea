"""Sequential ID batching for ArcSight bulk-fetch endpoints.

The /{type}/ids endpoints accept any number of IDs in theory but are
payload- and rate-limited in practice. Chunks are fetched one after another
so a large listing never holds more than one pooled connection.
"""

import logging
from collections.abc import Awaitable, Callable, Iterator, Sequence
from typing import TypeVar

from arcbridge.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def chunked(ids: Sequence[str], size: int) -> Iterator[list[str]]:
    """Yield contiguous chunks of at most `size` IDs."""
    if size < 1:
        msg = f"batch size must be at least 1, got {size}"
        raise ValidationError(msg)
    for start in range(0, len(ids), size):
        yield list(ids[start : start + size])


async def fetch_all_by_ids(
    ids: Sequence[str],
    batch_size: int,
    fetch_batch: Callable[[list[str]], Awaitable[list[T]]],
) -> list[T]:
    """
    Fetch records for `ids` in sequential chunks, preserving chunk order.

    Args:
        ids: Resource IDs to resolve
        batch_size: Maximum IDs per upstream call
        fetch_batch: Coroutine function resolving one chunk

    Returns:
        Concatenated results of every chunk

    Raises:
        ValidationError: If batch_size < 1
        Exception: The first chunk failure, unchanged (no partial result)
    """
    if not ids:
        return []

    batches = list(chunked(ids, batch_size))
    results: list[T] = []
    for index, batch in enumerate(batches, start=1):
        logger.debug(f"Fetching batch {index}/{len(batches)} ({len(batch)} ids)")
        results.extend(await fetch_batch(batch))
    return results
