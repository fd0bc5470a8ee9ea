"""Settle-all combinator for independently optional facets.

Runs awaitables concurrently and substitutes a per-facet default for any
that fail, so a composite read degrades facet by facet instead of failing
as a whole.
"""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class Facet:
    """One independently fetchable part of a composite result."""

    name: str
    awaitable: Awaitable[Any]
    default: Any = None
    context: dict[str, Any] = field(default_factory=dict)


@dataclass
class Settled:
    """Outcome of one facet."""

    name: str
    value: Any
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle(*facets: Facet) -> list[Settled]:
    """
    Await all facets concurrently, substituting defaults on failure.

    Args:
        *facets: Facets to run; each carries its own timeout

    Returns:
        One Settled per facet, in input order

    Note:
        Only Exception subclasses are absorbed; cancellation of the caller
        still propagates.
    """
    results = await asyncio.gather(*(f.awaitable for f in facets), return_exceptions=True)

    settled: list[Settled] = []
    for facet, result in zip(facets, results, strict=True):
        if isinstance(result, Exception):
            context = " ".join(f"{k}={v}" for k, v in facet.context.items())
            logger.error(f"{facet.name} failed, using default ({context}): {result}")
            settled.append(Settled(facet.name, facet.default, error=result))
        elif isinstance(result, BaseException):
            raise result
        else:
            settled.append(Settled(facet.name, result))
    return settled
