"""ArcSight ESM API client: credentials, requests, batching, endpoints."""

from arcbridge.client.api import ArcSightClient
from arcbridge.client.batching import chunked, fetch_all_by_ids
from arcbridge.client.fetcher import ResilientFetcher
from arcbridge.client.token import (
    InMemoryTokenStore,
    TokenManager,
    TokenStore,
    get_token_manager,
    reset_token_manager,
)

__all__ = [
    "ArcSightClient",
    "InMemoryTokenStore",
    "ResilientFetcher",
    "TokenManager",
    "TokenStore",
    "chunked",
    "fetch_all_by_ids",
    "get_token_manager",
    "reset_token_manager",
]
