"""
arcbridge - ArcSight ESM integration layer
Customer-centric connector views over the ESM group hierarchy
"""

__version__ = "0.3.0"


def __getattr__(name: str):
    """Lazy import so `import arcbridge` does not pull in httpx."""
    if name in ("ArcSightClient", "ResilientFetcher", "TokenManager", "get_token_manager"):
        from arcbridge.client import (
            ArcSightClient,
            ResilientFetcher,
            TokenManager,
            get_token_manager,
        )

        return locals()[name]

    if name in ("Catalog", "HealthAggregator", "HierarchyBridge", "diagnose_customer"):
        from arcbridge.services import (
            Catalog,
            HealthAggregator,
            HierarchyBridge,
            diagnose_customer,
        )

        return locals()[name]

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",
    # Client
    "ArcSightClient",
    "ResilientFetcher",
    "TokenManager",
    "get_token_manager",
    # Services
    "Catalog",
    "HealthAggregator",
    "HierarchyBridge",
    "diagnose_customer",
]
