"""Customer-centric views composed from ArcSight API calls."""

from arcbridge.services.catalog import Catalog
from arcbridge.services.diagnostics import diagnose_customer
from arcbridge.services.health import HealthAggregator
from arcbridge.services.hierarchy import HierarchyBridge, join_devices
from arcbridge.services.settle import Facet, Settled, settle

__all__ = [
    "Catalog",
    "Facet",
    "HealthAggregator",
    "HierarchyBridge",
    "Settled",
    "diagnose_customer",
    "join_devices",
    "settle",
]
