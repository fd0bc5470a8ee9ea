"""ArcSight ESM resource models.

Upstream JSON is camelCase; attributes are snake_case with camelCase
aliases. Unknown upstream fields are ignored.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ResourceId = str


class ArcSightModel(BaseModel):
    """Base for records exchanged with the ArcSight API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_api(self) -> dict[str, Any]:
        """Dump using upstream (camelCase) field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ResourceBase(ArcSightModel):
    """Fields shared by every ArcSight resource."""

    resource_id: ResourceId
    name: str
    alias: str | None = None
    description: str | None = None
    created_timestamp: int | None = None
    modified_timestamp: int | None = None


class Customer(ResourceBase):
    """ArcSight customer resource (read-only here)."""

    address: str | None = None
    city: str | None = None
    address_state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    external_id: str | None = Field(default=None, alias="externalID")

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match over the searchable fields."""
        term = term.lower()
        return any(
            value and term in value.lower()
            for value in (self.name, self.alias, self.external_id, self.city, self.country)
        )


class Connector(ResourceBase):
    """ArcSight SmartConnector resource."""

    operational_status: str | None = None  # RUNNING, STOPPED, PAUSED, UNKNOWN...
    owning_server: str | None = None
    alive: bool | None = None
    networks: list[str] | None = None

    # Health flags
    disabled: bool | None = None
    disabled_reason: str | None = None
    inactive: bool | None = None
    inactive_reason: str | None = None


class DeviceDetail(ArcSightModel):
    """Device reported through a connector."""

    device_vendor: str
    device_product: str
    device_version: str | None = None


DeviceMap = dict[ResourceId, list[DeviceDetail]]


class ConnectorWithDevices(Connector):
    """Connector joined with the devices it reports."""

    devices: list[DeviceDetail] = Field(default_factory=list)


class ConnectorHealth(ArcSightModel):
    """Aggregated live/dead connector IDs."""

    live: list[ResourceId]
    dead: list[ResourceId]
    total: int


# ============================================
# Resolution diagnostics
# ============================================
class StepResult(ArcSightModel):
    """Outcome of one step of customer-to-connector resolution."""

    status: Literal["ok", "error", "skipped"]
    data: Any = None
    error: str | None = None
    reason: str | None = None
    duration_ms: int | None = None


class ResolutionReport(ArcSightModel):
    """Step-by-step trace of resolving a customer's connectors."""

    customer_id: ResourceId
    paths_to_root: StepResult
    group_children: StepResult
    connectors: StepResult
    devices: StepResult
