"""Pydantic models for activity inputs.

Every activity takes a single Pydantic model as its input parameter so the
pydantic data converter round-trips it as a model, not a plain dict.

Secrets (API token, webhook URL) are read from ``MonitorSettings`` inside
the activity and never travel through workflow history.
"""

from pydantic import BaseModel, Field

from .config import ContractConfig
from .usage import TrafficFilters, UsageSummary  # noqa: TC001

# =============================================================================
# Zone Activities
# =============================================================================


class DiscoverZonesInput(BaseModel):
    """Input for discover_account_zones activity."""

    account_id: str = Field(description="Account whose active zones are listed")


# =============================================================================
# Usage Activities
# =============================================================================


class QueryUsageInput(BaseModel):
    """Input for query_usage activity."""

    account_id: str
    zone_tags: list[str] = Field(default_factory=list)
    filters: TrafficFilters = Field(default_factory=TrafficFilters)
    contract: ContractConfig = Field(default_factory=ContractConfig)
    metric_ids: list[str] | None = Field(
        default=None,
        description="Restrict the run to these metrics; None queries every enabled metric",
    )


# =============================================================================
# Notification Activities
# =============================================================================


class SendNotificationInput(BaseModel):
    """Input for send_usage_notification activity."""

    summary: UsageSummary
    filters: TrafficFilters | None = None
    contract: ContractConfig = Field(default_factory=ContractConfig)
    always_notify: bool = False
    monitored_count: int | None = None
