"""Pydantic models for workflow inputs and results.

The client and worker must be created with the pydantic data converter
(see ``usage_monitor.temporal``) so these models survive serialization.
"""

from pydantic import BaseModel, Field

from .config import ContractConfig
from .notifications import NotificationResult  # noqa: TC001
from .usage import MONITOR_DEFAULT_FILTERS, TrafficFilters, UsageSummary  # noqa: TC001


class UsageMonitorInput(BaseModel):
    """Input for UsageMonitorWorkflow."""

    account_id: str = Field(description="Account whose usage is monitored")
    zone_tags: list[str] = Field(
        default_factory=list,
        description="Zones for zone-scoped metrics; empty triggers zone discovery",
    )
    filters: TrafficFilters = Field(default_factory=lambda: MONITOR_DEFAULT_FILTERS.model_copy())
    contract: ContractConfig = Field(default_factory=ContractConfig)
    metric_ids: list[str] | None = Field(
        default=None,
        description="Restrict the run to these metrics",
    )
    force_notify: bool = Field(
        default=False,
        description="Notify even when nothing is in warning or alert",
    )
    notify: bool = Field(default=True, description="Send notifications at all")
    triggered_by: str = Field(default="schedule", description="schedule, cli or api")


class UsageMonitorResult(BaseModel):
    """Outcome of one UsageMonitorWorkflow run."""

    summary: UsageSummary
    zone_count: int = 0
    zones_discovered: bool = False
    notification: NotificationResult | None = None
