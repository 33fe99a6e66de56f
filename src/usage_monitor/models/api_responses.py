"""Pydantic response models for the FastAPI JSON API.

whenever's native Pydantic support serializes Instant fields to ISO 8601.
"""

from pydantic import BaseModel, Field

from .metrics import Aggregation, MetricCategory, MetricScope, TimeFilterKind  # noqa: TC001
from .usage import BillingPeriod, TrafficFilters, UsageSummary  # noqa: TC001

# =============================================================================
# GET /health
# =============================================================================


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: str


# =============================================================================
# GET /api/usage
# =============================================================================


class ZoneInfo(BaseModel):
    count: int
    auto_discovered: bool = False


class UsageResponse(BaseModel):
    """One on-demand usage check."""

    timestamp: str
    billing_period: BillingPeriod
    zones: ZoneInfo
    filters: TrafficFilters
    summary: UsageSummary


# =============================================================================
# GET /api/metrics
# =============================================================================


class MetricInfo(BaseModel):
    """A catalog entry with its effective contract settings."""

    id: str
    name: str
    category: MetricCategory
    description: str
    dataset: str
    aggregation: Aggregation
    scope: MetricScope
    time_filter: TimeFilterKind
    unit: str
    limit: float
    enabled: bool
    unlimited: bool
    docs_url: str | None = None
    note: str | None = None


class MetricsResponse(BaseModel):
    metrics: list[MetricInfo] = Field(default_factory=list)
    total: int = 0
    enabled: int = 0


# =============================================================================
# GET /api/config
# =============================================================================


class CategoryCount(BaseModel):
    category: MetricCategory
    display_name: str
    enabled: int
    total: int


class ConfigResponse(BaseModel):
    """Non-secret view of the running configuration."""

    alert_threshold_percent: float
    warning_threshold_percent: float
    billing_start_day: int
    billing_timezone: str
    billing_period: BillingPeriod
    zone_tags_configured: int
    notification_provider: str | None = None
    categories: list[CategoryCount] = Field(default_factory=list)


# =============================================================================
# GET /api/datasets
# =============================================================================


class DatasetsResponse(BaseModel):
    """Introspected datasets compared against the metric catalog."""

    available: dict[str, list[str]] = Field(
        default_factory=dict, description="Dataset names per viewer type"
    )
    configured: list[str] = Field(default_factory=list)
    unconfigured: list[str] = Field(
        default_factory=list, description="Available datasets no metric reads"
    )


# =============================================================================
# /api/workflow
# =============================================================================


class WorkflowTriggerRequest(BaseModel):
    force_notify: bool = False
    notify: bool = True


class WorkflowTriggerResponse(BaseModel):
    message: str = "Workflow triggered"
    workflow_id: str
    run_id: str | None = None


class WorkflowStatusResponse(BaseModel):
    """Execution status of one monitor run.

    ``status`` is the Temporal execution status (RUNNING, COMPLETED, ...);
    ``phase`` is the step the workflow reports through its ``status`` query,
    None when the query could not be answered.
    """

    workflow_id: str
    status: str | None = None
    phase: str | None = None


# =============================================================================
# Errors
# =============================================================================


class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None
