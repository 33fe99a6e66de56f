"""Usage records, confidence intervals and summaries.

Records are produced fresh on every invocation and never persisted.
Derived values (percent used, confidence score) are computed fields so they
always agree with the values they are derived from.
"""

import math

from pydantic import BaseModel, Field, computed_field
from whenever import Instant

from usage_monitor.models.metrics import MetricCategory, MetricScope

# Confidence level requested from the analytics backend
CONFIDENCE_LEVEL = 0.95

# Sampled data never earns 100% confidence
MAX_CONFIDENCE_PERCENT = 99.0


def confidence_percent(estimate: float, lower: float, upper: float) -> float:
    """Score how tight a confidence interval is relative to its estimate.

    ``100 - (upper - lower) / estimate * 100 / 2`` clamped to ``[0, 99]``.
    A zero or non-finite estimate scores 99: there is no data, and the zero
    is as certain as sampled data gets.
    """
    if estimate == 0 or not math.isfinite(estimate):
        return MAX_CONFIDENCE_PERCENT
    margin_percent = (upper - lower) / estimate * 100 / 2
    score = 100 - margin_percent
    if not math.isfinite(score):
        return 0.0
    return max(0.0, min(MAX_CONFIDENCE_PERCENT, score))


class ConfidenceInterval(BaseModel):
    """Statistical bounds around an estimate computed from sampled data."""

    estimate: float
    lower: float
    upper: float
    sample_size: int = Field(default=0, ge=0)
    is_valid: bool = Field(
        default=True,
        description="False when the sample is too small for the stated level",
    )
    level: float = Field(default=CONFIDENCE_LEVEL, gt=0, le=1)

    @computed_field
    @property
    def confidence_percent(self) -> float:
        return confidence_percent(self.estimate, self.lower, self.upper)

    def scaled(self, factor: float) -> "ConfidenceInterval":
        """Return the interval expressed in a linearly converted unit."""
        return self.model_copy(
            update={
                "estimate": self.estimate * factor,
                "lower": self.lower * factor,
                "upper": self.upper * factor,
            }
        )


class UsageRecord(BaseModel):
    """Uniform usage result for one metric in one invocation."""

    metric_id: str
    metric_name: str
    category: MetricCategory
    unit: str
    scope: MetricScope
    current_usage: float = Field(default=0.0, ge=0)
    limit: float = Field(default=0.0, ge=0, description="0 means no cap configured")
    unlimited: bool = False
    enabled: bool = True
    billing_period_start: str
    billing_period_end: str
    error: str | None = None
    confidence: ConfidenceInterval | None = None
    query_duration_ms: float = Field(default=0.0, ge=0)
    note: str | None = None

    @computed_field
    @property
    def percent_used(self) -> float:
        if self.unlimited or self.limit <= 0:
            return 0.0
        return self.current_usage / self.limit * 100


class UsageSummary(BaseModel):
    """All records of one invocation, partitioned by severity."""

    alerts: list[UsageRecord] = Field(default_factory=list)
    warnings: list[UsageRecord] = Field(default_factory=list)
    healthy: list[UsageRecord] = Field(default_factory=list)
    errors: list[UsageRecord] = Field(default_factory=list)
    timestamp: str
    total_query_duration_ms: float = 0.0

    @property
    def total(self) -> int:
        return len(self.alerts) + len(self.warnings) + len(self.healthy) + len(self.errors)

    @property
    def needs_attention(self) -> bool:
        return bool(self.alerts or self.warnings)


class TrafficFilters(BaseModel):
    """Request-level traffic filters supplied by the caller."""

    eyeball_only: bool = Field(default=False, description="Only count end-user traffic")
    exclude_blocked: bool = Field(default=False, description="Drop requests answered with 403")
    exclude_edge_workers: bool = Field(
        default=False, description="Drop subrequests issued by Workers"
    )
    zone_id: str | None = Field(default=None, description="Restrict zone metrics to one zone")

    def describe(self) -> list[str]:
        """Human-readable list of the active filters."""
        active = []
        if self.eyeball_only:
            active.append("eyeball traffic only")
        if self.exclude_blocked:
            active.append("blocked requests excluded")
        if self.exclude_edge_workers:
            active.append("edge workers excluded")
        if self.zone_id:
            active.append(f"zone {self.zone_id}")
        return active


# Filters applied by the scheduled monitor run
MONITOR_DEFAULT_FILTERS = TrafficFilters(eyeball_only=True, exclude_blocked=True)


class BillingPeriod(BaseModel):
    """Half-open billing window ``[start, end)``."""

    start: Instant
    end: Instant
    timezone: str = "UTC"

    def contains(self, instant: Instant) -> bool:
        return self.start <= instant < self.end
