"""Notification options and results shared by all providers."""

from pydantic import BaseModel, Field

from usage_monitor.models.usage import BillingPeriod, TrafficFilters  # noqa: TC001


class NotificationOptions(BaseModel):
    """How a summary should be delivered."""

    always_notify: bool = Field(
        default=False,
        description="Send even when there are no alerts, warnings or errors",
    )
    mention_on_critical: bool = Field(
        default=True,
        description="Ping the channel when any metric is in alert",
    )
    filters: TrafficFilters | None = None
    alert_threshold: float = 90.0
    warning_threshold: float = 75.0
    billing_period: BillingPeriod | None = None
    monitored_count: int | None = Field(
        default=None,
        description="Number of enabled metrics, shown in test notifications",
    )


class NotificationResult(BaseModel):
    """Outcome of one webhook delivery attempt."""

    success: bool
    provider: str
    skipped: bool = Field(default=False, description="Nothing to report, no request sent")
    error: str | None = None
    status_code: int | None = None
    duration_ms: float = 0.0
