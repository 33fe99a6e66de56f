"""Configuration models for the usage monitor.

Contract configuration (thresholds, billing period, per-metric overrides) is
an explicit value passed into the engine entry points. ``MonitorSettings``
loads everything from the environment for the worker, CLI and API.

Severity gates:
- ALERT: usage at or above ``alert_threshold_percent`` of the cap
- WARNING: usage at or above ``warning_threshold_percent``
- HEALTHY: otherwise
"""

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings
from whenever import Instant, TimeDelta, TimeZoneNotFoundError

from usage_monitor.models.metrics import MetricOverride

GIB = 1024**3


class BillingPeriodConfig(BaseModel):
    """Where the monthly billing cycle starts."""

    start_day: int = Field(
        default=1,
        ge=1,
        le=28,
        description="Day of month the billing cycle starts on",
    )
    timezone: str = Field(default="UTC", description="IANA timezone for cycle boundaries")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            Instant.now().to_tz(value)
        except (TimeZoneNotFoundError, ValueError):
            raise ValueError(f"Unknown IANA timezone: {value!r}") from None
        return value


def _default_overrides() -> dict[str, MetricOverride]:
    return {
        "http_requests": MetricOverride(limit=3_000_000),
        "bandwidth": MetricOverride(limit=20 * GIB),
        "workers_ai_requests": MetricOverride(limit=35_000),
    }


def _default_zone_variants() -> dict[str, str]:
    return {
        "http_requests": "http_requests_zone",
        "bandwidth": "bandwidth_zone",
        "cached_bandwidth": "cached_bandwidth_zone",
    }


class ContractConfig(BaseModel):
    """Contract caps and alerting thresholds."""

    alert_threshold_percent: float = Field(
        default=90.0,
        ge=0,
        le=100,
        description="At or above this percentage of the cap, raise an alert",
    )
    warning_threshold_percent: float = Field(
        default=75.0,
        ge=0,
        le=100,
        description="At or above this percentage of the cap, raise a warning",
    )
    billing_period: BillingPeriodConfig = Field(default_factory=BillingPeriodConfig)
    metric_overrides: dict[str, MetricOverride] = Field(default_factory=_default_overrides)

    # Account-wide metric id -> zone-scoped twin measuring the same traffic.
    # Only one of each pair is reported, depending on whether a zone filter is active.
    zone_variants: dict[str, str] = Field(default_factory=_default_zone_variants)


class EngineConfig(BaseModel):
    """Concurrency and pacing for the query engine."""

    batch_size: int = Field(default=5, ge=1, description="Metrics queried concurrently")
    batch_delay: TimeDelta = Field(
        default=TimeDelta(milliseconds=100),
        description="Pause between batches to respect backend rate limits",
    )
    deadline: TimeDelta | None = Field(
        default=TimeDelta(seconds=150),
        description="Overall time budget for one run; None disables it",
    )


class MonitorSettings(BaseSettings):
    """Usage monitor settings loaded from ``USAGE_MONITOR_*`` environment variables."""

    api_token: str = Field(description="Analytics read-only API token")
    account_id: str = Field(description="Account whose usage is monitored")
    zone_tags: str = Field(
        default="",
        description="Comma-separated zone ids; empty triggers zone discovery",
    )
    zone_id: str | None = Field(default=None, description="Single zone to monitor")

    webhook_url: str | None = None
    notification_provider: str | None = Field(
        default=None,
        description="Provider name; detected from the webhook URL when unset",
    )

    api_access_key: str | None = Field(
        default=None,
        description="When set, /api routes require this key",
    )
    allowed_origins: str = Field(default="*", description="Comma-separated CORS origins")

    temporal_address: str = "localhost:7233"
    temporal_namespace: str = "default"
    task_queue: str = "usage-monitor-task-queue"
    cron_schedule: str = "0 */6 * * *"

    contract: ContractConfig = Field(default_factory=ContractConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)

    model_config = {"env_prefix": "USAGE_MONITOR_", "env_nested_delimiter": "__"}

    @property
    def configured_zone_tags(self) -> list[str]:
        """Zones named in the environment (``zone_tags`` first, then ``zone_id``)."""
        tags = [tag.strip() for tag in self.zone_tags.split(",") if tag.strip()]
        if not tags and self.zone_id:
            tags = [self.zone_id]
        return tags

    @property
    def origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> MonitorSettings:
    """Process-wide settings, read from the environment once."""
    return MonitorSettings()  # type: ignore[call-arg]
