"""Metric definitions for the usage monitor.

A metric definition is declarative data: which analytics dataset to query,
which field to aggregate, how to aggregate it and where it is scoped.
Unit conversions are selected by name from ``UnitTransform`` so that the
whole catalog stays serializable.

Definitions are validated on construction. A non-count aggregation without
a field is rejected here, long before any query is built.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Aggregation(StrEnum):
    """Aggregation function applied to a dataset field."""

    SUM = "sum"
    COUNT = "count"
    AVG = "avg"
    MAX = "max"


class MetricScope(StrEnum):
    """Whether a metric is measured once per account or per zone."""

    ZONE = "zone"
    ACCOUNT = "account"


class TimeFilterKind(StrEnum):
    """Time-filter dialect accepted by a dataset.

    - DATETIME: full timestamp (``datetime_geq`` / ``datetime_lt``)
    - DATE: calendar date (``date_geq`` / ``date_lt``)
    - DATETIME_HOUR: hour-truncated timestamp (``datetimeHour_geq`` / ``datetimeHour_lt``)
    """

    DATETIME = "datetime"
    DATE = "date"
    DATETIME_HOUR = "datetimeHour"


class UnitTransform(StrEnum):
    """Named unit conversions applied to a combined raw value."""

    MICROSECONDS_TO_MILLISECONDS = "us_to_ms"
    MILLISECONDS_TO_SECONDS = "ms_to_s"
    BYTES_TO_GIGABYTES = "bytes_to_gb"

    @property
    def factor(self) -> float:
        return _TRANSFORM_FACTORS[self]

    def apply(self, value: float) -> float:
        """Convert a raw backend value into the metric's reporting unit."""
        return value * self.factor


_TRANSFORM_FACTORS: dict[UnitTransform, float] = {
    UnitTransform.MICROSECONDS_TO_MILLISECONDS: 1 / 1000,
    UnitTransform.MILLISECONDS_TO_SECONDS: 1 / 1000,
    UnitTransform.BYTES_TO_GIGABYTES: 1 / (1024**3),
}


class MetricCategory(StrEnum):
    """Product family a metric belongs to."""

    COMPUTE = "compute"
    STORAGE = "storage"
    NETWORK = "network"
    SECURITY = "security"
    MEDIA = "media"
    AI = "ai"
    CONNECTIVITY = "connectivity"
    PLATFORM = "platform"


CATEGORY_NAMES: dict[MetricCategory, str] = {
    MetricCategory.COMPUTE: "Compute",
    MetricCategory.STORAGE: "Storage",
    MetricCategory.NETWORK: "Application Services",
    MetricCategory.SECURITY: "Security",
    MetricCategory.MEDIA: "Media",
    MetricCategory.AI: "AI & ML",
    MetricCategory.CONNECTIVITY: "Zero Trust & Connectivity",
    MetricCategory.PLATFORM: "Platform Services",
}

DimensionScalar = str | int | float | bool
DimensionValue = DimensionScalar | list[DimensionScalar]


class MetricDefinition(BaseModel):
    """Immutable description of one measurable quantity."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Unique metric key")
    name: str = Field(description="Human-readable metric name")
    category: MetricCategory
    description: str = ""
    dataset: str = Field(min_length=1, description="Analytics dataset queried")
    field: str = Field(default="", description="Numeric field to aggregate; empty for count")
    aggregation: Aggregation = Aggregation.SUM
    scope: MetricScope
    time_filter: TimeFilterKind = TimeFilterKind.DATETIME
    dimension_filters: dict[str, DimensionValue] = Field(
        default_factory=dict,
        description="Extra filter conditions, AND-ed together",
    )
    unit_transform: UnitTransform | None = None
    unit: str = Field(description="Reporting unit (requests, bytes, ms, ...)")
    default_limit: float = Field(default=0.0, ge=0, description="Contract cap; 0 means none")
    enabled_by_default: bool = False
    unlimited: bool = False
    docs_url: str | None = None
    note: str | None = None

    @model_validator(mode="after")
    def _aggregate_needs_field(self) -> "MetricDefinition":
        if self.aggregation != Aggregation.COUNT and not self.field:
            raise ValueError(
                f"Metric '{self.id}' uses '{self.aggregation}' aggregation but has no field"
            )
        return self


class MetricOverride(BaseModel):
    """Contract-level override for a single metric."""

    limit: float | None = Field(default=None, ge=0)
    enabled: bool | None = None
    zone_tags: list[str] | None = Field(
        default=None,
        description="Zones to query for this metric instead of the account's zone set",
    )


class MetricRuntime(MetricDefinition):
    """A metric definition merged with its contract configuration."""

    limit: float = Field(ge=0, description="Effective contract cap")
    enabled: bool
    zone_tags: list[str] | None = None
