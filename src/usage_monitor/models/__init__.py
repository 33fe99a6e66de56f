"""Pydantic models for the usage monitor.

Metric taxonomy:
- Definition: declarative description of one metric (dataset, field, aggregation, scope)
- Runtime: a definition merged with contract overrides (limit, enabled, zones)
- Record: the usage measured for one metric in one invocation

Severity buckets:
- ALERT: percent used at or above the alert threshold
- WARNING: percent used at or above the warning threshold
- HEALTHY: otherwise
- ERROR: the metric could not be measured

Key principle: this is an approximation over sampled analytics data,
never a billing ledger.
"""

from .activity_inputs import (
    DiscoverZonesInput,
    QueryUsageInput,
    SendNotificationInput,
)
from .api_responses import (
    CategoryCount,
    ConfigResponse,
    DatasetsResponse,
    ErrorResponse,
    HealthResponse,
    MetricInfo,
    MetricsResponse,
    UsageResponse,
    WorkflowStatusResponse,
    WorkflowTriggerRequest,
    WorkflowTriggerResponse,
    ZoneInfo,
)
from .config import (
    BillingPeriodConfig,
    ContractConfig,
    EngineConfig,
    MonitorSettings,
    get_settings,
)
from .metrics import (
    CATEGORY_NAMES,
    Aggregation,
    MetricCategory,
    MetricDefinition,
    MetricOverride,
    MetricRuntime,
    MetricScope,
    TimeFilterKind,
    UnitTransform,
)
from .notifications import (
    NotificationOptions,
    NotificationResult,
)
from .usage import (
    CONFIDENCE_LEVEL,
    MAX_CONFIDENCE_PERCENT,
    MONITOR_DEFAULT_FILTERS,
    BillingPeriod,
    ConfidenceInterval,
    TrafficFilters,
    UsageRecord,
    UsageSummary,
    confidence_percent,
)
from .workflow_inputs import (
    UsageMonitorInput,
    UsageMonitorResult,
)
from .zones import (
    Zone,
    ZoneAccount,
    ZoneDiscoveryResult,
)

__all__ = [
    # Metric definitions
    "Aggregation",
    "CATEGORY_NAMES",
    "MetricCategory",
    "MetricDefinition",
    "MetricOverride",
    "MetricRuntime",
    "MetricScope",
    "TimeFilterKind",
    "UnitTransform",
    # Usage
    "BillingPeriod",
    "CONFIDENCE_LEVEL",
    "ConfidenceInterval",
    "MAX_CONFIDENCE_PERCENT",
    "MONITOR_DEFAULT_FILTERS",
    "TrafficFilters",
    "UsageRecord",
    "UsageSummary",
    "confidence_percent",
    # Config
    "BillingPeriodConfig",
    "ContractConfig",
    "EngineConfig",
    "MonitorSettings",
    "get_settings",
    # Zones
    "Zone",
    "ZoneAccount",
    "ZoneDiscoveryResult",
    # Notifications
    "NotificationOptions",
    "NotificationResult",
    # Activity inputs
    "DiscoverZonesInput",
    "QueryUsageInput",
    "SendNotificationInput",
    # Workflow inputs
    "UsageMonitorInput",
    "UsageMonitorResult",
    # API responses
    "CategoryCount",
    "ConfigResponse",
    "DatasetsResponse",
    "ErrorResponse",
    "HealthResponse",
    "MetricInfo",
    "MetricsResponse",
    "UsageResponse",
    "WorkflowStatusResponse",
    "WorkflowTriggerRequest",
    "WorkflowTriggerResponse",
    "ZoneInfo",
]
