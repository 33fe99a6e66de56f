"""Usage aggregation engine.

Pipeline per run:
- Billing period: anchor day + timezone -> ``[start, end)``
- Query builder: metric definition -> GraphQL query in the dataset's time dialect
- Runner: paced batches, per-zone fan-out, overall deadline
- Normalizer + confidence: raw payloads -> UsageRecord with combined interval
- Categorizer: records -> alert / warning / healthy / error buckets

The engine never raises out of its entry points; failures are reported on
the affected record.
"""

from usage_monitor.engine.billing import current_billing_period
from usage_monitor.engine.categorize import categorize
from usage_monitor.engine.confidence import combine_confidence, extract_row_confidence
from usage_monitor.engine.normalizer import ExtractedUsage, build_usage_record, extract_usage
from usage_monitor.engine.query_builder import UsageQuery, build_query
from usage_monitor.engine.runner import (
    DISABLED_NOTE,
    NO_ZONES_ERROR,
    TIMEOUT_ERROR,
    UsageEngine,
)

__all__ = [
    # Engine
    "UsageEngine",
    "DISABLED_NOTE",
    "NO_ZONES_ERROR",
    "TIMEOUT_ERROR",
    # Query building
    "UsageQuery",
    "build_query",
    # Normalization
    "ExtractedUsage",
    "build_usage_record",
    "extract_usage",
    "combine_confidence",
    "extract_row_confidence",
    # Classification
    "categorize",
    "current_billing_period",
]
