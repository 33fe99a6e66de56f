"""GraphQL query builder for usage metrics.

Builds one query per metric. The query text is fixed for the whole run; only
the scope tag (zone or account id) changes between fan-out partitions, so it
is bound as a variable.

Query shape (zone scope):

    query ZoneUsage($zoneTag: String!, $start: Time!, $end: Time!) {
      viewer {
        zones(filter: { zoneTag: $zoneTag }) {
          httpRequestsAdaptiveGroups(
            filter: { datetime_geq: $start, datetime_lt: $end }
            limit: 10000
          ) {
            count
          }
        }
      }
    }
"""

import json
from typing import NamedTuple

from pydantic import BaseModel, Field
from whenever import Instant

from usage_monitor.models import (
    CONFIDENCE_LEVEL,
    Aggregation,
    BillingPeriod,
    MetricDefinition,
    MetricScope,
    TimeFilterKind,
    TrafficFilters,
)

# Maximum grouped rows returned per dataset query
ROW_LIMIT = 10_000

# Datasets that expose no sampling metadata; asking for confidence fails the query
NO_CONFIDENCE_DATASETS = frozenset(
    {
        "cacheReserveStorageAdaptiveGroups",
        "durableObjectsStorageGroups",
    }
)

# Datasets that accept requestSource / edgeResponseStatus filters
REQUEST_SOURCE_DATASETS = frozenset({"httpRequestsAdaptiveGroups"})
RESPONSE_STATUS_DATASETS = frozenset({"httpRequestsAdaptiveGroups"})

CONFIDENCE_SUBFIELDS = ("estimate", "lower", "upper", "sampleSize", "isValid")


class TimeFilterDialect(NamedTuple):
    start_field: str
    end_field: str
    graphql_type: str


TIME_FILTER_DIALECTS: dict[TimeFilterKind, TimeFilterDialect] = {
    TimeFilterKind.DATETIME: TimeFilterDialect("datetime_geq", "datetime_lt", "Time"),
    TimeFilterKind.DATE: TimeFilterDialect("date_geq", "date_lt", "Date"),
    TimeFilterKind.DATETIME_HOUR: TimeFilterDialect(
        "datetimeHour_geq", "datetimeHour_lt", "Time"
    ),
}


class UsageQuery(BaseModel):
    """A built query plus the window values bound at execution time."""

    metric_id: str
    scope: MetricScope
    text: str
    start: str = Field(description="Window start rendered in the dataset's time dialect")
    end: str = Field(description="Window end rendered in the dataset's time dialect")

    def variables(self, scope_tag: str) -> dict[str, str]:
        """Bind the query to one zone or account."""
        tag_name = "zoneTag" if self.scope == MetricScope.ZONE else "accountTag"
        return {tag_name: scope_tag, "start": self.start, "end": self.end}


# =============================================================================
# TIME BOUNDS
# =============================================================================


def format_time_bound(instant: Instant, kind: TimeFilterKind, timezone: str = "UTC") -> str:
    """Render a window bound in the value format a time dialect expects.

    Date datasets receive the calendar date in the billing timezone, so a
    window starting at local midnight maps onto that local day.

    Hour datasets bucket by UTC hour, so both bounds are floored to the UTC
    hour. In a timezone with a fractional-hour offset (Asia/Kolkata,
    Australia/Adelaide) local midnight falls mid-bucket and the queried
    window starts and ends that many minutes early. The straddling bucket
    is counted once, in the later period.
    """
    if kind == TimeFilterKind.DATE:
        return instant.to_tz(timezone).date().format_iso()
    if kind == TimeFilterKind.DATETIME_HOUR:
        return instant.round("hour", mode="floor").format_iso()
    return instant.format_iso()


# =============================================================================
# SELECTION SET
# =============================================================================


def supports_confidence(dataset: str) -> bool:
    return dataset not in NO_CONFIDENCE_DATASETS


def _confidence_block(fields: tuple[str, ...], indent: str) -> list[str]:
    return [f"{indent}{name}" for name in fields]


def build_aggregation_fields(metric: MetricDefinition, include_confidence: bool) -> list[str]:
    """Selection lines for the metric's aggregate, without indentation.

    ``count`` selects the bare count and never references the metric's field.
    """
    if metric.aggregation == Aggregation.COUNT:
        lines = ["count"]
        if include_confidence:
            lines += [
                f"confidence(level: {CONFIDENCE_LEVEL}) {{",
                "  level",
                "  count {",
                *_confidence_block(CONFIDENCE_SUBFIELDS, "    "),
                "  }",
                "}",
            ]
        return lines

    aggregate = metric.aggregation.value
    lines = [f"{aggregate} {{", f"  {metric.field}", "}"]
    if include_confidence:
        lines += [
            f"confidence(level: {CONFIDENCE_LEVEL}) {{",
            "  level",
            f"  {aggregate} {{",
            f"    {metric.field} {{",
            *_confidence_block(CONFIDENCE_SUBFIELDS, "      "),
            "    }",
            "  }",
            "}",
        ]
    return lines


# =============================================================================
# FILTERS
# =============================================================================


def build_traffic_filters(dataset: str, filters: TrafficFilters | None) -> list[str]:
    """Traffic filter conditions the dataset supports; the rest are dropped."""
    if filters is None:
        return []

    conditions = []
    if dataset in REQUEST_SOURCE_DATASETS:
        if filters.eyeball_only:
            conditions.append('requestSource: "eyeball"')
        elif filters.exclude_edge_workers:
            conditions.append('requestSource_neq: "edgeworker"')
    if dataset in RESPONSE_STATUS_DATASETS and filters.exclude_blocked:
        conditions.append("edgeResponseStatus_neq: 403")
    return conditions


def _render_value(value) -> str:
    # JSON literals match GraphQL for strings, numbers and booleans
    return json.dumps(value)


def build_dimension_filters(dimension_filters: dict) -> list[str]:
    """Render dimension filters as AND-ed conditions.

    Lists become ``<name>_in: [...]``; scalars become equality.
    """
    conditions = []
    for name, value in dimension_filters.items():
        if isinstance(value, list):
            key = name if name.endswith("_in") else f"{name}_in"
            rendered = ", ".join(_render_value(item) for item in value)
            conditions.append(f"{key}: [{rendered}]")
        else:
            conditions.append(f"{name}: {_render_value(value)}")
    return conditions


# =============================================================================
# QUERY
# =============================================================================


def build_query(
    metric: MetricDefinition,
    period: BillingPeriod,
    filters: TrafficFilters | None = None,
) -> UsageQuery:
    """Build the usage query for one metric over one billing window.

    Args:
        metric: Validated metric definition
        period: Billing window ``[start, end)``
        filters: Optional traffic filters (applied where the dataset allows)

    Returns:
        UsageQuery with query text and dialect-formatted window bounds
    """
    dialect = TIME_FILTER_DIALECTS[metric.time_filter]
    if metric.scope == MetricScope.ZONE:
        operation, tag_name, viewer_field = "ZoneUsage", "zoneTag", "zones"
    else:
        operation, tag_name, viewer_field = "AccountUsage", "accountTag", "accounts"

    conditions = [f"{dialect.start_field}: $start", f"{dialect.end_field}: $end"]
    conditions += build_traffic_filters(metric.dataset, filters)
    conditions += build_dimension_filters(metric.dimension_filters)

    selection = build_aggregation_fields(metric, supports_confidence(metric.dataset))

    lines = [
        f"query {operation}(${tag_name}: String!, $start: {dialect.graphql_type}!, "
        f"$end: {dialect.graphql_type}!) {{",
        "  viewer {",
        f"    {viewer_field}(filter: {{ {tag_name}: ${tag_name} }}) {{",
        f"      {metric.dataset}(",
        f"        filter: {{ {', '.join(conditions)} }}",
        f"        limit: {ROW_LIMIT}",
        "      ) {",
        *(f"        {line}" for line in selection),
        "      }",
        "    }",
        "  }",
        "}",
    ]

    return UsageQuery(
        metric_id=metric.id,
        scope=metric.scope,
        text="\n".join(lines),
        start=format_time_bound(period.start, metric.time_filter, period.timezone),
        end=format_time_bound(period.end, metric.time_filter, period.timezone),
    )
