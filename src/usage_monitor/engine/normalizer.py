"""Result normalization.

Turns raw GraphQL payloads into a numeric usage value and then into the
uniform UsageRecord. A dataset that is missing or empty for an account is a
normal "no usage" outcome, not an error.
"""

import logging
from collections.abc import Mapping
from typing import Any, NamedTuple

from usage_monitor.engine.confidence import combine_confidence, extract_row_confidence
from usage_monitor.models import (
    Aggregation,
    BillingPeriod,
    ConfidenceInterval,
    MetricDefinition,
    MetricRuntime,
    MetricScope,
    UsageRecord,
)

logger = logging.getLogger(__name__)


class ExtractedUsage(NamedTuple):
    """Raw usage read from one partition's response."""

    value: float
    confidence: ConfidenceInterval | None
    rows: int = 0


EMPTY_USAGE = ExtractedUsage(value=0.0, confidence=None)


def _row_value(row: Mapping[str, Any], metric: MetricDefinition) -> float:
    if metric.aggregation == Aggregation.COUNT:
        return float(row.get("count") or 0)
    aggregate = row.get(metric.aggregation.value) or {}
    return float(aggregate.get(metric.field) or 0)


def extract_usage(
    data: Mapping[str, Any] | None,
    metric: MetricDefinition,
) -> ExtractedUsage:
    """Sum the metric's aggregate across every row of the scoped dataset.

    Datasets may return several grouped rows, so all of them are summed,
    not just the first. Structural mismatches are logged and read as zero.
    """
    viewer_field = "zones" if metric.scope == MetricScope.ZONE else "accounts"
    try:
        scoped = data["viewer"][viewer_field]
        if not scoped:
            return EMPTY_USAGE
        rows = scoped[0].get(metric.dataset)
        if not rows:
            return EMPTY_USAGE

        value = sum(_row_value(row, metric) for row in rows)
        confidence = combine_confidence(extract_row_confidence(row, metric) for row in rows)
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
        logger.warning("Unexpected response shape for %s: %r", metric.id, e)
        return EMPTY_USAGE

    return ExtractedUsage(value=value, confidence=confidence, rows=len(rows))


def build_usage_record(
    metric: MetricRuntime,
    period: BillingPeriod,
    *,
    value: float = 0.0,
    confidence: ConfidenceInterval | None = None,
    error: str | None = None,
    duration_ms: float = 0.0,
    enabled: bool | None = None,
    note: str | None = None,
) -> UsageRecord:
    """Build the uniform record for one metric.

    The unit transform is applied to nonzero values only; the confidence
    interval is scaled by the same factor so both stay in one unit. Error
    records always carry zero usage.
    """
    if error is not None:
        value, confidence = 0.0, None
    elif value and metric.unit_transform is not None:
        value = metric.unit_transform.apply(value)
        if confidence is not None:
            confidence = confidence.scaled(metric.unit_transform.factor)

    return UsageRecord(
        metric_id=metric.id,
        metric_name=metric.name,
        category=metric.category,
        unit=metric.unit,
        scope=metric.scope,
        current_usage=max(0.0, value),
        limit=metric.limit,
        unlimited=metric.unlimited,
        enabled=metric.enabled if enabled is None else enabled,
        billing_period_start=period.start.format_iso(),
        billing_period_end=period.end.format_iso(),
        error=error,
        confidence=confidence,
        query_duration_ms=duration_ms,
        note=note if note is not None else metric.note,
    )
