"""Confidence interval extraction and combination.

The analytics backend samples adaptive datasets and reports a confidence
interval per grouped row. Rows and zone partitions are independent slices
of the same total, so their intervals are combined by summing the bounds
(consistent with summing the usage itself), not by averaging.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from usage_monitor.models import (
    CONFIDENCE_LEVEL,
    Aggregation,
    ConfidenceInterval,
    MetricDefinition,
)

logger = logging.getLogger(__name__)


def combine_confidence(
    intervals: Iterable[ConfidenceInterval | None],
) -> ConfidenceInterval | None:
    """Combine per-partition intervals into one.

    Estimates, bounds and sample sizes are summed, validity is AND-ed and the
    level is taken from the first partition (all partitions are queried at
    the same level).

    Returns:
        The combined interval, or None when no partition carried one
    """
    present = [interval for interval in intervals if interval is not None]
    if not present:
        return None

    return ConfidenceInterval(
        estimate=sum(interval.estimate for interval in present),
        lower=sum(interval.lower for interval in present),
        upper=sum(interval.upper for interval in present),
        sample_size=sum(interval.sample_size for interval in present),
        is_valid=all(interval.is_valid for interval in present),
        level=present[0].level,
    )


def extract_row_confidence(
    row: Mapping[str, Any],
    metric: MetricDefinition,
) -> ConfidenceInterval | None:
    """Read the confidence interval reported on one result row.

    For ``count`` the interval sits at ``confidence.count``; for aggregates
    at ``confidence.<aggregation>.<field>``.
    """
    block = row.get("confidence")
    if not isinstance(block, Mapping):
        return None

    if metric.aggregation == Aggregation.COUNT:
        raw = block.get("count")
    else:
        aggregate = block.get(metric.aggregation.value)
        raw = aggregate.get(metric.field) if isinstance(aggregate, Mapping) else None

    if not isinstance(raw, Mapping) or raw.get("estimate") is None:
        return None

    try:
        return ConfidenceInterval(
            estimate=float(raw["estimate"]),
            lower=float(raw.get("lower") or 0),
            upper=float(raw.get("upper") or 0),
            sample_size=int(raw.get("sampleSize") or 0),
            is_valid=bool(raw.get("isValid", True)),
            level=float(block.get("level") or CONFIDENCE_LEVEL),
        )
    except (TypeError, ValueError) as e:
        # pydantic's ValidationError is a ValueError
        logger.warning("Ignoring malformed confidence for %s: %s", metric.id, e)
        return None
