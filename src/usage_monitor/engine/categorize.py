"""Severity categorization of usage records.

Rules, in precedence order per record:
- error present        -> errors
- percent >= alert     -> alerts
- percent >= warning   -> warnings
- otherwise            -> healthy

Unlimited metrics always report 0 percent, so they land in healthy without
special handling here.
"""

from collections.abc import Iterable

from whenever import Instant

from usage_monitor.models import UsageRecord, UsageSummary


def categorize(
    records: Iterable[UsageRecord],
    alert_threshold: float,
    warning_threshold: float,
    *,
    timestamp: str | None = None,
) -> UsageSummary:
    """Partition records into alert / warning / healthy / error buckets.

    Alerts and warnings are sorted by percent used, highest first (ties keep
    encounter order). Healthy and errors keep encounter order.

    Args:
        records: Usage records from one invocation
        alert_threshold: Percent used at or above which a metric alerts
        warning_threshold: Percent used at or above which a metric warns
        timestamp: ISO 8601 summary timestamp (default: now). Workflow code
            passes ``workflow.now()`` to stay deterministic.
    """
    alerts: list[UsageRecord] = []
    warnings: list[UsageRecord] = []
    healthy: list[UsageRecord] = []
    errors: list[UsageRecord] = []
    total_duration_ms = 0.0

    for record in records:
        total_duration_ms += record.query_duration_ms
        if record.error:
            errors.append(record)
        elif record.percent_used >= alert_threshold:
            alerts.append(record)
        elif record.percent_used >= warning_threshold:
            warnings.append(record)
        else:
            healthy.append(record)

    return UsageSummary(
        alerts=sorted(alerts, key=lambda r: r.percent_used, reverse=True),
        warnings=sorted(warnings, key=lambda r: r.percent_used, reverse=True),
        healthy=healthy,
        errors=errors,
        timestamp=timestamp or Instant.now().format_iso(),
        total_query_duration_ms=total_duration_ms,
    )
