"""Property tests for severity categorization.

- Every record lands in exactly one bucket
- Errors always win over usage
- Alerts and warnings are sorted by percent used, highest first
"""

from hypothesis import given, settings

from usage_monitor.engine import categorize
from usage_monitor.models import UsageRecord

from .strategies import record_batches, thresholds

BUCKETS = ("alerts", "warnings", "healthy", "errors")


@given(records=record_batches(), alert=thresholds, warning=thresholds)
@settings(max_examples=300)
def test_buckets_partition_input(records: list[UsageRecord], alert: float, warning: float):
    """Property: Each input record appears in exactly one bucket."""
    summary = categorize(records, alert, warning)

    bucketed = [r.metric_id for bucket in BUCKETS for r in getattr(summary, bucket)]
    assert sorted(bucketed) == sorted(r.metric_id for r in records)
    assert summary.total == len(records)


@given(records=record_batches(), alert=thresholds, warning=thresholds)
@settings(max_examples=300)
def test_error_records_always_in_errors(
    records: list[UsageRecord], alert: float, warning: float
):
    """Property: A record with an error is never alerted, warned or healthy."""
    summary = categorize(records, alert, warning)
    assert {r.metric_id for r in summary.errors} == {r.metric_id for r in records if r.error}


@given(records=record_batches(), alert=thresholds, warning=thresholds)
@settings(max_examples=300)
def test_severity_lists_sorted(records: list[UsageRecord], alert: float, warning: float):
    """Property: Alerts and warnings are ordered by percent used, descending."""
    summary = categorize(records, alert, warning)
    for bucket in (summary.alerts, summary.warnings):
        percents = [r.percent_used for r in bucket]
        assert percents == sorted(percents, reverse=True)


@given(records=record_batches())
@settings(max_examples=200)
def test_unlimited_never_alerts(records: list[UsageRecord]):
    """Property: Unlimited metrics are never alerts or warnings at positive thresholds."""
    summary = categorize(records, 90, 75)
    assert not any(r.unlimited for r in [*summary.alerts, *summary.warnings])


@given(records=record_batches())
@settings(max_examples=200)
def test_total_duration_is_sum(records: list[UsageRecord]):
    """Property: Total query duration sums every record's duration."""
    summary = categorize(records, 90, 75)
    expected = sum(r.query_duration_ms for r in records)
    assert abs(summary.total_query_duration_ms - expected) <= 1e-6 * max(1.0, expected)
