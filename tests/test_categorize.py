"""Unit tests for severity categorization."""

from usage_monitor.engine import build_usage_record, categorize


def _record(make_metric, period, metric_id, value, *, limit=100.0, error=None, **kwargs):
    metric = make_metric(id=metric_id, limit=limit, **kwargs)
    return build_usage_record(metric, period, value=value, error=error, duration_ms=10)


class TestCategorize:
    def test_buckets_by_threshold(self, make_metric, period):
        records = [
            _record(make_metric, period, "alert", 95),
            _record(make_metric, period, "exact_alert", 90),
            _record(make_metric, period, "warning", 80),
            _record(make_metric, period, "exact_warning", 75),
            _record(make_metric, period, "healthy", 10),
            _record(make_metric, period, "broken", 0, error="boom"),
        ]
        summary = categorize(records, 90, 75, timestamp="2025-03-15T12:00:00Z")

        assert [r.metric_id for r in summary.alerts] == ["alert", "exact_alert"]
        assert [r.metric_id for r in summary.warnings] == ["warning", "exact_warning"]
        assert [r.metric_id for r in summary.healthy] == ["healthy"]
        assert [r.metric_id for r in summary.errors] == ["broken"]
        assert summary.total == 6
        assert summary.needs_attention
        assert summary.timestamp == "2025-03-15T12:00:00Z"
        assert summary.total_query_duration_ms == 60

    def test_alerts_sorted_descending_stable(self, make_metric, period):
        records = [
            _record(make_metric, period, "low", 91),
            _record(make_metric, period, "high", 150),
            _record(make_metric, period, "tie_first", 95),
            _record(make_metric, period, "tie_second", 95),
        ]
        summary = categorize(records, 90, 75)

        assert [r.metric_id for r in summary.alerts] == ["high", "tie_first", "tie_second", "low"]

    def test_healthy_keeps_encounter_order(self, make_metric, period):
        records = [
            _record(make_metric, period, "b", 5),
            _record(make_metric, period, "a", 1),
        ]
        summary = categorize(records, 90, 75)
        assert [r.metric_id for r in summary.healthy] == ["b", "a"]
        assert not summary.needs_attention

    def test_error_wins_over_usage(self, make_metric, period):
        summary = categorize([_record(make_metric, period, "m", 500, error="x")], 90, 75)
        assert [r.metric_id for r in summary.errors] == ["m"]
        assert summary.alerts == []

    def test_unlimited_and_uncapped_are_healthy(self, make_metric, period):
        records = [
            _record(make_metric, period, "unlimited", 10**9, unlimited=True),
            _record(make_metric, period, "uncapped", 10**9, limit=0),
        ]
        summary = categorize(records, 90, 75)

        assert [r.metric_id for r in summary.healthy] == ["unlimited", "uncapped"]
        assert all(r.percent_used == 0 for r in summary.healthy)

    def test_empty(self):
        summary = categorize([], 90, 75)
        assert summary.total == 0
        assert summary.timestamp
