"""Unit tests for payload extraction and usage record building."""

from usage_monitor.engine.normalizer import EMPTY_USAGE, build_usage_record, extract_usage
from usage_monitor.models import (
    Aggregation,
    ConfidenceInterval,
    MetricScope,
    UnitTransform,
)

from .fakes import count_payload, sum_payload


class TestExtract:
    def test_sums_every_row(self, make_metric):
        payload = count_payload("accounts", "httpRequestsAdaptiveGroups", 10, 20, 30)
        usage = extract_usage(payload["data"], make_metric())
        assert usage.value == 60
        assert usage.rows == 3

    def test_aggregate_field(self, make_metric):
        metric = make_metric(
            dataset="r2OperationsAdaptiveGroups", aggregation=Aggregation.SUM, field="requests"
        )
        payload = sum_payload("accounts", "r2OperationsAdaptiveGroups", "requests", 5, 7)
        assert extract_usage(payload["data"], metric).value == 12

    def test_zone_scope_reads_zones(self, make_metric):
        metric = make_metric(scope=MetricScope.ZONE)
        payload = count_payload("zones", "httpRequestsAdaptiveGroups", 4)
        assert extract_usage(payload["data"], metric).value == 4

    def test_missing_or_empty_data_is_zero(self, make_metric):
        metric = make_metric()
        assert extract_usage(None, metric) == EMPTY_USAGE
        assert extract_usage({"viewer": {"accounts": []}}, metric) == EMPTY_USAGE
        assert extract_usage({"viewer": {"accounts": [{}]}}, metric) == EMPTY_USAGE
        assert extract_usage({"viewer": {"accounts": [{"other": []}]}}, metric) == EMPTY_USAGE

    def test_malformed_rows_are_zero(self, make_metric):
        data = {"viewer": {"accounts": [{"httpRequestsAdaptiveGroups": [{"count": "many"}]}]}}
        assert extract_usage(data, make_metric()) == EMPTY_USAGE

    def test_null_counts_read_as_zero(self, make_metric):
        data = {"viewer": {"accounts": [{"httpRequestsAdaptiveGroups": [{"count": None}]}]}}
        assert extract_usage(data, make_metric()).value == 0

    def test_row_confidence_is_combined(self, make_metric):
        payload = count_payload(
            "accounts",
            "httpRequestsAdaptiveGroups",
            100,
            100,
            confidence={"estimate": 100, "lower": 90, "upper": 110, "sampleSize": 5},
        )
        usage = extract_usage(payload["data"], make_metric())
        assert usage.confidence is not None
        assert (usage.confidence.lower, usage.confidence.upper) == (180, 220)
        assert usage.confidence.sample_size == 10

    def test_malformed_confidence_keeps_usage(self, make_metric):
        rows = [
            {
                "count": 60,
                "confidence": {
                    "level": 0.95,
                    "count": {"estimate": 60, "lower": 50, "upper": 70, "sampleSize": 4},
                },
            },
            {
                "count": 40,
                "confidence": {"level": 0.95, "count": {"estimate": 40, "sampleSize": -1}},
            },
        ]
        data = {"viewer": {"accounts": [{"httpRequestsAdaptiveGroups": rows}]}}

        usage = extract_usage(data, make_metric())
        assert usage.value == 100
        assert usage.confidence is not None
        assert (usage.confidence.lower, usage.confidence.upper) == (50, 70)


class TestBuildRecord:
    def test_percent_used(self, make_metric, period):
        record = build_usage_record(make_metric(limit=1000), period, value=250)
        assert record.current_usage == 250
        assert record.percent_used == 25
        assert record.billing_period_start == "2025-03-01T00:00:00Z"
        assert record.billing_period_end == "2025-04-01T00:00:00Z"

    def test_zero_limit_reports_zero_percent(self, make_metric, period):
        assert build_usage_record(make_metric(limit=0), period, value=50).percent_used == 0

    def test_unlimited_reports_zero_percent(self, make_metric, period):
        record = build_usage_record(make_metric(unlimited=True), period, value=5000)
        assert record.percent_used == 0
        assert record.current_usage == 5000

    def test_error_forces_zero_usage(self, make_metric, period):
        record = build_usage_record(make_metric(), period, value=999, error="boom")
        assert record.error == "boom"
        assert record.current_usage == 0
        assert record.confidence is None

    def test_unit_transform_scales_value_and_interval(self, make_metric, period):
        metric = make_metric(
            id="workers_cpu_time",
            dataset="workersInvocationsAdaptive",
            aggregation=Aggregation.SUM,
            field="cpuTimeUs",
            unit="ms",
            unit_transform=UnitTransform.MICROSECONDS_TO_MILLISECONDS,
        )
        interval = ConfidenceInterval(estimate=5000, lower=4000, upper=6000)
        record = build_usage_record(metric, period, value=5000, confidence=interval)
        assert record.current_usage == 5
        assert record.confidence is not None
        assert (record.confidence.lower, record.confidence.upper) == (4, 6)
        assert record.confidence.confidence_percent == interval.confidence_percent

    def test_zero_value_skips_transform(self, make_metric, period):
        metric = make_metric(unit_transform=UnitTransform.MICROSECONDS_TO_MILLISECONDS)
        assert build_usage_record(metric, period, value=0).current_usage == 0

    def test_negative_value_is_clamped(self, make_metric, period):
        assert build_usage_record(make_metric(), period, value=-3).current_usage == 0

    def test_note_and_enabled_overrides(self, make_metric, period):
        record = build_usage_record(make_metric(note="catalog"), period)
        assert record.note == "catalog"
        record = build_usage_record(make_metric(), period, enabled=False, note="disabled")
        assert (record.enabled, record.note) == (False, "disabled")
