"""Unit tests for GraphQL usage query building."""

import pytest
from whenever import Instant

from usage_monitor.engine.billing import current_billing_period
from usage_monitor.engine.query_builder import (
    ROW_LIMIT,
    build_aggregation_fields,
    build_dimension_filters,
    build_query,
    build_traffic_filters,
    format_time_bound,
)
from usage_monitor.models import (
    Aggregation,
    BillingPeriod,
    MetricCategory,
    MetricDefinition,
    MetricScope,
    TimeFilterKind,
    TrafficFilters,
)
from usage_monitor.registry import R2_CLASS_A_ACTIONS, build_default_registry


class TestScope:
    """Zone and account metrics bind different scope variables."""

    def test_zone_metric_uses_zone_tag(self, make_metric, period):
        metric = make_metric(scope=MetricScope.ZONE)
        query = build_query(metric, period)
        assert "query ZoneUsage($zoneTag: String!" in query.text
        assert "zones(filter: { zoneTag: $zoneTag })" in query.text
        assert query.variables("z1") == {
            "zoneTag": "z1",
            "start": query.start,
            "end": query.end,
        }

    def test_account_metric_uses_account_tag(self, make_metric, period):
        query = build_query(make_metric(), period)
        assert "query AccountUsage($accountTag: String!" in query.text
        assert "accounts(filter: { accountTag: $accountTag })" in query.text
        assert "accountTag" in query.variables("acc")

    def test_row_limit_is_applied(self, make_metric, period):
        assert f"limit: {ROW_LIMIT}" in build_query(make_metric(), period).text


class TestAggregation:
    def test_count_never_references_field(self, make_metric):
        metric = make_metric(aggregation=Aggregation.COUNT, field="ignored")
        lines = build_aggregation_fields(metric, include_confidence=True)
        assert lines[0] == "count"
        assert not any("ignored" in line for line in lines)
        assert "confidence(level: 0.95) {" in lines

    def test_sum_selects_field(self, make_metric):
        metric = make_metric(aggregation=Aggregation.SUM, field="edgeResponseBytes")
        lines = build_aggregation_fields(metric, include_confidence=False)
        assert lines == ["sum {", "  edgeResponseBytes", "}"]

    def test_max_with_confidence_nests_under_field(self, make_metric):
        metric = make_metric(aggregation=Aggregation.MAX, field="payloadSize")
        text = "\n".join(build_aggregation_fields(metric, include_confidence=True))
        assert "max {\n  payloadSize\n}" in text
        assert "  max {\n    payloadSize {\n      estimate" in text

    def test_dataset_without_sampling_metadata_skips_confidence(self, make_metric, period):
        metric = make_metric(
            dataset="durableObjectsStorageGroups",
            aggregation=Aggregation.MAX,
            field="storedBytes",
            time_filter=TimeFilterKind.DATE,
        )
        assert "confidence" not in build_query(metric, period).text

    def test_non_count_without_field_is_rejected(self):
        with pytest.raises(ValueError, match="has no field"):
            MetricDefinition(
                id="broken",
                name="Broken",
                category=MetricCategory.COMPUTE,
                dataset="someDataset",
                aggregation=Aggregation.SUM,
                scope=MetricScope.ACCOUNT,
                unit="requests",
            )


class TestTimeDialects:
    """Each dataset gets the time filter fields and value format it accepts."""

    def test_datetime_dialect(self, make_metric, period):
        query = build_query(make_metric(), period)
        assert "datetime_geq: $start, datetime_lt: $end" in query.text
        assert "$start: Time!" in query.text
        assert query.start == "2025-03-01T00:00:00Z"
        assert query.end == "2025-04-01T00:00:00Z"

    def test_date_dialect(self, make_metric, period):
        query = build_query(make_metric(time_filter=TimeFilterKind.DATE), period)
        assert "date_geq: $start, date_lt: $end" in query.text
        assert "$start: Date!" in query.text
        assert (query.start, query.end) == ("2025-03-01", "2025-04-01")

    def test_hour_dialect(self, make_metric, period):
        query = build_query(make_metric(time_filter=TimeFilterKind.DATETIME_HOUR), period)
        assert "datetimeHour_geq: $start, datetimeHour_lt: $end" in query.text

    def test_hour_bound_truncates_to_the_hour(self):
        instant = Instant.from_utc(2025, 3, 4, 10, 45, 30)
        assert format_time_bound(instant, TimeFilterKind.DATETIME_HOUR) == "2025-03-04T10:00:00Z"

    def test_hour_bounds_with_half_hour_offset(self, make_metric):
        # Kolkata is UTC+05:30: local midnight on Mar 1 is 18:30 UTC the day before
        march = current_billing_period(1, "Asia/Kolkata", now=Instant.from_utc(2025, 3, 10))
        april = current_billing_period(1, "Asia/Kolkata", now=Instant.from_utc(2025, 4, 10))
        assert march.start == Instant.from_utc(2025, 2, 28, 18, 30)

        metric = make_metric(time_filter=TimeFilterKind.DATETIME_HOUR)
        march_query = build_query(metric, march)
        april_query = build_query(metric, april)

        assert march_query.start == "2025-02-28T18:00:00Z"
        assert march_query.end == "2025-03-31T18:00:00Z"
        assert april_query.start == march_query.end

    def test_date_bound_uses_billing_timezone(self):
        # Local midnight in New York is 05:00 UTC
        instant = Instant.from_utc(2025, 3, 1, 5)
        assert format_time_bound(instant, TimeFilterKind.DATE, "America/New_York") == "2025-03-01"

    def test_window_bounds_are_shared_by_every_partition(self, make_metric):
        period = BillingPeriod(
            start=Instant.from_utc(2025, 1, 15),
            end=Instant.from_utc(2025, 2, 15),
        )
        query = build_query(make_metric(scope=MetricScope.ZONE), period)
        assert query.variables("a")["start"] == query.variables("b")["start"]


class TestTrafficFilters:
    def test_no_filters(self):
        assert build_traffic_filters("httpRequestsAdaptiveGroups", None) == []

    def test_eyeball_and_blocked(self):
        filters = TrafficFilters(eyeball_only=True, exclude_blocked=True)
        assert build_traffic_filters("httpRequestsAdaptiveGroups", filters) == [
            'requestSource: "eyeball"',
            "edgeResponseStatus_neq: 403",
        ]

    def test_edge_workers_excluded_only_without_eyeball(self):
        filters = TrafficFilters(exclude_edge_workers=True)
        assert build_traffic_filters("httpRequestsAdaptiveGroups", filters) == [
            'requestSource_neq: "edgeworker"'
        ]
        both = TrafficFilters(eyeball_only=True, exclude_edge_workers=True)
        assert build_traffic_filters("httpRequestsAdaptiveGroups", both) == [
            'requestSource: "eyeball"'
        ]

    def test_unsupported_dataset_drops_filters(self):
        filters = TrafficFilters(eyeball_only=True, exclude_blocked=True)
        assert build_traffic_filters("workersInvocationsAdaptive", filters) == []

    def test_filters_appear_in_query(self, make_metric, period):
        filters = TrafficFilters(eyeball_only=True)
        assert 'requestSource: "eyeball"' in build_query(make_metric(), period, filters).text


class TestDimensionFilters:
    def test_list_becomes_in_condition(self):
        assert build_dimension_filters({"actionType": ["GetObject", "HeadObject"]}) == [
            'actionType_in: ["GetObject", "HeadObject"]'
        ]

    def test_explicit_in_suffix_is_kept(self):
        assert build_dimension_filters({"actionType_in": ["PutObject"]}) == [
            'actionType_in: ["PutObject"]'
        ]

    def test_scalars_render_as_literals(self):
        assert build_dimension_filters({"status": "success", "code": 200, "cached": True}) == [
            'status: "success"',
            "code: 200",
            "cached: true",
        ]

    def test_r2_class_a_query_lists_every_action(self, period):
        registry = build_default_registry()
        definition = registry.require("r2_class_a_operations")
        text = build_query(definition, period).text
        for action in R2_CLASS_A_ACTIONS:
            assert f'"{action}"' in text
