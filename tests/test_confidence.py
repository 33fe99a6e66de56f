"""Unit tests for confidence interval extraction, combination and scoring."""

import math

from usage_monitor.engine.confidence import combine_confidence, extract_row_confidence
from usage_monitor.models import (
    MAX_CONFIDENCE_PERCENT,
    Aggregation,
    ConfidenceInterval,
    confidence_percent,
)


def _interval(estimate, lower, upper, sample_size=10, is_valid=True) -> ConfidenceInterval:
    return ConfidenceInterval(
        estimate=estimate,
        lower=lower,
        upper=upper,
        sample_size=sample_size,
        is_valid=is_valid,
    )


class TestCombine:
    def test_empty_is_none(self):
        assert combine_confidence([]) is None
        assert combine_confidence([None, None]) is None

    def test_single_partition_is_unchanged(self):
        only = _interval(100, 90, 110)
        combined = combine_confidence([only])
        assert combined == only

    def test_bounds_and_samples_are_summed(self):
        combined = combine_confidence(
            [_interval(100, 90, 110, 50), None, _interval(200, 180, 220, 70)]
        )
        assert combined is not None
        assert (combined.estimate, combined.lower, combined.upper) == (300, 270, 330)
        assert combined.sample_size == 120
        assert combined.is_valid

    def test_validity_is_anded(self):
        combined = combine_confidence([_interval(1, 1, 1), _interval(1, 1, 1, is_valid=False)])
        assert combined is not None
        assert not combined.is_valid

    def test_level_comes_from_first_partition(self):
        first = _interval(1, 1, 1).model_copy(update={"level": 0.9})
        combined = combine_confidence([first, _interval(1, 1, 1)])
        assert combined is not None
        assert combined.level == 0.9


class TestScore:
    def test_tight_interval(self):
        # (110 - 90) / 100 * 100 / 2 = 10
        assert confidence_percent(100, 90, 110) == 90

    def test_exact_interval_is_capped(self):
        assert confidence_percent(100, 100, 100) == MAX_CONFIDENCE_PERCENT

    def test_wide_interval_floors_at_zero(self):
        assert confidence_percent(10, 0, 1000) == 0

    def test_zero_estimate_is_fully_confident(self):
        assert confidence_percent(0, 0, 0) == MAX_CONFIDENCE_PERCENT

    def test_non_finite_estimate(self):
        assert confidence_percent(math.inf, 0, 1) == MAX_CONFIDENCE_PERCENT
        assert confidence_percent(math.nan, 0, 1) == MAX_CONFIDENCE_PERCENT

    def test_interval_exposes_score(self):
        assert _interval(100, 90, 110).confidence_percent == 90


class TestExtractRow:
    def test_count_interval(self, make_metric):
        row = {
            "count": 100,
            "confidence": {
                "level": 0.95,
                "count": {
                    "estimate": 100,
                    "lower": 95,
                    "upper": 105,
                    "sampleSize": 40,
                    "isValid": True,
                },
            },
        }
        interval = extract_row_confidence(row, make_metric())
        assert interval == ConfidenceInterval(
            estimate=100, lower=95, upper=105, sample_size=40, is_valid=True, level=0.95
        )

    def test_aggregate_interval(self, make_metric):
        metric = make_metric(aggregation=Aggregation.SUM, field="bytes")
        row = {
            "sum": {"bytes": 10},
            "confidence": {"sum": {"bytes": {"estimate": 10, "lower": 8, "upper": 12}}},
        }
        interval = extract_row_confidence(row, metric)
        assert interval is not None
        assert (interval.lower, interval.upper, interval.sample_size) == (8, 12, 0)

    def test_missing_block(self, make_metric):
        assert extract_row_confidence({"count": 1}, make_metric()) is None
        assert extract_row_confidence({"confidence": None}, make_metric()) is None
        assert extract_row_confidence({"confidence": {"count": {}}}, make_metric()) is None

    def test_malformed_block_is_dropped(self, make_metric):
        out_of_range_level = {"confidence": {"level": 95, "count": {"estimate": 10}}}
        negative_sample = {"confidence": {"count": {"estimate": 10, "sampleSize": -3}}}
        not_a_number = {"confidence": {"count": {"estimate": "lots"}}}

        for row in (out_of_range_level, negative_sample, not_a_number):
            assert extract_row_confidence(row, make_metric()) is None
