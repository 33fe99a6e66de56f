"""Property tests for confidence scoring and combination.

- Scores always land in [0, 99]
- Combining sums estimates, bounds and sample sizes
- Validity is the AND of every partition
"""

import math

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from usage_monitor.engine import combine_confidence
from usage_monitor.models import MAX_CONFIDENCE_PERCENT, ConfidenceInterval, confidence_percent

from .strategies import confidence_intervals


@given(
    estimate=st.floats(allow_nan=True, allow_infinity=True),
    lower=st.floats(allow_nan=False, allow_infinity=False),
    upper=st.floats(allow_nan=False, allow_infinity=False),
)
@settings(max_examples=500)
def test_score_is_bounded(estimate: float, lower: float, upper: float):
    """Property: The score is always within [0, 99] whatever the inputs."""
    score = confidence_percent(estimate, lower, upper)
    assert 0 <= score <= MAX_CONFIDENCE_PERCENT


@given(interval=confidence_intervals())
@settings(max_examples=300)
def test_wider_interval_never_scores_higher(interval: ConfidenceInterval):
    """Property: Widening the interval cannot raise the score."""
    wider = interval.model_copy(update={"upper": interval.upper + 1000})
    assert wider.confidence_percent <= interval.confidence_percent


@given(intervals=st.lists(confidence_intervals(), min_size=1, max_size=20))
@settings(max_examples=300)
def test_combination_sums_partitions(intervals: list[ConfidenceInterval]):
    """Property: The combined interval is the sum of its partitions."""
    combined = combine_confidence(intervals)

    assert combined is not None
    assert math.isclose(combined.estimate, sum(i.estimate for i in intervals), rel_tol=1e-9)
    assert math.isclose(combined.lower, sum(i.lower for i in intervals), rel_tol=1e-9)
    assert math.isclose(combined.upper, sum(i.upper for i in intervals), rel_tol=1e-9)
    assert combined.sample_size == sum(i.sample_size for i in intervals)
    assert combined.is_valid == all(i.is_valid for i in intervals)


@given(intervals=st.lists(st.one_of(st.none(), confidence_intervals()), max_size=10))
@settings(max_examples=200)
def test_missing_partitions_are_skipped(intervals: list[ConfidenceInterval | None]):
    """Property: None partitions neither contribute nor invalidate the result."""
    present = [i for i in intervals if i is not None]
    combined = combine_confidence(intervals)
    if not present:
        assert combined is None
    else:
        assert combined == combine_confidence(present)


@given(interval=confidence_intervals(), factor=st.floats(min_value=1e-9, max_value=1e3))
@settings(max_examples=200)
def test_scaling_preserves_score(interval: ConfidenceInterval, factor: float):
    """Property: Converting units does not change how certain the data is."""
    assume(interval.estimate > 1e-3)
    scaled = interval.scaled(factor)
    assert math.isclose(
        scaled.confidence_percent, interval.confidence_percent, rel_tol=1e-6, abs_tol=1e-6
    )
