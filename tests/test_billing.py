"""Unit tests for billing period calculation."""

import pytest
from pydantic import ValidationError
from whenever import Instant

from usage_monitor.engine import current_billing_period
from usage_monitor.models import BillingPeriodConfig, ContractConfig


class TestCurrentBillingPeriod:
    def test_first_of_month(self):
        period = current_billing_period(1, now=Instant.from_utc(2025, 3, 15, 12))
        assert period.start == Instant.from_utc(2025, 3, 1)
        assert period.end == Instant.from_utc(2025, 4, 1)

    def test_before_anchor_uses_previous_month(self):
        period = current_billing_period(15, now=Instant.from_utc(2025, 3, 10))
        assert period.start == Instant.from_utc(2025, 2, 15)
        assert period.end == Instant.from_utc(2025, 3, 15)

    def test_on_anchor_day_starts_new_cycle(self):
        period = current_billing_period(15, now=Instant.from_utc(2025, 3, 15, 0, 0, 1))
        assert period.start == Instant.from_utc(2025, 3, 15)

    def test_crosses_year_boundary(self):
        period = current_billing_period(20, now=Instant.from_utc(2025, 1, 5))
        assert period.start == Instant.from_utc(2024, 12, 20)
        assert period.end == Instant.from_utc(2025, 1, 20)

    def test_window_is_half_open(self):
        now = Instant.from_utc(2025, 3, 15, 12)
        period = current_billing_period(1, now=now)
        assert period.contains(now)
        assert period.contains(period.start)
        assert not period.contains(period.end)

    def test_timezone_boundaries(self):
        # 2025-03-01 03:00 UTC is still February 28 in New York
        period = current_billing_period(
            1, "America/New_York", now=Instant.from_utc(2025, 3, 1, 3)
        )
        assert period.start == Instant.from_utc(2025, 2, 1, 5)
        assert period.end == Instant.from_utc(2025, 3, 1, 5)
        assert period.timezone == "America/New_York"

    def test_dst_shift_inside_period(self):
        period = current_billing_period(
            1, "America/New_York", now=Instant.from_utc(2025, 3, 20)
        )
        assert period.start == Instant.from_utc(2025, 3, 1, 5)
        assert period.end == Instant.from_utc(2025, 4, 1, 4)

    @pytest.mark.parametrize("start_day", [0, 29, 31, -1])
    def test_invalid_start_day(self, start_day):
        with pytest.raises(ValueError, match="between 1 and 28"):
            current_billing_period(start_day)

    def test_defaults_to_now(self):
        period = current_billing_period(1)
        assert period.contains(Instant.now())


class TestBillingPeriodConfig:
    def test_unknown_timezone_rejected_at_load(self):
        with pytest.raises(ValidationError, match="Mars/Olympus"):
            BillingPeriodConfig(timezone="Mars/Olympus")

    def test_unknown_timezone_in_contract(self):
        with pytest.raises(ValidationError, match="Unknown IANA timezone"):
            ContractConfig.model_validate({"billing_period": {"timezone": "Not/AZone"}})

    def test_known_timezone_accepted(self):
        config = BillingPeriodConfig(start_day=15, timezone="Asia/Kolkata")
        period = current_billing_period(config.start_day, config.timezone)
        assert period.timezone == "Asia/Kolkata"
