"""Pytest configuration and fixtures for the usage monitor tests."""

import pytest
from whenever import Instant

from usage_monitor.engine import current_billing_period
from usage_monitor.models import (
    Aggregation,
    BillingPeriod,
    MetricCategory,
    MetricRuntime,
    MetricScope,
    MonitorSettings,
)

ACCOUNT_ID = "a" * 32
ZONE_A = "1" * 32
ZONE_B = "2" * 32
ZONE_C = "3" * 32


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def period() -> BillingPeriod:
    """The March 2025 billing cycle (UTC, starting on the 1st)."""
    return current_billing_period(1, "UTC", now=Instant.from_utc(2025, 3, 15, 12))


@pytest.fixture
def make_metric():
    """Factory for runtime metrics with sensible defaults."""

    def _make(**overrides) -> MetricRuntime:
        values = {
            "id": "http_requests",
            "name": "HTTP Requests",
            "category": MetricCategory.NETWORK,
            "dataset": "httpRequestsAdaptiveGroups",
            "aggregation": Aggregation.COUNT,
            "scope": MetricScope.ACCOUNT,
            "unit": "requests",
            "limit": 1000.0,
            "enabled": True,
        }
        values.update(overrides)
        return MetricRuntime(**values)

    return _make


@pytest.fixture
def settings() -> MonitorSettings:
    """Settings built explicitly so tests never read the environment."""
    return MonitorSettings(
        api_token="test-token",
        account_id=ACCOUNT_ID,
        zone_tags=f"{ZONE_A},{ZONE_B}",
    )
