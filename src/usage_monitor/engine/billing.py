"""Billing period calculation.

A billing cycle runs from local midnight on ``start_day`` to local midnight
on the same day one calendar month later. ``start_day`` is capped at 28 so
every month has the anchor day.

Date/Time: uses `whenever` so month arithmetic and DST gaps are handled by
the library rather than by hand.
"""

from whenever import Date, Instant, ZonedDateTime

from usage_monitor.models import BillingPeriod


def _local_midnight(day: Date, timezone: str) -> Instant:
    return ZonedDateTime(
        day.year,
        day.month,
        day.day,
        tz=timezone,
        disambiguate="compatible",
    ).to_instant()


def current_billing_period(
    start_day: int,
    timezone: str = "UTC",
    now: Instant | None = None,
) -> BillingPeriod:
    """Return the half-open billing window ``[start, end)`` containing ``now``.

    Args:
        start_day: Day of month the cycle starts on (1-28)
        timezone: IANA timezone the cycle boundaries are defined in
        now: Reference instant (default: current time)

    Returns:
        BillingPeriod with ``start`` and ``end`` instants

    Raises:
        ValueError: If start_day is outside 1-28
    """
    if not 1 <= start_day <= 28:
        raise ValueError(f"Billing start day must be between 1 and 28, got {start_day}")

    if now is None:
        now = Instant.now()

    local_today = now.to_tz(timezone).date()
    anchor = Date(local_today.year, local_today.month, start_day)
    if local_today.day < start_day:
        anchor = anchor.subtract(months=1)

    return BillingPeriod(
        start=_local_midnight(anchor, timezone),
        end=_local_midnight(anchor.add(months=1), timezone),
        timezone=timezone,
    )
