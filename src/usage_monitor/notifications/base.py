"""Notification provider protocol and shared helpers."""

from enum import IntEnum
from typing import Protocol, runtime_checkable

from usage_monitor.models import NotificationOptions, NotificationResult, UsageRecord, UsageSummary


class NotificationColor(IntEnum):
    """Embed colour per severity."""

    ALERT = 0xFF0000
    WARNING = 0xFFA500
    HEALTHY = 0x00FF00
    INFO = 0x0099FF
    ERROR = 0x808080


# Errors expected for datasets the account does not have or cannot query
# over a full billing period. They are not worth a notification.
BENIGN_ERROR_MARKERS = (
    "unknown field",
    "time range is too large",
    "unknown arg",
)


def significant_errors(records: list[UsageRecord]) -> list[UsageRecord]:
    """Drop error records whose message matches a benign marker."""
    return [
        record
        for record in records
        if not any(marker in (record.error or "") for marker in BENIGN_ERROR_MARKERS)
    ]


@runtime_checkable
class NotificationProvider(Protocol):
    name: str
    display_name: str

    def validate_webhook_url(self, url: str) -> bool: ...

    async def send(
        self,
        webhook_url: str,
        summary: UsageSummary,
        options: NotificationOptions | None = None,
    ) -> NotificationResult: ...

    async def send_test(
        self,
        webhook_url: str,
        options: NotificationOptions | None = None,
    ) -> NotificationResult: ...
