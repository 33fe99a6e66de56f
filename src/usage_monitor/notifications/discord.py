"""Discord webhook provider.

One message per summary: an embed per non-empty severity (alerts, warnings,
significant errors) followed by an overall summary embed. Nothing is sent
when there is nothing to report, unless ``always_notify`` is set.
"""

import logging
import time
from typing import Any
from urllib.parse import urlparse

import httpx
from whenever import Instant

from usage_monitor.formatting import format_value, progress_bar
from usage_monitor.models import (
    BillingPeriod,
    NotificationOptions,
    NotificationResult,
    UsageRecord,
    UsageSummary,
)
from usage_monitor.notifications.base import NotificationColor, significant_errors

logger = logging.getLogger(__name__)

USERNAME = "Cloudflare Usage Monitor"
AVATAR_URL = "https://www.cloudflare.com/favicon.ico"
CRITICAL_MENTION = "@here :rotating_light: **Critical usage alert!**"

# Discord rejects messages with more embeds than this
MAX_EMBEDS = 10
TOP_USAGE_COUNT = 3


class DiscordWebhookError(Exception):
    pass


def _usage_field(record: UsageRecord, options: NotificationOptions) -> dict[str, Any]:
    bar = progress_bar(record.percent_used, options.alert_threshold, options.warning_threshold)
    current = format_value(record.current_usage, record.unit)
    limit = format_value(record.limit, record.unit, record.unlimited)
    return {
        "name": record.metric_name,
        "value": f"{bar} **{record.percent_used:.1f}%**\n{current} / {limit}",
        "inline": True,
    }


def _footer(text: str = USERNAME) -> dict[str, str]:
    return {"text": text}


def _billing_dates(summary: UsageSummary, period: BillingPeriod | None) -> tuple[str, str]:
    if period is not None:
        return (
            period.start.to_tz(period.timezone).date().format_iso(),
            period.end.to_tz(period.timezone).date().format_iso(),
        )
    for record in [*summary.alerts, *summary.warnings, *summary.healthy]:
        return record.billing_period_start[:10], record.billing_period_end[:10]
    today = Instant.now().format_iso()[:10]
    return today, today


def build_alert_embed(alerts: list[UsageRecord], options: NotificationOptions) -> dict[str, Any]:
    return {
        "title": ":rotating_light: ALERT: Usage Approaching Contract Limits",
        "description": (
            f"**{len(alerts)} metric(s)** have exceeded "
            f"**{options.alert_threshold:g}%** of their contract limits!"
        ),
        "color": NotificationColor.ALERT.value,
        "fields": [_usage_field(record, options) for record in alerts],
        "footer": _footer(),
        "timestamp": Instant.now().format_iso(),
    }


def build_warning_embed(
    warnings: list[UsageRecord], options: NotificationOptions
) -> dict[str, Any]:
    return {
        "title": ":warning: Warning: Elevated Usage Detected",
        "description": (
            f"**{len(warnings)} metric(s)** have exceeded "
            f"**{options.warning_threshold:g}%** of their contract limits."
        ),
        "color": NotificationColor.WARNING.value,
        "fields": [_usage_field(record, options) for record in warnings],
        "footer": _footer(),
        "timestamp": Instant.now().format_iso(),
    }


def build_error_embed(errors: list[UsageRecord]) -> dict[str, Any]:
    return {
        "title": ":x: Query Errors",
        "description": f"Failed to fetch usage data for **{len(errors)} metric(s)**.",
        "color": NotificationColor.ERROR.value,
        "fields": [
            {
                "name": record.metric_name,
                "value": f"Error: {record.error or 'Unknown error'}",
                "inline": False,
            }
            for record in errors
        ],
        "footer": _footer(),
        "timestamp": Instant.now().format_iso(),
    }


def build_summary_embed(summary: UsageSummary, options: NotificationOptions) -> dict[str, Any]:
    checked = len(summary.alerts) + len(summary.warnings) + len(summary.healthy)
    description = f"Checked **{checked} metrics** for usage against contract limits."
    if options.filters is not None:
        active = [f for f in options.filters.describe() if not f.startswith("zone ")]
        if active:
            description += f"\n*Filters: {', '.join(active)}*"

    if summary.alerts:
        color = NotificationColor.ALERT
    elif summary.warnings:
        color = NotificationColor.WARNING
    else:
        color = NotificationColor.HEALTHY

    fields: list[dict[str, Any]] = [
        {
            "name": ":rotating_light: Alerts",
            "value": f"{len(summary.alerts)} metrics",
            "inline": True,
        },
        {
            "name": ":warning: Warnings",
            "value": f"{len(summary.warnings)} metrics",
            "inline": True,
        },
        {
            "name": ":white_check_mark: Healthy",
            "value": f"{len(summary.healthy)} metrics",
            "inline": True,
        },
    ]
    top = [*summary.alerts, *summary.warnings][:TOP_USAGE_COUNT]
    if top:
        fields.append({"name": "\u200b", "value": "**Top Metrics by Usage:**", "inline": False})
        fields.extend(_usage_field(record, options) for record in top)

    start, end = _billing_dates(summary, options.billing_period)
    return {
        "title": ":white_check_mark: Usage Summary",
        "description": description,
        "color": color.value,
        "fields": fields,
        "footer": _footer(f"Billing Period: {start} - {end}"),
        "timestamp": summary.timestamp,
    }


def build_payload(summary: UsageSummary, options: NotificationOptions) -> dict[str, Any] | None:
    """Build the webhook payload, or None when there is nothing to report."""
    embeds = []
    if summary.alerts:
        embeds.append(build_alert_embed(summary.alerts, options))
    if summary.warnings:
        embeds.append(build_warning_embed(summary.warnings, options))
    errors = significant_errors(summary.errors)
    if errors:
        embeds.append(build_error_embed(errors))

    if not embeds and not options.always_notify:
        return None

    embeds.append(build_summary_embed(summary, options))
    payload: dict[str, Any] = {
        "username": USERNAME,
        "avatar_url": AVATAR_URL,
        "embeds": embeds[:MAX_EMBEDS],
    }
    if summary.alerts and options.mention_on_critical:
        payload["content"] = CRITICAL_MENTION
    return payload


def build_test_payload(options: NotificationOptions) -> dict[str, Any]:
    return {
        "username": USERNAME,
        "avatar_url": AVATAR_URL,
        "embeds": [
            {
                "title": ":test_tube: Test Notification",
                "description": (
                    "This is a test notification from the Cloudflare Usage Monitor. "
                    "If you see this, your Discord webhook is configured correctly!"
                ),
                "color": NotificationColor.INFO.value,
                "fields": [
                    {
                        "name": "Alert Threshold",
                        "value": f"{options.alert_threshold:g}%",
                        "inline": True,
                    },
                    {
                        "name": "Warning Threshold",
                        "value": f"{options.warning_threshold:g}%",
                        "inline": True,
                    },
                    {
                        "name": "Metrics Monitored",
                        "value": str(options.monitored_count or 0),
                        "inline": True,
                    },
                ],
                "footer": _footer(f"{USERNAME} - Test"),
                "timestamp": Instant.now().format_iso(),
            }
        ],
    }


class DiscordProvider:
    """Discord webhook notification provider."""

    name = "discord"
    display_name = "Discord"

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client

    def validate_webhook_url(self, url: str) -> bool:
        try:
            host = urlparse(url).hostname or ""
        except ValueError:
            return False
        return host in ("discord.com", "discordapp.com") or host.endswith(".discord.com")

    async def send(
        self,
        webhook_url: str,
        summary: UsageSummary,
        options: NotificationOptions | None = None,
    ) -> NotificationResult:
        options = options or NotificationOptions()
        payload = build_payload(summary, options)
        if payload is None:
            logger.info("No alerts or warnings, skipping Discord notification")
            return NotificationResult(success=True, provider=self.name, skipped=True)
        return await self._post(webhook_url, payload)

    async def send_test(
        self,
        webhook_url: str,
        options: NotificationOptions | None = None,
    ) -> NotificationResult:
        return await self._post(webhook_url, build_test_payload(options or NotificationOptions()))

    async def _post(self, webhook_url: str, payload: dict[str, Any]) -> NotificationResult:
        started = time.perf_counter()
        try:
            if self._client is not None:
                response = await self._client.post(webhook_url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    response = await client.post(webhook_url, json=payload)
            if not response.is_success:
                raise DiscordWebhookError(
                    f"Discord webhook failed: {response.status_code} {response.text}"
                )
        except (DiscordWebhookError, httpx.HTTPError) as e:
            logger.error("Failed to send Discord notification: %s", e)
            return NotificationResult(
                success=False,
                provider=self.name,
                error=str(e),
                duration_ms=(time.perf_counter() - started) * 1000,
            )

        logger.info("Discord notification sent (%d embeds)", len(payload["embeds"]))
        return NotificationResult(
            success=True,
            provider=self.name,
            status_code=response.status_code,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
