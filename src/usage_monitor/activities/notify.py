"""Notification activity."""

from temporalio import activity

from usage_monitor.engine import current_billing_period
from usage_monitor.models import (
    NotificationOptions,
    NotificationResult,
    SendNotificationInput,
    get_settings,
)
from usage_monitor.notifications import send_notification


@activity.defn
async def send_usage_notification(input: SendNotificationInput) -> NotificationResult:
    """Send the usage summary to the configured webhook.

    A missing webhook is a skipped notification, not a failure.
    """
    settings = get_settings()
    if not settings.webhook_url:
        activity.logger.info("No webhook configured, skipping notification")
        return NotificationResult(success=True, provider="none", skipped=True)

    billing = input.contract.billing_period
    options = NotificationOptions(
        always_notify=input.always_notify,
        filters=input.filters,
        alert_threshold=input.contract.alert_threshold_percent,
        warning_threshold=input.contract.warning_threshold_percent,
        billing_period=current_billing_period(billing.start_day, billing.timezone),
        monitored_count=input.monitored_count,
    )
    result = await send_notification(
        settings.webhook_url,
        input.summary,
        options,
        provider_name=settings.notification_provider,
    )
    if not result.success:
        activity.logger.warning(f"Notification via {result.provider} failed: {result.error}")
    return result
