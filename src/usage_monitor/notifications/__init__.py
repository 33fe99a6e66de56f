"""Webhook notifications for usage summaries.

Providers are looked up by name or detected from the webhook URL. Delivery
never raises; failures are reported on ``NotificationResult``.
"""

import httpx

from usage_monitor.models import NotificationOptions, NotificationResult, UsageSummary
from usage_monitor.notifications.base import (
    BENIGN_ERROR_MARKERS,
    NotificationColor,
    NotificationProvider,
    significant_errors,
)
from usage_monitor.notifications.discord import DiscordProvider

PROVIDERS: dict[str, type[DiscordProvider]] = {
    "discord": DiscordProvider,
}


def available_providers() -> list[str]:
    return list(PROVIDERS)


def get_provider(
    name: str, client: httpx.AsyncClient | None = None
) -> NotificationProvider | None:
    provider_cls = PROVIDERS.get(name.lower())
    return provider_cls(client) if provider_cls is not None else None


def detect_provider(
    webhook_url: str, client: httpx.AsyncClient | None = None
) -> NotificationProvider | None:
    for provider_cls in PROVIDERS.values():
        provider = provider_cls(client)
        if provider.validate_webhook_url(webhook_url):
            return provider
    return None


def _resolve(
    webhook_url: str,
    provider_name: str | None,
    client: httpx.AsyncClient | None,
) -> NotificationProvider | NotificationResult:
    if provider_name:
        provider = get_provider(provider_name, client)
        if provider is None:
            return NotificationResult(
                success=False,
                provider=provider_name,
                error=(
                    f"Unknown provider: {provider_name}. "
                    f"Available providers: {', '.join(available_providers())}"
                ),
            )
        if not provider.validate_webhook_url(webhook_url):
            return NotificationResult(
                success=False,
                provider=provider_name,
                error=f"Invalid webhook URL for {provider.display_name}",
            )
        return provider

    provider = detect_provider(webhook_url, client)
    if provider is None:
        return NotificationResult(
            success=False,
            provider="unknown",
            error=(
                "Could not detect provider from webhook URL. "
                f"Supported providers: {', '.join(available_providers())}"
            ),
        )
    return provider


async def send_notification(
    webhook_url: str,
    summary: UsageSummary,
    options: NotificationOptions | None = None,
    *,
    provider_name: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> NotificationResult:
    """Deliver a usage summary through the named or detected provider."""
    provider = _resolve(webhook_url, provider_name, client)
    if isinstance(provider, NotificationResult):
        return provider
    return await provider.send(webhook_url, summary, options)


async def send_test_notification(
    webhook_url: str,
    options: NotificationOptions | None = None,
    *,
    provider_name: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> NotificationResult:
    provider = _resolve(webhook_url, provider_name, client)
    if isinstance(provider, NotificationResult):
        return provider
    return await provider.send_test(webhook_url, options)


__all__ = [
    "BENIGN_ERROR_MARKERS",
    "DiscordProvider",
    "NotificationColor",
    "NotificationProvider",
    "PROVIDERS",
    "available_providers",
    "detect_provider",
    "get_provider",
    "send_notification",
    "send_test_notification",
    "significant_errors",
]
