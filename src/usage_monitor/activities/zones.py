"""Zone discovery activity."""

from temporalio import activity

from usage_monitor.models import DiscoverZonesInput, ZoneDiscoveryResult, get_settings
from usage_monitor.zones import discover_zones


@activity.defn
async def discover_account_zones(input: DiscoverZonesInput) -> ZoneDiscoveryResult:
    """List the active zones of an account.

    Discovery failures are returned on the result, not raised, so the
    workflow can continue with account-scoped metrics only.
    """
    settings = get_settings()
    activity.logger.info(f"Discovering zones for account {input.account_id}")

    result = await discover_zones(settings.api_token, input.account_id)
    if result.error:
        activity.logger.warning(f"Zone discovery failed: {result.error}")
    else:
        activity.logger.info(f"Discovered {result.total} zones in {result.duration_ms:.0f} ms")
    return result
