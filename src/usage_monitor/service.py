"""On-demand usage check shared by the CLI and the HTTP API.

The workflow path runs the same steps spread over activities; this module
runs them inline for interactive callers.
"""

import logging

import httpx
from whenever import Instant

from usage_monitor.client import QueryExecutor
from usage_monitor.engine import UsageEngine, categorize
from usage_monitor.models import MonitorSettings, TrafficFilters, UsageResponse, ZoneInfo
from usage_monitor.registry import MetricRegistry, build_default_registry, resolve_metrics
from usage_monitor.zones import discover_zones

logger = logging.getLogger(__name__)


async def resolve_zone_tags(
    settings: MonitorSettings,
    filters: TrafficFilters,
    http_client: httpx.AsyncClient | None = None,
) -> tuple[list[str], bool]:
    """Zones to query and whether they were discovered.

    A zone filter or configured zones win; otherwise the account's active
    zones are discovered. A failed discovery yields no zones.
    """
    if filters.zone_id:
        return [filters.zone_id], False
    if settings.configured_zone_tags:
        return settings.configured_zone_tags, False

    result = await discover_zones(settings.api_token, settings.account_id, client=http_client)
    if result.error:
        logger.warning("Zone discovery failed, zone metrics will report errors: %s", result.error)
    return result.zone_ids, True


async def run_usage_check(
    settings: MonitorSettings,
    executor: QueryExecutor,
    filters: TrafficFilters,
    *,
    include_disabled: bool = False,
    registry: MetricRegistry | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> UsageResponse:
    """Query every configured metric once and categorize the results."""
    registry = registry or build_default_registry()
    zone_tags, discovered = await resolve_zone_tags(settings, filters, http_client)
    metrics = resolve_metrics(registry, settings.contract, zone_tags)

    engine = UsageEngine.from_config(
        executor, settings.account_id, settings.contract, settings.engine
    )
    period = engine.billing_period()
    records = await engine.query_all_configured(metrics, zone_tags, filters, period=period)
    if not include_disabled:
        records = [record for record in records if record.enabled]

    contract = settings.contract
    summary = categorize(
        records,
        contract.alert_threshold_percent,
        contract.warning_threshold_percent,
    )
    return UsageResponse(
        timestamp=Instant.now().format_iso(),
        billing_period=period,
        zones=ZoneInfo(count=len(zone_tags), auto_discovered=discovered),
        filters=filters,
        summary=summary,
    )
