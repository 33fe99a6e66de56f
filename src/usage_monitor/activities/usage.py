"""Usage query activity.

Builds the engine from the worker's settings, so the API token stays in the
worker process and never enters workflow history. Per-metric failures are
reported on the records; only failures outside the engine (settings,
unknown metric overrides) fail the activity and trigger a retry.
"""

from temporalio import activity

from usage_monitor.client import GraphQLClient
from usage_monitor.engine import UsageEngine
from usage_monitor.models import QueryUsageInput, UsageRecord, get_settings
from usage_monitor.registry import build_default_registry, enabled_metrics, select_metrics


@activity.defn
async def query_usage(input: QueryUsageInput) -> list[UsageRecord]:
    """Query every enabled metric for the current billing period.

    Args:
        input: QueryUsageInput with account, zones, filters and contract

    Returns:
        One UsageRecord per queried metric, in catalog order. Zone twins of
        account-wide metrics are left out.
    """
    settings = get_settings()
    metrics = select_metrics(
        enabled_metrics(build_default_registry(), input.contract, input.zone_tags),
        input.metric_ids,
    )
    activity.logger.info(
        f"Querying {len(metrics)} metrics across {len(input.zone_tags)} zones "
        f"(filters: {', '.join(input.filters.describe()) or 'none'})"
    )

    async with GraphQLClient(settings.api_token) as client:
        engine = UsageEngine.from_config(client, input.account_id, input.contract, settings.engine)
        configured = await engine.query_all_configured(metrics, input.zone_tags, input.filters)
    records = [record for record in configured if record.enabled]

    errors = sum(1 for record in records if record.error)
    activity.logger.info(f"Queried {len(records)} metrics ({errors} errors)")
    return records
