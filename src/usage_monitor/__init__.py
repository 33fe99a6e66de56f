"""Usage Monitor - estimates Cloudflare consumption against contract caps.

Quick Start:
    from usage_monitor.client import GraphQLClient
    from usage_monitor.engine import UsageEngine, categorize
    from usage_monitor.models import ContractConfig
    from usage_monitor.registry import build_default_registry, enabled_metrics

    contract = ContractConfig()
    metrics = enabled_metrics(build_default_registry(), contract, zone_tags)

    async with GraphQLClient(api_token) as client:
        engine = UsageEngine(client, account_id)
        records = await engine.query_all_enabled(metrics, zone_tags)

    summary = categorize(
        records,
        contract.alert_threshold_percent,
        contract.warning_threshold_percent,
    )
"""

__version__ = "0.1.0"
