"""UsageMonitorWorkflow - periodic usage check against contract caps.

Runs on a cron schedule started by the worker, or on demand from the CLI.
All I/O happens in activities; categorization is deterministic and runs in
workflow code, stamped with ``workflow.now()``.
"""

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ApplicationError

with workflow.unsafe.imports_passed_through():
    from whenever import TimeDelta

    from usage_monitor.activities import (
        discover_account_zones,
        query_usage,
        send_usage_notification,
    )
    from usage_monitor.engine import categorize
    from usage_monitor.models import (
        DiscoverZonesInput,
        QueryUsageInput,
        SendNotificationInput,
        UsageMonitorInput,
        UsageMonitorResult,
    )
    from usage_monitor.registry import (
        build_default_registry,
        enabled_metrics,
        select_metrics,
    )

QUERY_RETRY_POLICY = RetryPolicy(
    maximum_attempts=3,
    initial_interval=TimeDelta(seconds=10).py_timedelta(),
    backoff_coefficient=2.0,
)


@workflow.defn
class UsageMonitorWorkflow:
    """One usage check: discover zones, query, categorize, notify.

    This workflow:
    1. Resolves the enabled metrics from the catalog and contract
    2. Discovers zones when none were supplied
    3. Queries usage (retried as a whole on activity failure)
    4. Categorizes records into alerts, warnings, healthy and errors
    5. Notifies when anything needs attention or a notification is forced
    """

    def __init__(self) -> None:
        self._status = "pending"

    @workflow.run
    async def run(self, input: UsageMonitorInput) -> UsageMonitorResult:
        workflow.logger.info(f"UsageMonitorWorkflow started (triggered by {input.triggered_by})")

        self._status = "resolving"
        try:
            metrics = select_metrics(
                enabled_metrics(build_default_registry(), input.contract, input.zone_tags),
                input.metric_ids,
            )
        except ValueError as e:
            raise ApplicationError(str(e), non_retryable=True) from e
        if not metrics:
            raise ApplicationError("No metrics enabled for monitoring", non_retryable=True)

        zone_tags = list(input.zone_tags)
        zones_discovered = False
        if not zone_tags:
            self._status = "discovering"
            discovery = await workflow.execute_activity(
                discover_account_zones,
                DiscoverZonesInput(account_id=input.account_id),
                start_to_close_timeout=TimeDelta(minutes=1).py_timedelta(),
            )
            if discovery.error:
                workflow.logger.warning(
                    f"Zone discovery failed, continuing without zones: {discovery.error}"
                )
            zone_tags = discovery.zone_ids
            zones_discovered = True

        self._status = "querying"
        records = await workflow.execute_activity(
            query_usage,
            QueryUsageInput(
                account_id=input.account_id,
                zone_tags=zone_tags,
                filters=input.filters,
                contract=input.contract,
                metric_ids=[metric.id for metric in metrics],
            ),
            start_to_close_timeout=TimeDelta(minutes=3).py_timedelta(),
            retry_policy=QUERY_RETRY_POLICY,
        )

        summary = categorize(
            records,
            input.contract.alert_threshold_percent,
            input.contract.warning_threshold_percent,
            timestamp=workflow.now().isoformat(),
        )
        workflow.logger.info(
            f"Usage summary: {len(summary.alerts)} alerts, {len(summary.warnings)} warnings, "
            f"{len(summary.healthy)} healthy, {len(summary.errors)} errors"
        )

        notification = None
        if input.notify and (summary.needs_attention or input.force_notify):
            self._status = "notifying"
            try:
                notification = await workflow.execute_activity(
                    send_usage_notification,
                    SendNotificationInput(
                        summary=summary,
                        filters=input.filters,
                        contract=input.contract,
                        always_notify=input.force_notify,
                        monitored_count=len(metrics),
                    ),
                    start_to_close_timeout=TimeDelta(seconds=30).py_timedelta(),
                    retry_policy=RetryPolicy(maximum_attempts=2),
                )
            except Exception as e:
                workflow.logger.error(f"Notification failed: {e}")

        self._status = "completed"
        return UsageMonitorResult(
            summary=summary,
            zone_count=len(zone_tags),
            zones_discovered=zones_discovered,
            notification=notification,
        )

    @workflow.query
    def status(self) -> str:
        """Query the current step of the run."""
        return self._status
