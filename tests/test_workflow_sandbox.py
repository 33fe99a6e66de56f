"""Run UsageMonitorWorkflow inside the Temporal sandbox with stub activities.

Checks that the pydantic data converter carries the usage models across
every workflow -> activity boundary:
1. discover_account_zones returns a ZoneDiscoveryResult
2. query_usage receives QueryUsageInput and returns list[UsageRecord]
3. The workflow categorizes and hands a UsageSummary to send_usage_notification

Needs a local Temporal dev server, hence the ``integration`` marker.
"""

import uuid

import pytest
from temporalio import activity, workflow
from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.testing import WorkflowEnvironment
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner

with workflow.unsafe.imports_passed_through():
    from usage_monitor.engine import build_usage_record, current_billing_period
    from usage_monitor.models import (
        DiscoverZonesInput,
        MetricCategory,
        MetricRuntime,
        MetricScope,
        NotificationResult,
        QueryUsageInput,
        SendNotificationInput,
        UsageMonitorInput,
        UsageMonitorResult,
        UsageRecord,
        Zone,
        ZoneDiscoveryResult,
    )
    from usage_monitor.workflows import UsageMonitorWorkflow

ZONE_ID = "1" * 32

pytestmark = [pytest.mark.anyio, pytest.mark.integration]

notifications: list[SendNotificationInput] = []


# ---------------------------------------------------------------------------
# Stub activities registered under the real activity names
# ---------------------------------------------------------------------------


@activity.defn(name="discover_account_zones")
async def fake_discover_zones(input: DiscoverZonesInput) -> ZoneDiscoveryResult:
    return ZoneDiscoveryResult(zones=[Zone(id=ZONE_ID, name="example.com")])


@activity.defn(name="query_usage")
async def fake_query_usage(input: QueryUsageInput) -> list[UsageRecord]:
    """Report the first requested metric at 95% and the rest idle."""
    assert input.zone_tags == [ZONE_ID]
    assert input.metric_ids
    period = current_billing_period(1)
    records = []
    for index, metric_id in enumerate(input.metric_ids):
        metric = MetricRuntime(
            id=metric_id,
            name=metric_id,
            category=MetricCategory.PLATFORM,
            dataset="fakeGroups",
            aggregation="count",
            scope=MetricScope.ACCOUNT,
            unit="requests",
            limit=100,
            enabled=True,
        )
        records.append(build_usage_record(metric, period, value=95 if index == 0 else 0))
    return records


@activity.defn(name="send_usage_notification")
async def fake_send_notification(input: SendNotificationInput) -> NotificationResult:
    notifications.append(input)
    return NotificationResult(success=True, provider="discord", status_code=204)


async def _run(env: WorkflowEnvironment, activities, monitor_input: UsageMonitorInput):
    client = await Client.connect(
        env.client.service_client.config.target_host,
        data_converter=pydantic_data_converter,
    )
    task_queue = f"test-{uuid.uuid4()}"
    async with Worker(
        client,
        task_queue=task_queue,
        workflows=[UsageMonitorWorkflow],
        activities=activities,
        workflow_runner=SandboxedWorkflowRunner(
            restrictions=SandboxedWorkflowRunner().restrictions.with_passthrough_modules(
                "usage_monitor",
            )
        ),
    ):
        return await client.execute_workflow(
            UsageMonitorWorkflow.run,
            monitor_input,
            id=f"test-{uuid.uuid4()}",
            task_queue=task_queue,
            result_type=UsageMonitorResult,
        )


async def test_monitor_workflow_round_trip():
    notifications.clear()
    async with await WorkflowEnvironment.start_local() as env:
        result = await _run(
            env,
            [fake_discover_zones, fake_query_usage, fake_send_notification],
            UsageMonitorInput(account_id="a" * 32, triggered_by="test"),
        )

    assert isinstance(result, UsageMonitorResult)
    assert result.zone_count == 1
    assert result.zones_discovered
    assert len(result.summary.alerts) == 1
    assert result.summary.alerts[0].percent_used == 95
    assert result.notification is not None and result.notification.success

    assert len(notifications) == 1
    assert isinstance(notifications[0].summary.alerts[0], UsageRecord)


async def test_quiet_run_skips_notification():
    notifications.clear()
    async with await WorkflowEnvironment.start_local() as env:
        result = await _run(
            env,
            [fake_discover_zones, fake_query_usage, fake_send_notification],
            UsageMonitorInput(
                account_id="a" * 32, zone_tags=[ZONE_ID], notify=False, triggered_by="test"
            ),
        )

    assert not result.zones_discovered
    assert result.notification is None
    assert notifications == []


async def test_unknown_metric_fails_without_retry():
    async with await WorkflowEnvironment.start_local() as env:
        with pytest.raises(Exception) as excinfo:
            await _run(
                env,
                [fake_discover_zones, fake_query_usage, fake_send_notification],
                UsageMonitorInput(
                    account_id="a" * 32,
                    zone_tags=[ZONE_ID],
                    metric_ids=["does_not_exist"],
                ),
            )
    assert "No metrics enabled" in str(excinfo.value.__cause__)
