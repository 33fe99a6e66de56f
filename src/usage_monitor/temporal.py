"""Temporal client and worker utilities.

This module provides properly configured Temporal client and worker
creation using the pydantic data converter, so activity and workflow
models round-trip as models rather than plain dicts.

Usage:
    from usage_monitor.temporal import create_client, create_worker

    client = await create_client("localhost:7233")
    worker = create_worker(client, "usage-monitor-task-queue")
"""

from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner

from usage_monitor.activities import (
    discover_account_zones,
    query_usage,
    send_usage_notification,
)
from usage_monitor.workflows import UsageMonitorWorkflow

# Default task queue for usage monitor workflows
USAGE_MONITOR_TASK_QUEUE = "usage-monitor-task-queue"

# All workflows registered with the usage monitor worker
USAGE_MONITOR_WORKFLOWS = [
    UsageMonitorWorkflow,
]

# All activities registered with the usage monitor worker
USAGE_MONITOR_ACTIVITIES = [
    discover_account_zones,
    query_usage,
    send_usage_notification,
]


async def create_client(
    target_host: str = "localhost:7233",
    namespace: str = "default",
) -> Client:
    """Create a Temporal client with the pydantic data converter.

    Args:
        target_host: Temporal server address (default: localhost:7233)
        namespace: Temporal namespace (default: default)

    Returns:
        Configured Temporal client
    """
    return await Client.connect(
        target_host,
        namespace=namespace,
        data_converter=pydantic_data_converter,
    )


def create_worker(
    client: Client,
    task_queue: str = USAGE_MONITOR_TASK_QUEUE,
) -> Worker:
    """Create a Temporal worker with all usage monitor workflows and activities.

    Args:
        client: Temporal client (must use the pydantic data converter)
        task_queue: Task queue name (default: usage-monitor-task-queue)

    Returns:
        Configured Temporal worker
    """
    return Worker(
        client,
        task_queue=task_queue,
        workflows=USAGE_MONITOR_WORKFLOWS,
        activities=USAGE_MONITOR_ACTIVITIES,
        workflow_runner=SandboxedWorkflowRunner(
            restrictions=SandboxedWorkflowRunner().restrictions.with_passthrough_modules(
                "usage_monitor",
            )
        ),
    )
