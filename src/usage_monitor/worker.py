"""Usage monitor worker entry point.

Starts a Temporal worker that runs the usage monitor workflow and its
activities. On boot, starts the scheduled monitor workflow (idempotent via a
fixed workflow ID), then enters the polling loop.

Usage:
    usage-monitor-worker
    # or
    python -m usage_monitor.worker

Environment variables (prefix ``USAGE_MONITOR_``):
    API_TOKEN          - Analytics read-only API token (required)
    ACCOUNT_ID         - Account to monitor (required)
    ZONE_TAGS          - Comma-separated zone ids (optional, discovered otherwise)
    WEBHOOK_URL        - Notification webhook (optional)
    TEMPORAL_ADDRESS   - Temporal server address (default: localhost:7233)
    TEMPORAL_NAMESPACE - Temporal namespace (default: default)
    TASK_QUEUE         - Task queue name (default: usage-monitor-task-queue)
    CRON_SCHEDULE      - Monitor schedule (default: every 6 hours)
"""

import asyncio
import logging
import signal

from temporalio.client import Client  # noqa: TC002
from temporalio.common import WorkflowIDConflictPolicy

from usage_monitor.models import MonitorSettings, UsageMonitorInput, get_settings
from usage_monitor.temporal import create_client, create_worker

logger = logging.getLogger(__name__)

# Deterministic workflow ID for idempotent starts
SCHEDULED_WORKFLOW_ID = "usage-monitor-scheduled"


async def _start_scheduled_workflow(client: Client, settings: MonitorSettings) -> None:
    """Start the cron-scheduled monitor workflow.

    Uses WorkflowIDConflictPolicy.USE_EXISTING so this is safe to call on
    every worker boot without duplicating the schedule.
    """
    logger.info(
        "Starting UsageMonitorWorkflow: %s (cron %s)",
        SCHEDULED_WORKFLOW_ID,
        settings.cron_schedule,
    )
    await client.start_workflow(
        "UsageMonitorWorkflow",
        UsageMonitorInput(
            account_id=settings.account_id,
            zone_tags=settings.configured_zone_tags,
            contract=settings.contract,
        ),
        id=SCHEDULED_WORKFLOW_ID,
        task_queue=settings.task_queue,
        cron_schedule=settings.cron_schedule,
        id_conflict_policy=WorkflowIDConflictPolicy.USE_EXISTING,
    )


async def run_worker() -> None:
    """Start the schedule, then run the worker until interrupted."""
    settings = get_settings()

    logger.info(
        "Starting usage monitor worker: address=%s namespace=%s task_queue=%s",
        settings.temporal_address,
        settings.temporal_namespace,
        settings.task_queue,
    )

    client = await create_client(settings.temporal_address, settings.temporal_namespace)

    # Start the schedule before entering the polling loop
    await _start_scheduled_workflow(client, settings)

    worker = create_worker(client, settings.task_queue)
    logger.info("Usage monitor worker polling for tasks")
    await worker.run()


def main() -> None:
    """Entry point for the worker process."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    loop = asyncio.new_event_loop()

    # Graceful shutdown on SIGTERM/SIGINT
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda: loop.stop())

    try:
        loop.run_until_complete(run_worker())
    except KeyboardInterrupt:
        logger.info("Worker interrupted, shutting down")
    finally:
        loop.close()
        logger.info("Worker stopped")


if __name__ == "__main__":
    main()
