"""Temporal workflows for the usage monitor.

Workflow Architecture:
- UsageMonitorWorkflow: discover zones, query usage, categorize, notify

Each workflow takes a single Pydantic model as input for type safety and clarity.
"""

from usage_monitor.models import UsageMonitorInput, UsageMonitorResult
from usage_monitor.workflows.monitor import UsageMonitorWorkflow

__all__ = [
    # Workflows
    "UsageMonitorWorkflow",
    # Workflow Inputs
    "UsageMonitorInput",
    "UsageMonitorResult",
]
