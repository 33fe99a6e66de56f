"""Temporal activities for the usage monitor.

Activities perform I/O operations:
- Zones: List the account's active zones over the REST API
- Usage: Run the query engine against the GraphQL Analytics API
- Notify: Deliver the summary to the configured webhook
"""

from .notify import send_usage_notification
from .usage import query_usage
from .zones import discover_account_zones

__all__ = [
    # Zones
    "discover_account_zones",
    # Usage
    "query_usage",
    # Notify
    "send_usage_notification",
]
