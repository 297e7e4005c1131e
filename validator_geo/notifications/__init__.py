"""
Notification modules for alerting.

Supports:
- Slack
"""

from .slack import (
    format_single_alert,
    format_batch_digest,
    send_slack_alert,
    send_slack_batch,
    notify_alerts,
)

__all__ = [
    "format_single_alert",
    "format_batch_digest",
    "send_slack_alert",
    "send_slack_batch",
    "notify_alerts",
]
