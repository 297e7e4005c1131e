"""
Slack Notification Module - Send network risk alerts to Slack.

Features:
- Immediate send for critical alerts
- Batched digest for warning/info alerts
- Rich formatting with severity colors
"""

from typing import Dict, Any, List, Optional
from datetime import datetime, timezone

import requests

from ..config.settings import ALERT_CONFIG
from ..utils.logging import get_logger

log = get_logger(__name__)

# Severity colors for Slack
SEVERITY_COLORS = {
    "critical": "#FF0000",  # Red
    "warning": "#FFA500",   # Orange
    "info": "#0000FF"       # Blue
}

# Severity emojis
SEVERITY_EMOJIS = {
    "critical": ":rotating_light:",
    "warning": ":warning:",
    "info": ":information_source:"
}

MAX_DIGEST_ALERTS = 10


def format_single_alert(alert: Dict) -> Dict:
    """
    Format a single alert as a Slack attachment.

    Args:
        alert: Alert dict from check_network_risk_alerts

    Returns:
        Slack attachment dict
    """
    severity = alert.get("severity", "info")
    color = SEVERITY_COLORS.get(severity, "#808080")
    emoji = SEVERITY_EMOJIS.get(severity, ":bell:")

    fields = [
        {
            "title": "Metric",
            "value": alert.get("metric_name", "Unknown"),
            "short": True
        },
        {
            "title": "Value",
            "value": f"{alert.get('value', 0):.4f}",
            "short": True
        },
        {
            "title": "Threshold",
            "value": f"{alert.get('operator', '')} {alert.get('threshold_value', 0)}",
            "short": True
        }
    ]

    if alert.get("subject"):
        fields.append({
            "title": "Datacenter",
            "value": alert["subject"],
            "short": True
        })

    return {
        "color": color,
        "title": f"{emoji} {severity.upper()} Alert",
        "text": alert.get("message", "Alert triggered"),
        "fields": fields,
        "footer": "Validator Geo Monitor",
        "ts": int(datetime.now(timezone.utc).timestamp())
    }


def format_batch_digest(alerts: List[Dict]) -> Dict:
    """
    Format multiple alerts as a digest message.

    Args:
        alerts: List of alert dicts

    Returns:
        Slack message payload
    """
    by_severity = {"critical": [], "warning": [], "info": []}
    for alert in alerts:
        severity = alert.get("severity", "info")
        if severity in by_severity:
            by_severity[severity].append(alert)

    summary_parts = []
    for severity, label in (("critical", "Critical"), ("warning", "Warning"), ("info", "Info")):
        if by_severity[severity]:
            summary_parts.append(f"{SEVERITY_EMOJIS[severity]} {len(by_severity[severity])} {label}")

    blocks = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"Network Risk Digest ({len(alerts)} alerts)",
                "emoji": True
            }
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": " | ".join(summary_parts)
            }
        },
        {"type": "divider"}
    ]

    # Slack rejects oversized messages
    for alert in alerts[:MAX_DIGEST_ALERTS]:
        emoji = SEVERITY_EMOJIS.get(alert.get("severity", "info"), ":bell:")
        subject = f" ({alert['subject']})" if alert.get("subject") else ""
        blocks.append({
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": (
                    f"{emoji} *{alert.get('metric_name')}*{subject}\n"
                    f"Value: `{alert.get('value', 0):.4f}` "
                    f"(threshold: {alert.get('operator')} {alert.get('threshold_value')})"
                )
            }
        })

    if len(alerts) > MAX_DIGEST_ALERTS:
        blocks.append({
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": f"_...and {len(alerts) - MAX_DIGEST_ALERTS} more alerts_"
                }
            ]
        })

    return {"blocks": blocks}


def send_slack_message(payload: Dict, webhook_url: Optional[str] = None) -> bool:
    """
    Send a message to a Slack webhook.

    Returns:
        True if successful
    """
    webhook_url = webhook_url or ALERT_CONFIG.get("slack_webhook")
    if not webhook_url:
        log.warning("SLACK_WEBHOOK_URL not configured")
        return False

    try:
        response = requests.post(
            webhook_url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=10
        )
        response.raise_for_status()
        return True
    except requests.exceptions.RequestException as e:
        log.warning("Slack send error: %s", e)
        return False


def send_slack_alert(alert: Dict, webhook_url: Optional[str] = None) -> bool:
    """Send a single alert to Slack immediately."""
    return send_slack_message({"attachments": [format_single_alert(alert)]}, webhook_url)


def send_slack_batch(alerts: List[Dict], webhook_url: Optional[str] = None) -> bool:
    """Send a batch of alerts as a digest to Slack."""
    if not alerts:
        return True
    if len(alerts) == 1:
        return send_slack_alert(alerts[0], webhook_url)
    return send_slack_message(format_batch_digest(alerts), webhook_url)


def notify_alerts(alerts: List[Dict], webhook_url: Optional[str] = None) -> Dict[str, Any]:
    """
    Deliver alerts: critical ones individually, the rest as one digest.

    Returns:
        Dict with processing results
    """
    result = {
        "total_processed": len(alerts),
        "critical_sent": 0,
        "batch_sent": 0,
        "errors": []
    }

    critical_alerts = [a for a in alerts if a.get("severity") == "critical"]
    other_alerts = [a for a in alerts if a.get("severity") != "critical"]

    for alert in critical_alerts:
        if send_slack_alert(alert, webhook_url):
            result["critical_sent"] += 1
        else:
            result["errors"].append(f"Critical alert not sent: {alert.get('message')}")

    if other_alerts:
        if send_slack_batch(other_alerts, webhook_url):
            result["batch_sent"] = len(other_alerts)
        else:
            result["errors"].append(f"Digest of {len(other_alerts)} alerts not sent")

    return result
