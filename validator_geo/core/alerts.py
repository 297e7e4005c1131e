"""
Alert System - Check network risk metrics against thresholds.

Only breaches produce alerts (no record is kept for passing metrics).
"""

from typing import Dict, Any, List, Optional
from datetime import datetime, timezone

from ..thresholds import (
    ALERT_THRESHOLDS,
    DATACENTER_ALERT_SEVERITY,
    DATACENTER_RISK_THRESHOLDS,
)
from ..utils.logging import get_logger
from .models import NetworkRiskStats

log = get_logger(__name__)


# Operator mapping for threshold comparisons
OPERATORS = {
    '<': lambda v, t: v < t,
    '>': lambda v, t: v > t,
    '<=': lambda v, t: v <= t,
    '>=': lambda v, t: v >= t,
    '=': lambda v, t: v == t,
}

SEVERITY_ORDER = {"critical": 1, "warning": 2, "info": 3}


def check_threshold(value: float, operator: str, threshold: float) -> bool:
    """
    Check if a value breaches a threshold.

    Args:
        value: Metric value
        operator: Comparison operator ('<', '>', '<=', '>=', '=')
        threshold: Threshold value

    Returns:
        True if threshold is breached
    """
    if operator not in OPERATORS:
        return False
    return OPERATORS[operator](value, threshold)


def _build_alert(
    metric_name: str,
    value: float,
    threshold_value: float,
    operator: str,
    severity: str,
    subject: Optional[str] = None,
) -> Dict[str, Any]:
    message = metric_name
    if subject:
        message += f" ({subject})"
    message += f": {value:.4f} {operator} {threshold_value} [{severity}]"

    return {
        "metric_name": metric_name,
        "value": value,
        "threshold_value": threshold_value,
        "operator": operator,
        "severity": severity,
        "subject": subject,
        "message": message,
        "triggered_at": datetime.now(timezone.utc).isoformat(),
    }


def check_metric_against_thresholds(
    metric_name: str,
    value: float,
    thresholds: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """
    Check a single metric against every threshold defined for it.

    Only the most severe breached threshold is reported, so a Nakamoto
    coefficient of 5 raises one critical alert rather than critical plus
    warning.

    Returns:
        List with at most one triggered alert
    """
    thresholds = ALERT_THRESHOLDS if thresholds is None else thresholds
    applicable = sorted(
        (t for t in thresholds if t["metric_name"] == metric_name),
        key=lambda t: SEVERITY_ORDER.get(t["severity"], 99),
    )

    for threshold in applicable:
        if check_threshold(value, threshold["operator"], float(threshold["threshold_value"])):
            return [_build_alert(
                metric_name,
                value,
                float(threshold["threshold_value"]),
                threshold["operator"],
                threshold["severity"],
            )]
    return []


def check_network_risk_alerts(
    stats: NetworkRiskStats,
    thresholds: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """
    Check a snapshot's risk metrics for threshold breaches.

    An empty network (Nakamoto 0) produces no alerts: there is nothing to
    measure, and consumers render that as "no data".

    Returns:
        Triggered alerts, most severe first
    """
    if stats.nakamoto_coefficient == 0:
        return []

    alerts = []
    alerts.extend(check_metric_against_thresholds(
        "nakamoto_coefficient", float(stats.nakamoto_coefficient), thresholds
    ))
    if stats.top10_stake_percent > 0:
        alerts.extend(check_metric_against_thresholds(
            "top10_stake_percent", stats.top10_stake_percent, thresholds
        ))

    for entry in stats.datacenter_concentration:
        severity = DATACENTER_ALERT_SEVERITY.get(entry.risk_level)
        if severity is None:
            continue
        alerts.append(_build_alert(
            "datacenter_stake_percent",
            entry.stake_percent,
            DATACENTER_RISK_THRESHOLDS[entry.risk_level]["min_stake_pct"],
            ">",
            severity,
            subject=f"{entry.datacenter}, {entry.count} validators",
        ))

    alerts.sort(key=lambda a: SEVERITY_ORDER.get(a["severity"], 99))
    if alerts:
        log.warning("%d network risk alerts triggered", len(alerts))
    return alerts
