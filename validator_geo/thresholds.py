"""
Network Centralization Thresholds and Justifications.

Policy constants consumed by the risk metrics engine, the alert checker and
the rendering layer. None of these are computed.

Each threshold includes:
- value: The numeric threshold
- justification: Why this threshold was chosen
"""

from .core.models import RiskLevel

# =============================================================================
# CONSENSUS SAFETY
# =============================================================================

# Share of stake an adversary needs to halt Tower BFT consensus
CONSENSUS_SAFETY_FRACTION = 1 / 3

TOP_N_STAKE = 10

# =============================================================================
# DATACENTER CONCENTRATION
# =============================================================================

# Smaller groupings are not statistically meaningful
MIN_CLUSTER_SIZE = 3
MAX_DATACENTER_ENTRIES = 20

DATACENTER_RISK_THRESHOLDS = {
    RiskLevel.HIGH: {
        "min_stake_pct": 10.0,
        "label": "High Risk",
        "color": "#ff4444",
        "justification": "A single region holding more than a tenth of stake can take "
                        "a large bite out of the 33% halting threshold through one "
                        "provider outage or regulatory action.",
    },
    RiskLevel.WARNING: {
        "min_stake_pct": 3.0,
        "label": "Warning",
        "color": "#ffaa00",
        "justification": "3-10% is material but would need several correlated regional "
                        "failures to threaten liveness.",
    },
    RiskLevel.SAFE: {
        "min_stake_pct": 0.0,
        "label": "Safe",
        "color": "#14f195",
        "justification": "At or below 3% a regional failure stays within normal "
                        "delinquency noise.",
    },
}


def classify_concentration(stake_percent: float) -> RiskLevel:
    """
    Classify a stake share (in percent) against the datacenter thresholds.

    >10% is HIGH, >3% up to 10% is WARNING, 3% or less is SAFE.
    """
    if stake_percent > DATACENTER_RISK_THRESHOLDS[RiskLevel.HIGH]["min_stake_pct"]:
        return RiskLevel.HIGH
    if stake_percent > DATACENTER_RISK_THRESHOLDS[RiskLevel.WARNING]["min_stake_pct"]:
        return RiskLevel.WARNING
    return RiskLevel.SAFE


# =============================================================================
# ALERT THRESHOLDS
# =============================================================================

ALERT_THRESHOLDS = [
    {
        "metric_name": "nakamoto_coefficient",
        "operator": "<",
        "threshold_value": 20,
        "severity": "warning",
        "justification": "Fewer than 20 entities able to halt the chain is the point where "
                        "public dashboards start flagging Solana as centralizing.",
    },
    {
        "metric_name": "nakamoto_coefficient",
        "operator": "<",
        "threshold_value": 10,
        "severity": "critical",
        "justification": "Single-digit Nakamoto coefficient means a handful of operators "
                        "can collude to halt consensus.",
    },
    {
        "metric_name": "top10_stake_percent",
        "operator": ">",
        "threshold_value": 33.3,
        "severity": "critical",
        "justification": "Top 10 validators alone exceeding the halting threshold.",
    },
    {
        "metric_name": "top10_stake_percent",
        "operator": ">",
        "threshold_value": 25.0,
        "severity": "warning",
        "justification": "Top 10 validators within reach of the halting threshold.",
    },
]

# Datacenter entries map onto alert severities directly
DATACENTER_ALERT_SEVERITY = {
    RiskLevel.HIGH: "critical",
    RiskLevel.WARNING: "warning",
}
