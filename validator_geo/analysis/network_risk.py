"""
Risk Metrics Engine - Network centralization metrics.

Computes, from one snapshot:
- Nakamoto coefficient (active stake only)
- Top 10 stake concentration (active stake only)
- Datacenter concentration ranking (all geo-resolved clusters)
- Gini coefficient and HHI of active stake
- Summary statistics for dashboard panels

Delinquent validators are left out of the consensus-safety arithmetic, but
their stake still counts toward the datacenter ranking: it sits on the same
physical infrastructure.
"""

from typing import Dict, Any, List

import numpy as np

from ..core.models import (
    Cluster,
    DatacenterConcentration,
    NetworkRiskStats,
    ValidatorRecord,
)
from ..thresholds import (
    CONSENSUS_SAFETY_FRACTION,
    MAX_DATACENTER_ENTRIES,
    MIN_CLUSTER_SIZE,
    TOP_N_STAKE,
    classify_concentration,
)


def _active_stakes(validators: List[ValidatorRecord]) -> np.ndarray:
    """Active stakes sorted largest first."""
    stakes = np.array(
        [v.activated_stake for v in validators if not v.delinquent],
        dtype=float,
    )
    return np.sort(stakes)[::-1]


def compute_nakamoto(validators: List[ValidatorRecord]) -> int:
    """
    Minimum number of active validators whose stake exceeds 1/3 of active stake.

    Args:
        validators: Full validator set (delinquent ones are skipped)

    Returns:
        Nakamoto coefficient, 0 when there is no active stake
    """
    stakes = _active_stakes(validators)
    total = stakes.sum()
    if total <= 0:
        return 0

    threshold = total * CONSENSUS_SAFETY_FRACTION
    crossed = np.nonzero(np.cumsum(stakes) > threshold)[0]
    if len(crossed) == 0:
        return len(stakes)
    return int(crossed[0]) + 1


def compute_top10_stake_percent(validators: List[ValidatorRecord]) -> float:
    """
    Share of active stake held by the 10 largest active validators.

    Returns:
        Percent rounded to 1 decimal, 0 with fewer than 10 active validators
    """
    stakes = _active_stakes(validators)
    total = stakes.sum()
    if len(stakes) < TOP_N_STAKE or total <= 0:
        return 0.0
    return round(float(stakes[:TOP_N_STAKE].sum() / total * 100), 1)


def gini(amounts) -> float:
    """Gini coefficient of a set of non-negative amounts (0 = perfectly even)."""
    sorted_amounts = np.sort(np.asarray(amounts, dtype=float))
    n = len(sorted_amounts)
    if n == 0 or sorted_amounts.sum() <= 0:
        return 0.0
    index = np.arange(1, n + 1)
    return float((2 * np.sum(index * sorted_amounts)) / (n * np.sum(sorted_amounts)) - (n + 1) / n)


def calculate_hhi(amounts) -> float:
    """
    Herfindahl-Hirschman Index.

    Scale: 0-10000 (10000 = single holder, <1000 = competitive)
    """
    balances = np.asarray(amounts, dtype=float)
    total = balances.sum()
    if len(balances) == 0 or total <= 0:
        return 0.0
    shares = balances / total * 100
    return float(np.sum(shares ** 2))


def get_datacenter_concentration(clusters: List[Cluster]) -> List[DatacenterConcentration]:
    """
    Rank clusters of 3+ validators by stake concentration.

    Args:
        clusters: Clusters of one snapshot

    Returns:
        Up to 20 entries, most concentrated first
    """
    entries = []
    for c in clusters:
        if c.count < MIN_CLUSTER_SIZE:
            continue
        stake_percent = round(c.stake_concentration * 100, 2)
        entries.append(DatacenterConcentration(
            datacenter=c.datacenter or c.country,
            country=c.country,
            count=c.count,
            stake_percent=stake_percent,
            risk_level=classify_concentration(stake_percent),
        ))
    entries.sort(key=lambda e: e.stake_percent, reverse=True)
    return entries[:MAX_DATACENTER_ENTRIES]


def compute_network_risk(
    validators: List[ValidatorRecord],
    clusters: List[Cluster],
) -> NetworkRiskStats:
    """
    All centralization metrics for one snapshot.

    Every metric is computed independently from the inputs; nothing is
    mutated.
    """
    active = _active_stakes(validators)
    return NetworkRiskStats(
        nakamoto_coefficient=compute_nakamoto(validators),
        top10_stake_percent=compute_top10_stake_percent(validators),
        datacenter_concentration=get_datacenter_concentration(clusters),
        stake_gini=gini(active),
        stake_hhi=calculate_hhi(active),
    )


def get_validator_stats(validators: List[ValidatorRecord]) -> Dict[str, Any]:
    """
    Summary statistics for the network status panels.

    Args:
        validators: Full validator set of a snapshot

    Returns:
        Dict with total, active, delinquent, nakamoto, total_stake_sol,
        avg_commission, client_breakdown, country_breakdown,
        version_breakdown, avg_skip_rate, top10_stake_pct
    """
    active = [v for v in validators if not v.delinquent]
    total_stake = sum(v.activated_stake for v in validators)

    client_breakdown: Dict[str, int] = {}
    for v in validators:
        client = v.client_type.value
        client_breakdown[client] = client_breakdown.get(client, 0) + 1

    # Country breakdown - top 10 by validator count
    countries: Dict[str, Dict[str, float]] = {}
    for v in validators:
        entry = countries.setdefault(v.country or "Unknown", {"count": 0, "stake": 0.0})
        entry["count"] += 1
        entry["stake"] += v.activated_stake
    country_breakdown = sorted(
        [
            {
                "country": country,
                "count": int(data["count"]),
                "stake_percent": round(data["stake"] / total_stake * 100, 2) if total_stake > 0 else 0.0,
            }
            for country, data in countries.items()
        ],
        key=lambda e: e["count"],
        reverse=True,
    )[:10]

    # Version breakdown - top 5
    versions: Dict[str, int] = {}
    for v in validators:
        version = v.version or "unknown"
        versions[version] = versions.get(version, 0) + 1
    version_breakdown = sorted(
        [{"version": version, "count": count} for version, count in versions.items()],
        key=lambda e: e["count"],
        reverse=True,
    )[:5]

    avg_commission = (
        round(sum(v.commission for v in active) / len(active), 1) if active else 0.0
    )
    # Zero skip rate means "not reported" for RPC-sourced records
    with_skip = [v.skip_rate for v in active if v.skip_rate > 0]
    avg_skip_rate = round(sum(with_skip) / len(with_skip), 2) if with_skip else 0.0

    return {
        "total": len(validators),
        "active": len(active),
        "delinquent": len(validators) - len(active),
        "nakamoto": compute_nakamoto(validators),
        "total_stake_sol": total_stake,
        "avg_commission": avg_commission,
        "client_breakdown": client_breakdown,
        "country_breakdown": country_breakdown,
        "version_breakdown": version_breakdown,
        "avg_skip_rate": avg_skip_rate,
        "top10_stake_pct": compute_top10_stake_percent(validators),
    }


# Stats key -> name used by the rendering layer
STATS_KEY_MAP = {
    "total": "total",
    "active": "active",
    "delinquent": "delinquent",
    "nakamoto": "nakamotoCoefficient",
    "total_stake_sol": "totalStakeSOL",
    "avg_commission": "avgCommission",
    "client_breakdown": "clientBreakdown",
    "country_breakdown": "countryBreakdown",
    "version_breakdown": "versionBreakdown",
    "avg_skip_rate": "avgSkipRate",
    "top10_stake_pct": "top10StakePercent",
}


def stats_to_dict(stats: Dict[str, Any]) -> Dict[str, Any]:
    """
    camelCase JSON shape of get_validator_stats() output.

    Args:
        stats: Dict returned by get_validator_stats

    Returns:
        Dict keyed as in STATS_KEY_MAP, country entries with stakePercent
    """
    payload = {STATS_KEY_MAP[key]: value for key, value in stats.items() if key in STATS_KEY_MAP}
    payload["countryBreakdown"] = [
        {"country": e["country"], "count": e["count"], "stakePercent": e["stake_percent"]}
        for e in stats.get("country_breakdown", [])
    ]
    payload["versionBreakdown"] = list(stats.get("version_breakdown", []))
    payload["clientBreakdown"] = dict(stats.get("client_breakdown", {}))
    return payload
