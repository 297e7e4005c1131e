"""
Spatial Clustering Engine - Group validators into 2-degree grid cells.

2 degrees merges validators of one metro / datacenter region while keeping
distinct regions apart at global map scale.
"""

import math
from typing import Dict, List, Optional, Tuple

from ..core.models import Cluster, ValidatorRecord

GRID_DEGREES = 2


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def grid_key(lat: float, lon: float) -> Tuple[int, int]:
    """Grid cell of a coordinate: (round(lat/2)*2, round(lon/2)*2)."""
    return (
        _round_half_up(lat / GRID_DEGREES) * GRID_DEGREES,
        _round_half_up(lon / GRID_DEGREES) * GRID_DEGREES,
    )


def mode(values: List[str]) -> Optional[str]:
    """
    Most frequent non-empty value.

    Ties go to the value encountered first, not alphabetically.
    """
    counts: Dict[str, int] = {}
    for value in values:
        if value:
            counts[value] = counts.get(value, 0) + 1

    best = None
    best_count = 0
    for value, count in counts.items():
        if count > best_count:
            best, best_count = value, count
    return best


def cluster_validators(records: List[ValidatorRecord]) -> List[Cluster]:
    """
    Cluster geo-resolved validators by grid cell.

    Records without coordinates are ignored.

    Args:
        records: Validator records (any mix of resolved and unresolved)

    Returns:
        Clusters sorted by total stake, largest first
    """
    geo_records = [r for r in records if r.is_geo_resolved]

    buckets: Dict[Tuple[int, int], List[ValidatorRecord]] = {}
    for record in geo_records:
        buckets.setdefault(grid_key(record.lat, record.lon), []).append(record)

    total_stake_global = sum(r.activated_stake for r in geo_records)

    clusters = []
    for (lat_key, lon_key), members in buckets.items():
        total_stake = sum(m.activated_stake for m in members)
        clusters.append(Cluster(
            id=f"{lat_key},{lon_key}",
            lat=sum(m.lat for m in members) / len(members),
            lon=sum(m.lon for m in members) / len(members),
            count=len(members),
            total_stake=total_stake,
            members=members,
            country=mode([m.country for m in members]) or "Unknown",
            datacenter=mode([m.datacenter or "" for m in members]),
            stake_concentration=total_stake / total_stake_global if total_stake_global > 0 else 0.0,
        ))

    clusters.sort(key=lambda c: c.total_stake, reverse=True)
    return clusters
