"""
Validator analysis - pure functions over validator records.

- geo_resolver: approximate location, dedup offset
- client_classifier: software client -> ClientType
- clustering: 2-degree grid clusters
- network_risk: Nakamoto coefficient, stake concentration, datacenter ranking
"""

from .geo_resolver import (
    resolve,
    add_jitter,
    parse_data_center_key,
    ip_to_datacenter,
    pubkey_hash,
)

from .client_classifier import classify, classify_version

from .clustering import cluster_validators, grid_key

from .network_risk import (
    compute_nakamoto,
    compute_top10_stake_percent,
    get_datacenter_concentration,
    compute_network_risk,
    get_validator_stats,
    stats_to_dict,
    gini,
    calculate_hhi,
)

__all__ = [
    # Geo
    "resolve",
    "add_jitter",
    "parse_data_center_key",
    "ip_to_datacenter",
    "pubkey_hash",
    # Clients
    "classify",
    "classify_version",
    # Clustering
    "cluster_validators",
    "grid_key",
    # Risk
    "compute_nakamoto",
    "compute_top10_stake_percent",
    "get_datacenter_concentration",
    "compute_network_risk",
    "get_validator_stats",
    "stats_to_dict",
    "gini",
    "calculate_hhi",
]
