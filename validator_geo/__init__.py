"""
Validator Geo - Solana validator clustering and centralization risk.

Quick Start:
    import asyncio
    from validator_geo import create_engine

    engine = create_engine()
    snapshot = asyncio.run(engine.get_snapshot())
    risk = engine.get_network_risk(snapshot)
    print(f"Nakamoto coefficient: {risk.nakamoto_coefficient}")
"""

__version__ = "1.0.0"

from .core import (
    ClientType,
    Cluster,
    NetworkRiskStats,
    SnapshotCache,
    ValidatorGeoEngine,
    ValidatorRecord,
    ValidatorSnapshot,
    build_snapshot,
    create_engine,
    check_network_risk_alerts,
)

from .fetchers import fetch_validators

from .analysis import (
    cluster_validators,
    compute_nakamoto,
    compute_network_risk,
    get_datacenter_concentration,
    get_validator_stats,
)

__all__ = [
    "__version__",
    # Models
    "ClientType",
    "Cluster",
    "NetworkRiskStats",
    "ValidatorRecord",
    "ValidatorSnapshot",
    # Engine
    "SnapshotCache",
    "ValidatorGeoEngine",
    "build_snapshot",
    "create_engine",
    "fetch_validators",
    # Analysis
    "cluster_validators",
    "compute_nakamoto",
    "compute_network_risk",
    "get_datacenter_concentration",
    "get_validator_stats",
    # Alerts
    "check_network_risk_alerts",
]
