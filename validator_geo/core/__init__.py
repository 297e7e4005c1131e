"""Core components: data model, snapshot cache, engine, alerts."""

from .models import (
    ClientType,
    SourceKind,
    FetchStatus,
    RiskLevel,
    ValidatorRecord,
    Cluster,
    GeoResolution,
    DatacenterConcentration,
    NetworkRiskStats,
    SourceResult,
    ValidatorSnapshot,
)

from .cache import SnapshotCache

from .engine import ValidatorGeoEngine, build_snapshot, create_engine

from .alerts import (
    check_threshold,
    check_metric_against_thresholds,
    check_network_risk_alerts,
)

__all__ = [
    # Models
    "ClientType",
    "SourceKind",
    "FetchStatus",
    "RiskLevel",
    "ValidatorRecord",
    "Cluster",
    "GeoResolution",
    "DatacenterConcentration",
    "NetworkRiskStats",
    "SourceResult",
    "ValidatorSnapshot",
    # Cache / engine
    "SnapshotCache",
    "ValidatorGeoEngine",
    "build_snapshot",
    "create_engine",
    # Alerts
    "check_threshold",
    "check_metric_against_thresholds",
    "check_network_risk_alerts",
]
