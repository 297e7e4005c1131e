"""
Data model for validator geo snapshots.

Everything here is rebuilt from scratch on every refresh cycle. The only
identity that survives across snapshots is a validator's pubkey.
"""

from typing import Dict, Any, List, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ClientType(Enum):
    JITO = "jito"
    FIREDANCER = "firedancer"
    SOLANA_LABS = "solana-labs"
    UNKNOWN = "unknown"


class SourceKind(Enum):
    VALIDATORS_APP = "validators_app"
    SOLANA_RPC = "solana_rpc"


class FetchStatus(Enum):
    OK = "ok"
    EMPTY = "empty"


class RiskLevel(Enum):
    HIGH = "high"
    WARNING = "warning"
    SAFE = "safe"


@dataclass
class ValidatorRecord:
    """A single validator after source reconciliation and enrichment."""
    pubkey: str
    activated_stake: float = 0.0      # SOL
    commission: float = 0.0           # percent, 0-100
    delinquent: bool = False
    version: str = "unknown"
    client_type: ClientType = ClientType.UNKNOWN
    skip_rate: float = 0.0            # percent
    apy: float = 0.0                  # percent, 0 = unknown
    city: str = ""
    country: str = ""
    name: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    datacenter: Optional[str] = None
    last_vote: int = 0
    approximate_location: bool = False

    @property
    def is_geo_resolved(self) -> bool:
        return self.lat is not None and self.lon is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pubkey": self.pubkey,
            "name": self.name,
            "lat": self.lat,
            "lon": self.lon,
            "city": self.city,
            "country": self.country,
            "datacenter": self.datacenter,
            "activatedStake": self.activated_stake,
            "commission": self.commission,
            "lastVote": self.last_vote,
            "delinquent": self.delinquent,
            "version": self.version,
            "clientType": self.client_type.value,
            "skipRate": self.skip_rate,
            "apy": self.apy,
            "approximateLocation": self.approximate_location,
        }


@dataclass
class Cluster:
    """Validators sharing one 2-degree grid cell."""
    id: str
    lat: float
    lon: float
    count: int
    total_stake: float
    members: List[ValidatorRecord]
    country: str
    stake_concentration: float
    datacenter: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "lat": self.lat,
            "lon": self.lon,
            "count": self.count,
            "totalStake": self.total_stake,
            "validators": [v.to_dict() for v in self.members],
            "datacenter": self.datacenter,
            "country": self.country,
            "stakeConcentration": self.stake_concentration,
        }


@dataclass(frozen=True)
class GeoResolution:
    """Approximate physical location for one raw validator record."""
    city: str = ""
    country: str = ""
    lat: Optional[float] = None
    lon: Optional[float] = None
    datacenter: Optional[str] = None
    approximate: bool = False

    @property
    def resolved(self) -> bool:
        return self.lat is not None and self.lon is not None


@dataclass
class DatacenterConcentration:
    """One entry of the datacenter concentration ranking."""
    datacenter: str
    country: str
    count: int
    stake_percent: float
    risk_level: RiskLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dc": self.datacenter,
            "country": self.country,
            "count": self.count,
            "stakePercent": self.stake_percent,
            "riskLevel": self.risk_level.value,
        }


@dataclass
class NetworkRiskStats:
    """Network-wide centralization metrics derived from one snapshot."""
    nakamoto_coefficient: int = 0
    top10_stake_percent: float = 0.0
    datacenter_concentration: List[DatacenterConcentration] = field(default_factory=list)
    stake_gini: float = 0.0
    stake_hhi: float = 0.0


@dataclass
class SourceResult:
    """
    Tagged result of one source attempt.

    OK carries the parsed records; EMPTY means the source was unavailable,
    returned too little data, or could not be parsed.
    """
    status: FetchStatus
    source: SourceKind
    records: List[ValidatorRecord] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def ok(cls, source: SourceKind, records: List[ValidatorRecord]) -> "SourceResult":
        return cls(status=FetchStatus.OK, source=source, records=records)

    @classmethod
    def empty(cls, source: SourceKind, error: Optional[str] = None) -> "SourceResult":
        return cls(status=FetchStatus.EMPTY, source=source, error=error)

    @property
    def is_ok(self) -> bool:
        return self.status == FetchStatus.OK and bool(self.records)


@dataclass(frozen=True)
class ValidatorSnapshot:
    """Result of one refresh cycle. Replaced wholesale by the next one."""
    validators: Tuple[ValidatorRecord, ...] = ()
    clusters: Tuple[Cluster, ...] = ()
    source: Optional[SourceKind] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return not self.validators

    @property
    def geo_validators(self) -> List[ValidatorRecord]:
        return [v for v in self.validators if v.is_geo_resolved]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validators": [v.to_dict() for v in self.validators],
            "clusters": [c.to_dict() for c in self.clusters],
            "source": self.source.value if self.source else None,
            "createdAt": self.created_at.isoformat(),
        }
