"""
Snapshot Engine - Fetch, enrich, cluster and cache validator snapshots.

Pipeline per refresh:
    source chain -> records (geo resolved + client classified while parsing)
    -> geo-resolved subset -> clusters -> immutable snapshot -> cache
    -> risk alert check (optionally delivered to an alert sink such as Slack)

Concurrent callers that arrive during a cache miss share one in-flight
refresh instead of each hitting the upstream APIs.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..analysis.clustering import cluster_validators
from ..analysis.network_risk import compute_network_risk, get_validator_stats, stats_to_dict
from ..config.settings import ALERT_CONFIG, CACHE_CONFIG
from ..fetchers.adapter import fetch_validators_with_source
from ..notifications.slack import notify_alerts
from ..utils.logging import get_logger
from .alerts import check_network_risk_alerts
from .cache import SnapshotCache
from .models import (
    ClientType,
    NetworkRiskStats,
    SourceKind,
    SourceResult,
    ValidatorRecord,
    ValidatorSnapshot,
)

log = get_logger(__name__)

SourceFetcher = Callable[[], Awaitable[SourceResult]]
AlertSink = Callable[[List[Dict[str, Any]]], Any]


def build_snapshot(
    validators: List[ValidatorRecord],
    source: Optional[SourceKind] = None,
) -> ValidatorSnapshot:
    """
    Build a snapshot from already-enriched validator records.

    Args:
        validators: Full validator set (resolved and unresolved)
        source: Source that produced the records

    Returns:
        ValidatorSnapshot; clusters only cover geo-resolved validators
    """
    clusters = cluster_validators(validators)
    return ValidatorSnapshot(
        validators=tuple(validators),
        clusters=tuple(clusters),
        source=source,
    )


def _log_summary(snapshot: ValidatorSnapshot) -> None:
    geo = snapshot.geo_validators
    active = sum(1 for v in geo if not v.delinquent)
    countries = len({v.country for v in geo if v.country})
    jito = sum(1 for v in geo if v.client_type == ClientType.JITO)
    firedancer = sum(1 for v in geo if v.client_type == ClientType.FIREDANCER)
    total_stake = sum(v.activated_stake for v in geo)

    log.info(
        "DONE: %d validators, %d with geo (%d active, %d delinquent) | %d clusters | "
        "%d countries | Jito: %d, FD: %d | %.1fM SOL",
        len(snapshot.validators), len(geo), active, len(geo) - active,
        len(snapshot.clusters), countries, jito, firedancer, total_stake / 1e6,
    )


class ValidatorGeoEngine:
    """
    Produces validator snapshots on demand, backed by a SnapshotCache.

    Usage:
        engine = ValidatorGeoEngine(SnapshotCache(ttl_seconds=300))
        snapshot = await engine.get_snapshot()
        stats = engine.get_stats(snapshot)
    """

    def __init__(
        self,
        cache: SnapshotCache,
        fetcher: Optional[SourceFetcher] = None,
        alert_sink: Optional[AlertSink] = None,
    ):
        self.cache = cache
        self._fetcher = fetcher or fetch_validators_with_source
        self._alert_sink = alert_sink
        self._inflight: Optional[asyncio.Task] = None
        self.last_alerts: List[Dict[str, Any]] = []

    async def get_snapshot(self) -> ValidatorSnapshot:
        """
        Return the cached snapshot, refreshing it if stale.

        Never raises for upstream failures: total data unavailability yields
        an empty snapshot, which is not cached so the next call retries.
        """
        cached = self.cache.get()
        if cached is not None:
            log.info("Cache hit (%d validators)", len(cached.validators))
            return cached

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())
            self._inflight.add_done_callback(self._clear_inflight)
        else:
            log.info("Joining in-flight refresh")

        # shield: one caller being cancelled must not cancel the shared refresh
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _refresh(self) -> ValidatorSnapshot:
        log.info("Starting validator data fetch...")
        result = await self._fetcher()

        if not result.is_ok:
            log.error("All data sources failed, returning empty snapshot")
            return ValidatorSnapshot(source=None)

        snapshot = build_snapshot(result.records, result.source)
        self.cache.set(snapshot)
        _log_summary(snapshot)
        await self._check_alerts(snapshot)
        return snapshot

    async def _check_alerts(self, snapshot: ValidatorSnapshot) -> None:
        self.last_alerts = check_network_risk_alerts(self.get_network_risk(snapshot))
        if not self.last_alerts or self._alert_sink is None:
            return
        try:
            # Sinks post over blocking HTTP
            await asyncio.to_thread(self._alert_sink, self.last_alerts)
        except Exception:
            # Snapshot is already cached and returned regardless
            log.exception("Alert delivery failed for %d alerts", len(self.last_alerts))

    @staticmethod
    def get_stats(snapshot: ValidatorSnapshot) -> Dict[str, Any]:
        """Dashboard summary statistics for a snapshot."""
        return get_validator_stats(list(snapshot.validators))

    @staticmethod
    def get_stats_payload(snapshot: ValidatorSnapshot) -> Dict[str, Any]:
        """Summary statistics in the camelCase shape the panels consume."""
        return stats_to_dict(get_validator_stats(list(snapshot.validators)))

    @staticmethod
    def get_network_risk(snapshot: ValidatorSnapshot) -> NetworkRiskStats:
        """Centralization metrics for a snapshot."""
        return compute_network_risk(list(snapshot.validators), list(snapshot.clusters))


def create_engine(ttl_seconds: Optional[float] = None) -> ValidatorGeoEngine:
    """
    Engine with a fresh cache using the configured freshness window.

    Alerts are posted to Slack when SLACK_WEBHOOK_URL is configured.
    """
    ttl = CACHE_CONFIG["ttl_seconds"] if ttl_seconds is None else ttl_seconds
    sink = notify_alerts if ALERT_CONFIG.get("slack_webhook") else None
    return ValidatorGeoEngine(SnapshotCache(ttl_seconds=ttl), alert_sink=sink)
