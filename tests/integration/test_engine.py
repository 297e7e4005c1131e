"""
Integration tests for the snapshot engine.

Covers cache freshness, sharing of one in-flight refresh between concurrent
callers, non-caching of empty results and the full HTTP -> snapshot path.
"""

import asyncio

import httpx
import pytest

from validator_geo.core.cache import SnapshotCache
from validator_geo.core.engine import ValidatorGeoEngine, build_snapshot, create_engine
from validator_geo.core.models import ClientType, SourceKind, SourceResult
from validator_geo.fetchers.adapter import fetch_validators_with_source


class CountingFetcher:
    """Fetcher stub returning canned results and counting invocations."""

    def __init__(self, results, delay: float = 0.0):
        self.results = list(results)
        self.delay = delay
        self.calls = 0

    async def __call__(self) -> SourceResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


@pytest.fixture
def located_records(validator_factory):
    return [
        validator_factory(stake=1000, lat=50.1, lon=8.6, country="DE", datacenter="24940-DE-Frankfurt")
        for _ in range(4)
    ] + [validator_factory(stake=500)]


class TestBuildSnapshot:

    @pytest.mark.unit
    def test_keeps_full_set_but_clusters_resolved_only(self, located_records):
        snapshot = build_snapshot(located_records, SourceKind.VALIDATORS_APP)

        assert len(snapshot.validators) == 5
        assert len(snapshot.geo_validators) == 4
        assert len(snapshot.clusters) == 1
        assert snapshot.clusters[0].count == 4
        assert snapshot.clusters[0].stake_concentration == pytest.approx(1.0)
        assert snapshot.source == SourceKind.VALIDATORS_APP


class TestEngineCaching:

    @pytest.mark.integration
    def test_cache_hit_does_not_refetch(self, fake_clock, located_records):
        fetcher = CountingFetcher([SourceResult.ok(SourceKind.VALIDATORS_APP, located_records)])
        engine = ValidatorGeoEngine(SnapshotCache(ttl_seconds=300, clock=fake_clock), fetcher)

        async def _main():
            first = await engine.get_snapshot()
            fake_clock.advance(299)
            second = await engine.get_snapshot()
            return first, second

        first, second = asyncio.run(_main())
        assert fetcher.calls == 1
        assert first is second

    @pytest.mark.integration
    def test_refetches_after_ttl(self, fake_clock, located_records):
        fetcher = CountingFetcher([SourceResult.ok(SourceKind.VALIDATORS_APP, located_records)])
        engine = ValidatorGeoEngine(SnapshotCache(ttl_seconds=300, clock=fake_clock), fetcher)

        async def _main():
            first = await engine.get_snapshot()
            fake_clock.advance(301)
            second = await engine.get_snapshot()
            return first, second

        first, second = asyncio.run(_main())
        assert fetcher.calls == 2
        assert first is not second

    @pytest.mark.integration
    @pytest.mark.smoke
    def test_concurrent_callers_share_refresh(self, fake_clock, located_records):
        fetcher = CountingFetcher(
            [SourceResult.ok(SourceKind.VALIDATORS_APP, located_records)], delay=0.05
        )
        engine = ValidatorGeoEngine(SnapshotCache(ttl_seconds=300, clock=fake_clock), fetcher)

        async def _main():
            return await asyncio.gather(*(engine.get_snapshot() for _ in range(5)))

        snapshots = asyncio.run(_main())
        assert fetcher.calls == 1
        assert all(s is snapshots[0] for s in snapshots)

    @pytest.mark.integration
    def test_empty_result_is_not_cached(self, fake_clock, located_records):
        fetcher = CountingFetcher([
            SourceResult.empty(SourceKind.SOLANA_RPC, "down"),
            SourceResult.ok(SourceKind.SOLANA_RPC, located_records),
        ])
        engine = ValidatorGeoEngine(SnapshotCache(ttl_seconds=300, clock=fake_clock), fetcher)

        async def _main():
            first = await engine.get_snapshot()
            second = await engine.get_snapshot()
            return first, second

        first, second = asyncio.run(_main())
        assert first.is_empty
        assert first.source is None
        assert first.clusters == ()
        assert not second.is_empty
        assert fetcher.calls == 2

    @pytest.mark.unit
    def test_create_engine_uses_ttl(self):
        engine = create_engine(ttl_seconds=60)
        assert engine.cache.ttl_seconds == 60


class TestEngineEndToEnd:

    @pytest.mark.integration
    @pytest.mark.smoke
    def test_snapshot_from_validators_app(self, mock_client_factory, validators_app_payload):
        client = mock_client_factory(lambda request: httpx.Response(200, json=validators_app_payload))

        async def fetcher():
            return await fetch_validators_with_source(client)

        engine = ValidatorGeoEngine(SnapshotCache(ttl_seconds=300), fetcher)

        async def _main():
            async with client:
                return await engine.get_snapshot()

        snapshot = asyncio.run(_main())

        assert snapshot.source == SourceKind.VALIDATORS_APP
        assert len(snapshot.validators) == 60
        # Entries 2 (0,0) and 3 (bad latitude) have no coordinates
        assert len(snapshot.geo_validators) == 58
        # Everyone sits around Frankfurt, jitter stays inside one grid cell
        assert len(snapshot.clusters) == 1
        cluster = snapshot.clusters[0]
        assert cluster.count == 58
        assert cluster.country == "DE"
        assert cluster.datacenter == "24940-DE-Frankfurt"

        stats = engine.get_stats(snapshot)
        assert stats["total"] == 60
        assert stats["delinquent"] == 1
        assert stats["client_breakdown"][ClientType.FIREDANCER.value] == 1
        assert stats["client_breakdown"][ClientType.JITO.value] == 1
        assert stats["avg_skip_rate"] == pytest.approx(1.5)

        risk = engine.get_network_risk(snapshot)
        # 58 equal active stakes of 1000 SOL (entry 3 has 0, entry 4 is delinquent)
        assert risk.nakamoto_coefficient == 20
        assert risk.datacenter_concentration[0].stake_percent == pytest.approx(100.0)


class TestEngineAlerts:

    @pytest.mark.integration
    @pytest.mark.scoring
    def test_refresh_delivers_alerts_to_sink(self, fake_clock, located_records):
        delivered = []
        fetcher = CountingFetcher([SourceResult.ok(SourceKind.VALIDATORS_APP, located_records)])
        engine = ValidatorGeoEngine(
            SnapshotCache(ttl_seconds=300, clock=fake_clock), fetcher, alert_sink=delivered.append
        )

        async def _main():
            await engine.get_snapshot()
            # Cache hit: no second check
            await engine.get_snapshot()

        asyncio.run(_main())

        # 5 validators: Nakamoto 2 is critical, one Frankfurt cluster holds all geo stake
        assert len(delivered) == 1
        alerts = delivered[0]
        assert alerts is engine.last_alerts
        metrics = {a["metric_name"] for a in alerts}
        assert metrics == {"nakamoto_coefficient", "datacenter_stake_percent"}
        assert all(a["severity"] == "critical" for a in alerts)

    @pytest.mark.integration
    def test_failing_sink_still_returns_snapshot(self, fake_clock, located_records):
        def broken_sink(alerts):
            raise RuntimeError("webhook down")

        fetcher = CountingFetcher([SourceResult.ok(SourceKind.VALIDATORS_APP, located_records)])
        cache = SnapshotCache(ttl_seconds=300, clock=fake_clock)
        engine = ValidatorGeoEngine(cache, fetcher, alert_sink=broken_sink)

        snapshot = asyncio.run(engine.get_snapshot())

        assert len(snapshot.validators) == 5
        assert cache.get() is snapshot
        assert engine.last_alerts

    @pytest.mark.integration
    def test_no_sink_still_records_alerts(self, fake_clock, located_records):
        fetcher = CountingFetcher([SourceResult.ok(SourceKind.VALIDATORS_APP, located_records)])
        engine = ValidatorGeoEngine(SnapshotCache(ttl_seconds=300, clock=fake_clock), fetcher)

        asyncio.run(engine.get_snapshot())

        assert engine.last_alerts[0]["metric_name"] == "nakamoto_coefficient"

    @pytest.mark.integration
    def test_empty_snapshot_raises_no_alerts(self, fake_clock):
        delivered = []
        fetcher = CountingFetcher([SourceResult.empty(SourceKind.SOLANA_RPC, "down")])
        engine = ValidatorGeoEngine(
            SnapshotCache(ttl_seconds=300, clock=fake_clock), fetcher, alert_sink=delivered.append
        )

        asyncio.run(engine.get_snapshot())

        assert delivered == []
        assert engine.last_alerts == []


class TestStatsPayload:

    @pytest.mark.unit
    def test_camel_case_keys(self, located_records):
        payload = ValidatorGeoEngine.get_stats_payload(build_snapshot(located_records))

        assert set(payload) == {
            "total", "active", "delinquent", "nakamotoCoefficient", "totalStakeSOL",
            "avgCommission", "clientBreakdown", "countryBreakdown", "versionBreakdown",
            "avgSkipRate", "top10StakePercent",
        }
        assert payload["nakamotoCoefficient"] == 2
        assert payload["totalStakeSOL"] == 4500
        assert payload["countryBreakdown"][0] == {"country": "DE", "count": 4, "stakePercent": 88.89}
