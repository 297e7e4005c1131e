"""
Pytest configuration and fixtures for the validator geo package.

This file contains shared fixtures used across all test modules.
Fixtures follow the pattern: factory functions plus canned API payloads.
"""

from typing import Dict, Any, List, Callable

import httpx
import pytest

from validator_geo.core.models import ClientType, ValidatorRecord


# =============================================================================
# RECORD FIXTURES
# =============================================================================

@pytest.fixture
def validator_factory() -> Callable[..., ValidatorRecord]:
    """
    Factory fixture for creating validator records.

    Usage:
        def test_something(validator_factory):
            v = validator_factory(stake=500, lat=50.0, lon=8.0)
    """
    counter = {"n": 0}

    def _create(stake: float = 100.0, lat=None, lon=None, **overrides) -> ValidatorRecord:
        counter["n"] += 1
        fields = {
            "pubkey": f"Vote{counter['n']:04d}",
            "activated_stake": stake,
            "lat": lat,
            "lon": lon,
            "commission": 5.0,
            "version": "2.1.0",
            "client_type": ClientType.SOLANA_LABS,
        }
        fields.update(overrides)
        return ValidatorRecord(**fields)

    return _create


@pytest.fixture
def fake_clock():
    """Manually advanced clock for cache tests."""

    class FakeClock:
        def __init__(self):
            self.now = 1000.0

        def __call__(self) -> float:
            return self.now

        def advance(self, seconds: float) -> None:
            self.now += seconds

    return FakeClock()


# =============================================================================
# API PAYLOAD FIXTURES
# =============================================================================

def _validators_app_entry(i: int, **overrides) -> Dict[str, Any]:
    entry = {
        "vote_account": f"VoteApp{i:04d}",
        "account": f"Ident{i:04d}",
        "name": f"Validator {i}",
        "latitude": "50.1109",
        "longitude": "8.6821",
        "data_center_key": "24940-DE-Frankfurt",
        "software_client": "Agave",
        "jito": False,
        "active_stake": str(1000 * 10**9),
        "commission": 5,
        "skipped_slot_percent": "1.5",
        "software_version": "2.1.5",
        "delinquent": False,
        "epoch_credits": 123456,
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def validators_app_entry() -> Callable[..., Dict[str, Any]]:
    """Factory for single validators.app entries."""
    return _validators_app_entry


@pytest.fixture
def validators_app_payload() -> List[Dict[str, Any]]:
    """60 validators.app entries, enough to clear the primary minimum."""
    payload = [_validators_app_entry(i) for i in range(60)]
    payload[0].update({"software_client": "Firedancer", "jito": True})
    payload[1].update({"software_client": "JitoLabs", "jito": True})
    payload[2].update({"latitude": "0", "longitude": "0"})
    payload[3].update({"latitude": "n/a", "active_stake": "garbage"})
    payload[4].update({"delinquent": True})
    return payload


@pytest.fixture
def vote_accounts_result() -> Dict[str, Any]:
    """getVoteAccounts result with two current and one delinquent account."""
    return {
        "current": [
            {"votePubkey": "VoteA", "nodePubkey": "NodeA", "activatedStake": 5 * 10**15,
             "commission": 7, "lastVote": 300000000},
            {"votePubkey": "VoteB", "nodePubkey": "NodeB", "activatedStake": 2 * 10**15,
             "commission": 0, "lastVote": 300000001},
        ],
        "delinquent": [
            {"votePubkey": "VoteC", "nodePubkey": "NodeC", "activatedStake": 10**15,
             "commission": 100, "lastVote": 299000000},
        ],
    }


@pytest.fixture
def cluster_nodes_result() -> List[Dict[str, Any]]:
    """getClusterNodes result: NodeA on Hetzner Helsinki, NodeB unknown IP, NodeC absent."""
    return [
        {"pubkey": "NodeA", "gossip": "135.181.10.20:8001", "version": "2.1.5-jito"},
        {"pubkey": "NodeB", "gossip": "203.0.113.7:8001", "version": "2.1.5"},
        {"pubkey": "NodeX", "gossip": None, "version": None},
    ]


# =============================================================================
# HTTP MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_client_factory():
    """
    Build an httpx.AsyncClient backed by a MockTransport.

    Usage:
        client = mock_client_factory(handler)
        # handler(request) -> httpx.Response
    """
    def _create(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _create
