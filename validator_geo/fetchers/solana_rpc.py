"""
Solana RPC Fetcher - Fallback validator source.

Uses getVoteAccounts for stake / commission / delinquency and
getClusterNodes for each node's gossip IP and version. No client flags and
no coordinates: location comes from the IP prefix table or a hashed
pseudo-location.
"""

from typing import Dict, Any, List, Optional

import httpx

from ..analysis.client_classifier import classify_version
from ..analysis.geo_resolver import resolve
from ..config.settings import SOURCE_CONFIG
from ..core.models import SourceKind, SourceResult, ValidatorRecord
from ..utils.logging import get_logger
from .validators_app import DEFAULT_COMMISSION, _to_float, lamports_to_sol

log = get_logger(__name__)


async def _post_rpc(
    client: httpx.AsyncClient,
    url: str,
    payload: Dict[str, Any],
    timeout: float,
) -> Optional[Any]:
    """POST one JSON-RPC request, None on any failure or missing result."""
    try:
        response = await client.post(url, json=payload, timeout=timeout)
        if response.status_code >= 400:
            log.warning("RPC %s via %s -> HTTP %s", payload["method"], url, response.status_code)
            return None
        data = response.json()
    except httpx.HTTPError as e:
        log.warning("RPC %s via %s failed: %s", payload["method"], url, e)
        return None
    except ValueError:
        log.warning("RPC %s via %s returned invalid JSON", payload["method"], url)
        return None

    if not isinstance(data, dict):
        return None
    if "error" in data:
        error = data["error"]
        message = error.get("message", "Unknown error") if isinstance(error, dict) else error
        log.warning("RPC %s error: %s", payload["method"], message)
    return data.get("result")


async def rpc_call(
    client: httpx.AsyncClient,
    method: str,
    params: Optional[List[Any]] = None,
    timeout: float = 30.0,
    proxy_url: Optional[str] = None,
    endpoints: Optional[List[str]] = None,
) -> Optional[Any]:
    """
    Call a Solana JSON-RPC method.

    Tries the RPC proxy first, then each direct endpoint in order. The first
    non-null result wins.

    Args:
        client: Shared async HTTP client
        method: RPC method name
        params: RPC params
        timeout: Per-request timeout in seconds for direct endpoints
        proxy_url: RPC proxy URL (defaults to settings, "" disables it)
        endpoints: Direct RPC endpoints (defaults to settings)

    Returns:
        The RPC result, or None if every endpoint failed
    """
    payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params or []}
    proxy_url = SOURCE_CONFIG["rpc_proxy_url"] if proxy_url is None else proxy_url
    endpoints = SOURCE_CONFIG["rpc_endpoints"] if endpoints is None else endpoints

    if proxy_url:
        result = await _post_rpc(
            client, proxy_url, payload, timeout + SOURCE_CONFIG["proxy_extra_timeout"]
        )
        if result is not None:
            return result

    for endpoint in endpoints:
        result = await _post_rpc(client, endpoint, payload, timeout)
        if result is not None:
            return result
    return None


def build_node_map(cluster_nodes: Any) -> Dict[str, Dict[str, str]]:
    """
    Map node pubkey -> {ip, version} from getClusterNodes.

    Nodes without a usable gossip address are left out.
    """
    node_map: Dict[str, Dict[str, str]] = {}
    if not isinstance(cluster_nodes, list):
        return node_map

    for node in cluster_nodes:
        if not isinstance(node, dict) or not node.get("pubkey"):
            continue
        ip = str(node.get("gossip") or "").split(":")[0]
        version = node.get("version")
        if not isinstance(version, str) or not version:
            version = "unknown"
        if ip and ip != "0.0.0.0":
            node_map[node["pubkey"]] = {"ip": ip, "version": version}
    return node_map


def parse_vote_accounts(
    vote_result: Dict[str, Any],
    node_map: Dict[str, Dict[str, str]],
) -> List[ValidatorRecord]:
    """Merge vote accounts with cluster node info into ValidatorRecords."""
    current = vote_result.get("current") or []
    delinquent = vote_result.get("delinquent") or []
    log.info("Vote: %d current + %d delinquent", len(current), len(delinquent))

    all_votes = [(v, False) for v in current] + [(v, True) for v in delinquent]

    validators = []
    for i, (vote, is_delinquent) in enumerate(all_votes):
        if not isinstance(vote, dict):
            continue
        node_pubkey = str(vote.get("nodePubkey") or "")
        node_info = node_map.get(node_pubkey, {})
        version = node_info.get("version", "unknown")

        geo = resolve(
            {"ip": node_info.get("ip", ""), "nodePubkey": node_pubkey},
            SourceKind.SOLANA_RPC,
            i,
        )

        validators.append(ValidatorRecord(
            pubkey=str(vote.get("votePubkey") or ""),
            lat=geo.lat,
            lon=geo.lon,
            city=geo.city,
            country=geo.country,
            datacenter=geo.datacenter,
            approximate_location=geo.approximate,
            activated_stake=lamports_to_sol(vote.get("activatedStake")),
            commission=min(max(_to_float(vote.get("commission"), DEFAULT_COMMISSION), 0.0), 100.0),
            last_vote=int(_to_float(vote.get("lastVote"))),
            delinquent=is_delinquent,
            version=version,
            client_type=classify_version(version),
        ))

    return validators


async def fetch_from_rpc(
    client: httpx.AsyncClient,
    proxy_url: Optional[str] = None,
    endpoints: Optional[List[str]] = None,
) -> SourceResult:
    """
    Fetch validators from Solana JSON-RPC.

    Args:
        client: Shared async HTTP client
        proxy_url: RPC proxy URL override
        endpoints: Direct RPC endpoint override

    Returns:
        SourceResult - EMPTY when getVoteAccounts is unavailable
    """
    source = SourceKind.SOLANA_RPC
    log.info("RPC fallback start")

    vote_result = await rpc_call(
        client,
        "getVoteAccounts",
        [{"commitment": "confirmed"}],
        timeout=SOURCE_CONFIG["vote_accounts_timeout"],
        proxy_url=proxy_url,
        endpoints=endpoints,
    )
    if not isinstance(vote_result, dict):
        log.error("getVoteAccounts failed")
        return SourceResult.empty(source, "getVoteAccounts failed")

    # Missing node info only degrades location and version
    cluster_nodes = await rpc_call(
        client,
        "getClusterNodes",
        timeout=SOURCE_CONFIG["cluster_nodes_timeout"],
        proxy_url=proxy_url,
        endpoints=endpoints,
    )
    if cluster_nodes is None:
        log.warning("getClusterNodes failed, locating validators by pubkey hash only")

    validators = parse_vote_accounts(vote_result, build_node_map(cluster_nodes))
    if not validators:
        return SourceResult.empty(source, "no vote accounts")

    log.info("RPC fallback: %d validators", len(validators))
    return SourceResult.ok(source, validators)
