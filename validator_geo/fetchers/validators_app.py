"""
validators.app Fetcher - Primary validator source.

Fetched through the same-origin proxy (rate limit on the upstream API is
20 requests / 5 min, the proxy caches for 5 min). Provides everything in one
call: coordinates, data center key, client, Jito flag, stake, commission and
skip rate.
"""

import math
from typing import Dict, Any, List, Optional

import httpx

from ..analysis.client_classifier import classify
from ..analysis.geo_resolver import resolve
from ..config.settings import SOURCE_CONFIG
from ..core.models import ClientType, SourceKind, SourceResult, ValidatorRecord
from ..utils.logging import get_logger

log = get_logger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
DEFAULT_COMMISSION = 10.0


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(parsed) or math.isinf(parsed):
        return default
    return parsed


def lamports_to_sol(value: Any) -> int:
    """Lamports (string or number) to whole SOL, malformed values count as 0."""
    lamports = max(_to_float(value), 0.0)
    return int(math.floor(lamports / LAMPORTS_PER_SOL + 0.5))


def parse_validators_app_record(raw: Dict[str, Any], index: int) -> ValidatorRecord:
    """
    Map one validators.app entry onto a ValidatorRecord.

    Malformed numeric fields fall back to their defaults; a bad record never
    aborts the batch.
    """
    geo = resolve(raw, SourceKind.VALIDATORS_APP, index)
    client_type = classify(raw.get("software_client") or "", bool(raw.get("jito")))

    return ValidatorRecord(
        pubkey=str(raw.get("vote_account") or raw.get("account") or f"unknown-{index}"),
        name=raw.get("name") or None,
        lat=geo.lat,
        lon=geo.lon,
        city=geo.city,
        country=geo.country,
        datacenter=geo.datacenter,
        activated_stake=lamports_to_sol(raw.get("active_stake")),
        commission=min(max(_to_float(raw.get("commission"), DEFAULT_COMMISSION), 0.0), 100.0),
        last_vote=int(_to_float(raw.get("epoch_credits"))),
        delinquent=bool(raw.get("delinquent")),
        version=str(raw.get("software_version") or "unknown"),
        client_type=client_type,
        skip_rate=max(_to_float(raw.get("skipped_slot_percent")), 0.0),
        apy=0.0,  # validators.app does not report APY
    )


def parse_validators_app_response(data: List[Dict[str, Any]]) -> List[ValidatorRecord]:
    """Parse the full validators.app array, logging a mapping summary."""
    validators = []
    for i, raw in enumerate(data):
        if not isinstance(raw, dict):
            log.warning("Skipping non-object validators.app entry at index %d", i)
            continue
        validators.append(parse_validators_app_record(raw, i))

    geo_hit = sum(1 for v in validators if v.is_geo_resolved)
    counts = {ct: 0 for ct in ClientType}
    for v in validators:
        counts[v.client_type] += 1

    log.info(
        "Mapped: %d with geo, %d without | Jito: %d, FD: %d, Agave: %d, Unknown: %d",
        geo_hit,
        len(validators) - geo_hit,
        counts[ClientType.JITO],
        counts[ClientType.FIREDANCER],
        counts[ClientType.SOLANA_LABS],
        counts[ClientType.UNKNOWN],
    )
    return validators


async def fetch_from_validators_app(
    client: httpx.AsyncClient,
    url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> SourceResult:
    """
    Fetch and parse validators from the validators.app proxy.

    Args:
        client: Shared async HTTP client
        url: Proxy URL (defaults to settings)
        timeout: Request timeout in seconds (defaults to settings)

    Returns:
        SourceResult - EMPTY on any network, HTTP or parse failure
    """
    url = url or SOURCE_CONFIG["validators_app_url"]
    timeout = timeout if timeout is not None else SOURCE_CONFIG["primary_timeout"]
    source = SourceKind.VALIDATORS_APP

    log.info("Fetching from validators.app via proxy...")
    try:
        response = await client.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        log.warning("validators.app proxy -> HTTP %s", e.response.status_code)
        return SourceResult.empty(source, f"HTTP {e.response.status_code}")
    except httpx.HTTPError as e:
        log.warning("validators.app fetch failed: %s", e)
        return SourceResult.empty(source, str(e) or type(e).__name__)
    except ValueError as e:
        log.warning("validators.app returned invalid JSON: %s", e)
        return SourceResult.empty(source, "invalid JSON")

    if not isinstance(data, list) or not data:
        log.warning("validators.app returned no validator entries")
        return SourceResult.empty(source, "no entries")

    log.info("validators.app: %d raw validators", len(data))
    return SourceResult.ok(source, parse_validators_app_response(data))
