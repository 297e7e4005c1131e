"""
Source Adapter - Primary / fallback chain for validator data.

Sources are tried strictly in order, never concurrently, so a struggling
primary API is not hit twice. Each attempt is fail-soft. When every source is
exhausted the result is an empty list: no placeholder validators are ever
made up.
"""

from typing import Awaitable, Callable, List, Optional, Sequence

import httpx

from ..config.settings import SOURCE_CONFIG
from ..core.models import FetchStatus, SourceKind, SourceResult, ValidatorRecord
from ..utils.logging import get_logger
from .solana_rpc import fetch_from_rpc
from .validators_app import fetch_from_validators_app

log = get_logger(__name__)

SourceAttempt = Callable[[httpx.AsyncClient], Awaitable[SourceResult]]

DEFAULT_ATTEMPTS: Sequence[SourceAttempt] = (fetch_from_validators_app, fetch_from_rpc)


def _is_sufficient(result: SourceResult, min_count: int) -> bool:
    # Only the primary has a minimum; a fallback that returns anything is used
    if not result.is_ok:
        return False
    if result.source == SourceKind.VALIDATORS_APP:
        return len(result.records) >= min_count
    return True


async def fetch_validators_with_source(
    client: Optional[httpx.AsyncClient] = None,
    attempts: Optional[Sequence[SourceAttempt]] = None,
    min_count: Optional[int] = None,
) -> SourceResult:
    """
    Walk the source chain and return the first sufficient result.

    Args:
        client: Async HTTP client; a temporary one is created if omitted
        attempts: Ordered source attempts (defaults to validators.app, RPC)
        min_count: Minimum records for the primary to count as available

    Returns:
        The winning SourceResult, or an EMPTY result from the last source
    """
    attempts = DEFAULT_ATTEMPTS if attempts is None else attempts
    min_count = SOURCE_CONFIG["min_primary_validators"] if min_count is None else min_count

    if client is None:
        async with httpx.AsyncClient(headers={"Accept": "application/json"}) as owned_client:
            return await fetch_validators_with_source(owned_client, attempts, min_count)

    last = SourceResult.empty(SourceKind.VALIDATORS_APP, "no sources configured")
    for attempt in attempts:
        try:
            result = await attempt(client)
        except Exception as e:
            # Attempts are expected to be fail-soft; never let one break the chain
            log.exception("Source attempt %s raised", getattr(attempt, "__name__", attempt))
            last = SourceResult.empty(last.source, str(e))
            continue

        if _is_sufficient(result, min_count):
            return result

        if result.status == FetchStatus.OK:
            log.warning(
                "%s returned only %d validators (minimum %d), trying next source",
                result.source.value, len(result.records), min_count,
            )
            last = SourceResult.empty(result.source, f"only {len(result.records)} validators")
        else:
            log.warning("%s unavailable (%s), trying next source", result.source.value, result.error)
            last = result

    log.error("All validator data sources failed")
    return last


async def fetch_validators(
    client: Optional[httpx.AsyncClient] = None,
    attempts: Optional[Sequence[SourceAttempt]] = None,
    min_count: Optional[int] = None,
) -> List[ValidatorRecord]:
    """Fetch validator records from the first available source, [] if none."""
    result = await fetch_validators_with_source(client, attempts, min_count)
    return result.records if result.is_ok else []
