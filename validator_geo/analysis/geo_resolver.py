"""
Geo Resolver - Approximate physical location for validator records.

Two paths, depending on where the record came from:
- validators.app: coordinates come with the record, country and city are
  parsed from the "ASN-CC-City" data center key
- Solana RPC: only a gossip IP is known, matched against a table of
  IP prefixes for well-known hosting providers. Unmatched validators get a
  deterministic pseudo-location hashed from their node pubkey and are
  flagged as approximate.

Collocated validators are spread out with a golden-angle spiral so they do
not stack on the map. The offset stays far below the 2-degree clustering
grid.
"""

import math
from typing import Dict, Any, List, Optional, Tuple

from ..core.models import GeoResolution, SourceKind
from ..utils.logging import get_logger

log = get_logger(__name__)


# =============================================================================
# DATACENTER TABLES
# =============================================================================

# Known datacenter coordinates. Order matters: the pseudo-location hash
# indexes into this table.
DATACENTERS: Dict[str, Dict[str, Any]] = {
    "hetzner-fsn":    {"lat": 50.3155, "lon": 11.3271,  "city": "Falkenstein",    "country": "DE"},
    "hetzner-nbg":    {"lat": 49.4521, "lon": 11.0767,  "city": "Nuremberg",      "country": "DE"},
    "hetzner-hel":    {"lat": 60.1699, "lon": 24.9384,  "city": "Helsinki",       "country": "FI"},
    "hetzner-ash":    {"lat": 39.0438, "lon": -77.4874, "city": "Ashburn",        "country": "US"},
    "equinix-dc":     {"lat": 38.9072, "lon": -77.0369, "city": "Washington DC",  "country": "US"},
    "equinix-ny":     {"lat": 40.7128, "lon": -74.0060, "city": "New York",       "country": "US"},
    "equinix-ch":     {"lat": 41.8781, "lon": -87.6298, "city": "Chicago",        "country": "US"},
    "equinix-am":     {"lat": 52.3676, "lon": 4.9041,   "city": "Amsterdam",      "country": "NL"},
    "equinix-fr":     {"lat": 50.1109, "lon": 8.6821,   "city": "Frankfurt",      "country": "DE"},
    "equinix-sg":     {"lat": 1.3521,  "lon": 103.8198, "city": "Singapore",      "country": "SG"},
    "equinix-tk":     {"lat": 35.6762, "lon": 139.6503, "city": "Tokyo",          "country": "JP"},
    "equinix-ld":     {"lat": 51.5074, "lon": -0.1278,  "city": "London",         "country": "GB"},
    "aws-us-east":    {"lat": 39.0438, "lon": -77.4874, "city": "Ashburn",        "country": "US"},
    "aws-eu":         {"lat": 50.1109, "lon": 8.6821,   "city": "Frankfurt",      "country": "DE"},
    "gcp-us":         {"lat": 41.2619, "lon": -95.8608, "city": "Council Bluffs", "country": "US"},
    "ovh-gra":        {"lat": 50.6292, "lon": 3.0573,   "city": "Gravelines",     "country": "FR"},
    "teraswitch-dal": {"lat": 32.7767, "lon": -96.7970, "city": "Dallas",         "country": "US"},
    "latitude-mia":   {"lat": 25.7617, "lon": -80.1918, "city": "Miami",          "country": "US"},
    "vultr-nj":       {"lat": 40.7128, "lon": -74.0060, "city": "New Jersey",     "country": "US"},
}

DATACENTER_KEYS: List[str] = list(DATACENTERS)

# IP prefix -> datacenter, longest prefix first
IP_PREFIX_MAP: List[Tuple[str, str]] = sorted(
    [
        ("65.21.", "hetzner-fsn"),
        ("65.108.", "hetzner-fsn"),
        ("65.109.", "hetzner-fsn"),
        ("95.216.", "hetzner-fsn"),
        ("95.217.", "hetzner-nbg"),
        ("135.181.", "hetzner-hel"),
        ("148.251.", "hetzner-nbg"),
        ("168.119.", "hetzner-fsn"),
        ("49.12.", "hetzner-fsn"),
        ("49.13.", "hetzner-nbg"),
        ("157.90.", "hetzner-fsn"),
        ("5.161.", "hetzner-ash"),
        ("37.27.", "hetzner-hel"),
        ("51.38.", "ovh-gra"),
        ("51.68.", "ovh-gra"),
        ("51.89.", "ovh-gra"),
        ("139.178.", "equinix-dc"),
        ("145.40.", "equinix-dc"),
        ("141.98.", "teraswitch-dal"),
        ("74.118.", "teraswitch-dal"),
        ("45.32.", "vultr-nj"),
        ("45.76.", "vultr-nj"),
    ],
    key=lambda entry: len(entry[0]),
    reverse=True,
)

_NON_ROUTABLE_PREFIXES = ("127.", "10.", "192.168.")

GOLDEN_ANGLE_DEG = 137.508


# =============================================================================
# PURE HELPERS
# =============================================================================

def add_jitter(lat: float, lon: float, index: int) -> Tuple[float, float]:
    """
    Offset a coordinate along a golden-angle spiral.

    Args:
        lat: Base latitude
        lon: Base longitude
        index: Processing index of the record in its source batch

    Returns:
        (lat, lon) offset by at most ~0.28 degrees
    """
    angle = math.radians(index * GOLDEN_ANGLE_DEG)
    radius = 0.10 + (index % 7) * 0.03
    return lat + radius * math.sin(angle), lon + radius * math.cos(angle)


def pubkey_hash(value: str) -> int:
    """
    32-bit polynomial string hash (h * 31 + c), signed wraparound.

    Stable across runs and processes, unlike the builtin hash().
    """
    h = 0
    for ch in value:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def parse_data_center_key(key: Optional[str]) -> Dict[str, str]:
    """
    Parse a validators.app data center key.

    Format: "ASN-CC-City", e.g. "24940-FI-Helsinki". Cities may contain
    hyphens themselves ("16509-US-Council-Bluffs").

    Returns:
        Dict with country, city, dc (the full key)
    """
    if not isinstance(key, str) or not key:
        return {"country": "", "city": "", "dc": ""}

    parts = key.split("-")
    if len(parts) >= 3:
        return {
            "country": parts[1],
            "city": "-".join(parts[2:]),
            "dc": key,
        }
    return {"country": "", "city": key, "dc": key}


def parse_coordinate(value: Any) -> Optional[float]:
    """Parse a numeric string coordinate, None if it is not a finite number."""
    if value is None or value == "":
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(parsed) or math.isinf(parsed):
        return None
    return parsed


def ip_to_datacenter(ip: Optional[str]) -> Optional[str]:
    """
    Match an IPv4 address against the IP prefix table.

    Returns:
        Datacenter key, or None for empty, private, or unknown addresses
    """
    if not ip or ip.startswith(_NON_ROUTABLE_PREFIXES):
        return None
    for prefix, dc in IP_PREFIX_MAP:
        if ip.startswith(prefix):
            return dc
    return None


def pseudo_datacenter(node_pubkey: str) -> str:
    """Deterministic datacenter pick for validators with no usable IP."""
    return DATACENTER_KEYS[abs(pubkey_hash(node_pubkey)) % len(DATACENTER_KEYS)]


# =============================================================================
# RESOLUTION
# =============================================================================

def _resolve_validators_app(raw: Dict[str, Any], index: int) -> GeoResolution:
    dc_info = parse_data_center_key(raw.get("data_center_key"))

    lat = parse_coordinate(raw.get("latitude"))
    lon = parse_coordinate(raw.get("longitude"))
    # (0, 0) is how validators.app reports "unknown"
    if lat is None or lon is None or (lat == 0 and lon == 0):
        lat = lon = None
    else:
        lat, lon = add_jitter(lat, lon, index)

    return GeoResolution(
        city=dc_info["city"],
        country=dc_info["country"],
        lat=lat,
        lon=lon,
        datacenter=dc_info["dc"] or None,
    )


def _resolve_rpc(raw: Dict[str, Any], index: int) -> GeoResolution:
    dc = ip_to_datacenter(raw.get("ip"))
    approximate = False
    if dc is None:
        dc = pseudo_datacenter(str(raw.get("nodePubkey") or ""))
        approximate = True

    location = DATACENTERS[dc]
    lat, lon = add_jitter(location["lat"], location["lon"], index)
    return GeoResolution(
        city=location["city"],
        country=location["country"],
        lat=lat,
        lon=lon,
        datacenter=dc,
        approximate=approximate,
    )


def resolve(raw: Dict[str, Any], source_kind: SourceKind, index: int) -> GeoResolution:
    """
    Resolve the approximate location of one raw validator record.

    Args:
        raw: Raw record as returned by the source. RPC records are expected
            to carry the gossip "ip" and "nodePubkey" keys.
        source_kind: Which source produced the record
        index: Processing index, drives the dedup offset

    Returns:
        GeoResolution, unresolved (lat/lon None) when nothing usable is known
    """
    try:
        if source_kind == SourceKind.VALIDATORS_APP:
            return _resolve_validators_app(raw, index)
        return _resolve_rpc(raw, index)
    except (AttributeError, TypeError, ValueError) as e:
        log.warning("Could not resolve location for record %d: %s", index, e)
        return GeoResolution()
