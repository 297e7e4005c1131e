"""
Client Classifier - Map software client labels onto ClientType.

validators.app reports labels such as "Agave", "AgaveBam", "JitoLabs",
"Firedancer", "Frankendancer", "Harmonic", "Paladin", "AgavePaladin" and
"Unknown", plus a separate Jito (MEV) flag.

Precedence is fixed: Firedancer-family clients can run Jito-compatible
tipping themselves, so they win over the MEV flag.
"""

from typing import Optional

from ..core.models import ClientType

FIREDANCER_MARKERS = ("firedancer", "frankendancer", "harmonic")
JITO_MARKERS = ("jito",)
AGAVE_MARKERS = ("agave", "paladin", "solana-labs")


def _contains_any(label: str, markers) -> bool:
    return any(marker in label for marker in markers)


def classify(client_label: Optional[str], mev_flag: bool = False) -> ClientType:
    """
    Classify a software client label.

    Args:
        client_label: Free-form client string (None or non-string treated as empty)
        mev_flag: True when the source marks the validator as running Jito

    Returns:
        ClientType
    """
    label = client_label.lower() if isinstance(client_label, str) else ""

    if _contains_any(label, FIREDANCER_MARKERS):
        return ClientType.FIREDANCER
    if mev_flag or _contains_any(label, JITO_MARKERS):
        return ClientType.JITO
    if _contains_any(label, AGAVE_MARKERS):
        return ClientType.SOLANA_LABS
    return ClientType.UNKNOWN


def classify_version(version: Optional[str]) -> ClientType:
    """
    Classify from a node version string alone (RPC fallback path).

    getClusterNodes only exposes the version, so anything that is not
    visibly Jito is assumed to be Agave.
    """
    if isinstance(version, str) and "jito" in version.lower():
        return ClientType.JITO
    return ClientType.SOLANA_LABS
