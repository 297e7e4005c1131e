"""
Validator fetchers.

Each source module provides an async fetch_from_X(client) returning a
SourceResult; adapter chains them in order.

Available sources:
- validators_app: primary, full geo and client data
- solana_rpc: fallback, vote accounts + gossip IPs
"""

from .validators_app import fetch_from_validators_app, parse_validators_app_response
from .solana_rpc import fetch_from_rpc, rpc_call
from .adapter import fetch_validators, fetch_validators_with_source

__all__ = [
    "fetch_from_validators_app",
    "parse_validators_app_response",
    "fetch_from_rpc",
    "rpc_call",
    "fetch_validators",
    "fetch_validators_with_source",
]
