"""
Validator geo configuration.

Data source endpoints, timeouts, cache window and alert settings.
Every value can be overridden through environment variables.
"""

import os

# Data sources - primary is the validators.app proxy, fallback is Solana JSON-RPC
_rpc_endpoints = [
    os.getenv("HELIUS_RPC_URL", ""),
    "https://api.mainnet-beta.solana.com",
]

SOURCE_CONFIG = {
    "validators_app_url": os.getenv(
        "VALIDATORS_APP_PROXY_URL", "http://localhost:3000/api/validators-app"
    ),
    "rpc_proxy_url": os.getenv(
        "SOLANA_RPC_PROXY_URL", "http://localhost:3000/api/solana-rpc-proxy"
    ),
    "rpc_endpoints": [e for e in _rpc_endpoints if e],
    # Timeouts in seconds
    "primary_timeout": float(os.getenv("VALIDATORS_APP_TIMEOUT", 50)),
    "vote_accounts_timeout": 45.0,
    "cluster_nodes_timeout": 25.0,
    "proxy_extra_timeout": 15.0,   # proxy gets extra time on top of the RPC timeout
    # Below this many records the primary source is considered unavailable
    "min_primary_validators": int(os.getenv("MIN_PRIMARY_VALIDATORS", 50)),
}

# Snapshot cache - matches the proxy's 5 minute s-maxage
CACHE_CONFIG = {
    "ttl_seconds": float(os.getenv("VALIDATOR_CACHE_TTL", 300)),
}

# Alert notification settings
ALERT_CONFIG = {
    "slack_webhook": os.getenv("SLACK_WEBHOOK_URL"),
}

LOG_LEVEL = os.getenv("VALIDATOR_GEO_LOG_LEVEL", "INFO")
