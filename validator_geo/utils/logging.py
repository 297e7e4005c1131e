"""
Logging setup for the validator geo package.

Every module grabs its own logger through get_logger(__name__); the root
"validator_geo" logger is configured once with the level from settings.
"""

import logging

from ..config.settings import LOG_LEVEL

_ROOT_LOGGER = "validator_geo"
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger(_ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    root.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace."""
    _configure_root()
    if not name.startswith(_ROOT_LOGGER):
        name = f"{_ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
