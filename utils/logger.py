"""
Logging for the webhook service.

Every module logs through ``get_logger(__name__)``; ``main.py`` calls
``setup_logger`` once, before uvicorn starts.
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Per-request chatter from the HTTP, RPC and imaging stacks
QUIET_LOGGERS = ("httpx", "httpcore", "solana", "PIL", "uvicorn.access")


def setup_logger(level: str = "INFO") -> None:
    """Send all records to stdout at ``level``, replacing existing handlers."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "tweet_sniper")
