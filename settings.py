"""
Runtime settings for the diagnostic server.
Everything comes from the environment (or a local .env file).
"""

import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_PORT = 8080
DEFAULT_FAIL_AFTER_SECONDS = 10.0


def parse_port(raw: Optional[str], default: int = DEFAULT_PORT) -> int:
    """Return a usable TCP port, falling back to the default on anything invalid."""
    try:
        port = int(raw)
    except (TypeError, ValueError):
        return default
    if port <= 0 or port > 65535:
        return default
    return port


def parse_threshold(raw: Optional[str], default: float = DEFAULT_FAIL_AFTER_SECONDS) -> float:
    try:
        threshold = float(raw)
    except (TypeError, ValueError):
        return default
    # nan compares false against everything
    if not threshold >= 0:
        return default
    return threshold


_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def parse_log_level(raw: Optional[str], default: str = "INFO") -> str:
    level = (raw or "").strip().upper()
    return level if level in _LOG_LEVELS else default


def parse_bool(raw: Optional[str], default: bool = True) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Server binding
HOST = os.getenv("HOST", "0.0.0.0")
PORT = parse_port(os.getenv("PORT"))

# Logging
LOG_LEVEL = parse_log_level(os.getenv("LOG_LEVEL"))
ACCESS_LOG = parse_bool(os.getenv("ACCESS_LOG"), default=True)

# /healthz-fail switches to 500 once uptime reaches this many seconds
FAIL_AFTER_SECONDS = parse_threshold(os.getenv("FAIL_AFTER_SECONDS"))
