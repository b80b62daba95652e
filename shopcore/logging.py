"""
Logging for shopcore.

One stdout handler is attached to the root logger the first time this
module is imported (LOG_LEVEL picks the level). Store payloads come from
other contexts, so anything echoed from them goes through the sanitizers.
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _setup() -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.setLevel(level)
    root.addHandler(handler)

    # Polling the Upstash REST API logs one line per request
    for noisy in ("upstash_redis", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


_setup()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _escape(value: str) -> str:
    # CWE-117: keep one log record on one line
    return value.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t").replace("\x00", "")


def sanitize_id_for_logging(id_value: str | None) -> str:
    """Product id cut to 8 characters, or "N/A"."""
    if not id_value:
        return "N/A"
    return _escape(str(id_value))[:8]


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """Raw store value escaped and cut to max_length, or "N/A"."""
    if not value:
        return "N/A"
    safe = _escape(str(value))
    return safe if len(safe) <= max_length else safe[:max_length] + "..."
