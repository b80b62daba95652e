"""
Storage Module - Store keys and backend factory.

Provides:
- The well-known keys shared by every context
- A sync Upstash Redis client for the `upstash` backend
- `create_store()` to pick the backend from settings
"""

from typing import Optional

from upstash_redis import Redis

from shopcore.config import Settings, get_settings
from shopcore.errors import ERROR_STORE_NOT_CONFIGURED, ERROR_UNKNOWN_BACKEND
from shopcore.logging import get_logger
from shopcore.store import KeyValueStore, SharedMemoryHost, UpstashStore

logger = get_logger(__name__)


class StorageKeys:
    """Keys shared by every execution context."""

    # Serialized list of line items
    CART = "cart-items"

    # {currency, symbol, exchangeRate}
    CURRENCY = "selectedCurrency"


def get_redis_sync(settings: Optional[Settings] = None) -> Redis:
    """
    Create a sync Upstash Redis client.

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    settings = settings or get_settings()
    if not settings.upstash_url or not settings.upstash_token:
        raise ValueError(ERROR_STORE_NOT_CONFIGURED)
    return Redis(url=settings.upstash_url, token=settings.upstash_token)


def create_store(
    settings: Optional[Settings] = None,
    host: Optional[SharedMemoryHost] = None,
) -> KeyValueStore:
    """
    Open a store for one execution context.

    Args:
        settings: Settings to use (defaults to environment settings)
        host: Shared host for the memory backend; a fresh one if omitted

    Returns:
        A KeyValueStore for the configured backend
    """
    settings = settings or get_settings()
    backend = settings.store_backend

    if backend == "memory":
        host = host or SharedMemoryHost()
        return host.open_context()
    if backend == "upstash":
        logger.info(f"Using Upstash store with prefix '{settings.key_prefix}'")
        return UpstashStore(get_redis_sync(settings), prefix=settings.key_prefix)

    raise ValueError(f"{ERROR_UNKNOWN_BACKEND}: {backend}")
