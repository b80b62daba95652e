"""
Upstash Redis store backend.

Upstash is reached over its REST API, which has no pub/sub subscribe, so
cross-context notifications are produced by polling: every `poll()` reads
the watched keys and reports values written by somebody else since the
previous poll.
"""
from typing import Dict, List, Optional

from shopcore.errors import ERROR_STORE_UNAVAILABLE, StoreUnavailableError
from shopcore.logging import get_logger, sanitize_string_for_logging
from .base import ChangeCallback, Subscription

logger = get_logger(__name__)


class UpstashStore:
    """
    KeyValueStore backed by a synchronous upstash_redis client.

    Usage:
        store = UpstashStore(Redis(url=..., token=...), prefix="shop:")
        store.subscribe("cart-items", on_change)
        ...
        store.poll()  # call from the host's event loop / timer
    """

    def __init__(self, redis_client, prefix: str = ""):
        self.redis = redis_client
        self.prefix = prefix
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._last_seen: Dict[str, Optional[str]] = {}
        self._own_writes: Dict[str, Optional[str]] = {}

    def _full_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(self._full_key(key))
        except Exception as e:
            logger.error(f"Failed to read '{key}' from Redis: {e}")
            raise StoreUnavailableError(f"{ERROR_STORE_UNAVAILABLE}: {str(e)}")
        return value if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        try:
            self.redis.set(self._full_key(key), value)
        except Exception as e:
            logger.error(f"Failed to write '{key}' to Redis: {e}")
            raise StoreUnavailableError(f"{ERROR_STORE_UNAVAILABLE}: {str(e)}")
        self._own_writes[key] = value
        self._last_seen[key] = value

    def subscribe(self, key: str, callback: ChangeCallback) -> Subscription:
        if key not in self._last_seen:
            self._last_seen[key] = self.get(key)
        subscription = Subscription(key=key, callback=callback, _cancel=self._unsubscribe)
        self._subscriptions.setdefault(key, []).append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.key, [])
        if subscription in subs:
            subs.remove(subscription)
        if not subs:
            self._subscriptions.pop(subscription.key, None)
            self._last_seen.pop(subscription.key, None)

    def poll(self) -> int:
        """
        Check watched keys for foreign writes and notify subscribers.

        Returns:
            Number of keys that changed
        """
        changed = 0
        for key, subs in list(self._subscriptions.items()):
            try:
                current = self.get(key)
            except StoreUnavailableError as e:
                logger.warning(f"Skipping poll of '{key}': {e}")
                continue

            if current == self._last_seen.get(key):
                continue
            self._last_seen[key] = current

            if key in self._own_writes and current == self._own_writes[key]:
                continue

            changed += 1
            logger.debug(f"Foreign write on '{key}': {sanitize_string_for_logging(current)}")
            for sub in list(subs):
                try:
                    sub.callback(key, current)
                except Exception as e:
                    logger.error(f"Store listener for '{key}' failed: {e}", exc_info=True)
        return changed
