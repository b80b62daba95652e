"""
In-process store backend.

One SharedMemoryHost plays the role of the browser's storage area; every
MemoryStore opened on it is one tab. A write in one context is delivered
synchronously to the subscribers of every other context.
"""
import itertools
from typing import Dict, List, Optional

from shopcore.logging import get_logger
from .base import ChangeCallback, Subscription

logger = get_logger(__name__)


class SharedMemoryHost:
    """Storage area shared by all contexts of one process."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._contexts: List["MemoryStore"] = []
        self._ids = itertools.count(1)

    def open_context(self) -> "MemoryStore":
        """Create a new execution context (tab) attached to this host."""
        context = MemoryStore(self, context_id=next(self._ids))
        self._contexts.append(context)
        return context

    def close_context(self, context: "MemoryStore") -> None:
        if context in self._contexts:
            self._contexts.remove(context)

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, writer: "MemoryStore", key: str, value: Optional[str]) -> None:
        """Write a value and notify every context except the writer."""
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value

        for context in list(self._contexts):
            if context is writer:
                continue
            context._notify(key, value)

    def raw_write(self, key: str, value: Optional[str]) -> None:
        """Write as if from an outside context (e.g. another process or a test)."""
        self.write(None, key, value)


class MemoryStore:
    """KeyValueStore view of a SharedMemoryHost for one context."""

    def __init__(self, host: SharedMemoryHost, context_id: int = 0):
        self.host = host
        self.context_id = context_id
        self._subscriptions: Dict[str, List[Subscription]] = {}

    def get(self, key: str) -> Optional[str]:
        return self.host.read(key)

    def set(self, key: str, value: str) -> None:
        self.host.write(self, key, value)

    def delete(self, key: str) -> None:
        self.host.write(self, key, None)

    def subscribe(self, key: str, callback: ChangeCallback) -> Subscription:
        subscription = Subscription(key=key, callback=callback, _cancel=self._unsubscribe)
        self._subscriptions.setdefault(key, []).append(subscription)
        return subscription

    def close(self) -> None:
        """Drop all subscriptions and detach from the host."""
        for subs in list(self._subscriptions.values()):
            for sub in list(subs):
                sub.cancel()
        self.host.close_context(self)

    def _unsubscribe(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.key, [])
        if subscription in subs:
            subs.remove(subscription)

    def _notify(self, key: str, value: Optional[str]) -> None:
        for sub in list(self._subscriptions.get(key, [])):
            try:
                sub.callback(key, value)
            except Exception as e:
                logger.error(f"Store listener for '{key}' failed in context {self.context_id}: {e}", exc_info=True)
