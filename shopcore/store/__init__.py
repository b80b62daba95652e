"""Store package: key-value contract and backends."""
from .base import ChangeCallback, KeyValueStore, Subscription
from .memory import MemoryStore, SharedMemoryHost
from .upstash import UpstashStore

__all__ = [
    "ChangeCallback",
    "KeyValueStore",
    "Subscription",
    "MemoryStore",
    "SharedMemoryHost",
    "UpstashStore",
]
