"""Store access for cart."""
from shopcore.db import StorageKeys
from shopcore.store import KeyValueStore

__all__ = ["KeyValueStore", "StorageKeys"]
