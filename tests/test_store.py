"""Tests for store backends and factory"""
from unittest.mock import Mock, patch

import pytest

from shopcore.db import StorageKeys, create_store, get_redis_sync
from shopcore.errors import StoreUnavailableError
from shopcore.store import MemoryStore, SharedMemoryHost, UpstashStore


class FakeRedis:
    """Dict-backed stand-in for upstash_redis.Redis"""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        return True


class TestMemoryStore:
    """Tests for the in-process backend."""

    def test_contexts_share_values(self, host):
        a = host.open_context()
        b = host.open_context()

        a.set("k", "v")

        assert b.get("k") == "v"

    def test_writer_not_notified(self, host):
        a = host.open_context()
        b = host.open_context()
        seen_a, seen_b = [], []
        a.subscribe("k", lambda key, value: seen_a.append(value))
        b.subscribe("k", lambda key, value: seen_b.append(value))

        a.set("k", "1")

        assert seen_a == []
        assert seen_b == ["1"]

    def test_only_watched_key_notified(self, host):
        a = host.open_context()
        b = host.open_context()
        seen = []
        b.subscribe("k", lambda key, value: seen.append(key))

        a.set("other", "x")

        assert seen == []

    def test_delete_notifies_with_none(self, host):
        a = host.open_context()
        b = host.open_context()
        seen = []
        b.subscribe("k", lambda key, value: seen.append(value))

        a.set("k", "1")
        a.delete("k")

        assert seen == ["1", None]
        assert b.get("k") is None

    def test_cancel_subscription(self, host):
        a = host.open_context()
        b = host.open_context()
        seen = []
        sub = b.subscribe("k", lambda key, value: seen.append(value))

        sub.cancel()
        sub.cancel()
        a.set("k", "1")

        assert seen == []

    def test_failing_listener_does_not_block_others(self, host):
        a = host.open_context()
        b = host.open_context()
        c = host.open_context()
        seen = []

        def boom(key, value):
            raise RuntimeError("listener failed")

        b.subscribe("k", boom)
        c.subscribe("k", lambda key, value: seen.append(value))

        a.set("k", "1")

        assert seen == ["1"]

    def test_closed_context_detached(self, host):
        a = host.open_context()
        b = host.open_context()
        seen = []
        b.subscribe("k", lambda key, value: seen.append(value))

        b.close()
        a.set("k", "1")

        assert seen == []


class TestUpstashStore:
    """Tests for the polling Redis backend."""

    def test_keys_are_prefixed(self):
        redis = FakeRedis()
        store = UpstashStore(redis, prefix="shop:")

        store.set(StorageKeys.CART, "[]")

        assert redis.data == {"shop:cart-items": "[]"}
        assert store.get(StorageKeys.CART) == "[]"

    def test_poll_reports_foreign_write(self):
        redis = FakeRedis()
        mine = UpstashStore(redis, prefix="shop:")
        theirs = UpstashStore(redis, prefix="shop:")
        seen = []
        mine.subscribe("k", lambda key, value: seen.append((key, value)))

        theirs.set("k", "v1")

        assert mine.poll() == 1
        assert seen == [("k", "v1")]
        # Nothing new on the next poll
        assert mine.poll() == 0

    def test_poll_skips_own_write(self):
        redis = FakeRedis()
        store = UpstashStore(redis)
        seen = []
        store.subscribe("k", lambda key, value: seen.append(value))

        store.set("k", "mine")

        assert store.poll() == 0
        assert seen == []

    def test_read_failure_raises_store_unavailable(self):
        redis = Mock()
        redis.get.side_effect = ConnectionError("down")
        store = UpstashStore(redis)

        with pytest.raises(StoreUnavailableError):
            store.get("k")

    def test_write_failure_raises_store_unavailable(self):
        redis = Mock()
        redis.set.side_effect = ConnectionError("down")
        store = UpstashStore(redis)

        with pytest.raises(ValueError):
            store.set("k", "v")

    def test_poll_survives_read_failure(self):
        redis = FakeRedis()
        store = UpstashStore(redis)
        store.subscribe("k", lambda key, value: None)
        store.redis = Mock()
        store.redis.get.side_effect = ConnectionError("down")

        assert store.poll() == 0


class TestFactory:
    """Tests for create_store / get_redis_sync."""

    def test_memory_backend(self, settings):
        store = create_store(settings)

        assert isinstance(store, MemoryStore)

    def test_memory_backend_shares_host(self, settings):
        host = SharedMemoryHost()
        a = create_store(settings, host=host)
        b = create_store(settings, host=host)

        a.set("k", "v")
        assert b.get("k") == "v"

    def test_upstash_requires_credentials(self, settings):
        with pytest.raises(ValueError):
            get_redis_sync(settings)

    def test_upstash_backend(self, settings):
        from dataclasses import replace

        upstash = replace(settings, store_backend="upstash", upstash_url="https://x.upstash.io", upstash_token="t")
        with patch("shopcore.db.Redis") as redis_cls:
            store = create_store(upstash)

        redis_cls.assert_called_once_with(url="https://x.upstash.io", token="t")
        assert isinstance(store, UpstashStore)
        assert store.prefix == "test:"

    def test_unknown_backend(self, settings):
        from dataclasses import replace

        with pytest.raises(ValueError):
            create_store(replace(settings, store_backend="sqlite"))
