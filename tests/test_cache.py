import json
import threading
import pytest
from unittest.mock import MagicMock, Mock, patch

from redis.exceptions import RedisError, WatchError

from app.core.cache import (
    ACTIVE_LIST_KEY, InMemoryCache, NullCache, RedisCache,
    completed_key, email_key, id_key, scheduled_key,
)

class TestKeys:
    def test_key_formats(self):
        assert id_key(7) == "id:7"
        assert email_key("a@x.com") == "email:a@x.com"
        assert completed_key(7) == "completed:7"
        assert scheduled_key(7) == "scheduled:7"
        assert ACTIVE_LIST_KEY == "active-list"

class TestInMemoryCache:
    def test_get_miss(self):
        cache = InMemoryCache()
        assert cache.get("id:1") is None

    def test_put_and_get(self):
        cache = InMemoryCache()
        cache.put("id:1", {"name": "Alice"})
        assert cache.get("id:1") == {"name": "Alice"}

    def test_values_are_copied(self):
        cache = InMemoryCache()
        value = {"skills": ["cooking"]}
        cache.put("id:1", value)
        value["skills"].append("driving")

        cached = cache.get("id:1")
        assert cached == {"skills": ["cooking"]}
        cached["skills"].append("mutated")
        assert cache.get("id:1") == {"skills": ["cooking"]}

    def test_evict(self):
        cache = InMemoryCache()
        cache.put("id:1", {"name": "Alice"})
        cache.put("id:2", {"name": "Bob"})
        cache.evict("id:1")

        assert cache.get("id:1") is None
        assert cache.get("id:2") == {"name": "Bob"}

    def test_evict_all(self):
        cache = InMemoryCache()
        cache.put("id:1", {"name": "Alice"})
        cache.put(ACTIVE_LIST_KEY, [])
        cache.evict_all()

        assert len(cache) == 0

    def test_ttl_expiry(self):
        cache = InMemoryCache()
        with patch("app.core.cache.time.monotonic", return_value=100.0):
            cache.put("id:1", {"name": "Alice"}, ttl=10)
        with patch("app.core.cache.time.monotonic", return_value=105.0):
            assert cache.get("id:1") == {"name": "Alice"}
        with patch("app.core.cache.time.monotonic", return_value=110.0):
            assert cache.get("id:1") is None

    def test_get_or_load_fills_once(self):
        cache = InMemoryCache()
        loader = Mock(return_value={"name": "Alice"})

        assert cache.get_or_load("id:1", loader) == {"name": "Alice"}
        assert cache.get_or_load("id:1", loader) == {"name": "Alice"}
        loader.assert_called_once()

    def test_get_or_load_does_not_cache_none(self):
        cache = InMemoryCache()
        loader = Mock(return_value=None)

        assert cache.get_or_load("id:1", loader) is None
        assert cache.get_or_load("id:1", loader) is None
        assert loader.call_count == 2
        assert len(cache) == 0

    def test_get_or_load_does_not_cache_failures(self):
        cache = InMemoryCache()
        loader = Mock(side_effect=[RuntimeError("store down"), {"name": "Alice"}])

        with pytest.raises(RuntimeError):
            cache.get_or_load("id:1", loader)
        assert cache.get("id:1") is None
        assert cache.get_or_load("id:1", loader) == {"name": "Alice"}

    def test_fill_racing_an_eviction_is_discarded(self):
        cache = InMemoryCache()

        def stale_loader():
            # An update commits and evicts while this read is loading
            cache.evict("id:1")
            return {"name": "Old Name"}

        assert cache.get_or_load("id:1", stale_loader) == {"name": "Old Name"}
        assert cache.get("id:1") is None

    def test_fill_racing_evict_all_is_discarded(self):
        cache = InMemoryCache()

        def stale_loader():
            cache.evict_all()
            return []

        cache.get_or_load(ACTIVE_LIST_KEY, stale_loader)
        assert cache.get(ACTIVE_LIST_KEY) is None

    def test_evict_all_drops_per_key_generations(self):
        cache = InMemoryCache()
        for i in range(50):
            cache.evict(id_key(i))
        assert len(cache._generations) == 50

        cache.evict_all()
        assert cache._generations == {}

    def test_fill_started_before_evict_all_stays_discarded(self):
        cache = InMemoryCache()
        cache.evict("id:1")
        token = cache.generation("id:1")

        cache.evict_all()

        assert cache.put_if_generation("id:1", {"name": "Old"}, token) is False
        assert cache.put_if_generation("id:1", {"name": "New"}, cache.generation("id:1")) is True
        assert cache.get("id:1") == {"name": "New"}

    def test_concurrent_access(self):
        cache = InMemoryCache()
        errors = []

        def worker(n):
            try:
                for i in range(200):
                    key = f"id:{i % 10}"
                    cache.get_or_load(key, lambda: {"n": n, "i": i})
                    if i % 7 == 0:
                        cache.evict(key)
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []

class TestNullCache:
    def test_never_stores(self):
        cache = NullCache()
        cache.put("id:1", {"name": "Alice"})
        assert cache.get("id:1") is None

    def test_get_or_load_always_loads(self):
        cache = NullCache()
        loader = Mock(return_value={"name": "Alice"})
        cache.get_or_load("id:1", loader)
        cache.get_or_load("id:1", loader)
        assert loader.call_count == 2

class TestRedisCache:
    def test_get_decodes_json(self):
        redis_client = Mock()
        redis_client.get.return_value = b'{"name": "Alice"}'
        cache = RedisCache(redis_client, namespace="test")

        assert cache.get("id:1") == {"name": "Alice"}
        redis_client.get.assert_called_once_with("test:value:id:1")

    def test_get_error_is_a_miss(self):
        redis_client = Mock()
        redis_client.get.side_effect = RedisError("connection refused")
        cache = RedisCache(redis_client)

        assert cache.get("id:1") is None

    def test_put_uses_default_ttl(self):
        redis_client = Mock()
        cache = RedisCache(redis_client, namespace="test", default_ttl=60)
        cache.put("id:1", {"name": "Alice"})

        redis_client.set.assert_called_once_with(
            "test:value:id:1", json.dumps({"name": "Alice"}), ex=60
        )

    def test_evict_bumps_generation(self):
        redis_client = Mock()
        pipe = Mock()
        redis_client.pipeline.return_value = pipe
        cache = RedisCache(redis_client, namespace="test")

        cache.evict("id:1")

        pipe.delete.assert_called_once_with("test:value:id:1")
        pipe.incr.assert_called_once_with("test:gen:id:1")
        pipe.execute.assert_called_once()

    def test_evict_errors_propagate(self):
        redis_client = Mock()
        redis_client.pipeline.return_value.execute.side_effect = RedisError("down")
        cache = RedisCache(redis_client)

        with pytest.raises(RedisError):
            cache.evict("id:1")

    def test_evict_all_deletes_namespace(self):
        redis_client = Mock()
        redis_client.scan_iter.return_value = iter([b"test:value:id:1", b"test:value:active-list"])
        cache = RedisCache(redis_client, namespace="test")

        cache.evict_all()

        redis_client.incr.assert_called_once_with("test:epoch")
        redis_client.scan_iter.assert_called_once_with(match="test:value:*")
        redis_client.delete.assert_called_once_with(b"test:value:id:1", b"test:value:active-list")

    def _pipeline(self, redis_client, epoch, generation):
        pipe = MagicMock()
        pipe.__enter__.return_value = pipe
        pipe.mget.return_value = [epoch, generation]
        redis_client.pipeline.return_value = pipe
        return pipe

    def test_put_if_generation_writes_when_unchanged(self):
        redis_client = Mock()
        pipe = self._pipeline(redis_client, b"2", b"5")
        cache = RedisCache(redis_client, namespace="test")

        assert cache.put_if_generation("id:1", {"name": "Alice"}, (2, 5)) is True
        pipe.watch.assert_called_once_with("test:epoch", "test:gen:id:1")
        pipe.set.assert_called_once()
        pipe.execute.assert_called_once()

    def test_put_if_generation_skips_after_eviction(self):
        redis_client = Mock()
        pipe = self._pipeline(redis_client, b"2", b"6")
        cache = RedisCache(redis_client, namespace="test")

        assert cache.put_if_generation("id:1", {"name": "Old"}, (2, 5)) is False
        pipe.set.assert_not_called()

    def test_put_if_generation_handles_watch_error(self):
        redis_client = Mock()
        pipe = self._pipeline(redis_client, None, None)
        pipe.execute.side_effect = WatchError()
        cache = RedisCache(redis_client, namespace="test")

        assert cache.put_if_generation("id:1", {"name": "Old"}, (0, 0)) is False

    def test_generation_defaults_to_zero(self):
        redis_client = Mock()
        redis_client.mget.return_value = [None, None]
        cache = RedisCache(redis_client)

        assert cache.generation("id:1") == (0, 0)
