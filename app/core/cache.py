"""
Read-through, write-invalidate cache for volunteer projections.

Values are JSON-compatible payloads. Every key carries a generation that is
bumped on eviction; get_or_load() only stores a freshly loaded value when
no eviction of that key (and no evict_all) happened while it was loading.
This keeps a read that races an update from re-inserting the pre-update
value after the update has evicted it.
"""

import copy
import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from redis.exceptions import RedisError, WatchError

from app.core.config import settings

logger = logging.getLogger(__name__)

Loader = Callable[[], Any]


# Key builders
ACTIVE_LIST_KEY = "active-list"


def id_key(volunteer_id: int) -> str:
    return f"id:{volunteer_id}"


def email_key(email: str) -> str:
    return f"email:{email}"


def completed_key(volunteer_id: int) -> str:
    return f"completed:{volunteer_id}"


def scheduled_key(volunteer_id: int) -> str:
    return f"scheduled:{volunteer_id}"


class VolunteerCache:
    """Interface shared by the cache backends."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        raise NotImplementedError

    def evict(self, key: str) -> None:
        raise NotImplementedError

    def evict_all(self) -> None:
        raise NotImplementedError

    def generation(self, key: str) -> Hashable:
        raise NotImplementedError

    def put_if_generation(self, key: str, value: Any, token: Hashable, ttl: Optional[int] = None) -> bool:
        """Store value only if the key's generation still equals token."""
        raise NotImplementedError

    def get_or_load(self, key: str, loader: Loader, ttl: Optional[int] = None) -> Any:
        """
        Return the cached value for key, or call loader and cache its result.

        Loader exceptions propagate and nothing is cached. A None result is
        returned as-is and never cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        token = self.generation(key)
        value = loader()
        if value is not None:
            self.put_if_generation(key, value, token, ttl)
        return value


class NullCache(VolunteerCache):
    """Cache disabled: every read misses and nothing is stored."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        return None

    def evict(self, key: str) -> None:
        return None

    def evict_all(self) -> None:
        return None

    def generation(self, key: str) -> Hashable:
        return 0

    def put_if_generation(self, key: str, value: Any, token: Hashable, ttl: Optional[int] = None) -> bool:
        return False


class InMemoryCache(VolunteerCache):
    """
    In-memory cache for development/testing.
    In production, use Redis so all workers share one cache.
    """

    def __init__(self, default_ttl: Optional[int] = None):
        self.default_ttl = default_ttl
        # key -> (expires_at or None, value)
        self._entries: Dict[str, Tuple[Optional[float], Any]] = {}
        # key -> generation, bumped on evict
        self._generations: Dict[str, int] = {}
        # bumped on evict_all
        self._epoch = 0
        self._lock = threading.Lock()

    def _expiry(self, ttl: Optional[int]) -> Optional[float]:
        ttl = ttl if ttl is not None else self.default_ttl
        if not ttl:
            return None
        return time.monotonic() + ttl

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at is not None and time.monotonic() >= expires_at:
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        with self._lock:
            self._entries[key] = (self._expiry(ttl), copy.deepcopy(value))

    def evict(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1

    def evict_all(self) -> None:
        with self._lock:
            self._entries.clear()
            # Tokens taken before this point carry the old epoch
            self._generations.clear()
            self._epoch += 1

    def generation(self, key: str) -> Hashable:
        with self._lock:
            return (self._epoch, self._generations.get(key, 0))

    def put_if_generation(self, key: str, value: Any, token: Hashable, ttl: Optional[int] = None) -> bool:
        with self._lock:
            if (self._epoch, self._generations.get(key, 0)) != token:
                return False
            self._entries[key] = (self._expiry(ttl), copy.deepcopy(value))
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisCache(VolunteerCache):
    """
    Redis-based cache for production use.
    Shared across workers; values are stored as JSON.
    """

    def __init__(self, redis_client, namespace: str = "volunteers", default_ttl: Optional[int] = None):
        """
        Initialize with a Redis client.

        Args:
            redis_client: Redis client instance
            namespace: Prefix applied to every key
            default_ttl: Expiry in seconds when put() gets no ttl
        """
        self.redis = redis_client
        self.namespace = namespace
        self.default_ttl = default_ttl
        self._value_prefix = f"{namespace}:value:"
        self._generation_prefix = f"{namespace}:gen:"
        self._epoch_key = f"{namespace}:epoch"

    def _value_key(self, key: str) -> str:
        return f"{self._value_prefix}{key}"

    def _generation_key(self, key: str) -> str:
        return f"{self._generation_prefix}{key}"

    def _ttl(self, ttl: Optional[int]) -> Optional[int]:
        ttl = ttl if ttl is not None else self.default_ttl
        return ttl or None

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self.redis.get(self._value_key(key))
        except RedisError as e:
            logger.warning(f"Cache read failed for {key}, treating as miss: {e}")
            return None
        if raw is None:
            return None
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Dropping undecodable cache entry {key}")
            return None

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            self.redis.set(self._value_key(key), json.dumps(value), ex=self._ttl(ttl))
        except RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def evict(self, key: str) -> None:
        pipe = self.redis.pipeline()
        pipe.delete(self._value_key(key))
        pipe.incr(self._generation_key(key))
        pipe.execute()

    def evict_all(self) -> None:
        self.redis.incr(self._epoch_key)
        batch = []
        for redis_key in self.redis.scan_iter(match=f"{self._value_prefix}*"):
            batch.append(redis_key)
            if len(batch) >= 500:
                self.redis.delete(*batch)
                batch = []
        if batch:
            self.redis.delete(*batch)

    def generation(self, key: str) -> Hashable:
        try:
            epoch, generation = self.redis.mget(self._epoch_key, self._generation_key(key))
        except RedisError as e:
            logger.warning(f"Cache generation lookup failed for {key}: {e}")
            return None
        return (_as_int(epoch), _as_int(generation))

    def put_if_generation(self, key: str, value: Any, token: Hashable, ttl: Optional[int] = None) -> bool:
        if token is None:
            return False
        epoch_key = self._epoch_key
        generation_key = self._generation_key(key)
        try:
            with self.redis.pipeline() as pipe:
                pipe.watch(epoch_key, generation_key)
                epoch, generation = pipe.mget(epoch_key, generation_key)
                if (_as_int(epoch), _as_int(generation)) != token:
                    pipe.unwatch()
                    return False
                pipe.multi()
                pipe.set(self._value_key(key), json.dumps(value), ex=self._ttl(ttl))
                pipe.execute()
                return True
        except WatchError:
            # An eviction landed between the check and the write
            return False
        except RedisError as e:
            logger.warning(f"Cache fill failed for {key}: {e}")
            return False


def _as_int(raw) -> int:
    if raw is None:
        return 0
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return int(raw)


# Global cache instance
_cache: Optional[VolunteerCache] = None


def get_cache() -> VolunteerCache:
    """Get or create the cache instance."""
    global _cache
    if _cache is None:
        if settings.CACHE_ENABLED:
            _cache = InMemoryCache(default_ttl=settings.CACHE_TTL_SECONDS)
        else:
            _cache = NullCache()
    return _cache


def set_cache(cache: VolunteerCache) -> None:
    global _cache
    _cache = cache


def initialize_redis_cache(redis_client):
    """
    Initialize the Redis-based cache.
    Call this during application startup if using Redis.
    """
    global _cache
    _cache = RedisCache(
        redis_client,
        namespace=settings.CACHE_NAMESPACE,
        default_ttl=settings.CACHE_TTL_SECONDS,
    )
