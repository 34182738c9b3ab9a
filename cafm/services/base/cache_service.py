"""
Prediction cache

Memoizes analytics results per (operation, arguments) key with Redis or
in-memory backends. Results are stored as JSON produced by pydantic
TypeAdapters and revalidated on read, so every backend hands back equal,
immutable result objects.

Concurrent misses for the same key share a single in-flight computation.
A failed computation is propagated to every waiter and nothing is stored.
"""

import asyncio
import fnmatch
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import redis.asyncio as redis
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from redis.asyncio import ConnectionPool

from cafm.core.config import CacheSettings, RedisSettings, settings
from cafm.core.exceptions import CacheError
from cafm.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CacheBackend:
    """Abstract cache backend interface; values are serialized strings"""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str, expire: Optional[int] = None) -> bool:
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        raise NotImplementedError

    async def clear(self, pattern: str = "*") -> int:
        raise NotImplementedError

    async def close(self):
        pass


class RedisBackend(CacheBackend):
    """Redis cache backend implementation"""

    def __init__(self, config: Optional[RedisSettings] = None):
        self.config = config or settings.redis
        self.pool: Optional[ConnectionPool] = None
        self.redis: Optional[redis.Redis] = None
        self._initialized = False

    async def initialize(self):
        """Initialize Redis connection"""
        if self._initialized:
            return

        try:
            self.pool = ConnectionPool.from_url(
                self.config.redis_url,
                max_connections=self.config.REDIS_MAX_CONNECTIONS,
                retry_on_timeout=self.config.REDIS_RETRY_ON_TIMEOUT,
                socket_connect_timeout=self.config.REDIS_SOCKET_CONNECT_TIMEOUT,
                socket_timeout=self.config.REDIS_SOCKET_TIMEOUT,
                decode_responses=True,
            )
            self.redis = redis.Redis(connection_pool=self.pool)

            await self.redis.ping()
            self._initialized = True
            logger.info("Redis cache backend initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize Redis backend: {str(e)}")
            raise CacheError(f"Cache initialization failed: {str(e)}") from e

    async def get(self, key: str) -> Optional[str]:
        if not self._initialized:
            await self.initialize()
        try:
            return await self.redis.get(key)
        except Exception as e:
            raise CacheError(f"Cache get failed: {str(e)}", key) from e

    async def set(self, key: str, value: str, expire: Optional[int] = None) -> bool:
        if not self._initialized:
            await self.initialize()
        try:
            if expire:
                await self.redis.setex(key, expire, value)
            else:
                await self.redis.set(key, value)
            return True
        except Exception as e:
            raise CacheError(f"Cache set failed: {str(e)}", key) from e

    async def delete(self, key: str) -> bool:
        if not self._initialized:
            await self.initialize()
        try:
            return await self.redis.delete(key) > 0
        except Exception as e:
            raise CacheError(f"Cache delete failed: {str(e)}", key) from e

    async def clear(self, pattern: str = "*") -> int:
        """Clear cache keys matching pattern"""
        if not self._initialized:
            await self.initialize()
        try:
            keys = [key async for key in self.redis.scan_iter(match=pattern)]
            if keys:
                return await self.redis.delete(*keys)
            return 0
        except Exception as e:
            raise CacheError(f"Cache clear failed: {str(e)}", pattern) from e

    async def close(self):
        """Close Redis connection"""
        if self.redis:
            await self.redis.aclose()
        if self.pool:
            await self.pool.disconnect()
        self._initialized = False


class InMemoryBackend(CacheBackend):
    """In-memory cache backend, the default for single-process deployments"""

    def __init__(self):
        self._cache: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry["expires"] and datetime.now(timezone.utc) > entry["expires"]:
                del self._cache[key]
                return None

            return entry["value"]

    async def set(self, key: str, value: str, expire: Optional[int] = None) -> bool:
        async with self._lock:
            expires = None
            if expire:
                expires = datetime.now(timezone.utc) + timedelta(seconds=expire)
            self._cache[key] = {"value": value, "expires": expires}
            return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._cache.pop(key, None) is not None

    async def clear(self, pattern: str = "*") -> int:
        async with self._lock:
            if pattern == "*":
                count = len(self._cache)
                self._cache.clear()
                return count

            matching_keys = [
                key for key in self._cache if fnmatch.fnmatchcase(key, pattern)
            ]
            for key in matching_keys:
                del self._cache[key]
            return len(matching_keys)


class CacheStats:
    """Cache statistics tracking"""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.errors = 0
        self.coalesced = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def get_stats(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "errors": self.errors,
            "coalesced": self.coalesced,
            "hit_rate": self.hit_rate,
        }


class PredictionCache:
    """
    Compute-once cache for analytics results.

    Keys have the form ``<prefix><operation>:<arg1>:<arg2>...``.
    """

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        config: Optional[CacheSettings] = None,
    ):
        self.config = config or settings.cache
        self.backend = backend
        self.stats = CacheStats()
        self._inflight: Dict[str, asyncio.Task] = {}
        self._init_lock = asyncio.Lock()
        self._adapters: Dict[Any, TypeAdapter] = {}

    async def initialize(self):
        """Select the configured backend, falling back to memory if Redis is down"""
        if self.backend is not None:
            return

        async with self._init_lock:
            if self.backend is not None:
                return

            if self.config.CACHE_BACKEND == "redis":
                backend = RedisBackend()
                try:
                    await backend.initialize()
                except CacheError:
                    logger.warning("Falling back to in-memory cache backend")
                    backend = InMemoryBackend()
                self.backend = backend
            else:
                self.backend = InMemoryBackend()

        logger.info(
            f"Prediction cache initialized with {type(self.backend).__name__}"
        )

    def build_key(self, operation: str, *args: Any) -> str:
        parts = [operation] + [str(arg) for arg in args]
        return f"{self.config.CACHE_KEY_PREFIX}{':'.join(parts)}"

    def _adapter(self, result_type: Any) -> TypeAdapter:
        adapter = self._adapters.get(result_type)
        if adapter is None:
            adapter = TypeAdapter(result_type)
            self._adapters[result_type] = adapter
        return adapter

    async def get_or_compute(
        self,
        operation: str,
        args: tuple,
        compute: Callable[[], Awaitable[T]],
        result_type: Any,
        ttl: Optional[int] = None,
    ) -> T:
        """
        Return the cached result for (operation, args) or compute and store it.

        The lookup and computation run in a task shared by every caller for
        the key. A caller that is cancelled stops waiting; the shared task
        keeps running for the others.

        Args:
            operation: Operation name, the first key segment
            args: Arguments identifying the result
            compute: Zero-argument coroutine factory producing the result
            result_type: Type used to serialize and revalidate the result
            ttl: Expiry in seconds, defaults to CACHE_DEFAULT_TIMEOUT

        Raises:
            Whatever ``compute`` raises; failures are never cached.
        """
        await self.initialize()
        key = self.build_key(operation, *args)

        task = self._inflight.get(key)
        if task is not None:
            self.stats.coalesced += 1
            logger.debug(f"Joining in-flight computation: {key}")
        else:
            task = asyncio.ensure_future(
                self._load(key, compute, self._adapter(result_type), ttl)
            )
            self._inflight[key] = task
            task.add_done_callback(partial(self._finish, key))

        return await asyncio.shield(task)

    async def _load(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
        adapter: TypeAdapter,
        ttl: Optional[int],
    ) -> T:
        cached = await self._read(key, adapter)
        if cached is not None:
            self.stats.hits += 1
            logger.debug(f"Cache hit: {key}")
            return cached

        self.stats.misses += 1
        logger.debug(f"Cache miss: {key}")
        result = await compute()
        await self._write(key, adapter, result, ttl)
        return result

    def _finish(self, key: str, task: asyncio.Task):
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Retrieve the exception so a task nobody awaits any more stays quiet
        if not task.cancelled():
            task.exception()

    async def _read(self, key: str, adapter: TypeAdapter) -> Optional[Any]:
        try:
            raw = await self.backend.get(key)
        except CacheError as e:
            self.stats.errors += 1
            logger.warning(f"Cache read failed, recomputing: {e}")
            return None

        if raw is None:
            return None

        try:
            return adapter.validate_json(raw)
        except PydanticValidationError:
            self.stats.errors += 1
            logger.warning(f"Discarding unreadable cache entry: {key}")
            await self._delete_quietly(key)
            return None

    async def _write(self, key: str, adapter: TypeAdapter, value: Any, ttl: Optional[int]):
        payload = adapter.dump_json(value).decode("utf-8")
        try:
            await self.backend.set(
                key, payload, ttl or self.config.CACHE_DEFAULT_TIMEOUT
            )
            self.stats.sets += 1
        except CacheError as e:
            self.stats.errors += 1
            logger.warning(f"Cache write failed, result not cached: {e}")

    async def _delete_quietly(self, key: str):
        try:
            await self.backend.delete(key)
        except CacheError as e:
            self.stats.errors += 1
            logger.warning(f"Cache delete failed: {e}")

    async def invalidate(self, operation: str, *args: Any) -> int:
        """Drop the entry for (operation, args) and every entry extending it"""
        await self.initialize()
        key = self.build_key(operation, *args)
        removed = 1 if await self.backend.delete(key) else 0
        removed += await self.backend.clear(f"{key}:*")
        logger.debug(f"Invalidated {removed} cache entries under {key}")
        return removed

    async def clear(self) -> int:
        """Drop every analytics entry"""
        await self.initialize()
        return await self.backend.clear(f"{self.config.CACHE_KEY_PREFIX}*")

    def get_stats(self) -> Dict[str, Any]:
        stats = self.stats.get_stats()
        stats["in_flight"] = len(self._inflight)
        return stats

    async def close(self):
        """Close cache backend"""
        if self.backend:
            await self.backend.close()


__all__ = [
    "CacheBackend",
    "RedisBackend",
    "InMemoryBackend",
    "CacheStats",
    "PredictionCache",
]
