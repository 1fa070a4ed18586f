"""In-memory TTL cache with in-flight request coalescing.

Wraps repeated upstream calls (release feed, membership lists) so that many
near-simultaneous requests for the same key collapse into one producer call.
State is process-local; swap for Redis while keeping the same interface if
the service ever runs on more than one instance.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Producer = Callable[[], Awaitable[T]]


class CacheTTL:
    """Cache lifetimes in milliseconds."""

    # Static data that rarely changes
    SERVERS = 5 * 60 * 1000
    CHANNELS = 3 * 60 * 1000
    MEMBERSHIPS = 5 * 60 * 1000

    # User data
    PROFILES = 10 * 60 * 1000
    USER_STATUS = 30 * 1000

    # Dynamic data
    MESSAGES = 10 * 1000
    CONVERSATIONS = 2 * 60 * 1000

    RELEASES = 24 * 60 * 60 * 1000


@dataclass
class CacheItem:
    """Container for cached values with expiration metadata."""

    value: Any
    expires_at: float


class RequestCache:
    """Thread-safe TTL cache whose ``dedupe`` shares one in-flight call per key.

    Expired entries are evicted lazily when read; there is no background
    sweep. ``None`` is a valid cached value for :meth:`dedupe`, but
    :meth:`get` cannot tell it apart from a miss.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._store: dict[str, CacheItem] = {}
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._background: set[asyncio.Task[Any]] = set()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"RequestCache(size={len(self._store)}, "
            f"pending={len(self._pending)}, hits={self._hits}, misses={self._misses}, "
            f"evictions={self._evictions})"
        )

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _is_expired(self, item: CacheItem) -> bool:
        return self._now_ms() >= item.expires_at

    def _lookup(self, key: str) -> tuple[bool, Any]:
        """Return ``(found, value)``, evicting the entry if it has expired."""

        with self._lock:
            item = self._store.get(key)
            if item is None:
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key, "reason": "not_found"})
                return False, None

            if self._is_expired(item):
                self._evict_single(key)
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key, "reason": "expired"})
                return False, None

            self._hits += 1
            logger.debug("cache.hit", extra={"cache_key": key})
            return True, item.value

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""

        _, value = self._lookup(key)
        return value

    def has(self, key: str) -> bool:
        found, _ = self._lookup(key)
        return found

    def set(self, key: str, value: Any, ttl_ms: int) -> None:
        """Store ``value`` for ``ttl_ms`` milliseconds.

        Overwrites any existing entry and drops an in-flight ``dedupe`` marker
        for the key; the superseded producer still answers its own awaiters
        but does not overwrite this value.

        Raises:
            ValueError: If ttl_ms is negative.
        """

        if ttl_ms < 0:
            raise ValueError("ttl_ms must be >= 0")

        with self._lock:
            self._pending.pop(key, None)
            self._store_locked(key, value, ttl_ms)

    def clear(self, key: str | None = None) -> None:
        """Remove one entry (and its in-flight marker), or everything."""

        with self._lock:
            if key is not None:
                self._store.pop(key, None)
                self._pending.pop(key, None)
                return

            self._store.clear()
            self._pending.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    async def dedupe(self, key: str, producer: Producer[T], ttl_ms: int) -> T:
        """Return the cached value for ``key`` or produce it exactly once.

        Concurrent callers that miss the cache while a production for ``key``
        is running await that same production instead of calling their own
        ``producer``. A successful result is cached for ``ttl_ms``; a failure
        is not cached and is raised to every awaiter, so the next call
        retries.

        Awaiters are shielded: cancelling one caller does not cancel the
        shared production.

        Args:
            key: Cache key.
            producer: Zero-argument coroutine function computing the value.
            ttl_ms: Lifetime of the produced value in milliseconds.

        Returns:
            The cached or freshly produced value.
        """

        found, value = self._lookup(key)
        if found:
            return value

        with self._lock:
            pending = self._pending.get(key)
            if pending is None:
                pending = self._start_production(key, producer, ttl_ms)
                logger.debug("cache.produce_started", extra={"cache_key": key})
            else:
                logger.debug("cache.produce_joined", extra={"cache_key": key})

        return await asyncio.shield(pending)

    async def swr(
        self,
        key: str,
        producer: Producer[T],
        ttl_ms: int,
        on_update: Callable[[T], None] | None = None,
    ) -> T:
        """Stale-while-revalidate lookup.

        Returns a stored value immediately, even if it has expired. An
        expired value triggers one background refresh; ``on_update`` is called
        with the fresh value once it arrives. Refresh failures are logged and
        the stale value stays in place. With nothing stored this behaves like
        :meth:`dedupe`.
        """

        with self._lock:
            item = self._store.get(key)
            if item is not None and self._is_expired(item) and key not in self._pending:
                production = self._start_production(key, producer, ttl_ms)
                refresh = asyncio.ensure_future(
                    self._finish_refresh(key, production, on_update)
                )
                self._background.add(refresh)
                refresh.add_done_callback(self._background.discard)
                logger.debug("cache.refresh_started", extra={"cache_key": key})

        if item is None:
            return await self.dedupe(key, producer, ttl_ms)
        return item.value

    def stats(self) -> dict[str, int]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "entries": len(self._store),
                "pending": len(self._pending),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    async def _produce(self, key: str, producer: Producer[T], ttl_ms: int) -> T:
        task = asyncio.current_task()
        try:
            value = await producer()
        except BaseException as exc:
            # CancelledError too, or later callers would join a dead production
            self._release_pending(key, task)
            logger.warning(
                "cache.produce_failed",
                extra={"cache_key": key, "error_type": type(exc).__name__},
            )
            raise

        with self._lock:
            if self._pending.get(key) is task:
                del self._pending[key]
                self._store_locked(key, value, ttl_ms)
        return value

    async def _finish_refresh(
        self,
        key: str,
        production: asyncio.Future[T],
        on_update: Callable[[T], None] | None,
    ) -> None:
        try:
            value = await production
        except Exception as exc:
            logger.error(
                "cache.refresh_failed",
                extra={"cache_key": key, "error_type": type(exc).__name__},
            )
            return
        if on_update is not None:
            on_update(value)

    def _release_pending(self, key: str, production: asyncio.Future[Any] | None) -> None:
        with self._lock:
            if self._pending.get(key) is production:
                del self._pending[key]

    def _start_production(
        self, key: str, producer: Producer[T], ttl_ms: int
    ) -> asyncio.Future[T]:
        production = asyncio.ensure_future(self._produce(key, producer, ttl_ms))
        # Covers a production cancelled before its first step
        production.add_done_callback(lambda done: self._release_pending(key, done))
        self._pending[key] = production
        return production

    def _store_locked(self, key: str, value: Any, ttl_ms: int) -> None:
        self._store[key] = CacheItem(value=value, expires_at=self._now_ms() + ttl_ms)
        logger.debug(
            "cache.set",
            extra={"cache_key": key, "size": len(self._store), "ttl_ms": ttl_ms},
        )

    def _evict_single(self, key: str) -> None:
        if self._store.pop(key, None) is not None:
            self._evictions += 1

