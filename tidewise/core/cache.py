"""Bounded, time-expiring cache of tide results.

Entries live in an arena (a list of slots addressed by index) linked into
a recency list through prev/next indices, with a dict from key to slot.
Promotion and eviction are O(1). A durable CacheStore, when provided,
mirrors every write; lookups that miss in memory fall back to it. Store
failures are logged and the cache continues in memory only.
"""

# Standard library imports
import asyncio
import datetime
import logging
import math
import re
from typing import Optional

# Third-party imports
from pydantic import ValidationError

# Local imports
from tidewise import util
from tidewise.api_types import CacheStats
from tidewise.config import DEFAULT_CONFIG, EngineConfig
from tidewise.errors import InvalidCacheKeyError
from tidewise.stores.base import CacheStore, StoreError
from tidewise.types import CacheKey, CacheRecord, TideInfo

_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")

MIN_KEY_YEAR = 1900
MAX_KEY_YEAR = 2100

# Fixed per-entry bookkeeping estimate (bytes)
_ENTRY_OVERHEAD_BYTES = 200

_NIL = -1


class _Entry:
    __slots__ = (
        "key",
        "data",
        "serialized",
        "created_at",
        "expires_at",
        "access_count",
        "prev",
        "next",
    )

    def __init__(
        self,
        key: str,
        data: TideInfo,
        serialized: str,
        created_at: datetime.datetime,
        expires_at: datetime.datetime,
        access_count: int = 0,
    ) -> None:
        self.key = key
        self.data = data
        self.serialized = serialized
        self.created_at = created_at
        self.expires_at = expires_at
        self.access_count = access_count
        self.prev = _NIL
        self.next = _NIL

    @property
    def memory_usage(self) -> int:
        # Two bytes per character approximates UTF-16 string storage
        return len(self.key) * 2 + len(self.serialized) * 2 + _ENTRY_OVERHEAD_BYTES


class TideLRUCache:
    """LRU cache of TideInfo results keyed by rounded coordinate and day.

    All public coroutines serialize on one lock since promotion and eviction
    are multi-step updates of the recency list.
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        capacity: Optional[int] = None,
        ttl: Optional[datetime.timedelta] = None,
        config: EngineConfig = DEFAULT_CONFIG,
    ) -> None:
        """Initialize the cache.

        Args:
            store: Optional durable store mirroring the cache
            capacity: Maximum number of entries (default from config)
            ttl: Entry lifetime (default from config)
            config: Engine configuration
        """
        self.store = store
        self.capacity = capacity if capacity is not None else config.cache_capacity
        self.ttl = ttl if ttl is not None else config.cache_ttl
        if self.capacity <= 0:
            raise ValueError(f"Cache capacity must be positive, got {self.capacity}")

        self._slots: list[Optional[_Entry]] = []
        self._free: list[int] = []
        self._index: dict[str, int] = {}
        self._head = _NIL  # most recently used
        self._tail = _NIL  # least recently used

        self._hit_count = 0
        self._miss_count = 0
        self._lock = asyncio.Lock()

    def log(self, message: str, level: int = logging.INFO) -> None:
        logging.log(level, f"[cache] {message}")

    @staticmethod
    def normalize_key(key: CacheKey) -> str:
        """Canonical string form of a cache key.

        Coordinates are rounded to 0.01 degrees and the date is zero-padded,
        e.g. ``35.66,139.75,2024-01-05``.

        Raises:
            InvalidCacheKeyError: If coordinates are out of range or the date
                is not a valid YYYY-MM-DD calendar date
        """
        lat, lon = key.latitude, key.longitude
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise InvalidCacheKeyError(f"Non-finite coordinates in cache key: {key}")
        if not (-90 <= lat <= 90 and -180 <= lon <= 180):
            raise InvalidCacheKeyError(f"Coordinates out of range in cache key: {key}")

        match = _DATE_PATTERN.match(key.date.strip())
        if match is None:
            raise InvalidCacheKeyError(f"Malformed date in cache key: {key.date!r}")
        year, month, day = (int(g) for g in match.groups())
        if not MIN_KEY_YEAR <= year <= MAX_KEY_YEAR:
            raise InvalidCacheKeyError(f"Year {year} out of range in cache key")
        try:
            date = datetime.date(year, month, day)
        except ValueError as e:
            raise InvalidCacheKeyError(f"Invalid date in cache key: {e}") from e

        # Adding 0.0 turns -0.0 into 0.0
        return f"{round(lat, 2) + 0.0:.2f},{round(lon, 2) + 0.0:.2f},{date.isoformat()}"

    # Recency list primitives

    def _unlink(self, index: int) -> None:
        entry = self._slots[index]
        assert entry is not None
        if entry.prev != _NIL:
            self._entry(entry.prev).next = entry.next
        else:
            self._head = entry.next
        if entry.next != _NIL:
            self._entry(entry.next).prev = entry.prev
        else:
            self._tail = entry.prev
        entry.prev = entry.next = _NIL

    def _push_front(self, index: int) -> None:
        entry = self._entry(index)
        entry.prev = _NIL
        entry.next = self._head
        if self._head != _NIL:
            self._entry(self._head).prev = index
        self._head = index
        if self._tail == _NIL:
            self._tail = index

    def _entry(self, index: int) -> _Entry:
        entry = self._slots[index]
        assert entry is not None, f"Empty cache slot {index}"
        return entry

    def _allocate(self, entry: _Entry) -> int:
        if self._free:
            index = self._free.pop()
            self._slots[index] = entry
        else:
            index = len(self._slots)
            self._slots.append(entry)
        self._index[entry.key] = index
        return index

    def _remove(self, index: int) -> _Entry:
        entry = self._entry(index)
        self._unlink(index)
        self._slots[index] = None
        self._free.append(index)
        del self._index[entry.key]
        return entry

    def keys(self) -> list[str]:
        """Keys from most to least recently used."""
        result = []
        index = self._head
        while index != _NIL:
            entry = self._entry(index)
            result.append(entry.key)
            index = entry.next
        return result

    # Durable store boundary

    async def _store_get(self, key: str) -> Optional[CacheRecord]:
        if self.store is None:
            return None
        try:
            return await self.store.get(key)
        except StoreError as e:
            self.log(f"Durable lookup of {key} failed: {e}", level=logging.WARNING)
            return None

    async def _store_put(self, record: CacheRecord) -> None:
        if self.store is None:
            return
        try:
            await self.store.put(record)
        except StoreError as e:
            self.log(
                f"Durable write of {record.cache_key} failed: {e}",
                level=logging.WARNING,
            )

    async def _store_delete(self, key: str) -> None:
        if self.store is None:
            return
        try:
            await self.store.delete(key)
        except StoreError as e:
            self.log(f"Durable delete of {key} failed: {e}", level=logging.WARNING)

    async def _insert_front(self, entry: _Entry) -> None:
        """Insert a new key as most recently used, evicting the LRU entry if full."""
        if len(self._index) >= self.capacity:
            evicted = self._remove(self._tail)
            self.log(f"Evicted {evicted.key}", level=logging.DEBUG)
            await self._store_delete(evicted.key)
        self._push_front(self._allocate(entry))

    # Public API

    async def get(self, key: CacheKey) -> Optional[TideInfo]:
        """Cached result for a key, or None.

        Raises:
            InvalidCacheKeyError: If the key is malformed
        """
        cache_key = self.normalize_key(key)
        async with self._lock:
            now = util.utc_now()
            index = self._index.get(cache_key)
            if index is not None:
                entry = self._entry(index)
                if now >= entry.expires_at:
                    self._remove(index)
                    self._miss_count += 1
                    await self._store_delete(cache_key)
                    return None
                entry.access_count += 1
                self._unlink(index)
                self._push_front(index)
                self._hit_count += 1
                return entry.data

            self._miss_count += 1
            record = await self._store_get(cache_key)
            if record is None:
                return None
            if now >= record.expires_at:
                await self._store_delete(cache_key)
                return None
            try:
                data = TideInfo.model_validate_json(record.tide_data)
            except ValidationError as e:
                self.log(
                    f"Discarding unreadable durable entry {cache_key}: {e}",
                    level=logging.WARNING,
                )
                await self._store_delete(cache_key)
                return None

            await self._insert_front(
                _Entry(
                    cache_key,
                    data,
                    record.tide_data,
                    record.created_at,
                    record.expires_at,
                    access_count=record.access_count + 1,
                )
            )
            await self._store_put(
                record.model_copy(
                    update={"access_count": record.access_count + 1, "last_accessed": now}
                )
            )
            return data

    async def set(self, key: CacheKey, data: TideInfo) -> None:
        """Store a result as the most recently used entry.

        Raises:
            InvalidCacheKeyError: If the key is malformed
        """
        cache_key = self.normalize_key(key)
        serialized = data.model_dump_json()
        async with self._lock:
            now = util.utc_now()
            expires_at = now + self.ttl
            index = self._index.get(cache_key)
            if index is not None:
                entry = self._entry(index)
                entry.data = data
                entry.serialized = serialized
                entry.created_at = now
                entry.expires_at = expires_at
                self._unlink(index)
                self._push_front(index)
            else:
                entry = _Entry(cache_key, data, serialized, now, expires_at)
                await self._insert_front(entry)

            await self._store_put(
                CacheRecord(
                    cache_key=cache_key,
                    tide_data=serialized,
                    created_at=now,
                    expires_at=expires_at,
                    access_count=entry.access_count,
                    last_accessed=now,
                )
            )

    async def has(self, key: CacheKey) -> bool:
        """Whether an unexpired in-memory entry exists; does not touch recency."""
        cache_key = self.normalize_key(key)
        async with self._lock:
            index = self._index.get(cache_key)
            return index is not None and util.utc_now() < self._entry(index).expires_at

    async def cleanup_expired(self) -> int:
        """Evict every expired entry.

        Returns:
            Number of entries evicted
        """
        async with self._lock:
            now = util.utc_now()
            expired = [
                index
                for index in self._index.values()
                if now >= self._entry(index).expires_at
            ]
            for index in expired:
                entry = self._remove(index)
                await self._store_delete(entry.key)
        if expired:
            self.log(f"Removed {len(expired)} expired entries")
        return len(expired)

    async def clear(self) -> None:
        """Remove every entry from memory and the durable store, and reset counters."""
        async with self._lock:
            self._slots.clear()
            self._free.clear()
            self._index.clear()
            self._head = self._tail = _NIL
            self._hit_count = 0
            self._miss_count = 0
            if self.store is not None:
                try:
                    await self.store.clear()
                except StoreError as e:
                    self.log(f"Durable clear failed: {e}", level=logging.WARNING)

    def size(self) -> int:
        return len(self._index)

    def get_stats(self) -> CacheStats:
        lookups = self._hit_count + self._miss_count
        return CacheStats(
            total_entries=len(self._index),
            capacity=self.capacity,
            hit_count=self._hit_count,
            miss_count=self._miss_count,
            hit_rate=self._hit_count / lookups if lookups else 0.0,
            memory_usage_bytes=sum(
                self._entry(i).memory_usage for i in self._index.values()
            ),
        )
