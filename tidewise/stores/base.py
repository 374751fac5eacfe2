"""Abstract interfaces for the durable stores.

A RegionStore holds the regional calibration records keyed by region id.
A CacheStore persists serialized tide results keyed by the canonical cache
key string. All methods are coroutines; implementations raise StoreError
when the backend is unreachable or a write is rejected.
"""

import abc
import logging
from typing import Optional, Sequence

from tidewise.types import CacheRecord, RegionalDataRecord


class StoreError(Exception):
    """Base exception for all durable store errors."""


class StoreUnavailableError(StoreError):
    """The backend could not be reached."""


class DuplicateRecordError(StoreError):
    """An insert collided with an existing key."""


class BaseStore(abc.ABC):
    @property
    @abc.abstractmethod
    def store_type(self) -> str:
        """Return the string identifier for the store (e.g., 'memory', 'sql')."""
        raise NotImplementedError

    def log(self, message: str, level: int = logging.INFO) -> None:
        """Log a message, automatically prepending the store type."""
        logging.log(level, f"[{self.store_type}] {message}")


class RegionStore(BaseStore):
    """Region records keyed by region_id."""

    @abc.abstractmethod
    async def count(self) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    async def get(self, region_id: str) -> Optional[RegionalDataRecord]:
        raise NotImplementedError

    @abc.abstractmethod
    async def list_regions(self) -> list[RegionalDataRecord]:
        """All records, active and inactive."""
        raise NotImplementedError

    @abc.abstractmethod
    async def add(self, record: RegionalDataRecord) -> None:
        """Insert a new record.

        Raises:
            DuplicateRecordError: If the region id already exists
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def bulk_add(self, records: Sequence[RegionalDataRecord]) -> None:
        """Insert records atomically: either all are stored or none are."""
        raise NotImplementedError

    @abc.abstractmethod
    async def update(self, record: RegionalDataRecord) -> None:
        """Replace an existing record.

        Raises:
            StoreError: If the region id does not exist
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def in_bounds(
        self,
        south: float,
        west: float,
        north: float,
        east: float,
        active_only: bool = True,
    ) -> list[RegionalDataRecord]:
        """Records whose reference point lies in the rectangle (inclusive)."""
        raise NotImplementedError


class CacheStore(BaseStore):
    """Persisted cache entries keyed by cache key string."""

    @abc.abstractmethod
    async def get(self, cache_key: str) -> Optional[CacheRecord]:
        raise NotImplementedError

    @abc.abstractmethod
    async def put(self, record: CacheRecord) -> None:
        """Insert or replace the entry for record.cache_key."""
        raise NotImplementedError

    @abc.abstractmethod
    async def delete(self, cache_key: str) -> None:
        """Remove an entry; a missing key is not an error."""
        raise NotImplementedError

    @abc.abstractmethod
    async def clear(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def count(self) -> int:
        raise NotImplementedError
