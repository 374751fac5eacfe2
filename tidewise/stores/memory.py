"""In-process store implementations.

Used when no database is configured and throughout the tests. Records are
immutable pydantic models, so they are shared rather than copied.
"""

from typing import Optional, Sequence

from tidewise import util
from tidewise.stores.base import CacheStore, DuplicateRecordError, RegionStore, StoreError
from tidewise.types import CacheRecord, RegionalDataRecord


class MemoryRegionStore(RegionStore):
    def __init__(self) -> None:
        self._records: dict[str, RegionalDataRecord] = {}

    @property
    def store_type(self) -> str:
        return "memory"

    async def count(self) -> int:
        return len(self._records)

    async def get(self, region_id: str) -> Optional[RegionalDataRecord]:
        return self._records.get(region_id)

    async def list_regions(self) -> list[RegionalDataRecord]:
        return list(self._records.values())

    async def add(self, record: RegionalDataRecord) -> None:
        if record.region_id in self._records:
            raise DuplicateRecordError(f"Region {record.region_id} already exists")
        self._records[record.region_id] = record

    async def bulk_add(self, records: Sequence[RegionalDataRecord]) -> None:
        ids = [r.region_id for r in records]
        if len(set(ids)) != len(ids):
            raise DuplicateRecordError("Duplicate region ids in bulk insert")
        existing = [i for i in ids if i in self._records]
        if existing:
            raise DuplicateRecordError(f"Regions already exist: {', '.join(existing)}")
        for record in records:
            self._records[record.region_id] = record

    async def update(self, record: RegionalDataRecord) -> None:
        if record.region_id not in self._records:
            raise StoreError(f"Region {record.region_id} does not exist")
        self._records[record.region_id] = record

    async def in_bounds(
        self,
        south: float,
        west: float,
        north: float,
        east: float,
        active_only: bool = True,
    ) -> list[RegionalDataRecord]:
        return [
            r
            for r in self._records.values()
            if (r.is_active or not active_only)
            and util.is_point_in_bounds(r.latitude, r.longitude, south, west, north, east)
        ]


class MemoryCacheStore(CacheStore):
    def __init__(self) -> None:
        self._records: dict[str, CacheRecord] = {}

    @property
    def store_type(self) -> str:
        return "memory"

    async def get(self, cache_key: str) -> Optional[CacheRecord]:
        record = self._records.get(cache_key)
        return record.model_copy() if record is not None else None

    async def put(self, record: CacheRecord) -> None:
        self._records[record.cache_key] = record.model_copy()

    async def delete(self, cache_key: str) -> None:
        self._records.pop(cache_key, None)

    async def clear(self) -> None:
        self._records.clear()

    async def count(self) -> int:
        return len(self._records)
