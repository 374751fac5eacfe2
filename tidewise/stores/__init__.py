"""Durable storage backends for regional data and cached results."""

from tidewise.stores.base import CacheStore, RegionStore, StoreError
from tidewise.stores.memory import MemoryCacheStore, MemoryRegionStore

__all__ = [
    "CacheStore",
    "MemoryCacheStore",
    "MemoryRegionStore",
    "RegionStore",
    "StoreError",
]
