"""Configuration for pytest.

Shared fixtures: seeded region stores (in-memory and SQLite) and an
initialized tide calculation service.
"""

# Standard library imports
from typing import Generator

# Third-party imports
import pytest
import pytest_asyncio
from sqlalchemy.engine import Engine

# Local imports
from tidewise.core.regions import RegionalDataService
from tidewise.core.service import TideCalculationService
from tidewise.stores.memory import MemoryCacheStore, MemoryRegionStore
from tidewise.stores.sql import create_store_engine, create_tables


@pytest.fixture
def region_store() -> MemoryRegionStore:
    """An empty in-memory region store."""
    return MemoryRegionStore()


@pytest.fixture
def cache_store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest_asyncio.fixture
async def seeded_region_store(region_store: MemoryRegionStore) -> MemoryRegionStore:
    """An in-memory region store loaded with the built-in dataset."""
    result = await RegionalDataService(region_store).initialize_database()
    assert result.success, result.message
    return region_store


@pytest.fixture
def regional_service(seeded_region_store: MemoryRegionStore) -> RegionalDataService:
    return RegionalDataService(seeded_region_store)


@pytest.fixture
def sql_engine() -> Generator[Engine, None, None]:
    """A fresh in-memory SQLite database with the tidewise tables."""
    engine = create_store_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest_asyncio.fixture
async def tide_service(region_store: MemoryRegionStore) -> TideCalculationService:
    """An initialized tide calculation service over an in-memory store."""
    service = TideCalculationService(region_store)
    await service.initialize()
    return service
