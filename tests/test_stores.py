"""Tests for the in-memory and SQLAlchemy stores.

Every contract test runs against both backends.
"""

# Standard library imports
import datetime
import logging
import pathlib
from typing import Generator

# Third-party imports
import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

# Local imports
from tidewise import config as config_lib
from tidewise.stores.base import (
    CacheStore,
    DuplicateRecordError,
    RegionStore,
    StoreError,
    StoreUnavailableError,
)
from tidewise.stores.memory import MemoryCacheStore, MemoryRegionStore
from tidewise.stores.sql import (
    SqlCacheStore,
    SqlRegionStore,
    create_store_engine,
    create_tables,
)
from tidewise.types import (
    BayRegion,
    CacheRecord,
    DataQuality,
    OpenRegion,
    RegionType,
    StraitRegion,
)


@pytest.fixture(params=["memory", "sql"])
def any_region_store(
    request: pytest.FixtureRequest, sql_engine: Engine
) -> RegionStore:
    if request.param == "memory":
        return MemoryRegionStore()
    return SqlRegionStore(sql_engine)


@pytest.fixture(params=["memory", "sql"])
def any_cache_store(request: pytest.FixtureRequest, sql_engine: Engine) -> CacheStore:
    if request.param == "memory":
        return MemoryCacheStore()
    return SqlCacheStore(sql_engine)


def cache_record(key: str = "35.66,139.75,2024-01-15") -> CacheRecord:
    now = datetime.datetime(2024, 1, 15, 3, 0)
    return CacheRecord(
        cache_key=key,
        tide_data='{"placeholder": true}',
        created_at=now,
        expires_at=now + datetime.timedelta(hours=24),
    )


@pytest.mark.asyncio
async def test_region_add_get_count(any_region_store: RegionStore) -> None:
    tokyo = config_lib.get("tokyo_bay")
    assert tokyo is not None

    assert await any_region_store.count() == 0
    await any_region_store.add(tokyo)
    assert await any_region_store.count() == 1
    assert await any_region_store.get("tokyo_bay") == tokyo
    assert await any_region_store.get("missing") is None


@pytest.mark.asyncio
async def test_region_kinds_round_trip(any_region_store: RegionStore) -> None:
    regions = config_lib.get_all_regions()
    await any_region_store.bulk_add(regions)

    stored = {r.region_id: r for r in await any_region_store.list_regions()}
    assert stored == {r.region_id: r for r in regions}

    assert isinstance(stored["tokyo_bay"].kind, BayRegion)
    assert stored["tokyo_bay"].kind.bay_length_km == 60.0
    assert isinstance(stored["hakodate"].kind, StraitRegion)
    assert isinstance(stored["choshi"].kind, OpenRegion)
    assert stored["choshi"].region_type == RegionType.OPEN


@pytest.mark.asyncio
async def test_region_duplicate_add_rejected(any_region_store: RegionStore) -> None:
    tokyo = config_lib.get("tokyo_bay")
    assert tokyo is not None
    await any_region_store.add(tokyo)
    with pytest.raises(DuplicateRecordError):
        await any_region_store.add(tokyo)


@pytest.mark.asyncio
async def test_region_bulk_add_is_atomic(any_region_store: RegionStore) -> None:
    tokyo = config_lib.get("tokyo_bay")
    osaka = config_lib.get("osaka_bay")
    assert tokyo is not None and osaka is not None
    await any_region_store.add(tokyo)

    with pytest.raises(DuplicateRecordError):
        await any_region_store.bulk_add([osaka, tokyo])
    assert await any_region_store.count() == 1


@pytest.mark.asyncio
async def test_region_update(any_region_store: RegionStore) -> None:
    tokyo = config_lib.get("tokyo_bay")
    assert tokyo is not None
    await any_region_store.add(tokyo)

    changed = tokyo.model_copy(
        update={
            "is_active": False,
            "kind": OpenRegion(),
            "data_quality": DataQuality.LOW,
        }
    )
    await any_region_store.update(changed)
    assert await any_region_store.get("tokyo_bay") == changed


@pytest.mark.asyncio
async def test_region_update_missing_raises(any_region_store: RegionStore) -> None:
    tokyo = config_lib.get("tokyo_bay")
    assert tokyo is not None
    with pytest.raises(StoreError):
        await any_region_store.update(tokyo)


@pytest.mark.asyncio
async def test_region_in_bounds(any_region_store: RegionStore) -> None:
    await any_region_store.bulk_add(config_lib.get_all_regions())
    kanto = await any_region_store.in_bounds(35.0, 139.0, 36.0, 140.0)
    assert {r.region_id for r in kanto} == {"tokyo_bay", "yokohama", "sagami_bay"}

    yokohama = config_lib.get("yokohama")
    assert yokohama is not None
    await any_region_store.update(yokohama.model_copy(update={"is_active": False}))
    active = await any_region_store.in_bounds(35.0, 139.0, 36.0, 140.0)
    assert "yokohama" not in {r.region_id for r in active}
    everything = await any_region_store.in_bounds(
        35.0, 139.0, 36.0, 140.0, active_only=False
    )
    assert "yokohama" in {r.region_id for r in everything}


@pytest.mark.asyncio
async def test_cache_put_get_delete(any_cache_store: CacheStore) -> None:
    record = cache_record()
    assert await any_cache_store.get(record.cache_key) is None

    await any_cache_store.put(record)
    assert await any_cache_store.get(record.cache_key) == record
    assert await any_cache_store.count() == 1

    updated = record.model_copy(update={"access_count": 3})
    await any_cache_store.put(updated)
    assert await any_cache_store.get(record.cache_key) == updated
    assert await any_cache_store.count() == 1

    await any_cache_store.delete(record.cache_key)
    assert await any_cache_store.get(record.cache_key) is None
    # Deleting a missing key is not an error
    await any_cache_store.delete(record.cache_key)


@pytest.mark.asyncio
async def test_cache_clear(any_cache_store: CacheStore) -> None:
    await any_cache_store.put(cache_record("a"))
    await any_cache_store.put(cache_record("b"))
    assert await any_cache_store.count() == 2
    await any_cache_store.clear()
    assert await any_cache_store.count() == 0


@pytest.mark.asyncio
async def test_memory_cache_returns_copies() -> None:
    store = MemoryCacheStore()
    record = cache_record()
    await store.put(record)
    fetched = await store.get(record.cache_key)
    assert fetched is not None
    fetched.access_count = 99
    again = await store.get(record.cache_key)
    assert again is not None
    assert again.access_count == 0


@pytest.fixture
def unmigrated_engine() -> Generator[Engine, None, None]:
    """A database without the tidewise tables."""
    engine = create_store_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.mark.asyncio
async def test_sql_store_maps_operational_errors(
    unmigrated_engine: Engine, caplog: pytest.LogCaptureFixture
) -> None:
    store = SqlRegionStore(unmigrated_engine)
    with caplog.at_level(logging.ERROR):
        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.count()
    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert "[sql] Database unavailable" in caplog.text


@pytest.mark.asyncio
async def test_sql_store_logs_constraint_violations(
    sql_engine: Engine, caplog: pytest.LogCaptureFixture
) -> None:
    store = SqlRegionStore(sql_engine)
    region = config_lib.get_all_regions()[0]
    await store.add(region)
    with caplog.at_level(logging.WARNING):
        with pytest.raises(DuplicateRecordError):
            await store.add(region)
    assert "[sql] Constraint violation" in caplog.text


@pytest.mark.asyncio
async def test_sql_store_shares_file_database(tmp_path: pathlib.Path) -> None:
    url = f"sqlite:///{tmp_path}/tidewise.db"
    engine = create_store_engine(url)
    create_tables(engine)
    try:
        tokyo = config_lib.get("tokyo_bay")
        assert tokyo is not None
        await SqlRegionStore(engine).add(tokyo)
        assert await SqlRegionStore(engine).get("tokyo_bay") == tokyo
    finally:
        engine.dispose()
