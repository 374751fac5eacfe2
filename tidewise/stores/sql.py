"""SQLAlchemy-backed stores.

Two tables are used: ``regions`` (keyed by region_id) and ``tide_cache``
(keyed by the canonical cache key string). SQLAlchemy sessions are
blocking, so every operation runs in a worker thread via asyncio.to_thread.
"""

# Standard library imports
import asyncio
import logging
from typing import Any, Callable, Optional, Sequence, TypeVar

# Third-party imports
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Local imports
from tidewise.stores.base import (
    BaseStore,
    CacheStore,
    DuplicateRecordError,
    RegionStore,
    StoreError,
    StoreUnavailableError,
)
from tidewise.types import (
    BayRegion,
    CacheRecord,
    DataQuality,
    OpenRegion,
    RegionalDataRecord,
    RegionType,
    StraitRegion,
)

Base = declarative_base()

T = TypeVar("T")


class RegionRow(Base):  # type: ignore[valid-type,misc]
    """Regional calibration record."""

    __tablename__ = "regions"

    region_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    latitude = Column(Float, nullable=False, index=True)
    longitude = Column(Float, nullable=False, index=True)
    m2_amplitude = Column(Float, nullable=False)
    m2_phase = Column(Float, nullable=False)
    s2_amplitude = Column(Float, nullable=False)
    s2_phase = Column(Float, nullable=False)
    k1_amplitude = Column(Float, nullable=True)
    k1_phase = Column(Float, nullable=True)
    o1_amplitude = Column(Float, nullable=True)
    o1_phase = Column(Float, nullable=True)
    depth_m = Column(Float, nullable=True)
    region_type = Column(String, nullable=False, default=RegionType.OPEN.value)
    bay_length_km = Column(Float, nullable=True)
    distance_from_ocean_km = Column(Float, nullable=True)
    data_quality = Column(String, nullable=False, default=DataQuality.MEDIUM.value)
    coverage_radius_km = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=True)


class CacheRow(Base):  # type: ignore[valid-type,misc]
    """Serialized tide result."""

    __tablename__ = "tide_cache"

    cache_key = Column(String, primary_key=True)
    tide_data = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    access_count = Column(Integer, nullable=False, default=0)
    last_accessed = Column(DateTime, nullable=True)


_SCALAR_REGION_FIELDS = [
    "region_id",
    "name",
    "latitude",
    "longitude",
    "m2_amplitude",
    "m2_phase",
    "s2_amplitude",
    "s2_phase",
    "k1_amplitude",
    "k1_phase",
    "o1_amplitude",
    "o1_phase",
    "depth_m",
    "coverage_radius_km",
    "is_active",
    "created_at",
    "updated_at",
]


def _region_to_row(record: RegionalDataRecord) -> RegionRow:
    row = RegionRow(**{f: getattr(record, f) for f in _SCALAR_REGION_FIELDS})
    row.region_type = record.region_type.value
    row.data_quality = record.data_quality.value
    row.bay_length_km = None
    row.distance_from_ocean_km = None
    if isinstance(record.kind, BayRegion):
        row.bay_length_km = record.kind.bay_length_km
    elif isinstance(record.kind, StraitRegion):
        row.distance_from_ocean_km = record.kind.distance_from_ocean_km
    return row


def _row_to_region(row: RegionRow) -> RegionalDataRecord:
    """Build a record, deciding the region kind from the stored columns.

    Raises:
        StoreError: If a bay or strait row lacks its geometry column
    """
    kind: OpenRegion | BayRegion | StraitRegion
    match RegionType(row.region_type):
        case RegionType.BAY:
            if row.bay_length_km is None:
                raise StoreError(f"Bay region {row.region_id} has no bay length")
            kind = BayRegion(bay_length_km=row.bay_length_km)
        case RegionType.STRAIT:
            if row.distance_from_ocean_km is None:
                raise StoreError(
                    f"Strait region {row.region_id} has no distance from ocean"
                )
            kind = StraitRegion(distance_from_ocean_km=row.distance_from_ocean_km)
        case _:
            kind = OpenRegion()

    values: dict[str, Any] = {f: getattr(row, f) for f in _SCALAR_REGION_FIELDS}
    return RegionalDataRecord(
        **values, kind=kind, data_quality=DataQuality(row.data_quality)
    )


def _row_to_cache_record(row: CacheRow) -> CacheRecord:
    return CacheRecord(
        cache_key=row.cache_key,
        tide_data=row.tide_data,
        created_at=row.created_at,
        expires_at=row.expires_at,
        access_count=row.access_count,
        last_accessed=row.last_accessed,
    )


def create_store_engine(url: str) -> Engine:
    """Create an engine suitable for use from worker threads.

    In-memory SQLite databases share one connection so that every thread
    sees the same data.
    """
    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(engine)


class _SqlStore(BaseStore):
    """Session handling shared by the SQL stores."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False
        )

    @property
    def store_type(self) -> str:
        return "sql"

    def _execute(self, operation: Callable[[Session], T]) -> T:
        session = self._session_factory()
        try:
            result = operation(session)
            session.commit()
            return result
        except IntegrityError as e:
            session.rollback()
            self.log(f"Constraint violation: {e.orig}", logging.WARNING)
            raise DuplicateRecordError(f"Constraint violation: {e.orig}") from e
        except OperationalError as e:
            session.rollback()
            self.log(f"Database unavailable: {e.orig}", logging.ERROR)
            raise StoreUnavailableError(f"Database unavailable: {e.orig}") from e
        except SQLAlchemyError as e:
            session.rollback()
            self.log(f"Database error: {e}", logging.ERROR)
            raise StoreError(f"Database error: {e}") from e
        finally:
            session.close()

    async def _run(self, operation: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._execute, operation)


class SqlRegionStore(_SqlStore, RegionStore):
    async def count(self) -> int:
        return await self._run(
            lambda s: int(s.scalar(select(func.count()).select_from(RegionRow)) or 0)
        )

    async def get(self, region_id: str) -> Optional[RegionalDataRecord]:
        def operation(session: Session) -> Optional[RegionalDataRecord]:
            row = session.get(RegionRow, region_id)
            return _row_to_region(row) if row is not None else None

        return await self._run(operation)

    async def list_regions(self) -> list[RegionalDataRecord]:
        def operation(session: Session) -> list[RegionalDataRecord]:
            rows = session.scalars(select(RegionRow).order_by(RegionRow.region_id))
            return [_row_to_region(row) for row in rows]

        return await self._run(operation)

    async def add(self, record: RegionalDataRecord) -> None:
        await self._run(lambda s: s.add(_region_to_row(record)))

    async def bulk_add(self, records: Sequence[RegionalDataRecord]) -> None:
        await self._run(lambda s: s.add_all([_region_to_row(r) for r in records]))

    async def update(self, record: RegionalDataRecord) -> None:
        def operation(session: Session) -> None:
            if session.get(RegionRow, record.region_id) is None:
                raise StoreError(f"Region {record.region_id} does not exist")
            session.merge(_region_to_row(record))

        await self._run(operation)

    async def in_bounds(
        self,
        south: float,
        west: float,
        north: float,
        east: float,
        active_only: bool = True,
    ) -> list[RegionalDataRecord]:
        def operation(session: Session) -> list[RegionalDataRecord]:
            query = select(RegionRow).where(
                RegionRow.latitude.between(south, north),
                RegionRow.longitude.between(west, east),
            )
            if active_only:
                query = query.where(RegionRow.is_active.is_(True))
            return [_row_to_region(row) for row in session.scalars(query)]

        return await self._run(operation)


class SqlCacheStore(_SqlStore, CacheStore):
    async def get(self, cache_key: str) -> Optional[CacheRecord]:
        def operation(session: Session) -> Optional[CacheRecord]:
            row = session.get(CacheRow, cache_key)
            return _row_to_cache_record(row) if row is not None else None

        return await self._run(operation)

    async def put(self, record: CacheRecord) -> None:
        await self._run(lambda s: s.merge(CacheRow(**record.model_dump())))

    async def delete(self, cache_key: str) -> None:
        def operation(session: Session) -> None:
            row = session.get(CacheRow, cache_key)
            if row is not None:
                session.delete(row)

        await self._run(operation)

    async def clear(self) -> None:
        await self._run(lambda s: s.execute(delete(CacheRow)))

    async def count(self) -> int:
        return await self._run(
            lambda s: int(s.scalar(select(func.count()).select_from(CacheRow)) or 0)
        )
