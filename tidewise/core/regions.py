"""Regional calibration data and nearest-region search.

RegionalDataService owns the regional store: it seeds it from the built-in
dataset, answers nearest-neighbor and bounding-box queries, and audits the
stored data. Query failures at the store boundary are logged and yield
empty results so that a store outage degrades the caller instead of
failing it.
"""

# Standard library imports
import collections
import logging
from typing import Dict, List, Optional, Sequence

# Local imports
from tidewise import config as config_lib
from tidewise import util
from tidewise.api_types import (
    DatabaseStats,
    DatabaseStatus,
    InitializationResult,
    IntegrityReport,
    NearestRegion,
)
from tidewise.config import DEFAULT_CONFIG, EngineConfig
from tidewise.stores.base import RegionStore, StoreError
from tidewise.types import Coordinates, DataQuality, RegionalDataRecord

# Plausible ranges of stored base amplitudes (cm)
MAX_M2_AMPLITUDE_CM = 500.0
MAX_S2_AMPLITUDE_CM = 250.0


class RegionalDataService:
    """Seeds and queries the regional calibration store."""

    def __init__(
        self,
        store: RegionStore,
        config: EngineConfig = DEFAULT_CONFIG,
        seed: Optional[Sequence[RegionalDataRecord]] = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Durable region store
            config: Engine configuration (search defaults)
            seed: Records used to seed the store (default: the built-in dataset)
        """
        self.store = store
        self.config = config
        self.seed = list(seed) if seed is not None else config_lib.get_all_regions()

    def log(self, message: str, level: int = logging.INFO) -> None:
        logging.log(level, f"[regions] {message}")

    async def initialize_database(self) -> InitializationResult:
        """Load the seed dataset into the store.

        An empty store receives a single bulk insert, retried record by
        record if it fails. Otherwise each seed record updates the stored
        record with the same id, or is inserted if there is none. Stored
        creation times and activation flags are preserved on update.

        Returns:
            InitializationResult with insert/update counts and per-record errors
        """
        now = util.utc_now()
        inserted = 0
        updated = 0
        errors: List[str] = []

        try:
            count = await self.store.count()
        except StoreError as e:
            self.log(f"Region store unavailable: {e}", level=logging.ERROR)
            return InitializationResult(
                success=False,
                message=f"Region store unavailable: {e}",
                errors=[str(e)],
            )

        if count == 0:
            records = [
                r.model_copy(update={"created_at": now, "updated_at": now})
                for r in self.seed
            ]
            try:
                await self.store.bulk_add(records)
                inserted = len(records)
            except StoreError as e:
                self.log(
                    f"Bulk insert failed ({e}), retrying record by record",
                    level=logging.WARNING,
                )
                for record in records:
                    try:
                        await self.store.add(record)
                        inserted += 1
                    except StoreError as record_error:
                        errors.append(f"{record.region_id}: {record_error}")
        else:
            for seed_record in self.seed:
                try:
                    existing = await self.store.get(seed_record.region_id)
                    if existing is None:
                        await self.store.add(
                            seed_record.model_copy(
                                update={"created_at": now, "updated_at": now}
                            )
                        )
                        inserted += 1
                    else:
                        await self.store.update(
                            seed_record.model_copy(
                                update={
                                    "created_at": existing.created_at or now,
                                    "updated_at": now,
                                    "is_active": existing.is_active,
                                }
                            )
                        )
                        updated += 1
                except StoreError as e:
                    errors.append(f"{seed_record.region_id}: {e}")

        for error in errors:
            self.log(f"Seed error: {error}", level=logging.ERROR)

        processed = inserted + updated
        success = processed > 0 and not errors
        message = (
            f"Inserted {inserted} and updated {updated} regions"
            + (f" with {len(errors)} errors" if errors else "")
        )
        self.log(message, level=logging.INFO if success else logging.WARNING)
        return InitializationResult(
            success=success,
            message=message,
            inserted=inserted,
            updated=updated,
            errors=errors,
        )

    async def _search_candidates(
        self, coordinates: Coordinates, max_distance_km: float, active_only: bool
    ) -> List[RegionalDataRecord]:
        south, west, north, east = util.bounding_box(
            coordinates.latitude, coordinates.longitude, max_distance_km
        )
        # A clipped box would miss points across the antimeridian or a pole
        if south <= -90 or north >= 90 or west <= -180 or east >= 180:
            return await self.store.list_regions()
        return await self.store.in_bounds(
            south, west, north, east, active_only=active_only
        )

    async def find_nearest_stations(
        self,
        coordinates: Coordinates,
        limit: Optional[int] = None,
        max_distance_km: Optional[float] = None,
        data_quality: Optional[DataQuality] = None,
        active_only: bool = True,
    ) -> List[NearestRegion]:
        """Regions nearest to a coordinate, closest first.

        Args:
            coordinates: Query point
            limit: Maximum number of results (default from config)
            max_distance_km: Search radius (default from config)
            data_quality: Only return regions of this quality (None: any)
            active_only: Skip deactivated regions

        Returns:
            Matching regions with distances, or an empty list if none qualify
            or the store cannot be queried

        Raises:
            InvalidCoordinatesError: If the coordinates are out of range
        """
        util.validate_coordinates(coordinates.latitude, coordinates.longitude)
        if limit is None:
            limit = self.config.nearest_station_limit
        if max_distance_km is None:
            max_distance_km = self.config.nearest_station_max_distance_km

        try:
            candidates = await self._search_candidates(
                coordinates, max_distance_km, active_only
            )
        except StoreError as e:
            self.log(f"Nearest region search failed: {e}", level=logging.WARNING)
            return []

        results = []
        for region in candidates:
            if active_only and not region.is_active:
                continue
            if data_quality is not None and region.data_quality != data_quality:
                continue
            distance = util.haversine_distance(
                coordinates.latitude,
                coordinates.longitude,
                region.latitude,
                region.longitude,
            )
            if distance <= max_distance_km:
                bearing = util.initial_bearing(
                    coordinates.latitude,
                    coordinates.longitude,
                    region.latitude,
                    region.longitude,
                )
                results.append(
                    NearestRegion(region=region, distance_km=distance, bearing_deg=bearing)
                )

        results.sort(key=lambda n: n.distance_km)
        return results[:limit]

    async def get_best_region_for_coordinates(
        self, coordinates: Coordinates
    ) -> Optional[RegionalDataRecord]:
        """Closest usable region, searching wider if none is nearby.

        Returns:
            The nearest active region, or None only if the store has none at all
        """
        nearest = await self.find_nearest_stations(
            coordinates,
            limit=3,
            max_distance_km=self.config.best_region_max_distance_km,
        )
        if not nearest:
            nearest = await self.find_nearest_stations(
                coordinates,
                limit=1,
                max_distance_km=self.config.best_region_fallback_distance_km,
            )
        return nearest[0].region if nearest else None

    async def get_regions_in_bounds(
        self, north_east: Coordinates, south_west: Coordinates
    ) -> List[RegionalDataRecord]:
        """Active regions inside a latitude/longitude rectangle."""
        try:
            return await self.store.in_bounds(
                south_west.latitude,
                south_west.longitude,
                north_east.latitude,
                north_east.longitude,
                active_only=True,
            )
        except StoreError as e:
            self.log(f"Bounding box query failed: {e}", level=logging.WARNING)
            return []

    async def get_region_by_id(self, region_id: str) -> Optional[RegionalDataRecord]:
        try:
            return await self.store.get(region_id)
        except StoreError as e:
            self.log(f"Lookup of {region_id} failed: {e}", level=logging.WARNING)
            return None

    async def get_all_regions(self, active_only: bool = False) -> List[RegionalDataRecord]:
        try:
            regions = await self.store.list_regions()
        except StoreError as e:
            self.log(f"Listing regions failed: {e}", level=logging.WARNING)
            return []
        return [r for r in regions if r.is_active or not active_only]

    async def get_region_count_by_quality(self) -> Dict[DataQuality, int]:
        counts = {quality: 0 for quality in DataQuality}
        for region in await self.get_all_regions(active_only=True):
            counts[region.data_quality] += 1
        return counts

    async def get_database_stats(self) -> DatabaseStats:
        regions = await self.get_all_regions()
        counts = {quality: 0 for quality in DataQuality}
        for region in regions:
            if region.is_active:
                counts[region.data_quality] += 1
        timestamps = [r.updated_at for r in regions if r.updated_at is not None]
        return DatabaseStats(
            seed_region_count=len(self.seed),
            stored_region_count=len(regions),
            quality_counts=counts,
            last_updated=max(timestamps) if timestamps else None,
        )

    async def get_database_status(self) -> DatabaseStatus:
        regions = await self.get_all_regions()
        active = [r for r in regions if r.is_active]
        return DatabaseStatus(
            total_regions=len(regions),
            active_regions=len(active),
            high_quality_regions=sum(
                1 for r in active if r.data_quality == DataQuality.HIGH
            ),
            is_initialized=len(regions) > 0,
        )

    async def deactivate_region(self, region_id: str) -> bool:
        """Mark a region inactive; records are never deleted.

        Returns:
            True if the region existed

        Raises:
            StoreError: If the store rejects the update
        """
        region = await self.store.get(region_id)
        if region is None:
            return False
        await self.store.update(
            region.model_copy(update={"is_active": False, "updated_at": util.utc_now()})
        )
        self.log(f"Deactivated region {region_id}")
        return True

    async def check_database_integrity(self) -> IntegrityReport:
        """Audit the stored regions without modifying them."""
        issues: List[str] = []
        recommendations: List[str] = []

        try:
            regions = await self.store.list_regions()
        except StoreError as e:
            return IntegrityReport(
                is_valid=False,
                issues=[f"Region store unavailable: {e}"],
                recommendations=["Check the database connection"],
            )

        if not regions:
            return IntegrityReport(
                is_valid=False,
                issues=["Region store is empty"],
                recommendations=["Run initialize_database() to load the built-in dataset"],
            )

        if len(regions) < len(self.seed):
            issues.append(
                f"Only {len(regions)} of {len(self.seed)} built-in regions are stored"
            )
            recommendations.append("Run initialize_database() to restore missing regions")

        duplicates = [
            region_id
            for region_id, n in collections.Counter(r.region_id for r in regions).items()
            if n > 1
        ]
        if duplicates:
            issues.append(f"Duplicate region ids: {', '.join(sorted(duplicates))}")

        for region in regions:
            if not (-90 <= region.latitude <= 90 and -180 <= region.longitude <= 180):
                issues.append(
                    f"{region.region_id}: invalid coordinates "
                    f"({region.latitude}, {region.longitude})"
                )
            if not 0 <= region.m2_amplitude <= MAX_M2_AMPLITUDE_CM:
                issues.append(
                    f"{region.region_id}: M2 amplitude {region.m2_amplitude} cm out of range"
                )
            if not 0 <= region.s2_amplitude <= MAX_S2_AMPLITUDE_CM:
                issues.append(
                    f"{region.region_id}: S2 amplitude {region.s2_amplitude} cm out of range"
                )

        inactive = sum(1 for r in regions if not r.is_active)
        if inactive:
            recommendations.append(f"{inactive} regions are inactive")

        return IntegrityReport(
            is_valid=not issues, issues=issues, recommendations=recommendations
        )
