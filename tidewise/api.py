"""API handlers for the tidewise service.

This module contains FastAPI route handlers that expose the tide calculation
service to the surrounding application. The service instance lives in
app.state.tide_service.
"""

# Standard library imports
import datetime
import logging
from typing import List, Optional

# Third-party imports
import fastapi
from fastapi import HTTPException, Query

# Local imports
from tidewise.api_types import CacheStats, HealthStatus, IntegrityReport, NearestRegion
from tidewise.config import DEFAULT_CONFIG, EngineConfig
from tidewise.core.cache import TideLRUCache
from tidewise.core.service import TideCalculationService
from tidewise.errors import (
    InvalidCoordinatesError,
    InvalidDateError,
    RegionNotFoundError,
    ServiceNotReadyError,
    TideCalculationError,
)
from tidewise.stores.base import CacheStore, RegionStore
from tidewise.types import Coordinates, RegionalDataRecord, TideInfo


async def initialize_tide_service(
    app: fastapi.FastAPI,
    region_store: RegionStore,
    cache_store: Optional[CacheStore] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> TideCalculationService:
    """Create the tide service, initialize it and attach it to the app.

    This can be used by both the main application and tests.

    Args:
        app: FastAPI application instance
        region_store: Durable store for calibration regions
        cache_store: Optional durable store backing the result cache
        config: Engine configuration

    Returns:
        The initialized service
    """
    cache = TideLRUCache(store=cache_store, config=config)
    service = TideCalculationService(region_store, config=config, cache=cache)
    app.state.tide_service = service
    await service.initialize()
    return service


def register_routes(app: fastapi.FastAPI) -> None:
    """Register API routes with the FastAPI application.

    Args:
        app: The FastAPI application
    """

    def get_service() -> TideCalculationService:
        service: Optional[TideCalculationService] = getattr(
            app.state, "tide_service", None
        )
        if service is None:
            logging.warning("[api] Tide service not configured")
            raise HTTPException(
                status_code=503, detail="Service not ready - not configured"
            )
        return service

    def coordinates_or_422(lat: float, lon: float) -> Coordinates:
        try:
            return Coordinates(latitude=lat, longitude=lon)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    @app.get("/api/tides", response_model=TideInfo)
    async def tides(
        lat: float = Query(..., description="Latitude (degrees)"),
        lon: float = Query(..., description="Longitude (degrees)"),
        date: Optional[datetime.datetime] = Query(
            None, description="Instant of interest; naive values are local time"
        ),
        cached: bool = Query(
            False, description="Serve the cached result for the day if available"
        ),
    ) -> TideInfo:
        """Tide conditions at a coordinate and instant.

        Raises:
            HTTPException: 422 for invalid input, 503 while the service is not
                ready, 404 when no calibration region exists, 500 otherwise
        """
        logging.info(f"[api] Processing tides request for ({lat}, {lon}) at {date}")
        service = get_service()
        coordinates = coordinates_or_422(lat, lon)
        if date is None:
            date = datetime.datetime.now(service.config.timezone)

        try:
            if cached:
                return await service.get_tide_info(coordinates, date)
            return await service.calculate_tide_info(coordinates, date)
        except (InvalidCoordinatesError, InvalidDateError) as e:
            raise HTTPException(status_code=422, detail=str(e))
        except ServiceNotReadyError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except TideCalculationError as e:
            if isinstance(e.__cause__, RegionNotFoundError):
                raise HTTPException(status_code=404, detail=str(e.__cause__))
            logging.error(f"[api] Tide calculation failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    @app.get("/api/regions/nearest", response_model=List[NearestRegion])
    async def nearest_regions(
        lat: float = Query(...),
        lon: float = Query(...),
        limit: int = Query(10, gt=0, le=100),
        max_distance: float = Query(200.0, gt=0, description="Search radius (km)"),
    ) -> List[NearestRegion]:
        """Calibration regions closest to a coordinate."""
        logging.info(f"[api] Processing nearest regions request for ({lat}, {lon})")
        service = get_service()
        coordinates = coordinates_or_422(lat, lon)
        return await service.regions.find_nearest_stations(
            coordinates, limit=limit, max_distance_km=max_distance
        )

    @app.get("/api/regions/integrity", response_model=IntegrityReport)
    async def region_integrity() -> IntegrityReport:
        logging.info("[api] Processing region integrity request")
        return await get_service().regions.check_database_integrity()

    @app.get("/api/regions/{region_id}", response_model=RegionalDataRecord)
    async def region_by_id(region_id: str) -> RegionalDataRecord:
        """A calibration region by id.

        Raises:
            HTTPException: If the region does not exist
        """
        region = await get_service().regions.get_region_by_id(region_id)
        if region is None:
            logging.warning(f"[api] Bad region request: {region_id}")
            raise HTTPException(
                status_code=404, detail=f"Region '{region_id}' not found"
            )
        return region

    @app.get("/api/cache/stats", response_model=CacheStats)
    async def cache_stats() -> CacheStats:
        return get_service().cache.get_stats()

    @app.get("/api/healthy", response_model=HealthStatus)
    async def healthy_status() -> HealthStatus:
        """API endpoint for service health check (used by Cloud Run).

        Returns:
            Presence of each service component
            Status code 200 if every component is present, 503 otherwise
        """
        health = get_service().health_check()
        if not all(health.components.values()):
            missing = [name for name, ok in health.components.items() if not ok]
            logging.warning(f"[/api/healthy] Missing components: {missing}")
            raise HTTPException(status_code=503, detail="Service not healthy")
        return health

    @app.get("/api/ready", status_code=200)
    async def ready_status() -> bool:
        """API endpoint that returns whether the service has initialized.

        Returns:
            True, with status code 200 if ready, 503 if not ready
        """
        if not get_service().ready:
            logging.warning("[/api/ready] Service not initialized. Raising 503.")
            raise HTTPException(
                status_code=503, detail="Service not ready - initializing"
            )
        return True
