"""Tide calculation facade.

TideCalculationService composes the engine components into one operation:

    region lookup -> base harmonics -> regional correction
        -> level, strength and the day's extremes -> lunar classification

Naive input instants are interpreted in the configured local timezone and
every datetime in a result is expressed the same way as the input (naive
local, or aware in the input's timezone).
"""

# Standard library imports
import asyncio
import datetime
import logging
import math
from typing import List, Optional

# Third-party imports
import pandas as pd
import pytz

# Local imports
from tidewise import util
from tidewise.api_types import HealthStatus
from tidewise.config import DEFAULT_CONFIG, EngineConfig
from tidewise.core.cache import TideLRUCache
from tidewise.core.celestial import CelestialCalculator
from tidewise.core.classification import TideClassificationEngine
from tidewise.core.correction import RegionalCorrectionEngine
from tidewise.core.harmonics import HarmonicAnalysisEngine
from tidewise.core.regions import RegionalDataService
from tidewise.errors import (
    InvalidCacheKeyError,
    RegionNotFoundError,
    ServiceNotReadyError,
    TideCalculationError,
)
from tidewise.stores.base import RegionStore
from tidewise.types import (
    CacheKey,
    Coordinates,
    HarmonicConstant,
    RegionalDataRecord,
    TideEvent,
    TideEventType,
    TideInfo,
    TideState,
)

# Reference point of the coordinate-offset factors (degrees)
REFERENCE_LATITUDE = 35.0
REFERENCE_LONGITUDE = 135.0
LATITUDE_FACTOR_PER_DEGREE = 0.1
LONGITUDE_FACTOR_PER_DEGREE = 0.05
# Day of year of the vernal equinox, where the seasonal cycle starts
SEASONAL_ORIGIN_DAY = 80

# Diurnal amplitudes relative to M2 when a region has none recorded
K1_FALLBACK_RATIO = 0.3
O1_FALLBACK_RATIO = 0.25


class TideCalculationService:
    """Computes TideInfo results for a coordinate and instant.

    Construct once at startup, await initialize(), then share the instance.
    """

    def __init__(
        self,
        region_store: RegionStore,
        config: EngineConfig = DEFAULT_CONFIG,
        cache: Optional[TideLRUCache] = None,
    ) -> None:
        """Initialize the service and its components.

        Args:
            region_store: Durable store holding the calibration regions
            config: Engine configuration
            cache: Result cache used by get_tide_info (default: memory only)
        """
        self.config = config
        self.celestial = CelestialCalculator(config)
        self.harmonics = HarmonicAnalysisEngine(config)
        self.classification = TideClassificationEngine(self.celestial)
        self.regions = RegionalDataService(region_store, config)
        self.correction = RegionalCorrectionEngine(self.regions, config)
        self.cache = cache if cache is not None else TideLRUCache(config=config)

        self._region_list: List[RegionalDataRecord] = []
        self._init_lock = asyncio.Lock()
        self._ready_event = asyncio.Event()

    def log(self, message: str, level: int = logging.INFO) -> None:
        logging.log(level, f"[service] {message}")

    @property
    def ready(self) -> bool:
        return self._ready_event.is_set()

    @property
    def region_list(self) -> List[RegionalDataRecord]:
        """Active regions loaded at initialization."""
        return list(self._region_list)

    async def initialize(self) -> None:
        """Seed the regional store and mark the service ready.

        Concurrent callers wait for the first initialization; later calls
        return immediately. A partially failed seed is logged and does not
        prevent readiness.
        """
        if self.ready:
            return
        async with self._init_lock:
            if self.ready:
                return
            self.log("Initializing tide calculation service")
            result = await self.regions.initialize_database()
            if not result.success:
                self.log(
                    f"Regional seed incomplete: {result.message}", level=logging.WARNING
                )
            self._region_list = await self.regions.get_all_regions(active_only=True)
            self._ready_event.set()
            self.log(f"Service ready with {len(self._region_list)} active regions")

    async def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait for initialize() to complete.

        Args:
            timeout: Maximum time to wait in seconds, or None to wait indefinitely

        Returns:
            True if the service became ready within the timeout
        """
        try:
            await asyncio.wait_for(self._ready_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            self.log(
                f"Service not ready after {timeout} seconds", level=logging.WARNING
            )
            return False
        return True

    def _local_day(
        self, date_utc: datetime.datetime
    ) -> tuple[datetime.datetime, datetime.datetime]:
        """Local midnight of the day containing an instant, and the next midnight."""
        tz = self.config.timezone
        day = date_utc.astimezone(tz).date()
        start = tz.localize(datetime.datetime.combine(day, datetime.time()))
        end = tz.localize(
            datetime.datetime.combine(day + datetime.timedelta(days=1), datetime.time())
        )
        return start, end

    @staticmethod
    def _coordinate_factors(coordinates: Coordinates) -> tuple[float, float]:
        lat_factor = 1 + (coordinates.latitude - REFERENCE_LATITUDE) * (
            LATITUDE_FACTOR_PER_DEGREE
        )
        lon_factor = 1 + (coordinates.longitude - REFERENCE_LONGITUDE) * (
            LONGITUDE_FACTOR_PER_DEGREE
        )
        # Linear in the offset; floored so amplitudes stay non-negative
        return max(0.0, lat_factor), max(0.0, lon_factor)

    @staticmethod
    def _seasonal_factors(
        coordinates: Coordinates, day_of_year: int
    ) -> dict[str, float]:
        """Per-constituent seasonal modulation, strongest at high latitude."""
        angle = 2 * math.pi * (day_of_year - SEASONAL_ORIGIN_DAY) / 365.0
        effect = abs(coordinates.latitude) / 90.0
        return {
            "M2": 1 + math.cos(angle) * 0.4 * effect,
            "S2": 1 + math.cos(angle + math.pi / 4) * 0.5 * effect,
            "K1": 1 + math.sin(angle) * 0.6 * effect,
            "O1": 1 + math.sin(angle + math.pi / 2) * 0.45 * effect,
        }

    def build_base_harmonics(
        self,
        region: RegionalDataRecord,
        coordinates: Coordinates,
        date: datetime.datetime,
    ) -> List[HarmonicConstant]:
        """M2, S2, K1 and O1 constants for a coordinate from a region's calibration.

        Args:
            region: Calibration region
            coordinates: Location the constants are built for
            date: Instant whose local day of year drives the seasonal factors

        Returns:
            Uncorrected harmonic constants
        """
        lat_factor, lon_factor = self._coordinate_factors(coordinates)
        local_date = util.to_utc(date, self.config.timezone).astimezone(
            self.config.timezone
        )
        seasonal = self._seasonal_factors(coordinates, util.day_of_year(local_date))

        k1_amplitude = (
            region.k1_amplitude
            if region.k1_amplitude is not None
            else region.m2_amplitude * K1_FALLBACK_RATIO
        )
        k1_phase = (
            region.k1_phase
            if region.k1_phase is not None
            else lat_factor * 80 + lon_factor * 25
        )
        o1_amplitude = (
            region.o1_amplitude
            if region.o1_amplitude is not None
            else region.m2_amplitude * O1_FALLBACK_RATIO
        )
        o1_phase = (
            region.o1_phase
            if region.o1_phase is not None
            else lon_factor * 120 + lat_factor * 35
        )

        return [
            HarmonicConstant(
                constituent="M2",
                amplitude=region.m2_amplitude * lat_factor * seasonal["M2"],
                phase=region.m2_phase + lon_factor * 15,
            ),
            HarmonicConstant(
                constituent="S2",
                amplitude=region.s2_amplitude * lon_factor * seasonal["S2"],
                phase=region.s2_phase + lat_factor * 20,
            ),
            HarmonicConstant(
                constituent="K1",
                amplitude=k1_amplitude * lat_factor * seasonal["K1"],
                phase=k1_phase,
            ),
            HarmonicConstant(
                constituent="O1",
                amplitude=o1_amplitude * lon_factor * seasonal["O1"],
                phase=o1_phase,
            ),
        ]

    def _current_state(
        self, date_utc: datetime.datetime, next_event: Optional[TideEvent]
    ) -> TideState:
        if next_event is None:
            return TideState.RISING
        until_next = util.to_utc(next_event.time) - date_utc
        if until_next <= datetime.timedelta(minutes=self.config.event_proximity_minutes):
            return (
                TideState.HIGH
                if next_event.type == TideEventType.HIGH
                else TideState.LOW
            )
        if next_event.type == TideEventType.HIGH:
            return TideState.RISING
        return TideState.FALLING

    def _require_ready(self) -> None:
        if not self.ready:
            raise ServiceNotReadyError(
                "Tide calculation service is not initialized; await initialize() first"
            )

    async def calculate_tide_info(
        self, coordinates: Coordinates, date: datetime.datetime
    ) -> TideInfo:
        """Tide conditions at a coordinate and instant.

        Args:
            coordinates: Location of interest
            date: Instant of interest; naive values are local time

        Returns:
            The TideInfo result

        Raises:
            InvalidCoordinatesError: If the coordinates are out of range
            InvalidDateError: If date is not a valid instant
            ServiceNotReadyError: If initialize() has not completed
            TideCalculationError: For any failure inside the pipeline; the
                original exception is the cause
        """
        util.validate_coordinates(coordinates.latitude, coordinates.longitude)
        date_utc = util.to_utc(date, self.config.timezone)
        self._require_ready()

        try:
            region = await self.regions.get_best_region_for_coordinates(coordinates)
            if region is None:
                raise RegionNotFoundError(
                    f"No calibration region available for "
                    f"({coordinates.latitude}, {coordinates.longitude})"
                )

            base = self.build_base_harmonics(region, coordinates, date_utc)
            constants = await self.correction.apply_correction_factors(
                coordinates, base
            )

            level = self.harmonics.calculate_tide_level(date_utc, constants)
            strength = self.harmonics.calculate_tide_strength(date_utc, constants)
            moon = self.celestial.calculate_moon_phase(date_utc)
            tide_type = self.classification.classify_tide_type(moon)
            accuracy = await self.correction.assess_accuracy(coordinates)

            day_start, day_end = self._local_day(date_utc)
            day_events = self.harmonics.find_tidal_extremes(
                day_start, day_end, constants
            )
            next_event = next(
                (e for e in day_events if util.to_utc(e.time) > date_utc), None
            )
            state = self._current_state(date_utc, next_event)

            def localize(event: TideEvent) -> TideEvent:
                return event.model_copy(
                    update={
                        "time": util.from_utc(
                            util.to_utc(event.time), date, self.config.timezone
                        )
                    }
                )

            now = pytz.utc.localize(util.utc_now())
            return TideInfo(
                location=coordinates,
                date=date,
                current_state=state,
                current_level=round(level, 1),
                tide_type=tide_type,
                tide_strength=strength,
                events=tuple(localize(e) for e in day_events),
                next_event=localize(next_event) if next_event is not None else None,
                calculated_at=util.from_utc(now, date, self.config.timezone),
                accuracy=accuracy,
            )
        except Exception as e:
            self.log(
                f"Tide calculation failed for ({coordinates.latitude}, "
                f"{coordinates.longitude}) at {date.isoformat()}: {e}",
                level=logging.ERROR,
            )
            raise TideCalculationError(f"Tide calculation failed: {e}") from e

    def _cache_key(self, coordinates: Coordinates, date: datetime.datetime) -> CacheKey:
        local_day = util.to_utc(date, self.config.timezone).astimezone(
            self.config.timezone
        )
        return CacheKey(
            latitude=coordinates.latitude,
            longitude=coordinates.longitude,
            date=local_day.date().isoformat(),
        )

    async def get_tide_info(
        self, coordinates: Coordinates, date: datetime.datetime
    ) -> TideInfo:
        """Cached variant of calculate_tide_info.

        Results are cached per rounded coordinate and local calendar day, so a
        hit returns the result computed for the first instant requested that
        day. Use calculate_tide_info for an exact instant.
        """
        util.validate_coordinates(coordinates.latitude, coordinates.longitude)
        key = self._cache_key(coordinates, date)
        try:
            cached = await self.cache.get(key)
        except InvalidCacheKeyError as e:
            self.log(f"Not caching {key.date}: {e}", logging.WARNING)
            return await self.calculate_tide_info(coordinates, date)
        if cached is not None:
            return cached
        info = await self.calculate_tide_info(coordinates, date)
        await self.cache.set(key, info)
        return info

    async def calculate_tide_curve(
        self,
        coordinates: Coordinates,
        date: datetime.datetime,
        interval_minutes: Optional[int] = None,
    ) -> pd.DataFrame:
        """Sampled water levels over the local day containing date.

        Returns:
            DataFrame indexed by naive local time with a ``level`` column (cm)

        Raises:
            ServiceNotReadyError: If initialize() has not completed
            RegionNotFoundError: If no calibration region exists
        """
        util.validate_coordinates(coordinates.latitude, coordinates.longitude)
        date_utc = util.to_utc(date, self.config.timezone)
        self._require_ready()

        region = await self.regions.get_best_region_for_coordinates(coordinates)
        if region is None:
            raise RegionNotFoundError(
                f"No calibration region available for "
                f"({coordinates.latitude}, {coordinates.longitude})"
            )
        constants = await self.correction.apply_correction_factors(
            coordinates, self.build_base_harmonics(region, coordinates, date_utc)
        )
        day_start, day_end = self._local_day(date_utc)
        df = self.harmonics.calculate_tide_curve(
            day_start, day_end, constants, interval_minutes
        )
        df.index = (
            df.index.tz_localize("UTC")
            .tz_convert(self.config.timezone)
            .tz_localize(None)
            .rename("time")
        )
        return df

    def health_check(self) -> HealthStatus:
        """Presence of each component; nothing is exercised."""
        return HealthStatus(
            ready=self.ready,
            components={
                "celestial": self.celestial is not None,
                "harmonics": self.harmonics is not None,
                "classification": self.classification is not None,
                "regions": self.regions is not None,
                "correction": self.correction is not None,
                "cache": self.cache is not None,
            },
        )
