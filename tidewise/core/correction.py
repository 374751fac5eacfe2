"""Regional correction of harmonic constants.

Generic constants are adapted to a coordinate using the nearest calibrated
region: amplitudes are scaled and phases shifted against the region's
calibration, then optional physical models are applied:

- Shallow water: nonlinear overtones M4 and MS4 grow as depth decreases.
- Resonance: bays whose natural (quarter-wave) period is close to a
  constituent's period amplify it.
- Strait propagation: the tide wave is delayed and attenuated as it travels
  up a channel.

Finally every constituent present in the input is clamped to between half
and twice its input amplitude. Synthesized overtones are exempt.
"""

# Standard library imports
import logging
import math
from typing import Annotated, List, Optional, Sequence

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field

# Local imports
from tidewise import util
from tidewise.config import DEFAULT_CONFIG, EngineConfig
from tidewise.core import constituents
from tidewise.core.constituents import ConstituentKind
from tidewise.core.regions import RegionalDataService
from tidewise.errors import InvalidHarmonicsError
from tidewise.types import (
    Accuracy,
    BayRegion,
    Coordinates,
    DataQuality,
    HarmonicConstant,
    RegionalDataRecord,
    StraitRegion,
)

GRAVITY = 9.81

# Used when a region has no recorded depth (m)
DEFAULT_DEPTH_M = 20.0

SHALLOW_M4_DEPTH_M = 50.0
SHALLOW_MS4_DEPTH_M = 30.0
M4_AMPLITUDE_RATIO = 0.10
MS4_AMPLITUDE_RATIO = 0.05

RESONANCE_BASELINE = 1.2

# Friction coefficient for strait attenuation (per m of depth, per km)
STRAIT_FRICTION = 0.01

MIN_AMPLITUDE_RATIO = 0.5
MAX_AMPLITUDE_RATIO = 2.0


class CorrectionOptions(BaseModel, frozen=True):
    """Switches for the correction pipeline."""

    model_config = ConfigDict(extra="forbid")

    require_high_quality: bool = False
    max_distance_km: Optional[
        Annotated[float, Field(gt=0, description="Search radius (default from config)")]
    ] = None
    use_shallow_water_effect: bool = True
    use_resonance_effect: bool = True
    use_strait_effect: bool = True


class RegionalCorrectionEngine:
    """Applies regional corrections to harmonic constants."""

    def __init__(
        self, regions: RegionalDataService, config: EngineConfig = DEFAULT_CONFIG
    ) -> None:
        self.regions = regions
        self.config = config

    def log(self, message: str, level: int = logging.INFO) -> None:
        logging.log(level, f"[correction] {message}")

    async def find_correction_region(
        self, coordinates: Coordinates, options: CorrectionOptions
    ) -> Optional[RegionalDataRecord]:
        nearest = await self.regions.find_nearest_stations(
            coordinates,
            limit=1,
            max_distance_km=options.max_distance_km
            or self.config.correction_max_distance_km,
            data_quality=DataQuality.HIGH if options.require_high_quality else None,
        )
        return nearest[0].region if nearest else None

    async def apply_correction_factors(
        self,
        coordinates: Coordinates,
        constants: Sequence[HarmonicConstant],
        options: Optional[CorrectionOptions] = None,
    ) -> List[HarmonicConstant]:
        """Correct harmonic constants for a coordinate.

        Args:
            coordinates: Location the constants are corrected for
            constants: Generic harmonic constants
            options: Pipeline switches (default: all effects enabled)

        Returns:
            Corrected constants. The input constants are returned unchanged
            when no region qualifies or an internal step fails.

        Raises:
            InvalidCoordinatesError: If the coordinates are out of range
            InvalidHarmonicsError: If constants is empty
        """
        util.validate_coordinates(coordinates.latitude, coordinates.longitude)
        if not constants:
            raise InvalidHarmonicsError("Harmonic constants must not be empty")
        options = options or CorrectionOptions()
        original = list(constants)

        region = await self.find_correction_region(coordinates, options)
        if region is None:
            self.log(
                f"No region within range of ({coordinates.latitude}, "
                f"{coordinates.longitude}), constants left uncorrected",
                level=logging.DEBUG,
            )
            return original

        try:
            corrected = self._apply_basic_correction(original, region)
            if options.use_shallow_water_effect:
                corrected = self._apply_shallow_water_effect(corrected, region)
            if options.use_resonance_effect and isinstance(region.kind, BayRegion):
                corrected = self._apply_resonance_effect(corrected, region, region.kind)
            if options.use_strait_effect and isinstance(region.kind, StraitRegion):
                corrected = self._apply_strait_effect(corrected, region, region.kind)
            return self._clamp_to_original(original, corrected)
        except Exception as e:  # pylint: disable=broad-except
            self.log(
                f"Correction with region {region.region_id} failed, "
                f"returning uncorrected constants: {e}",
                level=logging.ERROR,
            )
            return original

    async def assess_accuracy(
        self, coordinates: Coordinates, options: Optional[CorrectionOptions] = None
    ) -> Accuracy:
        """Accuracy of a correction at a coordinate.

        Returns:
            LOW if no region is within the correction radius, HIGH if the
            region is of high quality, MEDIUM otherwise
        """
        region = await self.find_correction_region(
            coordinates, options or CorrectionOptions()
        )
        if region is None:
            return Accuracy.LOW
        if region.data_quality == DataQuality.HIGH:
            return Accuracy.HIGH
        return Accuracy.MEDIUM

    @staticmethod
    def _apply_basic_correction(
        constants: List[HarmonicConstant], region: RegionalDataRecord
    ) -> List[HarmonicConstant]:
        m2_factor = region.m2_amplitude / constituents.REFERENCE_AMPLITUDES["M2"]
        s2_factor = region.s2_amplitude / constituents.REFERENCE_AMPLITUDES["S2"]
        phase_offsets = {"M2": region.m2_phase, "S2": region.s2_phase}

        corrected = []
        for c in constants:
            factor = s2_factor if c.constituent == "S2" else m2_factor
            factor = util.clamp(factor, MIN_AMPLITUDE_RATIO, MAX_AMPLITUDE_RATIO)
            corrected.append(
                HarmonicConstant(
                    constituent=c.constituent,
                    amplitude=c.amplitude * factor,
                    phase=c.phase + phase_offsets.get(c.constituent, 0.0),
                )
            )
        return corrected

    @staticmethod
    def _apply_shallow_water_effect(
        constants: List[HarmonicConstant], region: RegionalDataRecord
    ) -> List[HarmonicConstant]:
        depth = region.depth_m or DEFAULT_DEPTH_M
        by_name = {c.constituent: c for c in constants}
        m2 = by_name.get("M2")
        s2 = by_name.get("S2")

        overtones = []
        if m2 is not None and depth < SHALLOW_M4_DEPTH_M:
            overtones.append(
                HarmonicConstant(
                    constituent="M4",
                    amplitude=m2.amplitude
                    * M4_AMPLITUDE_RATIO
                    * (1 - depth / SHALLOW_M4_DEPTH_M),
                    phase=2 * m2.phase,
                )
            )
        if m2 is not None and s2 is not None and depth < SHALLOW_MS4_DEPTH_M:
            overtones.append(
                HarmonicConstant(
                    constituent="MS4",
                    amplitude=math.sqrt(m2.amplitude * s2.amplitude)
                    * MS4_AMPLITUDE_RATIO
                    * (1 - depth / SHALLOW_MS4_DEPTH_M),
                    phase=m2.phase + s2.phase,
                )
            )

        result = list(constants)
        for overtone in overtones:
            for i, c in enumerate(result):
                if c.constituent == overtone.constituent:
                    result[i] = c.model_copy(
                        update={"amplitude": c.amplitude + overtone.amplitude}
                    )
                    break
            else:
                result.append(overtone)
        return result

    @staticmethod
    def _resonance_factor(period_ratio: float) -> float:
        """Amplification for a basin/constituent period ratio."""
        if abs(period_ratio - 1.0) < 0.3:
            return 1.8 + 0.7 * math.exp(-(((period_ratio - 1.0) / 0.15) ** 2))
        if abs(period_ratio - 0.5) < 0.2:
            return 1.4 + 0.4 * math.exp(-(((period_ratio - 0.5) / 0.1) ** 2))
        if abs(period_ratio - 2.0) < 0.4:
            return 1.3 + 0.3 * math.exp(-(((period_ratio - 2.0) / 0.2) ** 2))
        return RESONANCE_BASELINE

    def _apply_resonance_effect(
        self,
        constants: List[HarmonicConstant],
        region: RegionalDataRecord,
        bay: BayRegion,
    ) -> List[HarmonicConstant]:
        depth = region.depth_m or DEFAULT_DEPTH_M
        wave_speed = math.sqrt(GRAVITY * depth)
        # Quarter-wave resonator closed at the head of the bay
        natural_period_hours = 4 * bay.bay_length_km * 1000 / wave_speed / 3600

        result = []
        for c in constants:
            constituent = constituents.get(c.constituent)
            if constituent is not None and constituent.kind in (
                ConstituentKind.SEMIDIURNAL,
                ConstituentKind.DIURNAL,
            ):
                ratio = natural_period_hours / constituent.period_hours
                c = c.model_copy(
                    update={"amplitude": c.amplitude * self._resonance_factor(ratio)}
                )
            result.append(c)
        return result

    @staticmethod
    def _apply_strait_effect(
        constants: List[HarmonicConstant],
        region: RegionalDataRecord,
        strait: StraitRegion,
    ) -> List[HarmonicConstant]:
        depth = region.depth_m or DEFAULT_DEPTH_M
        distance_km = strait.distance_from_ocean_km
        travel_hours = distance_km * 1000 / math.sqrt(GRAVITY * depth) / 3600
        attenuation = math.exp(-(STRAIT_FRICTION / depth) * distance_km)

        result = []
        for c in constants:
            constituent = constituents.get(c.constituent)
            delay = constituent.speed * travel_hours if constituent is not None else 0.0
            result.append(
                HarmonicConstant(
                    constituent=c.constituent,
                    amplitude=c.amplitude * attenuation,
                    phase=c.phase + delay,
                )
            )
        return result

    @staticmethod
    def _clamp_to_original(
        original: List[HarmonicConstant], corrected: List[HarmonicConstant]
    ) -> List[HarmonicConstant]:
        # Corrections keep input constituents at their input positions
        result = list(corrected)
        for i, source in enumerate(original):
            c = result[i]
            if source.amplitude == 0:
                continue
            ratio = util.clamp(
                c.amplitude / source.amplitude, MIN_AMPLITUDE_RATIO, MAX_AMPLITUDE_RATIO
            )
            result[i] = c.model_copy(update={"amplitude": source.amplitude * ratio})
        return result
