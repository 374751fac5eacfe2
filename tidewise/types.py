"""Type definitions for tidewise.

This module contains the value types that flow through the tide pipeline:
coordinates, harmonic constants, lunar/celestial results, calibration region
records and the final TideInfo result. Report and response models used by
the HTTP surface are defined in api_types.py.
"""

# Standard library imports
import datetime
import enum
from typing import Annotated, Literal, Optional, Union

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Local imports
from tidewise import util


class MoonPhaseName(str, enum.Enum):
    NEW = "new"
    WAXING_CRESCENT = "waxing_crescent"
    FIRST_QUARTER = "first_quarter"
    WAXING_GIBBOUS = "waxing_gibbous"
    FULL = "full"
    WANING_GIBBOUS = "waning_gibbous"
    LAST_QUARTER = "last_quarter"
    WANING_CRESCENT = "waning_crescent"


class TideType(str, enum.Enum):
    """Coarse tidal-range label derived from the lunar age."""

    SPRING = "spring"
    MEDIUM = "medium"
    NEAP = "neap"
    LONG = "long"
    YOUNG = "young"


class TideEventType(str, enum.Enum):
    HIGH = "high"
    LOW = "low"


class TideState(str, enum.Enum):
    RISING = "rising"
    FALLING = "falling"
    HIGH = "high"
    LOW = "low"


class DataQuality(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RegionType(str, enum.Enum):
    OPEN = "open"
    BAY = "bay"
    STRAIT = "strait"


class Accuracy(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Coordinates(BaseModel, frozen=True):
    """A geographic position in decimal degrees."""

    model_config = ConfigDict(extra="forbid")

    latitude: Annotated[
        float,
        Field(ge=-90, le=90, allow_inf_nan=False, description="Latitude (degrees)"),
    ]
    longitude: Annotated[
        float,
        Field(
            ge=-180, le=180, allow_inf_nan=False, description="Longitude (degrees)"
        ),
    ]


class HarmonicConstant(BaseModel, frozen=True):
    """One tidal constituent with its local amplitude and phase.

    The phase is always stored normalized into [-180, 180).
    """

    model_config = ConfigDict(extra="forbid")

    constituent: Annotated[
        str, Field(min_length=1, description="Constituent label (e.g., 'M2')")
    ]
    amplitude: Annotated[
        float, Field(ge=0, allow_inf_nan=False, description="Amplitude (cm)")
    ]
    phase: Annotated[float, Field(allow_inf_nan=False, description="Phase (degrees)")]

    @field_validator("phase")
    @classmethod
    def normalize_phase(cls, value: float) -> float:
        return util.normalize_phase(value)


class MoonPhase(BaseModel, frozen=True):
    """Lunar age, named phase and illuminated fraction for an instant."""

    model_config = ConfigDict(extra="forbid")

    age: Annotated[float, Field(ge=0, description="Days since the last new moon")]
    phase: MoonPhaseName
    illumination: Annotated[
        float, Field(ge=0, le=1, description="Illuminated fraction of the disc")
    ]


class SunPosition(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    longitude: Annotated[float, Field(description="Ecliptic longitude (degrees)")]
    latitude: Annotated[float, Field(description="Ecliptic latitude (degrees)")]


class MoonPosition(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    longitude: Annotated[float, Field(description="Ecliptic longitude (degrees)")]
    latitude: Annotated[float, Field(description="Ecliptic latitude (degrees)")]
    distance: Annotated[float, Field(description="Earth-Moon distance (km)")]


class CelestialPosition(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    sun: SunPosition
    moon: MoonPosition


class CelestialSnapshot(BaseModel, frozen=True):
    """Moon phase and Sun/Moon positions for the same instant."""

    model_config = ConfigDict(extra="forbid")

    moon_phase: MoonPhase
    positions: CelestialPosition


class TideEvent(BaseModel, frozen=True):
    """A single high or low water."""

    model_config = ConfigDict(extra="forbid")

    time: datetime.datetime
    type: TideEventType
    level: Annotated[float, Field(description="Water level (cm)")]


class NodalFactor(BaseModel, frozen=True):
    """Node factor and equilibrium argument for one constituent."""

    model_config = ConfigDict(extra="forbid")

    f: Annotated[float, Field(description="Amplitude node factor")]
    u: Annotated[float, Field(description="Phase correction (degrees)")]


class TideInfo(BaseModel, frozen=True):
    """Tide conditions at a location and instant.

    This is the only record the surrounding application consumes.
    """

    model_config = ConfigDict(extra="forbid")

    location: Coordinates
    date: datetime.datetime
    current_state: TideState
    current_level: Annotated[float, Field(description="Water level (cm)")]
    tide_type: TideType
    tide_strength: Annotated[float, Field(ge=0, le=100)]
    events: tuple[TideEvent, ...]
    next_event: Optional[TideEvent]
    calculated_at: datetime.datetime
    accuracy: Accuracy


class OpenRegion(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    type: Literal["open"] = "open"


class BayRegion(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    type: Literal["bay"] = "bay"
    bay_length_km: Annotated[
        float, Field(gt=0, description="Length of the basin along its axis (km)")
    ]


class StraitRegion(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    type: Literal["strait"] = "strait"
    distance_from_ocean_km: Annotated[
        float, Field(ge=0, description="Distance along the channel from the open sea (km)")
    ]


RegionKind = Annotated[
    Union[OpenRegion, BayRegion, StraitRegion], Field(discriminator="type")
]


class RegionalDataRecord(BaseModel, frozen=True):
    """Calibration data for one coastal region.

    Amplitudes are in centimeters, phases in degrees.
    """

    model_config = ConfigDict(extra="forbid")

    region_id: Annotated[
        str,
        Field(
            pattern=r"^[a-z0-9_]+$",
            description="Unique region identifier (e.g., 'tokyo_bay')",
        ),
    ]
    name: Annotated[str, Field(description="Display name of the region")]
    latitude: Annotated[float, Field(description="Latitude of the reference point")]
    longitude: Annotated[float, Field(description="Longitude of the reference point")]
    m2_amplitude: Annotated[float, Field(ge=0)]
    m2_phase: float
    s2_amplitude: Annotated[float, Field(ge=0)]
    s2_phase: float
    k1_amplitude: Optional[Annotated[float, Field(ge=0)]] = None
    k1_phase: Optional[float] = None
    o1_amplitude: Optional[Annotated[float, Field(ge=0)]] = None
    o1_phase: Optional[float] = None
    depth_m: Optional[
        Annotated[float, Field(gt=0, description="Representative water depth (m)")]
    ] = None
    kind: RegionKind = OpenRegion()
    data_quality: DataQuality = DataQuality.MEDIUM
    coverage_radius_km: Annotated[float, Field(gt=0)] = 50.0
    is_active: bool = True
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    @property
    def region_type(self) -> RegionType:
        return RegionType(self.kind.type)

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


class CacheKey(BaseModel, frozen=True):
    """Raw cache key; see TideLRUCache.normalize_key for canonicalization."""

    latitude: float
    longitude: float
    date: str


class CacheRecord(BaseModel):
    """A cache entry as persisted in the durable store."""

    model_config = ConfigDict(extra="forbid")

    cache_key: str
    tide_data: Annotated[str, Field(description="Serialized TideInfo (JSON)")]
    created_at: datetime.datetime
    expires_at: datetime.datetime
    access_count: int = 0
    last_accessed: Optional[datetime.datetime] = None
