"""Engine configuration and the built-in regional calibration dataset.

This module defines two things:

1. EngineConfig: the tunable defaults of the tide engine (cache sizing,
   search radii, sampling resolution, local timezone, durable store URL).
2. The built-in calibration dataset: harmonic constants and physical
   parameters (depth, basin geometry) for coastal regions of Japan. The
   dataset seeds the regional store at initialization and is accessed via
   the get() function using a region id.

Amplitudes are in centimeters and phases in degrees.
"""

# Standard library imports
import datetime
from types import MappingProxyType
from typing import Annotated, List, Optional

# Third-party imports
import pytz
from pydantic import BaseModel, ConfigDict, Field

# Local imports
from tidewise.types import (
    BayRegion,
    DataQuality,
    OpenRegion,
    RegionalDataRecord,
    StraitRegion,
)


class EngineConfig(BaseModel, frozen=True):
    """Tunable defaults of the tide engine."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    cache_capacity: Annotated[
        int, Field(gt=0, description="Maximum number of cached results")
    ] = 100
    cache_ttl: Annotated[
        datetime.timedelta, Field(description="Lifetime of a cached result")
    ] = datetime.timedelta(hours=24)

    correction_max_distance_km: Annotated[
        float,
        Field(gt=0, description="Search radius for the correcting region (km)"),
    ] = 100.0
    nearest_station_limit: Annotated[
        int, Field(gt=0, description="Default result count for nearest search")
    ] = 10
    nearest_station_max_distance_km: Annotated[
        float, Field(gt=0, description="Default radius for nearest search (km)")
    ] = 200.0
    best_region_max_distance_km: Annotated[
        float, Field(gt=0, description="Radius of the first best-region search (km)")
    ] = 500.0
    best_region_fallback_distance_km: Annotated[
        float,
        Field(gt=0, description="Radius of the fallback best-region search (km)"),
    ] = 10000.0

    extreme_sample_minutes: Annotated[
        int,
        Field(
            gt=0,
            le=60,
            description="Sampling step used to bracket highs and lows (minutes)",
        ),
    ] = 10
    event_proximity_minutes: Annotated[
        int,
        Field(
            ge=0,
            description="Window in which the current state reports the next event type",
        ),
    ] = 10

    min_calibrated_year: int = 1900
    max_calibrated_year: int = 2100

    timezone: Annotated[
        datetime.tzinfo,
        Field(
            description="Timezone used to interpret naive instants and to define the calendar day (e.g., pytz.timezone('Asia/Tokyo'))"
        ),
    ] = pytz.timezone("Asia/Tokyo")

    database_url: Annotated[
        str, Field(description="SQLAlchemy URL of the durable store")
    ] = "sqlite:///tidewise.db"


DEFAULT_CONFIG = EngineConfig()


_REGION_LIST = [
    RegionalDataRecord(
        region_id="tokyo_bay",
        name="Tokyo Bay (Harumi)",
        latitude=35.655,
        longitude=139.745,
        m2_amplitude=50.2,
        m2_phase=155.0,
        s2_amplitude=24.1,
        s2_phase=181.0,
        k1_amplitude=25.3,
        k1_phase=175.0,
        o1_amplitude=19.2,
        o1_phase=156.0,
        depth_m=17.0,
        kind=BayRegion(bay_length_km=60.0),
        data_quality=DataQuality.HIGH,
        coverage_radius_km=30.0,
    ),
    RegionalDataRecord(
        region_id="yokohama",
        name="Yokohama",
        latitude=35.454,
        longitude=139.655,
        m2_amplitude=48.0,
        m2_phase=152.0,
        s2_amplitude=23.2,
        s2_phase=178.0,
        k1_amplitude=25.0,
        k1_phase=174.0,
        o1_amplitude=19.0,
        o1_phase=155.0,
        depth_m=20.0,
        kind=BayRegion(bay_length_km=60.0),
        data_quality=DataQuality.HIGH,
        coverage_radius_km=25.0,
    ),
    RegionalDataRecord(
        region_id="sagami_bay",
        name="Sagami Bay (Aburatsubo)",
        latitude=35.160,
        longitude=139.615,
        m2_amplitude=36.0,
        m2_phase=141.0,
        s2_amplitude=17.1,
        s2_phase=166.0,
        k1_amplitude=24.0,
        k1_phase=172.0,
        o1_amplitude=19.0,
        o1_phase=153.0,
        depth_m=80.0,
        kind=OpenRegion(),
        data_quality=DataQuality.HIGH,
        coverage_radius_km=40.0,
    ),
    RegionalDataRecord(
        region_id="choshi",
        name="Choshi",
        latitude=35.750,
        longitude=140.870,
        m2_amplitude=33.0,
        m2_phase=130.0,
        s2_amplitude=16.0,
        s2_phase=160.0,
        k1_amplitude=23.0,
        k1_phase=170.0,
        o1_amplitude=18.0,
        o1_phase=152.0,
        depth_m=60.0,
        kind=OpenRegion(),
        data_quality=DataQuality.MEDIUM,
        coverage_radius_km=60.0,
    ),
    RegionalDataRecord(
        region_id="sendai_bay",
        name="Sendai Bay (Shiogama)",
        latitude=38.317,
        longitude=141.033,
        m2_amplitude=36.0,
        m2_phase=115.0,
        s2_amplitude=15.0,
        s2_phase=145.0,
        k1_amplitude=23.0,
        k1_phase=175.0,
        o1_amplitude=18.0,
        o1_phase=155.0,
        depth_m=30.0,
        kind=BayRegion(bay_length_km=40.0),
        data_quality=DataQuality.MEDIUM,
        coverage_radius_km=50.0,
    ),
    RegionalDataRecord(
        region_id="kushiro",
        name="Kushiro",
        latitude=42.975,
        longitude=144.370,
        m2_amplitude=28.0,
        m2_phase=110.0,
        s2_amplitude=11.5,
        s2_phase=140.0,
        k1_amplitude=25.0,
        k1_phase=180.0,
        o1_amplitude=20.0,
        o1_phase=160.0,
        depth_m=40.0,
        kind=OpenRegion(),
        data_quality=DataQuality.HIGH,
        coverage_radius_km=80.0,
    ),
    RegionalDataRecord(
        region_id="hakodate",
        name="Hakodate (Tsugaru Strait)",
        latitude=41.780,
        longitude=140.720,
        m2_amplitude=22.0,
        m2_phase=130.0,
        s2_amplitude=10.0,
        s2_phase=155.0,
        k1_amplitude=21.0,
        k1_phase=195.0,
        o1_amplitude=17.0,
        o1_phase=175.0,
        depth_m=80.0,
        kind=StraitRegion(distance_from_ocean_km=30.0),
        data_quality=DataQuality.MEDIUM,
        coverage_radius_km=50.0,
    ),
    RegionalDataRecord(
        region_id="mutsu_bay",
        name="Mutsu Bay (Aomori)",
        latitude=40.833,
        longitude=140.767,
        m2_amplitude=13.0,
        m2_phase=130.0,
        s2_amplitude=6.0,
        s2_phase=150.0,
        k1_amplitude=18.0,
        k1_phase=175.0,
        o1_amplitude=15.0,
        o1_phase=160.0,
        depth_m=40.0,
        kind=BayRegion(bay_length_km=50.0),
        data_quality=DataQuality.LOW,
        coverage_radius_km=40.0,
    ),
    RegionalDataRecord(
        region_id="niigata",
        name="Niigata",
        latitude=37.933,
        longitude=139.067,
        m2_amplitude=8.0,
        m2_phase=240.0,
        s2_amplitude=3.0,
        s2_phase=262.0,
        k1_amplitude=6.5,
        k1_phase=262.0,
        o1_amplitude=5.5,
        o1_phase=240.0,
        depth_m=30.0,
        kind=OpenRegion(),
        data_quality=DataQuality.MEDIUM,
        coverage_radius_km=80.0,
    ),
    RegionalDataRecord(
        region_id="maizuru",
        name="Maizuru",
        latitude=35.475,
        longitude=135.383,
        m2_amplitude=6.0,
        m2_phase=245.0,
        s2_amplitude=2.2,
        s2_phase=262.0,
        k1_amplitude=6.0,
        k1_phase=258.0,
        o1_amplitude=5.0,
        o1_phase=240.0,
        depth_m=20.0,
        kind=BayRegion(bay_length_km=8.0),
        data_quality=DataQuality.LOW,
        coverage_radius_km=30.0,
    ),
    RegionalDataRecord(
        region_id="ise_bay",
        name="Ise Bay (Nagoya)",
        latitude=35.083,
        longitude=136.883,
        m2_amplitude=68.0,
        m2_phase=170.0,
        s2_amplitude=32.0,
        s2_phase=196.0,
        k1_amplitude=25.0,
        k1_phase=185.0,
        o1_amplitude=19.0,
        o1_phase=165.0,
        depth_m=20.0,
        kind=BayRegion(bay_length_km=60.0),
        data_quality=DataQuality.HIGH,
        coverage_radius_km=40.0,
    ),
    RegionalDataRecord(
        region_id="osaka_bay",
        name="Osaka Bay",
        latitude=34.650,
        longitude=135.430,
        m2_amplitude=28.0,
        m2_phase=215.0,
        s2_amplitude=15.0,
        s2_phase=240.0,
        k1_amplitude=24.0,
        k1_phase=200.0,
        o1_amplitude=18.0,
        o1_phase=180.0,
        depth_m=28.0,
        kind=BayRegion(bay_length_km=50.0),
        data_quality=DataQuality.HIGH,
        coverage_radius_km=30.0,
    ),
    RegionalDataRecord(
        region_id="kobe",
        name="Kobe",
        latitude=34.683,
        longitude=135.190,
        m2_amplitude=26.0,
        m2_phase=210.0,
        s2_amplitude=14.0,
        s2_phase=235.0,
        k1_amplitude=24.0,
        k1_phase=199.0,
        o1_amplitude=18.0,
        o1_phase=179.0,
        depth_m=25.0,
        kind=BayRegion(bay_length_km=50.0),
        data_quality=DataQuality.MEDIUM,
        coverage_radius_km=20.0,
    ),
    RegionalDataRecord(
        region_id="akashi_strait",
        name="Akashi Strait",
        latitude=34.617,
        longitude=135.017,
        m2_amplitude=30.0,
        m2_phase=250.0,
        s2_amplitude=15.0,
        s2_phase=270.0,
        k1_amplitude=24.0,
        k1_phase=205.0,
        o1_amplitude=18.0,
        o1_phase=185.0,
        depth_m=40.0,
        kind=StraitRegion(distance_from_ocean_km=40.0),
        data_quality=DataQuality.MEDIUM,
        coverage_radius_km=15.0,
    ),
    RegionalDataRecord(
        region_id="takamatsu",
        name="Takamatsu (Seto Inland Sea)",
        latitude=34.350,
        longitude=134.050,
        m2_amplitude=60.0,
        m2_phase=290.0,
        s2_amplitude=24.0,
        s2_phase=318.0,
        k1_amplitude=26.0,
        k1_phase=210.0,
        o1_amplitude=20.0,
        o1_phase=190.0,
        depth_m=30.0,
        kind=StraitRegion(distance_from_ocean_km=120.0),
        data_quality=DataQuality.MEDIUM,
        coverage_radius_km=30.0,
    ),
    RegionalDataRecord(
        region_id="hiroshima_bay",
        name="Hiroshima Bay",
        latitude=34.350,
        longitude=132.460,
        m2_amplitude=110.0,
        m2_phase=265.0,
        s2_amplitude=43.0,
        s2_phase=300.0,
        k1_amplitude=28.0,
        k1_phase=200.0,
        o1_amplitude=21.0,
        o1_phase=180.0,
        depth_m=15.0,
        kind=BayRegion(bay_length_km=35.0),
        data_quality=DataQuality.HIGH,
        coverage_radius_km=30.0,
    ),
    RegionalDataRecord(
        region_id="kanmon_strait",
        name="Kanmon Strait (Shimonoseki)",
        latitude=33.950,
        longitude=130.930,
        m2_amplitude=70.0,
        m2_phase=230.0,
        s2_amplitude=30.0,
        s2_phase=260.0,
        k1_amplitude=22.0,
        k1_phase=200.0,
        o1_amplitude=17.0,
        o1_phase=180.0,
        depth_m=15.0,
        kind=StraitRegion(distance_from_ocean_km=20.0),
        data_quality=DataQuality.MEDIUM,
        coverage_radius_km=15.0,
    ),
    RegionalDataRecord(
        region_id="hakata_bay",
        name="Hakata Bay",
        latitude=33.617,
        longitude=130.400,
        m2_amplitude=55.0,
        m2_phase=215.0,
        s2_amplitude=25.0,
        s2_phase=245.0,
        k1_amplitude=21.0,
        k1_phase=205.0,
        o1_amplitude=16.0,
        o1_phase=185.0,
        depth_m=12.0,
        kind=BayRegion(bay_length_km=20.0),
        data_quality=DataQuality.HIGH,
        coverage_radius_km=20.0,
    ),
    RegionalDataRecord(
        region_id="ariake_sea",
        name="Ariake Sea (Oura)",
        latitude=32.983,
        longitude=130.217,
        m2_amplitude=150.0,
        m2_phase=240.0,
        s2_amplitude=65.0,
        s2_phase=275.0,
        k1_amplitude=27.0,
        k1_phase=210.0,
        o1_amplitude=20.0,
        o1_phase=190.0,
        depth_m=20.0,
        kind=BayRegion(bay_length_km=90.0),
        data_quality=DataQuality.HIGH,
        coverage_radius_km=40.0,
    ),
    RegionalDataRecord(
        region_id="kagoshima_bay",
        name="Kagoshima Bay",
        latitude=31.583,
        longitude=130.567,
        m2_amplitude=70.0,
        m2_phase=195.0,
        s2_amplitude=32.0,
        s2_phase=225.0,
        k1_amplitude=24.0,
        k1_phase=190.0,
        o1_amplitude=18.0,
        o1_phase=170.0,
        depth_m=110.0,
        kind=BayRegion(bay_length_km=70.0),
        data_quality=DataQuality.MEDIUM,
        coverage_radius_km=40.0,
    ),
    RegionalDataRecord(
        region_id="kochi",
        name="Kochi (Tosa Bay)",
        latitude=33.500,
        longitude=133.567,
        m2_amplitude=52.0,
        m2_phase=170.0,
        s2_amplitude=24.0,
        s2_phase=196.0,
        k1_amplitude=24.0,
        k1_phase=180.0,
        o1_amplitude=19.0,
        o1_phase=162.0,
        depth_m=60.0,
        kind=OpenRegion(),
        data_quality=DataQuality.MEDIUM,
        coverage_radius_km=50.0,
    ),
    RegionalDataRecord(
        region_id="naha",
        name="Naha",
        latitude=26.217,
        longitude=127.667,
        m2_amplitude=55.0,
        m2_phase=155.0,
        s2_amplitude=23.0,
        s2_phase=180.0,
        k1_amplitude=20.0,
        k1_phase=185.0,
        o1_amplitude=15.0,
        o1_phase=165.0,
        depth_m=50.0,
        kind=OpenRegion(),
        data_quality=DataQuality.HIGH,
        coverage_radius_km=80.0,
    ),
]

# Use MappingProxyType to create an immutable view of the dictionary
REGIONS = MappingProxyType({r.region_id: r for r in _REGION_LIST})

if len(REGIONS) != len(_REGION_LIST):
    raise ValueError("Duplicate region_id in the built-in regional dataset")


def get(region_id: str) -> Optional[RegionalDataRecord]:
    """Get a built-in region by id.

    Args:
        region_id: Region identifier (e.g., "tokyo_bay")

    Returns:
        RegionalDataRecord if found, None otherwise
    """
    return REGIONS.get(region_id)


def get_all_regions() -> List[RegionalDataRecord]:
    """Get all built-in regions in dataset order."""
    return _REGION_LIST.copy()
