"""Unit tests for configuration module."""

import datetime

import pydantic
import pytest
import pytz

from tidewise import config
from tidewise.core import constituents
from tidewise.types import BayRegion, DataQuality, RegionalDataRecord, StraitRegion


def test_region_list_not_empty() -> None:
    assert len(config.get_all_regions()) > 0


def test_region_ids_unique_and_indexed() -> None:
    regions = config.get_all_regions()
    assert len({r.region_id for r in regions}) == len(regions)
    for region in regions:
        assert config.get(region.region_id) is region
    assert config.get("atlantis") is None


def test_registry_is_read_only() -> None:
    with pytest.raises(TypeError):
        config.REGIONS["extra"] = config.REGIONS["tokyo_bay"]  # type: ignore[index]


def test_get_all_regions_returns_a_copy() -> None:
    regions = config.get_all_regions()
    regions.clear()
    assert config.get_all_regions()


def test_regions_are_plausible() -> None:
    """Every built-in record passes the bounds the integrity audit applies."""
    for region in config.get_all_regions():
        assert isinstance(region, RegionalDataRecord)
        assert 20 <= region.latitude <= 46, region.region_id
        assert 122 <= region.longitude <= 146, region.region_id
        assert region.m2_amplitude <= constituents.SEMIDIURNAL_MAXIMA["M2"]
        assert region.s2_amplitude <= constituents.SEMIDIURNAL_MAXIMA["S2"]
        assert region.depth_m is not None and region.depth_m > 0
        assert region.is_active
        assert region.created_at is None and region.updated_at is None


def test_region_kinds() -> None:
    tokyo = config.get("tokyo_bay")
    assert tokyo is not None
    assert isinstance(tokyo.kind, BayRegion)
    assert tokyo.data_quality == DataQuality.HIGH
    assert tokyo.depth_m == 17.0

    hakodate = config.get("hakodate")
    assert hakodate is not None
    assert isinstance(hakodate.kind, StraitRegion)

    qualities = {r.data_quality for r in config.get_all_regions()}
    assert qualities == set(DataQuality)


def test_engine_config_defaults() -> None:
    cfg = config.DEFAULT_CONFIG
    assert cfg.cache_capacity == 100
    assert cfg.cache_ttl == datetime.timedelta(hours=24)
    assert cfg.correction_max_distance_km == 100.0
    assert cfg.nearest_station_limit == 10
    assert cfg.nearest_station_max_distance_km == 200.0
    assert cfg.event_proximity_minutes == 10
    assert cfg.timezone.zone == "Asia/Tokyo"  # type: ignore[attr-defined]
    assert cfg.database_url.startswith("sqlite:///")


def test_engine_config_overrides() -> None:
    cfg = config.EngineConfig(
        cache_capacity=5, timezone=pytz.timezone("Pacific/Honolulu")
    )
    assert cfg.cache_capacity == 5
    assert cfg.timezone.zone == "Pacific/Honolulu"  # type: ignore[attr-defined]


@pytest.mark.parametrize(
    "overrides",
    [
        {"cache_capacity": 0},
        {"nearest_station_limit": -1},
        {"extreme_sample_minutes": 120},
        {"unknown_option": True},
    ],
)
def test_engine_config_rejects_invalid(overrides: dict) -> None:
    with pytest.raises(pydantic.ValidationError):
        config.EngineConfig(**overrides)


def test_engine_config_is_frozen() -> None:
    with pytest.raises(pydantic.ValidationError):
        config.DEFAULT_CONFIG.cache_capacity = 1  # type: ignore[misc]
