"""Tests for util.py."""

# pylint: disable=duplicate-code
import datetime
import math

import pandas as pd
import pytest
import pytz
from freezegun import freeze_time

from tidewise import util
from tidewise.errors import InvalidCoordinatesError, InvalidDateError

TOKYO = pytz.timezone("Asia/Tokyo")


def test_now() -> None:
    """Test that utc_now() returns naive datetime without timezone information."""
    now = util.utc_now()
    assert isinstance(now, datetime.datetime)
    assert now.tzinfo is None

    utc_now = datetime.datetime.now(tz=datetime.timezone.utc).replace(tzinfo=None)
    assert abs((utc_now - now).total_seconds()) < 1


@freeze_time("2024-01-15 03:00:00")
def test_now_frozen() -> None:
    assert util.utc_now() == datetime.datetime(2024, 1, 15, 3, 0)


def test_to_utc_naive_uses_default_timezone() -> None:
    result = util.to_utc(datetime.datetime(2024, 1, 15, 12, 0), TOKYO)
    assert result == pytz.utc.localize(datetime.datetime(2024, 1, 15, 3, 0))
    assert result.tzinfo is pytz.utc


def test_to_utc_naive_defaults_to_utc() -> None:
    result = util.to_utc(datetime.datetime(2024, 1, 15, 12, 0))
    assert result == pytz.utc.localize(datetime.datetime(2024, 1, 15, 12, 0))


def test_to_utc_aware_is_converted() -> None:
    aware = TOKYO.localize(datetime.datetime(2024, 7, 1, 9, 0))
    assert util.to_utc(aware) == pytz.utc.localize(datetime.datetime(2024, 7, 1, 0, 0))


def test_to_utc_accepts_pandas_timestamp() -> None:
    ts = pd.Timestamp("2024-01-15 12:00:00", tz="UTC")
    assert util.to_utc(ts) == pytz.utc.localize(datetime.datetime(2024, 1, 15, 12, 0))


@pytest.mark.parametrize("value", [None, "2024-01-15", 1705320000, pd.NaT])
def test_to_utc_rejects_invalid(value: object) -> None:
    with pytest.raises(InvalidDateError):
        util.to_utc(value)


def test_from_utc_mirrors_reference() -> None:
    instant = pytz.utc.localize(datetime.datetime(2024, 1, 15, 3, 0))

    naive = util.from_utc(instant, datetime.datetime(2024, 1, 1), TOKYO)
    assert naive == datetime.datetime(2024, 1, 15, 12, 0)
    assert naive.tzinfo is None

    reference = TOKYO.localize(datetime.datetime(2024, 1, 1))
    aware = util.from_utc(instant, reference)
    assert aware.utcoffset() == datetime.timedelta(hours=9)
    assert aware == instant


def test_julian_day_of_j2000() -> None:
    j2000 = pytz.utc.localize(datetime.datetime(2000, 1, 1, 12, 0))
    assert util.julian_day(j2000) == pytest.approx(util.J2000_JD)
    assert util.julian_centuries(util.J2000_JD) == 0
    assert util.hours_since_j2000(j2000) == pytest.approx(0.0)


def test_day_of_year() -> None:
    assert util.day_of_year(datetime.datetime(2024, 1, 1)) == 1
    assert util.day_of_year(datetime.datetime(2024, 12, 31)) == 366


@pytest.mark.parametrize(
    "angle,expected",
    [(0, 0), (360, 0), (-90, 270), (725, 5), (-1e-15, 0)],
)
def test_normalize_degrees(angle: float, expected: float) -> None:
    result = util.normalize_degrees(angle)
    assert 0 <= result < 360
    assert result == pytest.approx(expected, abs=1e-9)


@pytest.mark.parametrize(
    "angle,expected",
    [(0, 0), (180, -180), (190, -170), (-190, 170), (540, -180), (359, -1)],
)
def test_normalize_phase(angle: float, expected: float) -> None:
    result = util.normalize_phase(angle)
    assert -180 <= result < 180
    assert result == pytest.approx(expected)


@pytest.mark.parametrize(
    "lat,lon", [(91, 0), (-90.5, 0), (0, 180.1), (0, -181), (math.nan, 0), (0, math.inf)]
)
def test_validate_coordinates_rejects(lat: float, lon: float) -> None:
    with pytest.raises(InvalidCoordinatesError):
        util.validate_coordinates(lat, lon)


@pytest.mark.parametrize("lat,lon", [(90, 180), (-90, -180), (35.655, 139.745)])
def test_validate_coordinates_accepts(lat: float, lon: float) -> None:
    util.validate_coordinates(lat, lon)


@pytest.mark.parametrize(
    "a,b",
    [
        ((35.655, 139.745), (34.650, 135.430)),
        ((0, 0), (0, 180)),
        ((-45, -170), (45, 170)),
        ((89.9, 0), (-89.9, 179)),
    ],
)
def test_haversine_is_symmetric(
    a: tuple[float, float], b: tuple[float, float]
) -> None:
    forward = util.haversine_distance(*a, *b)
    backward = util.haversine_distance(*b, *a)
    assert forward == pytest.approx(backward)
    assert forward >= 0
    assert util.haversine_distance(*a, *a) == 0


def test_haversine_known_distances() -> None:
    # Tokyo to Osaka is about 400 km
    assert util.haversine_distance(35.655, 139.745, 34.650, 135.430) == pytest.approx(
        410, abs=15
    )
    # Half the equator
    assert util.haversine_distance(0, 0, 0, 180) == pytest.approx(
        math.pi * util.EARTH_RADIUS_KM
    )


def test_initial_bearing() -> None:
    assert util.initial_bearing(0, 0, 1, 0) == pytest.approx(0)
    assert util.initial_bearing(0, 0, 0, 1) == pytest.approx(90)
    assert util.initial_bearing(0, 0, -1, 0) == pytest.approx(180)
    assert util.initial_bearing(0, 0, 0, -1) == pytest.approx(270)


def test_bounding_box_contains_circle() -> None:
    lat, lon, radius = 35.655, 139.745, 200.0
    south, west, north, east = util.bounding_box(lat, lon, radius)
    assert south < lat < north
    assert west < lon < east

    # Points on the circle in the four cardinal directions are inside the box
    delta_lat = math.degrees(radius / util.EARTH_RADIUS_KM)
    assert util.is_point_in_bounds(lat + delta_lat * 0.999, lon, south, west, north, east)
    assert util.is_point_in_bounds(lat - delta_lat * 0.999, lon, south, west, north, east)
    for bearing_lon in (lon - 2.2, lon + 2.2):
        distance = util.haversine_distance(lat, lon, lat, bearing_lon)
        if distance <= radius:
            assert util.is_point_in_bounds(lat, bearing_lon, south, west, north, east)


def test_bounding_box_near_pole_spans_all_longitudes() -> None:
    south, west, north, east = util.bounding_box(89.5, 10, 200)
    assert north == 90
    assert (west, east) == (-180, 180)


def test_is_point_in_bounds_is_inclusive() -> None:
    assert util.is_point_in_bounds(10, 20, 10, 20, 30, 40)
    assert util.is_point_in_bounds(30, 40, 10, 20, 30, 40)
    assert not util.is_point_in_bounds(30.01, 40, 10, 20, 30, 40)


def test_clamp() -> None:
    assert util.clamp(5, 0, 10) == 5
    assert util.clamp(-1, 0, 10) == 0
    assert util.clamp(11, 0, 10) == 10
