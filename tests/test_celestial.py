"""Tests for the celestial calculator."""

# Standard library imports
import datetime
import logging

# Third-party imports
import pytest
import pytz

# Local imports
from tidewise.core import celestial
from tidewise.core.celestial import SYNODIC_MONTH, CelestialCalculator
from tidewise.errors import InvalidDateError
from tidewise.types import MoonPhaseName


@pytest.fixture
def calculator() -> CelestialCalculator:
    return CelestialCalculator()


def test_age_just_after_known_new_moon(calculator: CelestialCalculator) -> None:
    # New moon of 2000-01-06 at 18:14 UTC
    moon = calculator.calculate_moon_phase(datetime.datetime(2000, 1, 6, 20, 0))
    assert moon.age == pytest.approx(0.07, abs=0.02)
    assert moon.phase == MoonPhaseName.NEW
    assert moon.illumination < 0.01


def test_full_moon(calculator: CelestialCalculator) -> None:
    # Full moon of 2024-01-25 at 17:54 UTC
    moon = calculator.calculate_moon_phase(
        pytz.utc.localize(datetime.datetime(2024, 1, 25, 17, 54))
    )
    assert moon.age == pytest.approx(SYNODIC_MONTH / 2, abs=1.0)
    assert moon.phase == MoonPhaseName.FULL
    assert moon.illumination > 0.98


def test_naive_and_aware_utc_agree(calculator: CelestialCalculator) -> None:
    naive = datetime.datetime(2024, 1, 15, 3, 0)
    aware = pytz.utc.localize(naive)
    assert calculator.calculate_moon_phase(naive) == calculator.calculate_moon_phase(
        aware
    )


@pytest.mark.parametrize(
    "date",
    [
        datetime.datetime(1900, 1, 1),
        datetime.datetime(1969, 7, 20, 20, 17),
        datetime.datetime(2000, 1, 6, 18, 14),
        datetime.datetime(2024, 1, 11, 11, 57),
        datetime.datetime(2024, 2, 29, 23, 59),
        datetime.datetime(2099, 12, 31, 23, 59),
    ],
)
def test_age_is_bounded(calculator: CelestialCalculator, date: datetime.datetime) -> None:
    moon = calculator.calculate_moon_phase(date)
    assert 0 <= moon.age < SYNODIC_MONTH
    assert 0 <= moon.illumination <= 1


def test_age_is_bounded_over_a_year(calculator: CelestialCalculator) -> None:
    start = datetime.datetime(2024, 1, 1)
    for hours in range(0, 366 * 24, 7):
        moon = calculator.calculate_moon_phase(start + datetime.timedelta(hours=hours))
        assert 0 <= moon.age < SYNODIC_MONTH


def test_illumination_extremes() -> None:
    assert celestial.illumination(0) == pytest.approx(0)
    assert celestial.illumination(SYNODIC_MONTH / 2) == pytest.approx(1)


@pytest.mark.parametrize(
    "fraction,expected",
    [
        (0.0, MoonPhaseName.NEW),
        (0.1, MoonPhaseName.WAXING_CRESCENT),
        (0.25, MoonPhaseName.FIRST_QUARTER),
        (0.4, MoonPhaseName.WAXING_GIBBOUS),
        (0.5, MoonPhaseName.FULL),
        (0.6, MoonPhaseName.WANING_GIBBOUS),
        (0.75, MoonPhaseName.LAST_QUARTER),
        (0.9, MoonPhaseName.WANING_CRESCENT),
        (0.97, MoonPhaseName.NEW),
    ],
)
def test_phase_name(fraction: float, expected: MoonPhaseName) -> None:
    assert celestial.phase_name(fraction * SYNODIC_MONTH) == expected


def test_new_moon_jde_reference() -> None:
    # Meeus example 49.a: new moon of 1977-02-18, JDE 2443192.65118
    assert celestial.new_moon_jde(-283) == pytest.approx(2443192.65118, abs=0.001)


def test_invalid_date_rejected(calculator: CelestialCalculator) -> None:
    with pytest.raises(InvalidDateError):
        calculator.calculate_moon_phase("2024-01-15")  # type: ignore[arg-type]


def test_out_of_range_year_warns(
    calculator: CelestialCalculator, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING):
        moon = calculator.calculate_moon_phase(datetime.datetime(1850, 6, 1))
    assert 0 <= moon.age < SYNODIC_MONTH
    assert "outside the calibrated range" in caplog.text


def test_sun_position_near_equinox(calculator: CelestialCalculator) -> None:
    # March equinox 2024-03-20 03:06 UTC: apparent longitude 0
    positions = calculator.calculate_celestial_positions(
        datetime.datetime(2024, 3, 20, 3, 6)
    )
    longitude = positions.sun.longitude
    assert min(longitude, 360 - longitude) < 0.1
    assert positions.sun.latitude == 0


def test_moon_position_reference(calculator: CelestialCalculator) -> None:
    # Meeus example 47.a: 1992-04-12 0h TD
    positions = calculator.calculate_celestial_positions(
        datetime.datetime(1992, 4, 12, 0, 0)
    )
    assert positions.moon.longitude == pytest.approx(133.162, abs=0.05)
    assert positions.moon.latitude == pytest.approx(-3.229, abs=0.05)
    assert positions.moon.distance == pytest.approx(368409.7, abs=50)


def test_positions_are_normalized(calculator: CelestialCalculator) -> None:
    start = datetime.datetime(2024, 1, 1)
    for days in range(0, 60, 3):
        positions = calculator.calculate_celestial_positions(
            start + datetime.timedelta(days=days)
        )
        assert 0 <= positions.sun.longitude < 360
        assert 0 <= positions.moon.longitude < 360
        assert -6 < positions.moon.latitude < 6
        assert 356000 < positions.moon.distance < 407000


def test_calculate_all(calculator: CelestialCalculator) -> None:
    date = datetime.datetime(2024, 1, 15, 3, 0)
    snapshot = calculator.calculate_all(date)
    assert snapshot.moon_phase == calculator.calculate_moon_phase(date)
    assert snapshot.positions == calculator.calculate_celestial_positions(date)
