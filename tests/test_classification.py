"""Tests for tide type classification and lunar strength."""

# Standard library imports
import datetime
import math

# Third-party imports
import pytest

# Local imports
from tidewise.core.celestial import SYNODIC_MONTH, illumination, phase_name
from tidewise.core.classification import TideClassificationEngine
from tidewise.types import MoonPhase, TideType


@pytest.fixture
def engine() -> TideClassificationEngine:
    return TideClassificationEngine()


def moon_at(age: float) -> MoonPhase:
    return MoonPhase(age=age, phase=phase_name(age), illumination=illumination(age))


@pytest.mark.parametrize(
    "age,expected",
    [
        (0.0, TideType.SPRING),
        (2.5, TideType.SPRING),
        (3.0, TideType.MEDIUM),
        (5.5, TideType.NEAP),
        (9.0, TideType.NEAP),
        (9.5, TideType.LONG),
        (10.5, TideType.LONG),
        (11.0, TideType.YOUNG),
        (12.0, TideType.SPRING),
        (14.8, TideType.SPRING),
        (17.5, TideType.SPRING),
        (18.0, TideType.MEDIUM),
        (22.0, TideType.NEAP),
        (25.0, TideType.LONG),
        (26.0, TideType.YOUNG),
        (28.0, TideType.SPRING),
    ],
)
def test_classify_by_age(
    engine: TideClassificationEngine, age: float, expected: TideType
) -> None:
    assert engine.classify_tide_type(age) == expected


def test_classify_accepts_moon_phase(engine: TideClassificationEngine) -> None:
    assert engine.classify_tide_type(moon_at(7.4)) == TideType.NEAP


def test_classify_wraps_ages_beyond_a_month(engine: TideClassificationEngine) -> None:
    assert engine.classify_tide_type(SYNODIC_MONTH + 7.0) == TideType.NEAP


@pytest.mark.parametrize("age", [-0.1, math.nan, math.inf])
def test_classify_rejects_invalid_age(
    engine: TideClassificationEngine, age: float
) -> None:
    with pytest.raises(ValueError):
        engine.classify_tide_type(age)


def test_classify_date(engine: TideClassificationEngine) -> None:
    # Two hours after the new moon of 2000-01-06
    assert engine.classify_date(datetime.datetime(2000, 1, 6, 20, 0)) == TideType.SPRING


def test_strength_peaks_at_syzygy(engine: TideClassificationEngine) -> None:
    new = engine.calculate_tide_strength(moon_at(0.0))
    full = engine.calculate_tide_strength(moon_at(SYNODIC_MONTH / 2))
    quarter = engine.calculate_tide_strength(moon_at(SYNODIC_MONTH / 4))
    assert new == full == 90
    assert quarter == 50
    assert quarter < new


def test_strength_distance_and_season(engine: TideClassificationEngine) -> None:
    base = engine.calculate_tide_strength(moon_at(0.0))
    perigee = engine.calculate_tide_strength(moon_at(0.0), moon_distance_ratio=0.93)
    apogee = engine.calculate_tide_strength(moon_at(0.0), moon_distance_ratio=1.06)
    assert apogee < base < perigee

    equinox = engine.calculate_tide_strength(
        moon_at(0.0), date=datetime.datetime(2024, 3, 20)
    )
    midsummer = engine.calculate_tide_strength(
        moon_at(0.0), date=datetime.datetime(2024, 6, 21)
    )
    assert equinox > base
    assert midsummer == base


def test_strength_is_bounded(engine: TideClassificationEngine) -> None:
    for tenth in range(0, 295):
        strength = engine.calculate_tide_strength(
            moon_at(tenth / 10), moon_distance_ratio=0.5, date=datetime.datetime(2024, 3, 20)
        )
        assert 0 <= strength <= 120
