"""Tide-type labels and lunar tidal strength.

Labels follow the Japanese tide calendar (spring, medium, neap, long and
young tides) and depend only on the lunar age. They are presentation
hints and never feed back into level computation.
"""

# Standard library imports
import datetime
import math
from typing import Optional, Union

# Local imports
from tidewise import util
from tidewise.core.celestial import SYNODIC_MONTH, CelestialCalculator
from tidewise.types import MoonPhase, TideType

# Lunar age ranges (days), inclusive lower and upper bounds
_SPRING_RANGES = [(0.0, 2.5), (12.0, 17.5), (27.5, SYNODIC_MONTH)]
_NEAP_RANGES = [(5.5, 9.0), (20.0, 24.0)]
# Exclusive lower bound, inclusive upper bound
_LONG_RANGES = [(9.0, 10.5), (24.0, 25.5)]
# Exclusive on both ends
_YOUNG_RANGES = [(10.5, 12.0), (25.5, 27.5)]

HALF_SYNODIC_MONTH = SYNODIC_MONTH / 2

# Day of year of the March and September equinoxes
_EQUINOX_DAYS = (79, 265)


class TideClassificationEngine:
    """Maps lunar age to a TideType label."""

    def __init__(self, celestial: Optional[CelestialCalculator] = None) -> None:
        self.celestial = celestial or CelestialCalculator()

    def classify_tide_type(self, moon: Union[MoonPhase, float]) -> TideType:
        """Tide type for a lunar age.

        Args:
            moon: A MoonPhase, or a lunar age in days

        Returns:
            The tide type label

        Raises:
            ValueError: If the age is negative or not a finite number
        """
        age = moon.age if isinstance(moon, MoonPhase) else float(moon)
        if not math.isfinite(age) or age < 0:
            raise ValueError(f"Invalid lunar age: {age}")
        if age >= SYNODIC_MONTH:
            age = age % SYNODIC_MONTH

        if any(lower <= age <= upper for lower, upper in _SPRING_RANGES):
            return TideType.SPRING
        if any(lower <= age <= upper for lower, upper in _NEAP_RANGES):
            return TideType.NEAP
        if any(lower < age <= upper for lower, upper in _LONG_RANGES):
            return TideType.LONG
        if any(lower < age < upper for lower, upper in _YOUNG_RANGES):
            return TideType.YOUNG
        return TideType.MEDIUM

    def classify_date(self, date: datetime.datetime) -> TideType:
        return self.classify_tide_type(self.celestial.calculate_moon_phase(date))

    def calculate_tide_strength(
        self,
        moon: MoonPhase,
        moon_distance_ratio: float = 1.0,
        date: Optional[datetime.datetime] = None,
    ) -> int:
        """Lunar tidal strength index from 0 to 120.

        Combines alignment with new or full moon, the Moon's distance and
        the proximity of an equinox.

        Args:
            moon: Moon phase at the instant
            moon_distance_ratio: Earth-Moon distance divided by its mean
            date: Instant used for the equinox term (omitted: no seasonal boost)

        Returns:
            Integer strength index
        """
        angle = 2 * math.pi * moon.age / SYNODIC_MONTH
        full_angle = 2 * math.pi * (moon.age - HALF_SYNODIC_MONTH) / SYNODIC_MONTH
        alignment = max(math.cos(angle), math.cos(full_angle))
        strength = 10 + (alignment + 1) * 40

        if moon_distance_ratio > 0:
            strength *= util.clamp((1 / moon_distance_ratio) ** 3, 0.8, 1.3)

        if date is not None:
            day = util.day_of_year(date)
            distance = min(abs(day - equinox) for equinox in _EQUINOX_DAYS)
            if distance <= 30:
                strength *= 1 + 0.1 * math.exp(-distance / 15)

        return round(util.clamp(strength, 0, 120))
