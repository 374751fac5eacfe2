"""Lunar phase and Sun/Moon ecliptic positions.

All results are computed from closed-form periodic-term series (Meeus,
Astronomical Algorithms, chapters 25, 47 and 49). Accuracy is of the order
of minutes for new moon instants and a few hundredths of a degree for
longitudes, which is well beyond what tide classification needs.
"""

# Standard library imports
import datetime
import logging
import math
from typing import Any

# Local imports
from tidewise import util
from tidewise.config import DEFAULT_CONFIG, EngineConfig
from tidewise.types import (
    CelestialPosition,
    CelestialSnapshot,
    MoonPhase,
    MoonPhaseName,
    MoonPosition,
    SunPosition,
)

SYNODIC_MONTH = 29.530588861

# Mean new moon of 2000-01-06 (JDE), lunation k = 0
REFERENCE_NEW_MOON_JDE = 2451550.09766

MEAN_MOON_DISTANCE_KM = 385000.56

# Upper bounds of the named phases as fractions of the synodic month
_PHASE_BOUNDARIES = [
    (1 / 16, MoonPhaseName.NEW),
    (3 / 16, MoonPhaseName.WAXING_CRESCENT),
    (5 / 16, MoonPhaseName.FIRST_QUARTER),
    (7 / 16, MoonPhaseName.WAXING_GIBBOUS),
    (9 / 16, MoonPhaseName.FULL),
    (11 / 16, MoonPhaseName.WANING_GIBBOUS),
    (13 / 16, MoonPhaseName.LAST_QUARTER),
    (15 / 16, MoonPhaseName.WANING_CRESCENT),
]

# New moon corrections: (coefficient, multiples of M, M', F, omega)
_NEW_MOON_TERMS = [
    (-0.40720, 0, 1, 0, 0),
    (0.17241, 1, 0, 0, 0),
    (0.01608, 0, 2, 0, 0),
    (0.01039, 0, 0, 2, 0),
    (0.00739, -1, 1, 0, 0),
    (-0.00514, 1, 1, 0, 0),
    (0.00208, 2, 0, 0, 0),
    (-0.00111, 0, 1, -2, 0),
    (-0.00057, 0, 1, 2, 0),
    (0.00056, 1, 2, 0, 0),
    (-0.00042, 0, 3, 0, 0),
    (0.00042, 1, 0, 2, 0),
    (0.00038, 1, 0, -2, 0),
    (-0.00024, -1, 2, 0, 0),
    (-0.00017, 0, 0, 0, 1),
    (-0.00007, 2, 1, 0, 0),
    (0.00004, 0, 2, -2, 0),
    (0.00004, 3, 0, 0, 0),
    (0.00003, 1, 1, -2, 0),
    (0.00003, 0, 2, 2, 0),
    (-0.00003, 1, 1, 2, 0),
    (0.00003, -1, 1, 2, 0),
    (-0.00002, -1, 1, -2, 0),
    (-0.00002, 1, 3, 0, 0),
    (0.00002, 0, 4, 0, 0),
]

# Planetary arguments: (constant, rate per lunation, coefficient)
_PLANETARY_TERMS = [
    (299.77, 0.107408, 0.000325),
    (251.88, 0.016321, 0.000165),
    (251.83, 26.651886, 0.000164),
    (349.42, 36.412478, 0.000126),
    (84.66, 18.206239, 0.000110),
    (141.74, 53.303771, 0.000062),
    (207.14, 2.453732, 0.000060),
    (154.84, 7.306860, 0.000056),
    (34.52, 27.261239, 0.000047),
    (207.19, 0.121824, 0.000042),
    (291.34, 1.844379, 0.000040),
    (161.72, 24.198154, 0.000037),
    (239.56, 25.513099, 0.000035),
    (331.55, 3.592518, 0.000023),
]

# Moon longitude and distance terms: (D, M, M', F, sum_l [1e-6 deg], sum_r [1e-3 km])
_MOON_LR_TERMS = [
    (0, 0, 1, 0, 6288774, -20905355),
    (2, 0, -1, 0, 1274027, -3699111),
    (2, 0, 0, 0, 658314, -2955968),
    (0, 0, 2, 0, 213618, -569925),
    (0, 1, 0, 0, -185116, 48888),
    (0, 0, 0, 2, -114332, -3149),
    (2, 0, -2, 0, 58793, 246158),
    (2, -1, -1, 0, 57066, -152138),
    (2, 0, 1, 0, 53322, -170733),
    (2, -1, 0, 0, 45758, -204586),
    (0, 1, -1, 0, -40923, -129620),
    (1, 0, 0, 0, -34720, 108743),
    (0, 1, 1, 0, -30383, 104755),
    (2, 0, 0, -2, 15327, 10321),
    (0, 0, 1, 2, -12528, 0),
    (0, 0, 1, -2, 10980, 79661),
    (4, 0, -1, 0, 10675, -34782),
    (0, 0, 3, 0, 10034, -23210),
    (4, 0, -2, 0, 8548, -21636),
    (2, 1, -1, 0, -7888, 24208),
    (2, 1, 0, 0, -6766, 30824),
    (1, 0, -1, 0, -5163, -8379),
    (1, 1, 0, 0, 4987, -16675),
    (2, -1, 1, 0, 4036, -12831),
    (2, 0, 2, 0, 3994, -10445),
    (4, 0, 0, 0, 3861, -11650),
    (2, 0, -3, 0, 3665, 14403),
    (0, 1, -2, 0, -2689, -7003),
    (2, 0, -1, 2, -2602, 0),
    (2, -1, -2, 0, 2390, 10056),
    (1, 0, 1, 0, -2348, 6322),
    (2, -2, 0, 0, 2236, -9884),
    (0, 1, 2, 0, -2120, 5751),
    (0, 2, 0, 0, -2069, 0),
]

# Moon latitude terms: (D, M, M', F, sum_b [1e-6 deg])
_MOON_B_TERMS = [
    (0, 0, 0, 1, 5128122),
    (0, 0, 1, 1, 280602),
    (0, 0, 1, -1, 277693),
    (2, 0, 0, -1, 173237),
    (2, 0, -1, 1, 55413),
    (2, 0, -1, -1, 46271),
    (2, 0, 0, 1, 32573),
    (0, 0, 2, 1, 17198),
    (2, 0, 1, -1, 9266),
    (0, 0, 2, -1, 8822),
    (2, -1, 0, -1, 8216),
    (2, 0, -2, -1, 4324),
    (2, 0, 1, 1, 4200),
    (2, 1, 0, -1, -3359),
    (2, -1, -1, 1, 2463),
    (2, -1, 0, 1, 2211),
    (2, -1, -1, -1, 2065),
    (0, 1, -1, -1, -1870),
    (4, 0, -1, -1, 1828),
    (0, 1, 0, 1, -1794),
    (0, 0, 0, 3, -1749),
    (0, 1, -1, 1, -1565),
    (1, 0, 0, 1, -1491),
    (0, 1, 1, 1, -1475),
    (0, 1, 1, -1, -1410),
    (0, 1, 0, -1, -1344),
    (1, 0, 0, -1, -1335),
    (0, 0, 3, 1, 1107),
    (4, 0, 0, -1, 1021),
    (4, 0, -1, 1, 833),
]


def _sin_deg(angle: float) -> float:
    return math.sin(math.radians(angle))


def _cos_deg(angle: float) -> float:
    return math.cos(math.radians(angle))


def new_moon_jde(k: int) -> float:
    """Julian ephemeris day of the new moon for lunation index k."""
    t = k / 1236.85
    jde = (
        REFERENCE_NEW_MOON_JDE
        + SYNODIC_MONTH * k
        + 0.00015437 * t**2
        - 0.000000150 * t**3
        + 0.00000000073 * t**4
    )

    e = 1 - 0.002516 * t - 0.0000074 * t**2
    m = 2.5534 + 29.10535670 * k - 0.0000014 * t**2 - 0.00000011 * t**3
    mp = (
        201.5643
        + 385.81693528 * k
        + 0.0107582 * t**2
        + 0.00001238 * t**3
        - 0.000000058 * t**4
    )
    f = (
        160.7108
        + 390.67050284 * k
        - 0.0016118 * t**2
        - 0.00000227 * t**3
        + 0.000000011 * t**4
    )
    omega = 124.7746 - 1.56375588 * k + 0.0020672 * t**2 + 0.00000215 * t**3

    correction = 0.0
    for coefficient, cm, cmp, cf, comega in _NEW_MOON_TERMS:
        # Terms involving the Sun's anomaly scale with the eccentricity
        coefficient *= e ** abs(cm)
        correction += coefficient * _sin_deg(
            cm * m + cmp * mp + cf * f + comega * omega
        )

    planetary = 0.0
    for index, (base, rate, coefficient) in enumerate(_PLANETARY_TERMS):
        angle = base + rate * k
        if index == 0:
            angle -= 0.009173 * t**2
        planetary += coefficient * _sin_deg(angle)

    return jde + correction + planetary


def phase_name(age: float) -> MoonPhaseName:
    """Named phase for a lunar age in days."""
    fraction = age / SYNODIC_MONTH
    for upper, name in _PHASE_BOUNDARIES:
        if fraction < upper:
            return name
    return MoonPhaseName.NEW


def illumination(age: float) -> float:
    """Illuminated fraction of the lunar disc for a lunar age in days."""
    value = (1 - math.cos(2 * math.pi * age / SYNODIC_MONTH)) / 2
    return util.clamp(value, 0.0, 1.0)


class CelestialCalculator:
    """Computes lunar phase and Sun/Moon positions for an instant.

    Naive datetimes are treated as UTC.
    """

    def __init__(self, config: EngineConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def log(self, message: str, level: int = logging.INFO) -> None:
        logging.log(level, f"[celestial] {message}")

    def _validate_date(self, date: Any) -> datetime.datetime:
        utc = util.to_utc(date)
        if not (
            self.config.min_calibrated_year
            <= utc.year
            <= self.config.max_calibrated_year
        ):
            self.log(
                f"Year {utc.year} is outside the calibrated range "
                f"{self.config.min_calibrated_year}-{self.config.max_calibrated_year}, "
                "results may be inaccurate",
                level=logging.WARNING,
            )
        return utc

    def calculate_moon_phase(self, date: datetime.datetime) -> MoonPhase:
        """Lunar age, phase name and illumination for an instant.

        Args:
            date: Instant to evaluate

        Returns:
            MoonPhase with age in [0, synodic month)

        Raises:
            InvalidDateError: If date is not a valid instant
        """
        utc = self._validate_date(date)
        jd = util.julian_day(utc)
        k_estimate = round((jd - REFERENCE_NEW_MOON_JDE) / SYNODIC_MONTH)

        age = None
        for window in (2, 5):
            candidates = [
                jd - new_moon_jde(k)
                for k in range(k_estimate - window, k_estimate + window + 1)
            ]
            valid = [a for a in candidates if 0 <= a < SYNODIC_MONTH]
            if valid:
                age = min(valid)
                break

        if age is None:
            self.log(
                f"No lunation bracket found for {utc.isoformat()}, using age 0",
                level=logging.WARNING,
            )
            age = 0.0

        return MoonPhase(age=age, phase=phase_name(age), illumination=illumination(age))

    def calculate_celestial_positions(
        self, date: datetime.datetime
    ) -> CelestialPosition:
        """Geocentric ecliptic positions of the Sun and the Moon.

        Args:
            date: Instant to evaluate

        Returns:
            CelestialPosition with longitudes normalized to [0, 360)

        Raises:
            InvalidDateError: If date is not a valid instant
        """
        utc = self._validate_date(date)
        t = util.julian_centuries(util.julian_day(utc))
        return CelestialPosition(sun=self._sun_position(t), moon=self._moon_position(t))

    def calculate_all(self, date: datetime.datetime) -> CelestialSnapshot:
        return CelestialSnapshot(
            moon_phase=self.calculate_moon_phase(date),
            positions=self.calculate_celestial_positions(date),
        )

    @staticmethod
    def _sun_position(t: float) -> SunPosition:
        mean_longitude = 280.46646 + 36000.76983 * t + 0.0003032 * t**2
        mean_anomaly = 357.52911 + 35999.05029 * t - 0.0001537 * t**2
        center = (
            (1.914602 - 0.004817 * t - 0.000014 * t**2) * _sin_deg(mean_anomaly)
            + (0.019993 - 0.000101 * t) * _sin_deg(2 * mean_anomaly)
            + 0.000289 * _sin_deg(3 * mean_anomaly)
        )
        return SunPosition(
            longitude=util.normalize_degrees(mean_longitude + center), latitude=0.0
        )

    @staticmethod
    def _moon_position(t: float) -> MoonPosition:
        mean_longitude = (
            218.3164477
            + 481267.88123421 * t
            - 0.0015786 * t**2
            + t**3 / 538841
            - t**4 / 65194000
        )
        elongation = (
            297.8501921
            + 445267.1114034 * t
            - 0.0018819 * t**2
            + t**3 / 545868
            - t**4 / 113065000
        )
        sun_anomaly = (
            357.5291092 + 35999.0502909 * t - 0.0001536 * t**2 + t**3 / 24490000
        )
        moon_anomaly = (
            134.9633964
            + 477198.8675055 * t
            + 0.0087414 * t**2
            + t**3 / 69699
            - t**4 / 14712000
        )
        latitude_argument = (
            93.2720950
            + 483202.0175233 * t
            - 0.0036539 * t**2
            - t**3 / 3526000
            + t**4 / 863310000
        )

        sum_l = 0.0
        sum_r = 0.0
        for d, m, mp, f, coeff_l, coeff_r in _MOON_LR_TERMS:
            argument = (
                d * elongation
                + m * sun_anomaly
                + mp * moon_anomaly
                + f * latitude_argument
            )
            sum_l += coeff_l * _sin_deg(argument)
            sum_r += coeff_r * _cos_deg(argument)

        sum_b = 0.0
        for d, m, mp, f, coeff_b in _MOON_B_TERMS:
            argument = (
                d * elongation
                + m * sun_anomaly
                + mp * moon_anomaly
                + f * latitude_argument
            )
            sum_b += coeff_b * _sin_deg(argument)

        return MoonPosition(
            longitude=util.normalize_degrees(mean_longitude + sum_l / 1e6),
            latitude=sum_b / 1e6,
            distance=MEAN_MOON_DISTANCE_KM + sum_r / 1000,
        )
