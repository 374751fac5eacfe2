"""Shared utilities: time conversion, angles and geodesy."""

# Standard library imports
import datetime
import math
from typing import Any

# Third-party imports
import pandas as pd
import pytz

# Local imports
from tidewise.errors import InvalidCoordinatesError, InvalidDateError

# Mean Earth radius used for great-circle distances
EARTH_RADIUS_KM = 6371.0

# Julian day of the Unix epoch and of the J2000.0 epoch (2000-01-01T12:00Z)
UNIX_EPOCH_JD = 2440587.5
J2000_JD = 2451545.0
DAYS_PER_JULIAN_CENTURY = 36525.0


def utc_now() -> datetime.datetime:
    """Returns the current time in UTC as a naive datetime (without timezone information)."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def to_utc(
    value: Any, default_tz: datetime.tzinfo = pytz.utc
) -> datetime.datetime:
    """Convert an instant into a timezone-aware UTC datetime.

    Naive datetimes are interpreted in ``default_tz``.

    Args:
        value: A datetime (or pandas Timestamp)
        default_tz: Timezone used to interpret naive datetimes

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        InvalidDateError: If value is not a valid instant
    """
    if value is None or not isinstance(value, datetime.datetime) or pd.isna(value):
        raise InvalidDateError(f"Invalid date: {value!r}")
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if value.tzinfo is None:
        if isinstance(default_tz, pytz.BaseTzInfo):
            value = default_tz.localize(value)
        else:
            value = value.replace(tzinfo=default_tz)
    return value.astimezone(pytz.utc)


def from_utc(
    value: datetime.datetime,
    reference: datetime.datetime,
    default_tz: datetime.tzinfo = pytz.utc,
) -> datetime.datetime:
    """Express a UTC instant the same way ``reference`` is expressed.

    If ``reference`` is timezone-aware the result is converted to its
    timezone. Otherwise the result is a naive datetime in ``default_tz``.
    """
    if reference.tzinfo is not None:
        return value.astimezone(reference.tzinfo)
    return value.astimezone(default_tz).replace(tzinfo=None)


def julian_day(dt: datetime.datetime) -> float:
    """Continuous Julian day number for a timezone-aware instant."""
    return dt.timestamp() / 86400.0 + UNIX_EPOCH_JD


def julian_centuries(jd: float) -> float:
    """Julian centuries elapsed since J2000.0."""
    return (jd - J2000_JD) / DAYS_PER_JULIAN_CENTURY


def hours_since_j2000(dt: datetime.datetime) -> float:
    return (julian_day(dt) - J2000_JD) * 24.0


def day_of_year(dt: datetime.datetime) -> int:
    return dt.timetuple().tm_yday


def normalize_degrees(angle: float) -> float:
    """Normalize an angle into [0, 360)."""
    result = math.fmod(angle, 360.0)
    if result < 0:
        result += 360.0
    # fmod of tiny negative values can round up to exactly 360
    return 0.0 if result >= 360.0 else result


def normalize_phase(angle: float) -> float:
    """Normalize a phase angle into [-180, 180)."""
    return normalize_degrees(angle + 180.0) - 180.0


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Raise if a coordinate pair is outside the valid range.

    Raises:
        InvalidCoordinatesError: If latitude is outside [-90, 90] or longitude
            outside [-180, 180], or either is not a finite number.
    """
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise InvalidCoordinatesError(
            f"Coordinates must be finite numbers: ({latitude}, {longitude})"
        )
    if not -90.0 <= latitude <= 90.0:
        raise InvalidCoordinatesError(
            f"Latitude {latitude} is outside the range [-90, 90]"
        )
    if not -180.0 <= longitude <= 180.0:
        raise InvalidCoordinatesError(
            f"Longitude {longitude} is outside the range [-180, 180]"
        )


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers between two points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    # Rounding can push a slightly outside [0, 1]
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def initial_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial great-circle bearing in degrees [0, 360) from point 1 to point 2."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dlambda = math.radians(lon2 - lon1)

    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(
        dlambda
    )
    return normalize_degrees(math.degrees(math.atan2(y, x)))


def bounding_box(
    latitude: float, longitude: float, radius_km: float
) -> tuple[float, float, float, float]:
    """Bounding box containing every point within ``radius_km`` of a point.

    Args:
        latitude: Center latitude in degrees
        longitude: Center longitude in degrees
        radius_km: Great-circle radius in kilometers

    Returns:
        Tuple of (south, west, north, east) in degrees, clipped to valid ranges
    """
    angular_radius = radius_km / EARTH_RADIUS_KM
    lat_delta = math.degrees(angular_radius)
    cos_lat = math.cos(math.radians(latitude))
    south = max(-90.0, latitude - lat_delta)
    north = min(90.0, latitude + lat_delta)
    if angular_radius >= math.pi / 2 or math.sin(angular_radius) >= cos_lat:
        # The circle contains a pole, so every longitude is in range
        return south, -180.0, north, 180.0

    lon_delta = math.degrees(math.asin(math.sin(angular_radius) / cos_lat))
    return (
        south,
        max(-180.0, longitude - lon_delta),
        north,
        min(180.0, longitude + lon_delta),
    )


def is_point_in_bounds(
    latitude: float,
    longitude: float,
    south: float,
    west: float,
    north: float,
    east: float,
) -> bool:
    """Whether a point lies inside a latitude/longitude rectangle (inclusive)."""
    return south <= latitude <= north and west <= longitude <= east


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))

