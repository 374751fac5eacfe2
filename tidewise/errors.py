"""Exception types raised by the tide engine."""


class TideError(Exception):
    """Base exception for all tide engine errors."""


class InvalidCoordinatesError(TideError, ValueError):
    """Latitude or longitude outside the valid range."""


class InvalidDateError(TideError, ValueError):
    """A value that is not a usable instant in time."""


class InvalidCacheKeyError(TideError, ValueError):
    """A cache key that cannot be canonicalized."""


class InvalidHarmonicsError(TideError, ValueError):
    """An empty or unusable set of harmonic constants."""


class ServiceNotReadyError(TideError, RuntimeError):
    """The calculation service was used before initialize() completed."""


class RegionNotFoundError(TideError, LookupError):
    """No calibration region is available for a coordinate."""


class TideCalculationError(TideError, RuntimeError):
    """Wraps an internal failure of the tide calculation pipeline.

    The original exception is always available as ``__cause__``.
    """
