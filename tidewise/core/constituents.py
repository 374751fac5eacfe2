"""Tidal constituent table and nodal corrections.

Each supported constituent has a fixed angular speed (degrees per mean
solar hour). Node factors f and equilibrium arguments u vary slowly over
the 18.61-year cycle of the Moon's ascending node and are evaluated from
the node longitude N.
"""

# Standard library imports
import enum
import math
from types import MappingProxyType
from typing import Annotated, Dict

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field

# Local imports
from tidewise import util
from tidewise.types import NodalFactor


class ConstituentKind(str, enum.Enum):
    SEMIDIURNAL = "semidiurnal"
    DIURNAL = "diurnal"
    LONG_PERIOD = "long_period"
    QUARTER_DIURNAL = "quarter_diurnal"


class Constituent(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    name: str
    speed: Annotated[float, Field(gt=0, description="Angular speed (degrees/hour)")]
    kind: ConstituentKind

    @property
    def period_hours(self) -> float:
        return 360.0 / self.speed


_CONSTITUENT_LIST = [
    Constituent(name="M2", speed=28.984104, kind=ConstituentKind.SEMIDIURNAL),
    Constituent(name="S2", speed=30.0, kind=ConstituentKind.SEMIDIURNAL),
    Constituent(name="K1", speed=15.041069, kind=ConstituentKind.DIURNAL),
    Constituent(name="O1", speed=13.943035, kind=ConstituentKind.DIURNAL),
    Constituent(name="Mf", speed=1.098033, kind=ConstituentKind.LONG_PERIOD),
    Constituent(name="Mm", speed=0.544375, kind=ConstituentKind.LONG_PERIOD),
    Constituent(name="M4", speed=57.968208, kind=ConstituentKind.QUARTER_DIURNAL),
    Constituent(name="MS4", speed=58.984104, kind=ConstituentKind.QUARTER_DIURNAL),
]

CONSTITUENTS = MappingProxyType({c.name: c for c in _CONSTITUENT_LIST})

# Canonical amplitudes (cm) that regional amplitudes are compared against
REFERENCE_AMPLITUDES = MappingProxyType({"M2": 50.0, "S2": 23.0})

# Largest semidiurnal amplitudes (cm) expected along the covered coast
SEMIDIURNAL_MAXIMA = MappingProxyType({"M2": 200.0, "S2": 90.0})

NODE_FACTOR_MIN = 0.5
NODE_FACTOR_MAX = 1.5


def get(name: str) -> Constituent | None:
    return CONSTITUENTS.get(name)


def lunar_node_longitude(t_centuries: float) -> float:
    """Longitude of the Moon's mean ascending node in degrees [0, 360).

    Args:
        t_centuries: Julian centuries since J2000.0
    """
    t = t_centuries
    return util.normalize_degrees(
        125.0445479 - 1934.1362891 * t + 0.0020754 * t**2 + t**3 / 467441.0
    )


def nodal_factors(node_longitude: float) -> Dict[str, NodalFactor]:
    """Node factor and equilibrium argument for every supported constituent.

    Args:
        node_longitude: Longitude of the lunar ascending node (degrees)

    Returns:
        Mapping of constituent name to NodalFactor, f clamped to
        [0.5, 1.5] and u normalized to [-180, 180)
    """
    n = math.radians(node_longitude)
    cos_n, cos_2n, cos_3n = math.cos(n), math.cos(2 * n), math.cos(3 * n)
    sin_n, sin_2n, sin_3n = math.sin(n), math.sin(2 * n), math.sin(3 * n)

    raw: Dict[str, tuple[float, float]] = {
        "M2": (1.0 - 0.037 * cos_n, -2.14 * sin_n),
        "S2": (1.0, 0.0),
        "K1": (
            1.006 + 0.115 * cos_n - 0.0088 * cos_2n + 0.0006 * cos_3n,
            -8.86 * sin_n + 0.68 * sin_2n - 0.07 * sin_3n,
        ),
        "O1": (
            1.009 + 0.187 * cos_n - 0.015 * cos_2n + 0.0014 * cos_3n,
            10.80 * sin_n - 1.34 * sin_2n + 0.19 * sin_3n,
        ),
        "Mf": (
            1.043 + 0.414 * cos_n + 0.006 * cos_2n,
            -23.74 * sin_n + 2.68 * sin_2n - 0.38 * sin_3n,
        ),
        "Mm": (1.0 - 0.130 * cos_n + 0.0013 * cos_2n, 0.0),
    }
    # Compound constituents inherit from their parents
    f_m2, u_m2 = raw["M2"]
    raw["M4"] = (f_m2**2, 2 * u_m2)
    raw["MS4"] = (f_m2, u_m2)

    return {
        name: NodalFactor(
            f=util.clamp(f, NODE_FACTOR_MIN, NODE_FACTOR_MAX),
            u=util.normalize_phase(u),
        )
        for name, (f, u) in raw.items()
    }
