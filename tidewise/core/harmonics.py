"""Harmonic tide synthesis and extreme finding.

The water level relative to mean sea level is

    h(t) = sum_i f_i * A_i * cos(speed_i * t + phase_i + u_i)

with t in hours since J2000.0 (2000-01-01T12:00Z), A_i in cm and
speed_i in degrees per hour. Naive datetimes are treated as UTC.
"""

# Standard library imports
import datetime
import logging
from typing import Dict, Optional, Sequence

# Third-party imports
import numpy as np
import pandas as pd
from scipy.optimize import minimize_scalar
from scipy.signal import find_peaks

# Local imports
from tidewise import util
from tidewise.config import DEFAULT_CONFIG, EngineConfig
from tidewise.core import constituents
from tidewise.dataframe_models import TideCurveDataModel
from tidewise.errors import InvalidDateError, InvalidHarmonicsError
from tidewise.types import HarmonicConstant, NodalFactor, TideEvent, TideEventType

# Time resolution of refined extremes (hours)
_REFINE_TOLERANCE_HOURS = 1.0 / 3600.0


class HarmonicAnalysisEngine:
    """Synthesizes tide levels from harmonic constants."""

    def __init__(self, config: EngineConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def log(self, message: str, level: int = logging.INFO) -> None:
        logging.log(level, f"[harmonics] {message}")

    def validate_harmonic_constants(self, constants: Sequence[HarmonicConstant]) -> None:
        """Raise if the constants cannot be synthesized.

        Raises:
            InvalidHarmonicsError: If constants is empty or names an unknown
                constituent
        """
        if not constants:
            raise InvalidHarmonicsError("Harmonic constants must not be empty")
        unknown = sorted(
            {c.constituent for c in constants if c.constituent not in constituents.CONSTITUENTS}
        )
        if unknown:
            raise InvalidHarmonicsError(f"Unknown constituents: {', '.join(unknown)}")

    def calculate_constituent_factors(
        self, date: datetime.datetime
    ) -> Dict[str, NodalFactor]:
        """Nodal factors f and u for every supported constituent at an instant."""
        utc = util.to_utc(date)
        t = util.julian_centuries(util.julian_day(utc))
        return constituents.nodal_factors(constituents.lunar_node_longitude(t))

    def _terms(
        self, constants: Sequence[HarmonicConstant], reference: datetime.datetime
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Speeds (rad/h), effective amplitudes (cm) and phases (rad)."""
        self.validate_harmonic_constants(constants)
        factors = self.calculate_constituent_factors(reference)

        speeds = np.array(
            [constituents.CONSTITUENTS[c.constituent].speed for c in constants]
        )
        amplitudes = np.array(
            [c.amplitude * factors[c.constituent].f for c in constants]
        )
        phases = np.array([c.phase + factors[c.constituent].u for c in constants])
        return np.radians(speeds), amplitudes, np.radians(phases)

    @staticmethod
    def _levels(
        hours: np.ndarray,
        speeds: np.ndarray,
        amplitudes: np.ndarray,
        phases: np.ndarray,
    ) -> np.ndarray:
        arguments = np.outer(hours, speeds) + phases
        return np.asarray(np.cos(arguments) @ amplitudes)

    def calculate_tide_level(
        self, date: datetime.datetime, constants: Sequence[HarmonicConstant]
    ) -> float:
        """Water level in cm at an instant.

        Raises:
            InvalidDateError: If date is not a valid instant
            InvalidHarmonicsError: If constants are empty or unknown
        """
        utc = util.to_utc(date)
        speeds, amplitudes, phases = self._terms(constants, utc)
        hours = np.array([util.hours_since_j2000(utc)])
        return float(self._levels(hours, speeds, amplitudes, phases)[0])

    def calculate_tide_rate(
        self, date: datetime.datetime, constants: Sequence[HarmonicConstant]
    ) -> float:
        """Rate of change of the water level in cm/hour (positive when rising)."""
        utc = util.to_utc(date)
        speeds, amplitudes, phases = self._terms(constants, utc)
        argument = speeds * util.hours_since_j2000(utc) + phases
        return float(-np.sum(amplitudes * speeds * np.sin(argument)))

    def calculate_tide_strength(
        self, date: datetime.datetime, constants: Sequence[HarmonicConstant]
    ) -> float:
        """Semidiurnal tidal strength on a 0-100 scale.

        The node-corrected M2 and S2 amplitudes are summed and expressed as a
        percentage of the largest semidiurnal amplitudes expected on the coast.
        """
        self.validate_harmonic_constants(constants)
        factors = self.calculate_constituent_factors(date)

        combined = sum(
            c.amplitude * factors[c.constituent].f
            for c in constants
            if c.constituent in constituents.SEMIDIURNAL_MAXIMA
        )
        reference = sum(constituents.SEMIDIURNAL_MAXIMA.values())
        return round(util.clamp(100.0 * combined / reference, 0.0, 100.0), 1)

    def find_tidal_extremes(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        constants: Sequence[HarmonicConstant],
    ) -> list[TideEvent]:
        """Highs and lows strictly inside [start, end].

        The curve is sampled every ``extreme_sample_minutes``; each sampled
        peak or trough is then refined to about one second.

        Args:
            start: Start of the search interval
            end: End of the search interval
            constants: Harmonic constants to synthesize

        Returns:
            Events in strictly increasing time order with alternating type.
            Times are expressed like ``start`` (same timezone, or naive UTC).

        Raises:
            InvalidDateError: If end is not after start
            InvalidHarmonicsError: If constants are empty or unknown
        """
        start_utc = util.to_utc(start)
        end_utc = util.to_utc(end)
        if end_utc <= start_utc:
            raise InvalidDateError(
                f"End {end.isoformat()} must be after start {start.isoformat()}"
            )

        midpoint = start_utc + (end_utc - start_utc) / 2
        speeds, amplitudes, phases = self._terms(constants, midpoint)

        h0 = util.hours_since_j2000(start_utc)
        span = util.hours_since_j2000(end_utc) - h0
        step = self.config.extreme_sample_minutes / 60.0
        hours = np.append(np.arange(0.0, span, step), span)
        levels = self._levels(h0 + hours, speeds, amplitudes, phases)

        def level_at(offset: float) -> float:
            return float(
                self._levels(np.array([h0 + offset]), speeds, amplitudes, phases)[0]
            )

        candidates: list[tuple[float, TideEventType, float]] = []
        for event_type, signal in (
            (TideEventType.HIGH, levels),
            (TideEventType.LOW, -levels),
        ):
            peaks, _ = find_peaks(signal)
            sign = 1.0 if event_type == TideEventType.HIGH else -1.0
            for i in peaks:
                lower = hours[i - 1]
                upper = hours[i + 1]
                result = minimize_scalar(
                    lambda x: -sign * level_at(x),
                    bounds=(lower, upper),
                    method="bounded",
                    options={"xatol": _REFINE_TOLERANCE_HOURS},
                )
                offset = float(result.x)
                candidates.append((offset, event_type, level_at(offset)))

        candidates.sort(key=lambda c: c[0])
        events = self._enforce_alternation(candidates)

        return [
            TideEvent(
                time=util.from_utc(
                    start_utc + datetime.timedelta(seconds=round(offset * 3600)),
                    start,
                ),
                type=event_type,
                level=round(level, 1),
            )
            for offset, event_type, level in events
        ]

    @staticmethod
    def _enforce_alternation(
        candidates: list[tuple[float, TideEventType, float]],
    ) -> list[tuple[float, TideEventType, float]]:
        """Collapse consecutive same-type or same-second candidates."""
        events: list[tuple[float, TideEventType, float]] = []
        for candidate in candidates:
            offset, event_type, level = candidate
            if events:
                last_offset, last_type, last_level = events[-1]
                if event_type == last_type:
                    # Keep the more extreme of the two
                    if event_type == TideEventType.HIGH:
                        more_extreme = level > last_level
                    else:
                        more_extreme = level < last_level
                    if more_extreme:
                        events[-1] = candidate
                    continue
                if round(offset * 3600) <= round(last_offset * 3600):
                    continue
            events.append(candidate)
        return events

    def calculate_tide_curve(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        constants: Sequence[HarmonicConstant],
        interval_minutes: Optional[int] = None,
    ) -> pd.DataFrame:
        """Sampled water levels between start and end (inclusive).

        Returns:
            DataFrame with a naive UTC ``time`` index and a ``level`` column (cm),
            validated against TideCurveDataModel

        Raises:
            InvalidDateError: If end is not after start
        """
        start_utc = util.to_utc(start)
        end_utc = util.to_utc(end)
        if end_utc <= start_utc:
            raise InvalidDateError(
                f"End {end.isoformat()} must be after start {start.isoformat()}"
            )
        interval = interval_minutes or self.config.extreme_sample_minutes

        index = pd.date_range(
            start_utc.replace(tzinfo=None),
            end_utc.replace(tzinfo=None),
            freq=pd.Timedelta(minutes=interval),
            name="time",
        )
        midpoint = start_utc + (end_utc - start_utc) / 2
        speeds, amplitudes, phases = self._terms(constants, midpoint)

        h0 = util.hours_since_j2000(start_utc)
        offsets = (index - index[0]).total_seconds().to_numpy() / 3600.0
        levels = self._levels(h0 + offsets, speeds, amplitudes, phases)

        df = pd.DataFrame({"level": levels.astype(float)}, index=index)
        return TideCurveDataModel.validate(df)
