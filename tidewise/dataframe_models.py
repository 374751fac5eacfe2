"""Pandera DataFrame models for validating sampled tide curves."""

import numpy as np
import pandas as pd
import pandera.pandas as pa
import pandera.typing as pa_typing


class TideCurveDataModel(pa.DataFrameModel):
    """Water levels (cm) synthesized on an evenly spaced, naive UTC index."""

    time: pa_typing.Index[pa.DateTime] = pa.Field(
        nullable=False, unique=True, check_name=True
    )
    level: pa_typing.Series[float] = pa.Field(nullable=False)

    @pa.dataframe_check(error="Tide curve has no samples")
    def check_has_samples(cls, df: pd.DataFrame) -> bool:
        return len(df) > 0

    @pa.check("time", error="Samples must be in time order")
    def check_time_order(cls, idx: pd.Index) -> bool:
        return bool(idx.is_monotonic_increasing)

    @pa.check("time", error="Samples must be evenly spaced")
    def check_even_spacing(cls, idx: pd.Index) -> bool:
        return pd.Series(idx).diff().dropna().nunique() <= 1

    @pa.check("time", error="Curve index must be timezone naive")
    def check_time_naive(cls, idx: pd.Index) -> bool:
        return pd.Series(idx).dt.tz is None

    @pa.check("level", error="Levels must be finite")
    def check_level_finite(cls, series: pd.Series) -> bool:
        return bool(np.isfinite(series.to_numpy(dtype=float)).all())

    class Config:
        """Reject unexpected columns and never coerce synthesized values."""

        strict = True
        coerce = False
