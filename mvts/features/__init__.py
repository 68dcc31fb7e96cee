"""Lag, resample and columnar transform engines.

This module provides:
- Lagged feature matrices with uniform or per-column lag plans
- Windowed resampling onto a target date-time index
- Differences, quotients and periodic returns
"""

from mvts.features.lags import (
    ColumnLag,
    UniformLags,
    PerColumnLags,
    lag_mat_trim_both,
    lagged_string_key,
    lagged_pair_key,
)
from mvts.features.resample import ResampleConfig, resample
from mvts.features.transforms import differences, quotients, price2ret

__all__ = [
    "ColumnLag",
    "UniformLags",
    "PerColumnLags",
    "lag_mat_trim_both",
    "lagged_string_key",
    "lagged_pair_key",
    "ResampleConfig",
    "resample",
    "differences",
    "quotients",
    "price2ret",
]
