"""Lagging, resampling and differencing of aligned, date-time indexed series."""

from mvts.data.index import (
    DateTimeIndex,
    UniformDateTimeIndex,
    IrregularDateTimeIndex,
    uniform,
    irregular,
    from_pandas,
)
from mvts.data.structs import TimeSeries
from mvts.data.loaders import (
    time_series_from_irregular_samples,
    time_series_from_uniform_samples,
    time_series_from_vectors,
    time_series_from_dataframe,
)
from mvts.features.lags import (
    ColumnLag,
    UniformLags,
    PerColumnLags,
    lagged_string_key,
    lagged_pair_key,
)
from mvts.features.resample import ResampleConfig
from mvts.utils.config_manager import ConfigManager
from mvts.utils.error_handling import (
    MvtsError,
    IndexOutOfRange,
    DimensionMismatch,
    EmptyTimeSeries,
    MissingLagConfiguration,
    NonUniformIndex,
    UnorderedIndex,
)

__version__ = "0.1.0"

__all__ = [
    "DateTimeIndex",
    "UniformDateTimeIndex",
    "IrregularDateTimeIndex",
    "uniform",
    "irregular",
    "from_pandas",
    "TimeSeries",
    "time_series_from_irregular_samples",
    "time_series_from_uniform_samples",
    "time_series_from_vectors",
    "time_series_from_dataframe",
    "ColumnLag",
    "UniformLags",
    "PerColumnLags",
    "lagged_string_key",
    "lagged_pair_key",
    "ResampleConfig",
    "ConfigManager",
    "MvtsError",
    "IndexOutOfRange",
    "DimensionMismatch",
    "EmptyTimeSeries",
    "MissingLagConfiguration",
    "NonUniformIndex",
    "UnorderedIndex",
]
