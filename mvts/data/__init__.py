"""Date-time indexes, the TimeSeries container and its constructors."""

from .index import DateTimeIndex, UniformDateTimeIndex, IrregularDateTimeIndex
from .structs import TimeSeries
from .loaders import (
    time_series_from_irregular_samples,
    time_series_from_uniform_samples,
    time_series_from_vectors,
    time_series_from_dataframe,
)

__all__ = [
    "DateTimeIndex",
    "UniformDateTimeIndex",
    "IrregularDateTimeIndex",
    "TimeSeries",
    "time_series_from_irregular_samples",
    "time_series_from_uniform_samples",
    "time_series_from_vectors",
    "time_series_from_dataframe",
]
