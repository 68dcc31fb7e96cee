"""Construction entry points for TimeSeries."""

from typing import Any, Iterable, Sequence, Tuple
import logging

import numpy as np
import pandas as pd

from mvts.data.index import DateTimeIndex, UniformDateTimeIndex, from_pandas, irregular
from mvts.data.structs import TimeSeries
from mvts.utils.error_handling import DimensionMismatch, NonUniformIndex

logger = logging.getLogger(__name__)


def _rows_to_matrix(rows: Sequence[Any], n_cols: int) -> np.ndarray:
    """Stack sample rows into a column-contiguous matrix."""
    matrix = np.empty((len(rows), n_cols), dtype=np.float64, order="F")
    for i, row in enumerate(rows):
        values = np.asarray(row, dtype=np.float64)
        if values.shape != (n_cols,):
            raise DimensionMismatch(
                f"Sample {i} has shape {values.shape}, expected ({n_cols},)",
                context={"sample": i},
            )
        matrix[i, :] = values
    return matrix


def time_series_from_irregular_samples(
    samples: Iterable[Tuple[Any, Sequence[float]]],
    labels: Sequence[Any],
    tz: Any = None,
) -> TimeSeries:
    """
    Build a TimeSeries from timestamped rows.

    Args:
        samples: ``(timestamp, values)`` pairs, already sorted by timestamp
        labels: One label per value in each row
        tz: Timezone of the index; defaults to that of the first timestamp

    Returns:
        TimeSeries over an IrregularDateTimeIndex, one row per sample

    Raises:
        UnorderedIndex: If timestamps are not strictly increasing
        DimensionMismatch: If a row does not have one value per label
    """
    samples = list(samples)
    index = irregular([timestamp for timestamp, _ in samples], tz=tz)
    matrix = _rows_to_matrix([values for _, values in samples], len(labels))
    logger.debug(f"Built irregular time series with shape {matrix.shape}")
    return TimeSeries(index, matrix, labels, copy=False)


def time_series_from_uniform_samples(
    samples: Sequence[Sequence[float]],
    index: UniformDateTimeIndex,
    labels: Sequence[Any],
) -> TimeSeries:
    """
    Build a TimeSeries from rows observed on a uniform grid.

    Raises:
        NonUniformIndex: If index is not a UniformDateTimeIndex
        DimensionMismatch: If the row count differs from the index size
    """
    if not index.is_uniform:
        raise NonUniformIndex(f"Expected a uniform index, got {type(index).__name__}")
    if len(samples) != len(index):
        raise DimensionMismatch(
            f"Length mismatch: index ({len(index)}) vs samples ({len(samples)})"
        )
    matrix = _rows_to_matrix(samples, len(labels))
    logger.debug(f"Built uniform time series with shape {matrix.shape}")
    return TimeSeries(index, matrix, labels, copy=False)


def time_series_from_vectors(
    vectors: Iterable[Sequence[float]],
    index: DateTimeIndex,
    labels: Sequence[Any],
) -> TimeSeries:
    """
    Build a TimeSeries from one vector per column.

    Raises:
        DimensionMismatch: If a vector's length differs from the index size
    """
    vectors = list(vectors)
    matrix = np.empty((len(index), len(vectors)), dtype=np.float64, order="F")
    for col, vector in enumerate(vectors):
        values = np.asarray(vector, dtype=np.float64)
        if values.shape != (len(index),):
            raise DimensionMismatch(
                f"Vector {col} has shape {values.shape}, expected ({len(index)},)",
                context={"vector": col},
            )
        matrix[:, col] = values
    logger.debug(f"Built time series from {len(vectors)} vectors with shape {matrix.shape}")
    return TimeSeries(index, matrix, labels, copy=False)


def time_series_from_dataframe(df: pd.DataFrame) -> TimeSeries:
    """
    Build a TimeSeries from a DataFrame with a DatetimeIndex.

    The index becomes uniform when it carries a frequency (as produced by
    ``pd.date_range``), irregular otherwise. Columns become labels.
    """
    if not isinstance(df.index, pd.DatetimeIndex):
        raise ValueError("DataFrame must have DatetimeIndex")
    index = from_pandas(df.index)
    logger.debug(f"Built time series from DataFrame with shape {df.shape}")
    return TimeSeries(index, df.to_numpy(dtype=np.float64), list(df.columns))
