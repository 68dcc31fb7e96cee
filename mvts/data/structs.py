"""Core data structure binding a date-time index, a matrix and column labels."""

from dataclasses import InitVar, dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd

from mvts.data.index import DateTimeIndex, RowRange, row_bounds
from mvts.features.lags import (
    LabelFn,
    LagConfig,
    UniformLags,
    build_lag_matrix,
    lagged_labels,
    lagged_pair_key,
    resolve_lag_plan,
)
from mvts.features.resample import Aggregator, ResampleConfig, resample
from mvts.features.transforms import differences, price2ret, quotients
from mvts.utils.error_handling import (
    DimensionMismatch,
    EmptyTimeSeries,
    NonUniformIndex,
    check_dimensions,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class TimeSeries:
    """
    Container for aligned series sharing one date-time index.

    Row ``r`` of ``data`` holds the observations at ``index[r]`` and column
    ``c`` holds the series labelled ``labels[c]``. The matrix is read-only;
    every transform returns a new TimeSeries with freshly built data.

    Attributes:
        index: DateTimeIndex of the rows
        data: float64 matrix of shape (len(index), len(labels))
        labels: One label per column
        copy: Copy ``data`` on construction (False hands the buffer over)
    """
    index: DateTimeIndex
    data: np.ndarray = field(repr=False)
    labels: Tuple[Any, ...]
    copy: InitVar[bool] = True

    def __post_init__(self, copy: bool):
        """Validate consistency after initialization."""
        if copy:
            matrix = np.array(self.data, dtype=np.float64, order="F")
        else:
            matrix = np.asarray(self.data, dtype=np.float64, order="F")
        if matrix.ndim != 2:
            raise DimensionMismatch(f"data must be 2D, got shape {matrix.shape}")

        labels = tuple(self.labels)
        check_dimensions(matrix.shape[0], matrix.shape[1], len(self.index), len(labels))

        matrix.flags.writeable = False
        object.__setattr__(self, "data", matrix)
        object.__setattr__(self, "labels", labels)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    @property
    def n_rows(self) -> int:
        return self.data.shape[0]

    @property
    def n_cols(self) -> int:
        return self.data.shape[1]

    def lags(self, config: LagConfig, label_fn: LabelFn = lagged_pair_key) -> "TimeSeries":
        """
        Build a matrix of each series alongside its lagged copies.

        Example with ``UniformLags(2)`` and ``lagged_string_key``:

            time   a   b          time   a  lag1(a)  lag2(a)  b   lag1(b)  lag2(b)
            4 pm   1   6          6 pm   3  2        1        8   7        6
            5 pm   2   7    ->    7 pm   4  3        2        9   8        7
            6 pm   3   8          8 pm   5  4        3        10  9        8
            7 pm   4   9
            8 pm   5   10

        Args:
            config: UniformLags for one maximum lag on every column, or
                PerColumnLags for a per-label ``(keep_original, max_lag)``
            label_fn: Derives output labels from ``(label, lag_order)``;
                lag order 0 denotes the unshifted series

        Returns:
            TimeSeries whose first row is the instant ``index[max_lag]``,
            where max_lag is the largest lag requested

        Raises:
            NonUniformIndex: If the index is irregular
            MissingLagConfiguration: If a per-column plan lacks a label
        """
        if not self.index.is_uniform:
            raise NonUniformIndex(
                "Lagging requires a uniform date-time index",
                context={"index": type(self.index).__name__},
            )

        plan = resolve_lag_plan(self.labels, config)
        trim = config.max_lag if isinstance(config, UniformLags) else None
        lagged, trim = build_lag_matrix(self.data, plan, trim=trim)
        new_labels = lagged_labels(self.labels, plan, label_fn)
        new_index = self.index.islice(min(trim, self.n_rows), self.n_rows)

        logger.debug(f"Lagged {self.shape} into {lagged.shape} (trimmed {trim} rows)")
        return TimeSeries(new_index, lagged, new_labels, copy=False)

    def slice(self, rows: RowRange) -> "TimeSeries":
        """Rows in a ``range`` or ``slice`` of positions, with the same labels."""
        new_index = self.index.slice(rows)
        start, stop = row_bounds(rows, self.n_rows)
        return TimeSeries(new_index, self.data[start:stop], self.labels)

    def union(self, vector, label: Any) -> "TimeSeries":
        """
        Append one column.

        Raises:
            DimensionMismatch: If the vector length differs from the index size
        """
        column = np.asarray(vector, dtype=np.float64)
        if column.shape != (self.n_rows,):
            raise DimensionMismatch(
                f"Length mismatch: index ({self.n_rows}) vs new column {column.shape}"
            )
        merged = np.empty((self.n_rows, self.n_cols + 1), dtype=np.float64, order="F")
        merged[:, :-1] = self.data
        merged[:, -1] = column
        return TimeSeries(self.index, merged, self.labels + (label,), copy=False)

    def differences(self, lag: int = 1) -> "TimeSeries":
        """Difference every series with the given order; drops the first ``lag`` rows."""
        return self.map_series(lambda s: differences(s, lag), self._trimmed_index(lag))

    def quotients(self, lag: int = 1) -> "TimeSeries":
        """Divide every observation by the one ``lag`` rows earlier; drops the first ``lag`` rows."""
        return self.map_series(lambda s: quotients(s, lag), self._trimmed_index(lag))

    def price2ret(self) -> "TimeSeries":
        """Periodic returns for every series; drops the first row."""
        return self.map_series(lambda s: price2ret(s, 1), self._trimmed_index(1))

    def resample(
        self,
        target_index: DateTimeIndex,
        aggregate: Aggregator,
        closed_right: Optional[bool] = None,
        stamp_right: Optional[bool] = None,
        config: Optional[ResampleConfig] = None,
    ) -> "TimeSeries":
        """
        Resample every series onto a new date-time index.

        Each target timestamp owns one window of source observations, which
        ``aggregate(values, start, end)`` reduces to a single value. Windows
        with no observations yield NaN. Compare ``pd.DataFrame.resample``
        with ``closed`` and ``label``.

        Args:
            target_index: Index of the result
            aggregate: Reduces ``values[start:end]`` to one float
            closed_right: Windows are open on the left and closed on the
                right if True, closed on the left and open on the right
                otherwise (the default)
            stamp_right: Each target timestamp marks the end of its window
                if True, the start otherwise (the default)
            config: Both flags at once, e.g. from ``load_resample_config``

        Returns:
            TimeSeries indexed by ``target_index`` with the same labels

        Raises:
            ValueError: If both config and explicit flags are given
        """
        if config is not None:
            if closed_right is not None or stamp_right is not None:
                raise ValueError("Pass either config or closed_right/stamp_right, not both")
            closed_right, stamp_right = config.closed_right, config.stamp_right
        closed_right = bool(closed_right)
        stamp_right = bool(stamp_right)
        return self.map_series(
            lambda s: resample(s, self.index, target_index, aggregate, closed_right, stamp_right),
            target_index,
        )

    def univariate_series(self) -> Iterator[np.ndarray]:
        """Fresh iterator over the columns, first to last."""
        for col in range(self.n_cols):
            yield self.data[:, col]

    def univariate_key_and_series(self) -> Iterator[Tuple[Any, np.ndarray]]:
        """Fresh iterator over ``(label, column)`` pairs."""
        for col, label in enumerate(self.labels):
            yield label, self.data[:, col]

    iter_series = univariate_series
    items = univariate_key_and_series

    def head(self) -> Tuple[Any, np.ndarray]:
        """First label and its series."""
        if self.n_cols == 0:
            raise EmptyTimeSeries("TimeSeries has no columns")
        return self.labels[0], self.data[:, 0]

    def series(self, label: Any) -> np.ndarray:
        """Column for a label (the first one when labels repeat)."""
        try:
            col = self.labels.index(label)
        except ValueError:
            raise KeyError(label) from None
        return self.data[:, col]

    def to_instants(self) -> List[Tuple[pd.Timestamp, np.ndarray]]:
        """Row-wise view: ``(timestamp, row)`` for every row."""
        return list(zip(self.index, self.data))

    def map_series(
        self,
        fn: Callable[[np.ndarray], Any],
        new_index: Optional[DateTimeIndex] = None,
    ) -> "TimeSeries":
        """
        Apply a transformation to each series.

        Args:
            fn: Maps one column to a 1D result
            new_index: Index the results align with; defaults to the
                current index

        Raises:
            DimensionMismatch: If a result's length differs from the index size
        """
        index = self.index if new_index is None else new_index
        new_data = np.empty((len(index), self.n_cols), dtype=np.float64, order="F")
        for col, column in enumerate(self.univariate_series()):
            new_data[:, col] = self._checked_result(fn(column), len(index), col)
        return TimeSeries(index, new_data, self.labels, copy=False)

    def map_series_with_key(self, fn: Callable[[Any, np.ndarray], Any]) -> "TimeSeries":
        """Apply ``fn(label, column)`` to each series, keeping the index."""
        new_data = np.empty(self.shape, dtype=np.float64, order="F")
        for col, (label, column) in enumerate(self.univariate_key_and_series()):
            new_data[:, col] = self._checked_result(fn(label, column), self.n_rows, col)
        return TimeSeries(self.index, new_data, self.labels, copy=False)

    def map_values(self, fn: Callable[[np.ndarray], Any]) -> List[Tuple[Any, Any]]:
        """``(label, fn(column))`` for every series."""
        return [(label, fn(column)) for label, column in self.univariate_key_and_series()]

    def to_dataframe(self) -> pd.DataFrame:
        """Copy into a DataFrame indexed by the timestamps; tuple labels become a MultiIndex."""
        if self.labels and all(isinstance(label, tuple) for label in self.labels):
            columns = pd.MultiIndex.from_tuples(self.labels)
        else:
            columns = pd.Index(self.labels)
        return pd.DataFrame(np.array(self.data), index=self.index.to_pandas(), columns=columns)

    def _trimmed_index(self, lag: int) -> DateTimeIndex:
        if lag < 0:
            raise ValueError(f"lag must be non-negative, got {lag}")
        return self.index.islice(min(lag, self.n_rows), self.n_rows)

    def _checked_result(self, result: Any, expected: int, col: int) -> np.ndarray:
        values = np.asarray(result, dtype=np.float64)
        if values.shape != (expected,):
            raise DimensionMismatch(
                f"Transformed series for column {self.labels[col]!r} has shape "
                f"{values.shape}, expected ({expected},)"
            )
        return values
