"""Lag feature construction for multivariate time series.

A lagged matrix places a series next to copies of itself shifted back in
time, trimmed at the top so that every output row has all requested lags
defined:

    time   a   lag1(a)   lag2(a)
    6 pm   3   2         1
    7 pm   4   3         2
    8 pm   5   4         3

Lag plans come in two shapes. ``UniformLags`` applies one maximum lag to
every column; ``PerColumnLags`` gives each column its own
``(keep_original, max_lag)``.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union
import logging

import numpy as np

from mvts.utils.error_handling import DimensionMismatch, MissingLagConfiguration

logger = logging.getLogger(__name__)

LabelFn = Callable[[Any, int], Any]


def lagged_string_key(key: str, lag_order: int) -> str:
    """'a' for lag 0, 'lag2(a)' for lag 2."""
    if lag_order > 0:
        return f"lag{lag_order}({key})"
    return key


def lagged_pair_key(key: Any, lag_order: int) -> Tuple[Any, int]:
    return (key, lag_order)


class ColumnLag(NamedTuple):
    """Lag request for a single column."""
    keep_original: bool
    max_lag: int


@dataclass(frozen=True)
class UniformLags:
    """Same maximum lag for every column."""
    max_lag: int
    include_originals: bool = True

    def __post_init__(self):
        if self.max_lag < 0:
            raise ValueError(f"max_lag must be non-negative, got {self.max_lag}")


@dataclass(frozen=True)
class PerColumnLags:
    """
    Per-column lag plan keyed by column label.

    Attributes:
        lags: Mapping of label -> ColumnLag (plain ``(bool, int)`` tuples
            are accepted and converted)
    """
    lags: Mapping[Hashable, ColumnLag] = field(default_factory=dict)

    def __post_init__(self):
        normalized: Dict[Hashable, ColumnLag] = {}
        for key, value in dict(self.lags).items():
            entry = ColumnLag(bool(value[0]), int(value[1]))
            if entry.max_lag < 0:
                raise ValueError(f"max_lag for {key!r} must be non-negative, got {entry.max_lag}")
            normalized[key] = entry
        object.__setattr__(self, "lags", normalized)


LagConfig = Union[UniformLags, PerColumnLags]


def lag_width(max_lag: int, include_original: bool) -> int:
    """Number of output columns one series contributes."""
    return max_lag + (1 if include_original else 0)


def lag_mat_trim_both(
    series: np.ndarray,
    max_lag: int,
    include_original: bool,
    dest: np.ndarray,
    col_offset: int = 0,
    trim: Optional[int] = None,
) -> np.ndarray:
    """
    Write a series and its lagged copies into columns of ``dest``.

    Output row ``r`` corresponds to time position ``r + trim`` of the input.
    The column for lag order ``j`` (0 being the unshifted series) holds
    ``series[r + trim - j]``.

    Args:
        series: 1D input of length n
        max_lag: Highest lag order to emit
        include_original: Whether to emit the unshifted series first
        dest: Matrix with ``n - trim`` rows receiving the columns
        col_offset: First destination column
        trim: Rows dropped from the top; defaults to ``max_lag``. A larger
            value aligns this series with others lagged further.

    Returns:
        ``dest``

    Raises:
        ValueError: If trim is smaller than max_lag
        DimensionMismatch: If dest has the wrong number of rows or columns
    """
    x = np.asarray(series, dtype=np.float64)
    n = x.shape[0]
    if trim is None:
        trim = max_lag
    if trim < max_lag:
        raise ValueError(f"trim ({trim}) must be at least max_lag ({max_lag})")

    n_rows = max(n - trim, 0)
    width = lag_width(max_lag, include_original)
    if dest.shape[0] != n_rows:
        raise DimensionMismatch(
            f"Destination has {dest.shape[0]} rows, expected {n_rows}",
            context={"series_length": n, "trim": trim},
        )
    if col_offset < 0 or col_offset + width > dest.shape[1]:
        raise DimensionMismatch(
            f"Columns [{col_offset}, {col_offset + width}) do not fit a matrix "
            f"with {dest.shape[1]} columns"
        )
    if n_rows == 0:
        return dest

    first_lag = 0 if include_original else 1
    for lag in range(first_lag, max_lag + 1):
        dest[:, col_offset + lag - first_lag] = x[trim - lag:n - lag]
    return dest


def lagged_labels(
    labels: Sequence[Any],
    lag_plan: Sequence[ColumnLag],
    label_fn: LabelFn,
) -> List[Any]:
    """Output labels for every column group, in column order."""
    new_labels: List[Any] = []
    for label, (keep_original, max_lag) in zip(labels, lag_plan):
        if keep_original:
            new_labels.append(label_fn(label, 0))
        new_labels.extend(label_fn(label, lag) for lag in range(1, max_lag + 1))
    return new_labels


def resolve_lag_plan(labels: Sequence[Any], config: LagConfig) -> List[ColumnLag]:
    """
    Expand a lag configuration into one ``ColumnLag`` per column.

    Raises:
        MissingLagConfiguration: If a per-column plan lacks a series label
        ValueError: If labels indexed by a per-column plan are not unique
    """
    if isinstance(config, UniformLags):
        return [ColumnLag(config.include_originals, config.max_lag)] * len(labels)

    if not isinstance(config, PerColumnLags):
        raise TypeError(f"Unsupported lag configuration: {type(config).__name__}")

    if len(set(labels)) != len(labels):
        raise ValueError("Per-column lags require unique column labels")

    missing = [label for label in labels if label not in config.lags]
    if missing:
        raise MissingLagConfiguration(
            f"No lag configuration for column {missing[0]!r}",
            context={"missing": missing},
        )

    unused = set(config.lags) - set(labels)
    if unused:
        logger.debug(f"Ignoring lag configuration for unknown columns: {sorted(map(repr, unused))}")

    return [config.lags[label] for label in labels]


def build_lag_matrix(
    data: np.ndarray,
    lag_plan: Sequence[ColumnLag],
    trim: Optional[int] = None,
) -> Tuple[np.ndarray, int]:
    """
    Lag every column of ``data`` according to its plan entry.

    All column groups are trimmed by the same number of rows, by default the
    largest lag in the plan, so each output row refers to the same instant
    across groups.

    Returns:
        (lagged matrix, rows trimmed from the top)
    """
    n = data.shape[0]
    if trim is None:
        trim = max((entry.max_lag for entry in lag_plan), default=0)
    n_cols = sum(lag_width(entry.max_lag, entry.keep_original) for entry in lag_plan)
    lagged = np.empty((max(n - trim, 0), n_cols), dtype=np.float64, order="F")

    col_offset = 0
    for col, (keep_original, max_lag) in enumerate(lag_plan):
        lag_mat_trim_both(data[:, col], max_lag, keep_original, lagged, col_offset, trim=trim)
        col_offset += lag_width(max_lag, keep_original)

    return lagged, trim
