"""Windowed resampling of a series onto a target date-time index.

Time is partitioned into ``len(target_index)`` consecutive, non-overlapping
windows, one per target timestamp ``t[i]``:

    closed_right  stamp_right  window i
    False         False        [t[i],   t[i+1])
    True          False        (t[i],   t[i+1]]
    False         True         [t[i-1], t[i])
    True          True         (t[i-1], t[i]]

With ``stamp_right=False`` the last window runs through the end of the
source. With ``stamp_right=True`` the first window starts at the first
source observation, which is excluded under ``closed_right`` when it lies
strictly before ``t[0]``. A source observation lying exactly on
an inner boundary belongs to exactly one window.
"""

from dataclasses import dataclass
from typing import Callable
import logging

import numpy as np

from mvts.data.index import DateTimeIndex
from mvts.utils.error_handling import DimensionMismatch

logger = logging.getLogger(__name__)

Aggregator = Callable[[np.ndarray, int, int], float]


@dataclass(frozen=True)
class ResampleConfig:
    """Boundary flags for resampling."""
    closed_right: bool = False
    stamp_right: bool = False


def window_positions(
    source_index: DateTimeIndex,
    target_index: DateTimeIndex,
    closed_right: bool,
    stamp_right: bool,
) -> np.ndarray:
    """
    Source position ranges falling in each target window.

    Returns:
        int array of shape ``(len(target_index), 2)`` holding ``[start, end)``
        per window; ``start >= end`` marks an empty window
    """
    n_windows = len(target_index)
    positions = np.zeros((n_windows, 2), dtype=np.int64)
    if n_windows == 0 or len(source_index) == 0:
        return positions

    # (a, b] starts after a and runs through b; [a, b) starts at a and stops before b
    side = "right" if closed_right else "left"
    locs = np.array(
        [source_index.insertion_loc(target_index.timestamp_at(i), side=side) for i in range(n_windows)],
        dtype=np.int64,
    )
    if stamp_right:
        first_start = min(
            source_index.insertion_loc(source_index.first, side=side),
            source_index.insertion_loc(target_index.first, side="left"),
        )
        positions[0, 0] = first_start
        positions[1:, 0] = locs[:-1]
        positions[:, 1] = locs
    else:
        positions[:, 0] = locs
        positions[:-1, 1] = locs[1:]
        positions[-1, 1] = len(source_index)
    return positions


def resample(
    series: np.ndarray,
    source_index: DateTimeIndex,
    target_index: DateTimeIndex,
    aggregate: Aggregator,
    closed_right: bool,
    stamp_right: bool,
) -> np.ndarray:
    """
    Resample one series onto a target index.

    Args:
        series: Values aligned with ``source_index``
        source_index: Index of the input series
        target_index: Index of the output series
        aggregate: Called as ``aggregate(values, start, end)`` with the whole
            input array and the window's half-open position range
        closed_right: Windows are ``(a, b]`` if True, ``[a, b)`` otherwise
        stamp_right: Each target timestamp marks the end of its window if
            True, the start otherwise

    Returns:
        Array of length ``len(target_index)``; windows without observations
        are NaN

    Raises:
        DimensionMismatch: If series and source_index lengths differ
    """
    values = np.asarray(series, dtype=np.float64)
    if values.shape[0] != len(source_index):
        raise DimensionMismatch(
            f"Length mismatch: series ({values.shape[0]}) vs source index ({len(source_index)})"
        )

    positions = window_positions(source_index, target_index, closed_right, stamp_right)
    result = np.full(len(target_index), np.nan, dtype=np.float64)
    for i, (start, end) in enumerate(positions):
        if start < end:
            result[i] = aggregate(values, int(start), int(end))
    return result
