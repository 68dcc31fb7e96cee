"""Date-time indexes for aligned multivariate time series.

Two variants share one interface:

- ``UniformDateTimeIndex``: start instant + fixed pandas frequency + count.
  Lookups and slicing are arithmetic on positions.
- ``IrregularDateTimeIndex``: explicit, strictly increasing epoch-nanosecond
  array. Lookups are binary searches.

Both are immutable, so several ``TimeSeries`` may share one index.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, Union
import logging

import numpy as np
import pandas as pd
from pandas.tseries.frequencies import to_offset

from mvts.utils.error_handling import IndexOutOfRange, UnorderedIndex

logger = logging.getLogger(__name__)

RowRange = Union[range, slice]


def _to_timestamp(value: Any, tz: Any) -> pd.Timestamp:
    """Coerce a timestamp-like value into the given timezone."""
    ts = pd.Timestamp(value)
    if tz is None:
        if ts.tzinfo is not None:
            ts = ts.tz_convert("UTC").tz_localize(None)
        return ts
    if ts.tzinfo is None:
        return ts.tz_localize(tz)
    return ts.tz_convert(tz)


def _nanos_to_timestamp(nanos: int, tz: Any) -> pd.Timestamp:
    if tz is None:
        return pd.Timestamp(int(nanos))
    return pd.Timestamp(int(nanos), tz="UTC").tz_convert(tz)


def _nanos_to_pandas(nanos: np.ndarray, tz: Any) -> pd.DatetimeIndex:
    stamps = pd.DatetimeIndex(np.asarray(nanos, dtype=np.int64).view("datetime64[ns]"))
    if tz is not None:
        stamps = stamps.tz_localize("UTC").tz_convert(tz)
    return stamps


def row_bounds(rows: RowRange, size: int):
    """Translate a ``range`` or ``slice`` of rows into ``(start, stop)``."""
    if isinstance(rows, slice):
        if rows.step not in (None, 1):
            raise ValueError(f"Row slices must have step 1, got {rows.step}")
        start = 0 if rows.start is None else rows.start
        stop = size if rows.stop is None else rows.stop
        return start, stop
    if isinstance(rows, range):
        if rows.step != 1:
            raise ValueError(f"Row ranges must have step 1, got {rows.step}")
        return rows.start, rows.stop
    raise TypeError(f"Expected range or slice, got {type(rows).__name__}")


class DateTimeIndex(ABC):
    """Ordered, strictly increasing sequence of timestamps."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of timestamps."""

    @property
    @abstractmethod
    def tz(self) -> Any:
        """Timezone of the timestamps, or None for naive stamps."""

    @property
    def is_uniform(self) -> bool:
        return False

    @abstractmethod
    def _nanos_at(self, position: int) -> int:
        """Epoch nanoseconds at a position, without bounds checks."""

    @abstractmethod
    def _islice(self, start: int, end: int) -> "DateTimeIndex":
        """Sub-index over already validated bounds."""

    @abstractmethod
    def insertion_loc(self, timestamp: Any, side: str = "left") -> int:
        """
        Find where a timestamp would be inserted to keep the index sorted.

        Args:
            timestamp: Any value ``pd.Timestamp`` accepts; naive values are
                interpreted in the index's timezone
            side: 'left' for the first position with a stamp >= timestamp,
                'right' for the first position with a stamp > timestamp

        Returns:
            Position in ``[0, size]``
        """

    @abstractmethod
    def to_nanos(self) -> np.ndarray:
        """All timestamps as an int64 epoch-nanosecond array."""

    def __len__(self) -> int:
        return self.size

    def timestamp_at(self, position: int) -> pd.Timestamp:
        """
        Get the timestamp at a position.

        Raises:
            IndexOutOfRange: If position is not in ``[0, size)``
        """
        if not 0 <= position < self.size:
            raise IndexOutOfRange(
                f"Position {position} out of range for index of size {self.size}",
                context={"position": position, "size": self.size},
            )
        return _nanos_to_timestamp(self._nanos_at(int(position)), self.tz)

    def islice(self, start: int, end: int) -> "DateTimeIndex":
        """
        Sub-index covering positions ``[start, end)``.

        Args:
            start: First position to keep
            end: One past the last position to keep

        Returns:
            Index of the same variant as the receiver

        Raises:
            IndexOutOfRange: Unless ``0 <= start <= end <= size``
        """
        if not 0 <= start <= end <= self.size:
            raise IndexOutOfRange(
                f"Slice [{start}, {end}) out of range for index of size {self.size}",
                context={"start": start, "end": end, "size": self.size},
            )
        return self._islice(int(start), int(end))

    def slice(self, rows: RowRange) -> "DateTimeIndex":
        """Sub-index for a ``range`` or ``slice`` of positions with step 1."""
        start, stop = row_bounds(rows, self.size)
        return self.islice(start, stop)

    def loc_at_datetime(self, timestamp: Any) -> int:
        """Exact position of a timestamp; raises ``KeyError`` if absent."""
        target = _to_timestamp(timestamp, self.tz).value
        loc = self.insertion_loc(timestamp, side="left")
        if loc < self.size and self._nanos_at(loc) == target:
            return loc
        raise KeyError(timestamp)

    @property
    def first(self) -> pd.Timestamp:
        return self.timestamp_at(0)

    @property
    def last(self) -> pd.Timestamp:
        return self.timestamp_at(self.size - 1)

    def to_pandas(self) -> pd.DatetimeIndex:
        return _nanos_to_pandas(self.to_nanos(), self.tz)

    def __iter__(self) -> Iterator[pd.Timestamp]:
        for position in range(self.size):
            yield _nanos_to_timestamp(self._nanos_at(position), self.tz)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return self.slice(item)
        return self.timestamp_at(item)

    def _check_side(self, side: str) -> None:
        if side not in ("left", "right"):
            raise ValueError(f"side must be 'left' or 'right', got {side!r}")


class UniformDateTimeIndex(DateTimeIndex):
    """
    Index defined by a start instant, a pandas frequency and a count.

    The timestamp at position ``i`` is ``start + i * frequency``; calendar
    arithmetic is delegated to pandas offsets. A start that is not on the
    frequency's anchor (e.g. not a month end for ``"ME"``) is rolled forward,
    as ``pd.date_range`` does.
    """

    def __init__(self, start: Any, periods: int, frequency: Any, tz: Any = None):
        if periods < 0:
            raise ValueError(f"periods must be non-negative, got {periods}")

        freq = to_offset(frequency)
        start_ts = pd.Timestamp(start)
        if tz is not None:
            start_ts = _to_timestamp(start_ts, tz)
        if not freq.is_on_offset(start_ts):
            rolled = freq.rollforward(start_ts)
            logger.debug(f"Rolled start {start_ts} forward to {rolled} for frequency {freq.freqstr}")
            start_ts = rolled
        if not start_ts + freq > start_ts:
            raise ValueError(f"Frequency must move forward in time, got {freq.freqstr}")

        self._start = start_ts
        self._freq = freq
        self._periods = int(periods)
        self._step = freq.nanos if isinstance(freq, pd.offsets.Tick) else None

    @property
    def size(self) -> int:
        return self._periods

    @property
    def tz(self) -> Any:
        return self._start.tz

    @property
    def start(self) -> pd.Timestamp:
        return self._start

    @property
    def frequency(self) -> pd.DateOffset:
        return self._freq

    @property
    def is_uniform(self) -> bool:
        return True

    def _timestamp_unchecked(self, position: int) -> pd.Timestamp:
        if position == 0:
            return self._start
        return self._start + int(position) * self._freq

    def _nanos_at(self, position: int) -> int:
        if self._step is not None:
            return self._start.value + position * self._step
        return self._timestamp_unchecked(position).value

    def _islice(self, start: int, end: int) -> "UniformDateTimeIndex":
        return UniformDateTimeIndex(self._timestamp_unchecked(start), end - start, self._freq)

    def insertion_loc(self, timestamp: Any, side: str = "left") -> int:
        self._check_side(side)
        target = _to_timestamp(timestamp, self.tz).value

        if self._step is not None:
            offset = target - self._start.value
            if side == "left":
                loc = -((-offset) // self._step)
            else:
                loc = offset // self._step + 1
            return int(min(max(loc, 0), self._periods))

        # calendar frequencies have no fixed width; bisect on positions
        lo, hi = 0, self._periods
        while lo < hi:
            mid = (lo + hi) // 2
            value = self._nanos_at(mid)
            if value < target or (side == "right" and value == target):
                lo = mid + 1
            else:
                hi = mid
        return lo

    def to_nanos(self) -> np.ndarray:
        if self._step is not None:
            return self._start.value + np.arange(self._periods, dtype=np.int64) * self._step
        return np.array(
            [self._nanos_at(i) for i in range(self._periods)], dtype=np.int64
        )

    def to_pandas(self) -> pd.DatetimeIndex:
        return pd.DatetimeIndex(super().to_pandas(), freq=self._freq)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UniformDateTimeIndex):
            return NotImplemented
        return (
            self._start == other._start
            and self._freq == other._freq
            and self._periods == other._periods
        )

    def __repr__(self) -> str:
        return (
            f"UniformDateTimeIndex(start={self._start}, "
            f"frequency={self._freq.freqstr}, periods={self._periods})"
        )


class IrregularDateTimeIndex(DateTimeIndex):
    """Index backed by an explicit array of epoch nanoseconds."""

    def __init__(self, nanos: Iterable[int], tz: Any = None):
        values = np.array(nanos, dtype=np.int64)
        if values.ndim != 1:
            raise ValueError(f"Timestamps must be 1D, got shape {values.shape}")

        steps = np.diff(values)
        if np.any(steps <= 0):
            bad = int(np.argmax(steps <= 0)) + 1
            raise UnorderedIndex(
                f"Timestamps must be strictly increasing; violation at position {bad}",
                context={"position": bad},
            )

        values.flags.writeable = False
        self._nanos = values
        self._tz = pd.Timestamp(0, tz=tz).tz if tz is not None else None

    @property
    def size(self) -> int:
        return int(self._nanos.size)

    @property
    def tz(self) -> Any:
        return self._tz

    def _nanos_at(self, position: int) -> int:
        return int(self._nanos[position])

    def _islice(self, start: int, end: int) -> "IrregularDateTimeIndex":
        return IrregularDateTimeIndex(self._nanos[start:end], self._tz)

    def insertion_loc(self, timestamp: Any, side: str = "left") -> int:
        self._check_side(side)
        target = _to_timestamp(timestamp, self._tz).value
        return int(np.searchsorted(self._nanos, target, side=side))

    def to_nanos(self) -> np.ndarray:
        return self._nanos

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IrregularDateTimeIndex):
            return NotImplemented
        return str(self._tz) == str(other._tz) and np.array_equal(self._nanos, other._nanos)

    def __repr__(self) -> str:
        if self.size == 0:
            return f"IrregularDateTimeIndex(size=0, tz={self._tz})"
        return (
            f"IrregularDateTimeIndex(size={self.size}, first={self.first}, "
            f"last={self.last}, tz={self._tz})"
        )


def uniform(start: Any, periods: int, frequency: Any, tz: Any = None) -> UniformDateTimeIndex:
    """
    Create a uniform index.

    Args:
        start: First timestamp
        periods: Number of timestamps
        frequency: pandas frequency string or offset (e.g. 'h', '15min', 'B')
        tz: Optional timezone; a naive start is localized to it

    Returns:
        UniformDateTimeIndex
    """
    return UniformDateTimeIndex(start, periods, frequency, tz=tz)


def irregular(timestamps: Iterable[Any], tz: Any = None) -> IrregularDateTimeIndex:
    """
    Create an irregular index from timestamp-like values.

    The values must already be strictly increasing; they are never re-sorted.
    Without an explicit ``tz`` the timezone of the first timestamp is used.
    """
    stamps = list(timestamps)
    if tz is None and stamps:
        tz = pd.Timestamp(stamps[0]).tz
    nanos = [_to_timestamp(ts, tz).value for ts in stamps]
    return IrregularDateTimeIndex(nanos, tz)


def from_pandas(index: pd.DatetimeIndex) -> DateTimeIndex:
    """Uniform when the pandas index carries a frequency, irregular otherwise."""
    if index.freq is not None and len(index) > 0:
        return UniformDateTimeIndex(index[0], len(index), index.freq)
    return IrregularDateTimeIndex(index.as_unit("ns").asi8, index.tz)
