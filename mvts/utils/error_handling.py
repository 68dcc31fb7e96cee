"""Error types raised by the time series engine.

Every error derives from ``MvtsError`` and from the built-in exception that
best describes it, so callers can catch either the library-specific type or
the usual ``IndexError``/``ValueError``/``KeyError``/``TypeError``.
"""

from typing import Any, Dict, Optional


class MvtsError(Exception):
    """Base exception with optional context for debugging."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message


class IndexOutOfRange(MvtsError, IndexError):
    """Position outside ``[0, size)`` or slice bounds outside the index."""


class DimensionMismatch(MvtsError, ValueError):
    """Row/column counts of matrix, index and labels disagree."""


class EmptyTimeSeries(MvtsError, ValueError):
    """Operation needs at least one column or row."""


class MissingLagConfiguration(MvtsError, KeyError):
    """A series label has no entry in a per-column lag mapping."""


class NonUniformIndex(MvtsError, TypeError):
    """Operation only makes sense on a uniform date-time index."""


class UnorderedIndex(MvtsError, ValueError):
    """Timestamps are not strictly increasing."""


def check_dimensions(n_rows: int, n_cols: int, index_size: int, n_labels: int) -> None:
    """
    Validate that a matrix shape agrees with its index and labels.

    Args:
        n_rows: Number of matrix rows
        n_cols: Number of matrix columns
        index_size: Size of the date-time index
        n_labels: Number of column labels

    Raises:
        DimensionMismatch: If either dimension disagrees
    """
    if n_rows != index_size:
        raise DimensionMismatch(
            f"Length mismatch: index ({index_size}) vs data rows ({n_rows})",
            context={"index_size": index_size, "n_rows": n_rows},
        )
    if n_cols != n_labels:
        raise DimensionMismatch(
            f"Length mismatch: labels ({n_labels}) vs data columns ({n_cols})",
            context={"n_labels": n_labels, "n_cols": n_cols},
        )
