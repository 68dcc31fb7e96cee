"""Per-column difference, quotient and return transforms.

Each transform consumes a 1D series of length n and returns a series of
length ``n - lag`` whose element ``i`` pairs input positions ``i + lag`` and
``i``.
"""

import numpy as np


def _split(series, lag: int):
    if lag < 0:
        raise ValueError(f"lag must be non-negative, got {lag}")
    x = np.asarray(series, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"Expected a 1D series, got shape {x.shape}")
    lag = min(lag, x.shape[0])
    return x[lag:], x[:x.shape[0] - lag]


def differences(series, lag: int = 1) -> np.ndarray:
    """
    Difference a series with the given order.

    Args:
        series: 1D array-like
        lag: Distance between the subtracted observations

    Returns:
        Array with ``x[i] - x[i - lag]`` for every ``i >= lag``
    """
    current, previous = _split(series, lag)
    return current - previous


def quotients(series, lag: int = 1) -> np.ndarray:
    """
    Divide each observation by the one ``lag`` steps earlier.

    Division by zero follows IEEE semantics (inf or nan) and is not reported.
    """
    current, previous = _split(series, lag)
    with np.errstate(divide="ignore", invalid="ignore"):
        return current / previous


def price2ret(series, lag: int = 1) -> np.ndarray:
    """Periodic (not continuously compounded) returns: ``x[i] / x[i - lag] - 1``."""
    return quotients(series, lag) - 1.0
