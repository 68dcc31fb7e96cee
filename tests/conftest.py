"""Pytest configuration and shared fixtures."""

import pytest
import numpy as np
import pandas as pd

from mvts import (
    irregular,
    time_series_from_irregular_samples,
    time_series_from_vectors,
    uniform,
)


@pytest.fixture
def hourly_index():
    """Five hourly stamps from 4 pm to 8 pm."""
    return uniform("2015-04-09 16:00", 5, "h")


@pytest.fixture
def two_column_series(hourly_index):
    """Series 'a' = 1..5 and 'b' = 6..10 on the hourly index."""
    return time_series_from_vectors(
        [np.arange(1.0, 6.0), np.arange(6.0, 11.0)],
        hourly_index,
        ["a", "b"],
    )


@pytest.fixture
def irregular_series():
    """Three unevenly spaced samples with two columns."""
    samples = [
        (pd.Timestamp("2020-01-01 00:00"), [1.0, 10.0]),
        (pd.Timestamp("2020-01-01 00:07"), [2.0, 20.0]),
        (pd.Timestamp("2020-01-01 01:30"), [4.0, 40.0]),
    ]
    return time_series_from_irregular_samples(samples, ["x", "y"])


@pytest.fixture
def irregular_index():
    return irregular([
        "2020-01-01 00:00",
        "2020-01-01 00:07",
        "2020-01-01 01:30",
        "2020-01-02 00:00",
    ])
