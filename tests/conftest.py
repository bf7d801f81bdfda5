"""
conftest.py
-----------
Shared fixtures: synthetic gap-free monthly price tables and a small
recession list, so the suite runs without network access.
"""

import os
import sys

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sp500_returns.data_loader import build_price_table
from sp500_returns.recessions  import RecessionInterval


def make_raw_prices(start="1871-01-01", n=600, seed=42, first_value=70.77):
    """Monthly random-walk prices with upward drift, first value fixed."""
    rng = np.random.default_rng(seed)
    steps = rng.normal(0.004, 0.04, n - 1)
    values = first_value * np.exp(np.concatenate([[0.0], np.cumsum(steps)]))
    dates = pd.date_range(start, periods=n, freq="MS")
    return pd.DataFrame({"date": dates, "value": values})


@pytest.fixture(scope="module")
def raw_prices():
    return make_raw_prices()


@pytest.fixture(scope="module")
def table(raw_prices):
    """600 months, Jan 1871 - Dec 1920."""
    return build_price_table(raw_prices)


@pytest.fixture(scope="module")
def small_table():
    """Six months with hand-checkable values."""
    raw = pd.DataFrame({
        "date" : pd.date_range("2000-01-01", periods=6, freq="MS"),
        "value": [100.0, 110.0, 99.0, 120.0, 150.0, 135.0],
    })
    return build_price_table(raw)


@pytest.fixture(scope="module")
def recessions():
    return [
        RecessionInterval(pd.Timestamp("1873-10-01"), pd.Timestamp("1879-03-01")),
        RecessionInterval(pd.Timestamp("1882-03-01"), pd.Timestamp("1885-05-01")),
        RecessionInterval(pd.Timestamp("1893-01-01"), pd.Timestamp("1894-06-01")),
        RecessionInterval(pd.Timestamp("1920-01-01"), None),
    ]
