"""
Month-over-Month Changes
========================

For consecutive monthly rows:

    change_factor[i] = value[i] / value[i-1]
    pct_change[i]    = (change_factor[i] - 1) * 100

The first row has no prior value, so its change is undefined (NaN).
The change series is exactly one element shorter than the price series.
"""

from __future__ import annotations

from typing import Dict

import numpy as np
import pandas as pd


def change_factors(values) -> np.ndarray:
    """
    Ratio of each value to the one before it.

    Parameters
    ----------
    values : array-like of positive prices, ordered by date.

    Returns
    -------
    np.ndarray  length len(values) - 1.
    """
    v = np.asarray(values, dtype=float)
    if v.size < 2:
        return np.empty(0, dtype=float)
    return v[1:] / v[:-1]


def percent_changes(factors) -> np.ndarray:
    """Convert change factors to percent changes."""
    return (np.asarray(factors, dtype=float) - 1.0) * 100.0


def add_change_columns(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Return a copy of `frame` with `change_factor` and `pct_change` columns.

    `frame` must hold a `value` column already sorted by date.
    """
    out = frame.copy()
    factors = change_factors(out["value"].to_numpy())
    lead = np.full(min(len(out), 1), np.nan)
    out["change_factor"] = np.concatenate([lead, factors])
    out["pct_change"] = np.concatenate([lead, percent_changes(factors)])
    return out


def change_summary(table) -> Dict:
    """
    Descriptive statistics of monthly percent changes.

    Returns
    -------
    dict with mean, median, std, share of up-months, and the largest
    monthly rise and fall with their dates.
    """
    frame = table.frame
    pct = frame["pct_change"].dropna()
    if pct.empty:
        return {"n_changes": 0}

    best = pct.idxmax()
    worst = pct.idxmin()
    return {
        "n_changes"   : int(pct.size),
        "mean_pct"    : float(pct.mean()),
        "median_pct"  : float(pct.median()),
        "std_pct"     : float(pct.std()),
        "up_share"    : float((pct > 0).mean()),
        "best_pct"    : float(pct[best]),
        "best_date"   : frame.loc[best, "date"],
        "worst_pct"   : float(pct[worst]),
        "worst_date"  : frame.loc[worst, "date"],
    }
