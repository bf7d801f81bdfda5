"""
Hypothetical Investment Return Models
=====================================

Value of a fixed principal invested in the index at a starting month:

    investment(d) = amount * value(d) / value(start)

Models
------
simple_return                  every month from start to end
simple_return_quick            start and end rows only
fixed_horizon_return           end fixed at start_id + horizon (480 = 40y)
compound_return                price ratio * (1 + dividend) ** floor(elapsed / 12)
compound_return_quick          start and end rows only
fixed_horizon_compound_return  price ratio * (1 + dividend) ** (horizon // 12)
                               on every row of the window
buy_the_dip                    start delayed to the next recession end,
                               horizon still measured from the input start

Each model returns an InvestmentResult frame with columns
[id, date, invested_value]; `end_value` extracts the terminal value.

The dividend exponent differs between compound_return (full years elapsed
at each row) and fixed_horizon_compound_return (always the full horizon).
Both are kept as separate models; they agree at the horizon end row.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from sp500_returns.data_loader import PriceTable
from sp500_returns.exceptions import (HorizonExceededError, InvalidHorizonError,
                                      InvalidParameterError)
from sp500_returns.recessions import RecessionInterval, first_end_on_or_after, recession_ends

logger = logging.getLogger(__name__)

DEFAULT_AMOUNT  = 10_000.0
HORIZON_MONTHS  = 480
MONTHS_PER_YEAR = 12


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _check_amount(amount: float) -> None:
    if not amount > 0:
        raise InvalidParameterError(f"Investment amount must be positive, got {amount}")


def _check_dividend(dividend: float) -> None:
    if not dividend > -1.0:
        raise InvalidParameterError(f"Dividend rate must exceed -100%, got {dividend}")


def _resolve_window(table: PriceTable, start, end) -> tuple[int, int]:
    start_id = table.id_of(start)
    end_id = table.id_of(end)
    if end_id < start_id:
        raise InvalidParameterError(f"End month {end} precedes start month {start}")
    return start_id, end_id


def _check_horizon(horizon: int) -> None:
    if horizon < 1:
        raise InvalidHorizonError(horizon)


def _fixed_end(table: PriceTable, start_id: int, horizon: int) -> int:
    _check_horizon(horizon)
    end_id = start_id + horizon
    if end_id > table.last_id:
        raise HorizonExceededError(
            f"{horizon}-month horizon from {table.date_of_id(start_id):%Y-%m} "
            f"needs row {end_id}, table ends at row {table.last_id} "
            f"({table.last_date:%Y-%m})",
            requested_id=end_id, last_id=table.last_id,
        )
    return end_id


def _result(rows: pd.DataFrame, invested: np.ndarray) -> pd.DataFrame:
    return pd.DataFrame({
        "id"             : rows["id"].to_numpy(),
        "date"           : rows["date"].to_numpy(),
        "invested_value" : invested,
    })


def _price_growth(table: PriceTable, ids: np.ndarray, start_id: int,
                  amount: float) -> np.ndarray:
    return amount * table.values[ids - 1] / table.values[start_id - 1]


def _series(table: PriceTable, start_id: int, end_id: int, amount: float,
            dividend: float = 0.0, fixed_years: Optional[int] = None) -> pd.DataFrame:
    rows = table.rows(start_id, end_id)
    ids = rows["id"].to_numpy()
    invested = _price_growth(table, ids, start_id, amount)
    if fixed_years is not None:
        invested = invested * (1.0 + dividend) ** fixed_years
    elif dividend != 0.0:
        years = (ids - start_id) // MONTHS_PER_YEAR
        invested = invested * (1.0 + dividend) ** years
    return _result(rows, invested)


def _endpoints(table: PriceTable, start_id: int, end_id: int, amount: float,
               dividend: float = 0.0) -> pd.DataFrame:
    ids = np.array([start_id, end_id])
    rows = pd.DataFrame({"id": ids,
                         "date": [table.date_of_id(i) for i in ids]})
    invested = _price_growth(table, ids, start_id, amount)
    invested = invested * (1.0 + dividend) ** ((ids - start_id) // MONTHS_PER_YEAR)
    return _result(rows, invested)


# ---------------------------------------------------------------------------
# Price-only models
# ---------------------------------------------------------------------------
def simple_return(table: PriceTable, start, end,
                  amount: float = DEFAULT_AMOUNT) -> pd.DataFrame:
    """
    Value of `amount` at every month from `start` to `end` inclusive.

    Raises
    ------
    DateNotFoundError  if either month is not a table row.
    ValueError         if end precedes start or amount <= 0.
    """
    _check_amount(amount)
    start_id, end_id = _resolve_window(table, start, end)
    return _series(table, start_id, end_id, amount)


def simple_return_quick(table: PriceTable, start, end,
                        amount: float = DEFAULT_AMOUNT) -> pd.DataFrame:
    """Two-row variant of `simple_return`: the start and end months only."""
    _check_amount(amount)
    start_id, end_id = _resolve_window(table, start, end)
    return _endpoints(table, start_id, end_id, amount)


def fixed_horizon_return(table: PriceTable, start,
                         amount: float = DEFAULT_AMOUNT,
                         horizon: int = HORIZON_MONTHS) -> pd.DataFrame:
    """
    Value of `amount` over the `horizon` rows following `start`.

    The end row is start_id + horizon; a window that runs past the last
    row raises HorizonExceededError.
    """
    _check_amount(amount)
    start_id = table.id_of(start)
    end_id = _fixed_end(table, start_id, horizon)
    return _series(table, start_id, end_id, amount)


# ---------------------------------------------------------------------------
# Dividend compounding models
# ---------------------------------------------------------------------------
def compound_return(table: PriceTable, start, end,
                    amount: float = DEFAULT_AMOUNT,
                    dividend: float = 0.0) -> pd.DataFrame:
    """
    Price growth with an annual dividend reinvested once per full year.

        investment(i) = amount * value(i) / value(start)
                        * (1 + dividend) ** floor((id_i - start_id) / 12)

    With dividend = 0 this is identical to `simple_return`.
    """
    _check_amount(amount)
    _check_dividend(dividend)
    start_id, end_id = _resolve_window(table, start, end)
    return _series(table, start_id, end_id, amount, dividend)


def compound_return_quick(table: PriceTable, start, end,
                          amount: float = DEFAULT_AMOUNT,
                          dividend: float = 0.0) -> pd.DataFrame:
    """Two-row variant of `compound_return`."""
    _check_amount(amount)
    _check_dividend(dividend)
    start_id, end_id = _resolve_window(table, start, end)
    return _endpoints(table, start_id, end_id, amount, dividend)


def fixed_horizon_compound_return(table: PriceTable, start,
                                  amount: float = DEFAULT_AMOUNT,
                                  dividend: float = 0.0,
                                  horizon: int = HORIZON_MONTHS) -> pd.DataFrame:
    """
    Fixed-horizon growth with the dividend factor applied for the whole
    horizon on every row: (1 + dividend) ** (horizon // 12).

    Intermediate rows therefore carry the full 40-year dividend factor
    rather than the years elapsed so far. At the horizon end row the
    result equals `compound_return` over the same window.
    """
    _check_amount(amount)
    _check_dividend(dividend)
    start_id = table.id_of(start)
    end_id = _fixed_end(table, start_id, horizon)
    return _series(table, start_id, end_id, amount, dividend,
                   fixed_years=horizon // MONTHS_PER_YEAR)


def buy_the_dip(table: PriceTable, recessions: Iterable[RecessionInterval],
                start, amount: float = DEFAULT_AMOUNT,
                dividend: float = 0.0,
                horizon: int = HORIZON_MONTHS) -> pd.DataFrame:
    """
    Wait for the next recession to end, then invest until the horizon.

    The investment starts at the first completed recession end at or after
    `start`; the horizon end stays at start_id + horizon, measured from the
    requested start. Growth follows `compound_return` over that window.

    Raises
    ------
    NoRecessionEndError   no recession ends at or after `start`.
    DateNotFoundError     the recession end month is not a table row.
    HorizonExceededError  start_id + horizon runs past the table, or the
                          recession ends after the horizon end.
    InvalidHorizonError   horizon shorter than one month.
    """
    _check_amount(amount)
    _check_dividend(dividend)
    start_id = table.id_of(start)
    dip = first_end_on_or_after(recessions, table.date_of_id(start_id))
    end_id = _fixed_end(table, start_id, horizon)
    dip_id = table.id_of(dip)
    if dip_id > end_id:
        raise HorizonExceededError(
            f"Next recession ends {dip:%Y-%m}, after the horizon end "
            f"{table.date_of_id(end_id):%Y-%m}",
            requested_id=dip_id, last_id=end_id,
        )
    logger.debug("buy_the_dip: requested %s, investing %s, horizon end %s",
                 table.date_of_id(start_id).date(), dip.date(),
                 table.date_of_id(end_id).date())
    return _series(table, dip_id, end_id, amount, dividend)


def end_value(result: pd.DataFrame) -> float:
    """Invested value on the last row of a result series."""
    if result is None or result.empty:
        raise ValueError("Cannot take the end value of an empty result")
    return float(result["invested_value"].iloc[-1])


def annualized_return(start_value: float, final_value: float, months: int) -> float:
    """Compound annual growth rate implied by a value change over `months`."""
    if months <= 0:
        raise ValueError("months must be positive")
    if start_value <= 0:
        raise ValueError("start_value must be positive")
    return (final_value / start_value) ** (MONTHS_PER_YEAR / months) - 1.0


# ---------------------------------------------------------------------------
# Every-window comparisons
# ---------------------------------------------------------------------------
def horizon_end_values(table: PriceTable, amount: float = DEFAULT_AMOUNT,
                       dividend: float = 0.0,
                       horizon: int = HORIZON_MONTHS) -> pd.DataFrame:
    """
    Terminal value of every full `horizon`-month window in the table.

    Returns
    -------
    pd.DataFrame  [start_date, end_date, invested_value, annualized],
                  one row per start month with a complete horizon; empty
                  if the table is shorter than the horizon.
    """
    _check_amount(amount)
    _check_dividend(dividend)
    _check_horizon(horizon)
    v = table.values
    n_starts = len(v) - horizon
    frame = table.frame
    if n_starts <= 0:
        return pd.DataFrame(columns=["start_date", "end_date",
                                     "invested_value", "annualized"])

    years = horizon // MONTHS_PER_YEAR
    ratio = v[horizon:] / v[:n_starts]
    invested = amount * ratio * (1.0 + dividend) ** years
    annualized = (invested / amount) ** (MONTHS_PER_YEAR / horizon) - 1.0
    return pd.DataFrame({
        "start_date"     : frame["date"].iloc[:n_starts].to_numpy(),
        "end_date"       : frame["date"].iloc[horizon:].to_numpy(),
        "invested_value" : invested,
        "annualized"     : annualized,
    })


def dip_vs_immediate(table: PriceTable, recessions: Iterable[RecessionInterval],
                     amount: float = DEFAULT_AMOUNT, dividend: float = 0.0,
                     horizon: int = HORIZON_MONTHS) -> pd.DataFrame:
    """
    Compare investing immediately with `buy_the_dip` for every start month.

    Only start months with a full horizon and a recession end inside it
    (and inside the table) are kept.

    Returns
    -------
    pd.DataFrame  [start_date, dip_date, end_date, immediate_value,
                   dip_value, dip_advantage]
    """
    _check_amount(amount)
    _check_dividend(dividend)
    _check_horizon(horizon)
    columns = ["start_date", "dip_date", "end_date", "immediate_value",
               "dip_value", "dip_advantage"]
    v = table.values
    n_starts = len(v) - horizon
    ends = np.array(recession_ends(recessions), dtype="datetime64[ns]")
    if n_starts <= 0 or ends.size == 0:
        return pd.DataFrame(columns=columns)

    dates = table.frame["date"].to_numpy(dtype="datetime64[ns]")
    start_idx = np.arange(n_starts)
    end_idx = start_idx + horizon

    pos = np.searchsorted(ends, dates[:n_starts], side="left")
    has_end = pos < ends.size
    dip_dates = np.where(has_end, ends[np.minimum(pos, ends.size - 1)],
                         np.datetime64("NaT"))

    # ids are month offsets from the first row
    first = table.first_date
    dip_ts = pd.DatetimeIndex(dip_dates)
    dip_idx = ((dip_ts.year - first.year) * MONTHS_PER_YEAR
               + (dip_ts.month - first.month)).to_numpy()
    valid = has_end & (dip_idx >= 0) & (dip_idx <= end_idx)
    if not valid.any():
        return pd.DataFrame(columns=columns)

    s, e, d = start_idx[valid], end_idx[valid], dip_idx[valid].astype(int)
    immediate = amount * v[e] / v[s] * (1.0 + dividend) ** (horizon // MONTHS_PER_YEAR)
    dip_value = amount * v[e] / v[d] * (1.0 + dividend) ** ((e - d) // MONTHS_PER_YEAR)
    return pd.DataFrame({
        "start_date"      : dates[s],
        "dip_date"        : dates[d],
        "end_date"        : dates[e],
        "immediate_value" : immediate,
        "dip_value"       : dip_value,
        "dip_advantage"   : dip_value / immediate - 1.0,
    })
