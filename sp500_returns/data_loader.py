"""
Monthly Price Data Acquisition
==============================
Provides:
    - Monthly S&P 500 closes via yfinance (^GSPC, interval "1mo"),
      deflated to today's dollars with FRED CPI (CPIAUCSL) via fredapi
    - Local CSV exports of a monthly inflation-adjusted series
      (Date,Value columns as published by multpl / Nasdaq Data Link)
    - PriceTable: the immutable, gap-free monthly table every return
      model reads from

Rows are keyed by a sequential `id` starting at 1, so "N months later"
is plain index arithmetic: id + N.
"""
from __future__ import annotations

import logging
import os
import warnings
from typing import Optional

import numpy as np
import pandas as pd
import yfinance as yf
from fredapi import Fred

from sp500_returns.changes import add_change_columns
from sp500_returns.exceptions import (DataIntegrityError, DataSourceError,
                                      DateNotFoundError, HorizonExceededError)

warnings.filterwarnings("ignore", category=FutureWarning)

logger = logging.getLogger(__name__)

COLUMNS = ["date", "value", "id", "change_factor", "pct_change"]


def _to_timestamp(date) -> pd.Timestamp:
    ts = pd.Timestamp(date)
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


# ---------------------------------------------------------------------------
# PriceTable
# ---------------------------------------------------------------------------
class PriceTable:
    """
    Immutable monthly price table.

    Built once by `build_price_table` and passed explicitly into every
    return model. The underlying arrays are read-only and `frame` hands
    out copies, so callers cannot mutate shared state.

    Columns
    -------
    date          : first-of-month timestamp
    value         : positive price
    id            : 1..n, contiguous
    change_factor : value / previous value (NaN on the first row)
    pct_change    : (change_factor - 1) * 100
    """

    def __init__(self, frame: pd.DataFrame):
        missing = [c for c in COLUMNS if c not in frame.columns]
        if missing:
            raise DataIntegrityError(f"Price frame missing columns: {missing}")
        if frame.empty:
            raise DataIntegrityError("Price table has no rows")

        frame = frame[COLUMNS].reset_index(drop=True).copy()
        expected = pd.date_range(pd.Timestamp(frame["date"].iloc[0]),
                                 periods=len(frame), freq="MS")
        if not np.array_equal(frame["date"].to_numpy(dtype="datetime64[ns]"),
                              expected.to_numpy()):
            raise DataIntegrityError(
                "Price table dates must be consecutive month starts",
                context={"first": frame["date"].iloc[0], "rows": len(frame)},
            )
        if not np.array_equal(frame["id"].to_numpy(), np.arange(1, len(frame) + 1)):
            raise DataIntegrityError("Price table ids must run 1..n without gaps",
                                     context={"rows": len(frame)})
        self._frame = frame
        self._dates = frame["date"].to_numpy(dtype="datetime64[ns]")
        self._values = frame["value"].to_numpy(dtype=float)
        self._dates.flags.writeable = False
        self._values.flags.writeable = False

        first = pd.Timestamp(self._dates[0])
        self._origin = first.year * 12 + first.month - 1

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return (f"PriceTable({len(self)} rows, "
                f"{self.first_date:%Y-%m} to {self.last_date:%Y-%m})")

    # ── Bounds ──────────────────────────────────────────────────────────────
    @property
    def first_id(self) -> int:
        return 1

    @property
    def last_id(self) -> int:
        return len(self)

    @property
    def first_date(self) -> pd.Timestamp:
        return pd.Timestamp(self._dates[0])

    @property
    def last_date(self) -> pd.Timestamp:
        return pd.Timestamp(self._dates[-1])

    @property
    def frame(self) -> pd.DataFrame:
        """A copy of the full table."""
        return self._frame.copy()

    @property
    def values(self) -> np.ndarray:
        """Read-only array of prices, position i holds id i + 1."""
        return self._values

    # ── Lookups ─────────────────────────────────────────────────────────────
    def id_of(self, date) -> int:
        """
        Resolve a calendar month to its row id.

        Only exact first-of-month dates inside the table resolve; anything
        else raises DateNotFoundError.
        """
        ts = _to_timestamp(date)
        if ts.day != 1:
            raise DateNotFoundError(ts, context={"reason": "not a month start"})
        row_id = ts.year * 12 + ts.month - 1 - self._origin + 1
        if row_id < self.first_id or row_id > self.last_id:
            raise DateNotFoundError(
                ts, context={"first": self.first_date, "last": self.last_date}
            )
        return row_id

    def check_id(self, row_id: int) -> int:
        """Raise HorizonExceededError unless `row_id` is a table row."""
        if row_id < self.first_id or row_id > self.last_id:
            raise HorizonExceededError(
                f"Row id {row_id} outside table range "
                f"[{self.first_id}, {self.last_id}]",
                requested_id=row_id, last_id=self.last_id,
            )
        return row_id

    def value_of_id(self, row_id: int) -> float:
        return float(self._values[self.check_id(row_id) - 1])

    def date_of_id(self, row_id: int) -> pd.Timestamp:
        return pd.Timestamp(self._dates[self.check_id(row_id) - 1])

    def value_at(self, date) -> float:
        return float(self._values[self.id_of(date) - 1])

    def rows(self, start_id: int, end_id: int) -> pd.DataFrame:
        """Inclusive slice of rows start_id..end_id."""
        self.check_id(start_id)
        self.check_id(end_id)
        return self._frame.iloc[start_id - 1:end_id].reset_index(drop=True)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------
def build_price_table(raw: pd.DataFrame) -> PriceTable:
    """
    Normalize raw (date, value) rows into a PriceTable.

    Steps
    -----
    1. Parse dates to tz-naive midnight timestamps.
    2. Drop missing and non-positive values.
    3. Drop entries not on the first of a month (e.g. a mid-month
       "current price" quote appended by the provider).
    4. Sort by date and drop duplicate months.
    5. Verify one row per month with no gaps.
    6. Assign id = 1..n and attach month-over-month changes.
    """
    if raw is None or raw.empty:
        raise DataIntegrityError("No price rows to build a table from")

    dates = pd.to_datetime(raw["date"], errors="coerce")
    if getattr(dates.dt, "tz", None) is not None:
        dates = dates.dt.tz_localize(None)
    df = pd.DataFrame({
        "date" : dates.dt.normalize(),
        "value": pd.to_numeric(raw["value"], errors="coerce"),
    })
    n_raw = len(df)
    df = df.dropna()
    df = df[df["value"] > 0]

    aligned = df["date"].dt.day == 1
    if (~aligned).any():
        logger.info("Dropping %d rows not aligned to a month start",
                    int((~aligned).sum()))
    df = df[aligned]

    df = (df.sort_values("date", kind="stable")
            .drop_duplicates(subset="date", keep="last")
            .reset_index(drop=True))
    if df.empty:
        raise DataIntegrityError("No month-start price rows remain",
                                 context={"raw_rows": n_raw})

    expected = pd.date_range(df["date"].iloc[0], periods=len(df), freq="MS")
    if not np.array_equal(df["date"].to_numpy(), expected.to_numpy()):
        missing = expected.difference(pd.DatetimeIndex(df["date"]))
        first_gap = missing[0] if len(missing) else None
        raise DataIntegrityError(
            f"Monthly price series has gaps (first missing month: {first_gap})",
            context={"missing": list(missing[:10])},
        )

    df["id"] = np.arange(1, len(df) + 1)
    df = add_change_columns(df)
    return PriceTable(df)


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------
def fetch_yfinance_prices(
    ticker: str = "^GSPC",
    start : str = "1871-01-01",
    end   : Optional[str] = None,
) -> pd.DataFrame:
    """
    Download monthly closes from yfinance.

    Returns
    -------
    pd.DataFrame  with columns [date, value].
    """
    try:
        raw = yf.download(ticker, start=start, end=end, interval="1mo",
                          auto_adjust=True, progress=False)
    except Exception as e:
        raise DataSourceError(f"Failed to fetch prices for {ticker}: {e}",
                              context={"ticker": ticker}) from e

    if raw is None or raw.empty:
        raise DataSourceError(f"Provider returned no data for {ticker}",
                              context={"ticker": ticker})

    close = raw["Close"] if "Close" in raw.columns else raw.iloc[:, 0]
    if isinstance(close, pd.DataFrame):
        close = close.iloc[:, 0]
    close = close.dropna()
    index = pd.to_datetime(close.index)
    if index.tz is not None:
        index = index.tz_localize(None)
    return pd.DataFrame({"date": index,
                         "value": close.to_numpy(dtype=float)})


def fetch_fred_cpi(
    series_id: str = "CPIAUCSL",
    start    : Optional[str] = None,
    end      : Optional[str] = None,
) -> pd.Series:
    """
    Download a monthly consumer price index from FRED.

    The API key is read from FRED_API_KEY.

    Returns
    -------
    pd.Series  CPI level indexed by first-of-month timestamps.
    """
    try:
        fred = Fred(api_key=os.getenv("FRED_API_KEY"))
        cpi = fred.get_series(series_id, observation_start=start,
                              observation_end=end)
    except Exception as e:
        raise DataSourceError(f"Failed to fetch {series_id} from FRED: {e}",
                              context={"series": series_id}) from e

    if cpi is None or cpi.dropna().empty:
        raise DataSourceError(f"FRED returned no observations for {series_id}",
                              context={"series": series_id})

    cpi = cpi.dropna().astype(float)
    cpi.index = pd.DatetimeIndex(pd.to_datetime(cpi.index)).to_period("M").to_timestamp()
    cpi = cpi[~cpi.index.duplicated(keep="last")].sort_index()
    cpi.name = series_id
    return cpi


def deflate_prices(prices: pd.DataFrame, cpi: pd.Series) -> pd.DataFrame:
    """
    Restate nominal prices in dollars of the latest price month.

        real_t = nominal_t * CPI_last / CPI_t

    Months after the last CPI release reuse the latest print; months
    before the CPI series begins are dropped.

    Parameters
    ----------
    prices : DataFrame [date, value] of nominal prices.
    cpi    : Series of index levels keyed by month start (see fetch_fred_cpi).
    """
    if cpi.empty:
        raise DataIntegrityError("CPI series is empty")

    out = (prices[["date", "value"]]
           .assign(date=pd.to_datetime(prices["date"]))
           .sort_values("date", kind="stable")
           .reset_index(drop=True))
    months = pd.DatetimeIndex(out["date"]).to_period("M").to_timestamp()

    factor = cpi.reindex(months).to_numpy(dtype=float)
    factor[np.asarray(months > cpi.index.max())] = float(cpi.iloc[-1])

    covered = ~np.isnan(factor)
    if not covered.any():
        raise DataIntegrityError(
            "No price months fall inside the CPI series",
            context={"cpi_first": cpi.index.min(), "cpi_last": cpi.index.max()},
        )
    if (~covered).any():
        logger.info("Dropping %d price rows before the first CPI observation (%s)",
                    int((~covered).sum()), f"{cpi.index.min():%Y-%m}")

    out = out[covered].reset_index(drop=True)
    factor = factor[covered]
    out["value"] = out["value"].to_numpy(dtype=float) * factor[-1] / factor
    return out


def read_price_csv(path: str) -> pd.DataFrame:
    """
    Read a local monthly price export.

    Accepts `Date`/`Value` headers in any case; a two-column file without
    those headers is read positionally.
    """
    if not os.path.exists(path):
        raise DataSourceError(f"Price file not found: {path}",
                              context={"path": path})

    df = pd.read_csv(path)
    cols = {c.strip().lower(): c for c in df.columns}
    if "date" in cols and "value" in cols:
        out = df[[cols["date"], cols["value"]]].copy()
    elif df.shape[1] >= 2:
        out = df.iloc[:, :2].copy()
    else:
        raise DataIntegrityError(f"Cannot find date/value columns in {path}",
                                 context={"columns": list(df.columns)})
    out.columns = ["date", "value"]
    return out


def load_price_table(config) -> PriceTable:
    """
    Build the PriceTable from the source named in a DataConfig.

    Parameters
    ----------
    config : DataConfig (source, ticker, start, end, csv_path, deflate,
             cpi_series).

    yfinance closes are nominal; with `deflate` set they are restated in
    latest-month dollars before normalization. CSV exports are taken as
    already inflation-adjusted.
    """
    if config.source == "csv":
        if not config.csv_path:
            raise DataSourceError("source='csv' requires a csv_path")
        raw = read_price_csv(config.csv_path)
    elif config.source == "yfinance":
        raw = fetch_yfinance_prices(config.ticker, config.start, config.end)
        if config.deflate:
            cpi = fetch_fred_cpi(config.cpi_series, config.start, config.end)
            raw = deflate_prices(raw, cpi)
            logger.info("Deflated %s closes by %s (base %s)", config.ticker,
                        config.cpi_series, f"{raw['date'].iloc[-1]:%Y-%m}")
        else:
            logger.warning("Using nominal %s closes (deflation disabled)",
                           config.ticker)
    else:
        raise ValueError(f"Unknown price source: {config.source!r}")

    table = build_price_table(raw)
    logger.info("Loaded %d monthly rows (%s to %s) from %s",
                len(table), f"{table.first_date:%Y-%m}",
                f"{table.last_date:%Y-%m}", config.source)
    return table
