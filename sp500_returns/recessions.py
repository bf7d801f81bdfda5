"""
Recession Intervals
===================
Loads US recession start/end month pairs (NBER business-cycle peaks and
troughs) from a local CSV and answers the lookups the buy-the-dip model
and the charts need.

A recession whose end is blank is still open; it is drawn up to a fixed
reference "present" month but never counts as a completed recession end.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from sp500_returns.exceptions import (DataIntegrityError, DataSourceError,
                                      NoRecessionEndError)

logger = logging.getLogger(__name__)

_COLUMN_PAIRS = [("start", "end"), ("peak", "trough"), ("begin", "end"),
                 ("begin date", "end date"), ("from", "to")]


def _month_start(value) -> Optional[pd.Timestamp]:
    if value is None or pd.isna(value) or str(value).strip() == "":
        return None
    ts = pd.Timestamp(value)
    return pd.Timestamp(year=ts.year, month=ts.month, day=1)


@dataclass(frozen=True)
class RecessionInterval:
    """One recession, start month to end month (None while still open)."""
    start : pd.Timestamp
    end   : Optional[pd.Timestamp] = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    def display_end(self, present) -> pd.Timestamp:
        """End month for charting; an open recession runs to `present`."""
        if self.end is not None:
            return self.end
        return _month_start(present)

    def contains(self, date) -> bool:
        ts = pd.Timestamp(date)
        return self.start <= ts and (self.end is None or ts <= self.end)


def _pick_columns(df: pd.DataFrame) -> Tuple[str, str]:
    lower = {c.strip().lower(): c for c in df.columns}
    for a, b in _COLUMN_PAIRS:
        if a in lower and b in lower:
            return lower[a], lower[b]
    if df.shape[1] >= 2:
        return df.columns[0], df.columns[1]
    raise DataIntegrityError("Recession table needs start and end columns",
                             context={"columns": list(df.columns)})


def parse_recessions(df: pd.DataFrame) -> List[RecessionInterval]:
    """Convert a two-column start/end frame into sorted intervals."""
    start_col, end_col = _pick_columns(df)
    intervals = []
    for start, end in zip(df[start_col], df[end_col]):
        s = _month_start(start)
        if s is None:
            continue
        e = _month_start(end)
        if e is not None and e < s:
            raise DataIntegrityError(
                f"Recession ends ({e:%Y-%m}) before it starts ({s:%Y-%m})"
            )
        intervals.append(RecessionInterval(s, e))
    return sorted(intervals, key=lambda r: r.start)


def load_recessions(path: str) -> List[RecessionInterval]:
    """Read recession start/end pairs from a local CSV."""
    if not os.path.exists(path):
        raise DataSourceError(f"Recession file not found: {path}",
                              context={"path": path})
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    intervals = parse_recessions(df)
    logger.info("Loaded %d recessions (%d open) from %s",
                len(intervals), sum(r.is_open for r in intervals), path)
    return intervals


def recession_ends(recessions: Iterable[RecessionInterval]) -> List[pd.Timestamp]:
    """Sorted end months of completed recessions."""
    return sorted(r.end for r in recessions if r.end is not None)


def first_end_on_or_after(recessions: Iterable[RecessionInterval],
                          date) -> pd.Timestamp:
    """
    First completed recession end at or after `date`.

    Raises
    ------
    NoRecessionEndError  when every recession end precedes `date`.
    """
    ts = pd.Timestamp(date)
    for end in recession_ends(recessions):
        if end >= ts:
            return end
    raise NoRecessionEndError(ts)


def recession_spans(recessions: Iterable[RecessionInterval],
                    present) -> List[Tuple[pd.Timestamp, pd.Timestamp]]:
    """(start, end) pairs for shading, open ends clamped to `present`."""
    return [(r.start, r.display_end(present)) for r in recessions]


def in_recession(recessions: Iterable[RecessionInterval], dates,
                 present) -> pd.Series:
    """
    Boolean flag per date: inside a recession.

    Open recessions run up to `present`, matching `recession_spans`.
    """
    idx = pd.DatetimeIndex(pd.to_datetime(dates))
    flags = pd.Series(False, index=idx)
    for r in recessions:
        upper = r.display_end(present)
        flags |= (idx >= r.start) & (idx <= upper)
    return flags
