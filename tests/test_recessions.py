"""
test_recessions.py
------------------
Unit tests for recession loading and lookups.
"""

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pandas as pd
import pytest

from sp500_returns.config     import DataConfig
from sp500_returns.exceptions import DataIntegrityError, DataSourceError, NoRecessionEndError
from sp500_returns.recessions import (RecessionInterval, first_end_on_or_after, in_recession,
                                      load_recessions, parse_recessions, recession_ends,
                                      recession_spans)


@pytest.fixture
def csv_path(tmp_path):
    path = tmp_path / "recessions.csv"
    path.write_text(
        "start,end\n"
        "2001-03-01,2001-11-01\n"
        "1990-07-01,1991-03-01\n"
        "2020-02-15,\n"
    )
    return str(path)


class TestLoadRecessions:

    def test_sorted_by_start(self, csv_path):
        recs = load_recessions(csv_path)
        assert [r.start.year for r in recs] == [1990, 2001, 2020]

    def test_open_end(self, csv_path):
        recs = load_recessions(csv_path)
        assert recs[-1].is_open
        assert recs[-1].end is None
        assert not recs[0].is_open

    def test_dates_normalized_to_month_start(self, csv_path):
        assert load_recessions(csv_path)[-1].start == pd.Timestamp("2020-02-01")

    def test_missing_file(self, tmp_path):
        with pytest.raises(DataSourceError):
            load_recessions(str(tmp_path / "missing.csv"))

    def test_peak_trough_headers(self):
        df = pd.DataFrame({"Peak": ["1929-08-01"], "Trough": ["1933-03-01"]})
        recs = parse_recessions(df)
        assert recs == [RecessionInterval(pd.Timestamp("1929-08-01"),
                                          pd.Timestamp("1933-03-01"))]

    def test_inverted_interval(self):
        df = pd.DataFrame({"start": ["2001-11-01"], "end": ["2001-03-01"]})
        with pytest.raises(DataIntegrityError):
            parse_recessions(df)

    def test_bundled_file(self):
        recs = load_recessions(DataConfig().recessions_path)
        assert len(recs) >= 30
        assert recs[0].start == pd.Timestamp("1873-10-01")
        assert all(r.end is not None and r.end >= r.start for r in recs)


class TestLookups:

    def test_display_end_clamps_open(self):
        r = RecessionInterval(pd.Timestamp("2020-02-01"))
        assert r.display_end("2020-06-17") == pd.Timestamp("2020-06-01")
        closed = RecessionInterval(pd.Timestamp("2001-03-01"), pd.Timestamp("2001-11-01"))
        assert closed.display_end("2020-06-01") == pd.Timestamp("2001-11-01")

    def test_first_end_on_or_after(self, recessions):
        assert first_end_on_or_after(recessions, "1871-01-01") == pd.Timestamp("1879-03-01")
        assert first_end_on_or_after(recessions, "1879-03-01") == pd.Timestamp("1879-03-01")
        assert first_end_on_or_after(recessions, "1879-04-01") == pd.Timestamp("1885-05-01")

    def test_open_recession_never_qualifies(self, recessions):
        with pytest.raises(NoRecessionEndError):
            first_end_on_or_after(recessions, "1895-01-01")

    def test_recession_ends_skip_open(self, recessions):
        assert len(recession_ends(recessions)) == 3

    def test_spans(self, recessions):
        spans = recession_spans(recessions, "1925-01-01")
        assert spans[-1] == (pd.Timestamp("1920-01-01"), pd.Timestamp("1925-01-01"))

    def test_in_recession_flags(self, recessions):
        dates = pd.date_range("1873-09-01", periods=3, freq="MS")
        assert list(in_recession(recessions, dates, "1925-01-01")) == [False, True, True]

    def test_in_recession_open_end_stops_at_present(self, recessions):
        dates = pd.date_range("1919-11-01", periods=8, freq="MS")
        flags = in_recession(recessions, dates, "1920-03-01")
        assert list(flags) == [False, False, True, True, True, False, False, False]

    def test_in_recession_matches_spans(self, recessions):
        dates = pd.date_range("1919-01-01", periods=36, freq="MS")
        start, end = recession_spans(recessions, "1920-06-01")[-1]
        flags = in_recession(recessions, dates, "1920-06-01")
        assert flags[flags].index.min() == start
        assert flags[flags].index.max() == end

    def test_contains(self):
        r = RecessionInterval(pd.Timestamp("2007-12-01"), pd.Timestamp("2009-06-01"))
        assert r.contains("2008-09-15")
        assert not r.contains("2009-07-01")
