"""
Unit Tests — Investment Return Models
=====================================

Coverage:
    - simple_return / simple_return_quick / fixed_horizon_return
    - compound_return / compound_return_quick
    - fixed_horizon_compound_return (full-horizon dividend exponent)
    - buy_the_dip (recession-end start, input-start horizon)
    - end_value, annualized_return
    - horizon_end_values, dip_vs_immediate

Run: pytest tests/ -v --tb=short
"""
import os
import sys

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sp500_returns.exceptions import (DateNotFoundError, HorizonExceededError,
                                      InvalidHorizonError, InvalidParameterError,
                                      NoRecessionEndError, ReturnsError)
from sp500_returns.recessions import RecessionInterval
from sp500_returns.returns    import (
    annualized_return, buy_the_dip, compound_return, compound_return_quick,
    dip_vs_immediate, end_value, fixed_horizon_compound_return,
    fixed_horizon_return, horizon_end_values, simple_return, simple_return_quick,
)

AMOUNT = 10_000.0
FIRST  = "1871-01-01"


# ---------------------------------------------------------------------------
# Simple return
# ---------------------------------------------------------------------------
class TestSimpleReturn:

    def test_hand_checked_series(self, small_table):
        res = simple_return(small_table, "2000-01-01", "2000-04-01", 1000.0)
        assert list(res.columns) == ["id", "date", "invested_value"]
        assert np.allclose(res["invested_value"], [1000.0, 1100.0, 990.0, 1200.0])
        assert list(res["id"]) == [1, 2, 3, 4]

    def test_quick_has_two_rows(self, small_table):
        res = simple_return_quick(small_table, "2000-02-01", "2000-05-01", 1000.0)
        assert len(res) == 2
        assert list(res["date"]) == [pd.Timestamp("2000-02-01"), pd.Timestamp("2000-05-01")]
        assert end_value(res) == pytest.approx(1000.0 * 150.0 / 110.0)

    def test_quick_matches_full_series(self, table):
        full = simple_return(table, "1880-06-01", "1905-03-01", AMOUNT)
        quick = simple_return_quick(table, "1880-06-01", "1905-03-01", AMOUNT)
        assert end_value(full) == pytest.approx(end_value(quick))
        assert len(full) == table.id_of("1905-03-01") - table.id_of("1880-06-01") + 1

    def test_end_value_equals_price_ratio(self, table):
        start, end = pd.Timestamp("1890-01-01"), pd.Timestamp("1915-07-01")
        expected = AMOUNT * table.value_at(end) / table.value_at(start)
        assert end_value(simple_return_quick(table, start, end, AMOUNT)) == pytest.approx(expected)

    def test_whole_history_from_first_value(self, table):
        # 70.77 in Jan 1871 is the base of the whole-history figure
        res = simple_return_quick(table, table.first_date, table.last_date, AMOUNT)
        assert table.value_of_id(1) == pytest.approx(70.77)
        assert end_value(res) == pytest.approx(AMOUNT * table.value_of_id(table.last_id) / 70.77)

    def test_start_row_is_principal(self, table):
        res = simple_return(table, "1900-01-01", "1900-12-01", AMOUNT)
        assert res["invested_value"].iloc[0] == pytest.approx(AMOUNT)

    def test_end_before_start(self, small_table):
        with pytest.raises(ValueError):
            simple_return(small_table, "2000-04-01", "2000-02-01")

    def test_unknown_date(self, small_table):
        with pytest.raises(DateNotFoundError):
            simple_return(small_table, "1999-12-01", "2000-02-01")
        with pytest.raises(DateNotFoundError):
            simple_return_quick(small_table, "2000-01-01", "2000-02-10")

    def test_non_positive_amount(self, small_table):
        with pytest.raises(InvalidParameterError):
            simple_return(small_table, "2000-01-01", "2000-02-01", 0.0)


class TestFixedHorizonReturn:

    def test_small_horizon(self, small_table):
        res = fixed_horizon_return(small_table, "2000-01-01", 1000.0, horizon=5)
        assert len(res) == 6
        assert end_value(res) == pytest.approx(1350.0)

    def test_forty_years_is_481_rows(self, table):
        res = fixed_horizon_return(table, FIRST, AMOUNT)
        assert len(res) == 481
        assert res["id"].iloc[-1] == 481
        assert res["date"].iloc[-1] == pd.Timestamp("1911-01-01")

    def test_horizon_exceeds_table(self, small_table):
        with pytest.raises(HorizonExceededError):
            fixed_horizon_return(small_table, "2000-01-01", 1000.0, horizon=6)

    @pytest.mark.parametrize("horizon", [0, -12])
    def test_horizon_below_one_month(self, small_table, horizon):
        with pytest.raises(InvalidHorizonError) as exc:
            fixed_horizon_return(small_table, "2000-01-01", 1000.0, horizon=horizon)
        assert isinstance(exc.value, ReturnsError)
        assert exc.value.horizon == horizon

    def test_last_start_with_full_horizon(self, table):
        last_start = table.date_of_id(table.last_id - 480)
        fixed_horizon_return(table, last_start, AMOUNT)
        with pytest.raises(HorizonExceededError) as exc:
            fixed_horizon_return(table, table.date_of_id(table.last_id - 479), AMOUNT)
        assert exc.value.requested_id == table.last_id + 1


# ---------------------------------------------------------------------------
# Compounding
# ---------------------------------------------------------------------------
class TestCompoundReturn:

    def test_zero_dividend_equals_simple(self, table):
        simple = simple_return(table, FIRST, "1900-06-01", AMOUNT)
        comp = compound_return(table, FIRST, "1900-06-01", AMOUNT, dividend=0.0)
        assert np.array_equal(simple["invested_value"].to_numpy(),
                              comp["invested_value"].to_numpy())

    def test_dividend_applied_per_full_year(self, table):
        d = 0.05
        res = compound_return(table, FIRST, "1873-06-01", AMOUNT, dividend=d)
        simple = simple_return(table, FIRST, "1873-06-01", AMOUNT)
        ratio = (res["invested_value"] / simple["invested_value"]).to_numpy()
        assert ratio[0] == pytest.approx(1.0)      # id 1, 0 months
        assert ratio[11] == pytest.approx(1.0)     # id 12, 11 months
        assert ratio[12] == pytest.approx(1.05)    # id 13, 12 months
        assert ratio[24] == pytest.approx(1.05 ** 2)
        assert ratio[-1] == pytest.approx(1.05 ** 2)

    def test_quick_matches_full(self, table):
        full = compound_return(table, "1875-03-01", "1910-08-01", AMOUNT, 0.03)
        quick = compound_return_quick(table, "1875-03-01", "1910-08-01", AMOUNT, 0.03)
        assert len(quick) == 2
        assert end_value(quick) == pytest.approx(end_value(full))

    def test_invalid_dividend(self, table):
        with pytest.raises(ValueError):
            compound_return(table, FIRST, "1872-01-01", AMOUNT, dividend=-1.0)


class TestFixedHorizonCompound:

    def test_horizon_end_formula(self, table):
        d = 0.02
        res = fixed_horizon_compound_return(table, FIRST, AMOUNT, dividend=d)
        expected = AMOUNT * table.value_of_id(481) / table.value_of_id(1) * (1 + d) ** 40
        assert end_value(res) == pytest.approx(expected)

    def test_agrees_with_compound_at_end(self, table):
        fixed = fixed_horizon_compound_return(table, "1875-01-01", AMOUNT, 0.04)
        comp = compound_return_quick(table, "1875-01-01", fixed["date"].iloc[-1], AMOUNT, 0.04)
        assert end_value(fixed) == pytest.approx(end_value(comp))

    def test_intermediate_rows_carry_full_exponent(self, table):
        d = 0.02
        res = fixed_horizon_compound_return(table, FIRST, AMOUNT, dividend=d)
        assert res["invested_value"].iloc[0] == pytest.approx(AMOUNT * (1 + d) ** 40)
        comp = compound_return(table, FIRST, res["date"].iloc[-1], AMOUNT, d)
        assert res["invested_value"].iloc[100] > comp["invested_value"].iloc[100]

    def test_horizon_exceeds_table(self, table):
        with pytest.raises(HorizonExceededError):
            fixed_horizon_compound_return(table, "1900-01-01", AMOUNT, 0.02)


# ---------------------------------------------------------------------------
# Buy the dip
# ---------------------------------------------------------------------------
class TestBuyTheDip:

    def test_starts_at_next_recession_end(self, table, recessions):
        res = buy_the_dip(table, recessions, FIRST, AMOUNT, dividend=0.02)
        assert res["date"].iloc[0] == pd.Timestamp("1879-03-01")
        assert res["date"].iloc[-1] == pd.Timestamp("1911-01-01")
        assert res["invested_value"].iloc[0] == pytest.approx(AMOUNT)

    def test_end_value_formula(self, table, recessions):
        d = 0.02
        res = buy_the_dip(table, recessions, FIRST, AMOUNT, dividend=d)
        dip_id, end_id = table.id_of("1879-03-01"), 481
        expected = (AMOUNT * table.value_of_id(end_id) / table.value_of_id(dip_id)
                    * (1 + d) ** ((end_id - dip_id) // 12))
        assert end_value(res) == pytest.approx(expected)

    def test_start_on_recession_end_month(self, table, recessions):
        res = buy_the_dip(table, recessions, "1879-03-01", AMOUNT)
        assert res["date"].iloc[0] == pd.Timestamp("1879-03-01")
        assert len(res) == 481

    def test_no_recession_end_raises_lookup_error(self, table, recessions):
        # the only recession after mid-1894 is still open
        with pytest.raises(NoRecessionEndError):
            buy_the_dip(table, recessions, "1894-07-01", AMOUNT)
        with pytest.raises(LookupError):
            buy_the_dip(table, [], FIRST, AMOUNT)

    def test_window_past_table(self, table, recessions):
        with pytest.raises(HorizonExceededError):
            buy_the_dip(table, recessions, "1882-01-01", AMOUNT)

    def test_recession_ends_after_horizon(self, table, recessions):
        with pytest.raises(HorizonExceededError):
            buy_the_dip(table, recessions, FIRST, AMOUNT, horizon=12)

    def test_recession_end_outside_table(self, small_table):
        late = [RecessionInterval(pd.Timestamp("2001-01-01"), pd.Timestamp("2001-06-01"))]
        with pytest.raises(DateNotFoundError):
            buy_the_dip(small_table, late, "2000-01-01", 1000.0, horizon=3)


# ---------------------------------------------------------------------------
# Helpers and every-window comparisons
# ---------------------------------------------------------------------------
class TestHelpers:

    def test_end_value_empty(self):
        with pytest.raises(ValueError):
            end_value(pd.DataFrame(columns=["id", "date", "invested_value"]))

    def test_annualized_return(self):
        assert annualized_return(100.0, 200.0, 12) == pytest.approx(1.0)
        assert annualized_return(100.0, 400.0, 24) == pytest.approx(1.0)
        with pytest.raises(ValueError):
            annualized_return(100.0, 200.0, 0)


class TestWindowComparisons:

    def test_horizon_end_values_shape(self, table):
        w = horizon_end_values(table, AMOUNT, 0.02)
        assert len(w) == len(table) - 480
        assert w["start_date"].iloc[0] == table.first_date
        assert w["end_date"].iloc[-1] == table.last_date

    def test_horizon_end_values_match_model(self, table):
        w = horizon_end_values(table, AMOUNT, 0.02)
        for i in (0, 57, len(w) - 1):
            start = w["start_date"].iloc[i]
            model = fixed_horizon_compound_return(table, start, AMOUNT, 0.02)
            assert w["invested_value"].iloc[i] == pytest.approx(end_value(model))

    def test_horizon_end_values_short_table(self, small_table):
        assert horizon_end_values(small_table, 1000.0).empty

    def test_dip_vs_immediate_rows(self, table, recessions):
        cmp = dip_vs_immediate(table, recessions, AMOUNT, 0.02)
        assert len(cmp) == len(table) - 480
        assert (cmp["dip_date"] >= cmp["start_date"]).all()

    def test_dip_vs_immediate_matches_models(self, table, recessions):
        cmp = dip_vs_immediate(table, recessions, AMOUNT, 0.02)
        for i in (0, 100, 110):
            row = cmp.iloc[i]
            dip = buy_the_dip(table, recessions, row["start_date"], AMOUNT, 0.02)
            now = compound_return_quick(table, row["start_date"], row["end_date"], AMOUNT, 0.02)
            assert row["dip_value"] == pytest.approx(end_value(dip))
            assert row["immediate_value"] == pytest.approx(end_value(now))
            assert row["dip_advantage"] == pytest.approx(end_value(dip) / end_value(now) - 1)

    def test_dip_vs_immediate_without_recessions(self, table):
        assert dip_vs_immediate(table, [], AMOUNT).empty

    @pytest.mark.parametrize("horizon", [0, -12])
    def test_every_window_helpers_reject_bad_horizon(self, table, recessions, horizon):
        with pytest.raises(InvalidHorizonError):
            horizon_end_values(table, AMOUNT, 0.02, horizon)
        with pytest.raises(InvalidHorizonError):
            dip_vs_immediate(table, recessions, AMOUNT, 0.02, horizon)
        with pytest.raises(InvalidHorizonError):
            buy_the_dip(table, recessions, FIRST, AMOUNT, 0.02, horizon)

    def test_one_month_horizon(self, small_table):
        w = horizon_end_values(small_table, 1000.0, 0.0, 1)
        assert len(w) == 5
        assert w["invested_value"].iloc[0] == pytest.approx(1100.0)
        assert w["annualized"].iloc[0] == pytest.approx(1.1 ** 12 - 1)
