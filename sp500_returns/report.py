"""
report.py
---------
Headline figures for the long-run S&P 500 narrative and their
plain-text rendering.
"""

from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from sp500_returns.changes import change_summary
from sp500_returns.data_loader import PriceTable
from sp500_returns.exceptions import HorizonExceededError
from sp500_returns.recessions import RecessionInterval, in_recession
from sp500_returns.returns import (
    annualized_return, compound_return_quick, dip_vs_immediate, end_value,
    fixed_horizon_compound_return, fixed_horizon_return, horizon_end_values,
    simple_return_quick,
)
from sp500_returns.utils import format_currency, format_pct, timeit


@timeit
def headline_figures(table: PriceTable,
                     recessions: Sequence[RecessionInterval],
                     amount: float, dividend: float,
                     horizon: int, present=None) -> Dict:
    """
    Compute every number quoted in the report narrative.

    `present` is the month open recessions run to when counting recession
    months; it defaults to the last table month.

    Figures that need a full horizon are None when the table is shorter
    than `horizon` months.
    """
    first, last = table.first_date, table.last_date
    if present is None:
        present = last
    whole = simple_return_quick(table, first, last, amount)
    whole_div = compound_return_quick(table, first, last, amount, dividend)
    months = table.last_id - table.first_id

    fig = {
        "first_date"          : first,
        "last_date"           : last,
        "first_value"         : table.value_of_id(table.first_id),
        "last_value"          : table.value_of_id(table.last_id),
        "n_months"            : len(table),
        "amount"              : amount,
        "dividend"            : dividend,
        "horizon"             : horizon,
        "whole_simple"        : end_value(whole),
        "whole_compound"      : end_value(whole_div),
        "whole_annualized"    : annualized_return(amount, end_value(whole), months)
                                if months > 0 else None,
        "recession_share"     : float(in_recession(recessions, table.frame["date"],
                                                   present).mean())
                                if len(recessions) else 0.0,
        "changes"             : change_summary(table),
        "horizon_simple"      : None,
        "horizon_compound"    : None,
        "best_window"         : None,
        "worst_window"        : None,
        "dip_share_better"    : None,
        "dip_mean_advantage"  : None,
    }

    try:
        fig["horizon_simple"] = end_value(fixed_horizon_return(table, first, amount, horizon))
        fig["horizon_compound"] = end_value(
            fixed_horizon_compound_return(table, first, amount, dividend, horizon))
    except HorizonExceededError:
        return fig

    windows = horizon_end_values(table, amount, dividend, horizon)
    best = windows.loc[windows["invested_value"].idxmax()]
    worst = windows.loc[windows["invested_value"].idxmin()]
    fig["best_window"] = (pd.Timestamp(best["start_date"]), float(best["invested_value"]))
    fig["worst_window"] = (pd.Timestamp(worst["start_date"]), float(worst["invested_value"]))

    dips = dip_vs_immediate(table, recessions, amount, dividend, horizon)
    if not dips.empty:
        fig["dip_share_better"] = float((dips["dip_advantage"] > 0).mean())
        fig["dip_mean_advantage"] = float(np.mean(dips["dip_advantage"]))
    return fig


def format_headlines(fig: Dict) -> List[str]:
    """Narrative lines for the log / console."""
    amt = format_currency(fig["amount"], 0)
    years = fig["horizon"] // 12
    lines = [
        f"Monthly data {fig['first_date']:%b %Y} to {fig['last_date']:%b %Y} "
        f"({fig['n_months']} months), index {fig['first_value']:,.2f} -> "
        f"{fig['last_value']:,.2f}",
        f"{amt} invested in {fig['first_date']:%b %Y} is worth "
        f"{format_currency(fig['whole_simple'], 0)} by {fig['last_date']:%b %Y}"
        + (f" ({format_pct(fig['whole_annualized'])} a year)"
           if fig["whole_annualized"] is not None else ""),
        f"With a {format_pct(fig['dividend'])} dividend reinvested yearly: "
        f"{format_currency(fig['whole_compound'], 0)}",
    ]

    ch = fig["changes"]
    if ch.get("n_changes"):
        lines.append(
            f"Average monthly change {ch['mean_pct']:.2f}% "
            f"(up in {format_pct(ch['up_share'], 1)} of months); best "
            f"{ch['best_pct']:+.2f}% in {ch['best_date']:%b %Y}, worst "
            f"{ch['worst_pct']:+.2f}% in {ch['worst_date']:%b %Y}"
        )
    lines.append(f"Share of months in recession: {format_pct(fig['recession_share'], 1)}")

    if fig["horizon_simple"] is None:
        lines.append(f"History shorter than {years} years: no fixed-horizon figures")
        return lines

    lines += [
        f"{years}-year hold from {fig['first_date']:%b %Y}: "
        f"{format_currency(fig['horizon_simple'], 0)} price only, "
        f"{format_currency(fig['horizon_compound'], 0)} with dividends",
        f"Best {years}-year start {fig['best_window'][0]:%b %Y} "
        f"({format_currency(fig['best_window'][1], 0)}), worst "
        f"{fig['worst_window'][0]:%b %Y} "
        f"({format_currency(fig['worst_window'][1], 0)})",
    ]
    if fig["dip_share_better"] is not None:
        lines.append(
            f"Buying the dip beat investing immediately in "
            f"{format_pct(fig['dip_share_better'], 1)} of start months "
            f"(mean advantage {format_pct(fig['dip_mean_advantage'])})"
        )
    return lines
