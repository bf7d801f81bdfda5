"""
visualization.py
----------------
Report charts for the long-run S&P 500 analysis.

All figures use matplotlib with the Agg backend (headless safe).

Charts produced
---------------
1. Price history on a log scale with recession shading.
2. Distribution of monthly percent changes.
3. Growth of the principal: price only vs dividends reinvested.
4. Terminal value of every fixed-horizon window by start month.
5. Buy-the-dip vs investing immediately.
"""

import itertools
import warnings
from pathlib import Path
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")                     # headless rendering
import matplotlib.pyplot as plt
from matplotlib.ticker import FuncFormatter

from sp500_returns.data_loader import PriceTable
from sp500_returns.recessions import RecessionInterval, recession_spans

warnings.filterwarnings("ignore", category=UserWarning)

# --------------------------------------------------------------------------
# Report theme
# --------------------------------------------------------------------------
COLORS = {
    "price":     "#1f4e79",
    "gain":      "#2e7d32",
    "loss":      "#c62828",
    "accent":    "#ef8f00",
    "recession": "#9e9e9e",
    "reference": "#616161",
    "edge":      "#ffffff",
}
GROWTH_PALETTE = ("price", "gain", "accent")

plt.rcParams.update({
    "figure.facecolor":  "white",
    "axes.facecolor":    "#fafafa",
    "axes.spines.top":   False,
    "axes.spines.right": False,
    "axes.grid":         True,
    "axes.titlesize":    12,
    "axes.titleweight":  "bold",
    "grid.linestyle":    ":",
    "grid.alpha":        0.35,
    "legend.frameon":    False,
    "legend.fontsize":   8,
    "font.size":         9,
})

usd_fmt = FuncFormatter(lambda x, _: f"${x:,.0f}")
pct_fmt = FuncFormatter(lambda x, _: f"{x:.1f}%")


def _finish(fig, path: str) -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=120)
    plt.close(fig)
    return path


def _shade_recessions(ax, recessions, present, lo, hi) -> None:
    labelled = False
    for start, end in recession_spans(recessions, present):
        if end < lo or start > hi:
            continue
        ax.axvspan(start, end, color=COLORS["recession"], alpha=0.25, lw=0,
                   label=None if labelled else "Recession")
        labelled = True


# =============================================================================
# Chart 1: Price history
# =============================================================================
def plot_price_history(
    table:       PriceTable,
    recessions:  Sequence[RecessionInterval],
    present,
    output_path: str,
    title:       str = "S&P 500 Monthly Price",
) -> str:
    """Log-scale monthly price with recession periods shaded."""
    df = table.frame
    fig, ax = plt.subplots(figsize=(14, 6))
    ax.plot(df["date"], df["value"], color=COLORS["price"], lw=1.1, label="Price")
    _shade_recessions(ax, recessions, present, df["date"].iloc[0], df["date"].iloc[-1])
    ax.set_yscale("log")
    ax.set_title(f"{title}  |  {table.first_date:%b %Y} - {table.last_date:%b %Y}")
    ax.set_ylabel("Price (log scale)")
    ax.set_xlabel("Date")
    ax.legend(loc="upper left")
    return _finish(fig, output_path)


# =============================================================================
# Chart 2: Monthly change distribution
# =============================================================================
def plot_monthly_changes(table: PriceTable, output_path: str, bins: int = 80) -> str:
    """Histogram of month-over-month percent changes."""
    pct = table.frame["pct_change"].dropna()
    fig, ax = plt.subplots(figsize=(12, 5))
    colors = COLORS["gain"] if pct.mean() >= 0 else COLORS["loss"]
    ax.hist(pct, bins=bins, color=colors, alpha=0.75, edgecolor=COLORS["edge"])
    ax.axvline(0, color=COLORS["reference"], lw=0.8)
    ax.axvline(pct.mean(), color=COLORS["accent"], lw=1.2, ls="--",
               label=f"Mean {pct.mean():.2f}%")
    ax.set_title("Monthly Percent Change")
    ax.set_xlabel("Change (%)")
    ax.set_ylabel("Months")
    ax.xaxis.set_major_formatter(pct_fmt)
    ax.legend()
    return _finish(fig, output_path)


# =============================================================================
# Chart 3: Investment growth
# =============================================================================
def plot_investment_growth(
    series:      Dict[str, pd.DataFrame],
    output_path: str,
    title:       str = "Growth of the Investment",
    log_scale:   bool = True,
) -> str:
    """
    Overlay several InvestmentResult series.

    Parameters
    ----------
    series : label -> frame with `date` and `invested_value` columns.
    """
    palette = [COLORS[k] for k in GROWTH_PALETTE]
    fig, ax = plt.subplots(figsize=(14, 6))
    for (label, res), color in zip(series.items(), itertools.cycle(palette)):
        ax.plot(res["date"], res["invested_value"], color=color, lw=1.3,
                label=f"{label}: ${res['invested_value'].iloc[-1]:,.0f}")
    if log_scale:
        ax.set_yscale("log")
    ax.yaxis.set_major_formatter(usd_fmt)
    ax.set_title(title)
    ax.set_ylabel("Value (USD)")
    ax.set_xlabel("Date")
    ax.legend(loc="upper left")
    return _finish(fig, output_path)


# =============================================================================
# Chart 4: Fixed-horizon terminal values
# =============================================================================
def plot_horizon_values(
    windows:     pd.DataFrame,
    amount:      float,
    output_path: str,
    horizon:     int = 480,
) -> str:
    """Terminal value of each fixed-horizon window against its start month."""
    fig, ax = plt.subplots(figsize=(14, 6))
    if windows.empty:
        ax.text(0.5, 0.5, "Not enough history", ha="center", va="center",
                transform=ax.transAxes, color=COLORS["reference"])
        return _finish(fig, output_path)

    vals = windows["invested_value"].astype(float)
    ax.plot(windows["start_date"], vals, color=COLORS["accent"], lw=1.2)
    ax.axhline(amount, color=COLORS["reference"], lw=0.8, ls="--", label="Principal")
    ax.axhline(float(np.median(vals)), color=COLORS["gain"], lw=1.0, ls=":",
               label=f"Median ${np.median(vals):,.0f}")
    ax.set_yscale("log")
    ax.yaxis.set_major_formatter(usd_fmt)
    ax.set_title(f"Value of ${amount:,.0f} after {horizon // 12} Years by Start Month")
    ax.set_xlabel("Start month")
    ax.set_ylabel("Terminal value (USD)")
    ax.legend(loc="upper left")
    return _finish(fig, output_path)


# =============================================================================
# Chart 5: Buy the dip
# =============================================================================
def plot_dip_vs_immediate(
    comparison:  pd.DataFrame,
    output_path: str,
    recessions:  Optional[Sequence[RecessionInterval]] = None,
    present      = None,
) -> str:
    """Advantage of waiting for the next recession end, per start month."""
    fig, ax = plt.subplots(figsize=(14, 6))
    if comparison.empty:
        ax.text(0.5, 0.5, "No comparable windows", ha="center", va="center",
                transform=ax.transAxes, color=COLORS["reference"])
        return _finish(fig, output_path)

    adv = comparison["dip_advantage"].astype(float) * 100
    dates = comparison["start_date"]
    ax.fill_between(dates, adv, 0, where=adv >= 0, color=COLORS["gain"], alpha=0.5,
                    label="Dip better")
    ax.fill_between(dates, adv, 0, where=adv < 0, color=COLORS["loss"], alpha=0.5,
                    label="Immediate better")
    ax.axhline(0, color=COLORS["reference"], lw=0.8)
    if recessions is not None and present is not None:
        _shade_recessions(ax, recessions, present, dates.iloc[0], dates.iloc[-1])
    ax.yaxis.set_major_formatter(pct_fmt)
    ax.set_title("Buy the Dip vs Invest Immediately")
    ax.set_xlabel("Start month")
    ax.set_ylabel("Dip advantage (%)")
    ax.legend(loc="upper left")
    return _finish(fig, output_path)
