"""
main.py
-------
Entry point for the S&P 500 long-run returns report.

Pipeline:
    1. Load monthly prices (yfinance or a local CSV export)
    2. Load recession start/end months
    3. Compute month-over-month changes and headline investment figures
    4. Render the report charts

Usage
-----
    python main.py                                   # yfinance ^GSPC in CPI dollars (FRED_API_KEY)
    python main.py --nominal                         # yfinance ^GSPC, nominal closes
    python main.py --source csv --csv sp500_real.csv # inflation-adjusted export
    python main.py --dividend 0.04 --horizon 360     # 30-year windows, 4% yield
    python main.py --no-charts

Environment variables
---------------------
See sp500_returns/config.py for the full list of supported env vars.
"""

import os
import sys
import argparse

# Ensure the package is importable when running from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sp500_returns.config      import ReportConfig
from sp500_returns.exceptions  import ReturnsError
from sp500_returns.utils       import get_logger


def _args(cfg: ReportConfig, argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="S&P 500 Long-Run Returns Report")
    p.add_argument("--source",     default=cfg.data.source, choices=["yfinance", "csv"])
    p.add_argument("--csv",        default=cfg.data.csv_path)
    p.add_argument("--nominal",    action="store_true",
                   help="skip CPI deflation of yfinance closes")
    p.add_argument("--ticker",     default=cfg.data.ticker)
    p.add_argument("--recessions", default=cfg.data.recessions_path)
    p.add_argument("--present",    default=cfg.data.present)
    p.add_argument("--amount",     type=float, default=cfg.investment.amount)
    p.add_argument("--dividend",   type=float, default=cfg.investment.dividend)
    p.add_argument("--horizon",    type=int,   default=cfg.investment.horizon_months)
    p.add_argument("--output-dir", default=cfg.output_dir)
    p.add_argument("--no-charts",  action="store_true")
    return p.parse_args(argv)


def apply_args(cfg: ReportConfig, args: argparse.Namespace) -> ReportConfig:
    """Overlay command-line values on the environment configuration."""
    cfg.data.source          = args.source
    cfg.data.csv_path        = args.csv
    cfg.data.deflate         = cfg.data.deflate and not args.nominal
    cfg.data.ticker          = args.ticker
    cfg.data.recessions_path = args.recessions
    cfg.data.present         = args.present
    cfg.investment.amount         = args.amount
    cfg.investment.dividend       = args.dividend
    cfg.investment.horizon_months = args.horizon
    cfg.output_dir = args.output_dir
    cfg.charts     = cfg.charts and not args.no_charts
    return cfg


def render_charts(cfg: ReportConfig, table, recessions, log) -> None:
    from sp500_returns.returns import (compound_return, dip_vs_immediate,
                                       horizon_end_values, simple_return)
    from sp500_returns.visualization import (
        plot_dip_vs_immediate, plot_horizon_values, plot_investment_growth,
        plot_monthly_changes, plot_price_history,
    )

    inv = cfg.investment
    out = os.path.join(cfg.output_dir, "charts")
    first, last = table.first_date, table.last_date

    paths = [
        plot_price_history(table, recessions, cfg.data.present,
                           os.path.join(out, "01_price_history.png")),
        plot_monthly_changes(table, os.path.join(out, "02_monthly_changes.png")),
        plot_investment_growth(
            {
                "Price only": simple_return(table, first, last, inv.amount),
                f"Dividends {inv.dividend:.1%}":
                    compound_return(table, first, last, inv.amount, inv.dividend),
            },
            os.path.join(out, "03_investment_growth.png"),
            title=f"${inv.amount:,.0f} Invested in {first:%b %Y}",
        ),
        plot_horizon_values(
            horizon_end_values(table, inv.amount, inv.dividend, inv.horizon_months),
            inv.amount, os.path.join(out, "04_horizon_values.png"),
            horizon=inv.horizon_months,
        ),
        plot_dip_vs_immediate(
            dip_vs_immediate(table, recessions, inv.amount, inv.dividend,
                             inv.horizon_months),
            os.path.join(out, "05_buy_the_dip.png"),
            recessions=recessions, present=cfg.data.present,
        ),
    ]
    for path in paths:
        log.info("Saved chart: %s", path)


def main(argv=None) -> int:
    cfg = ReportConfig()
    cfg = apply_args(cfg, _args(cfg, argv))
    log = get_logger("main", log_dir=os.path.join(cfg.output_dir, "logs"),
                     level=cfg.log_level)
    get_logger("sp500_returns", log_dir=os.path.join(cfg.output_dir, "logs"),
               level=cfg.log_level)

    from sp500_returns.data_loader import load_price_table
    from sp500_returns.recessions  import load_recessions
    from sp500_returns.report      import format_headlines, headline_figures

    try:
        table = load_price_table(cfg.data)
        recessions = load_recessions(cfg.data.recessions_path)
        inv = cfg.investment
        figures = headline_figures(table, recessions, inv.amount,
                                   inv.dividend, inv.horizon_months,
                                   present=cfg.data.present)
        for line in format_headlines(figures):
            log.info(line)
        if cfg.charts:
            render_charts(cfg, table, recessions, log)
    except ReturnsError as e:
        log.error("%s: %s", type(e).__name__, e)
        return 1

    log.info("Report complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
