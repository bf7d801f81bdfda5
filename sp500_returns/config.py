"""
config.py
---------
Centralised configuration for the S&P 500 returns report.
All parameters are read from environment variables with sensible defaults,
so the same pipeline runs against the live provider or a local CSV export.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_DIR = os.path.dirname(_PACKAGE_DIR)


def _current_month() -> str:
    return pd.Timestamp.today().strftime("%Y-%m-01")


@dataclass
class DataConfig:
    """Price source and recession table locations."""
    source: str              = os.getenv("SP500_SOURCE", "yfinance")   # yfinance | csv
    ticker: str              = os.getenv("SP500_TICKER", "^GSPC")
    start: str               = os.getenv("SP500_START",  "1871-01-01")
    end: Optional[str]       = os.getenv("SP500_END") or None
    csv_path: Optional[str]  = os.getenv("SP500_CSV") or None
    # yfinance closes are nominal; restate them in latest-month dollars
    deflate: bool            = os.getenv("SP500_DEFLATE", "true").lower() == "true"
    cpi_series: str          = os.getenv("CPI_SERIES", "CPIAUCSL")        # FRED id
    recessions_path: str     = os.getenv(
        "RECESSIONS_CSV", os.path.join(_PROJECT_DIR, "data", "recessions.csv")
    )
    # Open-ended recessions are drawn up to this month
    present: str             = field(
        default_factory=lambda: os.getenv("PRESENT_DATE") or _current_month()
    )


@dataclass
class InvestmentConfig:
    """Hypothetical investment parameters."""
    amount: float            = float(os.getenv("INVEST_AMOUNT",  "10000"))
    dividend: float          = float(os.getenv("DIVIDEND_RATE",  "0.02"))   # annual, decimal
    horizon_months: int      = int(os.getenv("HORIZON_MONTHS",   "480"))    # 40 years


@dataclass
class ReportConfig:
    """Master configuration aggregating all sub-configs."""
    data: DataConfig             = field(default_factory=DataConfig)
    investment: InvestmentConfig = field(default_factory=InvestmentConfig)

    output_dir: str = os.getenv("OUTPUT_DIR", os.path.join(_PROJECT_DIR, "outputs"))
    log_level: str  = os.getenv("LOG_LEVEL", "INFO")
    charts: bool    = os.getenv("CHARTS", "true").lower() == "true"


# Singleton instance used throughout the project
CONFIG = ReportConfig()
