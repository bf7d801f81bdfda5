"""
S&P 500 Long-Run Returns – Package Setup

Monthly S&P 500 price history, month-over-month changes, hypothetical
investment growth over fixed holding periods, dividend compounding and a
buy-the-dip comparison against NBER recession dates.
"""
from setuptools import setup, find_packages

setup(
    name             = "sp500-long-run-returns",
    version          = "1.0.0",
    description      = "Historical S&P 500 investment return analysis",
    packages         = find_packages(exclude=["tests", "tests.*"]),
    py_modules       = ["main"],
    python_requires  = ">=3.10",
    install_requires = [
        "numpy>=1.24.0",
        "pandas>=2.0.0,<3",
        "matplotlib>=3.7.0",
        "yfinance>=0.2.40",
        "fredapi>=0.5.0",
    ],
    extras_require   = {
        "test": ["pytest>=7.4.0"],
    },
    entry_points     = {
        "console_scripts": ["sp500-report = main:main"]
    },
    keywords         = ["s&p 500", "historical-returns", "dividends",
                        "recessions", "buy-the-dip"],
)
