"""
S&P 500 Historical Returns
==========================

Long-run analysis of monthly S&P 500 prices: month-over-month changes,
hypothetical investment growth over fixed holding periods, dividend
compounding, and a "buy the dip" timing comparison against NBER
recessions.

Modules:
    data_loader    - Monthly price retrieval and the immutable PriceTable
    changes        - Month-over-month change factors and percent changes
    recessions     - Recession interval loading and lookups
    returns        - Simple, fixed-horizon, compounding and buy-the-dip models
    report         - Headline figures and narrative lines
    visualization  - Report charts
    config         - Environment-driven configuration
    exceptions     - Error hierarchy
    utils          - Logging and formatting helpers
"""

__version__ = "1.0.0"
