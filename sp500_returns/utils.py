"""
utils.py
--------
Report logging, call timing and money/percent formatting.
"""

import functools
import logging
import os
import sys
import time
from datetime import date

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def _log_path(log_dir: str) -> str:
    return os.path.join(log_dir, f"sp500_report_{date.today():%Y%m%d}.log")


def get_logger(name: str, log_dir: str = "outputs/logs",
               level: str = "INFO") -> logging.Logger:
    """
    Logger that echoes to stdout and appends to the day's report log.

    A logger that already has handlers is returned as is, so repeated
    calls (one per pipeline run in the same process) never duplicate
    output. Child loggers such as ``sp500_returns.data_loader`` reach
    these handlers through propagation.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    os.makedirs(log_dir, exist_ok=True)
    logger.setLevel(logging.getLevelName(level.upper())
                    if level.upper() in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
                    else logging.INFO)
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in (logging.StreamHandler(sys.stdout),
                    logging.FileHandler(_log_path(log_dir), encoding="utf-8")):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def timeit(func):
    """Log the wall-clock duration of each call at DEBUG level."""
    log = logging.getLogger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        started = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            log.debug("%s took %.1f ms", func.__name__,
                      (time.perf_counter() - started) * 1000.0)
    return wrapper


def format_currency(value: float, decimals: int = 2) -> str:
    """USD string with thousands separators; the sign precedes the $."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.{decimals}f}"


def format_pct(value: float, decimals: int = 2) -> str:
    """Decimal fraction as a percentage string (0.05 -> '5.00%')."""
    return f"{value * 100:.{decimals}f}%"
