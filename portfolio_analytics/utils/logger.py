"""Logging configuration for portfolio analytics."""

import logging
import sys


def setup_logger(name: str = "portfolio_analytics", level: str | None = None) -> logging.Logger:
    """Create and configure a logger.

    Loggers are namespaced under ``portfolio_analytics.`` so one level
    setting governs the whole package.
    """
    if level is None:
        from portfolio_analytics.config import log_level
        level = log_level()
    qualified = name if name.startswith("portfolio_analytics") else f"portfolio_analytics.{name}"
    logger = logging.getLogger(qualified)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter(
            "%(asctime)s | %(name)-20s | %(levelname)-7s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
