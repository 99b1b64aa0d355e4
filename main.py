#!/usr/bin/env python3
"""Portfolio Analytics: aggregate analytics for private-market portfolios.

Usage:
    python main.py analyze portfolio.json                         # full JSON report
    python main.py analyze portfolio.json --returns returns.csv   # historical risk model
    python main.py analyze portfolio.json --as-of 2024-12-31
    python main.py summary portfolio.json                         # key figures
    python main.py asset portfolio.json asset-1                   # one asset in detail
    python main.py filter portfolio.json --type real_estate --sort-by performance.irr

The returns CSV has a date index column and one column per asset id; an
optional ``benchmark`` column is used for beta and tracking error.
"""

import argparse
import json
import sys
from datetime import date
from pathlib import Path

import pandas as pd

from portfolio_analytics.analysis.asset_detail import asset_financials, asset_risk_assessment
from portfolio_analytics.errors import AnalyticsError
from portfolio_analytics.models.assets import RISK_RATINGS, ASSET_TYPES
from portfolio_analytics.models.portfolio import (
    AssetFilters,
    Portfolio,
    PortfolioService,
    filter_assets,
    sort_assets,
)
from portfolio_analytics.reports.formatting import fmt_num, fmt_pct, render_summary
from portfolio_analytics.utils.logger import setup_logger

logger = setup_logger("main")

BENCHMARK_COLUMN = "benchmark"


def _load_portfolio(path: str) -> Portfolio:
    with open(path) as f:
        return Portfolio.from_dict(json.load(f))


def _load_returns(path: str | None) -> tuple[pd.DataFrame | None, pd.Series | None]:
    if not path:
        return None, None
    df = pd.read_csv(path, index_col=0, parse_dates=True)
    df.columns = [str(c) for c in df.columns]
    bench = None
    if BENCHMARK_COLUMN in df.columns:
        bench = df.pop(BENCHMARK_COLUMN)
    return df, bench


def _service_for(portfolio: Portfolio) -> PortfolioService:
    service = PortfolioService()
    service.add_portfolio(portfolio)
    return service


def cmd_analyze(args):
    """Full analytics report as JSON."""
    portfolio = _load_portfolio(args.portfolio)
    returns, bench = _load_returns(args.returns)
    as_of = date.fromisoformat(args.as_of) if args.as_of else None
    report = _service_for(portfolio).analyze(portfolio.id, returns=returns,
                                             benchmark_returns=bench, as_of=as_of)
    print(json.dumps(report.to_dict(), indent=2, default=str))


def cmd_summary(args):
    """Human-readable key figures."""
    portfolio = _load_portfolio(args.portfolio)
    returns, bench = _load_returns(args.returns)
    as_of = date.fromisoformat(args.as_of) if args.as_of else None
    report = _service_for(portfolio).analyze(portfolio.id, returns=returns,
                                             benchmark_returns=bench, as_of=as_of)
    print(render_summary(report))


def cmd_asset(args):
    """Per-asset financials and risk assessment."""
    portfolio = _load_portfolio(args.portfolio)
    asset = portfolio.get_asset(args.asset_id)
    out = {
        "financials": asset_financials(asset),
        "risk_assessment": asset_risk_assessment(asset),
    }
    print(json.dumps(out, indent=2, default=str))


def cmd_filter(args):
    """List assets matching the filters."""
    portfolio = _load_portfolio(args.portfolio)
    filters = AssetFilters(
        asset_types=args.type or [],
        statuses=args.status or [],
        risk_ratings=args.risk or [],
        sectors=args.sector or [],
        countries=args.country or [],
        search=args.search,
    )
    assets = sort_assets(filter_assets(portfolio.assets, filters), args.sort_by, args.direction)
    print(f"\n--- {len(assets)} of {len(portfolio.assets)} assets ---")
    for a in assets:
        print(f"  {a.id:14s} {a.name[:30]:30s} {a.asset_type:15s} {a.risk_rating:8s} "
              f"{fmt_num(a.current_value):>10s} IRR {fmt_pct(a.performance.irr):>7s}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Portfolio Analytics: private-market portfolio aggregation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", help="Commands")

    # analyze
    p = sub.add_parser("analyze", help="Full analytics report (JSON)")
    p.add_argument("portfolio", help="Portfolio JSON file")
    p.add_argument("--returns", default="", help="Periodic returns CSV (columns = asset ids)")
    p.add_argument("--as-of", default="", help="Valuation date, YYYY-MM-DD (default: today)")
    p.set_defaults(func=cmd_analyze)

    # summary
    p = sub.add_parser("summary", help="Key figures")
    p.add_argument("portfolio")
    p.add_argument("--returns", default="")
    p.add_argument("--as-of", default="")
    p.set_defaults(func=cmd_summary)

    # asset
    p = sub.add_parser("asset", help="Single asset financials and risk")
    p.add_argument("portfolio")
    p.add_argument("asset_id")
    p.set_defaults(func=cmd_asset)

    # filter
    p = sub.add_parser("filter", help="Filter and sort assets")
    p.add_argument("portfolio")
    p.add_argument("--type", action="append", choices=list(ASSET_TYPES))
    p.add_argument("--status", action="append")
    p.add_argument("--risk", action="append", choices=list(RISK_RATINGS))
    p.add_argument("--sector", action="append")
    p.add_argument("--country", action="append")
    p.add_argument("--search", default="")
    p.add_argument("--sort-by", default="current_value", help="Dotted field path")
    p.add_argument("--direction", default="desc", choices=["asc", "desc"])
    p.set_defaults(func=cmd_filter)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0
    if not Path(args.portfolio).exists():
        logger.error("Portfolio file not found: %s", args.portfolio)
        return 1
    try:
        args.func(args)
    except (AnalyticsError, json.JSONDecodeError, ValueError, OSError, pd.errors.ParserError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
