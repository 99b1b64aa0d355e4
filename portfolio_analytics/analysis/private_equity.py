"""Private-equity fund metrics over the traditional (company) holdings.

TVPI uses each asset's reported multiple, falling back to
current / acquisition value.  DPI and RVPI are only ever taken from reported
multiples; assets that do not report them are left out and the figure is
None when no asset reports it.  All multiples are weighted by acquisition
value (paid-in capital).
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import numpy as np

from portfolio_analytics.analysis.base import BaseCalculator, safe_ratio
from portfolio_analytics.analysis.performance import weighted_irr, years_held
from portfolio_analytics.utils.logger import setup_logger

if TYPE_CHECKING:
    from portfolio_analytics.models.assets import Asset
    from portfolio_analytics.pipeline.context import AnalyticsContext

logger = setup_logger("private_equity")

EARLY_MAX_YEARS = 3
MID_MAX_YEARS = 7
TOP_QUARTILE_TVPI = 1.5
TOP_QUARTILE_IRR = 0.15


def asset_tvpi(asset: Asset) -> float | None:
    if asset.performance.tvpi is not None:
        return asset.performance.tvpi
    if asset.acquisition_value <= 0:
        return None
    return asset.current_value / asset.acquisition_value


def paid_in_weighted(assets: list[Asset], metric) -> float | None:
    """Acquisition-value weighted multiple over assets that report *metric*."""
    pairs = [(metric(a), a.acquisition_value) for a in assets]
    pairs = [(m, w) for m, w in pairs if m is not None and w > 0]
    if not pairs:
        return None
    values, weights = zip(*pairs)
    return float(np.average(values, weights=weights))


def maturity(vintage_year: int, as_of: date) -> str:
    age = as_of.year - vintage_year
    if age <= EARLY_MAX_YEARS:
        return "early"
    if age <= MID_MAX_YEARS:
        return "mid"
    return "mature"


def _group_stats(assets: list[Asset]) -> dict:
    invested = float(sum(a.acquisition_value for a in assets))
    value = float(sum(a.current_value for a in assets))
    return {
        "investment_count": len(assets),
        "total_invested": invested,
        "current_value": value,
        "tvpi": safe_ratio(value, invested),
        "irr": float(np.mean([a.performance.irr for a in assets])) if assets else 0.0,
    }


def vintage_analysis(assets: list[Asset], as_of: date) -> dict[str, dict]:
    groups: dict[int, list[Asset]] = {}
    for a in assets:
        groups.setdefault(a.acquisition_date.year, []).append(a)
    out = {}
    for year in sorted(groups):
        stats = _group_stats(groups[year])
        stats["maturity"] = maturity(year, as_of)
        out[str(year)] = stats
    return out


def stage_analysis(assets: list[Asset], as_of: date) -> dict[str, dict]:
    """Per company stage; assets without a reported stage are left out."""
    groups: dict[str, list[Asset]] = {}
    for a in assets:
        stage = a.specific_metrics.company_stage
        if stage:
            groups.setdefault(stage, []).append(a)
    out = {}
    for stage, members in groups.items():
        out[stage] = {
            "investment_count": len(members),
            "total_invested": float(sum(a.acquisition_value for a in members)),
            "current_value": float(sum(a.current_value for a in members)),
            "avg_holding_period": float(np.mean([years_held(a.acquisition_date, as_of)
                                                 for a in members])),
            "success_rate": sum(1 for a in members if a.performance.moic > 1) / len(members),
            "avg_moic": float(np.mean([a.performance.moic for a in members])),
        }
    return out


def sector_performance(assets: list[Asset]) -> dict[str, dict]:
    """Per sector; assets without a sector are left out."""
    groups: dict[str, list[Asset]] = {}
    for a in assets:
        if a.sector:
            groups.setdefault(a.sector, []).append(a)
    out = {}
    for sector, members in groups.items():
        stats = _group_stats(members)
        stats["top_quartile"] = stats["tvpi"] > TOP_QUARTILE_TVPI and stats["irr"] > TOP_QUARTILE_IRR
        out[sector] = stats
    return out


def public_market_equivalent(irr: float, benchmark_return: float, years: float) -> float:
    """(1 + irr)^T / (1 + benchmark)^T; above 1.0 means the public index was beaten."""
    if years <= 0 or 1 + benchmark_return <= 0:
        return 1.0
    if 1 + irr <= 0:
        return 0.0
    return safe_ratio((1 + irr) ** years, (1 + benchmark_return) ** years, default=1.0)


class PrivateEquityAnalyzer(BaseCalculator):
    """Fund-style metrics (TVPI/DPI/RVPI, PME, vintage and stage breakdowns)."""

    @property
    def name(self) -> str:
        return "private_equity"

    def calculate(self, ctx: AnalyticsContext) -> dict:
        assets = [a for a in ctx.assets if a.asset_type == "traditional"]
        as_of = ctx.as_of
        benchmark_return = ctx.benchmark.annual_return if ctx.benchmark else 0.0

        invested = float(sum(a.acquisition_value for a in assets))
        value = float(sum(a.current_value for a in assets))
        holding = float(np.mean([years_held(a.acquisition_date, as_of) for a in assets])) \
            if assets else 0.0
        net_irr = weighted_irr(assets)

        tvpi = paid_in_weighted(assets, asset_tvpi)
        dpi = paid_in_weighted(assets, lambda a: a.performance.dpi)
        rvpi = paid_in_weighted(assets, lambda a: a.performance.rvpi)
        if assets and dpi is None:
            logger.debug("No DPI reported for %d traditional assets", len(assets))

        return {
            "investment_count": len(assets),
            "total_invested": invested,
            "current_value": value,
            "tvpi": tvpi if tvpi is not None else 0.0,
            "dpi": dpi,
            "rvpi": rvpi,
            "net_irr": net_irr,
            "avg_holding_period": holding,
            "pme": public_market_equivalent(net_irr, benchmark_return, holding) if assets else 0.0,
            "vintage_analysis": vintage_analysis(assets, as_of),
            "stage_analysis": stage_analysis(assets, as_of),
            "sector_performance": sector_performance(assets),
        }
