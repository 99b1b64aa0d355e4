"""Value-weighted performance: IRR, MOIC, total return and time-weighted return."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

import numpy as np

from portfolio_analytics.analysis.base import BaseCalculator
from portfolio_analytics.utils.logger import setup_logger

if TYPE_CHECKING:
    from portfolio_analytics.models.assets import Asset
    from portfolio_analytics.pipeline.context import AnalyticsContext

logger = setup_logger("performance")

_DAYS_PER_YEAR = 365.0


def weighted_average(values: Sequence[float], weights: Sequence[float]) -> float:
    """sum(v * w) / sum(w); 0.0 when the weights sum to zero.

    The result is clipped to [min(values), max(values)] so float rounding
    never pushes a weighted mean outside the range of its inputs.
    """
    v = np.asarray(values, dtype=float)
    w = np.asarray(weights, dtype=float)
    if v.size == 0:
        return 0.0
    total = float(w.sum())
    if total <= 0:
        return 0.0
    mean = float(np.dot(v, w) / total)
    return float(np.clip(mean, v.min(), v.max()))


def value_weighted(assets: Iterable[Asset], metric: Callable[[Asset], float]) -> float:
    """Weight any per-asset metric by current value."""
    assets = list(assets)
    return weighted_average([metric(a) for a in assets], [a.current_value for a in assets])


def weighted_irr(assets: Iterable[Asset]) -> float:
    return value_weighted(assets, lambda a: a.performance.irr)


def weighted_moic(assets: Iterable[Asset]) -> float:
    return value_weighted(assets, lambda a: a.performance.moic)


def years_held(acquired: date, as_of: date) -> float:
    return max((as_of - acquired).days, 0) / _DAYS_PER_YEAR


def annualized_return(asset: Asset, as_of: date) -> float | None:
    """Compound annual return implied by acquisition vs current value.

    Holdings younger than a year use the simple return.  Returns None when
    the acquisition value is zero.
    """
    if asset.acquisition_value <= 0:
        return None
    ratio = asset.current_value / asset.acquisition_value
    years = years_held(asset.acquisition_date, as_of)
    if years < 1.0:
        return ratio - 1.0
    return ratio ** (1.0 / years) - 1.0


def time_weighted_return(assets: Iterable[Asset], as_of: date) -> float:
    """Value-weighted annualised holding-period return across assets."""
    values, weights = [], []
    for asset in assets:
        r = annualized_return(asset, as_of)
        if r is None:
            continue
        values.append(r)
        weights.append(asset.current_value)
    return weighted_average(values, weights)


def benchmark_comparison(portfolio_return: float, benchmark_return: float) -> dict:
    return {
        "portfolio": portfolio_return,
        "benchmark": benchmark_return,
        "outperformance": portfolio_return - benchmark_return,
    }


class PerformanceCalculator(BaseCalculator):
    """Portfolio totals and value-weighted return metrics."""

    @property
    def name(self) -> str:
        return "performance"

    def calculate(self, ctx: AnalyticsContext) -> dict:
        assets = ctx.assets
        total_value = float(sum(a.current_value for a in assets))
        total_invested = float(sum(a.acquisition_value for a in assets))
        irr = weighted_irr(assets)
        benchmark_return = ctx.benchmark.annual_return if ctx.benchmark else 0.0

        return {
            "total_portfolio_value": total_value,
            "total_invested": total_invested,
            "unrealized_gains": total_value - total_invested,
            "weighted_irr": irr,
            "weighted_moic": weighted_moic(assets),
            "weighted_total_return": value_weighted(assets, lambda a: a.performance.total_return),
            "time_weighted_return": time_weighted_return(assets, ctx.as_of),
            "benchmark_comparison": benchmark_comparison(irr, benchmark_return),
        }
