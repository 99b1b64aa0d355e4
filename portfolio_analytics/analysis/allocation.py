"""Allocation aggregation: current value summed per asset type, sector, country and risk tier."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

import pandas as pd

from portfolio_analytics.analysis.base import BaseCalculator, assets_frame, safe_ratio
from portfolio_analytics.utils.logger import setup_logger

if TYPE_CHECKING:
    from portfolio_analytics.models.assets import Asset
    from portfolio_analytics.pipeline.context import AnalyticsContext

logger = setup_logger("allocation")

# result key -> frame column
DIMENSIONS: dict[str, str] = {
    "asset_allocation": "asset_type",
    "sector_allocation": "sector",
    "geographic_allocation": "country",
    "risk_distribution": "risk_rating",
}


def allocation_from_frame(frame: pd.DataFrame, column: str) -> dict[str, float]:
    """Sum current_value per distinct value of *column*.

    Rows whose dimension is missing are left out rather than bucketed.
    """
    if frame.empty:
        return {}
    grouped = frame.groupby(column, sort=False, dropna=True)["current_value"].sum()
    return {str(key): float(value) for key, value in grouped.items()}


def allocate(assets: Iterable[Asset], column: str) -> dict[str, float]:
    """Allocation of an asset list along one dimension column."""
    return allocation_from_frame(assets_frame(assets), column)


def to_percentages(allocation: dict[str, float], total: float | None = None) -> dict[str, float]:
    """Express an allocation as fractions of *total* (defaults to its own sum)."""
    if total is None:
        total = sum(allocation.values())
    if total <= 0:
        return {}
    return {key: safe_ratio(value, total) for key, value in allocation.items()}


def allocation_drift(allocation: dict[str, float], targets: dict[str, float]) -> dict[str, float]:
    """Actual minus target weight per key, over the union of both key sets."""
    actual = to_percentages(allocation)
    if not actual and not targets:
        return {}
    keys = list(dict.fromkeys([*targets, *actual]))
    return {k: actual.get(k, 0.0) - float(targets.get(k, 0.0)) for k in keys}


class AllocationAggregator(BaseCalculator):
    """Group the portfolio's current value along every allocation dimension."""

    @property
    def name(self) -> str:
        return "allocation"

    def calculate(self, ctx: AnalyticsContext) -> dict:
        frame = ctx.frame
        total = float(frame["current_value"].sum()) if not frame.empty else 0.0
        result: dict = {}
        percentages: dict = {}
        for key, column in DIMENSIONS.items():
            allocation = allocation_from_frame(frame, column)
            result[key] = allocation
            percentages[key] = to_percentages(allocation, total)

        if not frame.empty and total <= 0:
            logger.warning("Portfolio %s has zero total value; percentages left empty",
                           ctx.portfolio_id)
        result["percentages"] = percentages
        result["drift"] = allocation_drift(result["asset_allocation"], ctx.allocation_targets) \
            if ctx.allocation_targets else {}
        return result
