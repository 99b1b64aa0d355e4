"""Brinson performance attribution by sector, geography and asset type.

For each group g along a dimension:

    allocation  = (wp - wb) * rb
    selection   = wb * (rp - rb)
    interaction = (wp - wb) * (rp - rb)
    total       = allocation + selection + interaction = wp*rp - wb*rb

Portfolio weights wp and returns rp (value-weighted IRR) come from the assets.
Benchmark weights wb and returns rb come from a ``BenchmarkTable``.  Groups held
by only one side are included with the other side's weight at zero, and the
benchmark weights are normalised over that union, so the group totals always
sum to portfolio_return - benchmark_return.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pandas as pd

from portfolio_analytics.analysis.base import BaseCalculator, safe_ratio
from portfolio_analytics.config import SETTINGS
from portfolio_analytics.utils.logger import setup_logger

if TYPE_CHECKING:
    from portfolio_analytics.pipeline.context import AnalyticsContext

logger = setup_logger("attribution")

# dimension name -> frame column
ATTRIBUTION_DIMENSIONS: dict[str, str] = {
    "sector": "sector",
    "geography": "country",
    "asset_type": "asset_type",
}

_DEFAULT_ANNUAL_RETURN = 0.12


# ---------------------------------------------------------------------------
# Benchmark definition
# ---------------------------------------------------------------------------

@dataclass
class BenchmarkTable:
    """Static benchmark weights and returns for one grouping dimension."""

    weights: dict[str, float] = field(default_factory=dict)
    returns: dict[str, float] = field(default_factory=dict)
    default_weight: float = 0.0
    default_return: float = 0.0

    def weight(self, group: str) -> float:
        return float(self.weights.get(group, self.default_weight))

    def group_return(self, group: str) -> float:
        return float(self.returns.get(group, self.default_return))

    def to_dict(self) -> dict:
        return {
            "weights": dict(self.weights),
            "returns": dict(self.returns),
            "default_weight": self.default_weight,
            "default_return": self.default_return,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> BenchmarkTable:
        data = data or {}
        return cls(
            weights={str(k): float(v) for k, v in (data.get("weights") or {}).items()},
            returns={str(k): float(v) for k, v in (data.get("returns") or {}).items()},
            default_weight=float(data.get("default_weight", 0.0)),
            default_return=float(data.get("default_return", 0.0)),
        )


@dataclass
class Benchmark:
    """Benchmark used for attribution and the headline comparison."""

    annual_return: float = _DEFAULT_ANNUAL_RETURN
    sector: BenchmarkTable = field(default_factory=BenchmarkTable)
    geography: BenchmarkTable = field(default_factory=BenchmarkTable)
    asset_type: BenchmarkTable = field(default_factory=BenchmarkTable)

    def table(self, dimension: str) -> BenchmarkTable:
        return getattr(self, dimension)

    def to_dict(self) -> dict:
        return {
            "annual_return": self.annual_return,
            "sector": self.sector.to_dict(),
            "geography": self.geography.to_dict(),
            "asset_type": self.asset_type.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> Benchmark:
        data = data or {}
        return cls(
            annual_return=float(data.get("annual_return", _DEFAULT_ANNUAL_RETURN)),
            sector=BenchmarkTable.from_dict(data.get("sector")),
            geography=BenchmarkTable.from_dict(data.get("geography")),
            asset_type=BenchmarkTable.from_dict(data.get("asset_type")),
        )

    @classmethod
    def from_settings(cls, settings: dict | None = None) -> Benchmark:
        """Static benchmark from the ``benchmark`` section of settings.yaml."""
        settings = SETTINGS if settings is None else settings
        return cls.from_dict(settings.get("benchmark", {}))


# ---------------------------------------------------------------------------
# Attribution
# ---------------------------------------------------------------------------

def _empty_attribution() -> dict:
    return {
        "effects": {},
        "portfolio_return": 0.0,
        "benchmark_return": 0.0,
        "active_return": 0.0,
        "coverage": 0.0,
    }


def brinson_effects(wp: float, rp: float, wb: float, rb: float) -> dict[str, float]:
    allocation = (wp - wb) * rb
    selection = wb * (rp - rb)
    interaction = (wp - wb) * (rp - rb)
    return {
        "allocation": allocation,
        "selection": selection,
        "interaction": interaction,
        "total": allocation + selection + interaction,
    }


def attribute(frame: pd.DataFrame, column: str, table: BenchmarkTable) -> dict:
    """Brinson attribution of *frame* grouped by *column* against *table*.

    Assets whose dimension value is missing are excluded; ``coverage`` is
    the share of total current value that was attributed.
    """
    if frame.empty:
        return _empty_attribution()

    total_value = float(frame["current_value"].sum())
    covered = frame.dropna(subset=[column])
    covered_value = float(covered["current_value"].sum())
    if covered_value <= 0:
        return _empty_attribution()

    covered = covered.assign(_weighted=covered["irr"] * covered["current_value"])
    grouped = covered.groupby(column, sort=False).agg(
        value=("current_value", "sum"), weighted=("_weighted", "sum"),
    )

    held = [str(g) for g in grouped.index]
    groups = list(dict.fromkeys([*held, *table.weights]))

    raw_wb = {g: max(table.weight(g), 0.0) for g in groups}
    wb_sum = sum(raw_wb.values())
    if wb_sum <= 0:
        logger.warning("Benchmark weights for %s sum to zero; using portfolio weights", column)
        raw_wb = {g: float(grouped.loc[g, "value"]) if g in held else 0.0 for g in groups}
        wb_sum = covered_value
    elif abs(wb_sum - 1.0) > 1e-9:
        logger.warning("Normalising %s benchmark weights (sum %.4f)", column, wb_sum)
    wb = {g: w / wb_sum for g, w in raw_wb.items()}

    effects: dict[str, dict[str, float]] = {}
    portfolio_return = 0.0
    benchmark_return = 0.0
    for g in groups:
        rb = table.group_return(g)
        if g in held:
            value = float(grouped.loc[g, "value"])
            wp = value / covered_value
            rp = safe_ratio(float(grouped.loc[g, "weighted"]), value, default=rb)
        else:
            wp, rp = 0.0, rb
        effects[g] = brinson_effects(wp, rp, wb[g], rb)
        portfolio_return += wp * rp
        benchmark_return += wb[g] * rb

    return {
        "effects": effects,
        "portfolio_return": portfolio_return,
        "benchmark_return": benchmark_return,
        "active_return": portfolio_return - benchmark_return,
        "coverage": safe_ratio(covered_value, total_value),
    }


class AttributionCalculator(BaseCalculator):
    """Sector, geographic and asset-type attribution against the benchmark."""

    @property
    def name(self) -> str:
        return "attribution"

    def calculate(self, ctx: AnalyticsContext) -> dict:
        benchmark = ctx.benchmark or Benchmark.from_settings()
        return {
            f"{dimension}_attribution": attribute(ctx.frame, column, benchmark.table(dimension))
            for dimension, column in ATTRIBUTION_DIMENSIONS.items()
        }
