"""AnalyticsContext: explicit state passed to every calculator for one run."""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from functools import cached_property
from typing import TYPE_CHECKING, Any

import pandas as pd

from portfolio_analytics.analysis.base import assets_frame

if TYPE_CHECKING:
    from portfolio_analytics.analysis.attribution import Benchmark
    from portfolio_analytics.models.assets import Asset


@dataclass
class AnalyticsContext:
    """Inputs for one analytics pass plus what the pass accumulates."""

    # Input
    portfolio_id: str
    assets: list[Asset]
    benchmark: Benchmark | None = None
    # Periodic returns, one column per asset id. None -> placeholder risk model.
    returns: pd.DataFrame | None = None
    benchmark_returns: pd.Series | None = None
    as_of: date = field(default_factory=date.today)
    # Target weight per asset type; None -> no drift reported
    allocation_targets: dict[str, float] | None = None

    # Calculator results: calculator name -> result dict
    results: dict[str, dict[str, Any]] = field(default_factory=dict)
    timings: dict[str, float] = field(default_factory=dict)

    @cached_property
    def frame(self) -> pd.DataFrame:
        return assets_frame(self.assets)

    @property
    def total_value(self) -> float:
        return float(sum(a.current_value for a in self.assets))

    def set_result(self, name: str, result: dict) -> None:
        self.results[name] = result

    def get_result(self, name: str) -> dict | None:
        return self.results.get(name)
