"""Base class and shared helpers for portfolio calculators."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from portfolio_analytics.models.assets import Asset
    from portfolio_analytics.pipeline.context import AnalyticsContext

FRAME_COLUMNS = [
    "id", "asset_type", "sector", "country", "risk_rating", "status",
    "current_value", "acquisition_value", "irr", "moic", "total_return",
    "acquisition_date",
]


class BaseCalculator(ABC):
    """Interface every portfolio calculator implements.

    Calculators are pure: they read the assets (and optional market data)
    from the context and return a result dict without touching shared state.
    Empty portfolios must produce zero/empty results, never NaN or an error.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Key under which the engine stores this calculator's result."""
        ...

    @abstractmethod
    def calculate(self, ctx: AnalyticsContext) -> dict:
        ...


def assets_frame(assets: Iterable[Asset]) -> pd.DataFrame:
    """Flatten asset records into one row per asset.

    Optional dimensions (sector, country) are stored as None when absent so
    that pandas groupby drops them instead of bucketing under a fake key.
    """
    rows = [
        {
            "id": a.id,
            "asset_type": a.asset_type,
            "sector": a.sector or None,
            "country": a.location.country or None,
            "risk_rating": a.risk_rating,
            "status": a.status,
            "current_value": a.current_value,
            "acquisition_value": a.acquisition_value,
            "irr": a.performance.irr,
            "moic": a.performance.moic,
            "total_return": a.performance.total_return,
            "acquisition_date": a.acquisition_date,
        }
        for a in assets
    ]
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning *default* when the denominator is zero or the result is not finite."""
    if denominator == 0:
        return default
    result = numerator / denominator
    if not np.isfinite(result):
        return default
    return float(result)


def value_weights(frame: pd.DataFrame) -> pd.Series:
    """current_value / total, indexed by asset id (empty if total is zero)."""
    if frame.empty:
        return pd.Series(dtype=float)
    values = frame.set_index("id")["current_value"].astype(float)
    total = float(values.sum())
    if total <= 0:
        return pd.Series(dtype=float)
    return values / total
