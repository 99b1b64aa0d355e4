"""Portfolio record, asset list queries and the portfolio service.

``PortfolioService`` is the explicit state object callers hold: it owns the
portfolios, applies create/update/delete to their asset lists, and runs the
analytics engine against them.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable

import pandas as pd

from portfolio_analytics.errors import (
    AssetNotFoundError,
    AssetValidationError,
    PortfolioNotFoundError,
)
from portfolio_analytics.models.assets import ASSET_TYPES, Asset, asset_from_dict, camelize_keys
from portfolio_analytics.models.results import AnalyticsReport
from portfolio_analytics.pipeline.context import AnalyticsContext
from portfolio_analytics.pipeline.engine import AnalyticsEngine
from portfolio_analytics.utils.logger import setup_logger

logger = setup_logger("portfolio")

# Default strategic mix by asset type
DEFAULT_ALLOCATION_TARGETS = {"traditional": 0.60, "real_estate": 0.25, "infrastructure": 0.15}


@dataclass
class Portfolio:
    id: str
    name: str = ""
    assets: list[Asset] = field(default_factory=list)
    allocation_targets: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_ALLOCATION_TARGETS))
    description: str = ""

    # Totals are always derived from the asset list

    @property
    def total_value(self) -> float:
        return float(sum(a.current_value for a in self.assets))

    @property
    def total_invested(self) -> float:
        return float(sum(a.acquisition_value for a in self.assets))

    @property
    def unrealized_value(self) -> float:
        return self.total_value - self.total_invested

    def get_asset(self, asset_id: str) -> Asset:
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        raise AssetNotFoundError(self.id, asset_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "allocationTargets": dict(self.allocation_targets),
            "totalValue": self.total_value,
            "totalInvested": self.total_invested,
            "unrealizedValue": self.unrealized_value,
            "assets": [a.to_dict() for a in self.assets],
        }

    @classmethod
    def from_dict(cls, data: dict | list) -> Portfolio:
        """Accepts ``{id, name, assets, ...}`` or a bare list of asset records."""
        if isinstance(data, list):
            data = {"id": "default", "name": "Portfolio", "assets": data}
        assets = [asset_from_dict(item) for item in data.get("assets") or []]
        seen: set[str] = set()
        for asset in assets:
            if asset.id in seen:
                raise AssetValidationError(f"Duplicate asset id {asset.id!r}")
            seen.add(asset.id)
        targets = data.get("allocationTargets") or data.get("allocation_targets")
        return cls(
            id=str(data.get("id") or "default"),
            name=data.get("name") or "",
            assets=assets,
            allocation_targets=dict(targets) if targets else dict(DEFAULT_ALLOCATION_TARGETS),
            description=data.get("description") or "",
        )


# ---------------------------------------------------------------------------
# Filtering & sorting
# ---------------------------------------------------------------------------

@dataclass
class AssetFilters:
    """Empty lists mean "no constraint" on that field."""

    asset_types: list[str] = field(default_factory=list)
    statuses: list[str] = field(default_factory=list)
    risk_ratings: list[str] = field(default_factory=list)
    sectors: list[str] = field(default_factory=list)
    countries: list[str] = field(default_factory=list)
    search: str = ""


def _matches_search(asset: Asset, term: str) -> bool:
    term = term.lower()
    haystack = [asset.name, asset.description, *asset.tags]
    return any(term in text.lower() for text in haystack if text)


def filter_assets(assets: Iterable[Asset], filters: AssetFilters) -> list[Asset]:
    out = []
    for a in assets:
        if filters.asset_types and a.asset_type not in filters.asset_types:
            continue
        if filters.statuses and a.status not in filters.statuses:
            continue
        if filters.risk_ratings and a.risk_rating not in filters.risk_ratings:
            continue
        if filters.sectors and a.sector not in filters.sectors:
            continue
        if filters.countries and a.location.country not in filters.countries:
            continue
        if filters.search and not _matches_search(a, filters.search):
            continue
        out.append(a)
    return out


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def resolve_path(obj: Any, path: str) -> Any:
    """Follow a dotted attribute path (``performance.irr``); None if any hop is missing."""
    for part in path.split("."):
        if obj is None:
            return None
        if isinstance(obj, dict):
            obj = obj.get(part)
        else:
            obj = getattr(obj, _snake(part), None)
    return obj


def sort_assets(assets: Iterable[Asset], sort_by: str = "current_value",
                direction: str = "desc") -> list[Asset]:
    """Stable sort on a dotted field path; assets missing the field go last either way."""
    if direction not in ("asc", "desc"):
        raise ValueError(f"direction must be 'asc' or 'desc', got {direction!r}")
    assets = list(assets)
    present = [a for a in assets if resolve_path(a, sort_by) is not None]
    missing = [a for a in assets if resolve_path(a, sort_by) is None]
    present.sort(key=lambda a: resolve_path(a, sort_by), reverse=direction == "desc")
    return present + missing


def assets_by_type(assets: Iterable[Asset], asset_type: str) -> list[Asset]:
    if asset_type not in ASSET_TYPES:
        raise AssetValidationError(f"Unknown asset type: {asset_type!r}")
    return [a for a in assets if a.asset_type == asset_type]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

def deep_merge(base: dict, updates: dict) -> dict:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class PortfolioService:
    """Holds portfolios and applies asset lifecycle operations to them."""

    def __init__(self, engine: AnalyticsEngine | None = None):
        self.engine = engine if engine is not None else AnalyticsEngine()
        self._portfolios: dict[str, Portfolio] = {}

    @property
    def cache(self):
        return self.engine.cache

    def add_portfolio(self, portfolio: Portfolio) -> Portfolio:
        self._portfolios[portfolio.id] = portfolio
        self.cache.invalidate(portfolio.id)
        return portfolio

    def get_portfolio(self, portfolio_id: str) -> Portfolio:
        try:
            return self._portfolios[portfolio_id]
        except KeyError:
            raise PortfolioNotFoundError(portfolio_id) from None

    def portfolio_ids(self) -> list[str]:
        return list(self._portfolios)

    def create_asset(self, portfolio_id: str, data: dict) -> Asset:
        portfolio = self.get_portfolio(portfolio_id)
        record = camelize_keys(dict(data))
        record.setdefault("id", str(uuid.uuid4()))
        record["lastUpdated"] = datetime.now().isoformat()
        asset = asset_from_dict(record)
        if any(a.id == asset.id for a in portfolio.assets):
            raise AssetValidationError(f"Asset {asset.id!r} already exists in {portfolio_id!r}")
        portfolio.assets.append(asset)
        logger.info("Created asset %s in portfolio %s", asset.id, portfolio_id)
        return asset

    def update_asset(self, portfolio_id: str, asset_id: str, updates: dict) -> Asset:
        """Merge *updates* (camelCase or snake_case, nested blocks merged) into an asset."""
        portfolio = self.get_portfolio(portfolio_id)
        current = portfolio.get_asset(asset_id)
        merged = deep_merge(current.to_dict(), camelize_keys(dict(updates)))
        merged["id"] = asset_id
        merged["lastUpdated"] = datetime.now().isoformat()
        updated = asset_from_dict(merged)
        index = portfolio.assets.index(current)
        portfolio.assets[index] = updated
        logger.info("Updated asset %s in portfolio %s", asset_id, portfolio_id)
        return updated

    def delete_asset(self, portfolio_id: str, asset_id: str) -> Asset:
        portfolio = self.get_portfolio(portfolio_id)
        asset = portfolio.get_asset(asset_id)
        portfolio.assets.remove(asset)
        self.cache.invalidate(portfolio_id)
        logger.info("Deleted asset %s from portfolio %s", asset_id, portfolio_id)
        return asset

    def analyze(self, portfolio_id: str, returns: pd.DataFrame | None = None,
                benchmark_returns: pd.Series | None = None, as_of: date | None = None,
                benchmark=None) -> AnalyticsReport:
        portfolio = self.get_portfolio(portfolio_id)
        ctx = AnalyticsContext(
            portfolio_id=portfolio.id,
            assets=list(portfolio.assets),
            benchmark=benchmark,
            returns=returns,
            benchmark_returns=benchmark_returns,
            as_of=as_of or date.today(),
            allocation_targets=dict(portfolio.allocation_targets),
        )
        return self.engine.run(ctx)
