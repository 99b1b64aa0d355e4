"""Result records returned by the analytics engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any


@dataclass
class PortfolioAnalytics:
    """Headline portfolio summary."""

    total_portfolio_value: float = 0.0
    total_invested: float = 0.0
    unrealized_gains: float = 0.0
    weighted_irr: float = 0.0
    weighted_moic: float = 0.0
    weighted_total_return: float = 0.0
    asset_allocation: dict[str, float] = field(default_factory=dict)
    sector_allocation: dict[str, float] = field(default_factory=dict)
    geographic_allocation: dict[str, float] = field(default_factory=dict)
    risk_distribution: dict[str, float] = field(default_factory=dict)
    allocation_percentages: dict[str, dict[str, float]] = field(default_factory=dict)
    allocation_drift: dict[str, float] = field(default_factory=dict)
    esg_score: float = 0.0
    benchmark_comparison: dict[str, float] = field(default_factory=dict)
    asset_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProfessionalMetrics:
    """Risk-adjusted return, risk, diversification and attribution figures."""

    risk_model: str = ""
    time_weighted_return: float = 0.0
    volatility: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    information_ratio: float = 0.0
    calmar_ratio: float = 0.0
    tracking_error: float = 0.0
    alpha: float = 0.0
    beta: float = 0.0
    value_at_risk_95: float = 0.0
    value_at_risk_99: float = 0.0
    conditional_var: float = 0.0
    concentration_risk: float = 0.0
    effective_holdings: float = 0.0
    diversification_ratio: float = 0.0
    liquidity_score: float = 0.0
    risk_free_rate: float = 0.0
    correlation_matrix: dict[str, dict[str, float]] = field(default_factory=dict)
    sector_attribution: dict[str, Any] = field(default_factory=dict)
    geographic_attribution: dict[str, Any] = field(default_factory=dict)
    asset_type_attribution: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AnalyticsReport:
    portfolio_id: str
    as_of: date
    summary: PortfolioAnalytics
    professional: ProfessionalMetrics
    private_equity: dict[str, Any] = field(default_factory=dict)
    esg: dict[str, Any] = field(default_factory=dict)
    fingerprint: str = ""
    timings: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "portfolio_id": self.portfolio_id,
            "as_of": self.as_of.isoformat(),
            "fingerprint": self.fingerprint,
            "summary": self.summary.to_dict(),
            "professional": self.professional.to_dict(),
            "private_equity": self.private_equity,
            "esg": self.esg,
        }
