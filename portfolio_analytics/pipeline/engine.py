"""AnalyticsEngine: runs the calculators for one portfolio and assembles the report."""

from __future__ import annotations

import json
import time

from portfolio_analytics.analysis.allocation import AllocationAggregator
from portfolio_analytics.analysis.attribution import AttributionCalculator, Benchmark
from portfolio_analytics.analysis.base import BaseCalculator
from portfolio_analytics.analysis.esg import ESGAggregator
from portfolio_analytics.analysis.performance import PerformanceCalculator
from portfolio_analytics.analysis.private_equity import PrivateEquityAnalyzer
from portfolio_analytics.analysis.risk import RiskCalculator
from portfolio_analytics.models.results import (
    AnalyticsReport,
    PortfolioAnalytics,
    ProfessionalMetrics,
)
from portfolio_analytics.pipeline.context import AnalyticsContext
from portfolio_analytics.utils.cache import (
    ResultCache,
    combine_fingerprints,
    fingerprint_assets,
    fingerprint_frame,
)
from portfolio_analytics.utils.logger import setup_logger

logger = setup_logger("pipeline")


def default_calculators() -> list[BaseCalculator]:
    return [
        AllocationAggregator(),
        PerformanceCalculator(),
        RiskCalculator(),
        AttributionCalculator(),
        ESGAggregator(),
        PrivateEquityAnalyzer(),
    ]


def context_fingerprint(ctx: AnalyticsContext) -> str:
    """Everything a report depends on: assets, benchmark, as-of date and market data."""
    benchmark = json.dumps(ctx.benchmark.to_dict(), sort_keys=True) if ctx.benchmark else "none"
    targets = json.dumps(ctx.allocation_targets, sort_keys=True) if ctx.allocation_targets else "none"
    return combine_fingerprints(
        fingerprint_assets(ctx.assets),
        benchmark,
        targets,
        ctx.as_of.isoformat(),
        fingerprint_frame(ctx.returns),
        fingerprint_frame(ctx.benchmark_returns),
    )


class AnalyticsEngine:
    """Executes every calculator against a context, memoised per portfolio."""

    def __init__(self, cache: ResultCache | None = None,
                 calculators: list[BaseCalculator] | None = None):
        self.cache = cache if cache is not None else ResultCache()
        self.calculators = calculators if calculators is not None else default_calculators()

    def run(self, ctx: AnalyticsContext) -> AnalyticsReport:
        if ctx.benchmark is None:
            ctx.benchmark = Benchmark.from_settings()

        fingerprint = context_fingerprint(ctx)
        cached = self.cache.get(ctx.portfolio_id, fingerprint)
        if cached is not None:
            logger.info("Analytics for %s served from cache", ctx.portfolio_id)
            return cached

        logger.info("Analytics started: portfolio=%s assets=%d calculators=%d",
                    ctx.portfolio_id, len(ctx.assets), len(self.calculators))
        start = time.monotonic()
        for calc in self.calculators:
            step_start = time.monotonic()
            try:
                ctx.set_result(calc.name, calc.calculate(ctx))
            except Exception as e:
                logger.error("Calculator %s failed for %s: %s", calc.name, ctx.portfolio_id, e)
                raise
            ctx.timings[calc.name] = time.monotonic() - step_start
            logger.debug("Calculator %s completed in %.3fs", calc.name, ctx.timings[calc.name])

        report = self.build_report(ctx, fingerprint)
        self.cache.set(ctx.portfolio_id, fingerprint, report)
        logger.info("Analytics completed for %s in %.2fs",
                    ctx.portfolio_id, time.monotonic() - start)
        return report

    @staticmethod
    def build_report(ctx: AnalyticsContext, fingerprint: str = "") -> AnalyticsReport:
        allocation = ctx.get_result("allocation") or {}
        performance = ctx.get_result("performance") or {}
        risk = ctx.get_result("risk") or {}
        attribution = ctx.get_result("attribution") or {}
        esg = ctx.get_result("esg") or {}

        summary = PortfolioAnalytics(
            total_portfolio_value=performance.get("total_portfolio_value", 0.0),
            total_invested=performance.get("total_invested", 0.0),
            unrealized_gains=performance.get("unrealized_gains", 0.0),
            weighted_irr=performance.get("weighted_irr", 0.0),
            weighted_moic=performance.get("weighted_moic", 0.0),
            weighted_total_return=performance.get("weighted_total_return", 0.0),
            asset_allocation=allocation.get("asset_allocation", {}),
            sector_allocation=allocation.get("sector_allocation", {}),
            geographic_allocation=allocation.get("geographic_allocation", {}),
            risk_distribution=allocation.get("risk_distribution", {}),
            allocation_percentages=allocation.get("percentages", {}),
            allocation_drift=allocation.get("drift", {}),
            esg_score=esg.get("overall_score", 0.0),
            benchmark_comparison=performance.get("benchmark_comparison", {}),
            asset_count=len(ctx.assets),
        )

        professional = ProfessionalMetrics(
            risk_model=risk.get("risk_model", ""),
            time_weighted_return=risk.get("time_weighted_return",
                                          performance.get("time_weighted_return", 0.0)),
            volatility=risk.get("volatility", 0.0),
            max_drawdown=risk.get("max_drawdown", 0.0),
            sharpe_ratio=risk.get("sharpe_ratio", 0.0),
            sortino_ratio=risk.get("sortino_ratio", 0.0),
            information_ratio=risk.get("information_ratio", 0.0),
            calmar_ratio=risk.get("calmar_ratio", 0.0),
            tracking_error=risk.get("tracking_error", 0.0),
            alpha=risk.get("alpha", 0.0),
            beta=risk.get("beta", 0.0),
            value_at_risk_95=risk.get("value_at_risk_95", 0.0),
            value_at_risk_99=risk.get("value_at_risk_99", 0.0),
            conditional_var=risk.get("conditional_var", 0.0),
            concentration_risk=risk.get("concentration_risk", 0.0),
            effective_holdings=risk.get("effective_holdings", 0.0),
            diversification_ratio=risk.get("diversification_ratio", 0.0),
            liquidity_score=risk.get("liquidity_score", 0.0),
            risk_free_rate=risk.get("risk_free_rate", 0.0),
            correlation_matrix=risk.get("correlation_matrix", {}),
            sector_attribution=attribution.get("sector_attribution", {}),
            geographic_attribution=attribution.get("geography_attribution", {}),
            asset_type_attribution=attribution.get("asset_type_attribution", {}),
        )

        return AnalyticsReport(
            portfolio_id=ctx.portfolio_id,
            as_of=ctx.as_of,
            summary=summary,
            professional=professional,
            private_equity=ctx.get_result("private_equity") or {},
            esg=esg,
            fingerprint=fingerprint,
            timings=dict(ctx.timings),
        )
