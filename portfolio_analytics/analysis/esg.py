"""ESG aggregation across a portfolio."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Iterable

import numpy as np

from portfolio_analytics.analysis.base import BaseCalculator, safe_ratio

if TYPE_CHECKING:
    from portfolio_analytics.models.assets import Asset
    from portfolio_analytics.pipeline.context import AnalyticsContext

SCORE_FIELDS = ("environmental_score", "social_score", "governance_score", "overall_score")


def _present(values: Iterable[float | None]) -> list[float]:
    return [float(v) for v in values if v is not None]


def esg_summary(assets: Iterable[Asset]) -> dict:
    """Mean scores over assessed assets only; impact metrics are summed.

    An asset without ESG data, or without a particular score, is left out of
    that mean instead of counting as zero.
    """
    assessed = [a for a in assets if a.esg_metrics is not None]

    result: dict = {}
    for name in SCORE_FIELDS:
        values = _present(getattr(a.esg_metrics, name) for a in assessed)
        result[name] = float(np.mean(values)) if values else 0.0
        result[f"{name}_count"] = len(values)

    carbon = _present(a.esg_metrics.carbon_footprint for a in assessed)
    jobs = [a.esg_metrics.jobs_created for a in assessed if a.esg_metrics.jobs_created is not None]
    result["total_carbon_footprint"] = float(sum(carbon))
    result["total_jobs_created"] = int(sum(jobs))

    certs = Counter(c for a in assessed for c in a.esg_metrics.certifications)
    result["certifications"] = dict(certs.most_common())
    result["assessed_assets"] = len(assessed)

    scored = [a for a in assessed if a.esg_metrics.overall_score is not None]
    total = sum(a.current_value for a in scored)
    result["value_weighted_overall_score"] = safe_ratio(
        sum(a.esg_metrics.overall_score * a.current_value for a in scored), total,
    )
    return result


class ESGAggregator(BaseCalculator):

    @property
    def name(self) -> str:
        return "esg"

    def calculate(self, ctx: AnalyticsContext) -> dict:
        return esg_summary(ctx.assets)
