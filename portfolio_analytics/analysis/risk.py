"""Risk and diversification - concentration, correlation, volatility, VaR, liquidity.

Two risk models are supported:

* ``historical`` - used when the caller supplies periodic returns (one column
  per asset id).  Volatility, VaR, CVaR, drawdown and correlations come from
  the series.
* ``risk_band_placeholder`` - used otherwise.  Each risk rating maps to an
  assumed volatility band and correlations follow a structural heuristic
  (shared type / sector / country).  This is a stand-in for missing market
  data and is reported as such in ``risk_model``.

Monetary VaR/CVaR figures are positive loss amounts over a one-year horizon.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

import numpy as np
import pandas as pd
from scipy.stats import norm

from portfolio_analytics.analysis.base import BaseCalculator, safe_ratio, value_weights
from portfolio_analytics.analysis.performance import time_weighted_return
from portfolio_analytics.config import SETTINGS
from portfolio_analytics.utils.logger import setup_logger

if TYPE_CHECKING:
    from portfolio_analytics.models.assets import Asset
    from portfolio_analytics.pipeline.context import AnalyticsContext

logger = setup_logger("risk")

MODEL_HISTORICAL = "historical"
MODEL_PLACEHOLDER = "risk_band_placeholder"

# Fallbacks when settings.yaml omits a key
_VOLATILITY_BANDS = {"low": 0.15, "medium": 0.25, "high": 0.35, "critical": 0.50}
_DRAWDOWN_FACTORS = {"low": 0.05, "medium": 0.15, "high": 0.25, "critical": 0.40}
_LIQUIDITY = {"traditional": 0.8, "real_estate": 0.3, "infrastructure": 0.2}
_CORRELATION = {
    "base": 0.30, "same_asset_type": 0.20, "same_sector": 0.30,
    "same_country": 0.10, "cap": 0.90,
}
_BETA = {
    "default": 1.0,
    "asset_type": {"infrastructure": 0.7, "real_estate": 0.8},
    "sector": {"Technology": 1.3},
}


def _risk_settings() -> dict:
    return SETTINGS.get("risk", {})


def risk_free_rate() -> float:
    return float(_risk_settings().get("risk_free_rate", 0.03))


def periods_per_year() -> int:
    return int(_risk_settings().get("periods_per_year", 12))


def confidence_levels() -> list[float]:
    return [float(c) for c in _risk_settings().get("confidence_levels", [0.95, 0.99])]


def band_volatility(risk_rating: str) -> float:
    bands = _risk_settings().get("volatility_bands", _VOLATILITY_BANDS)
    return float(bands.get(risk_rating, _VOLATILITY_BANDS["medium"]))


def z_score(confidence: float) -> float:
    """One-sided standard normal quantile, e.g. 0.95 -> 1.645."""
    return float(norm.ppf(confidence))


# ---------------------------------------------------------------------------
# Concentration & liquidity
# ---------------------------------------------------------------------------

def herfindahl_index(weights: Iterable[float]) -> float:
    """Sum of squared weights; 1.0 for a single holding, 1/n for n equal ones."""
    w = np.asarray(list(weights), dtype=float)
    if w.size == 0:
        return 0.0
    return float(np.sum(w ** 2))


def liquidity_score(frame: pd.DataFrame, scores: dict[str, float] | None = None) -> float:
    """Value-weighted liquidity, traditional > real estate > infrastructure."""
    scores = scores or SETTINGS.get("liquidity", _LIQUIDITY)
    weights = value_weights(frame)
    if weights.empty:
        return 0.0
    per_asset = frame.set_index("id")["asset_type"].map(lambda t: float(scores.get(t, 0.5)))
    return float((weights * per_asset.reindex(weights.index)).sum())


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------

def structural_correlation(assets: list[Asset], params: dict | None = None) -> pd.DataFrame:
    """Heuristic correlation from shared asset type, sector and country.

    The rule is symmetric in its two arguments, so the matrix is too.
    """
    params = {**_CORRELATION, **(params or _risk_settings().get("correlation", {}))}
    ids = [a.id for a in assets]
    matrix = np.eye(len(assets))
    for i, a in enumerate(assets):
        for j in range(i + 1, len(assets)):
            b = assets[j]
            corr = params["base"]
            if a.asset_type == b.asset_type:
                corr += params["same_asset_type"]
            if a.sector is not None and a.sector == b.sector:
                corr += params["same_sector"]
            if a.location.country and a.location.country == b.location.country:
                corr += params["same_country"]
            corr = min(corr, params["cap"])
            matrix[i, j] = matrix[j, i] = corr
    return pd.DataFrame(matrix, index=ids, columns=ids)


def historical_correlation(returns: pd.DataFrame) -> pd.DataFrame:
    """Pearson correlation of return columns, forced exactly symmetric with a unit diagonal.

    Pairs without overlapping data get 0.0.
    """
    corr = returns.corr().fillna(0.0)
    values = (corr.values + corr.values.T) / 2.0
    np.fill_diagonal(values, 1.0)
    return pd.DataFrame(values, index=corr.index, columns=corr.columns)


def correlation_to_dict(corr: pd.DataFrame) -> dict[str, dict[str, float]]:
    return {str(i): {str(j): float(corr.loc[i, j]) for j in corr.columns} for i in corr.index}


# ---------------------------------------------------------------------------
# Parametric (placeholder) measures
# ---------------------------------------------------------------------------

def parametric_var(value: float, volatility: float, confidence: float) -> float:
    """value * volatility * z(confidence)."""
    return float(value * volatility * z_score(confidence))


def parametric_cvar(value: float, volatility: float, confidence: float) -> float:
    """Expected shortfall of a zero-mean normal loss beyond the VaR quantile."""
    z = z_score(confidence)
    return float(value * volatility * norm.pdf(z) / (1.0 - confidence))


def placeholder_volatility(assets: list[Asset], weights: pd.Series,
                           corr: pd.DataFrame) -> float:
    """sqrt(w' D C D w) with D the rating-band volatilities."""
    if weights.empty:
        return 0.0
    ids = list(weights.index)
    vols = np.array([band_volatility(a.risk_rating) for a in assets])
    w = weights.reindex(ids).to_numpy(dtype=float)
    c = corr.loc[ids, ids].to_numpy(dtype=float)
    cov = np.outer(vols, vols) * c
    return float(np.sqrt(max(w @ cov @ w, 0.0)))


def placeholder_drawdown(assets: list[Asset], weights: pd.Series) -> float:
    factors = _risk_settings().get("drawdown_factors", _DRAWDOWN_FACTORS)
    if weights.empty:
        return 0.0
    return float(sum(weights[a.id] * float(factors.get(a.risk_rating, 0.15)) for a in assets))


def heuristic_beta(assets: list[Asset], weights: pd.Series) -> float:
    params = {**_BETA, **_risk_settings().get("beta", {})}
    if weights.empty:
        return 0.0

    def _asset_beta(a: Asset) -> float:
        by_type = params.get("asset_type", {})
        if a.asset_type in by_type:
            return float(by_type[a.asset_type])
        by_sector = params.get("sector", {})
        if a.sector in by_sector:
            return float(by_sector[a.sector])
        return float(params.get("default", 1.0))

    return float(sum(weights[a.id] * _asset_beta(a) for a in assets))


def irr_downside_deviation(assets: list[Asset], target: float) -> float:
    """Root-mean-square shortfall of asset IRRs below *target*."""
    shortfalls = [a.performance.irr - target for a in assets if a.performance.irr < target]
    if not shortfalls:
        return 0.0
    return float(np.sqrt(np.mean(np.square(shortfalls))))


# ---------------------------------------------------------------------------
# Historical measures
# ---------------------------------------------------------------------------

def align_returns(returns: pd.DataFrame, weights: pd.Series) -> tuple[pd.DataFrame, pd.Series]:
    """Restrict to assets that have a return column and renormalise their weights."""
    valid = [i for i in weights.index if i in returns.columns]
    if not valid:
        return pd.DataFrame(), pd.Series(dtype=float)
    w = weights.reindex(valid)
    if w.sum() > 0:
        w = w / w.sum()
    return returns[valid].dropna(how="all").fillna(0.0), w


def historical_var(port_returns: pd.Series, confidence: float, ppy: int) -> tuple[float, float]:
    """(VaR, CVaR) as positive annualised loss fractions."""
    clean = port_returns.dropna()
    if clean.empty:
        return 0.0, 0.0
    q = float(np.percentile(clean, (1 - confidence) * 100))
    tail = clean[clean <= q]
    tail_mean = float(tail.mean()) if len(tail) > 0 else q
    scale = np.sqrt(ppy)
    return max(-q, 0.0) * scale, max(-tail_mean, 0.0) * scale


def max_drawdown(port_returns: pd.Series) -> float:
    """Largest peak-to-trough fall of the compounded series, as a positive fraction."""
    clean = port_returns.dropna()
    if clean.empty:
        return 0.0
    wealth = (1 + clean).cumprod()
    peak = np.maximum(wealth.cummax(), 1.0)
    return float(max(-((wealth - peak) / peak).min(), 0.0))


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class RiskCalculator(BaseCalculator):
    """Portfolio-level risk, diversification and risk-adjusted return metrics."""

    @property
    def name(self) -> str:
        return "risk"

    def calculate(self, ctx: AnalyticsContext) -> dict:
        assets = list(ctx.assets)
        frame = ctx.frame
        weights = value_weights(frame)
        total_value = ctx.total_value
        rf = risk_free_rate()
        ppy = periods_per_year()
        levels = confidence_levels()
        benchmark_return = ctx.benchmark.annual_return if ctx.benchmark else 0.0
        twr = time_weighted_return(assets, ctx.as_of)

        result = {
            "concentration_risk": herfindahl_index(weights.values),
            "effective_holdings": safe_ratio(1.0, herfindahl_index(weights.values)),
            "liquidity_score": liquidity_score(frame),
        }

        port_returns = None
        aligned_weights = pd.Series(dtype=float)
        if ctx.returns is not None and not weights.empty:
            aligned, aligned_weights = align_returns(ctx.returns, weights)
            if not aligned.empty:
                port_returns = (aligned * aligned_weights).sum(axis=1)
                if len(aligned.columns) < len(weights):
                    logger.warning("Return series missing for %d of %d assets; weights renormalised",
                                   len(weights) - len(aligned.columns), len(weights))

        if port_returns is not None:
            result.update(self._historical(ctx, aligned, aligned_weights, port_returns,
                                           total_value, levels, ppy))
        else:
            if not weights.empty:
                logger.warning("No return series for portfolio %s; using %s model",
                               ctx.portfolio_id, MODEL_PLACEHOLDER)
            result.update(self._placeholder(assets, weights, total_value, levels, benchmark_return))

        vol = result["volatility"]
        beta = result["beta"]
        te = result["tracking_error"]
        mdd = result["max_drawdown"]
        empty = weights.empty

        result["time_weighted_return"] = twr
        result["sharpe_ratio"] = 0.0 if empty else safe_ratio(twr - rf, vol)
        result["alpha"] = 0.0 if empty else twr - (rf + beta * (benchmark_return - rf))
        result["information_ratio"] = 0.0 if empty else safe_ratio(twr - benchmark_return, te)
        result["calmar_ratio"] = 0.0 if empty else safe_ratio(twr, mdd)
        result["risk_free_rate"] = rf
        return result

    # ------------------------------------------------------------------

    def _placeholder(self, assets: list[Asset], weights: pd.Series, total_value: float,
                     levels: list[float], benchmark_return: float) -> dict:
        out: dict = {"risk_model": MODEL_PLACEHOLDER}
        if weights.empty:
            out.update(self._zero_measures(levels))
            out["correlation_matrix"] = correlation_to_dict(structural_correlation(assets))
            return out

        corr = structural_correlation(assets)
        vol = placeholder_volatility(assets, weights, corr)
        for c in levels:
            out[f"value_at_risk_{int(round(c * 100))}"] = parametric_var(total_value, vol, c)
        out["conditional_var"] = parametric_cvar(total_value, vol, levels[0])
        out["volatility"] = vol
        out["max_drawdown"] = placeholder_drawdown(assets, weights)
        out["beta"] = heuristic_beta(assets, weights)
        out["tracking_error"] = float(_risk_settings().get("tracking_error_fallback", 0.03))
        out["correlation_matrix"] = correlation_to_dict(corr)

        weighted_band = float(sum(weights[a.id] * band_volatility(a.risk_rating) for a in assets))
        out["diversification_ratio"] = safe_ratio(weighted_band, vol, default=1.0)

        dd = irr_downside_deviation(assets, benchmark_return)
        twr_proxy = float(sum(weights[a.id] * a.performance.irr for a in assets))
        out["sortino_ratio"] = safe_ratio(twr_proxy - risk_free_rate(), dd)
        return out

    def _historical(self, ctx: AnalyticsContext, aligned: pd.DataFrame, weights: pd.Series,
                    port_returns: pd.Series, total_value: float, levels: list[float],
                    ppy: int) -> dict:
        out: dict = {"risk_model": MODEL_HISTORICAL}
        scale = np.sqrt(ppy)
        vol = float(port_returns.std() * scale) if len(port_returns) > 1 else 0.0
        if not np.isfinite(vol):
            vol = 0.0

        cvar_frac = 0.0
        for i, c in enumerate(levels):
            var_frac, es_frac = historical_var(port_returns, c, ppy)
            out[f"value_at_risk_{int(round(c * 100))}"] = var_frac * total_value
            if i == 0:
                cvar_frac = es_frac
        out["conditional_var"] = cvar_frac * total_value
        out["volatility"] = vol
        out["max_drawdown"] = max_drawdown(port_returns)

        # Correlation over every asset; assets without a series are uncorrelated.
        ids = [a.id for a in ctx.assets]
        corr = historical_correlation(aligned).reindex(index=ids, columns=ids).fillna(0.0)
        values = corr.to_numpy(copy=True)
        np.fill_diagonal(values, 1.0)
        out["correlation_matrix"] = correlation_to_dict(pd.DataFrame(values, index=ids, columns=ids))

        asset_vols = aligned.std() * scale
        weighted_vol = float((asset_vols.fillna(0.0) * weights).sum())
        out["diversification_ratio"] = safe_ratio(weighted_vol, vol, default=1.0)

        rf_period = risk_free_rate() / ppy
        excess = port_returns - rf_period
        downside = excess[excess < 0]
        downside_dev = float(np.sqrt(np.mean(np.square(downside))) * scale) if len(downside) else 0.0
        out["sortino_ratio"] = safe_ratio(float(excess.mean()) * ppy, downside_dev)

        bench = ctx.benchmark_returns
        if bench is not None:
            joined = pd.concat([port_returns.rename("port"), bench.rename("bench")],
                               axis=1, join="inner").dropna()
            var_b = float(joined["bench"].var()) if len(joined) > 1 else 0.0
            out["beta"] = safe_ratio(float(joined["port"].cov(joined["bench"])), var_b,
                                     default=1.0) if var_b > 0 else 1.0
            active = joined["port"] - joined["bench"]
            out["tracking_error"] = float(active.std() * scale) if len(active) > 1 else 0.0
        else:
            out["beta"] = heuristic_beta(list(ctx.assets), value_weights(ctx.frame))
            out["tracking_error"] = float(_risk_settings().get("tracking_error_fallback", 0.03))
        return out

    @staticmethod
    def _zero_measures(levels: list[float]) -> dict:
        out = {f"value_at_risk_{int(round(c * 100))}": 0.0 for c in levels}
        out.update({
            "conditional_var": 0.0,
            "volatility": 0.0,
            "max_drawdown": 0.0,
            "beta": 0.0,
            "tracking_error": 0.0,
            "diversification_ratio": 0.0,
            "sortino_ratio": 0.0,
        })
        return out
