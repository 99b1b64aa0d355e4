"""Presentation helpers: values are stored raw and only formatted here."""

from __future__ import annotations

import numpy as np

from portfolio_analytics.models.results import AnalyticsReport


def fmt_num(val, currency="$") -> str:
    if val is None:
        return "N/A"
    try:
        val = float(val)
    except (TypeError, ValueError):
        return str(val)
    if np.isnan(val):
        return "N/A"
    if abs(val) >= 1e12:
        return f"{currency}{val/1e12:.1f}T"
    elif abs(val) >= 1e9:
        return f"{currency}{val/1e9:.1f}B"
    elif abs(val) >= 1e6:
        return f"{currency}{val/1e6:.1f}M"
    elif abs(val) >= 1e3:
        return f"{currency}{val/1e3:.1f}K"
    else:
        return f"{currency}{val:.2f}"


def fmt_pct(val) -> str:
    """Fraction to percentage string: 0.175 -> '17.5%'."""
    if val is None:
        return "N/A"
    try:
        return f"{float(val)*100:.1f}%"
    except (TypeError, ValueError):
        return str(val)


def fmt_ratio(val) -> str:
    if val is None:
        return "N/A"
    try:
        return f"{float(val):.2f}"
    except (TypeError, ValueError):
        return str(val)


def _allocation_lines(title: str, allocation: dict[str, float], total: float) -> list[str]:
    lines = [f"{title}:"]
    if not allocation:
        lines.append("  (none)")
    for key, value in sorted(allocation.items(), key=lambda kv: kv[1], reverse=True):
        share = value / total if total > 0 else None
        lines.append(f"  {key:<20} {fmt_num(value):>10}  {fmt_pct(share):>7}")
    return lines


def render_summary(report: AnalyticsReport) -> str:
    """Plain-text key figures for the terminal."""
    s = report.summary
    p = report.professional
    total = s.total_portfolio_value
    lines = [
        f"Portfolio {report.portfolio_id} (as of {report.as_of.isoformat()}, {s.asset_count} assets)",
        "",
        f"Total value        {fmt_num(total)}",
        f"Total invested     {fmt_num(s.total_invested)}",
        f"Unrealized gains   {fmt_num(s.unrealized_gains)}",
        f"Weighted IRR       {fmt_pct(s.weighted_irr)}",
        f"Weighted MOIC      {fmt_ratio(s.weighted_moic)}x",
        f"vs benchmark       {fmt_pct(s.benchmark_comparison.get('outperformance'))}",
        f"ESG score          {fmt_ratio(s.esg_score)} / 10",
        "",
        f"Risk model         {p.risk_model}",
        f"Volatility         {fmt_pct(p.volatility)}",
        f"Sharpe / Sortino   {fmt_ratio(p.sharpe_ratio)} / {fmt_ratio(p.sortino_ratio)}",
        f"Alpha / Beta       {fmt_pct(p.alpha)} / {fmt_ratio(p.beta)}",
        f"VaR 95 / 99        {fmt_num(p.value_at_risk_95)} / {fmt_num(p.value_at_risk_99)}",
        f"Max drawdown       {fmt_pct(p.max_drawdown)}",
        f"Concentration      {fmt_ratio(p.concentration_risk)}"
        f" (~{fmt_ratio(p.effective_holdings)} effective holdings)",
        f"Liquidity score    {fmt_ratio(p.liquidity_score)}",
        "",
    ]
    lines += _allocation_lines("Asset allocation", s.asset_allocation, total)
    lines += _allocation_lines("Sector allocation", s.sector_allocation, total)
    lines += _allocation_lines("Geographic allocation", s.geographic_allocation, total)
    if s.allocation_drift:
        lines.append("Drift vs targets:")
        for key, drift in s.allocation_drift.items():
            lines.append(f"  {key:<20} {'+' if drift > 0 else ''}{fmt_pct(drift):>7}")
    return "\n".join(lines)
