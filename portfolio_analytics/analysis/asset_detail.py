"""Single-asset views: financial breakdown and risk assessment.

Both dispatch on the asset variant.  Rates such as occupancy or cap rate are
accepted either as fractions (0.92) or as percentages (92) and reported as
fractions.  ``ownershipPercentage`` is always read in percent units.
"""

from __future__ import annotations

from portfolio_analytics.analysis.base import safe_ratio
from portfolio_analytics.analysis.risk import band_volatility, parametric_var
from portfolio_analytics.models.assets import (
    Asset,
    InfrastructureAsset,
    RealEstateAsset,
    TraditionalAsset,
)

RISK_SCORES = {"low": 25, "medium": 50, "high": 75, "critical": 100}
MITIGATION_LEVELS = {"low": 0.85, "medium": 0.70, "high": 0.55, "critical": 0.40}
REVIEW_FREQUENCY = {"critical": "Weekly", "high": "Monthly"}
DEFAULT_REVIEW_FREQUENCY = "Quarterly"


def as_fraction(value: float | None, percent: bool | None = None) -> float | None:
    """Normalise a rate to a fraction.

    ``percent=True`` always divides by 100 and ``percent=False`` never does.
    Left as None the unit is inferred: magnitudes above 1 are read as
    percentages (92 -> 0.92) and anything in [-1, 1] as a fraction already,
    so a sub-1% rate sent in percent units (0.5 meaning 0.5%) is misread
    unless the caller says so.
    """
    if value is None:
        return None
    if percent is None:
        percent = abs(value) > 1.0
    return value / 100.0 if percent else value


# ---------------------------------------------------------------------------
# Financials
# ---------------------------------------------------------------------------

def _traditional_financials(asset: TraditionalAsset) -> dict:
    m = asset.specific_metrics
    margin = None
    if m.revenue and m.ebitda is not None:
        margin = m.ebitda / m.revenue
    per_employee = None
    if m.revenue is not None and m.employee_count:
        per_employee = m.revenue / m.employee_count
    return {
        "company_stage": m.company_stage,
        "revenue": m.revenue,
        "ebitda": m.ebitda,
        "ebitda_margin": margin,
        "revenue_per_employee": per_employee,
        "ownership_percentage": as_fraction(m.ownership_percentage, percent=True),
        "board_seats": m.board_seats,
    }


def _real_estate_financials(asset: RealEstateAsset) -> dict:
    m = asset.specific_metrics
    per_sq_ft = asset.current_value / m.total_sq_ft if m.total_sq_ft else None
    return {
        "property_type": m.property_type,
        "cap_rate": as_fraction(m.cap_rate),
        "noi_yield": as_fraction(m.noi_yield),
        "occupancy_rate": as_fraction(m.occupancy_rate),
        "value_per_sq_ft": per_sq_ft,
        "total_sq_ft": m.total_sq_ft,
    }


def _infrastructure_financials(asset: InfrastructureAsset) -> dict:
    m = asset.specific_metrics
    contracted_yield = None
    if m.contracted_revenue is not None and asset.current_value > 0:
        contracted_yield = m.contracted_revenue / asset.current_value
    return {
        "asset_category": m.asset_category,
        "contracted_revenue": m.contracted_revenue,
        "availability_rate": as_fraction(m.availability_rate),
        "capacity_utilization": as_fraction(m.capacity_utilization),
        "contracted_revenue_yield": contracted_yield,
    }


def asset_financials(asset: Asset) -> dict:
    """Equity multiple and gain, plus the figures specific to the asset's type."""
    result = {
        "id": asset.id,
        "asset_type": asset.asset_type,
        "acquisition_value": asset.acquisition_value,
        "current_value": asset.current_value,
        "unrealized_gain": asset.unrealized_gain,
        "equity_multiple": safe_ratio(asset.current_value, asset.acquisition_value),
        "irr": asset.performance.irr,
        "total_return": asset.performance.total_return,
    }
    if isinstance(asset, TraditionalAsset):
        result["specific"] = _traditional_financials(asset)
    elif isinstance(asset, RealEstateAsset):
        result["specific"] = _real_estate_financials(asset)
    elif isinstance(asset, InfrastructureAsset):
        result["specific"] = _infrastructure_financials(asset)
    else:
        result["specific"] = {}
    return result


# ---------------------------------------------------------------------------
# Risk assessment
# ---------------------------------------------------------------------------

def risk_factors(asset: Asset) -> list[dict]:
    rating = asset.risk_rating
    factors = [
        {"category": "Market Risk",
         "level": {"low": "Low", "high": "High"}.get(rating, "Medium")},
        {"category": "Operational Risk",
         "level": "High" if rating == "critical" else "Medium"},
        {"category": "Financial Risk",
         "level": "Low" if rating == "low" else "Medium"},
        {"category": "Regulatory Risk",
         "level": "Medium" if isinstance(asset, InfrastructureAsset) else "Low"},
    ]
    if isinstance(asset, RealEstateAsset):
        factors.append({"category": "Property Risk", "level": "Medium"})
    elif isinstance(asset, TraditionalAsset):
        factors.append({"category": "Technology Risk",
                        "level": "High" if asset.sector == "Technology" else "Low"})
    elif isinstance(asset, InfrastructureAsset):
        factors.append({"category": "Environmental Risk", "level": "Medium"})
    return factors


def stress_scenarios(asset: Asset) -> list[dict]:
    """Percentage impact and probability of four standard shocks."""
    scenarios = [
        ("Economic Recession", -35 if isinstance(asset, TraditionalAsset) else -20, 20),
        ("Interest Rate Spike", -25 if isinstance(asset, RealEstateAsset) else -15, 25),
        ("Sector Disruption", -40 if asset.sector == "Technology" else -10, 15),
        ("Regulatory Change", -30 if isinstance(asset, InfrastructureAsset) else -10, 30),
    ]
    return [
        {
            "scenario": name,
            "impact_pct": impact,
            "probability_pct": probability,
            "value_impact": asset.current_value * impact / 100.0,
        }
        for name, impact, probability in scenarios
    ]


def asset_risk_assessment(asset: Asset) -> dict:
    rating = asset.risk_rating
    vol = band_volatility(rating)
    return {
        "id": asset.id,
        "risk_rating": rating,
        "risk_score": RISK_SCORES[rating],
        "volatility": vol,
        "value_at_risk_95": parametric_var(asset.current_value, vol, 0.95),
        "mitigation_level": MITIGATION_LEVELS[rating],
        "review_frequency": REVIEW_FREQUENCY.get(rating, DEFAULT_REVIEW_FREQUENCY),
        "risk_factors": risk_factors(asset),
        "stress_tests": stress_scenarios(asset),
    }
