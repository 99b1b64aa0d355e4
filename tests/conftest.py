"""Shared pytest fixtures for the portfolio analytics test suite.

Asset records are built from the camelCase wire shape the data layer
supplies.  Return series are synthetic with a fixed seed.
"""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from portfolio_analytics.models.assets import asset_from_dict
from portfolio_analytics.models.portfolio import Portfolio

AS_OF = date(2025, 1, 1)


# ---------------------------------------------------------------------------
# 1. Wire records
# ---------------------------------------------------------------------------

def traditional_record(**overrides):
    record = {
        "id": "trad-1",
        "name": "CloudScale Software",
        "assetType": "traditional",
        "description": "B2B SaaS platform",
        "acquisitionDate": "2020-03-15",
        "acquisitionValue": 50_000_000,
        "currentValue": 85_000_000,
        "location": {"country": "United States", "region": "North America", "city": "Austin"},
        "performance": {"irr": 0.22, "moic": 1.7, "totalReturn": 0.70, "tvpi": 1.8, "dpi": 0.3},
        "esgMetrics": {
            "environmentalScore": 7, "socialScore": 8, "governanceScore": 9,
            "overallScore": 8, "jobsCreated": 120,
            "sustainabilityCertifications": ["B Corp"],
        },
        "status": "active",
        "riskRating": "medium",
        "sector": "Technology",
        "tags": ["saas", "growth"],
        "specificMetrics": {
            "companyStage": "growth", "employeeCount": 250,
            "revenue": 40_000_000, "ebitda": 8_000_000,
            "ownershipPercentage": 35, "boardSeats": 2,
        },
    }
    record.update(overrides)
    return record


def real_estate_record(**overrides):
    record = {
        "id": "re-1",
        "name": "Harbour Office Tower",
        "assetType": "real_estate",
        "description": "Grade A office building",
        "acquisitionDate": "2019-06-01",
        "acquisitionValue": 120_000_000,
        "currentValue": 135_000_000,
        "location": {"country": "United Kingdom", "region": "Europe", "city": "London"},
        "performance": {"irr": 0.08, "moic": 1.125, "totalReturn": 0.125},
        "esgMetrics": {"overallScore": 6, "carbonFootprint": 1500,
                       "sustainabilityCertifications": ["BREEAM", "LEED Gold"]},
        "status": "active",
        "riskRating": "low",
        "sector": "Real Estate",
        "tags": ["office", "core"],
        "specificMetrics": {
            "propertyType": "office", "totalSqFt": 450_000,
            "occupancyRate": 92, "capRate": 5.2, "noiYield": 0.06,
        },
    }
    record.update(overrides)
    return record


def infrastructure_record(**overrides):
    record = {
        "id": "infra-1",
        "name": "Northern Wind Farm",
        "assetType": "infrastructure",
        "description": "Onshore wind generation",
        "acquisitionDate": "2021-09-30",
        "acquisitionValue": 80_000_000,
        "currentValue": 90_000_000,
        "location": {"country": "Germany", "region": "Europe"},
        "performance": {"irr": 0.11, "moic": 1.125, "totalReturn": 0.125},
        "status": "active",
        "riskRating": "high",
        "sector": "Energy",
        "tags": ["renewables"],
        "specificMetrics": {
            "assetCategory": "energy", "capacityUtilization": 0.85,
            "availabilityRate": 97, "contractedRevenue": 9_000_000,
        },
    }
    record.update(overrides)
    return record


@pytest.fixture
def traditional_asset():
    return asset_from_dict(traditional_record())


@pytest.fixture
def real_estate_asset():
    return asset_from_dict(real_estate_record())


@pytest.fixture
def infrastructure_asset():
    return asset_from_dict(infrastructure_record())


@pytest.fixture
def sample_assets(traditional_asset, real_estate_asset, infrastructure_asset):
    return [traditional_asset, real_estate_asset, infrastructure_asset]


@pytest.fixture
def sample_portfolio(sample_assets):
    return Portfolio(id="pf-1", name="Flagship Fund", assets=list(sample_assets))


@pytest.fixture
def as_of():
    return AS_OF


# ---------------------------------------------------------------------------
# 2. Return series
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_asset_returns():
    """Monthly returns for the three sample assets, 60 periods, seeded at 42."""
    np.random.seed(42)
    n = 60
    dates = pd.date_range(start="2020-01-01", periods=n, freq="MS")
    market = np.random.normal(0.008, 0.03, n)
    data = {
        "trad-1": 1.3 * market + np.random.normal(0.002, 0.02, n),
        "re-1": 0.6 * market + np.random.normal(0.001, 0.01, n),
        "infra-1": 0.5 * market + np.random.normal(0.001, 0.012, n),
    }
    returns = pd.DataFrame(data, index=dates)
    returns.attrs["market"] = market
    return returns


@pytest.fixture
def sample_benchmark_returns(sample_asset_returns):
    market = sample_asset_returns.attrs["market"]
    return pd.Series(market, index=sample_asset_returns.index, name="benchmark")
