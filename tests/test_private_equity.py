"""Tests for portfolio_analytics.analysis.private_equity."""

from datetime import date

import pytest

from conftest import AS_OF, real_estate_record, traditional_record
from portfolio_analytics.analysis.attribution import Benchmark
from portfolio_analytics.analysis.private_equity import (
    PrivateEquityAnalyzer,
    maturity,
    paid_in_weighted,
    public_market_equivalent,
    sector_performance,
    stage_analysis,
    vintage_analysis,
)
from portfolio_analytics.models.assets import asset_from_dict
from portfolio_analytics.pipeline.context import AnalyticsContext


def _company(id_, acquired, invested, value, irr, moic, stage="growth", sector="Technology", **perf):
    return asset_from_dict(traditional_record(
        id=id_, acquisitionDate=acquired, acquisitionValue=invested, currentValue=value,
        sector=sector, specificMetrics={"companyStage": stage},
        performance={"irr": irr, "moic": moic, **perf}))


@pytest.fixture
def companies():
    return [
        _company("c1", "2018-05-01", 100, 250, 0.25, 2.5, stage="growth", tvpi=2.6, dpi=1.0),
        _company("c2", "2018-11-01", 50, 40, -0.05, 0.8, stage="series_a", sector="Healthcare"),
        _company("c3", "2023-02-01", 200, 220, 0.10, 1.1, stage="growth", dpi=0.0),
    ]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:

    def test_maturity_bands(self):
        assert maturity(2023, AS_OF) == "early"
        assert maturity(2022, AS_OF) == "early"
        assert maturity(2018, AS_OF) == "mid"
        assert maturity(2017, AS_OF) == "mature"

    def test_pme(self):
        assert public_market_equivalent(0.12, 0.12, 5) == pytest.approx(1.0)
        assert public_market_equivalent(0.20, 0.10, 2) == pytest.approx(1.2 ** 2 / 1.1 ** 2)
        assert public_market_equivalent(0.20, 0.10, 0) == 1.0

    def test_pme_total_loss(self):
        assert public_market_equivalent(-1.0, 0.12, 2.5) == 0.0

    def test_pme_degenerate_benchmark(self):
        assert public_market_equivalent(0.10, -1.5, 2.5) == 1.0

    def test_paid_in_weighted_skips_missing(self, companies):
        dpi = paid_in_weighted(companies, lambda a: a.performance.dpi)
        # c2 reports no DPI
        assert dpi == pytest.approx((1.0 * 100 + 0.0 * 200) / 300)

    def test_paid_in_weighted_none_when_unreported(self, companies):
        assert paid_in_weighted(companies, lambda a: a.performance.rvpi) is None


# ---------------------------------------------------------------------------
# Breakdowns
# ---------------------------------------------------------------------------

class TestBreakdowns:

    def test_vintage(self, companies):
        out = vintage_analysis(companies, AS_OF)
        assert list(out) == ["2018", "2023"]
        assert out["2018"]["investment_count"] == 2
        assert out["2018"]["tvpi"] == pytest.approx(290 / 150)
        assert out["2018"]["irr"] == pytest.approx(0.10)
        assert out["2018"]["maturity"] == "mid"
        assert out["2023"]["maturity"] == "early"

    def test_stage(self, companies):
        out = stage_analysis(companies, AS_OF)
        assert out["growth"]["investment_count"] == 2
        assert out["growth"]["success_rate"] == pytest.approx(1.0)
        assert out["series_a"]["success_rate"] == pytest.approx(0.0)
        assert out["growth"]["avg_moic"] == pytest.approx(1.8)

    def test_stage_missing_excluded(self):
        asset = asset_from_dict(traditional_record(specificMetrics={}))
        assert stage_analysis([asset], AS_OF) == {}

    def test_sector(self, companies):
        out = sector_performance(companies)
        assert set(out) == {"Technology", "Healthcare"}
        assert out["Technology"]["tvpi"] == pytest.approx(470 / 300)
        assert out["Healthcare"]["top_quartile"] is False


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class TestPrivateEquityAnalyzer:

    def test_only_traditional_assets(self, companies):
        assets = companies + [asset_from_dict(real_estate_record())]
        ctx = AnalyticsContext(portfolio_id="p", assets=assets, as_of=AS_OF,
                               benchmark=Benchmark(annual_return=0.12))
        out = PrivateEquityAnalyzer().calculate(ctx)
        assert out["investment_count"] == 3
        assert out["total_invested"] == pytest.approx(350)

    def test_tvpi_prefers_reported_multiple(self, companies):
        ctx = AnalyticsContext(portfolio_id="p", assets=companies, as_of=AS_OF)
        out = PrivateEquityAnalyzer().calculate(ctx)
        expected = (2.6 * 100 + 0.8 * 50 + 1.1 * 200) / 350
        assert out["tvpi"] == pytest.approx(expected)
        assert out["rvpi"] is None

    def test_holding_period_and_pme(self, companies):
        ctx = AnalyticsContext(portfolio_id="p", assets=companies, as_of=date(2025, 1, 1),
                               benchmark=Benchmark(annual_return=0.12))
        out = PrivateEquityAnalyzer().calculate(ctx)
        years = [(date(2025, 1, 1) - date.fromisoformat(d)).days / 365.0
                 for d in ("2018-05-01", "2018-11-01", "2023-02-01")]
        assert out["avg_holding_period"] == pytest.approx(sum(years) / 3)
        assert out["pme"] == pytest.approx(
            public_market_equivalent(out["net_irr"], 0.12, out["avg_holding_period"]))

    def test_written_off_portfolio_is_finite(self):
        assets = [_company("w1", "2019-06-01", 100, 1, -1.0, 0.01),
                  _company("w2", "2020-06-01", 80, 2, -1.0, 0.025)]
        ctx = AnalyticsContext(portfolio_id="p", assets=assets, as_of=AS_OF,
                               benchmark=Benchmark(annual_return=0.12))
        out = PrivateEquityAnalyzer().calculate(ctx)
        assert out["net_irr"] == pytest.approx(-1.0)
        assert out["pme"] == 0.0
        assert isinstance(out["pme"], float)

    def test_empty(self):
        out = PrivateEquityAnalyzer().calculate(AnalyticsContext(portfolio_id="p", assets=[]))
        assert out["investment_count"] == 0
        assert out["tvpi"] == 0.0
        assert out["pme"] == 0.0
        assert out["vintage_analysis"] == {}
