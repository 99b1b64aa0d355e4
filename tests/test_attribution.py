"""Tests for portfolio_analytics.analysis.attribution -- Brinson effects and reconciliation."""

import numpy as np
import pytest

from conftest import real_estate_record, traditional_record
from portfolio_analytics.analysis.attribution import (
    AttributionCalculator,
    Benchmark,
    BenchmarkTable,
    attribute,
    brinson_effects,
)
from portfolio_analytics.analysis.base import assets_frame
from portfolio_analytics.models.assets import asset_from_dict
from portfolio_analytics.pipeline.context import AnalyticsContext


def _reconciles(result):
    total = sum(e["total"] for e in result["effects"].values())
    return total == pytest.approx(result["portfolio_return"] - result["benchmark_return"], abs=1e-12)


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

class TestBrinsonEffects:

    def test_components(self):
        e = brinson_effects(wp=0.6, rp=0.15, wb=0.5, rb=0.10)
        assert e["allocation"] == pytest.approx(0.1 * 0.10)
        assert e["selection"] == pytest.approx(0.5 * 0.05)
        assert e["interaction"] == pytest.approx(0.1 * 0.05)
        assert e["total"] == pytest.approx(0.6 * 0.15 - 0.5 * 0.10)

    def test_identical_to_benchmark_is_zero(self):
        e = brinson_effects(0.3, 0.08, 0.3, 0.08)
        assert all(v == pytest.approx(0.0) for v in e.values())


# ---------------------------------------------------------------------------
# attribute()
# ---------------------------------------------------------------------------

class TestAttribute:

    def test_reconciles_sample(self, sample_assets):
        bench = Benchmark.from_settings()
        frame = assets_frame(sample_assets)
        for dimension, column in (("sector", "sector"), ("geography", "country"),
                                  ("asset_type", "asset_type")):
            assert _reconciles(attribute(frame, column, bench.table(dimension)))

    def test_reconciles_random_portfolios(self):
        rng = np.random.default_rng(11)
        sectors = ["Technology", "Energy", "Healthcare", "Consumer"]
        table = BenchmarkTable(weights={"Technology": 0.5, "Energy": 0.3, "Financial": 0.2},
                               returns={"Technology": 0.15, "Energy": 0.09},
                               default_return=0.07)
        for _ in range(25):
            n = int(rng.integers(1, 8))
            assets = [
                asset_from_dict(traditional_record(
                    id=f"a{i}", sector=str(rng.choice(sectors)),
                    currentValue=float(rng.uniform(1, 100)),
                    performance={"irr": float(rng.normal(0.1, 0.1)), "moic": 1.2}))
                for i in range(n)
            ]
            assert _reconciles(attribute(assets_frame(assets), "sector", table))

    def test_unheld_benchmark_group_has_only_allocation_effect(self):
        asset = asset_from_dict(traditional_record(sector="Technology"))
        table = BenchmarkTable(weights={"Technology": 0.5, "Energy": 0.5},
                               returns={"Technology": 0.10, "Energy": 0.08})
        out = attribute(assets_frame([asset]), "sector", table)
        energy = out["effects"]["Energy"]
        assert energy["allocation"] == pytest.approx(-0.5 * 0.08)
        assert energy["selection"] == pytest.approx(0.0)
        assert energy["interaction"] == pytest.approx(0.0)

    def test_benchmark_weights_normalised(self):
        asset = asset_from_dict(traditional_record(sector="Technology"))
        table = BenchmarkTable(weights={"Technology": 2.0, "Energy": 2.0},
                               returns={"Technology": 0.10, "Energy": 0.10})
        out = attribute(assets_frame([asset]), "sector", table)
        assert out["benchmark_return"] == pytest.approx(0.10)

    def test_missing_sector_excluded_with_coverage(self):
        assets = [
            asset_from_dict(traditional_record(id="a", currentValue=100)),
            asset_from_dict(traditional_record(id="b", currentValue=300, sector=None)),
        ]
        out = attribute(assets_frame(assets), "sector", BenchmarkTable(weights={"Technology": 1.0}))
        assert out["coverage"] == pytest.approx(0.25)
        assert set(out["effects"]) == {"Technology"}
        assert _reconciles(out)

    def test_empty(self):
        out = attribute(assets_frame([]), "sector", BenchmarkTable())
        assert out["effects"] == {}
        assert out["active_return"] == 0.0


# ---------------------------------------------------------------------------
# Benchmark config
# ---------------------------------------------------------------------------

class TestBenchmark:

    def test_from_settings(self):
        bench = Benchmark.from_settings()
        assert bench.annual_return == pytest.approx(0.12)
        assert bench.sector.weight("Technology") == pytest.approx(0.30)
        assert bench.sector.group_return("Unlisted") == pytest.approx(0.08)

    def test_from_empty_settings(self):
        bench = Benchmark.from_settings({})
        assert bench.annual_return == pytest.approx(0.12)
        assert bench.sector.weights == {}

    def test_dict_round_trip(self):
        bench = Benchmark.from_settings()
        assert Benchmark.from_dict(bench.to_dict()) == bench


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class TestAttributionCalculator:

    def test_all_dimensions(self, sample_assets):
        ctx = AnalyticsContext(portfolio_id="p", assets=sample_assets)
        out = AttributionCalculator().calculate(ctx)
        assert set(out) == {"sector_attribution", "geography_attribution", "asset_type_attribution"}
        for result in out.values():
            assert _reconciles(result)

    def test_asset_type_weights(self):
        assets = [
            asset_from_dict(traditional_record(id="t", currentValue=100)),
            asset_from_dict(real_estate_record(id="r", currentValue=300)),
        ]
        ctx = AnalyticsContext(portfolio_id="p", assets=assets, benchmark=Benchmark.from_settings())
        effects = AttributionCalculator().calculate(ctx)["asset_type_attribution"]["effects"]
        # infrastructure is in the benchmark but not held
        assert set(effects) == {"traditional", "real_estate", "infrastructure"}
        assert effects["infrastructure"]["selection"] == pytest.approx(0.0)

    def test_empty_portfolio(self):
        out = AttributionCalculator().calculate(AnalyticsContext(portfolio_id="p", assets=[]))
        assert all(r["effects"] == {} for r in out.values())
