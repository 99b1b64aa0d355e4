"""Tests for the command-line entry point."""

import json

import pytest

from conftest import infrastructure_record, real_estate_record, traditional_record
from main import main


@pytest.fixture
def portfolio_file(tmp_path):
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps({
        "id": "pf-cli",
        "name": "CLI Fund",
        "assets": [traditional_record(), real_estate_record(), infrastructure_record()],
    }))
    return path


@pytest.fixture
def returns_file(tmp_path, sample_asset_returns, sample_benchmark_returns):
    path = tmp_path / "returns.csv"
    df = sample_asset_returns.copy()
    df["benchmark"] = sample_benchmark_returns
    df.to_csv(path)
    return path


class TestCLI:

    def test_analyze_outputs_json(self, portfolio_file, capsys):
        assert main(["analyze", str(portfolio_file), "--as-of", "2025-01-01"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["portfolio_id"] == "pf-cli"
        assert out["summary"]["total_portfolio_value"] == pytest.approx(310_000_000)
        assert out["professional"]["risk_model"] == "risk_band_placeholder"

    def test_analyze_with_returns(self, portfolio_file, returns_file, capsys):
        assert main(["analyze", str(portfolio_file), "--returns", str(returns_file),
                     "--as-of", "2025-01-01"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["professional"]["risk_model"] == "historical"

    def test_summary(self, portfolio_file, capsys):
        assert main(["summary", str(portfolio_file)]) == 0
        text = capsys.readouterr().out
        assert "Total value" in text
        assert "$310.0M" in text
        assert "Drift vs targets" in text

    def test_asset(self, portfolio_file, capsys):
        assert main(["asset", str(portfolio_file), "re-1"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["risk_assessment"]["risk_score"] == 25
        assert out["financials"]["specific"]["occupancy_rate"] == pytest.approx(0.92)

    def test_unknown_asset_fails(self, portfolio_file):
        assert main(["asset", str(portfolio_file), "nope"]) == 1

    def test_filter(self, portfolio_file, capsys):
        assert main(["filter", str(portfolio_file), "--type", "traditional",
                     "--type", "infrastructure", "--sort-by", "performance.irr"]) == 0
        text = capsys.readouterr().out
        assert "2 of 3 assets" in text
        assert text.index("trad-1") < text.index("infra-1")

    def test_missing_file(self, tmp_path):
        assert main(["summary", str(tmp_path / "nope.json")]) == 1

    def test_invalid_asset_record(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([traditional_record(riskRating="extreme")]))
        assert main(["analyze", str(path)]) == 1

    def test_missing_returns_file(self, portfolio_file, tmp_path, capsys):
        assert main(["analyze", str(portfolio_file), "--returns",
                     str(tmp_path / "nope.csv")]) == 1
        assert capsys.readouterr().out == ""

    def test_malformed_returns_file(self, portfolio_file, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("date,trad-1\n2024-01-01,0.01\n2024-02-01,0.02,0.03,0.04\n")
        assert main(["summary", str(portfolio_file), "--returns", str(path)]) == 1

    def test_summary_as_of(self, portfolio_file, capsys):
        assert main(["summary", str(portfolio_file), "--as-of", "2025-01-01"]) == 0
        assert "Total value" in capsys.readouterr().out

    def test_bad_as_of(self, portfolio_file):
        assert main(["summary", str(portfolio_file), "--as-of", "someday"]) == 1

    def test_no_command(self, capsys):
        assert main([]) == 0
