from .allocation import AllocationAggregator
from .performance import PerformanceCalculator
from .risk import RiskCalculator
from .attribution import AttributionCalculator, Benchmark, BenchmarkTable
from .esg import ESGAggregator
from .private_equity import PrivateEquityAnalyzer
from .asset_detail import asset_financials, asset_risk_assessment
