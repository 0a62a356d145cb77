"""Tests for the analysis pipeline."""

import json
import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cost_analyzer import CostAnalyzer, analyze_cloud_costs, compare_time_periods
from errors import AnalysisError


class TestCompareTimePeriods:
    """Test cases for the three-month comparison."""

    def test_six_months(self, sample_cost_data):
        """The last three months are compared with the three before."""
        result = compare_time_periods(sample_cost_data.months, sample_cost_data.totals_by_month)

        assert result.current_period.months == sample_cost_data.months[3:]
        assert result.previous_period.months == sample_cost_data.months[:3]
        assert result.current_period.cost == pytest.approx(7980.0)
        assert result.previous_period.cost == pytest.approx(5400.0)
        assert result.percent_change == pytest.approx(2580 / 5400 * 100)

    def test_short_history(self, make_cost_data):
        """With three months or fewer the previous window is empty."""
        data = make_cost_data({"EC2": [100, 200, 300]})

        result = compare_time_periods(data.months, data.totals_by_month)

        assert result.previous_period.months == []
        assert result.percent_change == 0.0

    def test_partial_previous_window(self, make_cost_data):
        """Five months compare the last three with the two before."""
        data = make_cost_data({"EC2": [50, 50, 100, 100, 100]})

        result = compare_time_periods(data.months, data.totals_by_month)

        assert result.previous_period.months == data.months[:2]
        assert result.percent_change == pytest.approx(200.0)


class TestCostAnalyzer:
    """Test cases for CostAnalyzer."""

    def test_analyze_sample(self, sample_cost_data):
        """Every dashboard section is computed."""
        analysis = CostAnalyzer(sample_cost_data).analyze()

        assert analysis.total_cost == pytest.approx(13380.0)
        assert len(analysis.trends) == 6
        assert [service.name for service in analysis.top_services] == [
            "EC2",
            "S3",
            "RDS",
            "Lambda",
        ]
        assert analysis.cost_breakdown.services[0].cost == pytest.approx(5700.0)
        assert len(analysis.anomalies) == 4
        assert [trend.service for trend in analysis.growth_trends] == [
            "EC2 > Instâncias",
            "EC2",
            "Lambda",
        ]
        assert [p.month for p in analysis.projections] == [
            "Julho/2024",
            "Agosto/2024",
            "Setembro/2024",
        ]
        assert analysis.period_comparison.current_period.total_cost == pytest.approx(7980.0)

    def test_options(self, sample_cost_data):
        """Thresholds and projection horizon are passed through."""
        analysis = analyze_cloud_costs(
            sample_cost_data, sensitivity_threshold=200, growth_threshold=65, months_to_project=1
        )

        assert [(a.service, a.month) for a in analysis.anomalies] == [("Lambda", "Maio/2024")]
        assert [trend.service for trend in analysis.growth_trends] == ["EC2 > Instâncias"]
        assert len(analysis.projections) == 1

    def test_input_not_mutated(self, sample_cost_data):
        """Analysis leaves the cost data untouched."""
        before = sample_cost_data.to_dict()

        analyze_cloud_costs(sample_cost_data)

        assert sample_cost_data.to_dict() == before

    def test_wire_format(self, sample_cost_data):
        """The analysis serializes to JSON with camelCase keys."""
        payload = analyze_cloud_costs(sample_cost_data).to_dict()

        assert set(payload) == {
            "totalCost",
            "trends",
            "topServices",
            "monthlyComparison",
            "costBreakdown",
            "insights",
            "anomalies",
            "periodComparison",
            "growthTrends",
            "projections",
        }
        assert "percentChange" not in payload["trends"][0]
        assert payload["periodComparison"]["currentPeriod"]["name"] == "Período Atual"
        assert json.loads(json.dumps(payload)) == payload

    def test_single_month(self, make_cost_data):
        """One month of data still produces an analysis."""
        analysis = analyze_cloud_costs(make_cost_data({"EC2": [100]}))

        assert analysis.anomalies == []
        assert analysis.projections == []
        assert analysis.growth_trends == []
        assert analysis.insights

    def test_invalid_threshold(self, sample_cost_data):
        """The anomaly threshold must be positive."""
        with pytest.raises(ValueError):
            CostAnalyzer(sample_cost_data, sensitivity_threshold=0)

    def test_invalid_projection(self, sample_cost_data):
        """The projection horizon cannot be negative."""
        with pytest.raises(ValueError):
            CostAnalyzer(sample_cost_data, months_to_project=-2)

    def test_unexpected_failure_wrapped(self, sample_cost_data):
        """Unexpected errors surface as AnalysisError with the cause attached."""
        with patch("cost_analyzer.compare_periods", side_effect=RuntimeError("boom")):
            with pytest.raises(AnalysisError, match="boom") as exc_info:
                CostAnalyzer(sample_cost_data).analyze()

        assert isinstance(exc_info.value.__cause__, RuntimeError)
