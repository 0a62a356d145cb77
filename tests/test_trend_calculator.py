"""Tests for trend, top service and breakdown calculations."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from trend_calculator import (
    calculate_cost_breakdown,
    calculate_cost_trends,
    identify_top_services,
    percent_change,
)


class TestCostTrends:
    """Test cases for calculate_cost_trends."""

    def test_percent_change_sequence(self, make_cost_data):
        """Costs 100, 150, 150 give no change, +50% and 0%."""
        data = make_cost_data({"EC2": [100, 150, 150]})

        trends = calculate_cost_trends(data.months, data.totals_by_month)

        assert [trend.cost for trend in trends] == [100, 150, 150]
        assert trends[0].percent_change is None
        assert trends[1].percent_change == pytest.approx(50.0)
        assert trends[2].percent_change == pytest.approx(0.0)

    def test_previous_zero(self, make_cost_data):
        """A month after a zero month has no percent change."""
        data = make_cost_data({"EC2": [0, 50]})

        trends = calculate_cost_trends(data.months, data.totals_by_month)

        assert trends[1].percent_change is None

    def test_single_month(self, make_cost_data):
        """One month yields one trend entry without change."""
        data = make_cost_data({"EC2": [42]})

        trends = calculate_cost_trends(data.months, data.totals_by_month)

        assert len(trends) == 1
        assert trends[0].percent_change is None

    def test_percent_change_helper(self):
        """Decreases are negative."""
        assert percent_change(50, 100) == pytest.approx(-50.0)
        assert percent_change(50, 0) is None


class TestTopServices:
    """Test cases for identify_top_services."""

    def test_ranking_and_limit(self, make_cost_data):
        """Only the five most expensive services are returned, largest first."""
        data = make_cost_data({f"S{i}": [i, i] for i in range(1, 8)})
        total = sum(data.totals_by_month.values())

        top = identify_top_services(data.services, data.months, total)

        assert [service.name for service in top] == ["S7", "S6", "S5", "S4", "S3"]
        assert top[0].total_cost == pytest.approx(14.0)
        assert top[0].percent_of_total == pytest.approx(14 / 56 * 100)

    def test_ties_keep_original_order(self, make_cost_data):
        """Services with equal totals keep their input order."""
        data = make_cost_data({"B": [10], "A": [10], "C": [20]})

        top = identify_top_services(data.services, data.months, 40)

        assert [service.name for service in top] == ["C", "B", "A"]

    def test_zero_total(self, make_cost_data):
        """A zero grand total gives zero percentages."""
        data = make_cost_data({"EC2": [0, 0]})

        top = identify_top_services(data.services, data.months, 0)

        assert top[0].percent_of_total == 0.0

    def test_service_trend(self, make_cost_data):
        """Each service carries its own month-over-month trend."""
        data = make_cost_data({"EC2": [100, 120]})

        top = identify_top_services(data.services, data.months, 220)

        assert top[0].trend[1].percent_change == pytest.approx(20.0)


class TestCostBreakdown:
    """Test cases for calculate_cost_breakdown."""

    def test_last_three_months_only(self, make_cost_data):
        """Older months do not count toward the breakdown."""
        data = make_cost_data({"EC2": [1000, 10, 10, 10], "S3": [0, 30, 30, 30]})

        breakdown = calculate_cost_breakdown(data.services, data.months)

        assert [item.name for item in breakdown.services] == ["S3", "EC2"]
        assert breakdown.services[0].cost == pytest.approx(90.0)
        assert breakdown.services[0].percentage == pytest.approx(75.0)
        assert breakdown.services[1].percentage == pytest.approx(25.0)

    def test_fewer_months_than_window(self, make_cost_data):
        """With fewer than three months all of them are used."""
        data = make_cost_data({"EC2": [10, 30]})

        breakdown = calculate_cost_breakdown(data.services, data.months)

        assert breakdown.services[0].cost == pytest.approx(40.0)
        assert breakdown.services[0].percentage == pytest.approx(100.0)

    def test_zero_window_total(self, make_cost_data):
        """A window without cost gives zero percentages."""
        data = make_cost_data({"EC2": [0, 0, 0], "S3": [0, 0, 0]})

        breakdown = calculate_cost_breakdown(data.services, data.months)

        assert [item.percentage for item in breakdown.services] == [0.0, 0.0]

    def test_sub_services_excluded(self, make_cost_data):
        """Only root services appear in the breakdown."""
        data = make_cost_data({"EC2": [10]}, sub_services={"EC2": {"Disk": [5]}})

        breakdown = calculate_cost_breakdown(data.services, data.months)

        assert [item.name for item in breakdown.services] == ["EC2"]
