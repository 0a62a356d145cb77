"""Cost Analyzer - Runs the full analytics pipeline over parsed cloud cost data."""

import logging
from typing import Dict, List

from anomaly_detector import detect_cost_anomalies, detect_rapid_growth_trends
from cost_model import CloudCostData, CostAnalysis, CostComparison, PeriodSummary
from cost_projector import project_future_costs
from errors import AnalysisError, CostReportError
from insight_generator import generate_insights
from period_comparator import compare_periods
from trend_calculator import calculate_cost_breakdown, calculate_cost_trends, identify_top_services

logger = logging.getLogger(__name__)

COMPARISON_WINDOW_MONTHS = 3


def compare_time_periods(months: List[str], totals_by_month: Dict[str, float]) -> CostComparison:
    """
    Compare the last three months with the three months before them.

    Args:
        months: Ordered month labels
        totals_by_month: Total cost per month

    Returns:
        CostComparison; percent_change is 0 when the previous window cost nothing
    """
    window = COMPARISON_WINDOW_MONTHS
    recent_months = months[-window:]
    previous_months = months[max(0, len(months) - 2 * window):max(0, len(months) - window)]

    recent_cost = sum(totals_by_month.get(month, 0.0) for month in recent_months)
    previous_cost = sum(totals_by_month.get(month, 0.0) for month in previous_months)

    return CostComparison(
        current_period=PeriodSummary(months=list(recent_months), cost=recent_cost),
        previous_period=PeriodSummary(months=list(previous_months), cost=previous_cost),
        percent_change=(
            (recent_cost - previous_cost) / previous_cost * 100 if previous_cost > 0 else 0.0
        ),
    )


class CostAnalyzer:
    """Analyze monthly cloud costs: trends, anomalies, period comparison and projections."""

    def __init__(
        self,
        data: CloudCostData,
        sensitivity_threshold: float = 25,
        growth_threshold: float = 15,
        months_to_project: int = 3,
    ) -> None:
        """
        Initialize the analyzer.

        Args:
            data: Parsed cost data (never modified)
            sensitivity_threshold: Anomaly threshold in percent (must be > 0)
            growth_threshold: Average monthly growth in percent that flags a service
            months_to_project: Number of months to project
        """
        if sensitivity_threshold <= 0:
            raise ValueError(f"sensitivity_threshold must be positive, got {sensitivity_threshold}")
        if months_to_project < 0:
            raise ValueError(f"months_to_project must not be negative, got {months_to_project}")

        self.data = data
        self.sensitivity_threshold = sensitivity_threshold
        self.growth_threshold = growth_threshold
        self.months_to_project = months_to_project
        logger.info(
            f"Initialized analyzer with {len(data.services)} services "
            f"across {len(data.months)} months"
        )

    def get_total_cost(self) -> float:
        """Total cost across all months."""
        return float(sum(self.data.totals_by_month.values()))

    def analyze(self) -> CostAnalysis:
        """
        Compute every dashboard section from scratch.

        Returns:
            CostAnalysis for the data

        Raises:
            AnalysisError: If any step fails unexpectedly
        """
        data = self.data
        try:
            total_cost = self.get_total_cost()

            logger.info("Calculating cost trends...")
            trends = calculate_cost_trends(data.months, data.totals_by_month)
            top_services = identify_top_services(data.services, data.months, total_cost)
            monthly_comparison = compare_time_periods(data.months, data.totals_by_month)
            cost_breakdown = calculate_cost_breakdown(data.services, data.months)

            anomalies = detect_cost_anomalies(data, self.sensitivity_threshold)
            growth_trends = detect_rapid_growth_trends(
                data, growth_threshold=self.growth_threshold
            )
            period_comparison = compare_periods(data)
            projections = project_future_costs(data, self.months_to_project)

            insights = generate_insights(
                trends, top_services, monthly_comparison, cost_breakdown, anomalies
            )
        except CostReportError:
            raise
        except Exception as e:
            logger.exception("Cost analysis failed")
            raise AnalysisError(f"Cost analysis failed: {e}") from e

        logger.info(f"Analysis complete: {len(anomalies)} anomalies, {len(insights)} insights")
        return CostAnalysis(
            total_cost=total_cost,
            trends=trends,
            top_services=top_services,
            monthly_comparison=monthly_comparison,
            cost_breakdown=cost_breakdown,
            insights=insights,
            anomalies=anomalies,
            period_comparison=period_comparison,
            growth_trends=growth_trends,
            projections=projections,
        )


def analyze_cloud_costs(data: CloudCostData, **options) -> CostAnalysis:
    """Analyze cost data with a fresh CostAnalyzer. Options are passed to its constructor."""
    return CostAnalyzer(data, **options).analyze()
