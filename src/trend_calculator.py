"""Trend Calculator - Monthly cost trends, top services and cost breakdown."""

import logging
from typing import Dict, List, Optional

import polars as pl

from cost_model import (
    BreakdownItem,
    CostBreakdown,
    CostTrend,
    ServiceAnalysis,
    ServiceCost,
    build_cost_frame,
    window_totals,
)

logger = logging.getLogger(__name__)

TOP_SERVICES_LIMIT = 5
BREAKDOWN_WINDOW_MONTHS = 3


def percent_change(cost: float, previous_cost: float) -> Optional[float]:
    """Month-over-month change in percent, or None when there is no prior cost."""
    if previous_cost == 0:
        return None
    return (cost - previous_cost) / previous_cost * 100


def _build_trend(months: List[str], costs: Dict[str, float]) -> List[CostTrend]:
    trends = []
    for index, month in enumerate(months):
        cost = costs.get(month, 0.0)
        trend = CostTrend(month=month, cost=cost)
        if index > 0:
            trend.percent_change = percent_change(cost, costs.get(months[index - 1], 0.0))
        trends.append(trend)
    return trends


def calculate_cost_trends(months: List[str], totals_by_month: Dict[str, float]) -> List[CostTrend]:
    """
    Calculate the total cost trend, one entry per month.

    Args:
        months: Chronologically ordered month labels
        totals_by_month: Total cost per month

    Returns:
        List of CostTrend; percent_change is None for the first month and
        whenever the previous month cost nothing
    """
    return _build_trend(months, totals_by_month)


def _root_totals(services: List[ServiceCost], months: List[str]) -> List[float]:
    """Sum each root service over the given months, in service order."""
    if not months:
        return [0.0] * len(services)
    frame = build_cost_frame(services, months).filter(pl.col("level") == "service")
    return window_totals(frame, {"cost": months})["cost"].to_list()


def identify_top_services(
    services: List[ServiceCost],
    months: List[str],
    total_cost: float,
    limit: int = TOP_SERVICES_LIMIT,
) -> List[ServiceAnalysis]:
    """
    Rank root services by total cost.

    Args:
        services: Root services
        months: Ordered month labels
        total_cost: Grand total used for percent_of_total (0 yields 0%)
        limit: Number of services to return

    Returns:
        Top services by total cost descending; ties keep the original order
    """
    totals = _root_totals(services, months)

    analyses = []
    for service, service_total in zip(services, totals):
        analyses.append(
            ServiceAnalysis(
                name=service.name,
                total_cost=service_total,
                percent_of_total=(service_total / total_cost * 100) if total_cost else 0.0,
                trend=_build_trend(months, service.costs),
            )
        )

    ranked = sorted(analyses, key=lambda analysis: analysis.total_cost, reverse=True)
    return ranked[:limit]


def calculate_cost_breakdown(
    services: List[ServiceCost], months: List[str], window: int = BREAKDOWN_WINDOW_MONTHS
) -> CostBreakdown:
    """
    Calculate each root service's share of cost over the most recent months.

    Args:
        services: Root services
        months: Ordered month labels
        window: Number of trailing months to consider

    Returns:
        CostBreakdown sorted by cost descending; percentages are 0 when the
        window has no cost at all
    """
    recent_months = months[-window:] if window > 0 else []
    costs = _root_totals(services, recent_months)
    window_total = sum(costs)

    items = [
        BreakdownItem(
            name=service.name,
            cost=cost,
            percentage=(cost / window_total * 100) if window_total else 0.0,
        )
        for service, cost in zip(services, costs)
    ]

    logger.debug(f"Cost breakdown over {recent_months}: total {window_total:,.2f}")
    return CostBreakdown(services=sorted(items, key=lambda item: item.cost, reverse=True))
