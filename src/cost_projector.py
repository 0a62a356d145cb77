"""Cost Projector - Extrapolates monthly totals from the recent average growth rate."""

import logging
from typing import List, Tuple

import polars as pl

from cost_model import CloudCostData, CostProjection
from month_labels import next_month_labels

logger = logging.getLogger(__name__)

MIN_HISTORY_MONTHS = 3
GROWTH_HISTORY_MONTHS = 6


def growth_statistics(costs: List[float]) -> Tuple[float, float]:
    """
    Average month-over-month growth ratio and its population standard deviation.

    Steps whose previous cost is not positive are ignored.

    Args:
        costs: Consecutive monthly totals

    Returns:
        Tuple of (average_growth_rate, std_dev); both 0 when no step qualifies
    """
    rates = [
        (current - previous) / previous
        for previous, current in zip(costs, costs[1:])
        if previous > 0
    ]
    if not rates:
        return 0.0, 0.0

    series = pl.Series("growth_rate", rates, dtype=pl.Float64)
    return float(series.mean()), float(series.std(ddof=0))


def project_future_costs(data: CloudCostData, months_to_project: int = 3) -> List[CostProjection]:
    """
    Project total cost for the months after the last known month.

    Each projected month compounds on the previous projection rather than on
    the last known cost.

    Args:
        data: Parsed cost data
        months_to_project: Number of months to project

    Returns:
        Projections with lower/upper bounds at one standard deviation of growth;
        empty when there are fewer than three months of history
    """
    if months_to_project < 0:
        raise ValueError(f"months_to_project must not be negative, got {months_to_project}")

    if len(data.months) < MIN_HISTORY_MONTHS:
        logger.info(f"Projection needs {MIN_HISTORY_MONTHS} months, got {len(data.months)}")
        return []

    recent_months = data.months[-GROWTH_HISTORY_MONTHS:]
    average_growth, std_dev = growth_statistics(
        [data.totals_by_month.get(month, 0.0) for month in recent_months]
    )
    logger.info(f"Projecting with average growth {average_growth:.2%} (std {std_dev:.2%})")

    last_month = data.months[-1]
    last_cost = data.totals_by_month.get(last_month, 0.0)

    projections = []
    for month in next_month_labels(last_month, months_to_project):
        projected_cost = last_cost * (1 + average_growth)
        projections.append(
            CostProjection(
                month=month,
                projected_cost=projected_cost,
                lower_bound=max(0.0, last_cost * (1 + average_growth - std_dev)),
                upper_bound=last_cost * (1 + average_growth + std_dev),
            )
        )
        last_cost = projected_cost

    return projections
