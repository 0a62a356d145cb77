"""Period Comparator - Contrasts two contiguous month windows service by service."""

import logging
import math
from typing import List, Tuple

from cost_model import (
    BreakdownItem,
    CloudCostData,
    PeriodComparisonResult,
    PeriodData,
    ServiceComparison,
    TotalChange,
    window_totals,
)

logger = logging.getLogger(__name__)

CURRENT_PERIOD_NAME = "Período Atual"
PREVIOUS_PERIOD_NAME = "Período Anterior"
TOP_CHANGES_LIMIT = 5


def split_periods(
    months: List[str], current_period_months: int = 3, previous_period_months: int = 3
) -> Tuple[List[str], List[str]]:
    """
    Split months into a previous and a current window.

    When there are fewer months than both windows need, the current window
    takes the larger half and the previous window the rest.

    Returns:
        Tuple of (current_months, previous_months)
    """
    total = len(months)
    if total < current_period_months + previous_period_months:
        current_period_months = math.ceil(total / 2)
        previous_period_months = total - current_period_months
        logger.info(
            f"Only {total} months available, comparing {current_period_months} "
            f"vs {previous_period_months} months"
        )

    current_start = total - current_period_months
    previous_start = max(0, current_start - previous_period_months)
    return months[current_start:], months[previous_start:current_start]


def _share(cost: float, total: float) -> float:
    return (cost / total * 100) if total > 0 else 0.0


def _percentage_change(current: float, previous: float) -> float:
    if previous > 0:
        return (current - previous) / previous * 100
    return 100.0 if current > 0 else 0.0


def _period_data(name: str, months: List[str], rows: List[dict], column: str) -> PeriodData:
    total_cost = sum(row[column] for row in rows if row["level"] == "service")

    breakdown = [
        BreakdownItem(name=row["name"], cost=row[column], percentage=_share(row[column], total_cost))
        for row in rows
        if row[column] > 0
    ]
    breakdown.sort(key=lambda item: item.cost, reverse=True)

    return PeriodData(name=name, months=list(months), total_cost=total_cost, service_breakdown=breakdown)


def compare_periods(
    data: CloudCostData, current_period_months: int = 3, previous_period_months: int = 3
) -> PeriodComparisonResult:
    """
    Compare the most recent months against the months right before them.

    Args:
        data: Parsed cost data
        current_period_months: Size of the current window
        previous_period_months: Size of the previous window

    Returns:
        PeriodComparisonResult with per-period breakdowns, per-service changes,
        top increases/decreases and generated insights
    """
    if current_period_months < 0 or previous_period_months < 0:
        raise ValueError("Period sizes must not be negative")

    current_months, previous_months = split_periods(
        data.months, current_period_months, previous_period_months
    )
    logger.info(f"Comparing {current_months} against {previous_months}")

    rows = window_totals(
        data.to_frame(), {"current": current_months, "previous": previous_months}
    ).to_dicts()

    current_period = _period_data(CURRENT_PERIOD_NAME, current_months, rows, "current")
    previous_period = _period_data(PREVIOUS_PERIOD_NAME, previous_months, rows, "previous")

    total_change = TotalChange(
        absolute=current_period.total_cost - previous_period.total_cost,
        percentage=(
            (current_period.total_cost - previous_period.total_cost)
            / previous_period.total_cost
            * 100
            if previous_period.total_cost > 0
            else 0.0
        ),
    )

    service_comparison = [
        ServiceComparison(
            name=row["name"],
            current_period_cost=row["current"],
            previous_period_cost=row["previous"],
            absolute_change=row["current"] - row["previous"],
            percentage_change=_percentage_change(row["current"], row["previous"]),
            current_period_percentage=_share(row["current"], current_period.total_cost),
            previous_period_percentage=_share(row["previous"], previous_period.total_cost),
        )
        for row in rows
        if row["current"] > 0 or row["previous"] > 0
    ]
    service_comparison.sort(key=lambda item: abs(item.absolute_change), reverse=True)

    top_increases = sorted(
        (item for item in service_comparison if item.percentage_change > 0),
        key=lambda item: item.percentage_change,
        reverse=True,
    )[:TOP_CHANGES_LIMIT]
    top_decreases = sorted(
        (item for item in service_comparison if item.percentage_change < 0),
        key=lambda item: item.percentage_change,
    )[:TOP_CHANGES_LIMIT]

    insights = generate_comparison_insights(
        total_change, service_comparison, top_increases, top_decreases
    )

    return PeriodComparisonResult(
        current_period=current_period,
        previous_period=previous_period,
        total_change=total_change,
        service_comparison=service_comparison,
        top_increases=top_increases,
        top_decreases=top_decreases,
        insights=insights,
    )


def generate_comparison_insights(
    total_change: TotalChange,
    service_comparison: List[ServiceComparison],
    top_increases: List[ServiceComparison],
    top_decreases: List[ServiceComparison],
) -> List[str]:
    """Describe the period comparison in a fixed sequence of sentences."""
    insights = []

    if total_change.percentage > 10:
        insights.append(
            f"Os custos aumentaram {total_change.percentage:.1f}% em relação ao período anterior. "
            "Recomendamos analisar os serviços com maior crescimento."
        )
    elif total_change.percentage < -10:
        insights.append(
            f"Os custos diminuíram {abs(total_change.percentage):.1f}% em relação ao período "
            "anterior. Suas otimizações estão funcionando bem."
        )
    else:
        insights.append(
            "Os custos se mantiveram relativamente estáveis entre os períodos "
            f"(variação de {total_change.percentage:.1f}%)."
        )

    significant_increases = [
        item for item in top_increases if item.percentage_change > 20 and item.absolute_change > 100
    ]
    if significant_increases:
        names = ", ".join(item.name for item in significant_increases[:3])
        insights.append(
            f"Os serviços com maior aumento percentual foram: {names}. "
            "Recomendamos revisar o uso destes serviços."
        )

    significant_decreases = [
        item
        for item in top_decreases
        if item.percentage_change < -20 and abs(item.absolute_change) > 100
    ]
    if significant_decreases:
        names = ", ".join(item.name for item in significant_decreases[:3])
        insights.append(
            f"Os serviços com maior redução percentual foram: {names}. "
            "Continue aplicando as mesmas estratégias de otimização."
        )

    def share_shift(item: ServiceComparison) -> float:
        return abs(item.current_period_percentage - item.previous_period_percentage)

    shifted = sorted(
        (item for item in service_comparison if share_shift(item) > 5),
        key=share_shift,
        reverse=True,
    )
    if shifted:
        item = shifted[0]
        direction = (
            "aumentou"
            if item.current_period_percentage > item.previous_period_percentage
            else "diminuiu"
        )
        insights.append(
            f"A participação do serviço {item.name} no custo total {direction} "
            f"{share_shift(item):.1f} pontos percentuais (de "
            f"{item.previous_period_percentage:.1f}% para {item.current_period_percentage:.1f}%)."
        )

    new_services = [
        item
        for item in service_comparison
        if item.previous_period_cost == 0
        and item.current_period_cost > 0
        and item.current_period_percentage > 1
    ]
    if new_services:
        insights.append(
            f"Foram identificados {len(new_services)} novos serviços com custo significativo no "
            "período atual. Verifique se estes serviços estão alinhados com suas necessidades "
            "de negócio."
        )

    discontinued = [
        item
        for item in service_comparison
        if item.current_period_cost == 0
        and item.previous_period_cost > 0
        and item.previous_period_percentage > 1
    ]
    if discontinued:
        insights.append(
            f"{len(discontinued)} serviços com custo significativo no período anterior não "
            "apresentaram custos no período atual. Verifique se isto foi intencional."
        )

    return insights
