"""Anomaly Detector - Flags cost deviations from the trailing average and rapid growth."""

import logging
import math
from typing import List

from cost_model import CloudCostData, CostAnomaly, GrowthTrend, ServiceCost

logger = logging.getLogger(__name__)

MIN_MONTHS = 3
EVALUATED_MONTHS = 3
BASELINE_MONTHS = 3
# Costs below this are noise and never flagged or used as a growth base
NOISE_FLOOR = 10.0

SEVERITY_ORDER = {"high": 3, "medium": 2, "low": 1}


def classify_severity(percent_deviation: float) -> str:
    """Map a deviation to high (>=100%), medium (>=50%) or low."""
    magnitude = abs(percent_deviation)
    if magnitude >= 100:
        return "high"
    if magnitude >= 50:
        return "medium"
    return "low"


def _anomaly_message(service_name: str, month: str, percent_deviation: float) -> str:
    direction = "Aumento" if percent_deviation > 0 else "Redução"
    return (
        f"{direction} anômalo de {abs(percent_deviation):.1f}% nos custos de {service_name} "
        f"em {month} em relação à média dos meses anteriores."
    )


def _service_anomalies(
    service: ServiceCost,
    service_name: str,
    months: List[str],
    sensitivity_threshold: float,
) -> List[CostAnomaly]:
    costs = [service.cost_for(month) for month in months]
    if sum(1 for cost in costs if cost > 0) < MIN_MONTHS:
        logger.debug(f"Skipping {service_name}: fewer than {MIN_MONTHS} months with cost")
        return []

    anomalies = []
    first_evaluated = max(0, len(months) - EVALUATED_MONTHS)

    for month_index in range(first_evaluated, len(months)):
        # With exactly three months the first one has no history to compare against
        if month_index == first_evaluated and len(months) <= EVALUATED_MONTHS:
            continue

        current_cost = costs[month_index]
        if current_cost < NOISE_FLOOR:
            continue

        baseline = costs[max(0, month_index - BASELINE_MONTHS):month_index]
        expected_cost = sum(baseline) / len(baseline)
        if expected_cost == 0:
            continue

        percent_deviation = (current_cost - expected_cost) / expected_cost * 100
        if abs(percent_deviation) < sensitivity_threshold:
            continue

        month = months[month_index]
        anomalies.append(
            CostAnomaly(
                month=month,
                service=service_name,
                expected_cost=expected_cost,
                actual_cost=current_cost,
                percent_deviation=percent_deviation,
                severity=classify_severity(percent_deviation),
                message=_anomaly_message(service_name, month, percent_deviation),
            )
        )

    return anomalies


def detect_cost_anomalies(
    data: CloudCostData, sensitivity_threshold: float = 25
) -> List[CostAnomaly]:
    """
    Detect months whose cost deviates from the average of the preceding months.

    Only the last three months are evaluated, for every root service and,
    independently, every sub-service ("Parent > Child").

    Args:
        data: Parsed cost data
        sensitivity_threshold: Minimum absolute deviation in percent (must be > 0)

    Returns:
        Anomalies ordered by severity, then by absolute deviation descending
    """
    if sensitivity_threshold <= 0:
        raise ValueError(f"sensitivity_threshold must be positive, got {sensitivity_threshold}")

    if len(data.months) < MIN_MONTHS:
        logger.info(f"Anomaly detection needs {MIN_MONTHS} months, got {len(data.months)}")
        return []

    logger.info("Detecting cost anomalies...")

    anomalies: List[CostAnomaly] = []
    for name, _, service in data.iter_entries():
        anomalies.extend(_service_anomalies(service, name, data.months, sensitivity_threshold))

    anomalies.sort(
        key=lambda anomaly: (SEVERITY_ORDER[anomaly.severity], abs(anomaly.percent_deviation)),
        reverse=True,
    )

    logger.info(f"Found {len(anomalies)} anomalous service/month combinations")
    return anomalies


def _average_growth(service: ServiceCost, months: List[str]) -> float:
    growth_rates = []
    for previous_month, current_month in zip(months, months[1:]):
        previous_cost = service.cost_for(previous_month)
        if previous_cost < NOISE_FLOOR:
            continue
        growth_rates.append((service.cost_for(current_month) - previous_cost) / previous_cost * 100)

    return sum(growth_rates) / len(growth_rates) if growth_rates else 0.0


def detect_rapid_growth_trends(
    data: CloudCostData, months_to_analyze: int = 3, growth_threshold: float = 15
) -> List[GrowthTrend]:
    """
    Find services whose average month-over-month growth exceeds a threshold.

    Args:
        data: Parsed cost data
        months_to_analyze: Number of trailing months to analyze
        growth_threshold: Minimum average growth in percent

    Returns:
        Growing services (root and sub-services) by average growth descending
    """
    if months_to_analyze < 1:
        raise ValueError(f"months_to_analyze must be at least 1, got {months_to_analyze}")

    if len(data.months) < 2:
        return []

    recent_months = data.months[-min(months_to_analyze, len(data.months)):]

    trends = []
    for name, _, service in data.iter_entries():
        average_growth = _average_growth(service, recent_months)
        if average_growth >= growth_threshold:
            trends.append(
                GrowthTrend(service=name, average_growth=average_growth, months=list(recent_months))
            )

    trends.sort(key=lambda trend: trend.average_growth, reverse=True)
    logger.info(f"Found {len(trends)} services growing at least {growth_threshold}% per month")
    return trends


def calculate_outlier_threshold(values: List[float], factor: float = 1.5) -> float:
    """
    Upper fence for outlier detection using the interquartile range.

    Args:
        values: Observed values
        factor: IQR multiplier

    Returns:
        q3 + iqr * factor
    """
    if not values:
        raise ValueError("values must not be empty")

    ordered = sorted(values)
    q1 = ordered[math.floor(len(ordered) * 0.25)]
    q3 = ordered[math.floor(len(ordered) * 0.75)]
    return q3 + (q3 - q1) * factor
