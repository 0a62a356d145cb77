"""Insight Generator - Composes dashboard observations from the computed analytics."""

from typing import List

from cost_model import CostAnomaly, CostBreakdown, CostComparison, CostTrend, ServiceAnalysis

CLOSING_RECOMMENDATION = (
    "Recomendamos revisar regularmente seus recursos não utilizados e considerar reservas "
    "para recursos de uso constante para otimizar custos."
)


def _overall_trend(trends: List[CostTrend]) -> List[str]:
    if not trends or trends[-1].percent_change is None:
        return []

    change = trends[-1].percent_change
    if change > 5:
        return [
            f"Os custos aumentaram {change:.1f}% no último mês. "
            "Recomendamos uma análise detalhada para identificar as causas."
        ]
    if change < -5:
        return [
            f"Os custos diminuíram {abs(change):.1f}% no último mês. "
            "Continue monitorando para manter esta tendência positiva."
        ]
    return [f"Os custos se mantiveram estáveis no último mês (variação de {change:.1f}%)."]


def _period_comparison(comparison: CostComparison) -> List[str]:
    change = comparison.percent_change
    if change > 10:
        return [
            f"Os custos nos últimos 3 meses aumentaram {change:.1f}% em relação ao período "
            "anterior. Considere revisar sua estratégia de uso de recursos."
        ]
    if change < -10:
        return [
            f"Os custos nos últimos 3 meses diminuíram {abs(change):.1f}% em relação ao período "
            "anterior. Suas otimizações estão funcionando bem."
        ]
    return []


def _top_services(top_services: List[ServiceAnalysis]) -> List[str]:
    if not top_services:
        return []

    top = top_services[0]
    advice = (
        "Considere otimizar este serviço para reduzir custos significativamente."
        if top.percent_of_total > 30
        else "Continue monitorando este serviço."
    )
    insights = [f"{top.name} representa {top.percent_of_total:.1f}% dos seus custos totais. {advice}"]

    growing = [
        service.name
        for service in top_services
        if service.trend
        and service.trend[-1].percent_change is not None
        and service.trend[-1].percent_change > 15
    ]
    if growing:
        insights.append(
            "Os seguintes serviços apresentaram crescimento significativo no último mês: "
            f"{', '.join(growing)}. Recomendamos uma análise detalhada."
        )
    return insights


def _concentration(cost_breakdown: CostBreakdown) -> List[str]:
    top_three = cost_breakdown.services[:3]
    share = sum(item.percentage for item in top_three)
    if share <= 70:
        return []
    names = ", ".join(item.name for item in top_three)
    return [
        f"Os três principais serviços ({names}) representam {share:.1f}% dos seus custos. "
        "Sua infraestrutura está concentrada em poucos serviços."
    ]


def _anomaly_summary(anomalies: List[CostAnomaly]) -> List[str]:
    if not anomalies:
        return []

    insights = []
    high_severity = sum(1 for anomaly in anomalies if anomaly.severity == "high")
    if high_severity:
        insights.append(
            f"Detectamos {high_severity} anomalias de alta severidade nos custos. "
            "Recomendamos verificar imediatamente os serviços afetados."
        )

    # max() keeps the first of equally large deviations
    strongest = max(anomalies, key=lambda anomaly: abs(anomaly.percent_deviation))
    direction = "aumento" if strongest.percent_deviation > 0 else "redução"
    insights.append(
        f"A anomalia mais significativa foi um {direction} de "
        f"{abs(strongest.percent_deviation):.1f}% em {strongest.service} durante {strongest.month}."
    )
    return insights


def generate_insights(
    trends: List[CostTrend],
    top_services: List[ServiceAnalysis],
    comparison: CostComparison,
    cost_breakdown: CostBreakdown,
    anomalies: List[CostAnomaly],
) -> List[str]:
    """
    Build the ordered list of natural-language observations shown on the dashboard.

    Order: overall trend, period comparison, top service concentration, growth
    alert, breakdown concentration, anomaly summary, closing recommendation.
    """
    return (
        _overall_trend(trends)
        + _period_comparison(comparison)
        + _top_services(top_services)
        + _concentration(cost_breakdown)
        + _anomaly_summary(anomalies)
        + [CLOSING_RECOMMENDATION]
    )
