"""Cost Model - Normalized cloud cost data and the analysis result types."""

import logging
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Dict, List, Optional

import polars as pl

logger = logging.getLogger(__name__)

SUB_SERVICE_SEPARATOR = " > "

FRAME_SCHEMA = {
    "entry": pl.Int64,
    "name": pl.String,
    "level": pl.String,
    "month": pl.String,
    "month_index": pl.Int64,
    "cost": pl.Float64,
}


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_wire(value: Any) -> Any:
    """
    Convert model objects to JSON-compatible structures with camelCase keys.

    Dataclass attributes that are None are omitted rather than emitted as null.
    """
    if is_dataclass(value) and not isinstance(value, type):
        result = {}
        for item in fields(value):
            attr = getattr(value, item.name)
            if attr is None:
                continue
            result[_camel_case(item.name)] = to_wire(attr)
        return result
    if isinstance(value, dict):
        return {key: to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(item) for item in value]
    return value


def display_name(service_name: str, parent_name: Optional[str] = None) -> str:
    """Render a service name, prefixing sub-services with their parent."""
    if parent_name:
        return f"{parent_name}{SUB_SERVICE_SEPARATOR}{service_name}"
    return service_name


@dataclass
class ServiceCost:
    """Monthly cost series of a service or sub-service."""

    name: str
    costs: Dict[str, float] = field(default_factory=dict)
    usages: Dict[str, str] = field(default_factory=dict)
    sub_services: List["ServiceCost"] = field(default_factory=list)

    def cost_for(self, month: str) -> float:
        return self.costs.get(month, 0.0)

    def total_for(self, months: List[str]) -> float:
        return sum(self.cost_for(month) for month in months)

    def zero_fill(self, months: List[str]) -> None:
        """Ensure a cost entry exists for every month, here and in sub-services."""
        for month in months:
            self.costs.setdefault(month, 0.0)
        for sub_service in self.sub_services:
            sub_service.zero_fill(months)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name, "costs": dict(self.costs)}
        if self.usages:
            result["usages"] = dict(self.usages)
        result["subServices"] = [sub.to_dict() for sub in self.sub_services]
        return result


@dataclass(frozen=True)
class CloudCostData:
    """Cost tables of one uploaded export: root services, ordered months and totals."""

    services: List[ServiceCost]
    months: List[str]
    totals_by_month: Dict[str, float]

    def iter_entries(self):
        return iter_service_entries(self.services)

    def to_frame(self) -> pl.DataFrame:
        return build_cost_frame(self.services, self.months)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "services": [service.to_dict() for service in self.services],
            "months": list(self.months),
            "totalsByMonth": dict(self.totals_by_month),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "CloudCostData":
        """Rebuild cost data from its wire form (the output of to_dict)."""

        def build(item: Dict[str, Any]) -> ServiceCost:
            return ServiceCost(
                name=item["name"],
                costs={month: float(cost) for month, cost in item.get("costs", {}).items()},
                usages=dict(item.get("usages") or {}),
                sub_services=[build(sub) for sub in item.get("subServices") or []],
            )

        return cls(
            services=[build(item) for item in payload["services"]],
            months=list(payload["months"]),
            totals_by_month={m: float(v) for m, v in payload["totalsByMonth"].items()},
        )


def iter_service_entries(services: List[ServiceCost]):
    """
    Yield (display_name, level, service) for every service entry.

    Root services come first, each followed by its sub-services, whose
    display names are rendered "Parent > Child".
    """
    for service in services:
        yield service.name, "service", service
        for sub_service in service.sub_services:
            yield display_name(sub_service.name, service.name), "sub_service", sub_service


def build_cost_frame(services: List[ServiceCost], months: List[str]) -> pl.DataFrame:
    """
    Build a long-format Polars DataFrame with one row per (entry, month).

    Args:
        services: Root services (sub-services are flattened after their parent)
        months: Ordered month labels

    Returns:
        DataFrame with entry, name, level, month, month_index and cost columns
    """
    rows = []
    for entry, (name, level, service) in enumerate(iter_service_entries(services)):
        for index, month in enumerate(months):
            rows.append((entry, name, level, month, index, float(service.cost_for(month))))

    return pl.DataFrame(rows, schema=FRAME_SCHEMA, orient="row")


def window_totals(frame: pl.DataFrame, windows: Dict[str, List[str]]) -> pl.DataFrame:
    """
    Sum each service entry's cost over one or more month windows.

    Args:
        frame: Long-format frame from CloudCostData.to_frame()
        windows: Mapping of output column name to the months it covers

    Returns:
        DataFrame with entry, name, level and one cost column per window,
        in first-appearance (entry) order
    """
    aggregations = []
    for column, months in windows.items():
        # An empty window must still produce a 0.0 column for every entry
        in_window = pl.col("month").is_in(months) if months else pl.lit(False)
        aggregations.append(
            pl.when(in_window).then(pl.col("cost")).otherwise(0.0).sum().alias(column)
        )

    return frame.group_by(["entry", "name", "level"], maintain_order=True).agg(aggregations)


@dataclass
class CostTrend:
    month: str
    cost: float
    percent_change: Optional[float] = None


@dataclass
class ServiceAnalysis:
    name: str
    total_cost: float
    percent_of_total: float
    trend: List[CostTrend]


@dataclass
class PeriodSummary:
    months: List[str]
    cost: float


@dataclass
class CostComparison:
    current_period: PeriodSummary
    previous_period: PeriodSummary
    percent_change: float


@dataclass
class BreakdownItem:
    name: str
    cost: float
    percentage: float


@dataclass
class CostBreakdown:
    services: List[BreakdownItem]


@dataclass
class CostAnomaly:
    month: str
    service: str
    expected_cost: float
    actual_cost: float
    percent_deviation: float
    severity: str
    message: str


@dataclass
class GrowthTrend:
    service: str
    average_growth: float
    months: List[str]


@dataclass
class PeriodData:
    name: str
    months: List[str]
    total_cost: float
    service_breakdown: List[BreakdownItem]


@dataclass
class ServiceComparison:
    name: str
    current_period_cost: float
    previous_period_cost: float
    absolute_change: float
    percentage_change: float
    current_period_percentage: float
    previous_period_percentage: float


@dataclass
class TotalChange:
    absolute: float
    percentage: float


@dataclass
class PeriodComparisonResult:
    current_period: PeriodData
    previous_period: PeriodData
    total_change: TotalChange
    service_comparison: List[ServiceComparison]
    top_increases: List[ServiceComparison]
    top_decreases: List[ServiceComparison]
    insights: List[str]


@dataclass
class CostProjection:
    month: str
    projected_cost: float
    lower_bound: float
    upper_bound: float


@dataclass
class CostAnalysis:
    """Everything the dashboard shows for one export, recomputed on every call."""

    total_cost: float
    trends: List[CostTrend]
    top_services: List[ServiceAnalysis]
    monthly_comparison: CostComparison
    cost_breakdown: CostBreakdown
    insights: List[str]
    anomalies: List[CostAnomaly]
    period_comparison: PeriodComparisonResult
    growth_trends: List[GrowthTrend] = field(default_factory=list)
    projections: List[CostProjection] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return to_wire(self)
