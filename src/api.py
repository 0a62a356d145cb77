"""API - Upload and analyze request handling around the cost analytics engine.

These functions implement the JSON contracts of the upload and analyze
endpoints and return ``(body, status_code)`` pairs, leaving routing to
whatever web framework hosts them.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple, Union

from cost_analyzer import analyze_cloud_costs
from cost_model import CloudCostData, ServiceCost
from csv_parser import parse_cost_csv
from errors import AnalysisError, ParseError, ValidationError
from month_labels import month_sort_key, parse_month_label

logger = logging.getLogger(__name__)

ApiResponse = Tuple[Dict[str, Any], int]


def _error(message: str, status: int) -> ApiResponse:
    return {"success": False, "error": message}, status


def decode_upload(content: Union[bytes, str]) -> str:
    """Decode uploaded file content as UTF-8 text (a BOM is tolerated)."""
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValidationError("File must be UTF-8 encoded text") from e

    if not content or not content.strip():
        raise ValidationError("No file content received")
    return content


def handle_upload(content: Union[bytes, str], filename: Optional[str] = None) -> ApiResponse:
    """
    Parse an uploaded CSV export.

    Args:
        content: Raw file bytes or text
        filename: Original file name, checked for a .csv extension when given

    Returns:
        ({"success": True, "data": CloudCostData}, 200), or an error body with 400
    """
    try:
        if filename is not None and not filename.lower().endswith(".csv"):
            raise ValidationError(f"Expected a .csv file, got '{filename}'")

        data = parse_cost_csv(decode_upload(content))
    except (ParseError, ValidationError) as e:
        logger.error(f"Error processing upload: {e}")
        return _error(str(e), 400)

    return {"success": True, "data": data.to_dict()}, 200


def _coerce_cost(value: Any, where: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{where} must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError as e:
            raise ValidationError(f"{where} must be a number, got {value!r}") from e
    else:
        raise ValidationError(f"{where} must be a number")

    if not math.isfinite(number):
        raise ValidationError(f"{where} must be finite")
    if number < 0:
        raise ValidationError(f"{where} must not be negative, got {value!r}")
    return number


def _canonical_label(label: str, canonical: Dict[str, str]) -> Optional[str]:
    if label in canonical:
        return canonical[label]
    parsed = parse_month_label(label)
    return parsed[0] if parsed else None


def _parse_months(raw_months: Any) -> Tuple[List[str], Dict[str, str]]:
    if not isinstance(raw_months, list) or not raw_months:
        raise ValidationError("'months' must be a non-empty list of month labels")

    canonical: Dict[str, str] = {}
    months: List[str] = []
    for raw in raw_months:
        parsed = parse_month_label(raw) if isinstance(raw, str) else None
        if parsed is None:
            raise ValidationError(f"Invalid month label: {raw!r}")
        canonical[raw] = parsed[0]
        if parsed[0] not in months:
            months.append(parsed[0])

    ordered = sorted(months, key=month_sort_key)
    if ordered != months:
        logger.warning("Request months were not in chronological order; sorting them")
    return ordered, canonical


def _parse_service(
    raw: Any,
    months: List[str],
    canonical: Dict[str, str],
    where: str,
    allow_children: bool = True,
) -> ServiceCost:
    if not isinstance(raw, dict):
        raise ValidationError(f"{where} must be an object")

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"{where}.name must be a non-empty string")

    raw_costs = raw.get("costs") or {}
    if not isinstance(raw_costs, dict):
        raise ValidationError(f"{where}.costs must be an object")

    costs = {}
    for label, value in raw_costs.items():
        month = _canonical_label(label, canonical)
        if month not in months:
            logger.warning(f"{where}: ignoring cost for unknown month {label!r}")
            continue
        costs[month] = _coerce_cost(value, f"{where}.costs[{label!r}]")

    raw_usages = raw.get("usages") or {}
    if not isinstance(raw_usages, dict):
        raise ValidationError(f"{where}.usages must be an object")
    usages = {canonical.get(label, label): str(value) for label, value in raw_usages.items()}

    raw_children = raw.get("subServices") or []
    if not isinstance(raw_children, list):
        raise ValidationError(f"{where}.subServices must be a list")
    if raw_children and not allow_children:
        logger.warning(f"{where}: sub-services are only one level deep; ignoring nested entries")
        raw_children = []

    service = ServiceCost(
        name=name.strip(),
        costs=costs,
        usages=usages,
        sub_services=[
            _parse_service(child, months, canonical, f"{where}.subServices[{i}]", False)
            for i, child in enumerate(raw_children)
        ],
    )
    # Tolerant repair: months the client left out cost nothing
    service.zero_fill(months)
    return service


def parse_analyze_request(payload: Any) -> CloudCostData:
    """
    Validate an analyze request and build the cost data it carries.

    Both ``{"cloudCostData": {...}}`` and the bare ``{services, months,
    totalsByMonth}`` shape are accepted. Missing cost entries are zero-filled
    and month totals are always recomputed from the root service costs; totals
    sent by the client are only checked against them.

    Raises:
        ValidationError: If required fields are missing or malformed
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    body = payload.get("cloudCostData", payload)
    if not isinstance(body, dict):
        raise ValidationError("'cloudCostData' must be an object")
    if "services" not in body or "months" not in body:
        raise ValidationError("Cost data must include 'services' and 'months'")

    months, canonical = _parse_months(body["months"])

    raw_services = body["services"]
    if not isinstance(raw_services, list) or not raw_services:
        raise ValidationError("'services' must be a non-empty list")
    services = [
        _parse_service(raw, months, canonical, f"services[{i}]")
        for i, raw in enumerate(raw_services)
    ]

    raw_totals = body.get("totalsByMonth") or {}
    if not isinstance(raw_totals, dict):
        raise ValidationError("'totalsByMonth' must be an object")

    totals_by_month = {
        month: sum(service.costs[month] for service in services) for month in months
    }
    for label, value in raw_totals.items():
        month = _canonical_label(label, canonical)
        if month not in months:
            continue
        sent = _coerce_cost(value, f"totalsByMonth[{label!r}]")
        if not math.isclose(sent, totals_by_month[month], abs_tol=0.005):
            logger.warning(
                f"totalsByMonth[{label!r}] is {sent}, but services add up to "
                f"{totals_by_month[month]}; using the service costs"
            )

    return CloudCostData(services=services, months=months, totals_by_month=totals_by_month)


def handle_analyze(payload: Any) -> ApiResponse:
    """
    Analyze cost data sent by the dashboard.

    Returns:
        ({"success": True, "analysis": CostAnalysis}, 200), an error body with
        400 for invalid requests, or with 500 when the analysis itself fails
    """
    try:
        data = parse_analyze_request(payload)
        analysis = analyze_cloud_costs(data)
    except ValidationError as e:
        logger.error(f"Invalid analyze request: {e}")
        return _error(str(e), 400)
    except AnalysisError as e:
        logger.error(f"Error analyzing costs: {e}")
        return _error(str(e), 500)

    return {"success": True, "analysis": analysis.to_dict()}, 200
