"""CSV Parser - Turns monthly cloud cost CSV exports into normalized cost data."""

import logging
import re
from typing import Dict, List, Optional, Tuple

from cost_model import CloudCostData, ServiceCost
from errors import ParseError
from month_labels import parse_month_label, sort_month_labels

logger = logging.getLogger(__name__)

COST_PREFIX = "Custo:"
USAGE_PREFIX = "Uso:"
ESTIMATE_PREFIX = "Estimativa:"

_LINE_BREAK = re.compile(r"\r?\n")
# Leading number of a cost cell, mirroring how lenient float parsing reads "12.5 USD"
_NUMBER_PATTERN = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def split_csv_line(line: str) -> List[str]:
    """
    Split a CSV line on commas that are not inside double quotes.

    Every quote toggles the in-quotes state and is dropped from the cell.

    Args:
        line: One line of CSV text

    Returns:
        List of raw cell values (not trimmed)
    """
    cells = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            cells.append("".join(current))
            current = []
        else:
            current.append(char)

    cells.append("".join(current))
    return cells


def _clean(cell: str) -> str:
    return cell.replace('"', "").strip()


def _leading_number(cell: str) -> Optional[float]:
    text = _clean(cell)
    if "," in text:
        if "." in text and text.rfind(".") < text.rfind(","):
            text = text.replace(".", "")
        text = text.replace(",", ".", 1)

    match = _NUMBER_PATTERN.match(text)
    return float(match.group(0)) if match else None


def parse_cost_value(cell: str) -> float:
    """
    Parse a cost cell, accepting a decimal comma.

    "1234,56" and "1.234,56" both read as 1234.56. Text without a leading
    number resolves to 0.
    """
    value = _leading_number(cell)
    return 0.0 if value is None else value


class CostCsvParser:
    """Parse cloud cost CSV exports with "Custo: <Month>/<Year>" columns."""

    def __init__(self) -> None:
        self.cost_columns: Dict[str, int] = {}
        self.usage_columns: Dict[str, int] = {}
        self.months: List[str] = []

    def _classify_headers(self, headers: List[str]) -> None:
        """Map cost and usage columns to canonical month labels."""
        self.cost_columns = {}
        self.usage_columns = {}
        discovered: List[str] = []

        for index, header in enumerate(headers):
            if header.startswith(ESTIMATE_PREFIX):
                continue

            if header.startswith(COST_PREFIX):
                target = self.cost_columns
                suffix = header[len(COST_PREFIX):]
            elif header.startswith(USAGE_PREFIX):
                target = self.usage_columns
                suffix = header[len(USAGE_PREFIX):]
            else:
                continue

            parsed = parse_month_label(suffix)
            if parsed is None:
                logger.warning(f"Ignoring column '{header}': no recognizable month/year")
                continue

            label = parsed[0]
            target[label] = index
            if target is self.cost_columns and label not in discovered:
                discovered.append(label)

        self.months = sort_month_labels(discovered)
        logger.debug(f"Cost columns: {self.cost_columns}")

    def _read_cost(self, raw: str, line_number: int, column: int) -> float:
        value = _leading_number(raw)
        if value is None:
            logger.warning(f"Line {line_number}, column {column}: unparseable cost {raw!r}, using 0")
            return 0.0
        if value < 0:
            logger.warning(f"Line {line_number}, column {column}: negative cost {raw!r}, using 0")
            return 0.0
        return value

    def _read_row(
        self, columns: List[str], line_number: int
    ) -> Tuple[Dict[str, float], Dict[str, str]]:
        costs: Dict[str, float] = {}
        usages: Dict[str, str] = {}

        for month in self.months:
            cost_index = self.cost_columns.get(month)
            if cost_index is not None and cost_index < len(columns):
                raw = _clean(columns[cost_index])
                if raw:
                    costs[month] = self._read_cost(raw, line_number, cost_index + 1)

            usage_index = self.usage_columns.get(month)
            if usage_index is not None and usage_index < len(columns):
                usage = _clean(columns[usage_index])
                if usage:
                    usages[month] = usage

        return costs, usages

    def parse(self, csv_text: str) -> CloudCostData:
        """
        Parse CSV text into cost data.

        Args:
            csv_text: Full content of the export

        Returns:
            CloudCostData with zero-filled cost maps and chronologically sorted months

        Raises:
            ParseError: If the export is empty, has no cost columns, or yields no
                services or month totals
        """
        text = csv_text.lstrip("\ufeff")
        lines = [line for line in _LINE_BREAK.split(text) if line.strip()]
        if len(lines) < 2:
            raise ParseError("CSV must contain a header row and at least one data row")

        headers = [_clean(cell) for cell in split_csv_line(lines[0])]
        self._classify_headers(headers)

        if not self.months:
            raise ParseError(
                f"No cost columns found; expected headers like '{COST_PREFIX} Janeiro/2024'"
            )

        logger.info(f"Found {len(self.months)} months: {', '.join(self.months)}")

        services: List[ServiceCost] = []
        service_map: Dict[str, ServiceCost] = {}
        root_cells = 0

        for line_number, line in enumerate(lines[1:], start=2):
            columns = split_csv_line(line)
            if len(columns) < 3:
                logger.debug(f"Skipping line {line_number}: only {len(columns)} columns")
                continue

            service_name = _clean(columns[1]) or _clean(columns[0])
            if not service_name:
                logger.debug(f"Skipping line {line_number}: no service name")
                continue

            sub_service_name = _clean(columns[2])
            costs, usages = self._read_row(columns, line_number)

            service = service_map.get(service_name)
            if service is None:
                service = ServiceCost(name=service_name)
                services.append(service)
                service_map[service_name] = service

            if sub_service_name:
                service.sub_services.append(
                    ServiceCost(name=sub_service_name, costs=costs, usages=usages)
                )
            else:
                # Repeated rows for the same service overwrite earlier months
                service.costs.update(costs)
                service.usages.update(usages)
                root_cells += len(costs)

        if not services:
            raise ParseError("No services found in CSV")
        if root_cells == 0:
            raise ParseError("No monthly cost totals found in CSV")

        for service in services:
            service.zero_fill(self.months)

        totals_by_month = {
            month: sum(service.costs[month] for service in services) for month in self.months
        }

        logger.info(f"Parsed {len(services)} services across {len(self.months)} months")
        return CloudCostData(
            services=services, months=list(self.months), totals_by_month=totals_by_month
        )


def parse_cost_csv(csv_text: str) -> CloudCostData:
    """Parse a cloud cost CSV export. See CostCsvParser.parse."""
    return CostCsvParser().parse(csv_text)
