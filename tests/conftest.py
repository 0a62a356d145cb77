"""Pytest fixtures and configuration for test suite."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cost_model import CloudCostData, ServiceCost
from csv_parser import parse_cost_csv

MONTHS_2024 = [
    "Janeiro/2024",
    "Fevereiro/2024",
    "Março/2024",
    "Abril/2024",
    "Maio/2024",
    "Junho/2024",
    "Julho/2024",
    "Agosto/2024",
    "Setembro/2024",
    "Outubro/2024",
    "Novembro/2024",
    "Dezembro/2024",
]

# Six months of a small account: EC2 spikes in June, S3 and RDS are flat and
# Lambda starts in April. Decimal commas as exported by the Portuguese console.
SAMPLE_CSV = (
    "Categoria,Serviço,Subserviço,Custo: Janeiro/2024,Custo: Fevereiro/2024,Custo: Março/2024,"
    "Custo: Abril/2024,Custo: Maio/2024,Custo: Junho/2024,Uso: Junho/2024,Estimativa: Julho/2024\n"
    'Compute,EC2,,"1000,00","1100,00","1200,00","1300,00","1400,00","3000,00",720 Hrs,"3100,00"\n'
    'Compute,EC2,Instâncias,"800,00","900,00","1000,00","1100,00","1200,00","2800,00",,\n'
    'Storage,S3,,"500,00","500,00","500,00","500,00","500,00","500,00",,\n'
    'Database,RDS,,"200,00","200,00","200,00","200,00","200,00","200,00",,\n'
    'Serverless,Lambda,,,,,"50,00","60,00","70,00",,\n'
)


@pytest.fixture
def sample_csv_text():
    """CSV export text with five rows over six months."""
    return SAMPLE_CSV


@pytest.fixture
def sample_csv_bytes(sample_csv_text):
    """Sample export as uploaded: UTF-8 with a BOM."""
    return "\ufeff".encode("utf-8") + sample_csv_text.encode("utf-8")


@pytest.fixture
def sample_cost_data(sample_csv_text):
    """Parsed sample export."""
    return parse_cost_csv(sample_csv_text)


@pytest.fixture
def make_cost_data():
    """
    Factory building CloudCostData from plain cost lists.

    Usage: make_cost_data({"EC2": [100, 150]}, sub_services={"EC2": {"Disk": [10, 20]}})
    Months default to the first N months of 2024.
    """

    def _make(series, months=None, sub_services=None):
        length = len(next(iter(series.values())))
        months = list(months or MONTHS_2024[:length])

        services = []
        for name, costs in series.items():
            service = ServiceCost(name=name, costs=dict(zip(months, map(float, costs))))
            for sub_name, sub_costs in (sub_services or {}).get(name, {}).items():
                service.sub_services.append(
                    ServiceCost(name=sub_name, costs=dict(zip(months, map(float, sub_costs))))
                )
            services.append(service)

        totals = {month: sum(service.costs[month] for service in services) for month in months}
        return CloudCostData(services=services, months=months, totals_by_month=totals)

    return _make


@pytest.fixture
def temp_output_dir(tmp_path):
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "test_reports"
    output_dir.mkdir()
    return output_dir


@pytest.fixture
def mock_env_vars(monkeypatch, tmp_path):
    """Set mock environment variables for testing."""
    monkeypatch.setenv("COST_CSV", str(tmp_path / "costs.csv"))
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "env-reports"))
    monkeypatch.setenv("ANOMALY_THRESHOLD", "25")
    monkeypatch.setenv("GROWTH_THRESHOLD", "15")
    monkeypatch.setenv("PROJECTION_MONTHS", "3")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("AWS_PROFILE", "test-profile")
