#!/usr/bin/env python3
"""
Cloud Cost Report Generator - Main CLI Entry Point

Generate visual cost analytics from monthly cloud cost CSV exports stored locally or in S3.
"""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

import click
from colorama import Fore, Style
from colorama import init as colorama_init
from dotenv import load_dotenv
from tqdm import tqdm

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from cost_analyzer import CostAnalyzer
from csv_parser import parse_cost_csv
from export_reader import CostExportReader
from visualizer import DASHBOARD_STEPS, CostVisualizer, analysis_frames

# Initialize colorama
colorama_init()


# Configure logging
def setup_logging(debug: bool = False):
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


logger = logging.getLogger(__name__)

CSV_EXPORTS = ['trends', 'cost_breakdown', 'anomalies', 'growth_trends', 'period_comparison', 'projections']


def print_banner():
    """Print application banner."""
    banner = f"""
{Fore.CYAN}╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║               Cloud Cost Report Generator                    ║
║                                                              ║
║   Trends, anomalies and projections from monthly cost CSVs   ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝{Style.RESET_ALL}
    """
    print(banner)


def fail(message: str):
    """Print an error and exit with status 1."""
    print(f"{Fore.RED}Error: {message}{Style.RESET_ALL}")
    sys.exit(1)


def resolve_number(value, env_var: str, default: str, cast, option: str):
    """Resolve a numeric setting from its option, then the environment, then the default."""
    if value is None:
        try:
            value = cast(os.getenv(env_var, default))
        except ValueError:
            fail(f"{env_var} environment variable must be a number")

    if value <= 0:
        fail(f"{option} must be positive, got {value}")
    return value


@click.command()
@click.option('--input', '-i', 'input_path', type=str, help='Cost CSV export: local path or s3://bucket/key. Default: $COST_CSV')
@click.option('--output-dir', '-o', type=str, help='Output directory for reports. Default: reports/')
@click.option('--anomaly-threshold', type=float, help='Deviation in percent that flags an anomaly. Default: 25')
@click.option('--growth-threshold', type=float, help='Average monthly growth in percent that flags a service. Default: 15')
@click.option('--projection-months', type=int, help='Number of months to project. Default: 3')
@click.option('--generate-html/--no-html', default=True, help='Generate HTML report. Default: True')
@click.option('--generate-csv/--no-csv', default=False, help='Generate CSV exports. Default: False')
@click.option('--generate-json/--no-json', default=False, help='Write the full analysis as JSON. Default: False')
@click.option('--debug', is_flag=True, help='Enable debug logging')
def generate_report(input_path, output_dir, anomaly_threshold, growth_threshold,
                    projection_months, generate_html, generate_csv, generate_json, debug):
    """
    Generate cloud cost analysis reports.

    This tool reads a monthly cost CSV export and generates:
    - Month-over-month cost trends
    - Top services and recent cost breakdown
    - Cost anomaly and rapid growth detection
    - Current vs previous period comparison
    - Cost projections for the coming months

    Configuration is done via environment variables (see .env.example).
    """
    # Setup
    setup_logging(debug)
    print_banner()

    # Load environment variables
    load_dotenv()

    input_path = input_path or os.getenv('COST_CSV')
    if not input_path:
        print(f"{Fore.RED}Error: No cost export given.{Style.RESET_ALL}")
        print(f"\n{Fore.YELLOW}Pass --input or set COST_CSV in your .env file or environment.{Style.RESET_ALL}")
        print(f"{Fore.YELLOW}See .env.example for reference.{Style.RESET_ALL}")
        sys.exit(1)

    output_dir = output_dir or os.getenv('OUTPUT_DIR', 'reports')
    anomaly_threshold = resolve_number(
        anomaly_threshold, 'ANOMALY_THRESHOLD', '25', float, '--anomaly-threshold'
    )
    growth_threshold = resolve_number(
        growth_threshold, 'GROWTH_THRESHOLD', '15', float, '--growth-threshold'
    )
    projection_months = resolve_number(
        projection_months, 'PROJECTION_MONTHS', '3', int, '--projection-months'
    )

    print(f"{Fore.CYAN}Configuration:{Style.RESET_ALL}")
    print(f"  Input: {input_path}")
    print(f"  Output Directory: {output_dir}")
    print(f"  Anomaly Threshold: {anomaly_threshold}%")
    print(f"  Growth Threshold: {growth_threshold}%")
    print(f"  Projection Months: {projection_months}")
    print()

    try:
        # Step 1: Read the export
        print(f"{Fore.GREEN}[1/4] Reading cost export...{Style.RESET_ALL}")
        reader = CostExportReader(
            aws_profile=os.getenv('AWS_PROFILE'),
            aws_region=os.getenv('AWS_REGION'),
            cache_dir=os.getenv('COST_CACHE_DIR'),
        )
        csv_text = reader.read_text(input_path)
        print(f"{Fore.GREEN}✓ Read {len(csv_text.splitlines())} lines{Style.RESET_ALL}\n")

        # Step 2: Parse and analyze
        print(f"{Fore.GREEN}[2/4] Parsing and analyzing data...{Style.RESET_ALL}")
        data = parse_cost_csv(csv_text)
        analyzer = CostAnalyzer(
            data,
            sensitivity_threshold=anomaly_threshold,
            growth_threshold=growth_threshold,
            months_to_project=projection_months,
        )
        analysis = analyzer.analyze()
        frames = analysis_frames(analysis)
        print(f"{Fore.GREEN}✓ Analysis complete{Style.RESET_ALL}\n")

        # Step 3: Generate visualizations
        print(f"{Fore.GREEN}[3/4] Creating visualizations...{Style.RESET_ALL}")
        visualizer = CostVisualizer()

        with tqdm(total=DASHBOARD_STEPS, desc="Generating charts", bar_format='{l_bar}{bar}| {n_fmt}/{total_fmt}') as pbar:
            chart_count = visualizer.create_dashboard_charts(analysis, frames=frames, progress=pbar.update)

        print(f"{Fore.GREEN}✓ Created {chart_count} visualizations{Style.RESET_ALL}\n")

        # Step 4: Generate output files
        print(f"{Fore.GREEN}[4/4] Generating output files...{Style.RESET_ALL}")

        Path(output_dir).mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        output_files = []

        if generate_html:
            html_path = os.path.join(output_dir, f'cost_report_{timestamp}.html')
            visualizer.generate_html_report(html_path, analysis)
            output_files.append(html_path)
            print(f"{Fore.GREEN}✓ HTML report: {html_path}{Style.RESET_ALL}")

        if generate_csv:
            csv_dir = os.path.join(output_dir, 'csv')
            Path(csv_dir).mkdir(parents=True, exist_ok=True)

            for name in CSV_EXPORTS:
                csv_path = os.path.join(csv_dir, f'{name}_{timestamp}.csv')
                frames[name].to_csv(csv_path, index=False)
                output_files.append(csv_path)

            print(f"{Fore.GREEN}✓ CSV files exported to: {csv_dir}{Style.RESET_ALL}")

        if generate_json:
            json_path = os.path.join(output_dir, f'cost_analysis_{timestamp}.json')
            with open(json_path, 'w', encoding='utf-8') as f:
                json.dump(analysis.to_dict(), f, ensure_ascii=False, indent=2)
            output_files.append(json_path)
            print(f"{Fore.GREEN}✓ JSON analysis: {json_path}{Style.RESET_ALL}")

        # Print summary
        print(f"\n{Fore.CYAN}{'='*60}{Style.RESET_ALL}")
        print(f"{Fore.CYAN}Report Summary:{Style.RESET_ALL}")
        print(f"{Fore.CYAN}{'='*60}{Style.RESET_ALL}")
        print(f"Total Cost: {Fore.YELLOW}${analysis.total_cost:,.2f}{Style.RESET_ALL}")
        print(f"Months: {data.months[0]} to {data.months[-1]} ({len(data.months)})")
        print(f"Number of Services: {len(data.services)}")

        if analysis.anomalies:
            print(f"\n{Fore.YELLOW}⚠ Found {len(analysis.anomalies)} cost anomalies{Style.RESET_ALL}")

        if analysis.growth_trends:
            print(f"\n{Fore.YELLOW}↗ {len(analysis.growth_trends)} services growing fast:{Style.RESET_ALL}")
            for trend in analysis.growth_trends:
                print(f"  - {trend.service}: {trend.average_growth:.1f}% per month")

        print(f"\n{Fore.CYAN}Insights:{Style.RESET_ALL}")
        for insight in analysis.insights:
            print(f"  • {insight}")

        print(f"\n{Fore.GREEN}✓ Report generation complete!{Style.RESET_ALL}")
        if output_files:
            print(f"\n{Fore.CYAN}Generated files:{Style.RESET_ALL}")
            for file in output_files:
                print(f"  - {file}")

    except Exception as e:
        logger.exception("Error generating report")
        print(f"\n{Fore.RED}Error: {str(e)}{Style.RESET_ALL}")
        if debug:
            raise
        sys.exit(1)


if __name__ == '__main__':
    generate_report()
