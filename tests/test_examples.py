"""Test that generates example reports for documentation."""

import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cost_analyzer import CostAnalyzer
from visualizer import CostVisualizer, analysis_frames


class TestExampleReports:
    """Generate example reports with the sample export."""

    def test_generate_example_html_report(self, sample_cost_data, tmp_path):
        """
        Generate a full example HTML report with all visualizations.

        This test creates a complete report that serves as both a test
        and an example of what the output looks like.
        """
        analysis = CostAnalyzer(sample_cost_data).analyze()
        frames = analysis_frames(analysis)

        visualizer = CostVisualizer(theme="macarons")
        visualizer.create_cost_trend_chart(frames["trends"], title="Monthly Cost Trend (6 Months)")
        visualizer.create_cost_breakdown_pie(frames["cost_breakdown"])
        visualizer.create_service_trend_chart(frames["service_trends"])
        visualizer.create_period_comparison_chart(frames["period_comparison"])
        visualizer.create_anomaly_chart(frames["anomalies"])
        visualizer.create_projection_chart(frames["trends"], frames["projections"])

        output_path = tmp_path / "example_report.html"
        visualizer.generate_html_report(
            str(output_path), analysis, title="Cloud Cost Report - Example Report"
        )

        assert output_path.exists()
        assert output_path.stat().st_size > 10000  # Should be substantial

        html_content = output_path.read_text(encoding="utf-8")

        assert "Cloud Cost Report - Example Report" in html_content
        assert "Executive Summary" in html_content
        assert "Insights" in html_content
        assert "Monthly Cost Trend (6 Months)" in html_content
        assert "echarts" in html_content.lower()
        assert "var chart_" in html_content  # pyecharts chart initialization
        assert "echarts.init(" in html_content

        print(f"\n✅ Example report generated: {output_path}")
        print(f"   Charts included: {len(visualizer.charts)}")
        print(f"   Total cost in example: ${analysis.total_cost:,.2f}")

    def test_generate_example_csv_exports(self, sample_cost_data, tmp_path):
        """Generate example CSV exports for documentation."""
        analysis = CostAnalyzer(sample_cost_data).analyze()
        frames = analysis_frames(analysis)

        for name in ["trends", "cost_breakdown", "anomalies", "growth_trends", "period_comparison", "projections"]:
            csv_path = tmp_path / f"{name}_example.csv"
            frames[name].to_csv(csv_path, index=False)

            assert Path(csv_path).exists()
            header = csv_path.read_text(encoding="utf-8").splitlines()[0]
            assert header.split(",") == list(frames[name].columns)
