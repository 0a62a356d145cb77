"""Visualizer - Creates interactive dashboard charts and HTML reports from cost analyses using Apache ECharts."""

import html
import logging
import math
import os
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pandas as pd
from pyecharts import options as opts
from pyecharts.charts import Bar, Line, Page, Pie, Scatter
from pyecharts.commons.utils import JsCode
from pyecharts.globals import ThemeType

from cost_model import CostAnalysis

logger = logging.getLogger(__name__)

COLORS = [
    "#5470c6",
    "#91cc75",
    "#fac858",
    "#ee6666",
    "#73c0de",
    "#3ba272",
    "#fc8452",
    "#9a60b4",
]

SEVERITY_COLORS = {"high": "#ee6666", "medium": "#fc8452", "low": "#fac858"}
SEVERITY_SYMBOL_SIZES = {"high": 20, "medium": 16, "low": 12}

CURRENCY_AXIS_FORMATTER = "function(value) { return '$' + value.toLocaleString(); }"

# Chart steps in create_dashboard_charts, for progress bars
DASHBOARD_STEPS = 6


def _safe_round(value: Any, decimals: int = 2) -> float:
    """Safely round a value, handling NaN/None/Inf."""
    if value is None:
        return 0.0
    try:
        float_val = float(value)
        if math.isnan(float_val) or math.isinf(float_val):
            return 0.0
        return round(float_val, decimals)
    except (TypeError, ValueError):
        return 0.0


def _safe_round_list(values: List[Any], decimals: int = 2) -> List[float]:
    """Safely round a list of values."""
    return [_safe_round(v, decimals) for v in values]


def _validate_dataframe(df: pd.DataFrame, required_columns: List[str], context: str) -> bool:
    """
    Validate that DataFrame is not empty and has required columns.

    Args:
        df: DataFrame to validate
        required_columns: List of column names that must be present
        context: Description of the calling context for logging

    Returns:
        True if valid, False otherwise
    """
    if df is None or df.empty:
        logger.warning(f"{context}: DataFrame is empty")
        return False

    missing_cols = [col for col in required_columns if col not in df.columns]
    if missing_cols:
        logger.warning(f"{context}: Missing required columns: {missing_cols}")
        return False

    return True


def analysis_frames(analysis: CostAnalysis) -> Dict[str, pd.DataFrame]:
    """
    Flatten a cost analysis into Pandas DataFrames for charts and CSV exports.

    Returns:
        Dictionary with trends, service_trends, cost_breakdown, anomalies,
        growth_trends, period_comparison and projections frames
    """
    trends = pd.DataFrame(
        [
            {"month": t.month, "cost": t.cost, "percent_change": t.percent_change}
            for t in analysis.trends
        ],
        columns=["month", "cost", "percent_change"],
    )

    service_trends = pd.DataFrame(
        [
            {"month": point.month, "service": service.name, "total_cost": point.cost}
            for service in analysis.top_services
            for point in service.trend
        ],
        columns=["month", "service", "total_cost"],
    )

    cost_breakdown = pd.DataFrame(
        [
            {"service": item.name, "cost": item.cost, "percentage": item.percentage}
            for item in analysis.cost_breakdown.services
        ],
        columns=["service", "cost", "percentage"],
    )

    anomalies = pd.DataFrame(
        [
            {
                "month": a.month,
                "service": a.service,
                "expected_cost": a.expected_cost,
                "actual_cost": a.actual_cost,
                "percent_deviation": a.percent_deviation,
                "severity": a.severity,
                "message": a.message,
            }
            for a in analysis.anomalies
        ],
        columns=[
            "month",
            "service",
            "expected_cost",
            "actual_cost",
            "percent_deviation",
            "severity",
            "message",
        ],
    )

    growth_trends = pd.DataFrame(
        [
            {"service": g.service, "average_growth": g.average_growth, "months": ", ".join(g.months)}
            for g in analysis.growth_trends
        ],
        columns=["service", "average_growth", "months"],
    )

    period_comparison = pd.DataFrame(
        [
            {
                "service": s.name,
                "previous_period_cost": s.previous_period_cost,
                "current_period_cost": s.current_period_cost,
                "absolute_change": s.absolute_change,
                "percentage_change": s.percentage_change,
                "previous_period_percentage": s.previous_period_percentage,
                "current_period_percentage": s.current_period_percentage,
            }
            for s in analysis.period_comparison.service_comparison
        ],
        columns=[
            "service",
            "previous_period_cost",
            "current_period_cost",
            "absolute_change",
            "percentage_change",
            "previous_period_percentage",
            "current_period_percentage",
        ],
    )

    projections = pd.DataFrame(
        [
            {
                "month": p.month,
                "projected_cost": p.projected_cost,
                "lower_bound": p.lower_bound,
                "upper_bound": p.upper_bound,
            }
            for p in analysis.projections
        ],
        columns=["month", "projected_cost", "lower_bound", "upper_bound"],
    )

    return {
        "trends": trends,
        "service_trends": service_trends,
        "cost_breakdown": cost_breakdown,
        "anomalies": anomalies,
        "growth_trends": growth_trends,
        "period_comparison": period_comparison,
        "projections": projections,
    }


class CostVisualizer:
    """Generate interactive visualizations for monthly cloud cost analyses using Apache ECharts."""

    def __init__(self, theme: str = "macarons") -> None:
        """
        Initialize the visualizer.

        Args:
            theme: pyecharts theme to use (macarons, shine, roma, vintage, etc.)
        """
        theme_map = {
            "macarons": ThemeType.MACARONS,
            "shine": ThemeType.SHINE,
            "roma": ThemeType.ROMA,
            "vintage": ThemeType.VINTAGE,
            "dark": ThemeType.DARK,
            "light": ThemeType.LIGHT,
        }
        self.theme = theme_map.get(theme.lower(), ThemeType.MACARONS)
        self.charts = []

    @staticmethod
    def _get_tooltip_style() -> str:
        """
        Get consistent tooltip styling for all charts.

        Returns:
            CSS style string for tooltips
        """
        return """
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            border: none;
            border-radius: 4px;
            padding: 6px 10px;
            box-shadow: none;
            color: #ffffff;
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            font-size: 12px;
            line-height: 1.4;
            max-width: 200px;
            white-space: normal;
        """

    def _axis_tooltip(self) -> opts.TooltipOpts:
        """Tooltip listing every series at the hovered month as currency."""
        return opts.TooltipOpts(
            trigger="axis",
            is_confine=True,
            background_color="transparent",
            border_color="transparent",
            border_width=0,
            extra_css_text="box-shadow: none;",
            formatter=JsCode(
                """function(params) {
                    var style = `"""
                + self._get_tooltip_style()
                + """`;
                    var result = '<div style="' + style + '">';
                    result += '<strong style="font-size: 12px;">' + params[0].name + '</strong><br/><br/>';
                    params.forEach(function(item) {
                        if (item.value === null || item.value === undefined) { return; }
                        result += '<div style="margin: 2px 0;">';
                        result += item.marker + ' ';
                        result += '<span style="opacity: 0.9;">' + item.seriesName + ':</span> ';
                        result += '<strong>$' + Number(item.value).toLocaleString(undefined, {minimumFractionDigits: 2, maximumFractionDigits: 2}) + '</strong>';
                        result += '</div>';
                    });
                    result += '</div>';
                    return result;
                }"""
            ),
            textstyle_opts=opts.TextStyleOpts(color="#ffffff"),
        )

    @staticmethod
    def _toolbox(zoom: bool = False) -> opts.ToolboxOpts:
        return opts.ToolboxOpts(
            is_show=True,
            feature=opts.ToolBoxFeatureOpts(
                save_as_image=opts.ToolBoxFeatureSaveAsImageOpts(title="Save as Image"),
                restore=opts.ToolBoxFeatureRestoreOpts(title="Restore"),
                data_zoom=(
                    opts.ToolBoxFeatureDataZoomOpts(zoom_title="Zoom", back_title="Reset Zoom")
                    if zoom
                    else None
                ),
                data_view=opts.ToolBoxFeatureDataViewOpts(title="Data View"),
            ),
        )

    @staticmethod
    def _title(title: str, subtitle: Optional[str] = None) -> opts.TitleOpts:
        return opts.TitleOpts(
            title=title,
            subtitle=subtitle,
            title_textstyle_opts=opts.TextStyleOpts(font_size=18, font_weight="bold"),
            pos_top="1%",
            item_gap=15,
        )

    def create_cost_trend_chart(self, df: pd.DataFrame, title: str = "Monthly Cost Trend") -> Bar:
        """
        Create a bar chart of total monthly cost with a trend line overlay.

        Args:
            df: DataFrame with month, cost and percent_change columns
            title: Chart title

        Returns:
            pyecharts Bar chart with line overlay
        """
        logger.info("Creating cost trend chart...")

        months = df["month"].tolist() if not df.empty else []
        costs = _safe_round_list(df["cost"].tolist()) if not df.empty else []

        bar = (
            Bar(init_opts=opts.InitOpts(theme=self.theme, height="600px", width="100%"))
            .add_xaxis(months)
            .add_yaxis(
                "Monthly Cost",
                costs,
                label_opts=opts.LabelOpts(
                    is_show=True,
                    position="top",
                    formatter=JsCode(
                        "function(params) { return '$' + params.value.toLocaleString(); }"
                    ),
                ),
                itemstyle_opts=opts.ItemStyleOpts(color=COLORS[0], border_radius=8),
            )
        )

        if len(months) >= 2:
            line = (
                Line()
                .add_xaxis(months)
                .add_yaxis(
                    "Trend",
                    costs,
                    is_smooth=True,
                    symbol_size=10,
                    linestyle_opts=opts.LineStyleOpts(width=3, type_="dashed"),
                    itemstyle_opts=opts.ItemStyleOpts(color=COLORS[3]),
                    label_opts=opts.LabelOpts(is_show=False),
                )
            )
            bar.overlap(line)

        bar.set_global_opts(
            title_opts=self._title(title),
            xaxis_opts=opts.AxisOpts(name="Month", axislabel_opts=opts.LabelOpts(rotate=45)),
            yaxis_opts=opts.AxisOpts(
                name="Total Cost",
                axislabel_opts=opts.LabelOpts(formatter=JsCode(CURRENCY_AXIS_FORMATTER)),
            ),
            tooltip_opts=self._axis_tooltip(),
            legend_opts=opts.LegendOpts(pos_top="8%"),
            toolbox_opts=self._toolbox(),
        )

        self.charts.append(("cost_trend", bar))
        return bar

    def create_cost_breakdown_pie(
        self, df: pd.DataFrame, title: str = "Cost Breakdown (Last 3 Months)", top_n: int = 8
    ) -> Pie:
        """
        Create a donut chart of each service's share of recent cost.

        Services beyond top_n are grouped into "Others".

        Args:
            df: DataFrame with service, cost and percentage columns, sorted by cost
            title: Chart title
            top_n: Number of services shown individually

        Returns:
            pyecharts Pie chart
        """
        logger.info("Creating cost breakdown chart...")

        pie = Pie(init_opts=opts.InitOpts(theme=self.theme, height="600px", width="100%"))

        if _validate_dataframe(df, ["service", "cost"], "Cost breakdown"):
            visible = df[df["cost"] > 0]
            data = [
                (str(row["service"]), _safe_round(row["cost"]))
                for _, row in visible.head(top_n).iterrows()
            ]
            others = visible.iloc[top_n:]["cost"].sum()
            if others > 0:
                data.append(("Others", _safe_round(others)))

            pie.add(
                series_name="Cost",
                data_pair=data,
                radius=["35%", "65%"],
                center=["50%", "55%"],
                label_opts=opts.LabelOpts(formatter="{b}: {d}%"),
            )

        pie.set_global_opts(
            title_opts=self._title(title),
            legend_opts=opts.LegendOpts(type_="scroll", pos_top="8%"),
            tooltip_opts=opts.TooltipOpts(trigger="item", formatter="{b}: ${c} ({d}%)"),
            toolbox_opts=self._toolbox(),
        )

        self.charts.append(("cost_breakdown", pie))
        return pie

    def create_service_trend_chart(
        self, df: pd.DataFrame, title: str = "Monthly Cost by Top Service"
    ) -> Bar:
        """
        Create a grouped bar chart showing monthly cost trends for top services.

        Args:
            df: DataFrame with month, service, and total_cost columns
            title: Chart title

        Returns:
            pyecharts Bar chart
        """
        logger.info("Creating service trend chart...")

        bar = Bar(init_opts=opts.InitOpts(theme=self.theme, height="650px", width="100%"))

        if _validate_dataframe(df, ["month", "service", "total_cost"], "Service trend"):
            # Months arrive in chronological order; keep it rather than sorting labels
            months = list(dict.fromkeys(df["month"].tolist()))
            bar.add_xaxis(months)

            for i, service in enumerate(dict.fromkeys(df["service"].tolist())):
                service_data = df[df["service"] == service]
                cost_by_month = dict(zip(service_data["month"], service_data["total_cost"]))
                bar.add_yaxis(
                    series_name=service,
                    y_axis=[_safe_round(cost_by_month.get(m, 0)) for m in months],
                    label_opts=opts.LabelOpts(is_show=False),
                    itemstyle_opts=opts.ItemStyleOpts(color=COLORS[i % len(COLORS)]),
                )

        bar.set_global_opts(
            title_opts=self._title(title),
            xaxis_opts=opts.AxisOpts(
                name="Month",
                type_="category",
                axislabel_opts=opts.LabelOpts(rotate=45, interval="auto"),
            ),
            yaxis_opts=opts.AxisOpts(
                name="Total Cost",
                axislabel_opts=opts.LabelOpts(formatter=JsCode(CURRENCY_AXIS_FORMATTER)),
            ),
            tooltip_opts=self._axis_tooltip(),
            legend_opts=opts.LegendOpts(
                type_="scroll",
                orient="horizontal",
                pos_top="10%",
                selected_mode="multiple",
            ),
            datazoom_opts=[
                opts.DataZoomOpts(type_="slider", range_start=0, range_end=100),
                opts.DataZoomOpts(type_="inside"),
            ],
            toolbox_opts=self._toolbox(zoom=True),
        )

        self.charts.append(("service_trend", bar))
        return bar

    def create_period_comparison_chart(
        self,
        df: pd.DataFrame,
        title: str = "Current vs Previous Period",
        top_n: int = 10,
    ) -> Bar:
        """
        Create a horizontal bar chart comparing each service across the two periods.

        Args:
            df: DataFrame with service, previous_period_cost and current_period_cost
                columns, sorted by absolute change
            title: Chart title
            top_n: Number of services to show

        Returns:
            pyecharts Bar chart
        """
        logger.info("Creating period comparison chart...")

        bar = Bar(init_opts=opts.InitOpts(theme=self.theme, height="650px", width="100%"))

        if _validate_dataframe(
            df, ["service", "previous_period_cost", "current_period_cost"], "Period comparison"
        ):
            top = df.head(top_n).iloc[::-1]  # Largest change at the top of the chart
            bar.add_xaxis(top["service"].astype(str).tolist())
            bar.add_yaxis(
                "Previous Period",
                _safe_round_list(top["previous_period_cost"].tolist()),
                label_opts=opts.LabelOpts(is_show=False),
                itemstyle_opts=opts.ItemStyleOpts(color=COLORS[4]),
            )
            bar.add_yaxis(
                "Current Period",
                _safe_round_list(top["current_period_cost"].tolist()),
                label_opts=opts.LabelOpts(is_show=False),
                itemstyle_opts=opts.ItemStyleOpts(color=COLORS[0]),
            )
            bar.reversal_axis()

        bar.set_global_opts(
            title_opts=self._title(title, "Services with the largest absolute change"),
            xaxis_opts=opts.AxisOpts(
                name="Cost",
                axislabel_opts=opts.LabelOpts(formatter=JsCode(CURRENCY_AXIS_FORMATTER)),
            ),
            yaxis_opts=opts.AxisOpts(type_="category"),
            tooltip_opts=self._axis_tooltip(),
            legend_opts=opts.LegendOpts(pos_top="10%"),
            toolbox_opts=self._toolbox(),
        )

        self.charts.append(("period_comparison", bar))
        return bar

    def create_anomaly_chart(self, df: pd.DataFrame, title: str = "Cost Anomalies") -> Scatter:
        """
        Create a chart highlighting cost anomalies by service and month.

        Args:
            df: DataFrame with month, service, actual_cost, expected_cost,
                percent_deviation and severity columns
            title: Chart title

        Returns:
            pyecharts Scatter chart
        """
        logger.info("Creating cost anomaly chart...")

        if df.empty:
            logger.warning("No anomalies to visualize")
            scatter = Scatter(init_opts=opts.InitOpts(theme=self.theme, height="600px", width="100%"))
            self.charts.append(("anomalies", scatter))
            return scatter

        months = list(dict.fromkeys(df["month"].tolist()))
        scatter = Scatter(init_opts=opts.InitOpts(theme=self.theme, height="650px", width="100%"))
        scatter.add_xaxis(months)

        for i, service in enumerate(dict.fromkeys(df["service"].tolist())):
            service_data = df[df["service"] == service]

            data = []
            for _, row in service_data.iterrows():
                data.append(
                    {
                        "value": [
                            str(row["month"]),
                            _safe_round(row["actual_cost"]),
                            _safe_round(row["expected_cost"]),
                            _safe_round(row["percent_deviation"], 1),
                            str(row["severity"]),
                        ],
                        "symbolSize": SEVERITY_SYMBOL_SIZES.get(row["severity"], 12),
                        "itemStyle": {"color": SEVERITY_COLORS.get(row["severity"], COLORS[3])},
                    }
                )

            scatter.add_yaxis(
                series_name=service,
                y_axis=data,
                symbol="circle",
                label_opts=opts.LabelOpts(is_show=False),
                itemstyle_opts=opts.ItemStyleOpts(color=COLORS[i % len(COLORS)]),
            )

        scatter.set_global_opts(
            title_opts=self._title(
                title, "Months where a service deviates from the average of the months before"
            ),
            xaxis_opts=opts.AxisOpts(
                name="Month",
                type_="category",
                axislabel_opts=opts.LabelOpts(rotate=45, interval="auto"),
            ),
            yaxis_opts=opts.AxisOpts(
                name="Cost",
                axislabel_opts=opts.LabelOpts(formatter=JsCode(CURRENCY_AXIS_FORMATTER)),
            ),
            tooltip_opts=opts.TooltipOpts(
                trigger="item",
                is_confine=True,
                background_color="transparent",
                border_color="transparent",
                border_width=0,
                extra_css_text="box-shadow: none;",
                formatter=JsCode(
                    """function(params) {
                        var value = params.value;
                        var style = `"""
                    + self._get_tooltip_style()
                    + """`;
                        var result = '<div style="' + style + '">';
                        result += '<strong style="font-size: 12px;">' + params.seriesName + '</strong><br/><br/>';
                        result += '<div style="margin: 2px 0;"><span style="opacity: 0.9;">Month: </span><strong>' + value[0] + '</strong></div>';
                        result += '<div style="margin: 2px 0;"><span style="opacity: 0.9;">Cost: </span><strong>$' + value[1].toLocaleString(undefined, {minimumFractionDigits: 2, maximumFractionDigits: 2}) + '</strong></div>';
                        result += '<div style="margin: 2px 0;"><span style="opacity: 0.9;">Expected: </span><strong>$' + value[2].toLocaleString(undefined, {minimumFractionDigits: 2, maximumFractionDigits: 2}) + '</strong></div>';
                        result += '<div style="margin: 2px 0;"><span style="opacity: 0.9;">Deviation: </span><strong style="color: ' + (value[3] > 0 ? '#ff6b6b' : '#51cf66') + ';">' + (value[3] > 0 ? '+' : '') + value[3].toFixed(1) + '%</strong></div>';
                        result += '<div style="margin: 2px 0;"><span style="opacity: 0.9;">Severity: </span><strong>' + value[4] + '</strong></div>';
                        result += '</div>';
                        return result;
                    }"""
                ),
                textstyle_opts=opts.TextStyleOpts(color="#ffffff"),
            ),
            legend_opts=opts.LegendOpts(
                type_="scroll",
                orient="horizontal",
                pos_top="12%",
                selected_mode="multiple",
            ),
            toolbox_opts=self._toolbox(),
        )

        self.charts.append(("anomalies", scatter))
        return scatter

    def create_projection_chart(
        self,
        trends_df: pd.DataFrame,
        projections_df: pd.DataFrame,
        title: str = "Cost Projection",
    ) -> Line:
        """
        Create a line chart of actual monthly totals followed by projected totals.

        Args:
            trends_df: DataFrame with month and cost columns
            projections_df: DataFrame with month, projected_cost, lower_bound and
                upper_bound columns
            title: Chart title

        Returns:
            pyecharts Line chart
        """
        logger.info("Creating cost projection chart...")

        actual_months = trends_df["month"].tolist() if not trends_df.empty else []
        projected_months = projections_df["month"].tolist() if not projections_df.empty else []
        months = actual_months + projected_months

        actual = _safe_round_list(trends_df["cost"].tolist()) if actual_months else []
        padding = [None] * len(projected_months)

        line = Line(init_opts=opts.InitOpts(theme=self.theme, height="600px", width="100%"))
        line.add_xaxis(months)
        line.add_yaxis(
            "Actual",
            actual + padding,
            is_smooth=True,
            symbol_size=8,
            itemstyle_opts=opts.ItemStyleOpts(color=COLORS[0]),
            label_opts=opts.LabelOpts(is_show=False),
        )

        if projected_months:
            # Projected series start at the last actual point so the lines connect
            lead = [None] * max(0, len(actual_months) - 1)
            anchor = actual[-1:] if actual else []
            for name, column, color, style in [
                ("Projected", "projected_cost", COLORS[3], "dashed"),
                ("Lower Bound", "lower_bound", COLORS[1], "dotted"),
                ("Upper Bound", "upper_bound", COLORS[2], "dotted"),
            ]:
                line.add_yaxis(
                    name,
                    lead + anchor + _safe_round_list(projections_df[column].tolist()),
                    is_smooth=True,
                    symbol_size=6,
                    linestyle_opts=opts.LineStyleOpts(width=2, type_=style),
                    itemstyle_opts=opts.ItemStyleOpts(color=color),
                    label_opts=opts.LabelOpts(is_show=False),
                )

        line.set_global_opts(
            title_opts=self._title(title, "Average monthly growth extrapolated forward"),
            xaxis_opts=opts.AxisOpts(
                name="Month",
                type_="category",
                axislabel_opts=opts.LabelOpts(rotate=45),
            ),
            yaxis_opts=opts.AxisOpts(
                name="Total Cost",
                axislabel_opts=opts.LabelOpts(formatter=JsCode(CURRENCY_AXIS_FORMATTER)),
            ),
            tooltip_opts=self._axis_tooltip(),
            legend_opts=opts.LegendOpts(pos_top="10%"),
            toolbox_opts=self._toolbox(),
        )

        self.charts.append(("projection", line))
        return line

    def create_dashboard_charts(
        self,
        analysis: CostAnalysis,
        frames: Optional[Dict[str, pd.DataFrame]] = None,
        progress: Optional[Callable[[int], Any]] = None,
    ) -> int:
        """
        Create every dashboard chart for an analysis.

        Args:
            analysis: Analysis to chart
            frames: Frames from analysis_frames, built here when not given
            progress: Called with 1 after each of the DASHBOARD_STEPS steps

        Returns:
            Number of charts created
        """
        frames = frames if frames is not None else analysis_frames(analysis)
        step = progress or (lambda _: None)

        self.create_cost_trend_chart(frames["trends"])
        step(1)
        self.create_cost_breakdown_pie(frames["cost_breakdown"])
        step(1)
        if not frames["service_trends"].empty:
            self.create_service_trend_chart(frames["service_trends"])
        step(1)
        if not frames["period_comparison"].empty:
            self.create_period_comparison_chart(frames["period_comparison"])
        step(1)
        # Empty anomaly frames still get a chart
        self.create_anomaly_chart(frames["anomalies"])
        step(1)
        if not frames["projections"].empty:
            self.create_projection_chart(frames["trends"], frames["projections"])
        step(1)
        return len(self.charts)

    def generate_html_report(
        self,
        output_path: str,
        analysis: CostAnalysis,
        title: str = "Cloud Cost Analysis Report",
    ) -> str:
        """
        Generate a comprehensive HTML report with all visualizations.

        Args:
            output_path: Path to save the HTML report
            analysis: Analysis whose summary and insights head the report
            title: Report title

        Returns:
            Path to the generated HTML file
        """
        logger.info(f"Generating HTML report: {output_path}")

        os.makedirs(
            os.path.dirname(output_path) if os.path.dirname(output_path) else ".", exist_ok=True
        )

        # Create Page object to combine all charts
        page = Page(layout=Page.SimplePageLayout)
        for _, chart in self.charts:
            page.add(chart)
        page.render(output_path)

        with open(output_path, "r", encoding="utf-8") as f:
            chart_html = f.read()

        # Extract script dependencies from head (ECharts libraries)
        scripts = []
        head_match = re.search(r"<head>(.*?)</head>", chart_html, re.DOTALL)
        if head_match:
            scripts = re.findall(r"<script[^>]*>.*?</script>", head_match.group(1), re.DOTALL)
        script_block = "\n".join(scripts)

        body_match = re.search(r"<body[^>]*>", chart_html)
        chart_content = chart_html[body_match.end() :] if body_match else chart_html
        chart_content = chart_content.replace("</body>", "").replace("</html>", "")
        chart_content = chart_content.replace("locale: 'ZH'", "locale: 'EN'")
        chart_content = chart_content.replace('locale: "ZH"', 'locale: "EN"')

        # Escape user-provided content to prevent XSS
        months = [trend.month for trend in analysis.trends]
        safe_title = html.escape(str(title))
        safe_total_cost = _safe_round(analysis.total_cost, 2)
        safe_num_services = len(analysis.cost_breakdown.services)
        safe_num_months = len(months)
        safe_date_start = html.escape(months[0]) if months else "N/A"
        safe_date_end = html.escape(months[-1]) if months else "N/A"
        safe_num_anomalies = len(analysis.anomalies)
        safe_change = _safe_round(analysis.period_comparison.total_change.percentage, 1)
        insights_html = "\n".join(
            f"<li>{html.escape(insight)}</li>" for insight in analysis.insights
        )
        growth_html = "\n".join(
            f"<li><strong>{html.escape(g.service)}</strong>: "
            f"{_safe_round(g.average_growth, 1):.1f}% per month "
            f"({html.escape(', '.join(g.months))})</li>"
            for g in analysis.growth_trends
        ) or "<li>No service grew faster than the threshold</li>"

        summary_html = f"""
        <!DOCTYPE html>
        <html lang="en">
        <head>
            <meta charset="UTF-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
            <title>{safe_title}</title>
            {script_block}
            <style>
                body {{
                    margin: 0;
                    font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif;
                    background: #eef1f7;
                    color: #2c3e50;
                }}
                .main-container {{ max-width: 1400px; margin: 30px auto; background: #fff; border-radius: 12px; }}
                .header {{ background: #5470c6; color: #fff; padding: 40px; border-radius: 12px 12px 0 0; }}
                .header h1 {{ margin: 0 0 10px; font-size: 36px; }}
                .content {{ padding: 40px; }}
                h2 {{ border-bottom: 2px solid #5470c6; padding-bottom: 10px; }}
                .summary-grid {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 16px; }}
                .summary-card {{ background: #f4f6fb; border-top: 4px solid #91cc75; border-radius: 8px; padding: 20px; }}
                .summary-card h3 {{ margin: 0 0 10px; font-size: 13px; text-transform: uppercase; color: #6c757d; }}
                .summary-card .value {{ font-size: 26px; font-weight: 700; }}
                .summary-card.small-text .value {{ font-size: 16px; }}
                .list-section ul {{ padding-left: 20px; line-height: 1.6; }}
                .footer {{ text-align: center; padding: 20px; color: #6c757d; font-size: 13px; }}
            </style>
        </head>
        <body>
            <div class="main-container">
                <div class="header">
                    <h1>{safe_title}</h1>
                    <p>Trends, anomalies and period comparison of monthly cloud costs</p>
                </div>
                <div class="content">
                    <div class="summary-section">
                        <h2>Executive Summary</h2>
                        <div class="summary-grid">
                            <div class="summary-card">
                                <h3>Total Cost</h3>
                                <div class="value">${safe_total_cost:,.2f}</div>
                            </div>
                            <div class="summary-card">
                                <h3>Period Change</h3>
                                <div class="value">{safe_change:+.1f}%</div>
                            </div>
                            <div class="summary-card">
                                <h3>Number of Services</h3>
                                <div class="value">{safe_num_services}</div>
                            </div>
                            <div class="summary-card">
                                <h3>Anomalies</h3>
                                <div class="value">{safe_num_anomalies}</div>
                            </div>
                            <div class="summary-card small-text">
                                <h3>Months Analyzed ({safe_num_months})</h3>
                                <div class="value">{safe_date_start}<br>to<br>{safe_date_end}</div>
                            </div>
                        </div>
                    </div>
                    <div class="list-section">
                        <h2>Insights</h2>
                        <ul>
                            {insights_html}
                        </ul>
                    </div>
                    <div class="list-section">
                        <h2>Rapid Growth</h2>
                        <ul>
                            {growth_html}
                        </ul>
                    </div>
                    <div class="charts-section">
                        <h2>Detailed Analysis</h2>
        """

        footer_html = f"""
                    </div>
                </div>
                <div class="footer">
                    <strong>Report generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</strong><br>
                    Powered by Apache ECharts | Cloud Cost Report Generator
                </div>
            </div>
        </body>
        </html>
        """

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(summary_html + chart_content + footer_html)

        logger.info(f"HTML report generated successfully: {output_path}")
        return output_path
