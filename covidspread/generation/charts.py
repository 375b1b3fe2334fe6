"""
CovidSpread Chart Generator

图表生成器：使用Plotly把整洁数据表渲染为图表
"""
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from covidspread.core import get_logger
from covidspread.core.exceptions import ReportError
from covidspread.domain import Columns, SpreadColumns

logger = get_logger(__name__)


class ChartFormat(str, Enum):
    """图表文件格式，html 以外的格式需要安装 kaleido（images 扩展）"""
    HTML = "html"
    PNG = "png"
    SVG = "svg"
    PDF = "pdf"


class ChartGenerator:
    """
    图表生成器

    支持的图表：
    - 各地区累计数折线图
    - 各地区每日新增柱状图
    - 各地区病死率折线图
    - 最新每百万指标排名
    - 每百万现存病例轨迹与参考倍增曲线对比
    """

    def __init__(self, theme: str = "plotly_white"):
        """
        初始化图表生成器

        Args:
            theme: Plotly主题
        """
        self.theme = theme
        self.default_height = 500
        self.default_width = 900
        logger.debug(f"ChartGenerator initialized with theme '{theme}'")

    def _layout(self, fig: go.Figure, title: str, caption: Optional[str] = None, **kwargs) -> go.Figure:
        if caption:
            title = f"{title}<br><sup>{caption}</sup>"
        fig.update_layout(
            title=title,
            template=self.theme,
            height=kwargs.get("height", self.default_height),
            width=kwargs.get("width", self.default_width),
        )
        return fig

    def area_spread(
        self,
        area_spread: pd.DataFrame,
        metric: str = SpreadColumns.CONFIRMED_TOTAL,
        caption: Optional[str] = None,
        **kwargs
    ) -> go.Figure:
        """各地区累计数随时间变化"""
        logger.debug(f"Generating area spread chart: {metric}")

        fig = px.line(
            area_spread,
            x=Columns.OBSERVATION_DATE,
            y=metric,
            color=Columns.AREA,
            labels={Columns.OBSERVATION_DATE: "Date", metric: metric.replace("_", " ").title()},
        )
        return self._layout(fig, f"Cumulative {metric.split('_')[0]} by area", caption, **kwargs)

    def daily_deltas(
        self,
        area_spread: pd.DataFrame,
        metric: str = SpreadColumns.CONFIRMED_TOTAL,
        caption: Optional[str] = None,
        **kwargs
    ) -> go.Figure:
        """各地区每日新增"""
        per_day = SpreadColumns.per_day(metric)
        logger.debug(f"Generating daily delta chart: {per_day}")

        fig = px.bar(
            area_spread,
            x=Columns.OBSERVATION_DATE,
            y=per_day,
            color=Columns.AREA,
            barmode="stack",
            labels={Columns.OBSERVATION_DATE: "Date", per_day: "New cases per day"},
        )
        return self._layout(fig, f"Daily new {metric.split('_')[0]} by area", caption, **kwargs)

    def mortality_ratio(self, area_spread: pd.DataFrame, caption: Optional[str] = None, **kwargs) -> go.Figure:
        """各地区病死率（deaths / confirmed）"""
        logger.debug("Generating mortality ratio chart")

        fig = px.line(
            area_spread,
            x=Columns.OBSERVATION_DATE,
            y=SpreadColumns.MORTALITY_RATIO,
            color=Columns.AREA,
            labels={Columns.OBSERVATION_DATE: "Date", SpreadColumns.MORTALITY_RATIO: "Deaths / Confirmed"},
        )
        fig.update_yaxes(tickformat=".1%")
        return self._layout(fig, "Mortality ratio by area", caption, **kwargs)

    def per_million_ranking(
        self,
        ranked: pd.DataFrame,
        metric: str,
        top_n: int = 20,
        caption: Optional[str] = None,
        **kwargs
    ) -> go.Figure:
        """
        最新快照的每百万指标排名（水平柱状图）

        Args:
            ranked: PopulationEnricher.rank 的结果
            metric: 每百万指标列名
            top_n: 显示的国家数量
        """
        logger.debug(f"Generating ranking chart: {metric}")

        data = ranked.head(top_n)
        fig = go.Figure(go.Bar(
            x=data[metric],
            y=data[Columns.COUNTRY],
            orientation="h",
            text=data[metric].round(1),
            textposition="auto",
        ))
        fig.update_layout(yaxis={"categoryorder": "total ascending"})
        return self._layout(fig, f"Top {len(data)} countries by {metric}", caption, **kwargs)

    def trajectories(
        self,
        enriched: pd.DataFrame,
        countries: List[str],
        curves: Optional[pd.DataFrame] = None,
        metric: str = SpreadColumns.per_million(SpreadColumns.ACTIVE_TOTAL),
        caption: Optional[str] = None,
        **kwargs
    ) -> go.Figure:
        """
        按距确诊阈值天数对齐的各国轨迹，叠加参考倍增曲线

        Args:
            enriched: 人口增强后的表
            countries: 需要绘制的国家
            curves: PopulationEnricher.doubling_curves 的结果
            metric: 纵轴指标
        """
        logger.debug(f"Generating trajectory chart for {len(countries)} countries")

        fig = go.Figure()
        data = enriched[enriched[Columns.COUNTRY].isin(countries)]
        for country in countries:
            series = data[data[Columns.COUNTRY] == country]
            if series.empty:
                continue
            fig.add_trace(go.Scatter(
                x=series[SpreadColumns.DAYS_SINCE_CONFIRMED].astype("int64"),
                y=series[metric],
                mode="lines",
                name=country,
                line=dict(width=2),
            ))

        if curves is not None and not curves.empty:
            start = data.loc[data[SpreadColumns.DAYS_SINCE_CONFIRMED] == 0, metric]
            base = float(start.median()) if not start.empty else 1.0
            if not base > 0:
                base = 1.0
            for period, curve in curves.groupby("period_days"):
                fig.add_trace(go.Scatter(
                    x=curve["days_since_event"],
                    y=curve["value"] * base,
                    mode="lines",
                    name=f"(1 + 1/{period})^days",
                    line=dict(width=1, dash="dash", color="grey"),
                ))

        fig.update_yaxes(type="log")
        fig.update_layout(hovermode="x unified", xaxis_title="Days since threshold", yaxis_title=metric)
        return self._layout(fig, "Active cases per 1M since threshold", caption, **kwargs)

    def save_chart(self, fig: go.Figure, filepath: Path, format: str = ChartFormat.HTML.value) -> Path:
        """
        保存图表到文件

        Args:
            fig: Plotly图表对象
            filepath: 保存路径
            format: 格式（html/png/svg/pdf）

        Raises:
            ValueError: 不支持的格式
            ReportError: 图片导出失败（通常是未安装 kaleido）
        """
        fmt = ChartFormat(format)
        filepath = Path(filepath)
        logger.debug(f"Saving chart to {filepath} (format: {fmt.value})")

        if fmt is ChartFormat.HTML:
            fig.write_html(filepath, include_plotlyjs="cdn")
            return filepath

        try:
            fig.write_image(filepath, format=fmt.value)
        except Exception as e:
            logger.error(f"Failed to save chart {filepath}: {e}")
            raise ReportError(
                f"Cannot write {fmt.value} chart {filepath.name}: {e} "
                f"(image export needs kaleido: pip install 'covidspread[images]')"
            ) from e
        return filepath

    @staticmethod
    def caption(generated_at: datetime, last_observation: Optional[pd.Timestamp] = None) -> str:
        """“最后更新”标注"""
        text = f"Last updated {generated_at:%Y-%m-%d %H:%M}"
        if last_observation is not None and not pd.isna(last_observation):
            text += f" | data through {last_observation:%Y-%m-%d}"
        return text
