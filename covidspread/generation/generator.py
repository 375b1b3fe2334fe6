"""
CovidSpread Report Generator

报告生成器：把流程结果渲染为图表文件并导出数据表
"""
from pathlib import Path
from typing import Dict, List, Optional

from covidspread.core import get_config, get_logger
from covidspread.data.processors import PipelineResult, PopulationEnricher
from covidspread.domain import SpreadColumns
from .charts import ChartFormat, ChartGenerator
from .data_exporter import DataExporter

logger = get_logger(__name__)

RANKED_METRICS = (
    SpreadColumns.per_million(SpreadColumns.CONFIRMED_TOTAL),
    SpreadColumns.per_million(SpreadColumns.ACTIVE_TOTAL),
    SpreadColumns.per_million(SpreadColumns.DEATHS_TOTAL),
)


class ReportGenerator:
    """
    报告生成器

    完整流程：
    1. 导出整洁数据表
    2. 生成各地区传播图表
    3. 生成每百万指标排名和轨迹对比
    """

    def __init__(self, output_dir: Optional[Path] = None, chart_format: str = ChartFormat.HTML.value):
        """
        初始化报告生成器

        Args:
            output_dir: 输出目录（默认使用配置）
            chart_format: 图表文件格式（html/png/svg/pdf）

        Raises:
            ValueError: 不支持的图表格式
        """
        self.output_dir = Path(output_dir or get_config().output_dir)
        self.chart_dir = self.output_dir / "charts"
        self.chart_format = ChartFormat(chart_format).value
        self.chart_generator = ChartGenerator()
        self.data_exporter = DataExporter(self.output_dir / "tables")

    def generate(
        self,
        result: PipelineResult,
        charts: bool = True,
        formats: Optional[List[str]] = None,
    ) -> Dict[str, Path]:
        """
        生成报告文件

        Args:
            result: 流程结果
            charts: 是否生成图表
            formats: 数据表导出格式

        Returns:
            名称 -> 文件路径
        """
        logger.info(f"Generating report in {self.output_dir}")

        outputs: Dict[str, Path] = dict(self.data_exporter.export_tables(result.tables(), formats))
        if charts:
            outputs.update(self._generate_charts(result))

        logger.info(f"Report generated: {len(outputs)} files")
        return outputs

    def _generate_charts(self, result: PipelineResult) -> Dict[str, Path]:
        self.chart_dir.mkdir(parents=True, exist_ok=True)
        generator = self.chart_generator
        caption = generator.caption(result.generated_at, result.last_observation)

        figures = {}
        if not result.area_spread.empty:
            for metric in (SpreadColumns.CONFIRMED_TOTAL, SpreadColumns.DEATHS_TOTAL, SpreadColumns.ACTIVE_TOTAL):
                name = metric.split("_")[0]
                figures[f"area_{name}"] = generator.area_spread(result.area_spread, metric, caption=caption)
                figures[f"area_{name}_per_day"] = generator.daily_deltas(result.area_spread, metric, caption=caption)
            figures["area_mortality_ratio"] = generator.mortality_ratio(result.area_spread, caption=caption)

        if not result.latest.empty:
            for metric in RANKED_METRICS:
                ranked = PopulationEnricher.rank(result.latest, metric)
                figures[f"ranking_{metric}"] = generator.per_million_ranking(ranked, metric, caption=caption)
            figures["trajectories"] = generator.trajectories(
                result.enriched,
                result.top_countries,
                curves=result.doubling_curves,
                caption=caption,
            )
        else:
            logger.warning("No population-enriched rows; skipping per-million charts")

        saved = {}
        for name, fig in figures.items():
            path = self.chart_dir / f"{name}.{self.chart_format}"
            saved[f"chart:{name}"] = generator.save_chart(fig, path, format=self.chart_format)
        return saved
