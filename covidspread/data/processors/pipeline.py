"""
CovidSpread Spread Pipeline

数据处理流程，整合加载、标准化、名称对齐、汇总和人口增强
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from covidspread.core import get_config, get_logger
from covidspread.core.config import AppSettings
from covidspread.data.loaders import ArchiveLoader
from covidspread.data.normalizers import CaseNormalizer, CountryReconciler, CountryRenameTable, ReconciliationReport
from covidspread.domain import Columns, SpreadColumns
from .aggregator import SpreadAggregator
from .enricher import PopulationEnricher

logger = get_logger(__name__)


@dataclass(eq=False)
class PipelineResult:
    """流程输出的全部数据表"""

    cases: pd.DataFrame
    population: pd.DataFrame
    reconciliation: ReconciliationReport
    area_spread: pd.DataFrame
    country_spread: pd.DataFrame
    enriched: pd.DataFrame
    latest: pd.DataFrame
    top_countries: List[str]
    doubling_curves: pd.DataFrame

    # 墙钟时间，仅用于图表标注
    generated_at: datetime = field(default_factory=datetime.now)

    def tables(self) -> Dict[str, pd.DataFrame]:
        """可导出的整洁数据表"""
        return {
            "area_spread": self.area_spread,
            "country_spread": self.country_spread,
            "population_enriched_spread": self.enriched,
            "latest_snapshot": self.latest,
            "doubling_curves": self.doubling_curves,
        }

    @property
    def last_observation(self) -> Optional[pd.Timestamp]:
        if self.country_spread.empty:
            return None
        return self.country_spread[Columns.OBSERVATION_DATE].max()


class SpreadPipeline:
    """
    传播分析流程

    负责：
    1. 读取病例表和人口表
    2. 病例表标准化
    3. 国家名称对齐
    4. 按地区和国家汇总
    5. 人口增强、排名和参考曲线

    每次运行都从输入重新计算，相同输入得到相同结果
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        rename_table: Optional[CountryRenameTable] = None,
    ):
        """
        初始化流程

        Args:
            settings: 应用配置，默认使用全局配置
            rename_table: 国家名称映射表，默认按配置加载
        """
        self.settings = settings or get_config()
        pipeline = self.settings.pipeline

        if rename_table is None:
            if self.settings.data.rename_table is not None:
                rename_table = CountryRenameTable.from_csv(self.settings.data.rename_table)
            else:
                rename_table = CountryRenameTable.default()

        self.loader = ArchiveLoader(self.settings.data)
        self.normalizer = CaseNormalizer()
        self.reconciler = CountryReconciler(
            rename_table,
            max_unmatched_confirmed=pipeline.max_unmatched_confirmed,
            strict=pipeline.strict_reconciliation,
        )
        self.aggregator = SpreadAggregator()
        self.enricher = PopulationEnricher(
            min_population=pipeline.min_population,
            top_n=pipeline.top_n,
            watch_list=pipeline.watch_list,
            doubling_periods=pipeline.doubling_periods,
        )

    def run(self) -> PipelineResult:
        """读取压缩包并运行完整流程"""
        logger.info("Loading input archives")
        raw_cases = self.loader.load_cases()
        population = self.loader.load_population()
        return self.process(raw_cases, population)

    def process(self, raw_cases: pd.DataFrame, population: pd.DataFrame) -> PipelineResult:
        """
        处理已加载的数据

        Args:
            raw_cases: 原始病例表
            population: 人口表（country_name / population）

        Returns:
            PipelineResult
        """
        pipeline = self.settings.pipeline

        cases = self.normalizer.normalize(raw_cases)
        cases, report = self.reconciler.reconcile(cases, population)

        area_spread = self.aggregator.aggregate(cases, by="area")
        country_spread = self.aggregator.aggregate(cases, by="country")
        country_spread = self.aggregator.add_threshold_days(
            country_spread,
            confirmed_threshold=pipeline.confirmed_threshold,
            deaths_threshold=pipeline.deaths_threshold,
        )

        enriched = self.enricher.enrich(country_spread, population)
        latest = self.enricher.latest_snapshot(enriched)
        top = self.enricher.top_countries(latest)

        max_days = 0
        if not enriched.empty:
            max_days = int(enriched[SpreadColumns.DAYS_SINCE_CONFIRMED].max())
        curves = self.enricher.doubling_curves(max_days)

        logger.info(
            f"Pipeline finished: {len(area_spread)} area rows, {len(country_spread)} country rows, "
            f"{len(enriched)} enriched rows, {len(top)} selected countries"
        )
        return PipelineResult(
            cases=cases,
            population=population,
            reconciliation=report,
            area_spread=area_spread,
            country_spread=country_spread,
            enriched=enriched,
            latest=latest,
            top_countries=top,
            doubling_curves=curves,
        )
