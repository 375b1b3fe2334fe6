"""
CovidSpread Population Enricher

关联人口数据：每百万人口指标、最新快照、国家排名、参考倍增曲线
"""
from typing import List, Optional, Sequence

import pandas as pd

from covidspread.core import get_logger
from covidspread.domain import Columns, PopulationColumns, SpreadColumns
from .aggregator import SpreadAggregator, safe_ratio

logger = get_logger(__name__)

PER_MILLION = 1_000_000


class PopulationEnricher:
    """
    人口数据增强器

    1. 按对齐后的国家名与人口表内连接
    2. 排除人口不超过下限的国家
    3. 计算每百万人口指标
    4. 删除确诊阈值之前的行
    """

    def __init__(
        self,
        min_population: int = 1_000_000,
        top_n: int = 10,
        watch_list: Optional[Sequence[str]] = None,
        doubling_periods: Sequence[int] = (1, 2, 3, 7),
    ):
        self.min_population = min_population
        self.top_n = top_n
        self.watch_list = list(watch_list or [])
        self.doubling_periods = list(doubling_periods)

    def enrich(self, country_spread: pd.DataFrame, population: pd.DataFrame) -> pd.DataFrame:
        """
        生成 PopulationEnrichedSpread

        Args:
            country_spread: 按国家汇总的表（已含阈值天数）
            population: 人口表

        Returns:
            含人口和每百万指标的表，按 (国家, 日期) 排序
        """
        eligible = population[population[PopulationColumns.POPULATION] > self.min_population]
        excluded = len(population) - len(eligible)
        if excluded:
            logger.debug(f"{excluded} countries at or below population {self.min_population} excluded")

        eligible = eligible.drop_duplicates(subset=[PopulationColumns.COUNTRY_NAME], keep="first")
        enriched = country_spread.merge(
            eligible[[PopulationColumns.COUNTRY_NAME, PopulationColumns.POPULATION]],
            how="inner",
            left_on=Columns.COUNTRY,
            right_on=PopulationColumns.COUNTRY_NAME,
        ).drop(columns=[PopulationColumns.COUNTRY_NAME])

        for total in SpreadColumns.TOTALS:
            enriched[SpreadColumns.per_million(total)] = (
                safe_ratio(enriched[total], enriched[PopulationColumns.POPULATION]) * PER_MILLION
            )

        enriched = SpreadAggregator.drop_before_confirmed_threshold(enriched)
        enriched = enriched.sort_values([Columns.COUNTRY, Columns.OBSERVATION_DATE]).reset_index(drop=True)

        logger.info(
            f"Enriched {enriched[Columns.COUNTRY].nunique()} countries "
            f"({len(enriched)} rows) with population data"
        )
        return enriched

    @staticmethod
    def latest_snapshot(frame: pd.DataFrame) -> pd.DataFrame:
        """每个国家观测日期最大的一行"""
        if frame.empty:
            return frame.copy()
        idx = frame.groupby(Columns.COUNTRY)[Columns.OBSERVATION_DATE].idxmax()
        return frame.loc[idx].sort_values(Columns.COUNTRY).reset_index(drop=True)

    @staticmethod
    def rank(latest: pd.DataFrame, metric: str, ascending: bool = False) -> pd.DataFrame:
        """
        按指标排序最新快照

        Args:
            latest: 最新快照
            metric: 排序列，如 confirmed_total_per_1M
            ascending: 是否升序

        Returns:
            带1起始 rank 列的数据框
        """
        ranked = latest.sort_values(
            [metric, Columns.COUNTRY],
            ascending=[ascending, True],
            na_position="last",
        ).reset_index(drop=True)
        ranked.insert(0, "rank", range(1, len(ranked) + 1))
        return ranked

    def top_countries(self, latest: pd.DataFrame) -> List[str]:
        """
        每百万现存病例前N名与关注列表的并集

        顺序：排名结果在前，随后是尚未包含的关注国家（按关注列表顺序）
        """
        metric = SpreadColumns.per_million(SpreadColumns.ACTIVE_TOTAL)
        ranked = self.rank(latest, metric)
        selected = ranked[Columns.COUNTRY].head(self.top_n).tolist()

        available = set(latest[Columns.COUNTRY])
        for country in self.watch_list:
            if country in selected:
                continue
            if country not in available:
                logger.warning(f"Watch-list country has no population-enriched data: {country}")
                continue
            selected.append(country)
        return selected

    def doubling_curves(self, max_days: int) -> pd.DataFrame:
        """
        参考倍增曲线 (1 + 1/P) ** days

        仅作对比基线，不做拟合
        """
        days = range(0, max(int(max_days), 0) + 1)
        rows = [
            {"days_since_event": d, "period_days": p, "value": (1 + 1 / p) ** d}
            for p in self.doubling_periods
            for d in days
        ]
        return pd.DataFrame(rows, columns=["days_since_event", "period_days", "value"])
