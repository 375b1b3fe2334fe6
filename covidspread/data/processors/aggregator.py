"""
CovidSpread Spread Aggregator

按 (地区|国家, 日期) 汇总累计数，计算现存病例、每日新增、比率和阈值天数
"""
from typing import Literal

import pandas as pd

from covidspread.core import get_logger
from covidspread.domain import Columns, SpreadColumns

logger = get_logger(__name__)

GroupKey = Literal["country", "area"]


def safe_ratio(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """
    统一的比率计算

    分母为0时结果为 NaN（不产生 inf），NaN 输入保持 NaN
    """
    numerator = numerator.astype("float64")
    denominator = denominator.astype("float64")
    return (numerator / denominator.where(denominator != 0)).astype("float64")


class SpreadAggregator:
    """
    传播指标汇总器

    同一 (国家, 日期) 下的多行（不同省份）累计数求和，得到该日全国累计数
    """

    def aggregate(self, cases: pd.DataFrame, by: GroupKey = "country") -> pd.DataFrame:
        """
        汇总累计数并派生指标

        Args:
            cases: 标准化（并对齐国家名）后的病例表
            by: 分组键，"country" 或 "area"

        Returns:
            每个 (分组, 日期) 一行的汇总表
        """
        key = Columns.COUNTRY if by == "country" else Columns.AREA
        if key not in cases.columns:
            raise KeyError(f"Cannot aggregate by '{by}': column {key} not found")

        dated = cases.dropna(subset=[key, Columns.OBSERVATION_DATE])
        skipped = len(cases) - len(dated)
        if skipped:
            logger.warning(f"Skipped {skipped} rows without {key} or observation date")

        spread = (
            dated.groupby([key, Columns.OBSERVATION_DATE], sort=True)[list(Columns.COUNTS)]
            .sum()
            .reset_index()
            .rename(columns={
                Columns.CONFIRMED: SpreadColumns.CONFIRMED_TOTAL,
                Columns.DEATHS: SpreadColumns.DEATHS_TOTAL,
                Columns.RECOVERED: SpreadColumns.RECOVERED_TOTAL,
            })
        )

        # 允许为负（原始数据不一致时），不做修正
        spread[SpreadColumns.ACTIVE_TOTAL] = (
            spread[SpreadColumns.CONFIRMED_TOTAL]
            - spread[SpreadColumns.DEATHS_TOTAL]
            - spread[SpreadColumns.RECOVERED_TOTAL]
        )

        spread = self.add_daily_deltas(spread, key)

        spread[SpreadColumns.MORTALITY_RATIO] = safe_ratio(
            spread[SpreadColumns.DEATHS_TOTAL], spread[SpreadColumns.CONFIRMED_TOTAL]
        )
        spread[SpreadColumns.RECOVERY_RATIO] = safe_ratio(
            spread[SpreadColumns.RECOVERED_TOTAL], spread[SpreadColumns.CONFIRMED_TOTAL]
        )

        negative = int((spread[SpreadColumns.ACTIVE_TOTAL] < 0).sum())
        if negative:
            logger.warning(f"{negative} {by}/date rows have negative active cases (confirmed < deaths + recovered)")

        logger.info(f"Aggregated {len(dated)} rows into {len(spread)} {by}/date rows")
        return spread

    @staticmethod
    def add_daily_deltas(spread: pd.DataFrame, key: str) -> pd.DataFrame:
        """
        每日新增 = 当前累计 - 组内上一条记录的累计

        上一条按组内日期顺序取（不补齐缺失日期），首条记录新增为0
        """
        spread = spread.sort_values([key, Columns.OBSERVATION_DATE]).reset_index(drop=True)
        grouped = spread.groupby(key, sort=False)
        for total in SpreadColumns.TOTALS:
            spread[SpreadColumns.per_day(total)] = grouped[total].diff().fillna(0).astype("int64")
        return spread

    @staticmethod
    def add_threshold_days(
        spread: pd.DataFrame,
        confirmed_threshold: int,
        deaths_threshold: int,
    ) -> pd.DataFrame:
        """
        计算各国距首次超过阈值的天数

        确诊数/死亡数首次严格大于阈值的日期记为第0天；此前的行（以及从未
        超过阈值的国家）对应字段为空值
        """
        spread = spread.copy()
        for total, threshold, target in (
            (SpreadColumns.CONFIRMED_TOTAL, confirmed_threshold, SpreadColumns.DAYS_SINCE_CONFIRMED),
            (SpreadColumns.DEATHS_TOTAL, deaths_threshold, SpreadColumns.DAYS_SINCE_DEATHS),
        ):
            dates = spread[Columns.OBSERVATION_DATE]
            first = dates.where(spread[total] > threshold).groupby(spread[Columns.COUNTRY]).transform("min")
            days = (dates - first).dt.days
            spread[target] = days.where(days >= 0).astype("Int64")
        return spread

    @staticmethod
    def drop_before_confirmed_threshold(frame: pd.DataFrame) -> pd.DataFrame:
        """
        删除确诊阈值之前的行

        仅按确诊阈值删行；死亡阈值之前的行保留，对应天数为空
        """
        kept = frame[frame[SpreadColumns.DAYS_SINCE_CONFIRMED].notna()]
        logger.debug(f"Dropped {len(frame) - len(kept)} rows before the confirmed threshold")
        return kept.reset_index(drop=True)
