"""
CovidSpread Case Normalizer

病例表标准化：列名修复、文本清理、地理分区、日期解析
"""
import re
from typing import Dict, List

import numpy as np
import pandas as pd

from covidspread.core import get_logger
from covidspread.core.exceptions import DataValidationError
from covidspread.domain import Area, Columns

logger = get_logger(__name__)

# 标准化后的列名别名
COLUMN_ALIASES: Dict[str, str] = {
    "country_region": Columns.COUNTRY,
    "country_or_region": Columns.COUNTRY,
    "province": Columns.PROVINCE,
    "state": Columns.PROVINCE,
    "observationdate": Columns.OBSERVATION_DATE,
    "date": Columns.OBSERVATION_DATE,
    "lastupdate": Columns.LAST_UPDATE,
}

OBSERVATION_DATE_FORMAT = "%m/%d/%Y"
LAST_UPDATE_FORMATS: List[str] = ["%Y-%m-%d %H:%M:%S", "%m/%d/%y %H:%M"]


def canonicalize_column(name: str) -> str:
    """
    将列名转换为小写下划线形式

    "ObservationDate" -> "observation_date"
    "Province/State"  -> "province_state"
    "Last Update"     -> "last_update"
    """
    name = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", str(name).strip())
    name = re.sub(r"[^0-9a-zA-Z]+", "_", name).strip("_").lower()
    return COLUMN_ALIASES.get(name, name)


def classify_area(province: pd.Series, country: pd.Series) -> pd.Series:
    """
    按顺序规则计算地理分区，首个命中的规则生效

    1. 省份 == Hubei                -> Hubei
    2. 国家 == US                   -> US
    3. 国家名包含 China             -> China (exclude Hubei)
    4. 其他                         -> Rest of World
    """
    conditions = [
        province.eq("Hubei").fillna(False).to_numpy(dtype=bool),
        country.eq("US").fillna(False).to_numpy(dtype=bool),
        country.str.contains("China", regex=False, na=False).to_numpy(dtype=bool),
    ]
    choices = [Area.HUBEI.value, Area.US.value, Area.CHINA_EXCLUDE_HUBEI.value]
    return pd.Series(
        np.select(conditions, choices, default=Area.REST_OF_WORLD.value),
        index=country.index,
        dtype=object,
    )


def parse_last_update(values: pd.Series) -> pd.Series:
    """依次尝试两种时间格式，无法解析的值为 NaT"""
    text = values.astype("string").str.strip()
    parsed = pd.Series(pd.NaT, index=values.index, dtype="datetime64[ns]")
    for fmt in LAST_UPDATE_FORMATS:
        pending = parsed.isna() & text.notna()
        if not pending.any():
            break
        parsed.loc[pending] = pd.to_datetime(text[pending], format=fmt, errors="coerce")
    return parsed


def _strip_text(values: pd.Series) -> pd.Series:
    text = values.astype("string").str.strip()
    text = text.mask((text == "").fillna(False))
    return text.astype(object).where(text.notna(), np.nan)


class CaseNormalizer:
    """
    病例表标准化器

    输入为原始病例表（列名大小写/标点不一致），输出为使用固定列名的新数据框，
    不修改输入。
    """

    def normalize(self, raw: pd.DataFrame) -> pd.DataFrame:
        """
        标准化病例表

        Args:
            raw: 原始病例表

        Returns:
            标准化后的病例表

        Raises:
            DataValidationError: 缺少必需的列
        """
        df = raw.copy()
        df.columns = [canonicalize_column(col) for col in df.columns]
        df = df.loc[:, ~df.columns.duplicated()].copy()

        missing = [col for col in Columns.REQUIRED if col not in df.columns]
        if missing:
            raise DataValidationError(f"Case table is missing columns: {missing}")

        for col in Columns.OPTIONAL:
            if col not in df.columns:
                df[col] = None

        df[Columns.PROVINCE] = _strip_text(df[Columns.PROVINCE])
        df[Columns.COUNTRY] = _strip_text(df[Columns.COUNTRY])

        df = self._normalize_counts(df)
        df[Columns.AREA] = classify_area(df[Columns.PROVINCE], df[Columns.COUNTRY])
        df = self._parse_dates(df)

        logger.info(f"Normalized {len(df)} case rows, {df[Columns.COUNTRY].nunique()} countries")
        return df

    def _normalize_counts(self, df: pd.DataFrame) -> pd.DataFrame:
        """累计数转为整数，缺失值按0处理"""
        for col in Columns.COUNTS:
            values = pd.to_numeric(df[col], errors="coerce")
            missing = int(values.isna().sum())
            if missing:
                logger.warning(f"Column {col}: {missing} missing/non-numeric values filled with 0")
            df[col] = values.fillna(0).astype("int64")
        return df

    def _parse_dates(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        解析观测日期和更新时间

        观测日期解析失败时保留该行、日期置空，不中止流程
        """
        raw_dates = df[Columns.OBSERVATION_DATE]
        parsed = pd.to_datetime(
            raw_dates.astype("string").str.strip(),
            format=OBSERVATION_DATE_FORMAT,
            errors="coerce",
        )
        failed = parsed.isna() & raw_dates.notna()
        if failed.any():
            samples = raw_dates[failed].astype(str).unique()[:5].tolist()
            logger.warning(f"{int(failed.sum())} rows have unparseable observation dates (e.g. {samples})")
        df[Columns.OBSERVATION_DATE] = parsed

        df[Columns.LAST_UPDATE] = parse_last_update(df[Columns.LAST_UPDATE])
        return df
