"""
CovidSpread Archive Loader

从压缩包中读取病例表和人口表
"""
import zipfile
from pathlib import Path
from typing import Optional

import pandas as pd

from covidspread.core import get_logger
from covidspread.core.config import DataSettings
from covidspread.core.exceptions import DataLoadError
from covidspread.domain import PopulationColumns

logger = get_logger(__name__)


def read_archive_table(archive: Path, member: Optional[str] = None, **read_csv_kwargs) -> pd.DataFrame:
    """
    读取压缩包中的分隔文本表

    Args:
        archive: zip文件路径
        member: 压缩包内文件名，为None时压缩包内必须只有一个CSV
        **read_csv_kwargs: 透传给 pandas.read_csv

    Returns:
        数据框

    Raises:
        DataLoadError: 压缩包不存在、损坏、缺少文件或表格无法解析
    """
    archive = Path(archive)
    if not archive.is_file():
        raise DataLoadError(f"Archive not found: {archive}")

    try:
        with zipfile.ZipFile(archive) as zf:
            if member is None:
                candidates = [name for name in zf.namelist() if name.lower().endswith(".csv")]
                if len(candidates) != 1:
                    raise DataLoadError(
                        f"Cannot pick a table from {archive}: expected one CSV, found {candidates}"
                    )
                member = candidates[0]

            with zf.open(member) as fh:
                df = pd.read_csv(fh, **read_csv_kwargs)
    except zipfile.BadZipFile as e:
        raise DataLoadError(f"Corrupt archive {archive}: {e}") from e
    except KeyError as e:
        raise DataLoadError(f"Member '{member}' not found in {archive}") from e
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Cannot parse {member} in {archive}: {e}") from e

    logger.info(f"Loaded {len(df)} rows from {archive.name}:{member}")
    return df


class ArchiveLoader:
    """
    数据加载器

    负责读取两张输入表：
    1. 病例表（按国家/省份/日期的累计数）
    2. 人口表（国家名称 + 人口数）
    """

    def __init__(self, settings: DataSettings):
        self.settings = settings

    def load_cases(self) -> pd.DataFrame:
        """读取原始病例表，仅把空串、NA、None视为缺失"""
        return read_archive_table(
            self.settings.cases_archive,
            self.settings.cases_member,
            na_values=self.settings.na_values,
            keep_default_na=False,
        )

    def load_population(self) -> pd.DataFrame:
        """
        读取人口表并统一为 country_name / population 两列

        人口缺失或非正数的行会被丢弃
        """
        raw = read_archive_table(
            self.settings.population_archive,
            self.settings.population_member,
            na_values=self.settings.na_values,
            keep_default_na=False,
            thousands=",",
        )
        return self.prepare_population(raw)

    def prepare_population(self, raw: pd.DataFrame) -> pd.DataFrame:
        """将原始人口表转换为 PopulationRecord 结构"""
        country_col = self.settings.population_country_column
        value_col = self.settings.population_value_column

        missing = [col for col in (country_col, value_col) if col not in raw.columns]
        if missing:
            raise DataLoadError(f"Population table is missing columns: {missing}")

        df = raw[[country_col, value_col]].rename(
            columns={
                country_col: PopulationColumns.COUNTRY_NAME,
                value_col: PopulationColumns.POPULATION,
            }
        )
        df[PopulationColumns.COUNTRY_NAME] = df[PopulationColumns.COUNTRY_NAME].astype("string").str.strip()
        df[PopulationColumns.POPULATION] = pd.to_numeric(df[PopulationColumns.POPULATION], errors="coerce")

        named = df[PopulationColumns.COUNTRY_NAME].fillna("").ne("").astype(bool)
        valid = named & (df[PopulationColumns.POPULATION] > 0)
        dropped = int((~valid).sum())
        if dropped:
            logger.warning(f"Dropped {dropped} population rows with missing name or non-positive population")

        df = df[valid].copy()
        duplicated = df[PopulationColumns.COUNTRY_NAME].duplicated(keep="first")
        if duplicated.any():
            logger.warning(
                f"Duplicate population rows kept first: {sorted(df.loc[duplicated, PopulationColumns.COUNTRY_NAME])}"
            )
            df = df[~duplicated]
        df[PopulationColumns.COUNTRY_NAME] = df[PopulationColumns.COUNTRY_NAME].astype(object)
        df[PopulationColumns.POPULATION] = df[PopulationColumns.POPULATION].astype("int64")
        return df.reset_index(drop=True)
