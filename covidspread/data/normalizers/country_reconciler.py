"""
CovidSpread Country Reconciler

国家名称对齐：把病例表中的自由文本国家名映射为人口表中的标准名称
- 使用显式的映射表（旧名称 -> 标准名称），不做模糊匹配
- 映射前后分别计算差集，评估剩余未匹配名称的确诊量
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Set, Tuple

import pandas as pd

from covidspread.core import get_logger
from covidspread.core.exceptions import DataLoadError, UnmatchedCountryError
from covidspread.domain import Columns, PopulationColumns

logger = get_logger(__name__)

DEFAULT_RENAME_TABLE = Path(__file__).resolve().parents[2] / "configs" / "country_renames.csv"


@dataclass(frozen=True)
class CountryRenameTable:
    """国家名称映射表"""
    mapping: Dict[str, str]
    version: str = "unversioned"
    # 标准名称对应的人口表（文件头 "# population-source: ..."）
    source: str = ""

    def __post_init__(self):
        chained = sorted(set(self.mapping.values()) & set(self.mapping))
        if chained:
            logger.warning(f"Rename table {self.version}: canonical names also used as old names: {chained}")

    def __len__(self) -> int:
        return len(self.mapping)

    @classmethod
    def from_csv(cls, path: Path) -> "CountryRenameTable":
        """
        从CSV加载映射表

        文件格式：开头可有 "# key: value" 注释行（version、population-source），
        随后是 old_name,canonical_name[,notes] 三列

        Raises:
            DataLoadError: 文件不存在、无法解析或缺少必需的列
        """
        path = Path(path)
        try:
            header = cls._read_header(path)
            df = pd.read_csv(path, comment="#", dtype=str, keep_default_na=False)
        except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise DataLoadError(f"Cannot read rename table {path}: {e}") from e

        missing = {"old_name", "canonical_name"} - set(df.columns)
        if missing:
            raise DataLoadError(f"Rename table {path} is missing columns: {sorted(missing)}")

        version = header.get("version", "unversioned")
        source = header.get("population-source", "")

        mapping = {
            row.old_name.strip(): row.canonical_name.strip()
            for row in df.itertuples(index=False)
            if row.old_name.strip() and row.canonical_name.strip()
        }
        logger.info(
            f"Loaded rename table {path.name} (version {version}): {len(mapping)} entries"
            + (f", canonical names from {source}" if source else "")
        )
        return cls(mapping=mapping, version=version, source=source)

    @staticmethod
    def _read_header(path: Path) -> Dict[str, str]:
        """读取文件开头的 "# key: value" 注释"""
        header = {}
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line.startswith("#"):
                    break
                key, sep, value = line.lstrip("#").partition(":")
                if sep:
                    header[key.strip().lower()] = value.strip()
        return header

    @classmethod
    def default(cls) -> "CountryRenameTable":
        """内置映射表"""
        return cls.from_csv(DEFAULT_RENAME_TABLE)

    def with_mapping(self, extra: Dict[str, str], version: Optional[str] = None) -> "CountryRenameTable":
        """
        返回追加了新映射的副本

        用于处理新数据中出现的名称变体，确认后需要同步更新映射文件
        """
        merged = {**self.mapping, **extra}
        return CountryRenameTable(
            mapping=merged,
            version=version or f"{self.version}+local",
            source=self.source,
        )


@dataclass
class ReconciliationReport:
    """映射前后的差集及剩余未匹配名称的确诊量"""
    unmatched_before: Set[str]
    unmatched_after: Set[str]
    unmatched_volume: Dict[str, int]
    total_confirmed: int
    threshold: int
    table_version: str = "unversioned"
    renamed: Dict[str, str] = field(default_factory=dict)

    @property
    def material(self) -> Dict[str, int]:
        """确诊量超过可忽略阈值的未匹配名称"""
        return {name: volume for name, volume in self.unmatched_volume.items() if volume > self.threshold}

    @property
    def is_acceptable(self) -> bool:
        return not self.material

    @property
    def unmatched_confirmed(self) -> int:
        return int(sum(self.unmatched_volume.values()))

    @property
    def unmatched_share(self) -> float:
        """未匹配确诊量占比"""
        if self.total_confirmed <= 0:
            return 0.0
        return self.unmatched_confirmed / self.total_confirmed


def latest_confirmed_by_country(cases: pd.DataFrame) -> pd.Series:
    """每个国家最新观测日期的确诊总数（同日各省份求和）"""
    dated = cases.dropna(subset=[Columns.COUNTRY, Columns.OBSERVATION_DATE])
    if dated.empty:
        return pd.Series(dtype="int64")
    daily = dated.groupby([Columns.COUNTRY, Columns.OBSERVATION_DATE])[Columns.CONFIRMED].sum()
    return daily.groupby(level=0).last().astype("int64")


class CountryReconciler:
    """
    国家名称对齐器

    使用示例：
        reconciler = CountryReconciler(CountryRenameTable.default())
        cases, report = reconciler.reconcile(cases, population)
        if not report.is_acceptable:
            reconciler.export_unmatched(report, Path("output/unmatched.csv"))
    """

    def __init__(
        self,
        rename_table: CountryRenameTable,
        max_unmatched_confirmed: int = 1000,
        strict: bool = False,
    ):
        """
        Args:
            rename_table: 映射表
            max_unmatched_confirmed: 可忽略的未匹配确诊量（每个名称）
            strict: 存在显著未匹配名称时抛出 UnmatchedCountryError
        """
        self.rename_table = rename_table
        self.max_unmatched_confirmed = max_unmatched_confirmed
        self.strict = strict

    @staticmethod
    def diff(cases: pd.DataFrame, population: pd.DataFrame) -> Set[str]:
        """病例表国家集合减去人口表国家集合"""
        case_countries = set(cases[Columns.COUNTRY].dropna().unique())
        population_countries = set(population[PopulationColumns.COUNTRY_NAME].dropna().unique())
        return case_countries - population_countries

    def apply(self, cases: pd.DataFrame) -> pd.DataFrame:
        """按映射表单次精确替换国家名，未收录的名称保持不变"""
        df = cases.copy()
        countries = df[Columns.COUNTRY]
        df[Columns.COUNTRY] = countries.map(self.rename_table.mapping).fillna(countries)
        return df

    def reconcile(
        self,
        cases: pd.DataFrame,
        population: pd.DataFrame,
    ) -> Tuple[pd.DataFrame, ReconciliationReport]:
        """
        对齐国家名称

        Args:
            cases: 标准化后的病例表
            population: 人口表

        Returns:
            (重命名后的病例表, 对齐报告)

        Raises:
            UnmatchedCountryError: 严格模式下存在显著未匹配名称
        """
        before = self.diff(cases, population)
        renamed_cases = self.apply(cases)
        after = self.diff(renamed_cases, population)

        present = set(cases[Columns.COUNTRY].dropna().unique())
        renamed = {old: new for old, new in self.rename_table.mapping.items() if old in present}

        latest = latest_confirmed_by_country(renamed_cases)
        volume = {name: int(latest.get(name, 0)) for name in sorted(after)}

        report = ReconciliationReport(
            unmatched_before=before,
            unmatched_after=after,
            unmatched_volume=volume,
            total_confirmed=int(latest.sum()),
            threshold=self.max_unmatched_confirmed,
            table_version=self.rename_table.version,
            renamed=renamed,
        )
        self._log_report(report)

        if self.strict and not report.is_acceptable:
            raise UnmatchedCountryError(report.material)

        return renamed_cases, report

    def _log_report(self, report: ReconciliationReport) -> None:
        logger.info(
            f"Reconciled countries with table {report.table_version}: "
            f"{len(report.unmatched_before)} unmatched before, {len(report.unmatched_after)} after, "
            f"{len(report.renamed)} names renamed"
        )
        for name, volume in report.unmatched_volume.items():
            flag = "material" if volume > report.threshold else "negligible"
            logger.warning(f"Excluded from per-population views: {name} (latest confirmed {volume}, {flag})")
        if report.unmatched_volume:
            logger.info(f"Unmatched share of latest confirmed volume: {report.unmatched_share:.4%}")

    @staticmethod
    def export_unmatched(report: ReconciliationReport, output_file: Path) -> Path:
        """导出剩余未匹配名称（供人工维护映射表）"""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        df = pd.DataFrame(
            {
                "old_name": list(report.unmatched_volume),
                "canonical_name": "",
                "latest_confirmed": list(report.unmatched_volume.values()),
            }
        )
        df = df.sort_values("latest_confirmed", ascending=False)
        df.to_csv(output_file, index=False, encoding="utf-8")
        logger.info(f"Exported {len(df)} unmatched country names to {output_file}")
        return output_file
