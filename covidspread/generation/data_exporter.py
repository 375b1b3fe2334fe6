"""
CovidSpread Data Exporter

数据导出器：将整理好的数据表导出为 CSV / JSON
"""
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from covidspread.core import get_logger

logger = get_logger(__name__)

SUPPORTED_FORMATS = ("csv", "json")


class DataExporter:
    """
    数据导出器

    支持的格式：
    - CSV
    - JSON (records)
    """

    def __init__(self, output_dir: Path):
        """
        初始化导出器

        Args:
            output_dir: 输出目录
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_tables(
        self,
        tables: Dict[str, pd.DataFrame],
        formats: Optional[List[str]] = None,
    ) -> Dict[str, Path]:
        """
        导出多张表

        Args:
            tables: 表名 -> 数据框
            formats: 导出格式列表（默认仅CSV）

        Returns:
            "表名.格式" -> 文件路径
        """
        formats = formats or ["csv"]
        unknown = [fmt for fmt in formats if fmt not in SUPPORTED_FORMATS]
        if unknown:
            raise ValueError(f"Unsupported export formats: {unknown}")

        exported = {}
        for name, data in tables.items():
            if "csv" in formats:
                exported[f"{name}.csv"] = self.export_csv(data, name)
            if "json" in formats:
                exported[f"{name}.json"] = self.export_json(data, name)

        logger.info(f"Exported {len(tables)} tables in {len(formats)} formats to {self.output_dir}")
        return exported

    def export_csv(self, data: pd.DataFrame, filename_base: str) -> Path:
        """导出为CSV"""
        filepath = self.output_dir / f"{filename_base}.csv"
        data.to_csv(filepath, index=False, encoding="utf-8", date_format="%Y-%m-%d")
        logger.debug(f"Exported CSV: {filepath}")
        return filepath

    def export_json(self, data: pd.DataFrame, filename_base: str) -> Path:
        """导出为JSON"""
        filepath = self.output_dir / f"{filename_base}.json"
        data.to_json(filepath, orient="records", date_format="iso", force_ascii=False, indent=2)
        logger.debug(f"Exported JSON: {filepath}")
        return filepath
