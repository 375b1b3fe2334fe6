"""
CovidSpread Domain Models

领域模型导出
"""
from .area import Area
from .columns import Columns, PopulationColumns, SpreadColumns

__all__ = [
    "Area",
    "Columns",
    "PopulationColumns",
    "SpreadColumns",
]
