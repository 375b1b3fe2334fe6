"""
CovidSpread Data

数据加载、标准化和处理
"""
from .loaders import ArchiveLoader
from .normalizers import CaseNormalizer, CountryReconciler, CountryRenameTable
from .processors import PopulationEnricher, SpreadAggregator, SpreadPipeline

__all__ = [
    "ArchiveLoader",
    "CaseNormalizer",
    "CountryReconciler",
    "CountryRenameTable",
    "PopulationEnricher",
    "SpreadAggregator",
    "SpreadPipeline",
]
