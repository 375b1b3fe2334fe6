"""
CovidSpread Data Normalizers

数据标准化模块，负责列名修复、地理分区、国家名称对齐
"""

from .case_normalizer import CaseNormalizer, canonicalize_column, classify_area
from .country_reconciler import CountryReconciler, CountryRenameTable, ReconciliationReport

__all__ = [
    "CaseNormalizer",
    "canonicalize_column",
    "classify_area",
    "CountryReconciler",
    "CountryRenameTable",
    "ReconciliationReport",
]
