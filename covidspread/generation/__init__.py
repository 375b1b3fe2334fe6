"""
CovidSpread Report Generation Module

图表和数据表输出
"""
from .charts import ChartFormat, ChartGenerator
from .data_exporter import DataExporter
from .generator import ReportGenerator

__all__ = [
    "ChartFormat",
    "ChartGenerator",
    "DataExporter",
    "ReportGenerator",
]
