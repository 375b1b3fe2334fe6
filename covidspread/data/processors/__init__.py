"""
CovidSpread Data Processors

数据处理器，汇总传播指标并关联人口数据
"""

from .aggregator import SpreadAggregator, safe_ratio
from .enricher import PopulationEnricher
from .pipeline import PipelineResult, SpreadPipeline

__all__ = [
    "SpreadAggregator",
    "safe_ratio",
    "PopulationEnricher",
    "PipelineResult",
    "SpreadPipeline",
]
