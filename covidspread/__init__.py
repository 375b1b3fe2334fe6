"""
CovidSpread

COVID-19 病例数据与世界人口数据的整合分析流程
"""

__version__ = "1.0.0"
