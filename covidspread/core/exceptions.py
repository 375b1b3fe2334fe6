"""
CovidSpread Exceptions

流程中可能中止运行的错误类型
"""


class CovidSpreadError(Exception):
    """所有致命错误的基类"""


class DataLoadError(CovidSpreadError):
    """压缩包或数据表缺失、损坏、无法解析"""


class DataValidationError(CovidSpreadError):
    """标准化后缺少必需的列"""


class UnmatchedCountryError(CovidSpreadError):
    """严格模式下仍存在显著的未匹配国家名称"""

    def __init__(self, unmatched: dict):
        self.unmatched = dict(unmatched)
        names = ", ".join(f"{name} ({volume})" for name, volume in sorted(self.unmatched.items()))
        super().__init__(f"Unmatched countries above negligible volume: {names}")


class ReportError(CovidSpreadError):
    """图表或数据表无法写出"""
