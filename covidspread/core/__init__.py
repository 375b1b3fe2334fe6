"""核心服务模块"""

from .config import AppSettings, DataSettings, PipelineSettings, get_config
from .exceptions import CovidSpreadError, DataLoadError, DataValidationError, ReportError, UnmatchedCountryError
from .logging import setup_logging, get_logger

__all__ = [
    "AppSettings",
    "DataSettings",
    "PipelineSettings",
    "get_config",
    "setup_logging",
    "get_logger",
    "CovidSpreadError",
    "DataLoadError",
    "DataValidationError",
    "ReportError",
    "UnmatchedCountryError",
]
