"""
CovidSpread Core Configuration

统一的配置管理，支持环境变量和配置文件
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DataSettings(BaseSettings):
    """输入数据配置"""

    model_config = SettingsConfigDict(env_prefix="DATA_", extra="ignore")

    cases_archive: Path = Field(
        default=Path("data/raw/novel-corona-virus-2019-dataset.zip"),
        description="病例数据压缩包",
    )
    cases_member: Optional[str] = Field(default="covid_19_data.csv", description="压缩包内的病例表文件名")
    population_archive: Path = Field(
        default=Path("data/raw/population_by_country_2020.zip"),
        description="人口数据压缩包",
    )
    population_member: Optional[str] = Field(
        default="population_by_country_2020.csv",
        description="压缩包内的人口表文件名",
    )
    population_country_column: str = Field(default="Country (or dependency)", description="人口表国家列")
    population_value_column: str = Field(default="Population (2020)", description="人口表人口数列")
    na_values: List[str] = Field(default_factory=lambda: ["", "NA", "None"], description="缺失值标记")
    rename_table: Optional[Path] = Field(default=None, description="国家名称映射表（None=内置）")


class PipelineSettings(BaseSettings):
    """分析流程参数"""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_", extra="ignore")

    confirmed_threshold: int = Field(default=100, description="确诊数阈值（严格大于）")
    deaths_threshold: int = Field(default=10, description="死亡数阈值（严格大于）")
    min_population: int = Field(default=1_000_000, description="人口下限，小于等于该值的国家被排除")
    max_unmatched_confirmed: int = Field(default=1000, description="未匹配国家可忽略的确诊量上限")
    strict_reconciliation: bool = Field(default=False, description="存在显著未匹配国家时中止")
    top_n: int = Field(default=10, gt=0, description="按每百万现存病例排名取前N")
    watch_list: List[str] = Field(
        default_factory=lambda: ["Mainland China", "US", "Italy", "Spain", "Germany", "UK", "South Korea"],
        description="固定关注国家",
    )
    doubling_periods: List[int] = Field(default_factory=lambda: [1, 2, 3, 7], description="参考曲线周期（天）")

    @field_validator("confirmed_threshold", "deaths_threshold", "min_population", "max_unmatched_confirmed")
    @classmethod
    def non_negative(cls, v: int) -> int:
        """阈值不能为负"""
        if v < 0:
            raise ValueError("threshold must be >= 0")
        return v

    @field_validator("doubling_periods")
    @classmethod
    def positive_periods(cls, v: List[int]) -> List[int]:
        """周期必须为正整数"""
        if not v or any(p <= 0 for p in v):
            raise ValueError("doubling periods must be positive")
        return sorted(set(v))


class AppSettings(BaseSettings):
    """应用配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # 基本信息
    app_name: str = Field(default="CovidSpread", description="应用名称")
    version: str = Field(default="1.0.0", description="版本号")
    app_env: str = Field(default="development", description="运行环境")

    # 日志配置
    log_level: str = Field(default="INFO", description="日志级别")
    log_dir: Path = Field(default=Path("logs"), description="日志目录")
    log_to_file: bool = Field(default=True, description="是否写入日志文件")

    # 输出目录
    output_dir: Path = Field(default=Path("output"), description="图表和导出表格目录")

    # 子配置
    data: DataSettings = Field(default_factory=DataSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """统一日志级别大小写"""
        level = v.upper()
        if level not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def is_development(self) -> bool:
        """是否开发环境"""
        return self.app_env.lower() in ("dev", "development")

    @property
    def is_production(self) -> bool:
        """是否生产环境"""
        return self.app_env.lower() in ("prod", "production")


@lru_cache
def get_config() -> AppSettings:
    """
    获取配置单例

    使用lru_cache确保全局只有一个配置实例
    """
    return AppSettings()
