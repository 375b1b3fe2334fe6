"""
CovidSpread Area Model

粗粒度地理分区：疫情早期用于对比湖北、美国、中国其他地区和世界其他地区
"""
from enum import Enum as PyEnum


class Area(str, PyEnum):
    """Geographic bucket enumeration"""
    HUBEI = "Hubei"
    US = "US"
    CHINA_EXCLUDE_HUBEI = "China (exclude Hubei)"
    REST_OF_WORLD = "Rest of World"

    @classmethod
    def values(cls) -> list:
        return [area.value for area in cls]
