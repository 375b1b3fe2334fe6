"""
CovidSpread Column Vocabulary

标准化后各数据表使用的列名
"""


class Columns:
    """病例表（CaseRecord）列名"""
    OBSERVATION_DATE = "observation_date"
    PROVINCE = "province_state"
    COUNTRY = "country"
    LAST_UPDATE = "last_update"
    CONFIRMED = "confirmed"
    DEATHS = "deaths"
    RECOVERED = "recovered"
    AREA = "area"

    COUNTS = (CONFIRMED, DEATHS, RECOVERED)
    REQUIRED = (OBSERVATION_DATE, COUNTRY, CONFIRMED, DEATHS, RECOVERED)
    OPTIONAL = (PROVINCE, LAST_UPDATE)


class PopulationColumns:
    """人口表（PopulationRecord）列名"""
    COUNTRY_NAME = "country_name"
    POPULATION = "population"


class SpreadColumns:
    """汇总表（CountrySpread / AreaSpread）列名"""
    CONFIRMED_TOTAL = "confirmed_total"
    DEATHS_TOTAL = "deaths_total"
    RECOVERED_TOTAL = "recovered_total"
    ACTIVE_TOTAL = "active_total"

    TOTALS = (CONFIRMED_TOTAL, DEATHS_TOTAL, RECOVERED_TOTAL, ACTIVE_TOTAL)

    MORTALITY_RATIO = "mortality_ratio"
    RECOVERY_RATIO = "recovery_ratio"

    DAYS_SINCE_CONFIRMED = "days_since_confirmed"
    DAYS_SINCE_DEATHS = "days_since_deaths"

    @staticmethod
    def per_day(total: str) -> str:
        """confirmed_total -> confirmed_per_day"""
        return total.replace("_total", "_per_day")

    @staticmethod
    def per_million(total: str) -> str:
        """confirmed_total -> confirmed_total_per_1M"""
        return f"{total}_per_1M"
