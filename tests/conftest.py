"""
Shared test fixtures

Synthetic case-count and population tables in the shape of the public
Kaggle snapshot, plus zip archives built from them.
"""
import os
import zipfile
from datetime import date, timedelta
from pathlib import Path
from typing import List, Optional

# File sinks off before covidspread configures logging
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pandas as pd
import pytest

from covidspread.core.config import AppSettings, DataSettings, PipelineSettings


RAW_COLUMNS = [
    "SNo",
    "ObservationDate",
    "Province/State",
    "Country/Region",
    "Last Update",
    "Confirmed",
    "Deaths",
    "Recovered",
]

START = date(2020, 1, 22)
DAYS = 30


def day(offset: int) -> str:
    """Observation date string for day `offset` (0-based) of the series."""
    return (START + timedelta(days=offset)).strftime("%m/%d/%Y")


def make_raw_cases(rows: List[tuple]) -> pd.DataFrame:
    """
    Build a raw case table.

    Each row: (observation_date, province, country, confirmed, deaths, recovered)
    """
    records = []
    for i, (obs, province, country, confirmed, deaths, recovered) in enumerate(rows, 1):
        records.append({
            "SNo": i,
            "ObservationDate": obs,
            "Province/State": province,
            "Country/Region": country,
            "Last Update": "2020-03-01 10:00:00",
            "Confirmed": confirmed,
            "Deaths": deaths,
            "Recovered": recovered,
        })
    return pd.DataFrame(records, columns=RAW_COLUMNS)


def make_spread(country: str, confirmed: List[int], deaths: Optional[List[int]] = None) -> pd.DataFrame:
    """Raw rows for one country with one observation per consecutive day."""
    deaths = deaths or [0] * len(confirmed)
    return make_raw_cases([
        (day(i), None, country, c, d, 0)
        for i, (c, d) in enumerate(zip(confirmed, deaths))
    ])


def _case_rows() -> List[tuple]:
    rows = []
    for d in range(DAYS):
        obs = day(d)
        rows.extend([
            (obs, "Hubei", "Mainland China", 500 + 100 * d, 20 + 5 * d, 10 * d),
            (obs, "Guangdong", "China", 50 + 10 * d, d // 5, 2 * d),
            (obs, "Washington", "US", 10 * d, d // 2, 0),
            (obs, "New York", "US", 20 * d, d, 0),
            (obs, None, "Italy", 3 * d * d, d * d // 10, d),
            (obs, None, "United Kingdom", 8 * d, d // 3, 0),
            (obs, None, "Iceland", 4 * d, 0, 0),
            (obs, None, "Diamond Princess", min(700, 50 * d), 0, 0),
        ])
    return rows


POPULATION_ROWS = [
    ("Mainland China", "1,439,323,776"),
    ("US", "331,002,651"),
    ("Italy", "60,461,826"),
    ("UK", "67,886,011"),
    ("Iceland", "341,243"),
    ("South Korea", "51,269,185"),
    ("Holy See", "801"),
    ("Nowhere", ""),
]


@pytest.fixture
def raw_cases() -> pd.DataFrame:
    return make_raw_cases(_case_rows())


@pytest.fixture
def raw_population() -> pd.DataFrame:
    return pd.DataFrame(POPULATION_ROWS, columns=["Country (or dependency)", "Population (2020)"])


@pytest.fixture
def population() -> pd.DataFrame:
    """Population table already in PopulationRecord shape."""
    return pd.DataFrame(
        [(name, int(value.replace(",", ""))) for name, value in POPULATION_ROWS if value],
        columns=["country_name", "population"],
    )


def write_archive(path: Path, member: str, frame: pd.DataFrame) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(member, frame.to_csv(index=False))
    return path


@pytest.fixture
def archives(tmp_path, raw_cases, raw_population):
    cases_zip = write_archive(tmp_path / "cases.zip", "covid_19_data.csv", raw_cases)
    population_zip = write_archive(tmp_path / "population.zip", "population_by_country_2020.csv", raw_population)
    return cases_zip, population_zip


@pytest.fixture
def settings(tmp_path, archives) -> AppSettings:
    cases_zip, population_zip = archives
    return AppSettings(
        log_to_file=False,
        output_dir=tmp_path / "output",
        data=DataSettings(cases_archive=cases_zip, population_archive=population_zip),
        pipeline=PipelineSettings(),
    )
