"""
Case normalizer tests

Column vocabulary, text trimming, area buckets and date parsing.
"""
import pandas as pd
import pytest

from covidspread.core.exceptions import DataValidationError
from covidspread.data.normalizers import CaseNormalizer, canonicalize_column, classify_area
from covidspread.data.normalizers.case_normalizer import parse_last_update
from covidspread.domain import Area

from conftest import make_raw_cases


@pytest.fixture
def normalizer():
    return CaseNormalizer()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("ObservationDate", "observation_date"),
        ("Province/State", "province_state"),
        ("Country/Region", "country"),
        ("Last Update", "last_update"),
        (" Confirmed ", "confirmed"),
        ("Last_Update", "last_update"),
        ("SNo", "sno"),
    ],
)
def test_canonicalize_column(raw, expected):
    assert canonicalize_column(raw) == expected


def test_normalize_produces_fixed_vocabulary(normalizer, raw_cases):
    df = normalizer.normalize(raw_cases)

    for col in ("observation_date", "province_state", "country", "last_update",
                "confirmed", "deaths", "recovered", "area"):
        assert col in df.columns
    assert len(df) == len(raw_cases)
    assert str(df["confirmed"].dtype) == "int64"


def test_normalize_does_not_mutate_input(normalizer, raw_cases):
    before = raw_cases.copy()
    normalizer.normalize(raw_cases)
    pd.testing.assert_frame_equal(raw_cases, before)


def test_text_values_are_trimmed(normalizer):
    raw = make_raw_cases([
        ("01/22/2020", "  Hubei ", " Mainland China", 10, 0, 0),
        ("01/22/2020", "   ", "Azerbaijan ", 1, 0, 0),
    ])
    df = normalizer.normalize(raw)

    assert df.loc[0, "province_state"] == "Hubei"
    assert df.loc[0, "country"] == "Mainland China"
    assert pd.isna(df.loc[1, "province_state"])
    assert df.loc[1, "country"] == "Azerbaijan"
    assert df.loc[0, "area"] == Area.HUBEI.value


@pytest.mark.parametrize(
    "province, country, expected",
    [
        ("Hubei", "Mainland China", Area.HUBEI),
        ("Hubei", "US", Area.HUBEI),  # first matching rule wins
        ("Washington", "US", Area.US),
        (None, "US", Area.US),
        ("Beijing", "Mainland China", Area.CHINA_EXCLUDE_HUBEI),
        (None, "China", Area.CHINA_EXCLUDE_HUBEI),
        (None, "Hong Kong", Area.REST_OF_WORLD),
        (None, "Italy", Area.REST_OF_WORLD),
        (None, None, Area.REST_OF_WORLD),
    ],
)
def test_area_rules_in_order(province, country, expected):
    result = classify_area(pd.Series([province], dtype=object), pd.Series([country], dtype=object))
    assert result.iloc[0] == expected.value


def test_area_classification_is_total(normalizer, raw_cases):
    df = normalizer.normalize(raw_cases)

    assert df["area"].notna().all()
    assert df["area"].isin(Area.values()).all()
    assert set(df["area"]) == set(Area.values())


def test_unparseable_observation_date_keeps_row(normalizer):
    raw = make_raw_cases([
        ("01/22/2020", None, "Italy", 1, 0, 0),
        ("2020-01-23", None, "Italy", 2, 0, 0),
        ("1/24/2020", None, "Italy", 3, 0, 0),
    ])
    df = normalizer.normalize(raw)

    assert len(df) == 3
    assert df.loc[0, "observation_date"] == pd.Timestamp("2020-01-22")
    assert pd.isna(df.loc[1, "observation_date"])
    assert df.loc[2, "observation_date"] == pd.Timestamp("2020-01-24")


def test_last_update_tries_both_formats():
    values = pd.Series(["2020-03-01 10:00:00", "3/1/20 10:00", "yesterday", None], dtype=object)
    parsed = parse_last_update(values)

    assert parsed.iloc[0] == pd.Timestamp("2020-03-01 10:00:00")
    assert parsed.iloc[1] == pd.Timestamp("2020-03-01 10:00:00")
    assert pd.isna(parsed.iloc[2])
    assert pd.isna(parsed.iloc[3])


def test_missing_counts_become_zero(normalizer):
    raw = make_raw_cases([("01/22/2020", None, "Italy", None, 1, 2)])
    df = normalizer.normalize(raw)

    assert df.loc[0, "confirmed"] == 0
    assert df.loc[0, "deaths"] == 1


def test_optional_columns_are_added(normalizer):
    raw = pd.DataFrame({
        "ObservationDate": ["01/22/2020"],
        "Country/Region": ["Italy"],
        "Confirmed": [1],
        "Deaths": [0],
        "Recovered": [0],
    })
    df = normalizer.normalize(raw)

    assert pd.isna(df.loc[0, "province_state"])
    assert pd.isna(df.loc[0, "last_update"])
    assert df.loc[0, "area"] == Area.REST_OF_WORLD.value


def test_missing_required_column_raises(normalizer):
    raw = pd.DataFrame({"ObservationDate": ["01/22/2020"], "Country/Region": ["Italy"], "Confirmed": [1]})
    with pytest.raises(DataValidationError, match="deaths"):
        normalizer.normalize(raw)
