"""
Population enricher tests

Per-million metrics, population floor, snapshot, ranking and doubling curves.
"""
import pandas as pd
import pytest

from covidspread.data.normalizers import CaseNormalizer
from covidspread.data.processors import PopulationEnricher, SpreadAggregator

from conftest import day, make_raw_cases, make_spread


def country_spread(*raws: pd.DataFrame, confirmed_threshold: int = 100, deaths_threshold: int = 10) -> pd.DataFrame:
    cases = CaseNormalizer().normalize(pd.concat(raws, ignore_index=True))
    spread = SpreadAggregator().aggregate(cases, by="country")
    return SpreadAggregator.add_threshold_days(spread, confirmed_threshold, deaths_threshold)


def population_table(**countries: int) -> pd.DataFrame:
    return pd.DataFrame(
        {"country_name": list(countries), "population": list(countries.values())}
    )


@pytest.fixture
def enricher():
    return PopulationEnricher(
        min_population=1_000_000,
        top_n=2,
        watch_list=["Spain", "Italy", "Atlantis"],
        doubling_periods=[1, 2, 3, 7],
    )


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------

def test_per_million_metric(enricher):
    spread = country_spread(make_spread("Italy", [150, 200]))
    enriched = enricher.enrich(spread, population_table(Italy=2_000_000))

    assert enriched["confirmed_total_per_1M"].tolist() == pytest.approx([75.0, 100.0])
    assert enriched["population"].tolist() == [2_000_000, 2_000_000]


def test_provinces_summed_before_scaling(enricher):
    raw = make_raw_cases([
        (day(0), "North", "X", 50, 0, 0),
        (day(0), "South", "X", 30, 0, 0),
    ])
    spread = country_spread(raw, confirmed_threshold=0)
    enriched = enricher.enrich(spread, population_table(X=2_000_000))

    assert enriched.loc[0, "confirmed_total"] == 80
    assert enriched.loc[0, "confirmed_total_per_1M"] == pytest.approx(40.0)


def test_per_million_identity(enricher):
    spread = country_spread(make_spread("Italy", [120, 300, 900], deaths=[1, 5, 12]))
    enriched = enricher.enrich(spread, population_table(Italy=60_461_826))

    for total in ("confirmed_total", "deaths_total", "recovered_total", "active_total"):
        expected = enriched[total] / enriched["population"] * 1_000_000
        assert enriched[f"{total}_per_1M"].tolist() == pytest.approx(expected.tolist())


def test_population_floor_is_exclusive(enricher):
    spread = country_spread(
        make_spread("Italy", [150]),
        make_spread("Malta", [150]),
        make_spread("Iceland", [150]),
    )
    population = population_table(Italy=60_461_826, Malta=1_000_000, Iceland=341_243)
    enriched = enricher.enrich(spread, population)

    assert set(enriched["country"]) == {"Italy"}


def test_inner_join_drops_countries_without_population(enricher):
    spread = country_spread(make_spread("Italy", [150]), make_spread("Others", [700]))
    enriched = enricher.enrich(spread, population_table(Italy=60_461_826, Spain=46_754_778))

    assert set(enriched["country"]) == {"Italy"}


def test_duplicate_population_rows_do_not_duplicate_spread(enricher):
    spread = country_spread(make_spread("Italy", [150, 160]))
    population = pd.concat(
        [population_table(Italy=60_461_826), population_table(Italy=60_000_000)],
        ignore_index=True,
    )
    enriched = enricher.enrich(spread, population)

    assert len(enriched) == 2
    assert (enriched["population"] == 60_461_826).all()


def test_rows_before_confirmed_threshold_are_dropped(enricher):
    confirmed = [10 * i for i in range(1, 21)]  # day 10 is the first above 100
    spread = country_spread(make_spread("Italy", confirmed))
    enriched = enricher.enrich(spread, population_table(Italy=60_461_826))

    assert len(enriched) == 10
    assert enriched["confirmed_total"].min() > 100
    assert enriched["days_since_confirmed"].iloc[0] == 0
    assert enriched["days_since_confirmed"].iloc[5] == 5


def test_rows_before_deaths_threshold_are_kept(enricher):
    confirmed = [200] * 30
    deaths = [0] * 19 + [11 + i for i in range(11)]  # day 20 (1-based) is the first above 10
    spread = country_spread(make_spread("Italy", confirmed, deaths))
    enriched = enricher.enrich(spread, population_table(Italy=60_461_826))

    assert len(enriched) == 30
    days = enriched["days_since_deaths"]
    assert days.iloc[:19].isna().all()
    assert days.iloc[19] == 0
    assert days.iloc[29] == 10


# ---------------------------------------------------------------------------
# Snapshot and ranking
# ---------------------------------------------------------------------------

@pytest.fixture
def latest(enricher):
    spread = country_spread(
        make_spread("Italy", [150, 300, 600]),
        make_spread("Spain", [200, 250]),
        make_spread("Germany", [110, 120, 130]),
        make_spread("Portugal", [101, 105, 400]),
    )
    population = population_table(
        Italy=60_000_000, Spain=50_000_000, Germany=80_000_000, Portugal=10_000_000,
    )
    return enricher.latest_snapshot(enricher.enrich(spread, population))


def test_latest_snapshot_is_one_row_per_country(latest):
    assert sorted(latest["country"]) == ["Germany", "Italy", "Portugal", "Spain"]
    assert latest.set_index("country").loc["Italy", "confirmed_total"] == 600
    assert latest.set_index("country").loc["Spain", "confirmed_total"] == 250


def test_rank_orders_by_metric_descending(enricher, latest):
    ranked = enricher.rank(latest, "confirmed_total_per_1M")

    # Portugal 40, Italy 10, Spain 5, Germany 1.625
    assert ranked["country"].tolist() == ["Portugal", "Italy", "Spain", "Germany"]
    assert ranked["rank"].tolist() == [1, 2, 3, 4]


def test_rank_puts_nan_last(enricher, latest):
    latest = latest.copy()
    latest.loc[latest["country"] == "Portugal", "mortality_ratio"] = float("nan")
    ranked = enricher.rank(latest, "mortality_ratio")

    assert ranked["country"].iloc[-1] == "Portugal"


def test_top_countries_union_with_watch_list(enricher, latest):
    selected = enricher.top_countries(latest)

    # top 2 by active per million, then watch-list names in order, absent names skipped
    assert selected == ["Portugal", "Italy", "Spain"]


def test_top_countries_without_watch_list(latest):
    enricher = PopulationEnricher(top_n=10, watch_list=[])
    assert enricher.top_countries(latest) == ["Portugal", "Italy", "Spain", "Germany"]


# ---------------------------------------------------------------------------
# Doubling curves
# ---------------------------------------------------------------------------

def test_doubling_curve_values(enricher):
    curves = enricher.doubling_curves(max_days=10)

    point = curves[(curves["period_days"] == 2) & (curves["days_since_event"] == 3)]
    assert point["value"].item() == pytest.approx(3.375)
    daily = curves[curves["period_days"] == 1]
    assert daily["value"].tolist() == pytest.approx([2.0 ** d for d in range(11)])


def test_doubling_curve_shape(enricher):
    curves = enricher.doubling_curves(max_days=10)

    assert len(curves) == 4 * 11
    assert sorted(curves["period_days"].unique()) == [1, 2, 3, 7]
    assert (curves.groupby("period_days")["value"].first() == 1.0).all()


def test_doubling_curves_with_no_days(enricher):
    curves = enricher.doubling_curves(max_days=0)
    assert len(curves) == 4
    assert (curves["value"] == 1.0).all()
