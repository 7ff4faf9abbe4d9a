import pytest
from pydantic import ValidationError

from muni_assessments.models import ChartSeries
from muni_assessments.series import (
    COUNTY,
    aligned_dates,
    comparison_series,
    county_series,
    faceted_series,
    generate_color,
    latest_year,
    municipality_series,
    series_colors,
)


@pytest.fixture
def gappy(make_record):
    """Aspinwall on three dates; Bellevue missing the middle one."""
    return [
        make_record("801", "Aspinwall", "2025-W01", "2025-01-06", 100),
        make_record("801", "Aspinwall", "2025-W02", "2025-01-13", 110),
        make_record("801", "Aspinwall", "2025-W03", "2025-01-20", 120),
        make_record("802", "Bellevue", "2025-W01", "2025-01-06", 1_000),
        make_record("802", "Bellevue", "2025-W03", "2025-01-20", 900),
    ]


def test_aligned_dates(records):
    assert aligned_dates(records) == ["2024-12-30", "2025-01-06", "2025-03-10"]
    assert aligned_dates([]) == []


def test_latest_year(records):
    assert latest_year(records) == 2025
    assert latest_year([]) is None


# ---------------------------------------------------------------------------
# 1. One municipality
# ---------------------------------------------------------------------------

class TestMunicipalitySeries:
    def test_level(self, records):
        chart = municipality_series(records, "801")
        assert chart.labels == ["2024-12-30", "2025-01-06", "2025-03-10"]
        assert chart.names == ["Aspinwall"]
        assert chart.values() == [900_000, 1_000_000, 1_050_000]

    def test_change_from_start_of_year(self, records):
        chart = municipality_series(records, "801", view="change", as_of_year=2025)
        assert chart.values() == [-100_000, 0, 50_000]

    def test_pct(self, records):
        chart = municipality_series(records, "801", view="pct", as_of_year=2025)
        assert chart.values() == pytest.approx([-10.0, 0.0, 5.0])

    def test_year_inferred(self, records):
        inferred = municipality_series(records, "801", view="change")
        explicit = municipality_series(records, "801", view="change", as_of_year=2025)
        assert inferred == explicit

    def test_baseline_fallback(self, records):
        chart = municipality_series(records, "802", view="change", as_of_year=2030)
        assert chart.values() == [0, -100_000]

    def test_other_field(self, records):
        chart = municipality_series(records, "801", field="purta_value")
        assert chart.field == "purta_value"
        assert chart.values() == [1_000, 1_000, 1_500]

    def test_unknown_code(self, records):
        chart = municipality_series(records, "999")
        assert chart.labels == []
        assert chart.series == {"999": []}

    def test_duplicate_date_latest_week_wins(self, make_record):
        recs = [
            make_record(week="2025-W02", as_of="2025-01-06", taxable=200),
            make_record(week="2025-W01", as_of="2025-01-06", taxable=100),
        ]
        chart = municipality_series(recs, "801")
        assert chart.labels == ["2025-01-06"]
        assert chart.values() == [200]

    def test_bad_view(self, records):
        with pytest.raises(ValueError, match="view"):
            municipality_series(records, "801", view="delta")

    def test_points(self, records):
        chart = municipality_series(records, "802")
        assert chart.points() == [("2025-01-06", 2_000_000), ("2025-03-10", 1_900_000)]


# ---------------------------------------------------------------------------
# 2. All municipalities on shared dates
# ---------------------------------------------------------------------------

class TestComparisonSeries:
    def test_holes(self, gappy):
        chart = comparison_series(gappy, view="level")
        assert chart.labels == ["2025-01-06", "2025-01-13", "2025-01-20"]
        assert chart.names == ["Aspinwall", "Bellevue"]
        assert chart.values("Bellevue") == [1_000, None, 900]

    def test_pct_holes_stay_null(self, gappy):
        chart = comparison_series(gappy)
        assert chart.view == "pct"
        assert chart.values("Aspinwall") == pytest.approx([0.0, 10.0, 20.0])
        assert chart.values("Bellevue")[1] is None
        assert chart.values("Bellevue")[2] == pytest.approx(-10.0)

    def test_name_collision(self, make_record):
        recs = [
            make_record("801", "Springdale"),
            make_record("802", "Springdale"),
        ]
        chart = comparison_series(recs, view="level")
        assert chart.names == ["Springdale (801)", "Springdale (802)"]

    def test_empty(self):
        chart = comparison_series([])
        assert chart.labels == []
        assert chart.series == {}


# ---------------------------------------------------------------------------
# 3. County totals and facets
# ---------------------------------------------------------------------------

class TestCountySeries:
    def test_sums_only_present(self, gappy):
        chart = county_series(gappy)
        assert chart.names == [COUNTY]
        # 2025-01-13 excludes Bellevue, which has no record that day
        assert chart.values() == [1_100, 110, 1_020]

    def test_change(self, gappy):
        chart = county_series(gappy, view="change")
        assert chart.values() == [0, 10, -80]

    def test_pct(self, gappy):
        chart = county_series(gappy, view="pct")
        assert chart.values() == pytest.approx([0.0, 10.0, -80 / 1_100 * 100])

    def test_records(self, records):
        chart = county_series(records)
        assert chart.values() == [900_000, 3_000_000, 2_950_000]

    def test_empty(self):
        chart = county_series([])
        assert chart.labels == []
        assert chart.values() == []


class TestFacetedSeries:
    def test_county_facets(self, records):
        facets = faceted_series(records)
        assert list(facets) == ["taxable", "exempt", "purta"]
        assert facets["exempt"].field == "exempt_value"
        assert facets["exempt"].values() == [50_000, 350_000, 360_000]

    def test_municipality_facets(self, records):
        facets = faceted_series(records, "801", view="change", as_of_year=2025)
        assert facets["taxable"].values() == [-100_000, 0, 50_000]
        assert facets["purta"].values() == [0, 0, 500]


# ---------------------------------------------------------------------------
# 4. Chart plumbing
# ---------------------------------------------------------------------------

def test_length_mismatch_rejected():
    with pytest.raises(ValidationError):
        ChartSeries(field="taxable_value", view="level", labels=["a", "b"], series={"x": [1.0]})


def test_values_needs_name_for_multiple(gappy):
    chart = comparison_series(gappy)
    with pytest.raises(ValueError):
        chart.values()


def test_camel_case_json(records):
    chart = municipality_series(records, "801")
    dumped = chart.model_dump(by_alias=True)
    assert set(dumped) == {"field", "view", "labels", "series"}


@pytest.mark.parametrize("index, total, expected", [
    (0, 4, "hsl(0, 70%, 50%)"),
    (1, 4, "hsl(90, 70%, 50%)"),
    (1, 3, "hsl(120, 70%, 50%)"),
    (1, 8, "hsl(45, 70%, 50%)"),
])
def test_generate_color(index, total, expected):
    assert generate_color(index, total) == expected


def test_generate_color_needs_total():
    with pytest.raises(ValueError):
        generate_color(0, 0)


def test_series_colors(gappy):
    colors = series_colors(comparison_series(gappy))
    assert colors == {"Aspinwall": "hsl(0, 70%, 50%)", "Bellevue": "hsl(180, 70%, 50%)"}
