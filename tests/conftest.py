"""
tests/conftest.py
-----------------
Shared fixtures: two municipalities with a prior-year snapshot, a millage
table, and the matching CSV text.

Run with:
    pytest tests/ -v
"""

import pytest

from muni_assessments.models import AssessmentRecord, RateRecord

HEADER = (
    "municipality,muni_code,taxable_value,exempt_value,purta_value,value_as_of_date,"
    "scraped_at,scrape_week,taxable_value_wow_change,taxable_value_wow_pct,year,"
    "taxable_value_ytd_change,taxable_value_ytd_pct"
)

ASSESSMENTS_CSV = HEADER + """
Aspinwall,801,900000,50000,1000,2024-12-30,2024-12-31T06:00:00,2024-W52,NA,NA,2024,NA,NA
Aspinwall,801,1000000,50000,1000,2025-01-06,2025-01-07T06:00:00,2025-W01,100000,11.1,2025,0,0
Bellevue,802,2000000,300000,0,2025-01-06,2025-01-07T06:00:00,2025-W01,NA,NA,2025,0,0
Aspinwall,801,1050000,40000,1500,2025-03-10,2025-03-11T06:00:00,2025-W10,50000,5,2025,50000,5
Bellevue,802,1900000,320000,0,2025-03-10,2025-03-11T06:00:00,2025-W10,-100000,-5,2025,-100000,-5
"""

MILLAGE_CSV = """municipality,muni_code,tax_year,millage
Aspinwall Borough,801,2024,4.5
Aspinwall Borough,801,2025,5.0
Bellevue Borough,802,2025,4.0
"""


@pytest.fixture
def make_record():
    """Factory for AssessmentRecord with sensible defaults."""
    def make(
        code: str = "801",
        name: str = "Aspinwall",
        week: str = "2025-W01",
        as_of: str = "2025-01-06",
        taxable: int = 0,
        exempt: int = 0,
        purta: int = 0,
        year: int = 2025,
    ) -> AssessmentRecord:
        return AssessmentRecord(
            municipality=name,
            muni_code=code,
            taxable_value=taxable,
            exempt_value=exempt,
            purta_value=purta,
            value_as_of_date=as_of,
            scrape_week=week,
            year=year,
        )
    return make


@pytest.fixture
def records(make_record):
    """Aspinwall (801) and Bellevue (802), shuffled out of week order."""
    return [
        make_record("802", "Bellevue", "2025-W10", "2025-03-10", 1_900_000, 320_000, 0),
        make_record("801", "Aspinwall", "2025-W10", "2025-03-10", 1_050_000, 40_000, 1_500),
        make_record("801", "Aspinwall", "2024-W52", "2024-12-30", 900_000, 50_000, 1_000, year=2024),
        make_record("802", "Bellevue", "2025-W01", "2025-01-06", 2_000_000, 300_000, 0),
        make_record("801", "Aspinwall", "2025-W01", "2025-01-06", 1_000_000, 50_000, 1_000),
    ]


@pytest.fixture
def rates():
    return [
        RateRecord(municipality="Aspinwall Borough", muni_code="801", tax_year=2024, millage=4.5),
        RateRecord(municipality="Aspinwall Borough", muni_code="801", tax_year=2025, millage=5.0),
        RateRecord(municipality="Bellevue Borough", muni_code="802", tax_year=2025, millage=4.0),
    ]


@pytest.fixture
def assessments_csv():
    return ASSESSMENTS_CSV


@pytest.fixture
def millage_csv():
    return MILLAGE_CSV
