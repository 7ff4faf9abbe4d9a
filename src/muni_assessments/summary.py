"""Per-municipality summaries: current vs start-of-year values and estimated tax impact."""
from typing import Iterable, Optional, Union

from .categories import compute_category
from .models import CATEGORIES, AssessmentRecord, MunicipalitySummary, RateRecord, SummaryReport
from .rates import RateIndex

Rates = Union[RateIndex, Iterable[RateRecord]]


def _rate_index(rates: Rates) -> RateIndex:
    return rates if isinstance(rates, RateIndex) else RateIndex.from_records(rates)


def group_by_code(records: Iterable[AssessmentRecord]) -> dict[str, list[AssessmentRecord]]:
    """Municipality code → its records, sorted by scrape week (stable for ties)."""
    groups: dict[str, list[AssessmentRecord]] = {}
    for r in records:
        groups.setdefault(r.muni_code, []).append(r)
    for recs in groups.values():
        recs.sort(key=lambda r: r.scrape_week)
    return groups


def start_of_year(records: list[AssessmentRecord], as_of_year: int) -> Optional[AssessmentRecord]:
    """Earliest record in `as_of_year`, else the earliest record overall."""
    for r in records:
        if r.year == as_of_year:
            return r
    return records[0] if records else None


def tax(value: float, millage: Optional[float]) -> Optional[float]:
    """Tax on `value` at `millage`; None when the rate is unknown."""
    if millage is None:
        return None
    return value * millage / 1000


def impact_pct(impact: Optional[float], base_tax: Optional[float]) -> Optional[float]:
    if impact is None or base_tax is None or base_tax <= 0:
        return None
    return impact / base_tax * 100


def _summarize(records: list[AssessmentRecord], rates: RateIndex, as_of_year: int) -> MunicipalitySummary:
    """Summarize one municipality's records (non-empty, sorted by scrape week)."""
    start = start_of_year(records, as_of_year)
    current = records[-1]
    previous = records[-2] if len(records) > 1 else None

    categories = {
        name: compute_category(start, current, field, previous)
        for name, field in CATEGORIES.items()
    }
    taxable = categories["taxable"]

    millage = rates.rate_for(current.muni_code)
    estimated = tax(taxable.change, millage)
    start_tax = tax(taxable.start_of_year, millage) if taxable.start_of_year > 0 else None
    weekly = tax(taxable.weekly_change, millage)
    previous_value = taxable.current - taxable.weekly_change
    previous_tax = tax(previous_value, millage) if previous_value > 0 else None

    return MunicipalitySummary(
        municipality=current.municipality,
        muni_code=current.muni_code,
        data_as_of=max(r.value_as_of_date for r in records),
        **categories,
        millage=millage,
        estimated_tax_impact=estimated,
        tax_impact_pct=impact_pct(estimated, start_tax),
        weekly_tax_impact=weekly,
        weekly_tax_impact_pct=impact_pct(weekly, previous_tax),
    )


def build_summaries(
    records: Iterable[AssessmentRecord],
    rates: Rates,
    as_of_year: int,
) -> SummaryReport:
    """
    Summarize every municipality in `records`.

    Args:
        records: Assessment snapshots for any number of municipalities
        rates: RateIndex, or raw rate records to index
        as_of_year: Year whose first snapshot is the baseline (callers pass the current year)

    Returns:
        SummaryReport with summaries sorted by municipality name, and the
        newest value-as-of date among the municipalities' latest snapshots
    """
    index = _rate_index(rates)
    summaries = []
    data_as_of = ""
    for recs in group_by_code(records).values():
        summaries.append(_summarize(recs, index, as_of_year))
        data_as_of = max(data_as_of, recs[-1].value_as_of_date)
    summaries.sort(key=lambda s: s.municipality)
    return SummaryReport(summaries=summaries, data_as_of=data_as_of)


def summary_for(
    records: Iterable[AssessmentRecord],
    rates: Rates,
    muni_code: str,
    as_of_year: int,
) -> Optional[MunicipalitySummary]:
    """Summary for one municipality code, or None if it has no records."""
    recs = [r for r in records if r.muni_code == muni_code]
    if not recs:
        return None
    recs.sort(key=lambda r: r.scrape_week)
    return _summarize(recs, _rate_index(rates), as_of_year)
