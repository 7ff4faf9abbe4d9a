"""
Date-aligned chart series
=========================

Every series is aligned on the sorted distinct `value_as_of_date`s of the
records in scope (ISO dates, so string order is chronological).

Views:
- `level`: the raw field value
- `change`: value minus the start-of-year baseline
- `pct`: change as a percent of the baseline (0 when the baseline is 0)

A date with no record for a municipality is a hole (None), never 0 and never
interpolated. County totals sum only the municipalities present on each date,
so they under-count when coverage is incomplete.
"""
from typing import Iterable, Optional

from .categories import pct
from .models import CATEGORIES, AssessmentRecord, ChartSeries, ValueField, View
from .summary import group_by_code, start_of_year

COUNTY = "County"


def aligned_dates(records: Iterable[AssessmentRecord]) -> list[str]:
    """Sorted distinct value-as-of dates."""
    return sorted({r.value_as_of_date for r in records})


def latest_year(records: Iterable[AssessmentRecord]) -> Optional[int]:
    """Newest `year` in `records`, or None if there are none."""
    return max((r.year for r in records), default=None)


def _by_date(records: list[AssessmentRecord]) -> dict[str, AssessmentRecord]:
    """Date → record; when a date repeats, the latest scrape week wins."""
    out = {}
    for r in sorted(records, key=lambda r: r.scrape_week):
        out[r.value_as_of_date] = r
    return out


def _baseline(records: list[AssessmentRecord], field: ValueField, as_of_year: Optional[int]) -> int:
    start = start_of_year(sorted(records, key=lambda r: r.scrape_week), as_of_year)
    return start.value(field) if start is not None else 0


def _point(value: Optional[int], baseline: int, view: View) -> Optional[float]:
    if value is None:
        return None
    if view == "level":
        return value
    change = value - baseline
    if view == "change":
        return change
    return pct(change, baseline)


def _check_view(view: str):
    if view not in ("level", "change", "pct"):
        raise ValueError(f"Unknown view: {view!r}")


def _track(
    records: list[AssessmentRecord],
    dates: list[str],
    field: ValueField,
    view: View,
    as_of_year: Optional[int],
) -> list[Optional[float]]:
    """One municipality's values at each of `dates`."""
    by_date = _by_date(records)
    baseline = _baseline(records, field, as_of_year)
    values = []
    for d in dates:
        r = by_date.get(d)
        values.append(_point(r.value(field) if r is not None else None, baseline, view))
    return values


def municipality_series(
    records: Iterable[AssessmentRecord],
    muni_code: str,
    field: ValueField = "taxable_value",
    view: View = "level",
    as_of_year: Optional[int] = None,
) -> ChartSeries:
    """
    Series for one municipality, aligned on its own snapshot dates.

    Args:
        records: Full record set (filtered here by `muni_code`)
        muni_code: Municipality to chart
        field: Value field to plot
        view: "level", "change" or "pct"
        as_of_year: Baseline year (default: newest year among the municipality's records)

    Returns:
        ChartSeries with a single series named after the municipality
        (or the code, if there are no records)
    """
    _check_view(view)
    recs = sorted((r for r in records if r.muni_code == muni_code), key=lambda r: r.scrape_week)
    if as_of_year is None:
        as_of_year = latest_year(recs)
    dates = aligned_dates(recs)
    name = recs[-1].municipality if recs else muni_code
    return ChartSeries(
        field=field,
        view=view,
        labels=dates,
        series={name: _track(recs, dates, field, view, as_of_year)},
    )


def comparison_series(
    records: Iterable[AssessmentRecord],
    field: ValueField = "taxable_value",
    view: View = "pct",
    as_of_year: Optional[int] = None,
) -> ChartSeries:
    """All municipalities on one set of dates (the union over the whole record set), sorted by name."""
    _check_view(view)
    records = list(records)
    if as_of_year is None:
        as_of_year = latest_year(records)
    dates = aligned_dates(records)
    groups = group_by_code(records)

    names = {code: recs[-1].municipality for code, recs in groups.items()}
    counts: dict[str, int] = {}
    for name in names.values():
        counts[name] = counts.get(name, 0) + 1

    series = {}
    for code in sorted(groups, key=lambda c: (names[c], c)):
        name = names[code]
        if counts[name] > 1:
            name = f"{name} ({code})"
        series[name] = _track(groups[code], dates, field, view, as_of_year)
    return ChartSeries(field=field, view=view, labels=dates, series=series)


def county_series(
    records: Iterable[AssessmentRecord],
    field: ValueField = "taxable_value",
    view: View = "level",
    as_of_year: Optional[int] = None,
) -> ChartSeries:
    """
    County-wide totals per date.

    Each date sums the municipalities with a record on that date. The `change`
    and `pct` views compare that sum against the same municipalities'
    start-of-year baselines.
    """
    _check_view(view)
    records = list(records)
    if as_of_year is None:
        as_of_year = latest_year(records)
    dates = aligned_dates(records)

    levels = {d: 0 for d in dates}
    baselines = {d: 0 for d in dates}
    for recs in group_by_code(records).values():
        baseline = _baseline(recs, field, as_of_year)
        for d, r in _by_date(recs).items():
            levels[d] += r.value(field)
            baselines[d] += baseline

    return ChartSeries(
        field=field,
        view=view,
        labels=dates,
        series={COUNTY: [_point(levels[d], baselines[d], view) for d in dates]},
    )


def faceted_series(
    records: Iterable[AssessmentRecord],
    muni_code: Optional[str] = None,
    view: View = "level",
    as_of_year: Optional[int] = None,
) -> dict[str, ChartSeries]:
    """
    One series per value category ("taxable", "exempt", "purta").

    With `muni_code`, each facet charts that municipality; otherwise the county total.
    """
    records = list(records)
    if muni_code is None:
        return {
            name: county_series(records, field, view, as_of_year)
            for name, field in CATEGORIES.items()
        }
    return {
        name: municipality_series(records, muni_code, field, view, as_of_year)
        for name, field in CATEGORIES.items()
    }


def generate_color(index: int, total: int) -> str:
    """Evenly spaced line color for series `index` of `total`."""
    if total <= 0:
        raise ValueError(f"total must be positive, got {total}")
    hue = (index * 360 / total) % 360
    return f"hsl({hue:g}, 70%, 50%)"


def series_colors(chart: ChartSeries) -> dict[str, str]:
    """Series name → line color."""
    names = chart.names
    return {name: generate_color(i, len(names)) for i, name in enumerate(names)}
