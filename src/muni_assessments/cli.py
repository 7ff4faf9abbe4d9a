#!/usr/bin/env python3
"""Municipal assessment tracker CLI."""
import json
import sys
from datetime import date
from pathlib import Path

import click
from utz import err

from .export import series_frame, summaries_frame, write_frame
from .fetch import ASSESSMENTS_URL, CSVClient
from .models import CATEGORIES, VIEWS, AssessmentRecord
from .parser import ParseError, muni_codes, parse_assessments, parse_rates
from .paths import ASSESSMENTS, CACHE, MILLAGE
from .rates import RateIndex
from .series import comparison_series, county_series, faceted_series, municipality_series
from .summary import build_summaries, summary_for


def read_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        err(f"File not found: {p}")
        err("Run: muni-assessments fetch")
        sys.exit(1)
    return p.read_text()


def load_records(path: str, strict: bool = False) -> list[AssessmentRecord]:
    try:
        records = parse_assessments(read_text(path), strict=strict)
    except ParseError as e:
        err(f"Error parsing {path}: {e}")
        sys.exit(1)
    err(f"Loaded {len(records):,} assessment records from {path}")
    return records


def load_rates(path: str) -> RateIndex:
    p = Path(path)
    if not p.exists():
        err(f"No millage table at {p}; tax impact will be unknown")
        return RateIndex.from_records([])
    try:
        rates = RateIndex.from_records(parse_rates(p.read_text()))
    except ParseError as e:
        err(f"Error parsing {path}: {e}")
        sys.exit(1)
    err(f"Loaded millage for {len(rates)} municipalities (tax year {rates.latest_year})")
    return rates


def fmt_money(value) -> str:
    return "N/A" if value is None else f"${value:,.0f}"


def fmt_pct(value) -> str:
    return "N/A" if value is None else f"{value:+.2f}%"


@click.group()
def main():
    """Allegheny County municipal assessment tools."""
    pass


@main.command()
@click.option("-c/-C", "--cache/--no-cache", default=True, help="Use local cache")
@click.option("-d", "--cache-dir", default=str(CACHE), help="Cache directory")
@click.option("-o", "--output", default=str(ASSESSMENTS), help="Output CSV file")
@click.option("-t", "--ttl", default="1d", help="Cache TTL (e.g. '1d', '12h'); '' = forever")
@click.option("-u", "--url", default=ASSESSMENTS_URL, help="CSV URL")
def fetch(cache: bool, cache_dir: str, output: str, ttl: str, url: str):
    """Download the assessment time series."""
    with CSVClient(cache_dir=Path(cache_dir)) as client:
        text = client.fetch_text(url, use_cache=cache, ttl=ttl or None)
    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text)
    err(f"Wrote {output_path}")


@main.command()
@click.argument("input_file", default=str(ASSESSMENTS))
def codes(input_file: str):
    """List distinct municipality codes."""
    try:
        found = muni_codes(read_text(input_file))
    except ParseError as e:
        err(f"Error parsing {input_file}: {e}")
        sys.exit(1)
    for code in found:
        print(code)
    err(f"{len(found)} municipality codes")


@main.command()
@click.option("-c", "--code", default=None, help="Single municipality code")
@click.option("-i", "--input-file", default=str(ASSESSMENTS), help="Assessment CSV")
@click.option("-j", "--json-output", is_flag=True, help="Output JSON")
@click.option("-o", "--output", default=None, help="Write .parquet/.csv table")
@click.option("-r", "--rates", default=str(MILLAGE), help="Millage CSV")
@click.option("-s", "--strict", is_flag=True, help="Reject rows with the wrong field count")
@click.option("-y", "--year", type=int, default=None, help="Baseline year (default: current year)")
def summary(code: str, input_file: str, json_output: bool, output: str, rates: str, strict: bool, year: int):
    """Summarize value changes and estimated tax impact per municipality."""
    records = load_records(input_file, strict=strict)
    index = load_rates(rates)
    as_of_year = year or date.today().year

    if code:
        s = summary_for(records, index, code, as_of_year)
        if s is None:
            err(f"Municipality not found: {code}")
            sys.exit(1)
        if json_output:
            print(s.model_dump_json(indent=2, by_alias=True))
            return
        print(f"Municipality: {s.municipality} ({s.muni_code})")
        print(f"Data as of:   {s.data_as_of}")
        for name in CATEGORIES:
            c = s.category(name)
            print(f"{name.title():<8}      {c.start_of_year:>15,} → {c.current:>15,} ({c.change:+,}, {c.pct_change:+.2f}%)")
        print(f"Millage:      {'N/A' if s.millage is None else s.millage}")
        print(f"Tax impact:   {fmt_money(s.estimated_tax_impact)} ({fmt_pct(s.tax_impact_pct)})")
        print(f"Weekly:       {fmt_money(s.weekly_tax_impact)} ({fmt_pct(s.weekly_tax_impact_pct)})")
        return

    report = build_summaries(records, index, as_of_year)
    if output:
        write_frame(summaries_frame(report), Path(output))
    if json_output:
        print(report.model_dump_json(indent=2, by_alias=True))
        return
    for s in report.summaries:
        t = s.taxable
        print(f"{s.muni_code:>6} | {s.municipality:<32} | {t.current:>15,} | {t.pct_change:+7.2f}% | {fmt_money(s.estimated_tax_impact):>12}")
    err(f"\n{len(report)} municipalities, data as of {report.data_as_of or 'N/A'}")


@main.command()
@click.option("-a", "--all", "all_munis", is_flag=True, help="One series per municipality")
@click.option("-c", "--code", default=None, help="Municipality code (default: county total)")
@click.option("-f", "--field", "category", type=click.Choice(list(CATEGORIES)), default="taxable", help="Value category")
@click.option("-F", "--facet", is_flag=True, help="One series per value category")
@click.option("-i", "--input-file", default=str(ASSESSMENTS), help="Assessment CSV")
@click.option("-o", "--output", default=None, help="Write .parquet/.csv table instead of JSON")
@click.option("-v", "--view", type=click.Choice(list(VIEWS)), default="level", help="Value, change since start of year, or percent change")
@click.option("-y", "--year", type=int, default=None, help="Baseline year (default: current year)")
def series(all_munis: bool, code: str, category: str, facet: bool, input_file: str, output: str, view: str, year: int):
    """Date-aligned chart series."""
    records = load_records(input_file)
    field = CATEGORIES[category]
    as_of_year = year or date.today().year

    if facet:
        charts = faceted_series(records, code, view, as_of_year)
        if output:
            err("--output is not supported with --facet; printing JSON")
        print(json.dumps({name: c.model_dump(by_alias=True) for name, c in charts.items()}, indent=2))
        return

    if all_munis:
        chart = comparison_series(records, field, view, as_of_year)
    elif code:
        chart = municipality_series(records, code, field, view, as_of_year)
    else:
        chart = county_series(records, field, view, as_of_year)

    if output:
        write_frame(series_frame(chart), Path(output), index=True)
    else:
        print(chart.model_dump_json(indent=2, by_alias=True))


if __name__ == "__main__":
    main()
