"""Tabular (pandas) views of summaries and chart series, and file export."""
from pathlib import Path

import pandas as pd
from utz import err

from .models import CATEGORIES, ChartSeries, SummaryReport


def summaries_frame(report: SummaryReport) -> pd.DataFrame:
    """
    Flatten summaries into one row per municipality.

    Category columns are prefixed by category name, e.g. `taxable_change`,
    `exempt_pct_change`, `purta_weekly_change`.
    """
    rows = []
    for s in report.summaries:
        row = {
            "municipality": s.municipality,
            "muni_code": s.muni_code,
            "data_as_of": s.data_as_of,
        }
        for name in CATEGORIES:
            for key, value in s.category(name).model_dump().items():
                row[f"{name}_{key}"] = value
        row.update({
            "millage": s.millage,
            "estimated_tax_impact": s.estimated_tax_impact,
            "tax_impact_pct": s.tax_impact_pct,
            "weekly_tax_impact": s.weekly_tax_impact,
            "weekly_tax_impact_pct": s.weekly_tax_impact_pct,
        })
        rows.append(row)
    return pd.DataFrame(rows)


def series_frame(chart: ChartSeries) -> pd.DataFrame:
    """One row per date label, one column per series (<NA> for holes)."""
    return pd.DataFrame(
        {name: pd.array(values, dtype="Float64") for name, values in chart.series.items()},
        index=pd.Index(chart.labels, name="date"),
    )


def write_frame(df: pd.DataFrame, output: Path, index: bool = False) -> Path:
    """Write `df` as parquet or CSV, chosen by the output suffix."""
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix == ".parquet":
        df.to_parquet(output, index=index)
    elif output.suffix == ".csv":
        df.to_csv(output, index=index)
    else:
        raise ValueError(f"Unsupported output format: {output.suffix!r} (use .parquet or .csv)")
    err(f"Wrote {len(df):,} rows to {output}")
    return output
