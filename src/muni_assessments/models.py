"""Pydantic models for assessment snapshots, millage rates and derived views."""
from typing import Literal, Optional

from pydantic import AliasGenerator, BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

ValueField = Literal["taxable_value", "exempt_value", "purta_value"]
View = Literal["level", "change", "pct"]

# Category name → AssessmentRecord field
CATEGORIES: dict[str, ValueField] = {
    "taxable": "taxable_value",
    "exempt": "exempt_value",
    "purta": "purta_value",
}
VALUE_FIELDS: tuple[ValueField, ...] = tuple(CATEGORIES.values())
VIEWS: tuple[View, ...] = ("level", "change", "pct")

# Derived models serialize with camelCase keys for the chart/page layer
DERIVED_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=AliasGenerator(serialization_alias=to_camel),
)


class AssessmentRecord(BaseModel):
    """One municipality's assessed values as of one county snapshot."""
    model_config = ConfigDict(frozen=True)

    municipality: str
    muni_code: str
    taxable_value: int = 0
    exempt_value: int = 0
    purta_value: int = 0
    value_as_of_date: str = ""
    scraped_at: str = ""
    scrape_week: str = ""
    year: int = 0

    # Precomputed upstream; summaries and series recompute these from raw values
    taxable_value_wow_change: Optional[float] = None
    taxable_value_wow_pct: Optional[float] = None
    taxable_value_ytd_change: Optional[float] = None
    taxable_value_ytd_pct: Optional[float] = None

    @field_validator("municipality", "muni_code", "value_as_of_date", "scraped_at", "scrape_week", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    def value(self, field: ValueField) -> int:
        return getattr(self, field)


class RateRecord(BaseModel):
    """Millage (dollars per $1,000 of assessed value) for one municipality and tax year."""
    model_config = ConfigDict(frozen=True)

    municipality: str = ""
    muni_code: str
    tax_year: int = 0
    millage: float = 0.0

    @field_validator("municipality", "muni_code", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if v is None:
            return ""
        return str(v).strip()


class ValueCategory(BaseModel):
    """Start-of-year vs current comparison for one value type."""
    model_config = DERIVED_CONFIG

    start_of_year: int = 0
    current: int = 0
    change: int = 0
    pct_change: float = 0.0
    weekly_change: int = 0
    weekly_pct_change: float = 0.0


class MunicipalitySummary(BaseModel):
    """Per-municipality comparison of the latest snapshot against the start of the year."""
    model_config = DERIVED_CONFIG

    municipality: str
    muni_code: str
    data_as_of: str
    taxable: ValueCategory
    exempt: ValueCategory
    purta: ValueCategory
    millage: Optional[float] = None
    estimated_tax_impact: Optional[float] = None
    tax_impact_pct: Optional[float] = None
    weekly_tax_impact: Optional[float] = None
    weekly_tax_impact_pct: Optional[float] = None

    def category(self, name: str) -> ValueCategory:
        """Look up a category by name ("taxable", "exempt" or "purta")."""
        if name not in CATEGORIES:
            raise KeyError(f"Unknown value category: {name}")
        return getattr(self, name)


class SummaryReport(BaseModel):
    """All municipality summaries plus the newest snapshot date they reflect."""
    model_config = DERIVED_CONFIG

    summaries: list[MunicipalitySummary]
    data_as_of: str = ""

    def __len__(self) -> int:
        return len(self.summaries)


class ChartSeries(BaseModel):
    """Date labels plus one or more parallel value sequences (None marks a hole)."""
    model_config = DERIVED_CONFIG

    field: ValueField
    view: View
    labels: list[str]
    series: dict[str, list[Optional[float]]]

    @model_validator(mode="after")
    def check_lengths(self):
        n = len(self.labels)
        for name, values in self.series.items():
            if len(values) != n:
                raise ValueError(f"Series {name!r} has {len(values)} values for {n} labels")
        return self

    @property
    def names(self) -> list[str]:
        return list(self.series)

    def values(self, name: Optional[str] = None) -> list[Optional[float]]:
        """Values for one named series (or the only series, if there is one)."""
        if name is None:
            if len(self.series) != 1:
                raise ValueError(f"Series name required; have {self.names}")
            return next(iter(self.series.values()))
        return self.series[name]

    def points(self, name: Optional[str] = None) -> list[tuple[str, Optional[float]]]:
        """(label, value) pairs, the shape the chart layer plots."""
        return list(zip(self.labels, self.values(name)))
