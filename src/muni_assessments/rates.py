"""Millage lookup by municipality code for the most recent tax year."""
from typing import Iterable, Optional

from .models import RateRecord


class RateIndex:
    """
    Map of municipality code → millage for the latest tax year in the rate set.

    The latest year is computed once over *all* records, not per municipality:
    a code whose newest rate is from an earlier year has no current rate.
    """

    def __init__(self, latest_year: Optional[int], by_code: dict[str, float]):
        self.latest_year = latest_year
        self._by_code = by_code

    @classmethod
    def from_records(cls, rates: Iterable[RateRecord]) -> "RateIndex":
        rates = list(rates)
        if not rates:
            return cls(None, {})
        latest_year = max(r.tax_year for r in rates)
        by_code: dict[str, float] = {}
        for r in rates:
            if r.tax_year == latest_year:
                by_code[r.muni_code] = r.millage
        return cls(latest_year, by_code)

    def rate_for(self, muni_code: str) -> Optional[float]:
        """Millage for `muni_code`, or None if unknown (distinct from a real 0.0 rate)."""
        return self._by_code.get(muni_code)

    @property
    def codes(self) -> list[str]:
        return sorted(self._by_code)

    def __len__(self) -> int:
        return len(self._by_code)

    def __contains__(self, muni_code: str) -> bool:
        return muni_code in self._by_code

    def __repr__(self) -> str:
        return f"RateIndex(latest_year={self.latest_year}, codes={len(self)})"
