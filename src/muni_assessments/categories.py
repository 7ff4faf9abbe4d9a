"""Start-of-year / current / week-over-week comparison for one value field."""
from typing import Optional

from .models import AssessmentRecord, ValueCategory, ValueField


def pct(change: float, baseline: float) -> float:
    """Percent change against `baseline`; 0 when there is no positive baseline."""
    return change / baseline * 100 if baseline > 0 else 0.0


def compute_category(
    start: Optional[AssessmentRecord],
    current: Optional[AssessmentRecord],
    field: ValueField,
    previous: Optional[AssessmentRecord] = None,
) -> ValueCategory:
    """
    Compare `field` between snapshots.

    Args:
        start: Start-of-year record (missing → 0)
        current: Latest record (missing → 0)
        field: One of taxable_value, exempt_value, purta_value
        previous: Record immediately before `current`; without one, `current`
            is its own predecessor and weekly change is 0

    Returns:
        ValueCategory with YTD and weekly changes
    """
    start_value = start.value(field) if start is not None else 0
    current_value = current.value(field) if current is not None else 0
    if previous is None:
        previous_value = current_value
    else:
        previous_value = previous.value(field)

    change = current_value - start_value
    weekly_change = current_value - previous_value
    return ValueCategory(
        start_of_year=start_value,
        current=current_value,
        change=change,
        pct_change=pct(change, start_value),
        weekly_change=weekly_change,
        weekly_pct_change=pct(weekly_change, previous_value),
    )
