"""
Delimited-text parsing for the assessment time series and the millage table.

Both inputs are comma-separated with a header row. Columns are located by
header name, so column order does not matter and extra columns are ignored.

Coercion follows the header name:
- `taxable_value`, `exempt_value`, `purta_value`, `year`: int, 0 when unparsable
- headers containing `change` or `pct`: float or None (`NA` and empty are None)
- everything else stays a string
"""
import math
import re
from typing import Optional

from pydantic import ValidationError
from utz import err

from .models import AssessmentRecord, RateRecord

INT_COLUMNS = ("taxable_value", "exempt_value", "purta_value", "year")
NULLABLE_MARKERS = ("change", "pct")
NA = "NA"
INT_RE = re.compile(r"[+-]?([0-9]+)(\.[0-9]*)?")
LINE_RE = re.compile(r"\r?\n")

# Precomputed delta columns and scraped_at may be absent
REQUIRED_COLUMNS = (
    "municipality",
    "muni_code",
    "taxable_value",
    "exempt_value",
    "purta_value",
    "value_as_of_date",
    "scrape_week",
    "year",
)
RATE_COLUMNS = ("municipality", "muni_code", "tax_year", "millage")


class ParseError(ValueError):
    """Input text is structurally unusable (bad header, strict-mode row, bad number)."""

    def __init__(self, msg: str, line: Optional[int] = None):
        self.line = line
        super().__init__(f"line {line}: {msg}" if line is not None else msg)


def split_line(line: str) -> list[str]:
    """
    Split one line on commas, honoring double-quoted fields.

    A `"` toggles quoted state; inside quotes, `""` is one literal quote
    (RFC 4180). Fields are trimmed after un-quoting.
    """
    fields = []
    current = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    fields.append("".join(current).strip())
    return fields


def _lines(text: str) -> list[tuple[int, str]]:
    """(line number, line) for each non-blank line; only LF and CRLF end a line."""
    lines = LINE_RE.split(text.strip())
    return [(i, line) for i, line in enumerate(lines, start=1) if line.strip()]


def to_int(value: str, default: int = 0) -> int:
    """Parse a decimal integer cell (fraction truncated), returning `default` otherwise."""
    value = value.strip()
    if not INT_RE.fullmatch(value):
        return default
    return int(value.split(".")[0])


def to_float(value: str, default: float = 0.0) -> float:
    """Parse a float cell, returning `default` if it isn't a finite number."""
    try:
        f = float(value.strip())
    except ValueError:
        return default
    return f if math.isfinite(f) else default


def to_nullable_float(value: str, column: str = "", line: Optional[int] = None) -> Optional[float]:
    """Parse a change/pct cell: `NA` or empty → None, otherwise a finite float.

    Raises ParseError for anything else.
    """
    value = value.strip()
    if value == NA or value == "":
        return None
    try:
        f = float(value)
    except ValueError:
        raise ParseError(f"invalid number {value!r} in column {column!r}", line) from None
    if not math.isfinite(f):
        raise ParseError(f"non-finite number {value!r} in column {column!r}", line)
    return f


def coerce(header: str, value: str, line: Optional[int] = None):
    """Coerce one raw cell according to its column header."""
    if header in INT_COLUMNS:
        return to_int(value)
    if any(marker in header for marker in NULLABLE_MARKERS):
        return to_nullable_float(value, column=header, line=line)
    return value


def _header_index(headers: list[str], required: tuple[str, ...]) -> dict[str, int]:
    index = {}
    for i, h in enumerate(headers):
        # First occurrence wins for duplicated headers
        index.setdefault(h, i)
    missing = [c for c in required if c not in index]
    if missing:
        raise ParseError(f"Missing required column(s) {missing}. Available={headers}", 1)
    return index


def _rows(lines: list[tuple[int, str]], n_headers: int, strict: bool) -> tuple[list[tuple[int, list[str]]], int]:
    """Split body lines into (line number, fields) pairs, padding short rows."""
    rows = []
    padded = 0
    for lineno, line in lines[1:]:
        fields = split_line(line)
        if len(fields) != n_headers:
            if strict:
                raise ParseError(f"expected {n_headers} fields, found {len(fields)}", lineno)
            if len(fields) < n_headers:
                fields.extend([""] * (n_headers - len(fields)))
                padded += 1
        rows.append((lineno, fields))
    return rows, padded


def parse_assessments(text: str, strict: bool = False) -> list[AssessmentRecord]:
    """
    Parse the assessment time-series CSV into records.

    Args:
        text: Raw CSV text, header row first
        strict: Reject rows whose field count differs from the header
            (default: pad short rows with empty strings)

    Returns:
        One AssessmentRecord per data row, in input order
    """
    lines = _lines(text)
    if not lines:
        return []

    headers = split_line(lines[0][1])
    _header_index(headers, REQUIRED_COLUMNS)
    rows, padded = _rows(lines, len(headers), strict)
    if padded:
        err(f"Padded {padded} short row(s) with empty fields")

    records = []
    for lineno, fields in rows:
        row = {}
        for header, value in zip(headers, fields):
            if header not in row:
                row[header] = coerce(header, value, line=lineno)
        try:
            records.append(AssessmentRecord.model_validate(row))
        except ValidationError as e:
            raise ParseError(str(e), lineno) from e
    return records


def parse_rates(text: str) -> list[RateRecord]:
    """
    Parse the millage table CSV (`municipality, muni_code, tax_year, millage`).

    `tax_year` defaults to 0 and `millage` to 0.0 when unparsable.
    """
    lines = _lines(text)
    if not lines:
        return []

    headers = split_line(lines[0][1])
    idx = _header_index(headers, RATE_COLUMNS)
    rows, _ = _rows(lines, len(headers), strict=False)

    return [
        RateRecord(
            municipality=fields[idx["municipality"]],
            muni_code=fields[idx["muni_code"]],
            tax_year=to_int(fields[idx["tax_year"]]),
            millage=to_float(fields[idx["millage"]]),
        )
        for _, fields in rows
    ]


def muni_codes(text: str) -> list[str]:
    """Distinct non-empty municipality codes in first-seen order (one page per code)."""
    lines = _lines(text)
    if not lines:
        return []
    headers = split_line(lines[0][1])
    i = _header_index(headers, ("muni_code",))["muni_code"]
    codes: dict[str, None] = {}
    for _, line in lines[1:]:
        fields = split_line(line)
        if i < len(fields) and fields[i]:
            codes.setdefault(fields[i], None)
    return list(codes)
