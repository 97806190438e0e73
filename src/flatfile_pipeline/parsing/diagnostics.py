"""Human-actionable messages for values that failed conversion."""
from __future__ import annotations

import re

from .primitives import DATETIME_PATTERNS, FALSE_TOKENS, TRUE_TOKENS
from .types import TargetType

_DECIMAL_NOTATION_RE = re.compile(r"\s*([+-]?\d+)[.,]\d+\s*", re.ASCII)
_EU_DECIMAL_RE = re.compile(r"\s*[+-]?\d{1,3}(?:\.\d{3})*,\d+\s*", re.ASCII)

_SQL_NAMES = {
    TargetType.text: "text",
    TargetType.int32: "INT (32-bit integer)",
    TargetType.int64: "BIGINT (64-bit integer)",
    TargetType.decimal: "DECIMAL",
    TargetType.double: "FLOAT (double precision)",
    TargetType.single: "REAL (single precision)",
    TargetType.boolean: "BIT (boolean)",
    TargetType.datetime: "DATE/DATETIME",
}


def _integer_hints(raw: str) -> list[str]:
    hints: list[str] = []
    m = _DECIMAL_NOTATION_RE.fullmatch(raw)
    if m:
        hints.append("The value is written in decimal notation but the column holds whole numbers.")
        hints.append(f"Truncate it to {m.group(1)} in the source, or declare the column as DECIMAL.")
    elif "," in raw:
        hints.append("Thousands separators are not allowed in integer columns; remove the commas.")
    else:
        hints.append("Expected digits only, with an optional leading sign (e.g. 42 or -7).")
    return hints


def _decimal_hints(raw: str) -> list[str]:
    hints: list[str] = []
    if "," in raw:
        hints.append("The value contains a comma. Commas are read as thousands separators, not decimals.")
        if _EU_DECIMAL_RE.fullmatch(raw):
            fixed = raw.strip().replace(".", "").replace(",", ".")
            hints.append(f"If the comma is meant as the decimal separator, write it as {fixed}.")
    hints.append("Use a period '.' as the decimal separator (e.g. 1234.56 or 1,234.56).")
    return hints


def _datetime_hints() -> list[str]:
    hints = ["Accepted layouts are:"]
    hints.extend(f"  {p}" for p in DATETIME_PATTERNS)
    hints.append("Slash separated (01/15/2024) and day-first (15-01-2024) dates are not accepted.")
    return hints


def _boolean_hints() -> list[str]:
    pairs = [f"{t}/{f}" for t, f in zip(TRUE_TOKENS, FALSE_TOKENS)]
    # TRUE/FALSE first, it is the form users look for
    pairs.sort(key=lambda p: p != "TRUE/FALSE")
    return [f"Accepted true/false values (any casing): {', '.join(pairs)}."]


def explain(
    raw: str,
    target: TargetType,
    field: str,
    table: str | None = None,
    row_number: int | None = None,
) -> str:
    """
    Build a multi-line remediation message for a failed conversion.

    The raw value is always included. `table` and `row_number` are each
    included only when supplied.
    """
    lines = [f"Cannot convert value {raw!r} in column '{field}' to {_SQL_NAMES[target]}."]
    if table is not None:
        lines.append(f"  Table: {table}")
    if row_number is not None:
        lines.append(f"  Row:   {row_number}")
    lines.append(f"  Value: {raw!r}")

    match target:
        case TargetType.int32 | TargetType.int64:
            hints = _integer_hints(raw)
        case TargetType.decimal | TargetType.double | TargetType.single:
            hints = _decimal_hints(raw)
        case TargetType.datetime:
            hints = _datetime_hints()
        case TargetType.boolean:
            hints = _boolean_hints()
        case TargetType.text:
            hints = ["Text columns accept any value; check the column's declared type."]

    lines.extend(f"  {h}" for h in hints)
    return "\n".join(lines)
