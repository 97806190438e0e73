from __future__ import annotations

import math
import re
import struct
from datetime import datetime
from decimal import Decimal, InvalidOperation

from .types import ErrorKind, TargetType


class ParseError(Exception):
    """Converter-level failure, without row context. The dispatcher adds context."""

    def __init__(self, kind: ErrorKind, detail: str) -> None:
        self.kind = kind            # used to classify the failure encountered
        self.detail = detail        # message that led to the failure
        super().__init__(detail)


# the full set of NULL synonyms, compared after strip + upper.
NULL_SENTINELS = frozenset({"NULL", "NA", "N/A"})

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1

TRUE_TOKENS = ("1", "TRUE", "YES", "Y", "T")
FALSE_TOKENS = ("0", "FALSE", "NO", "N", "F")

# accepted date/time layouts, in the order they are reported to users
DATETIME_PATTERNS = (
    "yyyy-MM-dd",
    "yyyy-MM-dd HH:mm:ss",
    "yyyy-MM-dd HH:mm:ss.f",
    "yyyy-MM-dd HH:mm:ss.ff",
    "yyyy-MM-dd HH:mm:ss.fff",
)

_INT_RE = re.compile(r"[+-]?(\d+)(?:\.(\d+))?", re.ASCII)
# commas are only legal in the integral part, where they are grouping separators
_DECIMAL_RE = re.compile(r"[+-]?(?:\d[\d,]*(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_DATETIME_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})"
    r"(?: (\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,3}))?)?",
    re.ASCII,
)


def is_null(raw: str | None) -> bool:
    """True when a raw field stands for SQL NULL: blank, or one of `NULL`/`NA`/`N/A`."""
    if raw is None:
        return True
    s = raw.strip()
    return s == "" or s.upper() in NULL_SENTINELS


def _unsupported(converter: str, target: TargetType) -> ParseError:
    return ParseError(ErrorKind.unsupported_type, f"{converter} converter does not handle {target.value}")


## -- integers

def parse_integer(raw: str, target: TargetType) -> int:
    """
    Parse `int32`/`int64` values with a locale-independent grammar.

    `"42"`, `"-7"`, `"42.0"`, `"42.000"` are accepted. A non-zero fraction
    (`"42.5"`) is rejected rather than truncated. Thousands separators are rejected.
    """
    if target not in (TargetType.int32, TargetType.int64):
        raise _unsupported("integer", target)

    s = raw.strip()
    m = _INT_RE.fullmatch(s)
    if m is None:
        raise ParseError(ErrorKind.invalid_format, f"not an integer: {raw!r}")
    fraction = m.group(2)
    if fraction is not None and fraction.strip("0"):
        raise ParseError(ErrorKind.invalid_format, f"integer has a non-zero fractional part: {raw!r}")

    value = int(s.split(".", 1)[0])
    lo, hi = (INT32_MIN, INT32_MAX) if target is TargetType.int32 else (INT64_MIN, INT64_MAX)
    if not lo <= value <= hi:
        raise ParseError(ErrorKind.invalid_format, f"integer out of range for {target.value}: {raw!r}")
    return value


## -- decimal family

def parse_decimal(raw: str, target: TargetType) -> Decimal | float:
    """
    Parse `decimal`/`double`/`single` values.

    `.` is the only fractional separator; `,` in the integral part is a thousands
    grouping separator and is dropped, so `"1,234.56"` is `1234.56`.
    """
    if target not in (TargetType.decimal, TargetType.double, TargetType.single):
        raise _unsupported("decimal", target)

    s = raw.strip()
    if _DECIMAL_RE.fullmatch(s) is None:
        raise ParseError(ErrorKind.invalid_format, f"not a number: {raw!r}")
    s = s.replace(",", "")

    if target is TargetType.decimal:
        try:
            return Decimal(s)
        except InvalidOperation:
            raise ParseError(ErrorKind.invalid_format, f"not a number: {raw!r}")

    value = float(s)
    if math.isinf(value):
        raise ParseError(ErrorKind.invalid_format, f"number out of range for {target.value}: {raw!r}")
    if target is TargetType.single:
        try:
            # round-trip through IEEE-754 binary32
            value = struct.unpack("f", struct.pack("f", value))[0]
        except OverflowError:
            raise ParseError(ErrorKind.invalid_format, f"number out of range for single: {raw!r}")
    return value


## -- booleans

def parse_boolean(raw: str, target: TargetType) -> bool:
    """Accepts `1/TRUE/YES/Y/T` and `0/FALSE/NO/N/F`, any casing."""
    if target is not TargetType.boolean:
        raise _unsupported("boolean", target)

    s = raw.strip().upper()
    if s in TRUE_TOKENS:
        return True
    if s in FALSE_TOKENS:
        return False
    raise ParseError(
        ErrorKind.invalid_format,
        f"invalid boolean {raw!r} (expected one of {'/'.join(TRUE_TOKENS)} or {'/'.join(FALSE_TOKENS)})",
    )


## -- date/time

def parse_datetime(raw: str, target: TargetType) -> datetime:
    """
    Accepts the ISO-like forms only:
    - `2024-01-15`
    - `2024-01-15 13:45:00`
    - `2024-01-15 13:45:00.5` (1 to 3 fractional digits)

    Slash separated and day-first layouts are rejected. Calendar checks
    (leap years, month lengths) come from `datetime` itself.
    """
    if target is not TargetType.datetime:
        raise _unsupported("datetime", target)

    m = _DATETIME_RE.fullmatch(raw.strip())
    if m is None:
        raise ParseError(ErrorKind.invalid_format, f"unrecognised date/time layout: {raw!r}")

    year, month, day, hour, minute, second, fraction = m.groups()
    micro = int(fraction.ljust(6, "0")) if fraction else 0
    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour or 0), int(minute or 0), int(second or 0),
            micro,
        )
    except ValueError as e:
        raise ParseError(ErrorKind.invalid_format, f"invalid calendar date/time {raw!r}: {e}")


## -- text

def parse_text(raw: str, target: TargetType) -> str:
    """Passthrough. NULL handling happens before any converter runs."""
    if target is not TargetType.text:
        raise _unsupported("text", target)
    return raw
