from __future__ import annotations

import logging
from typing import Any

from flatfile_pipeline.errors import ConversionError

from .diagnostics import explain
from .primitives import (
    ParseError,
    is_null,
    parse_boolean,
    parse_datetime,
    parse_decimal,
    parse_integer,
    parse_text,
)
from .types import RecoveryPolicy, TargetType

log = logging.getLogger(__name__)


def _convert(raw: str, target: TargetType) -> Any:
    """Route one non-NULL value to the converter that owns `target`."""
    match target:
        case TargetType.text:
            return parse_text(raw, target)
        case TargetType.int32 | TargetType.int64:
            return parse_integer(raw, target)
        case TargetType.decimal | TargetType.double | TargetType.single:
            return parse_decimal(raw, target)
        case TargetType.boolean:
            return parse_boolean(raw, target)
        case TargetType.datetime:
            return parse_datetime(raw, target)
    raise TypeError(f"unhandled target type: {target!r}")


def convert_field(
    raw: str | None,
    target: TargetType,
    *,
    field: str,
    row_number: int | None = None,
    table: str | None = None,
    policy: RecoveryPolicy = RecoveryPolicy.fail,
    issues: list[ConversionError] | None = None,
) -> Any:
    """
    Convert one raw field to its typed value, or `None` for NULL.

    NULL sentinels short-circuit before any converter runs. On failure:
    - `RecoveryPolicy.fail`: raise `ConversionError` carrying the diagnostic.
    - `RecoveryPolicy.degrade`: log a warning, append the error to `issues`
      (when given) and return the raw string unchanged.
    """
    if raw is None or is_null(raw):
        return None

    try:
        return _convert(raw, target)
    except ParseError as e:
        err = ConversionError(
            field_name=field,
            raw_value=raw,
            target_type=target,
            kind=e.kind.value,
            diagnostic=explain(raw, target, field, table=table, row_number=row_number),
            table_name=table,
            row_number=row_number,
        )
        if policy is RecoveryPolicy.fail:
            raise err from e

    # degrade: keep the source text so the row still loads.
    log.warning(
        "keeping raw value for %s.%s row %s: %s",
        table or "?", field, row_number if row_number is not None else "?", err.diagnostic.splitlines()[0],
    )
    if issues is not None:
        issues.append(err)
    return raw
