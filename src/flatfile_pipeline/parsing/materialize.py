from __future__ import annotations

from typing import Any, Sequence

from flatfile_pipeline.errors import ConversionError, IntegrationError, RowConversionError

from .dispatch import convert_field
from .types import ColumnSpec, RawRecord, RecoveryPolicy, TypedRow


def materialize_row(
    record: RawRecord,
    specs: Sequence[ColumnSpec],
    identifier_column: str,
    *,
    table: str | None = None,
    policy: RecoveryPolicy = RecoveryPolicy.fail,
) -> TypedRow:
    """
    Convert one reconstructed record into a `TypedRow`.

    `record.values[0]` is the externally assigned identifier and is kept as text;
    the remaining values line up with `specs` in order.

    Every field is attempted before failing, so one `RowConversionError` lists all
    bad fields of the record. Under `RecoveryPolicy.degrade` bad fields keep their
    raw text and are reported on `TypedRow.issues` instead.
    """
    if len(record.values) != len(specs) + 1:
        # not a data problem: the caller picked the wrong spec or field count.
        raise IntegrationError(
            f"{table or 'record'} line {record.line_number}: got {len(record.values)} values, "
            f"specification expects {len(specs) + 1} ({identifier_column} + {len(specs)} columns)"
        )

    clash = [s.column_name for s in specs if s.column_name.lower() == identifier_column.lower()]
    if clash:
        raise IntegrationError(
            f"{table or 'record'}: column {clash[0]!r} collides with the identifier column {identifier_column!r}"
        )

    table = table or (specs[0].table_name if specs else None)
    out: dict[str, Any] = {identifier_column: record.values[0]}
    failures: list[ConversionError] = []
    issues: list[ConversionError] = []

    ## -- conversion loop
    for spec, raw in zip(specs, record.values[1:]):
        try:
            out[spec.column_name] = convert_field(
                raw,
                spec.target_type,
                field=spec.column_name,
                row_number=record.line_number,
                table=table,
                policy=policy,
                issues=issues,
            )
        except ConversionError as e:
            failures.append(e)

    if failures:
        raise RowConversionError(line_number=record.line_number, failures=failures, table_name=table)

    return TypedRow(line_number=record.line_number, values=out, issues=tuple(issues))
