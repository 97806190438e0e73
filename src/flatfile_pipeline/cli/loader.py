from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from psycopg import Connection

from flatfile_pipeline.config import Settings
from flatfile_pipeline.db.bulk_load import bulk_insert
from flatfile_pipeline.db.ddl import create_table
from flatfile_pipeline.errors import ConversionError, IntegrationError, StructuralError
from flatfile_pipeline.ingest.readers import read_records
from flatfile_pipeline.ingest.summary import FileReport, ImportSummary
from flatfile_pipeline.parsing.materialize import materialize_row
from flatfile_pipeline.parsing.types import ColumnSpec, RecoveryPolicy, TypedRow
from flatfile_pipeline.specs.load import specs_for_table
from flatfile_pipeline.specs.validation import require_valid, validate_specs

log = logging.getLogger(__name__)


def table_name_for(path: Path) -> str:
    """Data files are named after their target table: `Employee.dat` -> `Employee`."""
    return path.stem


def _table_specs(specs: Sequence[ColumnSpec], table_name: str) -> list[ColumnSpec]:
    table_specs = specs_for_table(specs, table_name)
    if not table_specs:
        raise IntegrationError(f"no columns specified for table {table_name!r}")
    return table_specs


def materialize_file(
    input_path: Path,
    *,
    table_name: str,
    specs: Sequence[ColumnSpec],
    identifier_column: str,
    policy: RecoveryPolicy = RecoveryPolicy.fail,
    encoding: str = "utf-8",
) -> list[TypedRow]:
    """Reconstruct and convert every record of a file. Raises on the first bad row under `fail`."""
    records = read_records(input_path, len(specs) + 1, encoding=encoding)
    return [
        materialize_row(r, specs, identifier_column, table=table_name, policy=policy)
        for r in records
    ]


def import_file(
    conn: Connection,
    *,
    input_path: Path,
    table_name: str,
    specs: Sequence[ColumnSpec],
    settings: Settings,
    policy: RecoveryPolicy = RecoveryPolicy.fail,
    create: bool = True,
) -> ImportSummary:
    """
    End-to-end file import:
      - validate the table's specification (invalid spec raises),
      - reconstruct multi-line records and convert every field,
            - `fail`: the first bad row aborts the file,
            - `degrade`: bad fields load as raw text, counted as degraded,
      - (re)create the target table,
      - bulk insert and commit.

    On any failure after the database is touched, the transaction is rolled back
    and the exception re-raised.
    """
    table_specs = _table_specs(specs, table_name)
    require_valid(table_specs, identifier_column=settings.identifier_column)

    rows = materialize_file(
        input_path,
        table_name=table_name,
        specs=table_specs,
        identifier_column=settings.identifier_column,
        policy=policy,
        encoding=settings.encoding,
    )
    degraded = sum(1 for r in rows if r.degraded)

    try:
        if create:
            create_table(
                conn,
                schema=settings.schema,
                table_name=table_name,
                specs=table_specs,
                identifier_column=settings.identifier_column,
            )
        loaded = bulk_insert(
            conn,
            schema=settings.schema,
            table_name=table_name,
            rows=rows,
            batch_size=settings.batch_size,
        )
        conn.commit()
    except Exception:
        # revert all changes for this file
        conn.rollback()
        log.error("import of %s into %s.%s failed, rolled back", input_path, settings.schema, table_name)
        raise

    return ImportSummary(
        table_name=table_name,
        input_path=str(input_path),
        total=len(rows),
        loaded=loaded,
        degraded=degraded,
    )


def validate_file(
    *,
    input_path: Path,
    table_name: str,
    specs: Sequence[ColumnSpec],
    identifier_column: str,
    encoding: str = "utf-8",
) -> FileReport:
    """
    Dry run: report every problem in one file without touching a database.

    Conversion failures are collected across all records (degrade policy).
    Structural failures (bad spec, field-count mismatch) end the report early.
    """
    table_specs = specs_for_table(specs, table_name)
    if not table_specs:
        return FileReport(
            table_name=table_name,
            input_path=str(input_path),
            structural=(f"no columns specified for table {table_name!r}",),
        )

    report = validate_specs(table_specs, identifier_column=identifier_column)
    if not report.is_valid:
        return FileReport(table_name=table_name, input_path=str(input_path), structural=report.errors)

    try:
        rows = materialize_file(
            input_path,
            table_name=table_name,
            specs=table_specs,
            identifier_column=identifier_column,
            policy=RecoveryPolicy.degrade,
            encoding=encoding,
        )
    except StructuralError as e:
        return FileReport(table_name=table_name, input_path=str(input_path), structural=(str(e),))

    issues: list[ConversionError] = [i for r in rows for i in r.issues]
    return FileReport(
        table_name=table_name,
        input_path=str(input_path),
        records=len(rows),
        conversion=tuple(issues),
    )
