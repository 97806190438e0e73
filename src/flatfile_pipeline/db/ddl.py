from __future__ import annotations

import logging
from typing import Sequence

from psycopg import Connection, sql

from flatfile_pipeline.parsing.types import ColumnSpec, normalize_type_token

log = logging.getLogger(__name__)

# wide text column used for anything the mapper does not recognise
FALLBACK_TYPE = "TEXT"
IDENTIFIER_TYPE = "VARCHAR(255)"

_FIXED_TYPES: dict[str, str] = {
    "TEXT": "TEXT",
    "NTEXT": "TEXT",
    "INT": "INTEGER",
    "INTEGER": "INTEGER",
    "SMALLINT": "SMALLINT",
    "TINYINT": "SMALLINT",
    "BIGINT": "BIGINT",
    "MONEY": "NUMERIC(19,4)",
    "SMALLMONEY": "NUMERIC(10,4)",
    "FLOAT": "DOUBLE PRECISION",
    "DOUBLE": "DOUBLE PRECISION",
    "REAL": "REAL",
    "BIT": "BOOLEAN",
    "BOOLEAN": "BOOLEAN",
    "BOOL": "BOOLEAN",
    "DATE": "DATE",
    "DATETIME": "TIMESTAMP",
    "DATETIME2": "TIMESTAMP",
    "SMALLDATETIME": "TIMESTAMP",
}


def _int_or_none(v: int | str | None) -> int | None:
    if v is None:
        return None
    try:
        return int(str(v).strip().split(".", 1)[0])
    except ValueError:
        return None


def sql_type_for(declared_type: str, precision: int | str | None = None, scale: int | str | None = None) -> str:
    """
    Best-effort physical column type for a declared type, e.g. `VARCHAR(100)`.

    Never raises: unknown tokens or unusable precision fall back to a wider type,
    ending at `TEXT`. Run `validate_specs` first for strict checking.
    """
    token = normalize_type_token(declared_type)

    if token in ("VARCHAR", "NVARCHAR"):
        n = _int_or_none(precision)
        return f"VARCHAR({n})" if n and n > 0 else FALLBACK_TYPE      # MAX -> TEXT
    if token in ("CHAR", "NCHAR"):
        n = _int_or_none(precision)
        return f"CHAR({n})" if n and n > 0 else FALLBACK_TYPE
    if token in ("DECIMAL", "NUMERIC"):
        p = _int_or_none(precision)
        s = _int_or_none(scale)
        if not p or p <= 0:
            return "NUMERIC"
        if s is not None and 0 <= s <= p:
            return f"NUMERIC({p},{s})"
        return f"NUMERIC({p})"

    mapped = _FIXED_TYPES.get(token)
    if mapped is None:
        log.debug("no mapping for declared type %r, using %s", declared_type, FALLBACK_TYPE)
        return FALLBACK_TYPE
    return mapped


def column_definitions(specs: Sequence[ColumnSpec], identifier_column: str) -> list[tuple[str, str]]:
    """`(column, physical type)` pairs in table order, identifier first."""
    cols = [(identifier_column, IDENTIFIER_TYPE)]
    cols.extend((s.column_name, sql_type_for(s.declared_type, s.precision, s.scale)) for s in specs)
    return cols


def build_create_table(
    *,
    schema: str,
    table_name: str,
    specs: Sequence[ColumnSpec],
    identifier_column: str,
) -> sql.Composed:
    """
    Compose `CREATE TABLE` for a spec'd table.

    Identifiers are quoted via `sql.Identifier`; types come only from `sql_type_for`.
    """
    defs = []
    for name, typ in column_definitions(specs, identifier_column):
        suffix = " NOT NULL" if name == identifier_column else ""
        defs.append(sql.SQL("{} {}{}").format(sql.Identifier(name), sql.SQL(typ), sql.SQL(suffix)))

    return sql.SQL("CREATE TABLE {tbl} ({cols})").format(
        tbl=sql.Identifier(schema, table_name),
        cols=sql.SQL(", ").join(defs),
    )


def create_table(
    conn: Connection,
    *,
    schema: str,
    table_name: str,
    specs: Sequence[ColumnSpec],
    identifier_column: str,
    drop_existing: bool = True,
) -> None:
    """
    Create the target schema (if needed) and (re)create the table.

    Does not commit; the caller owns the transaction.
    """
    with conn.cursor() as cur:
        cur.execute(sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(schema)))
        if drop_existing:
            cur.execute(sql.SQL("DROP TABLE IF EXISTS {}").format(sql.Identifier(schema, table_name)))
        cur.execute(
            build_create_table(
                schema=schema,
                table_name=table_name,
                specs=specs,
                identifier_column=identifier_column,
            )
        )
    log.info("created table %s.%s (%d columns)", schema, table_name, len(specs) + 1)
