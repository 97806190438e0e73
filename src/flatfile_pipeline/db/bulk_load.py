from __future__ import annotations

import logging
from typing import Any, Sequence

from psycopg import Connection, sql

from flatfile_pipeline.parsing.types import TypedRow

log = logging.getLogger(__name__)

BATCH_SIZE = 500


def bulk_insert(
    conn: Connection,
    *,
    schema: str,
    table_name: str,
    rows: Sequence[TypedRow],
    batch_size: int = BATCH_SIZE,
) -> int:
    """
    Insert typed rows into `schema.table_name`, returns the number of rows sent.

    Column names come from the first row; every row shares the same layout.
    Identifiers are quoted via `sql.Identifier`, values are parameterized.
    Does not commit; transport errors propagate to the caller.
    """
    if not rows:
        return 0

    cols = tuple(rows[0].to_mapping().keys())
    query = sql.SQL("INSERT INTO {tbl} ({cols}) VALUES ({vals})").format(
        tbl=sql.Identifier(schema, table_name),
        cols=sql.SQL(", ").join(sql.Identifier(c) for c in cols),
        vals=sql.SQL(", ").join(sql.Placeholder() for _ in cols),
    )

    sent = 0
    with conn.cursor() as cur:
        for start in range(0, len(rows), batch_size):
            batch = rows[start:start + batch_size]
            params: list[tuple[Any, ...]] = []
            for r in batch:
                m = r.to_mapping()
                params.append(tuple(m.get(c) for c in cols))
            cur.executemany(query, params)      # sequential batch processing
            sent += len(params)
            log.debug("inserted batch of %d into %s.%s", len(params), schema, table_name)

    return sent
