"""
Post-install SQL scripts, run after all files are imported.

Scripts may use `{{DATABASE}}` and `{{SCHEMA}}` placeholders and separate
batches with lines containing only `GO`.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path

from psycopg import Connection

from flatfile_pipeline.errors import PostInstallError

log = logging.getLogger(__name__)

_GO_RE = re.compile(r"^[ \t]*GO[ \t]*;?[ \t]*$", re.IGNORECASE | re.MULTILINE)


def render_script(text: str, *, database: str, schema: str) -> str:
    """Substitute the `{{DATABASE}}` and `{{SCHEMA}}` placeholders."""
    return text.replace("{{DATABASE}}", database).replace("{{SCHEMA}}", schema)


def split_batches(text: str) -> list[str]:
    """Split a script on `GO` lines, dropping empty batches."""
    return [b.strip() for b in _GO_RE.split(text) if b.strip()]


def run_post_install_scripts(conn: Connection, *, scripts_dir: Path, database: str, schema: str) -> int:
    """
    Run every `*.sql` file in `scripts_dir` in name order. Returns the number of files run.

    Each file is committed on success. A missing folder or a failing batch raises
    `PostInstallError`; the latter names the file and batch.
    """
    if not scripts_dir.is_dir():
        raise PostInstallError(f"post-install scripts folder not found: {scripts_dir}")

    paths = sorted(scripts_dir.glob("*.sql"))      # ASC.
    for path in paths:
        text = render_script(path.read_text(encoding="utf-8"), database=database, schema=schema)
        batches = split_batches(text)
        with conn.cursor() as cur:
            for i, batch in enumerate(batches, 1):
                try:
                    cur.execute(batch)
                except Exception as e:
                    conn.rollback()
                    raise PostInstallError(
                        f"Post-install script failed in {path} on batch #{i}\n"
                        f"Database raised with: {e}\n"
                        f"--- batch ---\n{batch}\n--- end ---\n"
                    ) from e
        conn.commit()
        log.info("ran post-install script %s (%d batch(es))", path.name, len(batches))
    return len(paths)
