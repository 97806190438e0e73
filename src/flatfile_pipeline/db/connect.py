from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Connection

from flatfile_pipeline.config import load_settings


def get_database_url() -> str:
    """Returns the DSN from `FLATFILE_DSN`, or the local default."""
    # tests have FLATFILE_TEST_DSN set and pass it explicitly.
    return load_settings().dsn


def connect(database_url: Optional[str] = None) -> Connection:
    """
    Return a psycopg connection.

    - Uses `FLATFILE_DSN`, if not provided earlier.
    - Leaves autocommit OFF (commits explicitly managed elsewhere).
    """
    url = database_url or get_database_url()
    return psycopg.connect(url)
