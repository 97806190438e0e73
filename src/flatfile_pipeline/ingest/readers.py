from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Iterable, Iterator

from flatfile_pipeline.errors import FieldCountMismatch, FileEncodingError
from flatfile_pipeline.parsing.types import RawRecord

log = logging.getLogger(__name__)

FIELD_DELIMITER = "|"


def reconstruct_records(
    lines: Iterable[str],
    expected_field_count: int,
    *,
    delimiter: str = FIELD_DELIMITER,
) -> Iterator[RawRecord]:
    """
    Yields one `RawRecord` per logical record from physical `lines`.

    A record that is short of `expected_field_count` is continued by the next
    non-blank line: the pending last field and the new first field are joined
    with a newline, the new line's other fields are appended.

    States:
    - idle: nothing pending.
    - accumulating: a fragment is pending with fewer fields than expected.

    Raises `FieldCountMismatch` (with the line where accumulation began) when a
    record overshoots the expected count, or the input ends mid-record.
    `line_number` is 1-based and counts blank lines too.
    """
    if expected_field_count < 1:
        raise ValueError(f"expected_field_count must be >= 1, got {expected_field_count}")

    pending: list[str] | None = None
    start_line = 0

    for line_number, line in enumerate(lines, start=1):
        line = line.rstrip("\r\n")
        if not line.strip():
            continue

        fields = line.split(delimiter)
        if pending is None:
            pending = fields
            start_line = line_number
        else:
            # continuation: the newline was part of the previous field's data.
            pending[-1] = f"{pending[-1]}\n{fields[0]}"
            pending.extend(fields[1:])
            log.debug("line %d continues record from line %d (%d fields)", line_number, start_line, len(pending))

        if len(pending) == expected_field_count:
            yield RawRecord(line_number=start_line, values=tuple(pending))
            pending = None
        elif len(pending) > expected_field_count:
            raise FieldCountMismatch(start_line, expected_field_count, len(pending))

    if pending is not None:
        raise FieldCountMismatch(start_line, expected_field_count, len(pending), reason="eof")


def read_records(
    path: Path,
    expected_field_count: int,
    *,
    encoding: str = "utf-8",
    delimiter: str = FIELD_DELIMITER,
) -> list[RawRecord]:
    """
    Read a whole data file into logical records.

    The file is fully reconstructed before any conversion starts. Bytes that do
    not decode raise `FileEncodingError` with the file offset and line.
    """
    data = path.read_bytes()
    try:
        text = data.decode(encoding)
    except UnicodeDecodeError as e:
        line_number = data.count(b"\n", 0, e.start) + 1
        raise FileEncodingError(path, encoding, e.start, line_number, e.reason) from e

    # newline="" keeps line endings as-is, same as reading the file in text mode
    with io.StringIO(text, newline="") as f:
        records = list(reconstruct_records(f, expected_field_count, delimiter=delimiter))
    log.info("read %d record(s) from %s", len(records), path)
    return records
