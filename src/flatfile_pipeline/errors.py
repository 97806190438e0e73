"""Exception types raised by the import pipeline.

- `StructuralError`: the file or the specification is unusable as a whole (aborts the file).
- `ConversionError` / `RowConversionError`: bad field values (abort, or degrade per caller policy).
- `IntegrationError`: a caller passed shapes that can never line up (always fatal).
- `PostInstallError`: a post-install SQL script could not run.
"""
from __future__ import annotations

from typing import Any, Sequence


class PipelineError(Exception):
    """Base class for every pipeline failure."""


class StructuralError(PipelineError):
    """File or specification cannot be processed at all."""


class FieldCountMismatch(StructuralError):
    """Multi-line reconstruction could not reach the expected field count."""

    def __init__(self, line_number: int, expected: int, actual: int, *, reason: str = "overshoot") -> None:
        self.line_number = line_number
        self.expected = expected
        self.actual = actual
        self.reason = reason        # "overshoot" or "eof"
        if reason == "eof":
            msg = (
                f"line {line_number}: record starting here ended at end of file with "
                f"{actual} of {expected} expected fields"
            )
        else:
            msg = f"line {line_number}: record starting here has {actual} fields, expected {expected}"
        super().__init__(msg)


class FileEncodingError(StructuralError):
    """Data file bytes do not decode with the configured encoding."""

    def __init__(self, path: Any, encoding: str, offset: int, line_number: int, reason: str) -> None:
        self.path = path
        self.encoding = encoding
        self.offset = offset            # 0-based byte offset into the file
        self.line_number = line_number
        super().__init__(
            f"{path}: line {line_number}: cannot decode byte offset {offset} as {encoding} ({reason})"
        )


class SpecificationError(StructuralError):
    """Column specification failed validation."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = tuple(errors)
        super().__init__("invalid column specification:\n" + "\n".join(f"  - {e}" for e in self.errors))


class IntegrationError(PipelineError):
    """Reconstructed record shape does not match the specification (a caller bug)."""


class ConversionError(PipelineError):
    """One field could not be converted to its target type."""

    def __init__(
        self,
        *,
        field_name: str,
        raw_value: str,
        target_type: Any,
        kind: str,
        diagnostic: str,
        table_name: str | None = None,
        row_number: int | None = None,
    ) -> None:
        self.field_name = field_name
        self.raw_value = raw_value
        self.target_type = target_type
        self.kind = kind
        self.diagnostic = diagnostic
        self.table_name = table_name
        self.row_number = row_number
        super().__init__(diagnostic)


class RowConversionError(PipelineError):
    """Every field failure of a single record, reported together."""

    def __init__(self, *, line_number: int, failures: Sequence[ConversionError], table_name: str | None = None) -> None:
        self.line_number = line_number
        self.failures = tuple(failures)
        self.table_name = table_name
        where = f"{table_name} line {line_number}" if table_name else f"line {line_number}"
        body = "\n\n".join(f.diagnostic for f in self.failures)
        super().__init__(f"{where}: {len(self.failures)} field(s) failed conversion\n\n{body}")


class PostInstallError(PipelineError):
    """A post-install script folder or batch failed."""
