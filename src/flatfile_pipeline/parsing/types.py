from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from flatfile_pipeline.errors import ConversionError


class TargetType(str, Enum):
    """Resolved domain type a raw field must become."""
    text = "text"
    int32 = "int32"
    int64 = "int64"
    decimal = "decimal"
    double = "double"
    single = "single"
    boolean = "boolean"
    datetime = "datetime"


class ErrorKind(str, Enum):
    """Typed converter failure classifications."""
    invalid_format = "invalid_format"
    unsupported_type = "unsupported_type"


class RecoveryPolicy(str, Enum):
    """What the dispatcher does with a field that fails conversion."""
    fail = "fail"           # raise `ConversionError`
    degrade = "degrade"     # keep the raw string, log a warning


# SQL type token -> domain type. Unknown tokens resolve to text.
_TOKEN_TARGETS: dict[str, TargetType] = {
    "VARCHAR": TargetType.text,
    "NVARCHAR": TargetType.text,
    "CHAR": TargetType.text,
    "NCHAR": TargetType.text,
    "TEXT": TargetType.text,
    "NTEXT": TargetType.text,
    "INT": TargetType.int32,
    "INTEGER": TargetType.int32,
    "SMALLINT": TargetType.int32,
    "TINYINT": TargetType.int32,
    "BIGINT": TargetType.int64,
    "DECIMAL": TargetType.decimal,
    "NUMERIC": TargetType.decimal,
    "MONEY": TargetType.decimal,
    "SMALLMONEY": TargetType.decimal,
    "FLOAT": TargetType.double,
    "DOUBLE": TargetType.double,
    "REAL": TargetType.single,
    "BIT": TargetType.boolean,
    "BOOLEAN": TargetType.boolean,
    "BOOL": TargetType.boolean,
    "DATE": TargetType.datetime,
    "DATETIME": TargetType.datetime,
    "DATETIME2": TargetType.datetime,
    "SMALLDATETIME": TargetType.datetime,
}


def normalize_type_token(declared_type: str) -> str:
    """`' decimal(10, 2) '` -> `'DECIMAL'`."""
    return declared_type.split("(", 1)[0].strip().upper()


def target_type_for(declared_type: str) -> TargetType:
    """Derive the domain type for a SQL type token. Unknown tokens become text."""
    return _TOKEN_TARGETS.get(normalize_type_token(declared_type), TargetType.text)


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """One row of the externally authored column specification."""
    table_name: str
    column_name: str
    declared_type: str
    precision: int | str | None = None     # int, "MAX", or raw text from the column file
    scale: int | str | None = None
    source_row: int | None = field(default=None, compare=False)    # 1-based data row in the column file

    @property
    def target_type(self) -> TargetType:
        return target_type_for(self.declared_type)


@dataclass(frozen=True, slots=True)
class RawRecord:
    """One logical record, possibly assembled from several physical lines."""
    line_number: int            # 1-based, first physical line of the record
    values: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class TypedRow:
    """Fully converted row ready for the bulk loader."""
    line_number: int
    values: dict[str, Any]                                      # identifier first, then spec order
    issues: tuple[ConversionError, ...] = field(default=())     # failures kept as raw strings (degrade)

    def to_mapping(self) -> Mapping[str, Any]:
        """Values ready for insert, keyed by column name."""
        return self.values

    @property
    def degraded(self) -> bool:
        return bool(self.issues)
