from __future__ import annotations

import pytest

from flatfile_pipeline.errors import SpecificationError
from flatfile_pipeline.parsing.types import ColumnSpec
from flatfile_pipeline.specs.validation import require_valid, validate_specs


def _spec(col: str, typ: str, precision: object = None, scale: object = None, table: str = "Employee") -> ColumnSpec:
    return ColumnSpec(table, col, typ, precision, scale)  # type: ignore[arg-type]


def test_valid_spec(employee_specs: list[ColumnSpec]) -> None:
    report = validate_specs(employee_specs)
    assert report.is_valid
    assert report.errors == ()
    assert report.warnings == ()


def test_empty_spec_is_error() -> None:
    report = validate_specs([])
    assert not report.is_valid
    assert "empty" in report.errors[0]


def test_idempotent(employee_specs: list[ColumnSpec]) -> None:
    """Same input, same report; input untouched."""
    specs = employee_specs + [_spec("Name", "VARCHAR", 9000), _spec("Bad", "GEOGRAPHY")]
    before = list(specs)
    assert validate_specs(specs) == validate_specs(specs)
    assert specs == before


def test_duplicate_column_single_error_references_first_row() -> None:
    specs = [_spec("Name", "VARCHAR", 50), _spec("Name", "VARCHAR", 50)]
    report = validate_specs(specs)
    dups = [e for e in report.errors if "duplicate" in e]
    assert len(dups) == 1
    assert dups[0].startswith("Row 2:")
    assert "first defined in row 1" in dups[0]
    assert len(report.errors) == 1


def test_duplicate_check_is_per_table_and_case_insensitive() -> None:
    specs = [
        _spec("Name", "VARCHAR", 50),
        _spec("Name", "VARCHAR", 50, table="Department"),
        _spec("NAME", "VARCHAR", 50),
    ]
    dups = [e for e in validate_specs(specs).errors if "duplicate" in e]
    assert dups == ["Row 3: duplicate column 'NAME' in table 'Employee' (first defined in row 1)"]


def test_unsupported_type_is_error() -> None:
    report = validate_specs([_spec("Shape", "GEOGRAPHY")])
    assert not report.is_valid
    assert "unsupported data type" in report.errors[0]


@pytest.mark.parametrize("name", ["1stCol", "First Name", "Col-A", "Émile"])
def test_identifier_unsafe_names(name: str) -> None:
    report = validate_specs([_spec(name, "INT")])
    assert not report.is_valid
    assert "invalid characters" in report.errors[0]


def test_identifier_too_long() -> None:
    report = validate_specs([_spec("c" * 129, "INT")])
    assert "exceeds 128" in report.errors[0]


def test_reserved_keyword_is_warning() -> None:
    report = validate_specs([_spec("Order", "INT"), _spec("User", "VARCHAR", 20)])
    assert report.is_valid
    assert len(report.warnings) == 2
    assert "reserved keyword" in report.warnings[0]


def test_decimal_precision_boundary() -> None:
    assert validate_specs([_spec("Amount", "DECIMAL", 38, 2)]).is_valid
    report = validate_specs([_spec("Amount", "DECIMAL", 39, 2)])
    assert not report.is_valid
    assert "exceeds 38" in report.errors[0]


def test_varchar_length_boundary_warns() -> None:
    """VARCHAR/NVARCHAR over 8000 warns (MAX is the way), 8000 is fine."""
    assert validate_specs([_spec("Notes", "VARCHAR", 8000)]) == validate_specs([_spec("Notes", "VARCHAR", 8000)])
    ok = validate_specs([_spec("Notes", "VARCHAR", 8000)])
    assert ok.is_valid and ok.warnings == ()
    for typ in ("VARCHAR", "NVARCHAR"):
        report = validate_specs([_spec("Notes", typ, 8001)])
        assert report.is_valid
        assert "exceeds 8000" in report.warnings[0]


@pytest.mark.parametrize("typ", ["CHAR", "NCHAR"])
def test_char_length_boundary_errors(typ: str) -> None:
    assert validate_specs([_spec("Code", typ, 8000)]).is_valid
    report = validate_specs([_spec("Code", typ, 8001)])
    assert not report.is_valid
    assert "exceeds 8000" in report.errors[0]


def test_max_length() -> None:
    """MAX is for variable-length character types only."""
    assert validate_specs([_spec("Notes", "NVARCHAR", "max")]).is_valid
    assert not validate_specs([_spec("Code", "CHAR", "MAX")]).is_valid


@pytest.mark.parametrize("precision", [None, "", 0, -5, "abc", "10.5"])
def test_precision_required_and_positive(precision: object) -> None:
    assert not validate_specs([_spec("Name", "VARCHAR", precision)]).is_valid
    assert not validate_specs([_spec("Amount", "NUMERIC", precision)]).is_valid


def test_precision_accepts_numeric_text() -> None:
    """Spec sources often hand over text like `"100"` or `"12.0"`."""
    assert validate_specs([_spec("Name", "VARCHAR", "100"), _spec("Amount", "DECIMAL", "12.0", "2")]).is_valid


@pytest.mark.parametrize("scale", [-1, "x", 11])
def test_scale_bounds(scale: object) -> None:
    report = validate_specs([_spec("Amount", "DECIMAL", 10, scale)])
    assert not report.is_valid


def test_scale_equal_to_precision_ok() -> None:
    assert validate_specs([_spec("Rate", "DECIMAL", 5, 5)]).is_valid


def test_precision_on_other_types_warns() -> None:
    report = validate_specs([_spec("Age", "INT", 10)])
    assert report.is_valid
    assert "ignored" in report.warnings[0]


def test_missing_attributes_accumulate() -> None:
    specs = [ColumnSpec("", "A", "INT"), ColumnSpec("T", "", ""), ColumnSpec("T", "B", "INT")]
    report = validate_specs(specs)
    assert len(report.errors) == 2
    assert report.errors[0] == "Row 1: missing required attribute(s): Table name"
    assert report.errors[1] == "Row 2: missing required attribute(s): Column name, Data type"


def test_fail_fast_raises_on_structural_failure() -> None:
    specs = [ColumnSpec("T", "A", "INT"), ColumnSpec("T", "B", ""), ColumnSpec("", "C", "INT")]
    with pytest.raises(SpecificationError) as e:
        validate_specs(specs, fail_fast=True)
    assert e.value.errors == ("Row 2: missing required attribute(s): Data type",)


def test_require_valid_lists_all_errors() -> None:
    specs = [_spec("Shape", "GEOGRAPHY"), _spec("Amount", "DECIMAL", 40)]
    with pytest.raises(SpecificationError) as e:
        require_valid(specs)
    assert len(e.value.errors) == 2


def test_rows_follow_source_row_when_set() -> None:
    """A filtered per-table list still reports the rows of the column file."""
    specs = [
        ColumnSpec("Dept", "Name", "VARCHAR", 50, source_row=3),
        ColumnSpec("Dept", "Code", "GEOGRAPHY", source_row=4),
        ColumnSpec("Dept", "name", "VARCHAR", 50, source_row=7),
    ]
    report = validate_specs(specs)
    assert report.errors == (
        "Row 4: unsupported data type 'GEOGRAPHY' for column 'Code'",
        "Row 7: duplicate column 'name' in table 'Dept' (first defined in row 3)",
    )


def test_identifier_column_collision_is_error() -> None:
    specs = [_spec("ImportID", "INT"), _spec("Name", "VARCHAR", 10)]
    assert validate_specs(specs).is_valid

    report = validate_specs(specs, identifier_column="importid")
    assert report.errors == ("Row 1: column 'ImportID' collides with the identifier column 'importid'",)
    with pytest.raises(SpecificationError):
        require_valid(specs, identifier_column="ImportID")
