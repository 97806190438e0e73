from __future__ import annotations

from pathlib import Path

import pytest

from flatfile_pipeline.parsing.types import ColumnSpec


@pytest.fixture()
def employee_specs() -> list[ColumnSpec]:
    """A small, valid `Employee` specification (5 columns)."""
    return [
        ColumnSpec("Employee", "FirstName", "NVARCHAR", 100),
        ColumnSpec("Employee", "HireDate", "DATE"),
        ColumnSpec("Employee", "Salary", "DECIMAL", 12, 2),
        ColumnSpec("Employee", "Age", "INT"),
        ColumnSpec("Employee", "Active", "BIT"),
    ]


@pytest.fixture()
def spec_csv(tmp_path: Path) -> Path:
    """Specification CSV for an `Employee` table, mirroring `employee_specs`."""
    p = tmp_path / "spec.csv"
    p.write_text(
        "Table name,Column name,Data type,Precision,Scale\n"
        "Employee,FirstName,NVARCHAR,100,\n"
        "Employee,HireDate,DATE,,\n"
        "Employee,Salary,DECIMAL,12,2\n"
        "Employee,Age,INT,,\n"
        "Employee,Active,BIT,,\n",
        encoding="utf-8",
    )
    return p
