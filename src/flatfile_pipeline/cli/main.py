from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from flatfile_pipeline.cli.loader import import_file, table_name_for, validate_file
from flatfile_pipeline.config import load_settings
from flatfile_pipeline.db.connect import connect
from flatfile_pipeline.db.post_install import run_post_install_scripts
from flatfile_pipeline.errors import PipelineError
from flatfile_pipeline.ingest.summary import ImportSummary, render_totals
from flatfile_pipeline.parsing.types import RecoveryPolicy
from flatfile_pipeline.specs.load import load_column_specs, rename_duplicate_columns, specs_for_table
from flatfile_pipeline.specs.validation import validate_specs

log = logging.getLogger("flatfile")


def _load_specs(args: argparse.Namespace, encoding: str):
    specs = load_column_specs(Path(args.spec), encoding=encoding)
    if getattr(args, "rename_duplicates", False):
        specs = rename_duplicate_columns(specs)
    return specs


def main(argv: list[str] | None = None) -> int:
    """
    A CLI for validating and importing `|`-delimited flat files into Postgres.

    The `cmd` options are:
    ## spec check:
    Validate a column specification CSV and print its errors/warnings.
    - `flatfile spec check --spec spec.csv`

    ## validate:
    Dry run. Reconstruct and convert every file, print every problem found.
    - `flatfile validate --spec spec.csv --input data/Employee.dat`

    ## import:
    Create each table and bulk load its file. The table name is the file name
    without extension. One summary line prints per file.
    - `flatfile import --spec spec.csv --input data/Employee.dat --schema staging`
    - `--degrade` keeps unconvertible values as raw text instead of aborting.
    - `--post-install DIR` runs `DIR/*.sql` afterwards with `{{DATABASE}}`/`{{SCHEMA}}` filled in.

    Connection and defaults come from `FLATFILE_*` environment variables.
    """
    p = argparse.ArgumentParser(prog="flatfile")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    # spec cmd
    spec = sub.add_parser("spec", help="Column specification utilities.")
    spec_sub = spec.add_subparsers(dest="spec_cmd", required=True)
    spec_check = spec_sub.add_parser("check", help="Validate a specification CSV.")
    spec_check.add_argument("--spec", required=True, help="Path to the column specification CSV.")

    # validate cmd
    validate = sub.add_parser("validate", help="Dry-run files against the specification.")
    validate.add_argument("--spec", required=True, help="Path to the column specification CSV.")
    validate.add_argument("--input", required=True, nargs="+", help="Data file(s) to check.")
    validate.add_argument("--rename-duplicates", action="store_true", help="Suffix duplicate column names.")

    # import cmd
    imp = sub.add_parser("import", help="Load data files into the database.")
    imp.add_argument("--spec", required=True, help="Path to the column specification CSV.")
    imp.add_argument("--input", required=True, nargs="+", help="Data file(s) to import.")
    imp.add_argument("--schema", default=None, help="Target schema (default: FLATFILE_SCHEMA or 'public').")
    imp.add_argument("--degrade", action="store_true", help="Load bad values as raw text with a warning.")
    imp.add_argument("--rename-duplicates", action="store_true", help="Suffix duplicate column names.")
    imp.add_argument("--post-install", default=None, help="Folder of .sql scripts to run after import.")
    imp.add_argument("--database", default="", help="Value for the {{DATABASE}} placeholder.")

    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = load_settings()

    try:
        if args.cmd == "spec" and args.spec_cmd == "check":
            report = validate_specs(_load_specs(args, settings.encoding), identifier_column=settings.identifier_column)
            for e in report.errors:
                print(f"ERROR   {e}")
            for w in report.warnings:
                print(f"WARNING {w}")
            print("Specification is valid" if report.is_valid else "Specification is invalid")
            return 0 if report.is_valid else 1

        if args.cmd == "validate":
            specs = _load_specs(args, settings.encoding)
            ok = True
            for raw_path in args.input:
                path = Path(raw_path)
                file_report = validate_file(
                    input_path=path,
                    table_name=table_name_for(path),
                    specs=specs,
                    identifier_column=settings.identifier_column,
                    encoding=settings.encoding,
                )
                print(file_report.render())
                ok = ok and file_report.ok
            return 0 if ok else 1

        if args.cmd == "import":
            if args.schema:
                settings = replace(settings, schema=args.schema)
            policy = RecoveryPolicy.degrade if args.degrade else RecoveryPolicy.fail
            specs = _load_specs(args, settings.encoding)

            summaries: list[ImportSummary] = []
            with connect(settings.dsn) as conn:
                for raw_path in args.input:
                    path = Path(raw_path)
                    table = table_name_for(path)
                    if not specs_for_table(specs, table):
                        log.warning("skipping %s: no specification for table %s", path, table)
                        continue
                    summary = import_file(
                        conn,
                        input_path=path,
                        table_name=table,
                        specs=specs,
                        settings=settings,
                        policy=policy,
                    )
                    summaries.append(summary)
                    print(summary.render_one_line())

                if args.post_install:
                    n = run_post_install_scripts(
                        conn,
                        scripts_dir=Path(args.post_install),
                        database=args.database,
                        schema=settings.schema,
                    )
                    print(f"Ran {n} post-install script(s) from {args.post_install}")

            print(render_totals(summaries))
            return 0

    except PipelineError as e:
        log.error("%s", e)
        return 1

    return 2
