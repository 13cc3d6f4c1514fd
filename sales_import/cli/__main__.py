from __future__ import annotations

import argparse
import json
import os
import sys
import zipfile
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

from sales_import.config.loader import ConfigError, load_config, load_roster
from sales_import.logging.error_log import DiagnosticLogBuffer
from sales_import.logging.init import log_summary, set_debug, setup_logging
from sales_import.models.config_models import ImportConfig
from sales_import.models.run_result import RunResult
from sales_import.services.orchestrator import run_import
from sales_import.services.progress import ProgressTracker
from sales_import.services.staff import Roster, extract_staff_ids
from sales_import.services.summary import render_staff_table, render_summary_line, summarize
from sales_import.tabular.headers import match_headers
from sales_import.tabular.reader import StructuralError, read_excel_file, read_table, read_text_file

"""CLI entrypoint.

Flow:
- Load .env, config/import.yml and the staff roster
- Read each export file (.xlsx via pandas/openpyxl, anything else as delimited text)
- Run the import core, log diagnostics with WARN/ERROR labels and buffer them
  as JSON Lines under logs/
- Print one SUMMARY line per file and a closing totals line
- Optionally write `<stem>.records.json` per file for the persistence side
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_CONFIG_PATH = Path("config/import.yml")
EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True lets .env values win over the process environment so a
    project-local SALES_IMPORT_CONFIG / SALES_IMPORT_ROSTER takes effect.
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Sales export -> normalized sale records")
    p.add_argument("files", nargs="*", type=Path, help="Export files (.xlsx, .csv, .txt)")
    p.add_argument("--config", type=Path, default=None, help="Config YAML (default: config/import.yml)")
    p.add_argument("--roster", type=Path, default=None, help="Staff roster YAML")
    p.add_argument("--output-dir", type=Path, default=None, help="Write <stem>.records.json here")
    p.add_argument("--report", action="store_true", help="Print the per-staff sales table")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print header mapping & first rows then exit")
    p.add_argument("--list-staff-ids", action="store_true", help="Print staff ids found in tag columns then exit")
    return p.parse_args(argv)


def _load_source(path: Path) -> pd.DataFrame | str:
    """First sheet of a workbook, or the file text for delimited exports."""
    if path.suffix.lower() in EXCEL_SUFFIXES:
        sheets = read_excel_file(path)
        if not sheets:
            raise ValueError(f"workbook has no sheets: {path.name}")
        return next(iter(sheets.values()))
    return read_text_file(path)


def _inspect_data(files: list[Path], cfg: ImportConfig) -> int:
    for f in files:
        print(f"FILE: {f.name}")
        try:
            table = read_table(_load_source(f), cfg.parser)
        except (OSError, ValueError, zipfile.BadZipFile, StructuralError) as e:
            print(f"  read_error: {e}")
            continue
        match = match_headers(table.header, table.header_row_index, cfg.parser)
        mapping = {h: k for h, k in zip(match.source_headers, match.columns, strict=False) if h}
        print(f"  header_row={table.header_row_index} columns={mapping}")
        for line, cells in table.rows[:3]:
            # workbook dates print as ISO text
            safe = [c.isoformat() if hasattr(c, "isoformat") else c for c in cells]
            print(f"    row {line}: {safe}")
    return EXIT_SUCCESS_ALL


def _list_staff_ids(files: list[Path], cfg: ImportConfig) -> int:
    for f in files:
        try:
            ids = extract_staff_ids(_load_source(f), cfg.parser)
        except (OSError, ValueError, zipfile.BadZipFile, StructuralError) as e:
            print(f"{f.name}: read_error: {e}")
            continue
        print(f"{f.name}: {', '.join(ids) if ids else '(none)'}")
    return EXIT_SUCCESS_ALL


def _write_records(output_dir: Path, path: Path, result: RunResult) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    out = output_dir / f"{path.stem}.records.json"
    payload = [r.to_dict() for r in result.records]
    out.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return out


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not pick up pytest's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    config_path = args.config or Path(os.getenv("SALES_IMPORT_CONFIG") or DEFAULT_CONFIG_PATH)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not args.files:
        logger.error("no input files given")
        return EXIT_FATAL
    missing = [f for f in args.files if not f.exists()]
    if missing:
        logger.error(f"file not found: {', '.join(str(m) for m in missing)}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(args.files, cfg)
    if args.list_staff_ids:
        return _list_staff_ids(args.files, cfg)

    roster_value = args.roster or os.getenv("SALES_IMPORT_ROSTER") or cfg.roster_file
    if not roster_value:
        logger.error("roster: no roster file configured (--roster, SALES_IMPORT_ROSTER or roster_file)")
        return EXIT_FATAL
    try:
        roster = Roster.from_entries(load_roster(Path(roster_value)))
    except (ConfigError, ValueError) as e:
        logger.error(f"roster: {e}")
        return EXIT_FATAL
    logger.info(f"roster entries={len(roster)}")

    output_dir = args.output_dir or (Path(cfg.output_directory) if cfg.output_directory else None)
    diag_log = DiagnosticLogBuffer()
    success_files = failed_files = total_records = total_errors = 0

    with ProgressTracker(len(args.files)) as progress:
        for path in args.files:
            progress.start_file(path)
            logger.info(f"Importing: {path}")
            try:
                source = _load_source(path)
            except (OSError, ValueError, zipfile.BadZipFile) as e:
                logger.error(f"read: {path.name}: {e}")
                failed_files += 1
                progress.finish_file()
                continue

            result = run_import(source, roster, cfg.parser)
            for d in result.diagnostics:
                (logger.error if d.is_error else logger.warning)(f"{path.name}: {d.message}")
            diag_log.extend(path.name, result.diagnostics)

            summary = summarize(result.records)
            # log_summary adds the "SUMMARY " label itself
            log_summary(f"file={path.name} " + render_summary_line(result, summary)[len("SUMMARY "):])
            if args.report and result.records:
                print(render_staff_table(summary))

            if result.success:
                success_files += 1
                total_errors += len(result.errors)
            else:
                failed_files += 1
            total_records += len(result.records)

            if output_dir is not None and result.success:
                out = _write_records(output_dir, path, result)
                logger.info(f"records written: {out}")
            progress.finish_file(len(result.records), len(result.warnings), len(result.errors))

    log_path = diag_log.flush()
    if log_path is not None:
        logger.info(f"diagnostics log: {log_path}")

    log_summary(
        f"files={len(args.files)} success={success_files} failed={failed_files} "
        f"records={total_records} row_errors={total_errors}"
    )

    if failed_files > 0 or total_errors > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
