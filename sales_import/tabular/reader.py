from __future__ import annotations

import csv
import io
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..models.config_models import ParserConfig
from ..models.row_data import RawRow
from .headers import HeaderMatch, match_headers, missing_required_headers

"""Tabular ingestion.

Turns a decoded sheet (DataFrame read without header, or plain row lists) or a
delimited text blob into RawRow values keyed by canonical header.

- The first non-empty row is the header row.
- Fully blank rows are skipped, but line numbers keep counting so diagnostics
  point at the line the operator sees in the spreadsheet / file.
- Structural problems raise StructuralError; nothing is read from disk here
  except by the explicit read_* helpers used by the CLI.
"""

__all__ = [
    "EmptySourceError",
    "IngestedTable",
    "MissingColumnsError",
    "StructuralError",
    "ingest",
    "parse_delimited_text",
    "read_excel_file",
    "read_table",
    "read_text_file",
]

SNIFF_DELIMITERS = ",;\t|"


class StructuralError(Exception):
    """Raised when the source as a whole cannot be imported."""

    def __init__(self, problems: Sequence[str], row_index: int = -1) -> None:
        self.problems = list(problems)
        self.row_index = row_index
        super().__init__("; ".join(self.problems))


class EmptySourceError(StructuralError):
    """Raised when no header row or no data row exists."""


class MissingColumnsError(StructuralError):
    """Raised when the required canonical headers are not present."""


@dataclass(frozen=True)
class TableRows:
    header_row_index: int  # 1-based
    header: list[Any]
    rows: list[tuple[int, list[Any]]]  # (1-based line, cleaned cells)


@dataclass(frozen=True)
class IngestedTable:
    header_row_index: int
    match: HeaderMatch
    rows: list[RawRow]

    @property
    def headers(self) -> set[str]:
        """Detected canonical header set."""
        return set(self.match.canonical)


def read_excel_file(path: Path, target_sheets: Iterable[str] | None = None) -> dict[str, pd.DataFrame]:
    """Read an Excel workbook returning raw DataFrames keyed by sheet name.

    Sheets are read without a header row and with object dtype so that date
    serials, currency strings and tags reach the core untouched.

    Parameters
    ----------
    path: workbook path
    target_sheets: restrict to these sheet names (None reads every sheet)
    """
    dfs: dict[str, pd.DataFrame] = {}
    xls = pd.ExcelFile(path)
    for name in xls.sheet_names:
        if target_sheets is not None and str(name) not in target_sheets:
            continue
        dfs[str(name)] = xls.parse(name, header=None, dtype=object)
    return dfs


def read_text_file(path: Path, encoding: str = "utf-8-sig") -> str:
    return path.read_text(encoding=encoding)


def _sniff_delimiter(text: str) -> str:
    """Pick the candidate delimiter occurring most often in the header line.

    Ties (including single column files) fall back to the earlier candidate,
    so plain comma separated text always resolves to ','.
    """
    first = next((line for line in text.splitlines() if line.strip()), "")
    counts = {d: first.count(d) for d in SNIFF_DELIMITERS}
    best = max(SNIFF_DELIMITERS, key=lambda d: (counts[d], -SNIFF_DELIMITERS.index(d)))
    return best if counts[best] else ","


def parse_delimited_text(text: str, delimiter: str | None = None) -> list[list[str]]:
    """Split delimited text into rows of fields.

    Quoted fields may contain the delimiter and doubled quotes. Blank lines are
    kept as empty rows so that list positions equal source line numbers.

    >>> parse_delimited_text('Product,Total\\n"Soap, Natural",12')
    [['Product', 'Total'], ['Soap, Natural', '12']]
    """
    sep = delimiter or _sniff_delimiter(text)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=sep, quotechar='"', skipinitialspace=True)
    return [list(r) for r in reader]


def _clean_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, (datetime, date, int, float)):
        return value
    if isinstance(value, np.generic):
        return None if pd.isna(value) else value.item()
    return value


def _source_rows(source: Any, config: ParserConfig) -> list[list[Any]]:
    if isinstance(source, pd.DataFrame):
        return [list(r) for r in source.astype(object).itertuples(index=False, name=None)]
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise StructuralError([f"Source is not valid UTF-8 text: {e}"]) from e
    if isinstance(source, str):
        if source.startswith("\ufeff"):
            source = source[1:]
        return parse_delimited_text(source, config.delimiter)
    if isinstance(source, (list, tuple)):
        return [list(r) for r in source]
    raise TypeError(f"unsupported source type: {type(source).__name__}")


def read_table(source: Any, config: ParserConfig | None = None) -> TableRows:
    """Locate the header row and collect the non-blank data rows below it.

    Raises:
        EmptySourceError: no non-empty row, or a header with no data rows
        TypeError: source is not a DataFrame, row list, str or bytes
    """
    config = config or ParserConfig()
    raw_rows = _source_rows(source, config)

    header_pos: int | None = None
    header: list[Any] = []
    rows: list[tuple[int, list[Any]]] = []
    for pos, raw in enumerate(raw_rows):
        cells = [_clean_cell(v) for v in raw]
        if all(c is None for c in cells):
            continue
        if header_pos is None:
            header_pos = pos
            header = cells
            continue
        rows.append((pos + 1, cells))

    if header_pos is None:
        raise EmptySourceError(["Source is empty: no header row found"])
    if not rows:
        raise EmptySourceError(["Source is empty: no data rows below the header"], row_index=header_pos + 1)
    return TableRows(header_row_index=header_pos + 1, header=header, rows=rows)


def ingest(source: Any, config: ParserConfig | None = None) -> IngestedTable:
    """Read a source into canonical RawRow values.

    Steps:
    1. Find the header row (first non-empty row)
    2. Match headers to the canonical vocabulary, recording duplicates
    3. Validate the required canonical headers
    4. Build one RawRow per non-blank data row
    """
    config = config or ParserConfig()
    table = read_table(source, config)
    match = match_headers(table.header, table.header_row_index, config)

    problems = missing_required_headers(match)
    if problems:
        raise MissingColumnsError(problems, row_index=table.header_row_index)

    raw_rows: list[RawRow] = []
    width = len(match.columns)
    for line, cells in table.rows:
        padded = cells + [None] * (width - len(cells))
        values: dict[str, Any] = {key: padded[idx] for key, idx in match.canonical.items()}
        unrecognized: dict[str, Any] = {}
        for idx, key in enumerate(match.columns):
            header = match.source_headers[idx]
            if key is None and header and padded[idx] is not None:
                unrecognized[header] = padded[idx]
        raw_rows.append(RawRow(row_index=line, values=values, unrecognized=unrecognized))

    return IngestedTable(header_row_index=table.header_row_index, match=match, rows=raw_rows)
