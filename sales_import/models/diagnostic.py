from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import Enum

"""Diagnostic model for row-level and file-level import findings.

A Diagnostic is what an operator sees after re-running an import: it names the
source line (1-based, header row included in the count) and the offending
value or column. row=-1 is reserved for file-level findings where no single
line applies (e.g. an empty source).
"""

__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "FILE_LEVEL_ROW",
]

FILE_LEVEL_ROW = -1


class DiagnosticKind(str, Enum):
    """Severity of a Diagnostic.

    - WARNING: row excluded from records but not counted as an error
    - ERROR: row rejected (or whole run rejected for structural problems)
    """
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    """Structured finding attached to a RunResult.

    Attributes:
        row_index: Source line number (1-based). -1 for file-level findings
        kind: warning / error
        message: Human readable text, always prefixed with the row reference
        code: Classification in UPPER_SNAKE_CASE format (e.g. INVALID_DATE)
        column: Canonical column the finding is about, if any
    """
    row_index: int
    kind: DiagnosticKind
    message: str
    code: str
    column: str | None = None

    @staticmethod
    def warning(row_index: int, code: str, detail: str, column: str | None = None) -> Diagnostic:
        return Diagnostic(
            row_index=row_index,
            kind=DiagnosticKind.WARNING,
            message=_prefix(row_index, detail),
            code=code,
            column=column,
        )

    @staticmethod
    def error(row_index: int, code: str, detail: str, column: str | None = None) -> Diagnostic:
        return Diagnostic(
            row_index=row_index,
            kind=DiagnosticKind.ERROR,
            message=_prefix(row_index, detail),
            code=code,
            column=column,
        )

    @property
    def is_error(self) -> bool:
        return self.kind is DiagnosticKind.ERROR

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data

    def to_json_line(self) -> str:
        """Serialize Diagnostic to JSON Lines format.

        Returns:
            JSON string with exactly the dataclass keys (no extras)
        """
        return json.dumps(self.to_dict(), ensure_ascii=False)


def _prefix(row_index: int, detail: str) -> str:
    if row_index == FILE_LEVEL_ROW:
        return detail
    return f"Row {row_index}: {detail}"
