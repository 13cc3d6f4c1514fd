from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

from sales_import.models.diagnostic import Diagnostic

"""Diagnostic log generation & buffering.

- JSON Lines with a fixed key set (no extra keys)
- One `logs/diagnostics-YYYYMMDD-HHMMSS.log` (UTC) per CLI invocation, created
  only when something is flushed
- Entries are buffered and written per file / at flush time
"""

__all__ = [
    "DiagnosticLogBuffer",
    "DiagnosticLogEntry",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


@dataclass(frozen=True)
class DiagnosticLogEntry:
    """One diagnostic tied to the file it came from.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: export file name being imported
        row: source line (1-based), -1 for file-level findings
        kind: warning / error
        code: classification in UPPER_SNAKE_CASE format
        message: operator facing text
    """
    timestamp: str
    file: str
    row: int
    kind: str
    code: str
    message: str

    @staticmethod
    def create(file: str, diagnostic: Diagnostic) -> DiagnosticLogEntry:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return DiagnosticLogEntry(
            timestamp=ts,
            file=file,
            row=diagnostic.row_index,
            kind=diagnostic.kind.value,
            code=diagnostic.code,
            message=diagnostic.message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)


class DiagnosticLogBuffer:
    """In-memory buffer for diagnostic entries. flush() appends JSON Lines.

    The file path is decided on first access. No thread safety (serial use).
    """
    def __init__(self, logs_dir: Path = LOGS_DIR) -> None:
        self._entries: list[DiagnosticLogEntry] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"diagnostics-{stamp}.log"
        return self._file_path

    def append(self, entry: DiagnosticLogEntry) -> None:
        self._entries.append(entry)

    def extend(self, file: str, diagnostics: list[Diagnostic]) -> None:
        for d in diagnostics:
            self._entries.append(DiagnosticLogEntry.create(file, d))

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._entries)

    def flush(self) -> Path | None:
        """Write buffered entries; returns the log path, or None when nothing was buffered."""
        if not self._entries:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for e in self._entries:
                f.write(e.to_json_line() + "\n")
        self._entries.clear()
        return fp
