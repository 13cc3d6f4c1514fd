from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

Used by the CLI when several export files are imported in one invocation.
In non-TTY environments (CI, redirected output) no bar is created so the
labeled log lines stay clean.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress tracker using tqdm for export files."""

    def __init__(self, total_files: int, *, description: str = "Importing files") -> None:
        """Initialize progress tracker.

        Args:
            total_files: Total number of files to import
            description: Description for the progress bar
        """
        self.total_files = total_files
        self.description = description
        self.current_file = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_file(self, file_path: Path) -> None:
        self.current_file += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({file_path.name})")

    def finish_file(self, records: int = 0, warnings: int = 0, errors: int = 0) -> None:
        """Advance the bar and show the running counts of the file just imported."""
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(records=records, warnings=warnings, errors=errors)
            self.pbar.set_description(self.description)

    def close(self) -> None:
        """Close the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
