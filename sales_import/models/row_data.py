from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""RawRow model for the sales export import core.

RawRow represents a single source row after header matching: cell values keyed
by canonical header, plus whatever the matcher could not place.
"""

__all__ = [
    "RawRow",
]


@dataclass(frozen=True)
class RawRow:
    """Logical representation of a single source row after header normalization.

    row_index refers to the user-visible line in the spreadsheet / file, so the
    first data row under a header on line 1 is row 2.
    """
    row_index: int  # 1-based source line (header offset included)
    values: dict[str, Any]  # Canonical header -> raw cell value (None when blank)
    unrecognized: dict[str, Any] = field(default_factory=dict)  # Source header -> value for unmatched columns

    def get(self, key: str) -> Any:
        return self.values.get(key)

    def has(self, key: str) -> bool:
        """True when the canonical column exists in the source (value may be blank)."""
        return key in self.values
