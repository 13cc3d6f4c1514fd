from __future__ import annotations

import re
from dataclasses import dataclass, field

"""Config dataclasses for the sales export import core.

These are separate from the YAML loader in sales_import/config/loader.py and
focus on typing. ParserConfig is everything the pure core needs; ImportConfig
adds what only the CLI uses (where to find the roster, where to write records).
"""

__all__ = [
    "DEFAULT_STAFF_TAG_PATTERN",
    "DATE_ORDERS",
    "ImportConfig",
    "ParserConfig",
]

# Matches both REFERRED_BY_STAFF_123 and the platform spelling WVReferredByStaff_123
DEFAULT_STAFF_TAG_PATTERN = r"(?:WV)?REFERRED_?BY_?STAFF_(\d+)"

DATE_ORDERS = ("DMY", "MDY")


@dataclass(frozen=True)
class ParserConfig:
    """Behaviour switches for ingestion and reconciliation.

    date_order is the fixed assumption applied when both day and month of a
    slash/dash date are <= 12. It is never guessed per row.
    """
    prefer_net_over_gross: bool = True
    date_order: str = "DMY"
    staff_tag_pattern: str = DEFAULT_STAFF_TAG_PATTERN
    exclude_channels: tuple[str, ...] = ()
    header_synonyms: dict[str, tuple[str, ...]] = field(default_factory=dict)  # canonical -> extra source names
    delimiter: str | None = None  # None = sniff

    def __post_init__(self) -> None:
        if self.date_order not in DATE_ORDERS:
            raise ValueError(f"date_order must be one of {DATE_ORDERS}, got {self.date_order!r}")
        if re.compile(self.staff_tag_pattern).groups < 1:
            raise ValueError("staff_tag_pattern needs one capturing group for the staff identifier")

    @property
    def staff_tag_regex(self) -> re.Pattern[str]:
        return re.compile(self.staff_tag_pattern, re.IGNORECASE)


@dataclass(frozen=True)
class ImportConfig:
    """CLI level configuration loaded from config/import.yml."""
    parser: ParserConfig
    roster_file: str | None = None
    output_directory: str | None = None
