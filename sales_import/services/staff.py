from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..models.config_models import ParserConfig
from ..models.roster import RosterEntry
from ..models.row_data import RawRow
from ..tabular.headers import CUSTOMER_TAGS, SALESPERSON, match_headers
from ..tabular.reader import read_table

"""Staff resolution against the roster.

Direct salesperson names and identifiers embedded in a platform tag field
(REFERRED_BY_STAFF_<digits>) go through the same lookup, so sources with and
without tag columns share one resolution path. Matching is exact after
lowercasing and whitespace collapsing; nothing is inferred.
"""

__all__ = [
    "Roster",
    "StaffLookup",
    "cell_text",
    "coerce_roster",
    "extract_staff_ids",
    "extract_tag_identifiers",
    "normalize_key",
    "resolve_staff",
    "staff_candidates",
]

_WHITESPACE = re.compile(r"\s+")


def normalize_key(value: object) -> str:
    return _WHITESPACE.sub(" ", cell_text(value) or "").strip().lower()


def cell_text(value: Any) -> str | None:
    """Render a cell as text; whole floats lose their trailing .0 (order numbers, staff ids)."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


class Roster:
    """Read-only case-insensitive lookup: name or identifier -> RosterEntry."""

    def __init__(self, lookup: Mapping[str, RosterEntry]) -> None:
        self._lookup = dict(lookup)

    @classmethod
    def from_entries(cls, entries: Iterable[RosterEntry]) -> Roster:
        """Index every entry under both its identifier and its display name.

        Raises:
            ValueError: when one key would point at two different users
        """
        lookup: dict[str, RosterEntry] = {}
        for entry in entries:
            for raw_key in (entry.identifier, entry.display_name):
                key = normalize_key(raw_key)
                if not key:
                    continue
                existing = lookup.get(key)
                if existing is not None and existing.user_id != entry.user_id:
                    raise ValueError(
                        f"roster key {key!r} is shared by user {existing.user_id} and user {entry.user_id}"
                    )
                lookup.setdefault(key, entry)
        return cls(lookup)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, int]) -> Roster:
        """Build from the plain identifier -> user id mapping a user directory hands over."""
        lookup: dict[str, RosterEntry] = {}
        for raw_key, user_id in mapping.items():
            key = normalize_key(raw_key)
            if not key:
                continue
            lookup[key] = RosterEntry(identifier=str(raw_key), display_name=str(raw_key), user_id=int(user_id))
        return cls(lookup)

    def resolve(self, value: object) -> RosterEntry | None:
        key = normalize_key(value)
        if not key:
            return None
        return self._lookup.get(key)

    def __len__(self) -> int:
        return len(self._lookup)

    def __contains__(self, value: object) -> bool:
        return self.resolve(value) is not None


def coerce_roster(roster: Roster | Mapping[str, int] | Iterable[RosterEntry] | None) -> Roster:
    """Accept a Roster, a plain mapping or RosterEntry values.

    A missing roster is a caller bug, not a data problem.
    """
    if roster is None:
        raise TypeError("roster must not be None")
    if isinstance(roster, Roster):
        return roster
    if isinstance(roster, Mapping):
        return Roster.from_mapping(roster)
    if isinstance(roster, (str, bytes)):
        raise TypeError(f"unsupported roster type: {type(roster).__name__}")
    return Roster.from_entries(roster)


def extract_tag_identifiers(tags: object, pattern: re.Pattern[str]) -> list[str]:
    """All staff identifiers embedded in a free-text tag cell, in order of appearance."""
    text = cell_text(tags)
    if not text:
        return []
    return [m.group(1) for m in pattern.finditer(text)]


@dataclass(frozen=True)
class StaffLookup:
    """Values tried against the roster for one row, in priority order."""
    salesperson: str | None
    tag_identifier: str | None

    @property
    def candidates(self) -> list[str]:
        return [v for v in (self.salesperson, self.tag_identifier) if v]

    @property
    def display_value(self) -> str | None:
        """What an unknown-salesperson warning should name."""
        return self.salesperson or self.tag_identifier


def staff_candidates(row: RawRow, config: ParserConfig) -> StaffLookup:
    salesperson = cell_text(row.get(SALESPERSON))
    tag_ids = extract_tag_identifiers(row.get(CUSTOMER_TAGS), config.staff_tag_regex)
    return StaffLookup(salesperson=salesperson, tag_identifier=tag_ids[0] if tag_ids else None)


def resolve_staff(lookup: StaffLookup, roster: Roster) -> RosterEntry | None:
    for candidate in lookup.candidates:
        entry = roster.resolve(candidate)
        if entry is not None:
            return entry
    return None


def extract_staff_ids(source: Any, config: ParserConfig | None = None) -> list[str]:
    """Distinct staff identifiers found in the tag column of a source, sorted.

    Used when setting up a roster for a new export. Returns [] when the source
    has no tag column.
    """
    config = config or ParserConfig()
    table = read_table(source, config)
    match = match_headers(table.header, table.header_row_index, config)
    idx = match.canonical.get(CUSTOMER_TAGS)
    if idx is None:
        return []
    pattern = config.staff_tag_regex
    found: set[str] = set()
    for _, cells in table.rows:
        if idx < len(cells):
            found.update(extract_tag_identifiers(cells[idx], pattern))
    return sorted(found)
