from __future__ import annotations

from dataclasses import dataclass

"""RosterEntry model.

The roster is supplied by an external user directory and is read-only for the
duration of a run.
"""

__all__ = [
    "RosterEntry",
]


@dataclass(frozen=True)
class RosterEntry:
    identifier: str  # platform tag id or email
    display_name: str
    user_id: int
