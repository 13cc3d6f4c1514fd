from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from .diagnostic import Diagnostic
from .sale_record import NormalizedSaleRecord

"""Run result models for the sales export import core.

RunResult is what the orchestrator hands to the persistence side. RunSummary is
a derived read-only view computed from RunResult.records alone.
"""

__all__ = [
    "RunResult",
    "RunSummary",
    "StaffTotal",
]


@dataclass(frozen=True)
class RunResult:
    """Outcome of one import run.

    success is False only when structural validation failed (empty input,
    missing required headers). Row-level errors leave success True.
    """
    success: bool
    records: list[NormalizedSaleRecord] = field(default_factory=list)
    warnings: list[Diagnostic] = field(default_factory=list)
    errors: list[Diagnostic] = field(default_factory=list)

    @staticmethod
    def structural_failure(errors: list[Diagnostic], warnings: list[Diagnostic] | None = None) -> RunResult:
        return RunResult(success=False, records=[], warnings=list(warnings or []), errors=list(errors))

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """Warnings and errors merged back into source row order."""
        merged = [*self.warnings, *self.errors]
        # sorted() is stable, so findings on the same row keep emission order
        return sorted(merged, key=lambda d: d.row_index)


@dataclass(frozen=True)
class StaffTotal:
    """Per-staff aggregate line of a RunSummary."""
    user_id: int
    staff_name: str
    record_count: int
    total_amount: Decimal


@dataclass(frozen=True)
class RunSummary:
    """Aggregate view over accepted records (sorted by total, descending)."""
    staff: list[StaffTotal]
    record_count: int
    grand_total: Decimal
