from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from ..models.run_result import RunResult, RunSummary, StaffTotal
from ..models.sale_record import NormalizedSaleRecord
from .normalizers import format_money

"""Summary aggregation and rendering.

summarize() is a pure reduction over accepted records, so the same view can be
recomputed from RunResult.records alone. The render_* helpers produce the
SUMMARY log line and the per-staff report table printed by the CLI.
"""

__all__ = [
    "render_staff_table",
    "render_summary_line",
    "summarize",
]


def summarize(records: Iterable[NormalizedSaleRecord]) -> RunSummary:
    """Per-staff record count and total, sorted by total descending.

    Ties are broken by staff name and then user id so the order is stable
    across runs.

    Examples:
        >>> r = NormalizedSaleRecord(user_id=1, staff_name="Alice",
        ...     sale_date="2026-01-15T00:00:00Z", total_amount="10.00")
        >>> summarize([r, r]).grand_total
        Decimal('20.00')
    """
    counts: dict[int, int] = {}
    totals: dict[int, Decimal] = {}
    names: dict[int, str] = {}
    record_count = 0
    for rec in records:
        record_count += 1
        names.setdefault(rec.user_id, rec.staff_name)
        counts[rec.user_id] = counts.get(rec.user_id, 0) + 1
        totals[rec.user_id] = totals.get(rec.user_id, Decimal("0.00")) + Decimal(rec.total_amount)

    staff = [
        StaffTotal(user_id=uid, staff_name=names[uid], record_count=counts[uid], total_amount=totals[uid])
        for uid in counts
    ]
    staff.sort(key=lambda s: (-s.total_amount, s.staff_name, s.user_id))
    grand_total = sum((s.total_amount for s in staff), Decimal("0.00"))
    return RunSummary(staff=staff, record_count=record_count, grand_total=grand_total)


def render_summary_line(result: RunResult, summary: RunSummary | None = None) -> str:
    """Render the single SUMMARY line for one run.

    Format:
    SUMMARY success={true|false} records={n} warnings={n} errors={n}
    staff={n} grand_total={0.00}

    Examples:
        >>> render_summary_line(RunResult(success=True))
        'SUMMARY success=true records=0 warnings=0 errors=0 staff=0 grand_total=0.00'
    """
    summary = summary or summarize(result.records)
    return (
        f"SUMMARY success={'true' if result.success else 'false'} "
        f"records={len(result.records)} "
        f"warnings={len(result.warnings)} "
        f"errors={len(result.errors)} "
        f"staff={len(summary.staff)} "
        f"grand_total={format_money(summary.grand_total)}"
    )


def render_staff_table(summary: RunSummary, currency: str = "HK$") -> str:
    """Markdown table: one line per staff member plus a TOTAL line."""
    lines = [
        f"| Staff Name | Orders | Sales ({currency}) |",
        "|------------|--------|-----------------|",
    ]
    for s in summary.staff:
        lines.append(f"| {s.staff_name} | {s.record_count} | {s.total_amount:,.2f} |")
    lines.append(f"| **TOTAL** | **{summary.record_count}** | **{summary.grand_total:,.2f}** |")
    return "\n".join(lines)
