from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ..models.config_models import ParserConfig
from ..models.diagnostic import Diagnostic
from ..models.row_data import RawRow
from ..models.sale_record import NormalizedSaleRecord
from ..tabular.headers import (
    CATEGORY,
    CUSTOMER,
    CUSTOMER_TAGS,
    DATE,
    NET_SALES,
    ORDER_REFERENCE,
    PRODUCT,
    QUANTITY,
    REFUND_ADJUSTMENT,
    SALES_CHANNEL,
    SALESPERSON,
    TOTAL,
    UNIT_PRICE,
)
from .normalizers import (
    NormalizationError,
    format_money,
    format_timestamp,
    normalize_date,
    parse_money,
    parse_quantity,
    quantize_money,
)
from .staff import Roster, cell_text, resolve_staff, staff_candidates

"""Row reconciler: one RawRow in, one record or diagnostics out.

reconcile_row is a pure function of (row, roster, config). It short-circuits on
the first rejection, in this order:

0. footer / excluded-channel rows           -> warning, skipped
1. staff resolution                         -> warning "Unknown salesperson"
2. date normalization                       -> error INVALID_DATE
3. money normalization                      -> error INVALID_AMOUNT
4. quantity (absent / invalid -> 1)         -> never rejects
5. total derivation                         -> error MISSING_AMOUNT / TOTAL_MISMATCH / INVALID_AMOUNT
6. net sales override, positivity           -> warning NON_POSITIVE_SALES
"""

__all__ = [
    "RowOutcome",
    "reconcile_row",
]

_SUMMARY_LABELS = ("grand total", "total", "totals", "subtotal")

# Monetary columns in the order they are parsed (first failure is reported)
_MONEY_COLUMNS = (TOTAL, UNIT_PRICE, NET_SALES, REFUND_ADJUSTMENT)


@dataclass(frozen=True)
class RowOutcome:
    record: NormalizedSaleRecord | None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.record is not None


def _skip(diagnostic: Diagnostic) -> RowOutcome:
    return RowOutcome(record=None, diagnostics=[diagnostic])


def _summary_label(row: RawRow) -> str | None:
    for key in (SALESPERSON, ORDER_REFERENCE):
        text = cell_text(row.get(key))
        if text and text.strip().lower() in _SUMMARY_LABELS:
            return text
    return None


def _excluded_channel(channel: str | None, config: ParserConfig) -> bool:
    if not channel or not config.exclude_channels:
        return False
    lowered = channel.lower()
    return any(ex.lower() in lowered for ex in config.exclude_channels)


def reconcile_row(row: RawRow, roster: Roster, config: ParserConfig) -> RowOutcome:
    idx = row.row_index

    label = _summary_label(row)
    if label is not None:
        return _skip(Diagnostic.warning(idx, "SUMMARY_ROW", f"Summary row '{label}' skipped"))

    channel = cell_text(row.get(SALES_CHANNEL))
    if _excluded_channel(channel, config):
        return _skip(
            Diagnostic.warning(idx, "EXCLUDED_CHANNEL", f"Sales channel '{channel}' excluded", column=SALES_CHANNEL)
        )

    # 1. staff
    lookup = staff_candidates(row, config)
    if not lookup.candidates:
        return _skip(
            Diagnostic.warning(idx, "NO_STAFF_TAG", "No salesperson or staff tag found - order not attributed")
        )
    entry = resolve_staff(lookup, roster)
    if entry is None:
        column = SALESPERSON if lookup.salesperson else CUSTOMER_TAGS
        return _skip(
            Diagnostic.warning(idx, "UNKNOWN_SALESPERSON", f"Unknown salesperson: {lookup.display_value}", column=column)
        )

    # 2. date
    raw_date = row.get(DATE)
    try:
        sale_date = normalize_date(raw_date, config.date_order)
    except NormalizationError:
        return _skip(Diagnostic.error(idx, "INVALID_DATE", f"Invalid date in Date column: '{raw_date}'", column=DATE))
    if sale_date is None:
        return _skip(Diagnostic.error(idx, "INVALID_DATE", "Missing value in Date column", column=DATE))

    # 3. money
    amounts: dict[str, Decimal | None] = {}
    for column in _MONEY_COLUMNS:
        raw = row.get(column)
        try:
            amounts[column] = parse_money(raw)
        except NormalizationError:
            return _skip(
                Diagnostic.error(idx, "INVALID_AMOUNT", f"Invalid amount in {column} column: '{raw}'", column=column)
            )
    total = amounts[TOTAL]
    unit_price = quantize_money(amounts[UNIT_PRICE]) if amounts[UNIT_PRICE] is not None else None
    net = amounts[NET_SALES] if config.prefer_net_over_gross else None
    refund = amounts[REFUND_ADJUSTMENT]

    # 4. quantity
    quantity = parse_quantity(row.get(QUANTITY)) or 1

    # 5. derivation
    derived: Decimal | None = None
    if unit_price is not None:
        try:
            derived = quantize_money(unit_price * quantity)
        except NormalizationError:
            return _skip(
                Diagnostic.error(
                    idx, "INVALID_AMOUNT", f"UnitPrice {unit_price} x Quantity {quantity} is out of range", column=UNIT_PRICE
                )
            )
    if total is None and net is None:
        if derived is None:
            return _skip(
                Diagnostic.error(idx, "MISSING_AMOUNT", "No Total or UnitPrice value to derive a total from", column=TOTAL)
            )
        total = derived
    elif total is not None and derived is not None and net is None:
        if derived != quantize_money(total):
            return _skip(
                Diagnostic.error(
                    idx,
                    "TOTAL_MISMATCH",
                    f"Total {format_money(total)} does not match UnitPrice {unit_price} x Quantity {quantity}",
                    column=TOTAL,
                )
            )

    # 6. net override
    gross: Decimal | None = None
    if net is not None:
        gross, total, unit_price = total, net, None
        if quantize_money(net) <= 0:
            return _skip(
                Diagnostic.warning(
                    idx, "NON_POSITIVE_SALES", f"Non-positive net sales: {format_money(net)} - skipped", column=NET_SALES
                )
            )
    elif quantize_money(total) <= 0:
        return _skip(
            Diagnostic.warning(
                idx, "NON_POSITIVE_SALES", f"Non-positive total: {format_money(total)} - skipped", column=TOTAL
            )
        )

    # 7. accept
    record = NormalizedSaleRecord(
        user_id=entry.user_id,
        staff_name=entry.display_name,
        sale_date=format_timestamp(sale_date),
        total_amount=format_money(total),
        quantity=quantity,
        unit_price=format_money(unit_price) if unit_price is not None else None,
        product_name=cell_text(row.get(PRODUCT)),
        product_category=cell_text(row.get(CATEGORY)),
        customer_name=cell_text(row.get(CUSTOMER)),
        order_reference=cell_text(row.get(ORDER_REFERENCE)),
        sales_channel=channel,
        gross_amount=format_money(gross) if gross is not None else None,
        refund_adjustment=format_money(refund) if refund is not None else None,
    )
    return RowOutcome(record=record)
