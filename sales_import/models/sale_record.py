from __future__ import annotations

import json
from dataclasses import asdict, dataclass

"""NormalizedSaleRecord model.

The accepted output unit of a run. Monetary values are decimal strings with two
fraction digits so that repeated runs serialize byte-identically and the
persistence side never sees binary floats.
"""

__all__ = [
    "NormalizedSaleRecord",
]


@dataclass(frozen=True)
class NormalizedSaleRecord:
    """One validated sale ready for insertion into the ledger.

    total_amount is always positive. Refunds travel in refund_adjustment and are
    never folded into total_amount. gross_amount is only populated when a net
    sales column overrode the gross/total column.
    """
    user_id: int
    staff_name: str
    sale_date: str  # ISO-8601, e.g. 2026-01-15T00:00:00Z
    total_amount: str
    quantity: int = 1
    unit_price: str | None = None
    product_name: str | None = None
    product_category: str | None = None
    customer_name: str | None = None
    order_reference: str | None = None
    sales_channel: str | None = None
    gross_amount: str | None = None
    refund_adjustment: str | None = None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, sort_keys=True)
