from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..models.config_models import ParserConfig
from ..models.diagnostic import Diagnostic

"""Header / column matcher.

Maps arbitrary export header text onto the fixed canonical vocabulary. Matching
is exact after normalization (lowercase, `_`/`-` folded to spaces, whitespace
collapsed); there is no fuzzy matching. When two source columns land on the
same canonical key the first one wins and the other is reported.
"""

__all__ = [
    "CANONICAL_HEADERS",
    "MONETARY_HEADERS",
    "HeaderMatch",
    "build_synonym_table",
    "match_headers",
    "missing_required_headers",
    "normalize_header",
]

DATE = "Date"
SALESPERSON = "Salesperson"
PRODUCT = "Product"
CATEGORY = "Category"
QUANTITY = "Quantity"
UNIT_PRICE = "UnitPrice"
TOTAL = "Total"
NET_SALES = "NetSales"
REFUND_ADJUSTMENT = "RefundAdjustment"
CUSTOMER = "Customer"
ORDER_REFERENCE = "OrderReference"
SALES_CHANNEL = "SalesChannel"
CUSTOMER_TAGS = "CustomerTags"

CANONICAL_HEADERS = (
    DATE,
    SALESPERSON,
    PRODUCT,
    CATEGORY,
    QUANTITY,
    UNIT_PRICE,
    TOTAL,
    NET_SALES,
    REFUND_ADJUSTMENT,
    CUSTOMER,
    ORDER_REFERENCE,
    SALES_CHANNEL,
    CUSTOMER_TAGS,
)

# Any one of these makes a table structurally usable for amounts
MONETARY_HEADERS = (QUANTITY, TOTAL, UNIT_PRICE, NET_SALES)

_BASE_SYNONYMS: dict[str, tuple[str, ...]] = {
    DATE: ("date", "order date", "sale date", "saledate", "sales date", "transaction date"),
    SALESPERSON: (
        "salesperson", "sales person", "seller", "user", "staff", "staff name",
        "employee", "sales rep", "cashier",
    ),
    PRODUCT: ("product", "product name", "item", "item name"),
    CATEGORY: ("category", "product category", "type"),
    QUANTITY: ("quantity", "qty", "units"),
    UNIT_PRICE: ("unit price", "price", "unit cost"),
    TOTAL: ("total", "total sales", "total amount", "amount", "subtotal"),
    NET_SALES: ("net sales", "net", "net amount"),
    REFUND_ADJUSTMENT: ("refund adjustment amount", "refund adjustment", "refund"),
    CUSTOMER: ("customer", "customer name", "client"),
    ORDER_REFERENCE: (
        "order reference", "order ref", "order name", "order id", "order no",
        "order number", "reference", "invoice",
    ),
    SALES_CHANNEL: ("sales channel", "channel"),
    CUSTOMER_TAGS: ("customer tags", "tags"),
}

_SEPARATORS = re.compile(r"[_\-]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_header(text: object) -> str:
    """Lowercase, fold `_`/`-` to spaces and collapse whitespace.

    >>> normalize_header("  Order_Date ")
    'order date'
    >>> normalize_header("TOTAL   Sales")
    'total sales'
    """
    if text is None:
        return ""
    s = _SEPARATORS.sub(" ", str(text))
    return _WHITESPACE.sub(" ", s).strip().lower()


def build_synonym_table(config: ParserConfig) -> dict[str, str]:
    """Return normalized source name -> canonical key.

    Without net preference the net sales names are plain totals, so a lone
    "Net Sales" column still fills Total.
    """
    table: dict[str, str] = {}
    for canonical, names in _BASE_SYNONYMS.items():
        target = canonical
        if canonical == NET_SALES and not config.prefer_net_over_gross:
            target = TOTAL
        # the canonical spelling itself ("UnitPrice" -> "unitprice") and its space-free forms
        for name in (canonical, *names):
            table[normalize_header(name)] = target
            table.setdefault(normalize_header(name).replace(" ", ""), target)
    for canonical, names in config.header_synonyms.items():
        if canonical not in CANONICAL_HEADERS:
            raise ValueError(f"unknown canonical header in header_synonyms: {canonical!r}")
        for name in names:
            table[normalize_header(name)] = canonical
    return table


@dataclass(frozen=True)
class HeaderMatch:
    """Result of matching one header row.

    columns[i] is the canonical key owning source column i, or None when the
    column is unrecognized, blank, or a dropped duplicate.
    """
    source_headers: list[str]
    columns: list[str | None]
    canonical: dict[str, int]  # canonical key -> source column index
    warnings: list[Diagnostic] = field(default_factory=list)

    def has(self, key: str) -> bool:
        return key in self.canonical


def match_headers(headers: Sequence[object], header_row_index: int, config: ParserConfig) -> HeaderMatch:
    """Match trimmed header cells against the synonym table.

    Runs to completion (duplicate detection included) before any row is
    reconciled; the warnings it returns carry the header line number.
    """
    synonyms = build_synonym_table(config)
    source_headers = ["" if h is None else str(h).strip() for h in headers]
    columns: list[str | None] = []
    canonical: dict[str, int] = {}
    warnings: list[Diagnostic] = []

    for idx, header in enumerate(source_headers):
        key = synonyms.get(normalize_header(header)) if header else None
        if key is None:
            columns.append(None)
            continue
        if key in canonical:
            first = source_headers[canonical[key]]
            warnings.append(
                Diagnostic.warning(
                    header_row_index,
                    "DUPLICATE_HEADER",
                    f"Duplicate column '{header}' maps to {key}; keeping '{first}'",
                    column=key,
                )
            )
            columns.append(None)
            continue
        canonical[key] = idx
        columns.append(key)

    return HeaderMatch(
        source_headers=source_headers,
        columns=columns,
        canonical=canonical,
        warnings=warnings,
    )


def missing_required_headers(match: HeaderMatch) -> list[str]:
    """Human readable list of structural header problems (empty when usable)."""
    problems: list[str] = []
    if not match.has(DATE):
        problems.append("Missing required column: Date")
    if not (match.has(SALESPERSON) or match.has(CUSTOMER_TAGS)):
        problems.append("Missing required column: Salesperson (or Customer Tags for staff identification)")
    if not any(match.has(k) for k in MONETARY_HEADERS):
        problems.append("Missing required columns: need at least one of Quantity, Total, UnitPrice")
    return problems
