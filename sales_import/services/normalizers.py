from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Any

"""Value normalizers for dates, money and quantities.

Every parser here is a pure function of its input. Absent values (None) come
back as None; values that are present but cannot be read raise
NormalizationError so that the reconciler can turn them into a row diagnostic.

Date rules:
- ISO dates / datetimes (YYYY-MM-DD, optional time and offset; / and . also
  accepted as separators when the year comes first)
- DD/MM/YYYY or MM/DD/YYYY (/, - or . separators, 2-digit years mean 20xx).
  A component above 12 decides the order; otherwise the configured date_order
  is applied to every row alike.
- Spreadsheet serial numbers: days since 1899-12-30, fraction = time of day
- datetime / date objects as produced by a workbook reader
Naive values are taken as UTC; aware values are converted to UTC.
"""

__all__ = [
    "NormalizationError",
    "format_money",
    "format_timestamp",
    "normalize_date",
    "parse_money",
    "parse_quantity",
    "quantize_money",
]

EXCEL_EPOCH = datetime(1899, 12, 30)
MAX_EXCEL_SERIAL = 2958465  # 9999-12-31
CENT = Decimal("0.01")

_ISO_DATE = re.compile(
    r"^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})"
    r"(?:[T ](\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d{1,6}))?)?)?"
    r"\s*(Z|[+-]\d{2}:?\d{2})?$",
    re.IGNORECASE,
)
_LOCAL_DATE = re.compile(
    r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4}|\d{2})"
    r"(?:[T ](\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AP]M)?)?$",
    re.IGNORECASE,
)
_SERIAL = re.compile(r"^\d+(?:\.\d+)?$")

_CURRENCY_PREFIX = re.compile(r"^(?:[A-Za-z]{1,3}\s*)?[$€£¥₩₹]?\s*")
_CURRENCY_SUFFIX = re.compile(r"\s*(?:[$€£¥₩₹]|[A-Za-z]{1,3})$")
_WHITESPACE = re.compile(r"\s+")
_GROUPED = re.compile(r"^\d{1,3}(?:,\d{3})+(?:\.\d+)?$")
_NUMBER = re.compile(r"^\d+(?:\.\d+)?$|^\.\d+$")
_QUANTITY = re.compile(r"^\d+(?:\.0+)?$")


class NormalizationError(ValueError):
    """Raised when a present value cannot be normalized."""


# --- dates -----------------------------------------------------------------

def _from_serial(serial: float) -> datetime:
    if not 1 <= serial <= MAX_EXCEL_SERIAL:
        raise NormalizationError(f"date serial out of range: {serial}")
    # round to whole seconds; float serials carry binary noise in the fraction
    seconds = round(serial * 86400)
    return EXCEL_EPOCH + timedelta(seconds=seconds)


def _tz_from_text(text: str | None):
    if text is None:
        return None
    if text.upper() == "Z":
        return UTC
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
    return timezone(sign * offset)


def _to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def _parse_date_text(text: str, date_order: str) -> datetime:
    m = _ISO_DATE.match(text)
    if m:
        year, month, day, hh, mm, ss, frac, tz = m.groups()
        micro = int((frac or "0").ljust(6, "0"))
        value = datetime(
            int(year), int(month), int(day), int(hh or 0), int(mm or 0), int(ss or 0), micro,
            tzinfo=_tz_from_text(tz),
        )
        return _to_utc_naive(value)

    m = _LOCAL_DATE.match(text)
    if m:
        first, second, year, hh, mm, ss, meridiem = m.groups()
        a, b = int(first), int(second)
        if a > 12 and b > 12:
            raise NormalizationError(f"neither day nor month fits: {text!r}")
        if a > 12:
            day, month = a, b
        elif b > 12:
            month, day = a, b
        elif date_order == "MDY":
            month, day = a, b
        else:
            day, month = a, b
        full_year = int(year) + 2000 if len(year) == 2 else int(year)
        hour = int(hh or 0)
        if meridiem:
            if hour < 1 or hour > 12:
                raise NormalizationError(f"invalid 12-hour time: {text!r}")
            hour = hour % 12 + (12 if meridiem.upper() == "PM" else 0)
        return datetime(full_year, month, day, hour, int(mm or 0), int(ss or 0))

    if _SERIAL.match(text):
        return _from_serial(float(text))

    raise NormalizationError(f"unrecognized date format: {text!r}")


def normalize_date(value: Any, date_order: str = "DMY") -> datetime | None:
    """Normalize a date cell to a naive UTC datetime.

    >>> normalize_date(44958)
    datetime.datetime(2023, 2, 1, 0, 0)
    >>> normalize_date("13/01/2026")
    datetime.datetime(2026, 1, 13, 0, 0)
    >>> normalize_date("01/02/2026", date_order="MDY")
    datetime.datetime(2026, 1, 2, 0, 0)
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise NormalizationError(f"not a date: {value!r}")
    if isinstance(value, datetime):
        try:
            return _to_utc_naive(value)
        except OverflowError as e:  # aware values at the edge of the calendar
            raise NormalizationError(f"date out of range: {value!r}") from e
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        return _from_serial(float(value))
    text = str(value).strip()
    if not text:
        return None
    try:
        return _parse_date_text(text, date_order)
    except (ValueError, OverflowError) as e:  # datetime() rejects e.g. month 13 / Feb 30
        if isinstance(e, NormalizationError):
            raise
        raise NormalizationError(f"invalid date {text!r}: {e}") from e


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with a Z suffix, second precision."""
    return _to_utc_naive(value).replace(microsecond=0).isoformat() + "Z"


# --- money -----------------------------------------------------------------

def parse_money(value: Any) -> Decimal | None:
    """Parse a monetary cell, stripping currency symbols/codes and thousands separators.

    Parentheses and a leading minus both mean negative.

    >>> parse_money("HK$50.00")
    Decimal('50.00')
    >>> parse_money("USD 1,234.5")
    Decimal('1234.5')
    >>> parse_money("(12.00)")
    Decimal('-12.00')
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise NormalizationError(f"not a monetary value: {value!r}")
    if isinstance(value, int):
        return _in_range(Decimal(value), value)
    if isinstance(value, float):
        return _in_range(Decimal(repr(value)), value)
    if isinstance(value, Decimal):
        return _in_range(value, value)

    original = str(value).strip()
    if not original:
        return None
    s = original
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative, s = True, s[1:-1].strip()
    if s.startswith("-"):
        negative, s = True, s[1:].strip()
    s = _CURRENCY_PREFIX.sub("", s, count=1)
    s = _CURRENCY_SUFFIX.sub("", s)
    if s.startswith("-"):
        negative, s = True, s[1:]
    s = _WHITESPACE.sub("", s)
    if "," in s:
        # 1,234,567 grouping only; a decimal comma (12,50) is rejected
        if not _GROUPED.match(s):
            raise NormalizationError(f"not a monetary value: {original!r}")
        s = s.replace(",", "")
    if not _NUMBER.match(s):
        raise NormalizationError(f"not a monetary value: {original!r}")
    try:
        amount = Decimal(s)
    except InvalidOperation as e:  # pragma: no cover (regex already guards)
        raise NormalizationError(f"not a monetary value: {original!r}") from e
    return _in_range(-amount if negative else amount, original)


def _in_range(amount: Decimal, original: Any) -> Decimal:
    # quantizing to cents needs every integer digit plus two within the context precision
    if not amount.is_finite() or amount.adjusted() >= getcontext().prec - 2:
        raise NormalizationError(f"monetary value out of range: {original!r}")
    return amount


def quantize_money(amount: Decimal) -> Decimal:
    """Round half-up to cents; folds -0.00 into 0.00.

    Raises:
        NormalizationError: the result needs more digits than the decimal context holds
    """
    try:
        q = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise NormalizationError(f"monetary value out of range: {amount}") from e
    return q if q != 0 else Decimal("0.00")


def format_money(amount: Decimal) -> str:
    return str(quantize_money(amount))


# --- quantity --------------------------------------------------------------

def parse_quantity(value: Any) -> int | None:
    """Parse a positive whole quantity; anything else is None (caller defaults to 1).

    >>> parse_quantity("3")
    3
    >>> parse_quantity("2.5") is None
    True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        if value.is_integer() and value > 0:
            return int(value)
        return None
    text = _WHITESPACE.sub("", str(value))
    if "," in text:
        if not _GROUPED.match(text):
            return None
        text = text.replace(",", "")
    if not _QUANTITY.match(text):
        return None
    qty = int(Decimal(text))
    return qty if qty > 0 else None
