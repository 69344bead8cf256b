from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import TypeVar

from core.exceptions import DerivationError

E = TypeVar("E", bound=Enum)

ZERO = Decimal("0")
CENT = Decimal("0.01")


def normalize_currency(value: str | None, fallback: str | None) -> str:
    code = (value or "").strip().upper()
    if code:
        return code
    fb = (fallback or "").strip().upper()
    return fb or "-"


def to_amount(value: object, *, source_id: str, field: str) -> Decimal | None:
    """Coerce a stored amount to Decimal; None stays None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise DerivationError(f"{field} is not numeric: {value!r}", source_id=source_id)
    try:
        # str() first so floats keep their printed value rather than binary noise
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise DerivationError(f"{field} is not numeric: {value!r}", source_id=source_id) from None
    if not amount.is_finite():
        raise DerivationError(f"{field} is not finite: {value!r}", source_id=source_id)
    return amount


def parse_status(enum_type: type[E], raw: object, *, source_id: str) -> E:
    token = str(raw or "").strip()
    if not token:
        raise DerivationError("Status is missing.", source_id=source_id, code="STATUS_MISSING")
    for member in enum_type:
        if member.value.lower() == token.lower():
            return member
    raise DerivationError(
        f"Unexpected {enum_type.__name__} {token!r}.",
        source_id=source_id,
        code="STATUS_UNKNOWN",
    )


def as_date(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Stored timestamps are naive UTC; bring aware bounds onto the same footing."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= ZERO:
        return ZERO
    return (part * 100 / whole).quantize(CENT, rounding=ROUND_HALF_UP)


__all__ = [
    "ZERO",
    "normalize_currency",
    "to_amount",
    "parse_status",
    "as_date",
    "as_naive_utc",
    "money",
    "percent_of",
]
