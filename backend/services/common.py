import secrets
import string
import time as _time
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

_BASE36 = string.digits + string.ascii_lowercase


def new_reference(prefix: str) -> str:
    """Human-readable record code, e.g. TRF-1718000000000-k3j9x0a2b."""
    millis = int(_time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{prefix}-{millis}-{suffix}"


def utcnow() -> datetime:
    # Stored in naive DateTime columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def date_range(column, start: Optional[date], end: Optional[date]) -> list:
    """WHERE clauses for an inclusive [start, end] day range on a DateTime column."""
    clauses = []
    if start:
        clauses.append(column >= datetime.combine(start, time.min))
    if end:
        clauses.append(column < datetime.combine(end, time.min) + timedelta(days=1))
    return clauses


CENT = Decimal("0.01")


def to_decimal(value) -> Optional[Decimal]:
    """Money amount rounded to cents, matching the Numeric(_, 2) columns."""
    if value is None:
        return None
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
