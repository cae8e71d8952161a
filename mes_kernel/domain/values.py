"""
Value coercion helpers.

Quantities are ``Decimal`` throughout the kernel.  Callers (scan screens,
import rows, persisted JSON) hand in ``int``, ``str``, ``float`` or
``Decimal``; these helpers normalise them at the boundary.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")


def to_quantity(value: Any) -> Decimal:
    """Convert a number-like value to a finite ``Decimal``.

    Floats go through ``str`` so that ``1.5`` becomes ``Decimal("1.5")``
    rather than its binary expansion.

    Raises:
        ValueError: If the value is not numeric or not finite.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid quantity value: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid quantity value: {value!r}")
    return result


def parse_timestamp(value: datetime | str) -> datetime:
    """Parse an ISO-8601 timestamp into a timezone-aware ``datetime``.

    Naive values are taken to be UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip())
    else:
        raise ValueError(f"Cannot parse timestamp from {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
