"""
Values -- Rounding helpers for cents, minutes and hours.

Responsibility:
    Single place where a fractional amount becomes an integer (cents or
    minutes) or a fixed-precision hour figure.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Round half away from zero (Decimal ROUND_HALF_UP), applied at the point
      each amount is computed.  Sums of already-rounded amounts are never
      rounded again.
    - Decimal-only arithmetic; floats are rejected so binary fractions never
      leak into money.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_ONE = Decimal("1")
_HOUR_QUANT = Decimal("0.01")


def to_decimal(value: Decimal | int | str) -> Decimal:
    """Coerce an int, str or Decimal to Decimal.

    Raises:
        TypeError: If value is a float or bool.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Refusing to convert {type(value).__name__} to Decimal: {value!r}")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def round_half_up(value: Decimal | int) -> int:
    """Round to the nearest integer, halves away from zero.

    >>> round_half_up(Decimal("2.5")), round_half_up(Decimal("-2.5"))
    (3, -3)
    """
    return int(to_decimal(value).quantize(_ONE, rounding=ROUND_HALF_UP))


def round_hours(value: Decimal | int) -> Decimal:
    """Quantize an hour figure to two decimal places, halves away from zero."""
    return to_decimal(value).quantize(_HOUR_QUANT, rounding=ROUND_HALF_UP)


def minutes_to_hours(minutes: int) -> Decimal:
    """Exact hours for a whole number of minutes, rounded to two places."""
    return round_hours(Decimal(minutes) / Decimal(60))
