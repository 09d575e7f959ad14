"""
Values -- money helpers for the pure domain layer.

Responsibility:
    Decimal conversion and cent rounding for prices, GST and commission,
    plus normalisation of amounts that arrive from outside the kernel
    (OCR results report plain numbers).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  ``db.types``
    re-exports these helpers for the persistence side.

Invariants enforced:
    - No floats in money arithmetic.  to_money() rejects float input and
      round_money() is the only sanctioned rounding (ROUND_HALF_UP to cents).
    - External amounts are converted through their decimal string form, so
      10_000_000.0 becomes Decimal("10000000.0"), never a binary expansion.

Failure modes:
    - TypeError when a float is passed to to_money().
    - decimal.InvalidOperation on a non-numeric string.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

_CENT = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)


def to_money(value: Decimal | int | str) -> Decimal:
    """Convert an int, str or Decimal to Decimal. Floats are refused."""
    if isinstance(value, float):
        raise TypeError(f"Float not allowed for money: {value!r}")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(amount: Decimal) -> Decimal:
    """Round to whole cents, half up."""
    return amount.quantize(_CENT, rounding=DEFAULT_ROUNDING)


def external_amount(value: Decimal | int | float | str | None) -> Decimal | None:
    """Normalise an amount reported by an outside system; None stays None."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"Not an amount: {value!r}")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
