"""
Payment method and refund resolution (``leasing_kernel.domain.payment``).

Responsibility
--------------
Map a centre's payment mode plus the customer's invoice eligibility to the
payment method stored on a new booking, and decide the refund status a
cancellation leaves behind.

Architecture position
---------------------
**Kernel domain layer** -- pure functions, ZERO I/O.

Invariants enforced
-------------------
* The payment method is resolved once, at creation, and stored.  Later
  changes to a centre's payment mode never re-derive it.
* Plain ``stripe`` mode ignores the customer's invoice flag.
* ``processed`` is only reached from ``pending``, once the card refund
  outcome is known.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from leasing_kernel.exceptions import ValidationError


class PaymentMode(str, Enum):
    """Centre-level payment policy."""

    STRIPE = "stripe"
    STRIPE_WITH_EXCEPTIONS = "stripe_with_exceptions"
    INVOICE_ONLY = "invoice_only"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    INVOICE = "invoice"


class RefundStatus(str, Enum):
    NOT_REQUIRED = "not_required"
    MANUAL = "manual"
    PENDING = "pending"
    PROCESSED = "processed"


def resolve_payment_method(
    payment_mode: PaymentMode | str,
    can_pay_by_invoice: bool,
) -> PaymentMethod:
    """Effective payment method for a booking created now."""
    try:
        mode = PaymentMode(payment_mode)
    except ValueError:
        raise ValidationError(
            "payment_mode", f"unknown payment mode {payment_mode!r}",
        ) from None
    if mode == PaymentMode.INVOICE_ONLY:
        return PaymentMethod.INVOICE
    if mode == PaymentMode.STRIPE_WITH_EXCEPTIONS and can_pay_by_invoice:
        return PaymentMethod.INVOICE
    return PaymentMethod.STRIPE


def resolve_refund_status(
    paid_at: datetime | None,
    payment_method: PaymentMethod | str,
    perform_refund: bool,
) -> tuple[RefundStatus, bool]:
    """
    Refund status for a cancelled booking.

    Returns ``(status, flag_for_follow_up)``.  The flag is True when a card
    payment was taken but no refund is being issued now, so staff must
    chase it (the caller stamps ``refund_pending_at``).
    """
    if paid_at is None:
        return RefundStatus.NOT_REQUIRED, False
    if PaymentMethod(payment_method) == PaymentMethod.INVOICE:
        return RefundStatus.MANUAL, False
    return RefundStatus.PENDING, not perform_refund


def resolve_refund_outcome(
    current: RefundStatus | str | None,
    succeeded: bool,
) -> tuple[RefundStatus, bool]:
    """
    Refund status once the card refund for a cancelled booking has run.

    Returns ``(status, flag_for_follow_up)``.  A failed refund stays
    ``pending`` and is flagged again for staff.
    """
    if current is None or RefundStatus(current) != RefundStatus.PENDING:
        raise ValidationError(
            "refund_status",
            f"no card refund is awaiting an outcome (refund status {current!r})",
        )
    if succeeded:
        return RefundStatus.PROCESSED, False
    return RefundStatus.PENDING, True
