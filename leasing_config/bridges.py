"""
Config -> Kernel Bridges.

These live in leasing_config because the kernel must never import
leasing_config.

Usage:
    from leasing_config.bridges import to_booking_policy

    policy = to_booking_policy(get_active_config())
    service = BookingService(session, policy=policy)
"""

from __future__ import annotations

from leasing_config.schema import LeasingConfiguration
from leasing_kernel.domain.settings import BookingPolicy


def to_booking_policy(config: LeasingConfiguration) -> BookingPolicy:
    return BookingPolicy(
        coverage_floor=config.admission.coverage_floor,
        gst_percentage=config.pricing.gst_percentage,
        invoice_due_days=config.payment.invoice_due_days,
    )
