"""
Booking policy settings (``leasing_kernel.domain.settings``).

Frozen values the booking services read at decision time.  The kernel
never loads configuration itself; ``leasing_config.bridges`` builds a
``BookingPolicy`` from the active configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from leasing_kernel.domain.insurance import COVERAGE_FLOOR

DEFAULT_GST_PERCENTAGE = Decimal("10.00")
DEFAULT_INVOICE_DUE_DAYS = 7


@dataclass(frozen=True)
class BookingPolicy:
    coverage_floor: Decimal = COVERAGE_FLOOR
    gst_percentage: Decimal = DEFAULT_GST_PERCENTAGE
    invoice_due_days: int = DEFAULT_INVOICE_DUE_DAYS
