"""ORM models for the leasing kernel."""

from leasing_kernel.models.asset_booking import AssetBooking
from leasing_kernel.models.audit_log import AuditLogEntry
from leasing_kernel.models.booking import Booking
from leasing_kernel.models.centre import (
    Centre,
    SeasonalRate,
    Site,
    UsageCategory,
    site_approved_categories,
)
from leasing_kernel.models.customer import CustomerProfile
from leasing_kernel.models.sequence import SequenceCounter
from leasing_kernel.models.status_history import BookingStatusHistory

from leasing_kernel.db.immutability import register_immutability_listeners

register_immutability_listeners()

__all__ = [
    "AssetBooking",
    "AuditLogEntry",
    "Booking",
    "BookingStatusHistory",
    "Centre",
    "CustomerProfile",
    "SeasonalRate",
    "SequenceCounter",
    "Site",
    "UsageCategory",
    "site_approved_categories",
]
