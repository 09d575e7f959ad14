"""Services for the leasing kernel (write side)."""

from leasing_kernel.services.asset_booking_service import (
    AssetBookingRequest,
    AssetBookingService,
)
from leasing_kernel.services.booking_service import (
    BookingCreated,
    BookingRequest,
    BookingService,
    CancellationResult,
)
from leasing_kernel.services.lifecycle_service import StatusLifecycleManager
from leasing_kernel.services.sequence_service import SequenceService

__all__ = [
    "AssetBookingRequest",
    "AssetBookingService",
    "BookingCreated",
    "BookingRequest",
    "BookingService",
    "CancellationResult",
    "SequenceService",
    "StatusLifecycleManager",
]
