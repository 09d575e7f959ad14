"""
Pure domain layer.

Value objects and policy functions with NO dependencies on:
- ORM sessions
- Database access
- Wall-clock time (inject a Clock)
- I/O

All domain objects are immutable and deterministic.
"""

from leasing_kernel.domain.admission import (
    ADMISSION_RULES,
    UNRESTRICTED_WHEN_NO_CATEGORIES,
    AdmissionDecision,
    AdmissionInput,
    evaluate_admission,
)
from leasing_kernel.domain.booking import (
    BOOKING_TRANSITIONS,
    INITIAL_BOOKING_STATUSES,
    TERMINAL_BOOKING_STATUSES,
    AssetBookingInfo,
    AssetType,
    AuditLogRecord,
    BookingInfo,
    BookingStatus,
    DateRange,
    StatusChange,
    StatusHistoryRecord,
    is_valid_transition,
    ranges_overlap,
)
from leasing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from leasing_kernel.domain.insurance import (
    COVERAGE_FLOOR,
    InsuranceRecord,
    InsuranceScanResult,
    validate_insurance,
)
from leasing_kernel.domain.payment import (
    PaymentMethod,
    PaymentMode,
    RefundStatus,
    resolve_payment_method,
    resolve_refund_outcome,
    resolve_refund_status,
)
from leasing_kernel.domain.settings import BookingPolicy

__all__ = [
    "ADMISSION_RULES",
    "UNRESTRICTED_WHEN_NO_CATEGORIES",
    "AdmissionDecision",
    "AdmissionInput",
    "evaluate_admission",
    "BOOKING_TRANSITIONS",
    "INITIAL_BOOKING_STATUSES",
    "TERMINAL_BOOKING_STATUSES",
    "AssetBookingInfo",
    "AssetType",
    "AuditLogRecord",
    "BookingInfo",
    "BookingStatus",
    "DateRange",
    "StatusChange",
    "StatusHistoryRecord",
    "is_valid_transition",
    "ranges_overlap",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "COVERAGE_FLOOR",
    "InsuranceRecord",
    "InsuranceScanResult",
    "validate_insurance",
    "PaymentMethod",
    "PaymentMode",
    "RefundStatus",
    "resolve_payment_method",
    "resolve_refund_outcome",
    "resolve_refund_status",
    "BookingPolicy",
]
