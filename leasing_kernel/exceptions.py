"""
Typed Exception Hierarchy for the Leasing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Booking flows are driven by staff tooling, customer-facing handlers, and
background jobs. All of them need to tell a hard overlap apart from a
malformed request without parsing message text. Every error therefore:

  1. Has its own exception class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (booking id, statuses, dates)

Example:
    try:
        service.create_booking(request)
    except ConflictError as e:
        api_response(code=e.code, conflicts=e.conflicting_booking_ids)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LeasingKernelError (base)
    |
    +-- ValidationError
    |
    +-- NotFoundError
    |   +-- BookingNotFoundError
    |   +-- SiteNotFoundError
    |   +-- CustomerNotFoundError
    |   +-- UsageCategoryNotFoundError
    |   +-- AssetBookingNotFoundError
    |
    +-- BookingError
    |   +-- ConflictError
    |   +-- InvalidTransitionError
    |
    +-- AuditError
    |   +-- AuditWriteError
    |
    +-- ConcurrencyError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError
        +-- UnauthorizedStatusWriteError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | VALIDATION_ERROR            | end < start, unknown extra field, bad amount
----------------|-----------------------------|-----------------------------------------
Lookup          | BOOKING_NOT_FOUND           | Booking id doesn't exist
                | SITE_NOT_FOUND              | Site id doesn't exist
                | CUSTOMER_NOT_FOUND          | Customer profile doesn't exist
                | USAGE_CATEGORY_NOT_FOUND    | Usage category doesn't exist
                | ASSET_BOOKING_NOT_FOUND     | Asset booking doesn't exist
----------------|-----------------------------|-----------------------------------------
Booking         | BOOKING_CONFLICT            | Date range overlaps a live booking
                | INVALID_STATUS_TRANSITION   | Edge not in the transition table
----------------|-----------------------------|-----------------------------------------
Audit           | AUDIT_WRITE_FAILED          | History/audit append failed; status
                |                             | write rolled back with it
----------------|-----------------------------|-----------------------------------------
Concurrency     | CONCURRENT_STATUS_CHANGE    | History sequence claimed by another
                |                             | transaction
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Update/delete of an append-only row
                | UNAUTHORIZED_STATUS_WRITE   | Booking status flushed outside the
                |                             | lifecycle manager

===============================================================================
"""

from datetime import date


class LeasingKernelError(Exception):
    """
    Base exception for all leasing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEASING_KERNEL_ERROR"


# Validation


class ValidationError(LeasingKernelError):
    """Input is malformed (inverted date range, unknown field, bad amount)."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Invalid {field}: {message}")


# Lookup exceptions


class NotFoundError(LeasingKernelError):
    """Base exception for unknown identifiers."""

    code: str = "NOT_FOUND"

    entity_label = "Entity"

    def __init__(self, entity_id: str):
        self.entity_id = str(entity_id)
        super().__init__(f"{self.entity_label} not found: {entity_id}")


class BookingNotFoundError(NotFoundError):
    code: str = "BOOKING_NOT_FOUND"
    entity_label = "Booking"


class SiteNotFoundError(NotFoundError):
    code: str = "SITE_NOT_FOUND"
    entity_label = "Site"


class CustomerNotFoundError(NotFoundError):
    code: str = "CUSTOMER_NOT_FOUND"
    entity_label = "Customer profile"


class UsageCategoryNotFoundError(NotFoundError):
    code: str = "USAGE_CATEGORY_NOT_FOUND"
    entity_label = "Usage category"


class AssetBookingNotFoundError(NotFoundError):
    code: str = "ASSET_BOOKING_NOT_FOUND"
    entity_label = "Asset booking"


# Booking exceptions


class BookingError(LeasingKernelError):
    """Base exception for booking admission and lifecycle errors."""

    code: str = "BOOKING_ERROR"


class ConflictError(BookingError):
    """
    Proposed date range overlaps one or more live bookings on the same site.

    The full list of conflicting booking ids is carried; callers decide how
    much of it to show.
    """

    code: str = "BOOKING_CONFLICT"

    def __init__(
        self,
        resource_id: str,
        start_date: date,
        end_date: date,
        conflicting_booking_ids: list[str],
    ):
        self.resource_id = str(resource_id)
        self.start_date = start_date
        self.end_date = end_date
        self.conflicting_booking_ids = [str(b) for b in conflicting_booking_ids]
        super().__init__(
            f"Resource {resource_id} is already booked between "
            f"{start_date} and {end_date} "
            f"({len(self.conflicting_booking_ids)} conflicting booking(s))"
        )


class InvalidTransitionError(BookingError):
    """Requested status change is not an edge in the transition table."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(
        self,
        entity_id: str,
        from_status: str | None,
        to_status: str,
        reason: str | None = None,
    ):
        self.entity_id = str(entity_id)
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Cannot change {entity_id} from {from_status} to {to_status}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


# Audit exceptions


class AuditError(LeasingKernelError):
    """Base exception for history and audit-log errors."""

    code: str = "AUDIT_ERROR"


class AuditWriteError(AuditError):
    """
    The history or audit-log append failed.

    The paired status write has been rolled back; the booking is unchanged.
    """

    code: str = "AUDIT_WRITE_FAILED"

    def __init__(self, entity_id: str, new_status: str, detail: str):
        self.entity_id = str(entity_id)
        self.new_status = new_status
        self.detail = detail
        super().__init__(
            f"Audit write failed for {entity_id} -> {new_status}: {detail}"
        )


# Concurrency


class ConcurrencyError(LeasingKernelError):
    """Another transaction claimed the same history sequence slot."""

    code: str = "CONCURRENT_STATUS_CHANGE"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(
            f"Concurrent status change on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability


class ImmutabilityError(LeasingKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an append-only record.

    Status history entries and audit-log entries are immutable after
    creation. Bookings may be updated but never deleted.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


class UnauthorizedStatusWriteError(ImmutabilityError):
    """Booking status was flushed without going through the lifecycle manager."""

    code: str = "UNAUTHORIZED_STATUS_WRITE"

    def __init__(self, booking_id: str, attempted_status: str | None):
        self.booking_id = str(booking_id)
        self.attempted_status = attempted_status
        super().__init__(
            f"Status write to {attempted_status!r} on booking {booking_id} "
            "was not made through StatusLifecycleManager"
        )
