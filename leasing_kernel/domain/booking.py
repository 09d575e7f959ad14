"""
Booking domain types (``leasing_kernel.domain.booking``).

Responsibility
--------------
Pure value objects for the booking lifecycle: the status enum, the
transition table, the date-range overlap predicate, and the frozen
snapshots services hand back to callers.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  No imports from ``db/``,
``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* ``BOOKING_TRANSITIONS`` defines the only valid status edges.  Terminal
  states (cancelled, rejected, completed) have no outgoing edges.
* A booking is created only in one of ``INITIAL_BOOKING_STATUSES``.
* ``DateRange`` rejects ``end < start``; both ends are inclusive, so a
  single-day booking has ``start == end`` and adjacent days never overlap.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID

from leasing_kernel.exceptions import ValidationError


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"
    COMPLETED = "completed"


BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CANCELLED,
        BookingStatus.COMPLETED,
    }),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

TERMINAL_BOOKING_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.CANCELLED,
    BookingStatus.REJECTED,
    BookingStatus.COMPLETED,
})

INITIAL_BOOKING_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
})

# Statuses that do not hold a site for their date range.
NON_BLOCKING_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.CANCELLED,
    BookingStatus.REJECTED,
})

# Statuses that count towards duplicate-intent detection.
LIVE_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
})


def is_valid_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS.get(current, frozenset())


def default_change_reason(new_status: BookingStatus | str) -> str:
    return f"Status changed to {BookingStatus(new_status).value}"


def creation_reason(initial_status: BookingStatus) -> str:
    if initial_status == BookingStatus.CONFIRMED:
        return "Instant booking confirmed"
    return "Booking created - pending approval"


# =========================================================================
# Date ranges
# =========================================================================


def ranges_overlap(
    a_start: date, a_end: date, b_start: date, b_end: date,
) -> bool:
    """Inclusive-range overlap: a.start <= b.end AND a.end >= b.start."""
    return a_start <= b_end and a_end >= b_start


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-day range."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValidationError(
                "end_date",
                f"end date {self.end} is before start date {self.start}",
            )

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def overlaps(self, other: DateRange) -> bool:
        return ranges_overlap(self.start, self.end, other.start, other.end)

    def each_day(self):
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)


# =========================================================================
# Snapshots returned by selectors and services
# =========================================================================


@dataclass(frozen=True)
class BookingInfo:
    """Read-only view of a booking row."""

    booking_id: UUID
    booking_number: str
    site_id: UUID
    customer_id: UUID
    usage_category_id: UUID | None
    start_date: date
    end_date: date
    status: BookingStatus
    requires_approval: bool
    payment_method: str
    total_amount: Decimal


@dataclass(frozen=True)
class StatusChange:
    """Outcome of a lifecycle operation.

    ``recorded`` is False when the call was an idempotent no-op and no
    history entry was appended.
    """

    booking_id: UUID
    previous_status: BookingStatus | None
    new_status: BookingStatus
    recorded: bool = True


@dataclass(frozen=True)
class StatusHistoryRecord:
    """Read-only view of one status history entry."""

    booking_id: UUID
    sequence: int
    previous_status: BookingStatus | None
    new_status: BookingStatus
    changed_by: UUID | None
    changed_by_name: str | None
    reason: str | None
    created_at: datetime


# =========================================================================
# Asset bookings and the generic audit log
# =========================================================================


class AssetType(str, Enum):
    """Booking kinds that keep their own status but share the audit log."""

    VACANT_SHOP = "vacant_shop_booking"
    THIRD_LINE = "third_line_booking"


AUDIT_ACTION_STATUS_CHANGE = "status_change"


@dataclass(frozen=True)
class AssetBookingInfo:
    asset_booking_id: UUID
    booking_number: str
    asset_type: AssetType
    asset_id: UUID
    customer_id: UUID
    start_date: date
    end_date: date
    status: BookingStatus
    total_amount: Decimal


@dataclass(frozen=True)
class AuditLogRecord:
    """Read-only view of one audit log entry."""

    entity_type: str
    entity_id: UUID
    sequence: int
    action: str
    previous_status: str | None
    new_status: str
    changed_by: UUID | None
    reason: str | None
    created_at: datetime
