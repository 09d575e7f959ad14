"""
AssetBookingService -- vacant-shop and third-line-income bookings.

Responsibility:
    Creates asset bookings and changes their status.  Unlike site bookings
    these keep their status in a plain column; the audit trail is the
    generic audit log, written through StatusLifecycleManager.

Invariants enforced:
    - Overlapping live bookings of the same asset are refused.  Assets are
      owned outside the kernel, so creation serialises on a per-asset
      counter row held FOR UPDATE until the caller commits.
    - Every status write (including creation) has exactly one audit log
      entry, written in the same SAVEPOINT as the status column.
    - Terminal states have no outgoing transitions (same table as bookings).

Failure modes:
    - AssetBookingNotFoundError, ConflictError, InvalidTransitionError,
      ValidationError, AuditWriteError.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from leasing_kernel.domain.booking import (
    TERMINAL_BOOKING_STATUSES,
    AssetType,
    BookingStatus,
    DateRange,
    StatusChange,
    is_valid_transition,
)
from leasing_kernel.domain.clock import Clock, SystemClock
from leasing_kernel.exceptions import (
    AssetBookingNotFoundError,
    ConflictError,
    InvalidTransitionError,
    ValidationError,
)
from leasing_kernel.logging_config import get_logger
from leasing_kernel.models.asset_booking import AssetBooking
from leasing_kernel.selectors.overlap_selector import OverlapSelector
from leasing_kernel.services.base import BaseService
from leasing_kernel.services.lifecycle_service import (
    StatusLifecycleManager,
    coerce_status,
)
from leasing_kernel.services.sequence_service import SequenceService

logger = get_logger("services.asset_booking")

ASSET_NUMBER_PREFIX = {
    AssetType.VACANT_SHOP: "VS",
    AssetType.THIRD_LINE: "TL",
}

ASSET_EXTRA_FIELDS = frozenset({"approved_by", "approved_at", "rejection_reason"})


def asset_lock_name(asset_type: AssetType, asset_id: UUID) -> str:
    return f"asset_booking_lock:{AssetType(asset_type).value}:{asset_id}"


@dataclass(frozen=True)
class AssetBookingRequest:
    asset_type: AssetType
    asset_id: UUID
    customer_id: UUID
    start_date: date
    end_date: date
    total_amount: Decimal
    gst_amount: Decimal = Decimal("0")
    created_by: UUID | None = None


class AssetBookingService(BaseService[AssetBooking]):
    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._lifecycle = StatusLifecycleManager(session, self._clock)
        self._overlaps = OverlapSelector(session)
        self._sequences = SequenceService(session)

    def create_booking(self, request: AssetBookingRequest) -> AssetBooking:
        """Create a pending asset booking and its first audit entry."""
        asset_type = AssetType(request.asset_type)
        stay = DateRange(request.start_date, request.end_date)
        if request.total_amount < 0 or request.gst_amount < 0:
            raise ValidationError("total_amount", "amounts must be non-negative")

        self._sequences.next_value(asset_lock_name(asset_type, request.asset_id))
        conflicts = self._overlaps.asset_conflicts(
            asset_type, request.asset_id, stay.start, stay.end,
        )
        if conflicts:
            raise ConflictError(
                request.asset_id,
                stay.start,
                stay.end,
                [c.asset_booking_id for c in conflicts],
            )

        prefix = ASSET_NUMBER_PREFIX[asset_type]
        day = stay.start.strftime("%Y%m%d")
        seq = self._sequences.next_value(f"asset_booking_number:{prefix}:{day}")

        booking = AssetBooking(
            id=uuid4(),
            booking_number=f"{prefix}-{day}-{seq:03d}",
            asset_type=asset_type.value,
            asset_id=request.asset_id,
            customer_id=request.customer_id,
            start_date=stay.start,
            end_date=stay.end,
            total_amount=request.total_amount,
            gst_amount=request.gst_amount,
            status=BookingStatus.PENDING.value,
        )

        savepoint = self.session.begin_nested()
        try:
            self.session.add(booking)
            self.session.flush()
            self._lifecycle.log_asset_status_change(
                asset_type,
                booking.id,
                None,
                BookingStatus.PENDING,
                changed_by=request.created_by,
                reason="Booking created - pending approval",
            )
            savepoint.commit()
        except Exception:
            savepoint.rollback()
            raise

        logger.info(
            "asset_booking_created",
            extra={
                "asset_booking_id": str(booking.id),
                "booking_number": booking.booking_number,
                "asset_type": asset_type.value,
            },
        )
        return booking

    def update_status(
        self,
        asset_booking_id: UUID,
        new_status: BookingStatus | str,
        changed_by: UUID | None = None,
        reason: str | None = None,
        extra_fields: Mapping[str, Any] | None = None,
    ) -> StatusChange:
        target = coerce_status(new_status)
        fields = dict(extra_fields or {})
        unknown = sorted(set(fields) - ASSET_EXTRA_FIELDS)
        if unknown:
            raise ValidationError(
                "extra_fields",
                f"cannot be set with a status change: {', '.join(unknown)}",
            )

        booking = self.session.execute(
            select(AssetBooking)
            .where(AssetBooking.id == asset_booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if booking is None:
            raise AssetBookingNotFoundError(str(asset_booking_id))

        previous = BookingStatus(booking.status)
        if previous == target and not fields:
            return StatusChange(
                booking_id=booking.id,
                previous_status=previous,
                new_status=target,
                recorded=False,
            )
        if previous != target and not is_valid_transition(previous, target):
            raise InvalidTransitionError(
                booking.id,
                previous.value,
                target.value,
                f"{previous.value} is a terminal status"
                if previous in TERMINAL_BOOKING_STATUSES
                else "transition not allowed",
            )

        savepoint = self.session.begin_nested()
        try:
            for name, value in fields.items():
                setattr(booking, name, value)
            booking.status = target.value
            self.session.flush()
            self._lifecycle.log_asset_status_change(
                booking.asset_type,
                booking.id,
                previous,
                target,
                changed_by=changed_by,
                reason=reason,
            )
            savepoint.commit()
        except Exception:
            savepoint.rollback()
            self.session.expire(booking)
            raise

        logger.info(
            "asset_booking_status_changed",
            extra={
                "asset_booking_id": str(booking.id),
                "previous_status": previous.value,
                "new_status": target.value,
            },
        )
        return StatusChange(
            booking_id=booking.id,
            previous_status=previous,
            new_status=target,
        )
