"""
Module: leasing_kernel.selectors.overlap_selector
Responsibility: Temporal conflict detection for site and asset bookings, and
    duplicate-intent and category-exclusivity detection for admission control.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Overlap predicate is the inclusive-interval test
      ``existing.start <= proposed.end AND existing.end >= proposed.start``,
      the SQL mirror of domain.booking.ranges_overlap.
    - Cancelled and rejected bookings never conflict.
    - Results are ordered by start date, then booking number.

Failure modes:
    - ValidationError when end_date < start_date.

Audit relevance:
    A non-empty conflicts() result is a hard refusal (ConflictError in
    BookingService).  find_duplicate_intent() and find_category_conflicts()
    are soft signals that only add admission reasons.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select

from leasing_kernel.domain.booking import (
    LIVE_STATUSES,
    NON_BLOCKING_STATUSES,
    AssetBookingInfo,
    AssetType,
    BookingInfo,
    DateRange,
)
from leasing_kernel.logging_config import get_logger
from leasing_kernel.models.asset_booking import AssetBooking
from leasing_kernel.models.booking import Booking
from leasing_kernel.models.centre import Site
from leasing_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.overlap")

_NON_BLOCKING = [s.value for s in NON_BLOCKING_STATUSES]
_LIVE = [s.value for s in LIVE_STATUSES]


class OverlapSelector(BaseSelector[Booking]):
    """
    Conflict and duplicate-intent queries.

    Contract:
        conflicts() returns every live booking on the site whose range
        intersects the proposed one; the caller refuses creation on any hit.
    """

    def conflicts(
        self,
        site_id: UUID,
        start_date: date,
        end_date: date,
        exclude_booking_id: UUID | None = None,
    ) -> list[BookingInfo]:
        proposed = DateRange(start_date, end_date)

        stmt = (
            select(Booking)
            .where(
                Booking.site_id == site_id,
                Booking.status.not_in(_NON_BLOCKING),
                Booking.start_date <= proposed.end,
                Booking.end_date >= proposed.start,
            )
            .order_by(Booking.start_date, Booking.booking_number)
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)

        found = [b.to_info() for b in self.session.execute(stmt).scalars()]

        if found:
            logger.info(
                "booking_conflict_detected",
                extra={
                    "site_id": str(site_id),
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                    "conflict_count": len(found),
                },
            )
        return found

    def find_duplicate_intent(
        self,
        customer_id: UUID,
        centre_id: UUID,
        category_id: UUID | None,
        excluding_cancelled: bool = True,
        exclude_booking_id: UUID | None = None,
    ) -> list[BookingInfo]:
        """
        Bookings the customer already holds for the same category at the
        same centre.  With ``excluding_cancelled`` only pending and
        confirmed bookings count.
        """
        if category_id is None:
            return []

        stmt = (
            select(Booking)
            .join(Site, Booking.site_id == Site.id)
            .where(
                Booking.customer_id == customer_id,
                Booking.usage_category_id == category_id,
                Site.centre_id == centre_id,
            )
            .order_by(Booking.start_date, Booking.booking_number)
        )
        if excluding_cancelled:
            stmt = stmt.where(Booking.status.in_(_LIVE))
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)

        return [b.to_info() for b in self.session.execute(stmt).scalars()]

    def find_category_conflicts(
        self,
        customer_id: UUID,
        centre_id: UUID,
        category_id: UUID | None,
        start_date: date,
        end_date: date,
        exclude_booking_id: UUID | None = None,
    ) -> list[BookingInfo]:
        """
        Live bookings by OTHER customers for the same usage category at the
        same centre whose dates overlap the proposed range, on any site.
        """
        if category_id is None:
            return []
        proposed = DateRange(start_date, end_date)

        stmt = (
            select(Booking)
            .join(Site, Booking.site_id == Site.id)
            .where(
                Booking.customer_id != customer_id,
                Booking.usage_category_id == category_id,
                Site.centre_id == centre_id,
                Booking.status.in_(_LIVE),
                Booking.start_date <= proposed.end,
                Booking.end_date >= proposed.start,
            )
            .order_by(Booking.start_date, Booking.booking_number)
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)

        return [b.to_info() for b in self.session.execute(stmt).scalars()]

    def asset_conflicts(
        self,
        asset_type: AssetType | str,
        asset_id: UUID,
        start_date: date,
        end_date: date,
    ) -> list[AssetBookingInfo]:
        proposed = DateRange(start_date, end_date)

        stmt = (
            select(AssetBooking)
            .where(
                AssetBooking.asset_type == AssetType(asset_type).value,
                AssetBooking.asset_id == asset_id,
                AssetBooking.status.not_in(_NON_BLOCKING),
                AssetBooking.start_date <= proposed.end,
                AssetBooking.end_date >= proposed.start,
            )
            .order_by(AssetBooking.start_date, AssetBooking.booking_number)
        )
        return [b.to_info() for b in self.session.execute(stmt).scalars()]
