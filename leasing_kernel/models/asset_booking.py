"""
Module: leasing_kernel.models.asset_booking
Responsibility: ORM persistence for vacant-shop and third-line-income
    bookings.  These carry their own status column; every change to it is
    recorded in the audit log by AssetBookingService.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - start_date <= end_date, amounts non-negative, status valid
      (check constraints).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leasing_kernel.db.base import TrackedBase, UUIDString
from leasing_kernel.domain.booking import AssetBookingInfo, AssetType, BookingStatus

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in BookingStatus)
_ASSET_TYPES = ", ".join(f"'{t.value}'" for t in AssetType)


class AssetBooking(TrackedBase):
    __tablename__ = "asset_bookings"

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_asset_bookings_date_range"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_asset_bookings_status"),
        CheckConstraint(f"asset_type IN ({_ASSET_TYPES})", name="ck_asset_bookings_type"),
        CheckConstraint(
            "total_amount >= 0 AND gst_amount >= 0",
            name="ck_asset_bookings_amounts_non_negative",
        ),
        Index(
            "ix_asset_bookings_asset_dates",
            "asset_type", "asset_id", "start_date", "end_date",
        ),
    )

    booking_number: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True,
    )
    asset_type: Mapped[str] = mapped_column(String(30), nullable=False)
    asset_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    customer_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    gst_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0"),
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    approved_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_info(self) -> AssetBookingInfo:
        return AssetBookingInfo(
            asset_booking_id=self.id,
            booking_number=self.booking_number,
            asset_type=AssetType(self.asset_type),
            asset_id=self.asset_id,
            customer_id=self.customer_id,
            start_date=self.start_date,
            end_date=self.end_date,
            status=BookingStatus(self.status),
            total_amount=self.total_amount,
        )

    def __repr__(self) -> str:
        return f"<AssetBooking {self.booking_number} {self.asset_type} status={self.status}>"
