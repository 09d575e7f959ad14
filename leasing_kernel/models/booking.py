"""
Module: leasing_kernel.models.booking
Responsibility: ORM persistence for site bookings.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - start_date <= end_date (check constraint).
    - All monetary amounts are non-negative (check constraints).
    - status is one of the five BookingStatus values (check constraint).
    - booking_number is globally unique.
    - Bookings are never deleted (ORM listener + PostgreSQL trigger).
    - The status column is mapped as the private attribute ``_status`` and
      exposed read-only through ``status``.  Only StatusLifecycleManager
      writes it, under a grant checked at flush time (db/immutability.py).

Failure modes:
    - AttributeError when code assigns ``booking.status``.
    - UnauthorizedStatusWriteError when ``_status`` is flushed without a grant.
    - IntegrityError on check-constraint or uniqueness violations.

Audit relevance:
    status_sequence is the sequence number of the latest history entry and
    orders the booking_status_history rows for this booking.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leasing_kernel.db.base import TrackedBase, UUIDString
from leasing_kernel.domain.booking import BookingInfo, BookingStatus
from leasing_kernel.models.centre import Site, UsageCategory

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in BookingStatus)


class Booking(TrackedBase):
    """A reservation of one site for an inclusive range of calendar days."""

    __tablename__ = "bookings"

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_bookings_date_range"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_bookings_status"),
        CheckConstraint(
            "total_amount >= 0 AND gst_amount >= 0 "
            "AND platform_fee >= 0 AND owner_amount >= 0",
            name="ck_bookings_amounts_non_negative",
        ),
        CheckConstraint(
            "payment_method IN ('stripe', 'invoice')",
            name="ck_bookings_payment_method",
        ),
        Index("ix_bookings_site_dates", "site_id", "start_date", "end_date"),
        Index(
            "ix_bookings_customer_category",
            "customer_id", "usage_category_id",
        ),
    )

    booking_number: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True,
    )
    site_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("sites.id"), nullable=False,
    )
    customer_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    usage_category_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("usage_categories.id"), nullable=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    gst_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0"),
    )
    gst_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False, default=Decimal("0"),
    )
    platform_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0"),
    )
    owner_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0"),
    )

    _status: Mapped[str] = mapped_column("status", String(20), nullable=False)
    status_sequence: Mapped[int] = mapped_column(nullable=False, default=0)

    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    payment_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    requires_approval: Mapped[bool] = mapped_column(nullable=False, default=False)
    approval_reasons: Mapped[str | None] = mapped_column(Text, nullable=True)
    additional_category_details: Mapped[str | None] = mapped_column(
        Text, nullable=True,
    )

    approved_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    refund_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    refund_pending_at: Mapped[datetime | None] = mapped_column(nullable=True)
    admin_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    site: Mapped[Site] = relationship()
    usage_category: Mapped[UsageCategory | None] = relationship()

    @hybrid_property
    def status(self) -> str:
        """Current status.  Read-only; change it through StatusLifecycleManager."""
        return self._status

    def to_info(self) -> BookingInfo:
        return BookingInfo(
            booking_id=self.id,
            booking_number=self.booking_number,
            site_id=self.site_id,
            customer_id=self.customer_id,
            usage_category_id=self.usage_category_id,
            start_date=self.start_date,
            end_date=self.end_date,
            status=BookingStatus(self._status),
            requires_approval=self.requires_approval,
            payment_method=self.payment_method,
            total_amount=self.total_amount,
        )

    def __repr__(self) -> str:
        return f"<Booking {self.booking_number} status={self._status}>"
