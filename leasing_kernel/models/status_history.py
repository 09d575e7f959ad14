"""
Module: leasing_kernel.models.status_history
Responsibility: Append-only log of booking status transitions.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - Append-only: no UPDATE, no DELETE (ORM listener + PostgreSQL trigger).
    - UNIQUE(booking_id, sequence): one entry per lifecycle step, in order.
    - previous_status is NULL only for the creation entry (sequence 1),
      which StatusLifecycleManager.record_creation alone writes.

Failure modes:
    - ImmutabilityViolationError on UPDATE/DELETE through the ORM.
    - IntegrityError on a duplicate (booking_id, sequence) pair; the
      lifecycle manager reports it as ConcurrencyError.

Audit relevance:
    This table is the attributable record of who moved a booking between
    states, when, and why.  Rows are written exclusively by
    StatusLifecycleManager.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from leasing_kernel.db.base import Base, UUIDString
from leasing_kernel.domain.booking import BookingStatus, StatusHistoryRecord

UQ_HISTORY_SEQUENCE = "uq_booking_status_history_sequence"


class BookingStatusHistory(Base):
    __tablename__ = "booking_status_history"

    __table_args__ = (
        UniqueConstraint("booking_id", "sequence", name=UQ_HISTORY_SEQUENCE),
        CheckConstraint(
            "(previous_status IS NULL) = (sequence = 1)",
            name="ck_booking_status_history_creation_entry",
        ),
    )

    booking_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("bookings.id"), nullable=False, index=True,
    )
    sequence: Mapped[int] = mapped_column(nullable=False)
    previous_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    changed_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_record(self) -> StatusHistoryRecord:
        return StatusHistoryRecord(
            booking_id=self.booking_id,
            sequence=self.sequence,
            previous_status=(
                BookingStatus(self.previous_status)
                if self.previous_status is not None
                else None
            ),
            new_status=BookingStatus(self.new_status),
            changed_by=self.changed_by,
            changed_by_name=self.changed_by_name,
            reason=self.reason,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<BookingStatusHistory {self.booking_id}#{self.sequence} "
            f"{self.previous_status}->{self.new_status}>"
        )
