"""
Module: leasing_kernel.selectors.history_selector
Responsibility: Read access to the booking status history and the generic
    audit log, for reporting and staff review screens.
Architecture position: Kernel > Selectors.  Read-only.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select

from leasing_kernel.domain.booking import AuditLogRecord, StatusHistoryRecord
from leasing_kernel.models.audit_log import AuditLogEntry
from leasing_kernel.models.status_history import BookingStatusHistory
from leasing_kernel.selectors.base import BaseSelector


class HistorySelector(BaseSelector[BookingStatusHistory]):
    def booking_history(self, booking_id: UUID) -> list[StatusHistoryRecord]:
        """All transitions for a booking, oldest first."""
        rows = self.session.execute(
            select(BookingStatusHistory)
            .where(BookingStatusHistory.booking_id == booking_id)
            .order_by(BookingStatusHistory.sequence)
        ).scalars()
        return [row.to_record() for row in rows]

    def latest(self, booking_id: UUID) -> StatusHistoryRecord | None:
        row = self.session.execute(
            select(BookingStatusHistory)
            .where(BookingStatusHistory.booking_id == booking_id)
            .order_by(BookingStatusHistory.sequence.desc())
            .limit(1)
        ).scalar_one_or_none()
        return row.to_record() if row is not None else None

    def creation_entry_count(self, booking_id: UUID) -> int:
        """Entries with no previous status.  Exactly 1 for every booking."""
        return self.session.execute(
            select(func.count())
            .select_from(BookingStatusHistory)
            .where(
                BookingStatusHistory.booking_id == booking_id,
                BookingStatusHistory.previous_status.is_(None),
            )
        ).scalar_one()

    def entity_audit_log(
        self, entity_type: str, entity_id: UUID,
    ) -> list[AuditLogRecord]:
        rows = self.session.execute(
            select(AuditLogEntry)
            .where(
                AuditLogEntry.entity_type == entity_type,
                AuditLogEntry.entity_id == entity_id,
            )
            .order_by(AuditLogEntry.sequence)
        ).scalars()
        return [row.to_record() for row in rows]
