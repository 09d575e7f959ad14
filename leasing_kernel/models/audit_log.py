"""
Module: leasing_kernel.models.audit_log
Responsibility: Append-only audit log for entities other than site bookings
    (vacant-shop and third-line-income bookings).
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - Append-only: no UPDATE, no DELETE (ORM listener + PostgreSQL trigger).
    - Same shape as BookingStatusHistory, keyed by (entity_type, entity_id).
    - UNIQUE(entity_type, entity_id, sequence): entries for one entity are
      numbered from a locked SequenceService counter.

Audit relevance:
    ``changes`` repeats the transition as JSON so reporting can read it
    without knowing the column layout.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from leasing_kernel.db.base import Base, UUIDString
from leasing_kernel.domain.booking import AuditLogRecord


class AuditLogEntry(Base):
    __tablename__ = "audit_log"

    __table_args__ = (
        Index("ix_audit_log_entity", "entity_type", "entity_id", "created_at"),
        UniqueConstraint(
            "entity_type", "entity_id", "sequence",
            name="uq_audit_log_entity_sequence",
        ),
    )

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    sequence: Mapped[int] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    previous_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changes: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_record(self) -> AuditLogRecord:
        return AuditLogRecord(
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            sequence=self.sequence,
            action=self.action,
            previous_status=self.previous_status,
            new_status=self.new_status,
            changed_by=self.changed_by,
            reason=self.reason,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<AuditLogEntry {self.entity_type}:{self.entity_id} "
            f"{self.previous_status}->{self.new_status}>"
        )
