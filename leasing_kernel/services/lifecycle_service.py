"""
StatusLifecycleManager -- the only write path for booking status.

Responsibility:
    Creates bookings in their initial status, moves them between states,
    and writes the matching history entry for every change.  Also appends
    status changes for asset bookings (vacant shops, third-line income) to
    the generic audit log.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by BookingService and AssetBookingService; request handlers
    outside the kernel reach it only through those services.

Invariants enforced:
    - Status writes are authorised per flush via db.immutability grants.
      A Booking status flushed by any other code raises
      UnauthorizedStatusWriteError.
    - Status row update and history append happen inside one SAVEPOINT:
      both are applied or neither is.
    - The booking row is locked (SELECT ... FOR UPDATE) before the previous
      status is read, so history entries are strictly ordered per booking.
    - Same status with no extra fields is a no-op: no row update, no history.
    - Terminal states (cancelled, rejected, completed) have no outgoing
      transitions.
    - Only record_creation writes an entry with previous_status = NULL.

Failure modes:
    - BookingNotFoundError: unknown booking id.
    - InvalidTransitionError: edge not in BOOKING_TRANSITIONS, bad initial
      status, or creation recorded twice.
    - ValidationError: unknown status value or extra field.
    - AuditWriteError: history/audit append failed; the status write was
      rolled back with it.
    - ConcurrencyError: another transaction claimed the history sequence.

Audit relevance:
    Every entry carries the actor id, display name, reason and timestamp
    from the injected clock.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Collection, Mapping
from uuid import UUID, uuid4

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from leasing_kernel.db.immutability import grant_status_write, revoke_status_write
from leasing_kernel.domain.booking import (
    AUDIT_ACTION_STATUS_CHANGE,
    INITIAL_BOOKING_STATUSES,
    TERMINAL_BOOKING_STATUSES,
    AssetType,
    BookingStatus,
    StatusChange,
    creation_reason,
    default_change_reason,
    is_valid_transition,
)
from leasing_kernel.domain.clock import Clock, SystemClock
from leasing_kernel.exceptions import (
    AuditWriteError,
    BookingNotFoundError,
    ConcurrencyError,
    InvalidTransitionError,
    ValidationError,
)
from leasing_kernel.logging_config import LogContext, get_logger
from leasing_kernel.models.audit_log import AuditLogEntry
from leasing_kernel.models.booking import Booking
from leasing_kernel.models.status_history import (
    UQ_HISTORY_SEQUENCE,
    BookingStatusHistory,
)
from leasing_kernel.services.base import BaseService
from leasing_kernel.services.sequence_service import SequenceService

logger = get_logger("services.lifecycle")

# Booking columns that may change together with the status.
EXTRA_FIELDS: frozenset[str] = frozenset({
    "paid_at",
    "approved_by",
    "approved_at",
    "rejection_reason",
    "cancelled_at",
    "refund_status",
    "refund_pending_at",
    "admin_comments",
    "payment_due_date",
})

DEFAULT_CREATOR_NAME = "System"


def coerce_status(value: BookingStatus | str, field: str = "new_status") -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        raise ValidationError(field, f"unknown booking status {value!r}") from None


def _check_extra_fields(fields: Mapping[str, Any]) -> None:
    unknown = sorted(set(fields) - EXTRA_FIELDS)
    if unknown:
        raise ValidationError(
            "extra_fields",
            f"cannot be set with a status change: {', '.join(unknown)}",
        )


def _is_history_sequence_clash(exc: IntegrityError) -> bool:
    detail = str(exc.orig)
    return (
        UQ_HISTORY_SEQUENCE in detail
        or "booking_status_history.booking_id, booking_status_history.sequence" in detail
    )


class StatusLifecycleManager(BaseService[Booking]):
    """
    Single entry point for booking status writes.

    Contract:
        ``record_creation`` persists a new booking with its initial status;
        ``change_status`` performs every later transition.  Both flush, and
        neither commits.

    Non-goals:
        - Does NOT decide the initial status (domain.admission does).
        - Does NOT check date conflicts (OverlapSelector does).
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = SequenceService(session)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def record_creation(
        self,
        booking: Booking,
        initial_status: BookingStatus | str,
        changed_by: UUID | None = None,
        changed_by_name: str | None = None,
    ) -> StatusChange:
        """
        Persist a new booking in ``initial_status`` and write its creation
        history entry (sequence 1, no previous status).

        Preconditions:
            ``booking`` is transient: never flushed, no status set.
        """
        initial = coerce_status(initial_status, "initial_status")

        if inspect(booking).has_identity or booking._status is not None:
            raise InvalidTransitionError(
                booking.id,
                booking._status,
                initial.value,
                "creation already recorded",
            )
        if initial not in INITIAL_BOOKING_STATUSES:
            raise InvalidTransitionError(
                booking.id,
                None,
                initial.value,
                "bookings are created as pending or confirmed",
            )

        if booking.id is None:
            booking.id = uuid4()

        savepoint = self.session.begin_nested()
        try:
            grant_status_write(self.session, booking, initial.value)
            booking._status = initial.value
            booking.status_sequence = 1
            self.session.add(booking)
            self.session.flush()
        except SQLAlchemyError:
            savepoint.rollback()
            revoke_status_write(self.session, booking)
            booking._status = None
            raise

        try:
            self._append_history(
                booking_id=booking.id,
                sequence=1,
                previous_status=None,
                new_status=initial,
                changed_by=changed_by,
                changed_by_name=changed_by_name or DEFAULT_CREATOR_NAME,
                reason=creation_reason(initial),
            )
            self.session.flush()
            savepoint.commit()
        except SQLAlchemyError as exc:
            savepoint.rollback()
            booking._status = None
            self._raise_history_failure(booking.id, initial, exc)

        logger.info(
            "booking_creation_recorded",
            extra={
                "booking_id": str(booking.id),
                "booking_number": booking.booking_number,
                "initial_status": initial.value,
                "changed_by": str(changed_by) if changed_by else None,
            },
        )
        return StatusChange(
            booking_id=booking.id,
            previous_status=None,
            new_status=initial,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def change_status(
        self,
        booking_id: UUID,
        new_status: BookingStatus | str,
        changed_by: UUID | None = None,
        changed_by_name: str | None = None,
        reason: str | None = None,
        extra_fields: Mapping[str, Any] | None = None,
        require_current: Collection[BookingStatus] | None = None,
        build_fields: Callable[[Booking], Mapping[str, Any]] | None = None,
    ) -> StatusChange:
        """
        Move a booking to ``new_status`` and record the transition.

        ``require_current`` narrows the statuses the booking may be in,
        checked under the row lock (approve only from pending, etc.).
        ``build_fields`` receives the locked row and returns further extra
        fields; use it for any value derived from the booking's own columns.

        Postconditions:
            - Returns the status read under the row lock as previous_status.
            - ``recorded`` is False iff the call was a no-op (same status and
              no extra fields); nothing was written in that case.
        """
        target = coerce_status(new_status)
        fields = dict(extra_fields or {})
        _check_extra_fields(fields)

        with LogContext.bind(booking_id=str(booking_id)):
            booking = self._lock_booking(booking_id)
            previous = BookingStatus(booking.status)

            if require_current is not None and previous not in require_current:
                raise InvalidTransitionError(
                    booking.id,
                    previous.value,
                    target.value,
                    f"booking is {previous.value}",
                )

            if previous != target and not is_valid_transition(previous, target):
                detail = (
                    f"{previous.value} is a terminal status"
                    if previous in TERMINAL_BOOKING_STATUSES
                    else "transition not allowed"
                )
                logger.warning(
                    "invalid_status_transition_rejected",
                    extra={
                        "from_status": previous.value,
                        "to_status": target.value,
                    },
                )
                raise InvalidTransitionError(
                    booking.id, previous.value, target.value, detail,
                )

            if build_fields is not None:
                fields.update(build_fields(booking))
                _check_extra_fields(fields)

            if previous == target and not fields:
                logger.debug(
                    "booking_status_unchanged",
                    extra={"status": target.value},
                )
                return StatusChange(
                    booking_id=booking.id,
                    previous_status=previous,
                    new_status=target,
                    recorded=False,
                )

            sequence = booking.status_sequence + 1

            savepoint = self.session.begin_nested()
            try:
                for name, value in fields.items():
                    setattr(booking, name, value)
                grant_status_write(self.session, booking, target.value)
                booking._status = target.value
                booking.status_sequence = sequence
                self.session.flush()
                revoke_status_write(self.session, booking)
            except SQLAlchemyError:
                savepoint.rollback()
                revoke_status_write(self.session, booking)
                self.session.expire(booking)
                raise

            try:
                self._append_history(
                    booking_id=booking.id,
                    sequence=sequence,
                    previous_status=previous,
                    new_status=target,
                    changed_by=changed_by,
                    changed_by_name=changed_by_name,
                    reason=reason or default_change_reason(target),
                )
                self.session.flush()
                savepoint.commit()
            except SQLAlchemyError as exc:
                savepoint.rollback()
                self.session.expire(booking)
                self._raise_history_failure(booking_id, target, exc)

            logger.info(
                "booking_status_changed",
                extra={
                    "previous_status": previous.value,
                    "new_status": target.value,
                    "sequence": sequence,
                    "changed_by": str(changed_by) if changed_by else None,
                    "extra_fields": sorted(fields),
                },
            )
            return StatusChange(
                booking_id=booking.id,
                previous_status=previous,
                new_status=target,
            )

    # ------------------------------------------------------------------
    # Asset bookings
    # ------------------------------------------------------------------

    def log_asset_status_change(
        self,
        entity_type: AssetType | str,
        entity_id: UUID,
        previous_status: BookingStatus | str | None,
        new_status: BookingStatus | str,
        changed_by: UUID | None = None,
        reason: str | None = None,
    ) -> AuditLogEntry:
        """
        Append a status change for an asset booking to the audit log.

        The caller writes the asset's own status column; wrap both in one
        savepoint to keep them together.
        """
        try:
            asset_type = AssetType(entity_type)
        except ValueError:
            raise ValidationError(
                "entity_type", f"not an audited asset type: {entity_type!r}",
            ) from None
        target = coerce_status(new_status)
        previous = (
            coerce_status(previous_status, "previous_status")
            if previous_status is not None
            else None
        )

        savepoint = self.session.begin_nested()
        try:
            sequence = self._sequences.next_value(
                f"audit:{asset_type.value}:{entity_id}"
            )
            entry = AuditLogEntry(
                entity_type=asset_type.value,
                entity_id=entity_id,
                sequence=sequence,
                action=AUDIT_ACTION_STATUS_CHANGE,
                previous_status=previous.value if previous else None,
                new_status=target.value,
                changed_by=changed_by,
                reason=reason,
                changes={
                    "previousStatus": previous.value if previous else None,
                    "newStatus": target.value,
                    "reason": reason,
                },
                created_at=self._clock.now(),
            )
            self.session.add(entry)
            self.session.flush()
            savepoint.commit()
        except SQLAlchemyError as exc:
            savepoint.rollback()
            logger.error(
                "audit_log_write_failed",
                extra={
                    "entity_type": asset_type.value,
                    "entity_id": str(entity_id),
                    "new_status": target.value,
                },
            )
            raise AuditWriteError(entity_id, target.value, str(exc)) from exc

        logger.info(
            "asset_status_logged",
            extra={
                "entity_type": asset_type.value,
                "entity_id": str(entity_id),
                "previous_status": entry.previous_status,
                "new_status": target.value,
                "sequence": sequence,
            },
        )
        return entry

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock_booking(self, booking_id: UUID) -> Booking:
        booking = self.session.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if booking is None:
            raise BookingNotFoundError(str(booking_id))
        return booking

    def _append_history(
        self,
        booking_id: UUID,
        sequence: int,
        previous_status: BookingStatus | None,
        new_status: BookingStatus,
        changed_by: UUID | None,
        changed_by_name: str | None,
        reason: str | None,
    ) -> BookingStatusHistory:
        entry = BookingStatusHistory(
            booking_id=booking_id,
            sequence=sequence,
            previous_status=previous_status.value if previous_status else None,
            new_status=new_status.value,
            changed_by=changed_by,
            changed_by_name=changed_by_name,
            reason=reason,
            created_at=self._now(),
        )
        self.session.add(entry)
        return entry

    def _now(self) -> datetime:
        return self._clock.now()

    def _raise_history_failure(
        self,
        booking_id: UUID,
        new_status: BookingStatus,
        exc: SQLAlchemyError,
    ) -> None:
        if isinstance(exc, IntegrityError) and _is_history_sequence_clash(exc):
            logger.warning(
                "status_history_sequence_conflict",
                extra={"booking_id": str(booking_id)},
            )
            raise ConcurrencyError("Booking", booking_id) from exc
        logger.error(
            "status_history_write_failed",
            extra={
                "booking_id": str(booking_id),
                "new_status": new_status.value,
            },
        )
        raise AuditWriteError(booking_id, new_status.value, str(exc)) from exc
