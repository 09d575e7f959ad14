"""
ORM-Level Append-Only Enforcement (Layer 1 of 2).

===============================================================================
WHY THIS EXISTS
===============================================================================

A booking's status history is the dispute record between landlord, customer
and platform staff.  It must be impossible to rewrite, and the booking's
current status must never move without a matching history entry.

  Layer 1: THIS FILE (ORM event listeners)
    - Catches modifications through Python/SQLAlchemy code
    - Fires BEFORE the SQL is sent to the database

  Layer 2: db/sql/*.sql (PostgreSQL triggers)
    - Catches raw SQL, bulk UPDATE statements, direct psql access

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity               | Rule
---------------------|--------------------------------------------------------
BookingStatusHistory | No UPDATE, no DELETE (from creation)
AuditLogEntry        | No UPDATE, no DELETE (from creation)
Booking              | No DELETE.  Status column written only with a grant
                     | issued by StatusLifecycleManager for this flush.

===============================================================================
STATUS WRITE GRANTS
===============================================================================

StatusLifecycleManager calls grant_status_write(session, booking, status)
immediately before flushing a status change.  The before_flush listener
checks every new or dirty Booking whose status attribute changed: the
change must match a grant in session.info, otherwise the flush aborts with
UnauthorizedStatusWriteError.  Grants are consumed by the flush that checks
them.

===============================================================================
USAGE
===============================================================================

Listeners are registered when leasing_kernel.models is imported.

To temporarily disable (TESTS ONLY - used to prove the trigger layer):

    unregister_immutability_listeners()
    # ... do forbidden operation ...
    register_immutability_listeners()

===============================================================================
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from leasing_kernel.exceptions import (
    ImmutabilityViolationError,
    UnauthorizedStatusWriteError,
)
from leasing_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

STATUS_GRANTS_KEY = "leasing_kernel.status_write_grants"


# =============================================================================
# Status write grants
# =============================================================================


def grant_status_write(session: Session, booking, new_status: str) -> None:
    """Authorize the next flush to persist `new_status` on `booking`."""
    session.info.setdefault(STATUS_GRANTS_KEY, {})[id(booking)] = (booking, new_status)


def revoke_status_write(session: Session, booking) -> None:
    """Drop an unconsumed grant (flush failed or was never reached)."""
    session.info.get(STATUS_GRANTS_KEY, {}).pop(id(booking), None)


def _check_booking_status_authority(session, flush_context, instances):
    """
    Reject any Booking status change that has no matching grant.

    Runs in SessionEvents.before_flush so the flush plan is aborted before
    any SQL is emitted.
    """
    from leasing_kernel.models.booking import Booking

    grants: dict = session.info.get(STATUS_GRANTS_KEY, {})

    for obj in list(session.new) + list(session.dirty):
        if not isinstance(obj, Booking):
            continue

        history = inspect(obj).attrs._status.history
        if obj not in session.new and not history.has_changes():
            continue

        grant = grants.get(id(obj))
        if grant is not None and grant[0] is obj and grant[1] == obj._status:
            grants.pop(id(obj))
            continue

        logger.error(
            "unauthorized_status_write_blocked",
            extra={
                "entity_type": "Booking",
                "entity_id": str(obj.id),
                "attempted_status": obj._status,
            },
        )
        raise UnauthorizedStatusWriteError(
            booking_id=str(obj.id),
            attempted_status=obj._status,
        )


# =============================================================================
# Append-only rows
# =============================================================================


def _block(entity_type: str, target, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_status_history_update(mapper, connection, target):
    _block(
        "BookingStatusHistory",
        target,
        "UPDATE",
        "Status history entries are append-only and cannot be modified",
    )


def _check_status_history_delete(mapper, connection, target):
    _block(
        "BookingStatusHistory",
        target,
        "DELETE",
        "Status history entries are append-only and cannot be deleted",
    )


def _check_audit_log_update(mapper, connection, target):
    _block(
        "AuditLogEntry",
        target,
        "UPDATE",
        "Audit log entries are append-only and cannot be modified",
    )


def _check_audit_log_delete(mapper, connection, target):
    _block(
        "AuditLogEntry",
        target,
        "DELETE",
        "Audit log entries are append-only and cannot be deleted",
    )


def _check_booking_delete(mapper, connection, target):
    _block(
        "Booking",
        target,
        "DELETE",
        "Bookings are retained permanently; cancel instead of deleting",
    )


# =============================================================================
# Registration
# =============================================================================


def _listeners():
    from leasing_kernel.models.audit_log import AuditLogEntry
    from leasing_kernel.models.booking import Booking
    from leasing_kernel.models.status_history import BookingStatusHistory

    return [
        (Session, "before_flush", _check_booking_status_authority),
        (BookingStatusHistory, "before_update", _check_status_history_update),
        (BookingStatusHistory, "before_delete", _check_status_history_delete),
        (AuditLogEntry, "before_update", _check_audit_log_update),
        (AuditLogEntry, "before_delete", _check_audit_log_delete),
        (Booking, "before_delete", _check_booking_delete),
    ]


def register_immutability_listeners():
    """Register all append-only and status-authority listeners (idempotent)."""
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove the ORM listeners.

    WARNING: Only use this in tests that need to reach the trigger layer.
    """
    for target, event_name, listener_fn in _listeners():
        _safe_remove_listener(target, event_name, listener_fn)
