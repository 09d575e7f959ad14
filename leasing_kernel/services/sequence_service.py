"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly increasing numbers for booking numbers
    (``booking_number:CODE:YYYYMMDD``) and per-entity audit log entries
    (``audit:<entity_type>:<entity_id>``).  A dedicated counter row is
    locked with ``SELECT ... FOR UPDATE`` so concurrent allocations for the
    same name serialize.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by BookingService and StatusLifecycleManager.

Invariants enforced:
    - The locked counter row is the sole source of truth for the next
      value; aggregate max-plus-one queries are never used.
    - The increment is only visible after the caller's transaction commits.
      Rollback returns the value.

Failure modes:
    - IntegrityError: concurrent first use of a name (handled via savepoint
      rollback and retry).
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from leasing_kernel.logging_config import get_logger
from leasing_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Lock the named counter (creating it on first use), increment it and
        return the new value (always > 0).
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # Another transaction may create the same counter; keep the
            # rest of the caller's work out of the rollback.
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value without incrementing; None if never allocated."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None
