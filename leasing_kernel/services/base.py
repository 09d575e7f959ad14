"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for every
    write-side service in the kernel.  Services receive a SQLAlchemy
    ``Session`` and use ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll it back.  The caller (request handler, test
    harness, ``session_scope()``) owns commit/rollback.  Services MAY open a
    SAVEPOINT (``session.begin_nested()``) to make one step both-or-neither.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from leasing_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage the outer transaction lifecycle.
        - Does NOT provide read-only queries; those belong in selectors/.
    """

    def __init__(self, session: Session):
        self.session = session
