"""Database layer - engine, base classes, types, and append-only guards."""

from leasing_kernel.db.base import UUID, Base, TrackedBase, UTCDateTime, UUIDString
from leasing_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from leasing_kernel.db.types import round_money, to_money

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UTCDateTime",
    "UUIDString",
    "UUID",
    "round_money",
    "to_money",
]
