"""
Module: leasing_kernel.db.engine
Responsibility: Owns the process-wide engine and session factory, and the
    per-request commit-or-rollback scope that callers wrap services in.
Architecture position: Kernel > DB.  Imports db/base.py and db/triggers.py;
    create_tables/drop_tables also pull in models so every table is registered.
    Nothing under services/, selectors/ or domain/ is imported here.

Invariants enforced:
    - PostgreSQL is the production backend.  Session isolation is READ
      COMMITTED, with explicit row-level locking (FOR UPDATE) on the site row
      for admission and on the booking row for status changes.
    - SQLite is accepted for tests and local tooling.  Its connections are
      configured so SAVEPOINT (session.begin_nested) behaves transactionally
      and foreign keys are enforced.

Failure modes:
    - RuntimeError from the accessors until init_engine_from_url() has run.

Audit relevance:
    session_scope() gives one commit-or-rollback unit per inbound request, so
    a booking row and its history entries are committed together or not at all.
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from leasing_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "database engine is not initialized; call init_engine_from_url() first"


def _configure_sqlite(engine: Engine) -> None:
    """Let pysqlite honour BEGIN/SAVEPOINT and enforce foreign keys."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Build the engine and session factory for ``database_url``.

    ``postgresql://...`` gets a READ COMMITTED QueuePool sized by the pool
    arguments.  ``sqlite://`` gets a single shared connection with
    transactional SAVEPOINTs, which is what the test suite runs on.
    Calling this again replaces the previous engine.
    """
    global _engine, _SessionFactory

    if database_url.startswith("sqlite"):
        dialect = "sqlite"
        _engine = create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        _configure_sqlite(_engine)
    else:
        dialect = "postgresql"
        _engine = create_engine(
            database_url,
            echo=echo,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": dialect, "echo": echo},
    )

    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """A fresh session; the caller owns commit and close."""
    return get_session_factory()()


def get_session_factory() -> sessionmaker[Session]:
    """Get the session factory (one session per thread in concurrent callers)."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    One unit of work per inbound request.

    Services only flush; this commits on clean exit and rolls back (then
    re-raises) on any exception, so a booking and its history rows land
    together.

    Example:
        with session_scope() as session:
            BookingService(session, clock).create_booking(request)
    """
    session = get_session()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(install_triggers: bool = True) -> None:
    """
    Create all kernel tables and, on PostgreSQL, the append-only triggers.

    Args:
        install_triggers: If True and the backend is PostgreSQL, install the
            database-level immutability triggers.
    """
    from leasing_kernel.db.base import Base
    import leasing_kernel.models  # noqa: F401  (registers all tables)

    engine = get_engine()
    Base.metadata.create_all(engine)

    if install_triggers and is_postgres():
        from leasing_kernel.db.triggers import install_immutability_triggers

        install_immutability_triggers(engine)


def drop_tables() -> None:
    """Drop every kernel table (and its triggers on PostgreSQL)."""
    from leasing_kernel.db.base import Base
    import leasing_kernel.models  # noqa: F401

    engine = get_engine()
    if is_postgres():
        from leasing_kernel.db.triggers import uninstall_immutability_triggers

        uninstall_immutability_triggers(engine)
    Base.metadata.drop_all(engine)


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None


def _atexit_dispose():
    if _engine is not None:
        _engine.dispose()


atexit.register(_atexit_dispose)


def is_postgres() -> bool:
    if _engine is None:
        return False
    return _engine.dialect.name == "postgresql"
