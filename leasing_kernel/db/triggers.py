"""
Module: leasing_kernel.db.triggers
Responsibility: Loading, installing, and verifying PostgreSQL append-only
    triggers.  This is the database-level complement to the ORM listeners in
    db/immutability.py.
Architecture position: Kernel > DB.  May import from db/ only.

Invariants enforced:
    - booking_status_history rows: no UPDATE, no DELETE.
    - audit_log rows: no UPDATE, no DELETE.
    - bookings rows: no DELETE.

Failure modes:
    - PostgreSQL RAISE EXCEPTION on any trigger violation (surfaced by
      SQLAlchemy as InternalError/ProgrammingError).
    - FileNotFoundError if SQL files are missing from the sql/ directory.

Audit relevance:
    Raw SQL, bulk operations and direct psql access bypass the ORM listeners
    but not these triggers.
"""

from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import Engine

SQL_DIR = Path(__file__).parent / "sql"

TRIGGER_FILES = [
    "01_booking_status_history.sql",
    "02_audit_log.sql",
    "03_booking_retention.sql",
]

DROP_FILE = "99_drop_all.sql"

ALL_TRIGGER_NAMES = [
    "trg_booking_status_history_immutability_update",
    "trg_booking_status_history_immutability_delete",
    "trg_audit_log_immutability_update",
    "trg_audit_log_immutability_delete",
    "trg_booking_delete",
]


def _load_sql_file(filename: str) -> str:
    return (SQL_DIR / filename).read_text(encoding="utf-8")


def _load_all_trigger_sql() -> str:
    """Concatenate all trigger SQL files in numbered order."""
    sql_parts = []
    for filename in TRIGGER_FILES:
        sql_parts.append(f"-- Loading: {filename}")
        sql_parts.append(_load_sql_file(filename))
        sql_parts.append("")
    return "\n".join(sql_parts)


def install_immutability_triggers(engine: Engine) -> None:
    """
    Install database-level append-only triggers.

    Preconditions: Tables exist (call after create_all) on PostgreSQL.
    Postconditions: All triggers in ALL_TRIGGER_NAMES are installed.
        Functions use CREATE OR REPLACE, so re-running is safe.
    """
    with engine.connect() as conn:
        conn.execute(text(_load_all_trigger_sql()))
        conn.commit()


def uninstall_immutability_triggers(engine: Engine) -> None:
    """
    Remove the append-only triggers and their functions.

    Only for test teardown or data-repair migrations; re-install immediately
    afterwards.
    """
    with engine.connect() as conn:
        conn.execute(text(_load_sql_file(DROP_FILE)))
        conn.commit()


def get_installed_triggers(engine: Engine) -> list[str]:
    """List the append-only triggers currently installed."""
    trigger_list = ", ".join(f"'{name}'" for name in ALL_TRIGGER_NAMES)
    check_sql = f"""
    SELECT tgname FROM pg_trigger
    WHERE tgname IN ({trigger_list})
    ORDER BY tgname;
    """
    with engine.connect() as conn:
        return [row[0] for row in conn.execute(text(check_sql))]


def triggers_installed(engine: Engine) -> bool:
    """True iff every trigger in ALL_TRIGGER_NAMES is installed."""
    return len(get_installed_triggers(engine)) == len(ALL_TRIGGER_NAMES)
