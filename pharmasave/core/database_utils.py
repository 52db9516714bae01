"""
Database utility functions for consistent connection management across the application.

Besides the session context manager this module holds the metadata probes used by
services that prefer an in-database function when one is installed and fall back
to local logic otherwise.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Dict, Any, List, Iterable

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmasave.db.session import SessionLocal

logger = logging.getLogger(__name__)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Get a database session with proper cleanup using context manager.

    Usage:
        with get_db_session() as db:
            result = db.query(Model).all()

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()  # Commit successful operations
    except Exception as e:
        db.rollback()  # Rollback on any exception
        logger.error(f"Database session error: {e}")
        raise
    finally:
        db.close()  # Always close the session


def tables_exist(db: Session, table_names: Iterable[str]) -> List[str]:
    """Return the subset of ``table_names`` present in the connected database."""
    try:
        existing = set(inspect(db.get_bind()).get_table_names())
    except SQLAlchemyError as e:
        logger.warning(f"Could not inspect database tables: {e}")
        return []
    return [name for name in table_names if name in existing]


def routine_exists(db: Session, routine_name: str) -> bool:
    """
    Check ``information_schema.routines`` for a stored function in the public schema.

    Only PostgreSQL exposes callable routines; every other dialect reports False,
    as does any error raised by the probe itself.
    """
    bind = db.get_bind()
    if bind.dialect.name != "postgresql":
        return False
    try:
        row = db.execute(
            text(
                "SELECT routine_name FROM information_schema.routines "
                "WHERE routine_schema = 'public' AND routine_name = :name"
            ),
            {"name": routine_name},
        ).first()
        return row is not None
    except SQLAlchemyError as e:
        logger.warning(f"Routine probe for {routine_name} failed: {e}")
        db.rollback()
        return False


def call_routine(db: Session, routine_name: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Invoke a set-returning or scalar database function by name with named parameters.

    Rows are returned as plain dicts. Errors propagate to the caller, which decides
    whether to fall back.
    """
    placeholders = ", ".join(f"{key} => :{key}" for key in params)
    statement = text(f"SELECT * FROM {routine_name}({placeholders})")
    result = db.execute(statement, params)
    rows = [dict(row._mapping) for row in result]
    db.commit()
    return rows
