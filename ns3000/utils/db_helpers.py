"""
Database Helper Utilities for Concurrency Control

Provides:
- Database dialect detection (PostgreSQL vs SQLite)
- Row locking for the check-then-write booking sequence
- Unique-constraint violation detection
"""

import logging
from typing import Optional, Sequence, TypeVar, Type
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def is_postgres(db: Session) -> bool:
    """Check if the database is PostgreSQL"""
    try:
        return db.bind.dialect.name == 'postgresql'
    except AttributeError:
        return False


def is_sqlite(db: Session) -> bool:
    """Check if the database is SQLite"""
    try:
        return db.bind.dialect.name == 'sqlite'
    except AttributeError:
        return True  # Default to SQLite for safety


def begin_immediate(db: Session) -> bool:
    """
    Take the SQLite database write lock for the current transaction.

    pysqlite only opens a transaction at the first INSERT/UPDATE, so reads
    done before it are not protected. BEGIN IMMEDIATE takes the RESERVED
    lock up front; a concurrent writer waits here (up to the driver's busy
    timeout) until this transaction commits or rolls back.

    Returns:
        True if a transaction was started, False if one was already open
    """
    dbapi_connection = db.connection().connection.dbapi_connection
    if dbapi_connection.in_transaction:
        return False
    dbapi_connection.execute("BEGIN IMMEDIATE")
    return True


def acquire_row_lock(
    db: Session,
    model: Type[T],
    filter_condition,
    nowait: bool = False
) -> Optional[T]:
    """
    Acquire a row-level lock on a database record.

    PostgreSQL locks the row with SELECT ... FOR UPDATE. SQLite has no row
    locks, so the whole database write lock is taken instead.

    Args:
        db: Database session
        model: SQLAlchemy model class
        filter_condition: Filter to find the row
        nowait: If True, raise error immediately if lock unavailable (PostgreSQL only)

    Returns:
        The locked model instance, or None if not found

    Example:
        boat = acquire_row_lock(db, Boat, Boat.id == boat_id)
    """
    query = db.query(model).filter(filter_condition)

    if is_postgres(db):
        if nowait:
            query = query.with_for_update(nowait=True)
        else:
            query = query.with_for_update()
    elif is_sqlite(db):
        begin_immediate(db)

    return query.first()


def is_unique_violation(
    exc: IntegrityError,
    constraint_name: str,
    table: Optional[str] = None,
    columns: Sequence[str] = ()
) -> bool:
    """
    True when an IntegrityError was raised by the named unique index.

    PostgreSQL reports the constraint name. SQLite reports the indexed
    columns instead ("UNIQUE constraint failed: t.a, t.b"), so table and
    columns are needed to tell the index apart from other unique columns.
    """
    message = str(getattr(exc, "orig", exc)).lower()
    if constraint_name.lower() in message:
        return True
    if table and columns:
        column_list = ", ".join(f"{table}.{column}" for column in columns).lower()
        return f"unique constraint failed: {column_list}" in message
    return False
