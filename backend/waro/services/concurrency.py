# Overview: Transaction boundaries and row locking shared by the write services.

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import StoreError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() covers it there.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Open the write transaction eagerly.

    On SQLite this takes the database RESERVED lock up front (BEGIN IMMEDIATE)
    so two writers serialize instead of both reading and then failing to
    upgrade. Must run before any DML in the current transaction.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_in_transaction(func):
    """
    Execute func() as one all-or-nothing unit.

    Commits on success. Any exception rolls back every write made by func.
    SQLAlchemy failures are re-raised as StoreError; they are not retried here,
    the caller decides whether to resubmit.
    """
    try:
        begin_write()
        result = func()
        db.session.commit()
        return result
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreError("database.queryError", details=str(exc)) from exc
    except Exception:
        db.session.rollback()
        raise
