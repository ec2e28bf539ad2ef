"""Transactional scopes and dialect helpers for write operations."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

UNIQUE_VIOLATION_SQLSTATE = "23505"


@asynccontextmanager
async def transactional(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a block of work as one atomic unit on the given session.

    The session is committed when the block exits normally and rolled back
    when it raises, so an error detected anywhere inside the block leaves no
    partial mutation behind. The exception is re-raised unchanged.

    Example:
        ```python
        async with transactional(db):
            db.add(element)
            await db.flush()
        ```
    """
    try:
        yield db
    except Exception:
        await db.rollback()
        raise
    else:
        await db.commit()


def is_unique_constraint_violation(error: IntegrityError) -> bool:
    """Tell whether an integrity error comes from a unique constraint.

    Postgres drivers expose the SQLSTATE code; SQLite and MySQL only carry
    it in the message.
    """
    orig = getattr(error, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == UNIQUE_VIOLATION_SQLSTATE:
        return True

    message = str(orig if orig is not None else error).lower()
    return "unique constraint" in message or "duplicate key" in message or "duplicate entry" in message
