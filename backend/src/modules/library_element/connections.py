"""Checks on the dashboards that use a library element."""

from sqlalchemy.ext.asyncio import AsyncSession

from .crud import connection_crud
from .models import ConnectionKind


async def count_connections(db: AsyncSession, element_id: int) -> int:
    """Count the dashboards that currently embed the element."""
    return await connection_crud.count(db=db, element_id=element_id, kind=ConnectionKind.DASHBOARD.value)


async def has_connections(db: AsyncSession, element_id: int) -> bool:
    """Tell whether any dashboard still embeds the element, blocking its deletion."""
    return await count_connections(db, element_id) > 0
