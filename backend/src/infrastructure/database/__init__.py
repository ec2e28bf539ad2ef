from .session import Base, async_session, create_tables, engine, local_session
from .transaction import is_unique_constraint_violation, transactional

__all__ = [
    "Base",
    "async_session",
    "create_tables",
    "engine",
    "is_unique_constraint_violation",
    "local_session",
    "transactional",
]
