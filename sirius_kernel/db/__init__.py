"""Database layer - engine, base classes, and session scope."""

from sirius_kernel.db.base import UUID, Base, TimestampedBase, UUIDString
from sirius_kernel.db.engine import create_tables, get_engine, get_session, session_scope

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TimestampedBase",
    "UUIDString",
    "UUID",
]
