"""Database layer - engine, base classes and immutability listeners."""

from order_kernel.db.base import Base, TrackedBase, UUIDString
from order_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    run_with_retry,
)

__all__ = [
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "create_tables",
    "run_with_retry",
    "Base",
    "TrackedBase",
    "UUIDString",
]
