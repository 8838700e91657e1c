"""Database layer - engine, base classes, column types and immutability."""

from coop_kernel.db.base import Base, TrackedBase
from coop_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from coop_kernel.db.types import MONEY, RATE, round_money

__all__ = [
    "Base",
    "TrackedBase",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
    "MONEY",
    "RATE",
    "round_money",
]
