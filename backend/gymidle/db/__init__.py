"""Database utilities for the progression backend."""

from .base import Base
from .session import (
    SessionManager,
    build_session_factory,
    dispose_engine,
    get_engine,
    get_session_factory,
    session_scope,
)

__all__ = [
    "Base",
    "SessionManager",
    "build_session_factory",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "session_scope",
]
