"""Persistence for candidate interview sessions."""
from .session_store import MemorySessionStore, SessionStore, SqliteSessionStore

__all__ = ["MemorySessionStore", "SessionStore", "SqliteSessionStore"]
