"""Database helpers (engine/session export)."""

from .session import Base, get_db_session, get_engine, get_session

__all__ = ["Base", "get_db_session", "get_engine", "get_session"]
