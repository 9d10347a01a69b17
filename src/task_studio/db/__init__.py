"""Database related helpers."""

from __future__ import annotations

from .session import SessionMaker, create_engine, create_session_maker, get_session, init_db

__all__ = ["SessionMaker", "create_engine", "create_session_maker", "get_session", "init_db"]
