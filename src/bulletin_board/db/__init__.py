"""Persistence layer: engine, sessions and time helpers."""

from .session import Base, SessionLocal, get_db

__all__ = ["Base", "SessionLocal", "get_db"]
