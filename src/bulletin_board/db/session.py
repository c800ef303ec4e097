"""Engine, declarative base and request-scoped sessions."""

from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import AbstractContextManager

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bulletin_board.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base for employees, board content and notifications."""


# Model modules register their tables on Base.metadata when imported.
import bulletin_board.models  # noqa: E402,F401


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # get_db runs in the threadpool; async routes then use the session on the loop thread.
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(
    settings.database_url_sync,
    echo=settings.sql_debug,
    **_engine_kwargs(settings.database_url_sync),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> Callable[[], AbstractContextManager[Session]]:
    """FastAPI dependency for long-lived handlers that open short sessions themselves."""
    return SessionLocal
