"""SQLAlchemy engine and session factory for report storage."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from fieldreports.core.config import get_settings
from fieldreports.obs import instrument_sqlalchemy_engine


def build_engine(database_url: str, *, enable_tracing: bool = False) -> Engine:
    """Create an engine, allowing SQLite connections to cross request threads."""
    options: dict[str, Any] = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    bound = create_engine(database_url, **options)
    if enable_tracing:
        instrument_sqlalchemy_engine(bound)
    return bound


settings = get_settings()
engine = build_engine(settings.database_url, enable_tracing=settings.enable_tracing)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def session_scope() -> Iterator[Session]:
    """Provide a session that is rolled back on error and always closed."""
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = ["SessionLocal", "build_engine", "engine", "session_scope"]
