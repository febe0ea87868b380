"""Database engine/session helpers."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def create_db_engine(db_url: str, *, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine; SQLite URLs are used by tests and local runs."""
    return create_engine(db_url, pool_pre_ping=True, echo=echo)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Sessions never autoflush; repositories flush where ordering matters."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Commit on success, roll back and re-raise on any error."""
    with session_factory() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


__all__ = ["create_db_engine", "create_session_factory", "session_scope"]
